import logging
from functools import partial

from django.db import transaction
from django.utils import timezone

from apps.common.exceptions import (
    AlreadyHasApprovedSubject,
    CapacityExceeded,
    EnrollmentNotFound,
    InvalidTransition,
    StudentNotFound,
)
from apps.subjects.models import Subject
from apps.users.models import Student

from .models import AUTO_REJECT_NOTE, Enrollment
from .signals import notify_auto_rejected

logger = logging.getLogger(__name__)


class EnrollmentCoordinator:
    """Transitions d'une candidature qui touchent plusieurs entités.

    L'approbation modifie la candidature, le compteur du sujet et le sujet PFE
    de l'étudiant dans une seule transaction. Les verrous sont pris dans
    l'ordre candidature, étudiant, sujet.
    """

    def apply(self, student_id, subject_id, motivation=None):
        try:
            student = Student.objects.get(pk=student_id)
        except Student.DoesNotExist:
            raise StudentNotFound(student_id=student_id)
        subject = Subject.objects.find_by_id(subject_id)

        enrollment = Enrollment.objects.create_application(student, subject, motivation)
        logger.info("Candidature %s: étudiant %s -> sujet %s", enrollment.pk, student.pk, subject.pk)
        return enrollment

    def approve(self, enrollment_id, notes=None):
        """Approuve une candidature en attente.

        Args:
            enrollment_id (int): candidature à approuver.
            notes (str | None): commentaire de l'enseignant.

        Returns:
            Enrollment: la candidature approuvée, `subject` rechargé.

        Raises:
            EnrollmentNotFound: candidature inexistante.
            InvalidTransition: candidature déjà traitée.
            AlreadyHasApprovedSubject: l'étudiant a déjà un sujet approuvé.
            CapacityExceeded: le sujet est complet ; rien n'est modifié.
        """
        with transaction.atomic():
            try:
                enrollment = Enrollment.objects.select_for_update().get(pk=enrollment_id)
            except Enrollment.DoesNotExist:
                raise EnrollmentNotFound(enrollment_id=enrollment_id)
            if enrollment.status != Enrollment.Status.PENDING:
                raise InvalidTransition(enrollment_id=enrollment_id, status=enrollment.status)

            student = Student.objects.select_for_update().get(pk=enrollment.student_id)
            # candidature déposée pendant l'approbation d'un autre sujet
            if Enrollment.objects.filter(student=student, status=Enrollment.Status.APPROVED).exists():
                raise AlreadyHasApprovedSubject(student_id=student.pk, enrollment_id=enrollment_id)
            subject = Subject.objects.select_for_update().get(pk=enrollment.subject_id)
            # la capacité a pu être atteinte depuis le dépôt de la candidature
            if subject.enrolled >= subject.capacity:
                logger.warning("Approbation %s refusée: sujet %s complet", enrollment_id, subject.pk)
                raise CapacityExceeded(subject_id=subject.pk, enrollment_id=enrollment_id)

            others = Enrollment.objects.select_for_update().filter(
                student=student, status=Enrollment.Status.PENDING
            ).exclude(pk=enrollment.pk)
            rejected_ids = list(others.values_list("pk", flat=True))
            if rejected_ids:
                Enrollment.objects.filter(pk__in=rejected_ids).update(
                    status=Enrollment.Status.REJECTED,
                    teacher_notes=AUTO_REJECT_NOTE,
                    updated_at=timezone.now(),
                )

            enrollment.status = Enrollment.Status.APPROVED
            enrollment.approval_date = timezone.now()
            enrollment.teacher_notes = notes or ""
            enrollment.save(update_fields=["status", "approval_date", "teacher_notes", "updated_at"])

            # lève CapacityExceeded en cas de course : toute la transaction est annulée
            enrollment.subject = Subject.objects.increment_enrolled(subject.pk)

            student.pfe_subject = enrollment.subject
            student.save(update_fields=["pfe_subject", "updated_at"])

            if rejected_ids:
                transaction.on_commit(partial(notify_auto_rejected, student, enrollment, rejected_ids))

        logger.info(
            "Candidature %s approuvée (sujet %s: %s/%s), %d autre(s) annulée(s)",
            enrollment.pk,
            enrollment.subject.pk,
            enrollment.subject.enrolled,
            enrollment.subject.capacity,
            len(rejected_ids),
        )
        return enrollment

    def reject(self, enrollment_id, notes=None):
        enrollment = Enrollment.objects.reject(enrollment_id, notes)
        logger.info("Candidature %s rejetée", enrollment.pk)
        return enrollment


coordinator = EnrollmentCoordinator()
