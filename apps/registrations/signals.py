import logging

from django.db.models.signals import post_delete
from django.dispatch import Signal, receiver

from apps.common.exceptions import SubjectNotFound
from apps.registrations.models import Enrollment
from apps.subjects.models import Subject
from apps.users.models import Student

logger = logging.getLogger(__name__)

# envoyé après commit d'une approbation ayant rejeté d'autres candidatures
# arguments: student, approved (Enrollment), rejected_ids (list[int])
applications_auto_rejected = Signal()


def notify_auto_rejected(student, approved, rejected_ids):
    """Prévient les abonnés sans jamais faire échouer l'approbation."""
    responses = applications_auto_rejected.send_robust(
        sender=Enrollment, student=student, approved=approved, rejected_ids=rejected_ids
    )
    for receiver_func, response in responses:
        if isinstance(response, Exception):
            logger.error(
                "Notification d'annulation échouée (%s) pour l'étudiant %s: %r",
                getattr(receiver_func, "__name__", receiver_func),
                student.pk,
                response,
            )


@receiver(post_delete, sender=Enrollment)
def release_place_on_delete(sender, instance, **kwargs):
    """Libère la place d'une candidature approuvée supprimée par l'administration."""
    if instance.status != Enrollment.Status.APPROVED:
        return
    try:
        Subject.objects.decrement_enrolled(instance.subject_id)
    except SubjectNotFound:
        return
    Student.objects.filter(pk=instance.student_id, pfe_subject_id=instance.subject_id).update(pfe_subject=None)
    logger.info("Candidature approuvée %s supprimée, place libérée sur le sujet %s", instance.pk, instance.subject_id)
