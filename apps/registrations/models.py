from django.db import IntegrityError, models, transaction
from django.db.models import Count, Q

from apps.common.exceptions import (
    AlreadyHasApprovedSubject,
    DuplicateApplication,
    EnrollmentNotFound,
    InvalidTransition,
)
from apps.common.models import BaseModel
from apps.subjects.models import Subject
from apps.users.models import Student

# note posée sur les candidatures annulées par l'approbation d'un autre sujet
AUTO_REJECT_NOTE = "Autre sujet approuvé"


class EnrollmentManager(models.Manager):
    """Registre des candidatures.

    Garantit l'unicité (étudiant, sujet) et refuse toute nouvelle candidature
    d'un étudiant déjà affecté.
    """

    def create_application(self, student, subject, motivation=None):
        """Enregistre la candidature d'un étudiant à un sujet.

        Aucune vérification de capacité ici : un sujet complet accepte encore
        des candidatures en attente.

        Args:
            student (Student): candidat.
            subject (Subject): sujet visé.
            motivation (str | None): lettre de motivation.

        Returns:
            Enrollment: candidature au statut pending.

        Raises:
            DuplicateApplication: une candidature existe déjà pour ce couple.
            AlreadyHasApprovedSubject: l'étudiant a déjà un sujet approuvé.
        """
        try:
            with transaction.atomic():
                # même verrou que l'approbation : pas de candidature pendant une affectation
                Student.objects.select_for_update().get(pk=student.pk)
                if self.filter(student=student, subject=subject).exists():
                    raise DuplicateApplication(student_id=student.pk, subject_id=subject.pk)
                if self.filter(student=student, status=Enrollment.Status.APPROVED).exists():
                    raise AlreadyHasApprovedSubject(student_id=student.pk)
                return self.create(student=student, subject=subject, student_motivation=motivation or "")
        except IntegrityError:
            # candidature concurrente sur le même couple
            raise DuplicateApplication(student_id=student.pk, subject_id=subject.pk)

    def find_by_id(self, enrollment_id):
        try:
            return self.select_related("student__user", "subject__teacher__user").get(pk=enrollment_id)
        except self.model.DoesNotExist:
            raise EnrollmentNotFound(enrollment_id=enrollment_id)

    def find_by_student(self, student):
        return (
            self.filter(student=student)
            .select_related("subject__teacher__user")
            .order_by("-application_date", "-id")
        )

    def find_by_subject(self, subject, status=None):
        enrollments = self.filter(subject=subject).select_related("student__user")
        if status:
            enrollments = enrollments.filter(status=status)
        return enrollments.order_by("-application_date", "-id")

    def find_for_teacher(self, teacher, status=None):
        enrollments = self.filter(subject__teacher=teacher).select_related("student__user", "subject")
        if status:
            enrollments = enrollments.filter(status=status)
        return enrollments.order_by("-application_date", "-id")

    @transaction.atomic
    def reject(self, enrollment_id, notes=None):
        try:
            enrollment = self.select_for_update().get(pk=enrollment_id)
        except self.model.DoesNotExist:
            raise EnrollmentNotFound(enrollment_id=enrollment_id)
        if enrollment.status != Enrollment.Status.PENDING:
            raise InvalidTransition(enrollment_id=enrollment_id, status=enrollment.status)

        enrollment.status = Enrollment.Status.REJECTED
        enrollment.teacher_notes = notes or ""
        enrollment.save(update_fields=["status", "teacher_notes", "updated_at"])
        return enrollment

    def count_by_status(self, subject=None):
        enrollments = self.all() if subject is None else self.filter(subject=subject)
        rows = enrollments.values("status").annotate(count=Count("id")).order_by()
        return {row["status"]: row["count"] for row in rows}


class Enrollment(BaseModel):
    """Candidature d'un étudiant à un sujet PFE.

    Le statut de la candidature est indépendant de celui du sujet ; les
    passages completed/abandoned relèvent de l'évaluation.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "En attente"
        APPROVED = "approved", "Approuvée"
        REJECTED = "rejected", "Rejetée"
        COMPLETED = "completed", "Terminée"
        ABANDONED = "abandoned", "Abandonnée"

    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="enrollments")
    subject = models.ForeignKey(Subject, on_delete=models.PROTECT, related_name="enrollments")
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    application_date = models.DateTimeField(auto_now_add=True)
    approval_date = models.DateTimeField(null=True, blank=True)
    teacher_notes = models.TextField(blank=True)
    student_motivation = models.TextField(blank=True)

    objects = EnrollmentManager()

    class Meta:
        db_table = "enrollment"
        constraints = [
            models.UniqueConstraint(fields=["student", "subject"], name="unique_enrollment_per_subject"),
            models.UniqueConstraint(
                fields=["student"],
                condition=Q(status="approved"),
                name="unique_approved_enrollment_per_student",
            ),
        ]

    def __str__(self):
        return f"{self.student} -> {self.subject} ({self.status})"
