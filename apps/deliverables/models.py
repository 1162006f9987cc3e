import logging
import os

from django.db import models, transaction
from django.db.models import Count
from django.utils import timezone

from apps.common.exceptions import (
    DeliverableLimitReached,
    DeliverableLocked,
    DeliverableNotFound,
    NoApprovedSubject,
)
from apps.common.models import BaseModel
from apps.common.utils import generate_unique_filename
from apps.registrations.models import Enrollment

logger = logging.getLogger(__name__)

# nombre maximal de dépôts par type et par PFE ; les autres types sont illimités
DELIVERABLE_LIMITS = {
    "proposal": 2,
    "report": 5,
    "code": 10,
    "presentation": 3,
}


def deliverable_file_path(instance, filename):
    """Range les fichiers par sujet puis par étudiant."""
    enrollment = instance.enrollment
    return (
        f"subjects/{enrollment.subject_id}/deliverables/{enrollment.student_id}/"
        f"{generate_unique_filename(filename)}"
    )


class DeliverableManager(models.Manager):
    """Dépôts de livrables d'un PFE approuvé.

    Le stockage du fichier est confié au backend de stockage Django ; ce
    registre ne gère que l'enregistrement et ses règles de dépôt.
    """

    @transaction.atomic
    def submit(self, student, deliverable_type, title, file, description=None):
        """Dépose un livrable sur le PFE approuvé de l'étudiant.

        Args:
            student (Student): déposant.
            deliverable_type (str): une valeur de `Deliverable.Type`.
            title (str): intitulé du livrable.
            file (File): fichier envoyé.
            description (str | None): description libre.

        Returns:
            Deliverable: le livrable créé, au statut submitted.

        Raises:
            NoApprovedSubject: l'étudiant n'a pas de PFE approuvé.
            DeliverableLimitReached: limite de dépôts atteinte pour ce type.
        """
        # le verrou sur la candidature sérialise les dépôts concurrents d'un même PFE
        enrollment = (
            Enrollment.objects.select_for_update()
            .filter(student=student, status=Enrollment.Status.APPROVED)
            .first()
        )
        if enrollment is None:
            raise NoApprovedSubject(student_id=student.pk)

        previous = self.filter(enrollment=enrollment, type=deliverable_type).count()
        limit = DELIVERABLE_LIMITS.get(deliverable_type)
        if limit is not None and previous >= limit:
            raise DeliverableLimitReached(enrollment_id=enrollment.pk, type=deliverable_type, limit=limit)

        deliverable = self.create(
            enrollment=enrollment,
            type=deliverable_type,
            title=title,
            description=description or "",
            file=file,
            file_name=os.path.basename(file.name),
            file_size=file.size,
            version=previous + 1,
        )
        logger.info(
            "Livrable %s (%s v%s) déposé sur la candidature %s",
            deliverable.pk,
            deliverable_type,
            deliverable.version,
            enrollment.pk,
        )
        return deliverable

    def find_by_id(self, deliverable_id):
        try:
            return self.select_related("enrollment__student__user", "enrollment__subject").get(pk=deliverable_id)
        except self.model.DoesNotExist:
            raise DeliverableNotFound(deliverable_id=deliverable_id)

    def find_by_student(self, student, deliverable_type=None, status=None):
        deliverables = self.filter(enrollment__student=student).select_related("enrollment__subject")
        if deliverable_type:
            deliverables = deliverables.filter(type=deliverable_type)
        if status:
            deliverables = deliverables.filter(status=status)
        return deliverables.order_by("-created_at", "-id")

    def find_by_subject(self, subject):
        return (
            self.filter(enrollment__subject=subject)
            .select_related("enrollment__student__user")
            .order_by("-created_at", "-id")
        )

    @transaction.atomic
    def review(self, deliverable_id):
        deliverable = self._lock_submitted(deliverable_id)
        deliverable.status = Deliverable.Status.REVIEWED
        deliverable.reviewed_at = timezone.now()
        deliverable.save(update_fields=["status", "reviewed_at", "updated_at"])
        return deliverable

    @transaction.atomic
    def delete_deliverable(self, deliverable_id):
        """Supprime un livrable encore au statut submitted (le fichier suit, voir signals)."""
        deliverable = self._lock_submitted(deliverable_id)
        deliverable.delete()
        logger.info("Livrable %s supprimé", deliverable_id)

    def count_by_status(self, student=None):
        deliverables = self.all() if student is None else self.filter(enrollment__student=student)
        rows = deliverables.values("status").annotate(count=Count("id")).order_by()
        return {row["status"]: row["count"] for row in rows}

    def _lock_submitted(self, deliverable_id):
        try:
            deliverable = self.select_for_update().get(pk=deliverable_id)
        except self.model.DoesNotExist:
            raise DeliverableNotFound(deliverable_id=deliverable_id)
        if deliverable.status != Deliverable.Status.SUBMITTED:
            raise DeliverableLocked(deliverable_id=deliverable_id, status=deliverable.status)
        return deliverable


class Deliverable(BaseModel):
    """Livrable déposé par un étudiant sur son PFE approuvé."""

    class Type(models.TextChoices):
        PROPOSAL = "proposal", "Proposition"
        REPORT = "report", "Rapport"
        CODE = "code", "Code source"
        PRESENTATION = "presentation", "Présentation"
        DATA = "data", "Données"
        OTHER = "other", "Autre"

    class Status(models.TextChoices):
        SUBMITTED = "submitted", "Soumis"
        REVIEWED = "reviewed", "Consulté"

    enrollment = models.ForeignKey(Enrollment, on_delete=models.CASCADE, related_name="deliverables")
    type = models.CharField(max_length=20, choices=Type.choices)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    file = models.FileField(upload_to=deliverable_file_path, max_length=255)
    file_name = models.CharField(max_length=255)  # nom d'origine, le fichier stocké porte un UUID
    file_size = models.PositiveIntegerField(default=0)
    version = models.PositiveSmallIntegerField(default=1)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.SUBMITTED)
    reviewed_at = models.DateTimeField(null=True, blank=True)

    objects = DeliverableManager()

    class Meta:
        db_table = "deliverable"

    def __str__(self):
        return f"{self.title} ({self.type} v{self.version})"

    @property
    def subject(self):
        return self.enrollment.subject
