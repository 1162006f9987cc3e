import logging

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models, transaction
from django.db.models import F, Q

from apps.common.exceptions import CapacityExceeded, HasActiveEnrollments, SubjectNotFound
from apps.common.models import BaseModel
from apps.users.models import Teacher

logger = logging.getLogger(__name__)

SORT_ORDERINGS = {
    "newest": ("-created_at", "-id"),
    "oldest": ("created_at", "id"),
    "title": ("title",),
    "deadline": (F("deadline").asc(nulls_last=True), "id"),
}


class SubjectQuerySet(models.QuerySet):
    def available(self):
        return self.filter(status=Subject.Status.AVAILABLE, enrolled__lt=F("capacity"))

    def search(self, query):
        return self.filter(
            Q(title__icontains=query) | Q(description__icontains=query) | Q(keywords__icontains=query)
        )

    def sorted_by(self, sort):
        return self.order_by(*SORT_ORDERINGS.get(sort, SORT_ORDERINGS["newest"]))


class SubjectManager(models.Manager.from_queryset(SubjectQuerySet)):
    """Registre des sujets.

    Seul point d'écriture du compteur `enrolled` et du passage automatique
    available <-> full.
    """

    CREATABLE_FIELDS = (
        "title",
        "description",
        "department",
        "specialization",
        "requirements",
        "keywords",
        "capacity",
        "status",
        "deadline",
    )
    UPDATABLE_FIELDS = CREATABLE_FIELDS

    def find_by_id(self, subject_id):
        try:
            return self.select_related("teacher__user").get(pk=subject_id)
        except self.model.DoesNotExist:
            raise SubjectNotFound(subject_id=subject_id)

    def find_all(
        self,
        status=None,
        specialization=None,
        teacher=None,
        department=None,
        available_only=False,
        search=None,
        sort="newest",
        limit=None,
    ):
        """Liste les sujets selon des filtres optionnels.

        Args:
            status (str | None): statut exact.
            specialization (str | None): spécialité exacte.
            teacher (Teacher | int | None): enseignant responsable.
            department (str | None): département.
            available_only (bool): uniquement les sujets encore ouverts.
            search (str | None): texte cherché dans titre, description et mots-clés.
            sort (str): newest, oldest, title ou deadline.
            limit (int | None): nombre maximal de résultats.

        Returns:
            QuerySet: sujets correspondants.
        """
        subjects = self.select_related("teacher__user")
        if status:
            subjects = subjects.filter(status=status)
        if specialization:
            subjects = subjects.filter(specialization=specialization)
        if teacher:
            subjects = subjects.filter(teacher=teacher)
        if department:
            subjects = subjects.filter(department=department)
        if available_only:
            subjects = subjects.available()
        if search:
            subjects = subjects.search(search)
        subjects = subjects.sorted_by(sort)
        if limit:
            subjects = subjects[:limit]
        return subjects

    def create_subject(self, teacher, **fields):
        unknown = set(fields) - set(self.CREATABLE_FIELDS)
        if unknown:
            raise TypeError(f"Champs non modifiables: {', '.join(sorted(unknown))}")
        if fields.get("status") == Subject.Status.FULL:
            raise ValidationError({"status": "Le statut 'full' est calculé automatiquement."})
        subject = self.model(teacher=teacher, **fields)
        subject.full_clean()
        subject.save()
        logger.info("Sujet %s créé par l'enseignant %s", subject.pk, teacher.pk)
        return subject

    @transaction.atomic
    def update_subject(self, subject_id, **changes):
        """Applique une modification d'enseignant sur un sujet.

        Seuls les champs de `UPDATABLE_FIELDS` sont acceptés ; `enrolled` et
        `teacher` ne se modifient jamais par ce chemin. Le statut n'est
        recalculé depuis les compteurs que s'il reste available ou full.

        Args:
            subject_id (int): identifiant du sujet.
            **changes: nouvelles valeurs.

        Returns:
            Subject: le sujet mis à jour.

        Raises:
            TypeError: champ hors contrat.
            ValidationError: capacité invalide ou statut 'full' demandé.
            SubjectNotFound: sujet inexistant.
        """
        unknown = set(changes) - set(self.UPDATABLE_FIELDS)
        if unknown:
            raise TypeError(f"Champs non modifiables: {', '.join(sorted(unknown))}")

        try:
            subject = self.select_for_update().get(pk=subject_id)
        except self.model.DoesNotExist:
            raise SubjectNotFound(subject_id=subject_id)

        if changes.get("status") == Subject.Status.FULL:
            raise ValidationError({"status": "Le statut 'full' est calculé automatiquement."})
        capacity = changes.get("capacity", subject.capacity)
        if capacity is not None and capacity < subject.enrolled:
            raise ValidationError({"capacity": f"La capacité ne peut pas être inférieure aux {subject.enrolled} inscrits."})

        for field, value in changes.items():
            setattr(subject, field, value)
        # in_progress, completed et archived sont des choix de l'enseignant
        if subject.status in (Subject.Status.AVAILABLE, Subject.Status.FULL):
            subject.refresh_status()
        subject.full_clean()
        subject.save()
        return subject

    @transaction.atomic
    def delete_subject(self, subject_id):
        try:
            subject = self.select_for_update().get(pk=subject_id)
        except self.model.DoesNotExist:
            raise SubjectNotFound(subject_id=subject_id)
        if subject.enrollments.exists():
            raise HasActiveEnrollments(subject_id=subject_id)
        subject.delete()
        logger.info("Sujet %s supprimé", subject_id)

    @transaction.atomic
    def increment_enrolled(self, subject_id):
        """Ajoute un inscrit, uniquement s'il reste une place.

        La condition `enrolled < capacity` est évaluée par la base dans le
        même UPDATE, deux appels concurrents ne peuvent donc pas dépasser la
        capacité.

        Raises:
            CapacityExceeded: plus de place disponible.
            SubjectNotFound: sujet inexistant.
        """
        updated = self.filter(pk=subject_id, enrolled__lt=F("capacity")).update(enrolled=F("enrolled") + 1)
        if not updated:
            if not self.filter(pk=subject_id).exists():
                raise SubjectNotFound(subject_id=subject_id)
            raise CapacityExceeded(subject_id=subject_id)
        return self._resync(subject_id)

    @transaction.atomic
    def decrement_enrolled(self, subject_id):
        """Retire un inscrit, sans descendre sous zéro."""
        self.filter(pk=subject_id, enrolled__gt=0).update(enrolled=F("enrolled") - 1)
        return self._resync(subject_id)

    def _resync(self, subject_id):
        try:
            subject = self.select_for_update().get(pk=subject_id)
        except self.model.DoesNotExist:
            raise SubjectNotFound(subject_id=subject_id)
        previous = subject.status
        subject.refresh_status()
        subject.save(update_fields=["status", "updated_at"])
        if subject.status != previous:
            logger.info("Sujet %s: %s -> %s (%s/%s)", subject.pk, previous, subject.status, subject.enrolled, subject.capacity)
        return subject


class Subject(BaseModel):
    """Sujet PFE proposé par un enseignant."""

    class Status(models.TextChoices):
        AVAILABLE = "available", "Disponible"
        FULL = "full", "Complet"
        ARCHIVED = "archived", "Archivé"
        IN_PROGRESS = "in_progress", "En cours"
        COMPLETED = "completed", "Terminé"

    title = models.CharField(max_length=255)
    description = models.TextField()
    teacher = models.ForeignKey(Teacher, on_delete=models.PROTECT, related_name="subjects")
    department = models.CharField(max_length=100, default="Mathématiques")
    specialization = models.CharField(max_length=100, blank=True)
    requirements = models.TextField(blank=True)
    keywords = models.CharField(max_length=255, blank=True)
    capacity = models.PositiveSmallIntegerField(default=2, validators=[MinValueValidator(1)])
    enrolled = models.PositiveSmallIntegerField(default=0)  # nombre de candidatures approuvées
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AVAILABLE)
    deadline = models.DateField(null=True, blank=True)

    objects = SubjectManager()

    class Meta:
        db_table = "subject"
        constraints = [
            models.CheckConstraint(
                condition=Q(enrolled__lte=F("capacity")),
                name="subject_enrolled_lte_capacity",
            ),
        ]

    def __str__(self):
        return self.title

    @property
    def is_full(self):
        return self.enrolled >= self.capacity

    @property
    def remaining_places(self):
        return max(self.capacity - self.enrolled, 0)

    def refresh_status(self):
        """Aligne le statut sur les compteurs ; un sujet archivé n'est jamais modifié."""
        if self.status == self.Status.ARCHIVED:
            return
        if self.is_full:
            self.status = self.Status.FULL
        elif self.status == self.Status.FULL:
            self.status = self.Status.AVAILABLE
