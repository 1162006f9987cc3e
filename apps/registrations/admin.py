from django.contrib import admin

from apps.common.admin import BaseModelAdmin

from .models import Enrollment


@admin.register(Enrollment)
class EnrollmentAdmin(BaseModelAdmin):
    """Consultation des candidatures.

    Les décisions passent par l'API (EnrollmentCoordinator) ; l'admin ne
    peut que consulter ou supprimer une candidature.
    """

    list_display = ("subject_title", "student", "status", "application_date", "approval_date")
    search_fields = ("subject__title", "student__user__email", "student__user__name", "student__matricule")
    list_filter = ("status",)
    readonly_fields = BaseModelAdmin.readonly_fields + (
        "student",
        "subject",
        "status",
        "application_date",
        "approval_date",
    )

    def subject_title(self, obj):
        """Titre du sujet visé.

        Args:
            obj (Enrollment): candidature.

        Returns:
            str: titre du sujet.
        """
        return obj.subject.title

    subject_title.short_description = "Sujet"

    def has_add_permission(self, request):
        return False
