from django.contrib import admin

from apps.common.admin import BaseModelAdmin

from .models import Subject


@admin.register(Subject)
class SubjectAdmin(BaseModelAdmin):
    list_display = ("title", "teacher", "capacity", "enrolled", "status", "deadline")
    search_fields = ("title", "keywords", "teacher__user__name")
    list_filter = ("status", "department", "specialization")
    # le compteur et le statut 'full' ne passent que par SubjectManager
    readonly_fields = BaseModelAdmin.readonly_fields + ("enrolled",)

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.enrollments.exists():
            return False
        return super().has_delete_permission(request, obj)
