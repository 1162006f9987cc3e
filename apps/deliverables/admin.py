from django.contrib import admin

from apps.common.admin import BaseModelAdmin

from .models import Deliverable


@admin.register(Deliverable)
class DeliverableAdmin(BaseModelAdmin):
    list_display = ("title", "type", "version", "status", "enrollment", "created_at")
    search_fields = ("title", "enrollment__subject__title", "enrollment__student__user__name")
    list_filter = ("type", "status")
    readonly_fields = BaseModelAdmin.readonly_fields + ("enrollment", "file_name", "file_size", "version", "reviewed_at")

    def has_add_permission(self, request):
        return False
