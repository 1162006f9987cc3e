from django.contrib import admin, messages
from django.contrib.auth.hashers import make_password
from django.core.exceptions import ValidationError
from django_softdelete.admin import GlobalObjectsModelAdmin

from apps.common.admin import BaseModelAdmin

from .models import Student, Teacher, User


@admin.register(User)
class UserAdmin(BaseModelAdmin, GlobalObjectsModelAdmin):
    list_display = ("email", "name", "role", "department", "is_staff", "is_active", "deleted_at")
    search_fields = ("email", "name")
    list_filter = ("department", "is_active", "is_staff", "deleted_at")

    def save_model(self, request, obj, form, change):
        """Empêche de retirer le dernier superuser et hache le mot de passe saisi."""
        if change and "is_superuser" in form.changed_data:
            if not obj.is_superuser and User.objects.filter(is_superuser=True).count() == 1:
                raise ValidationError("Au moins un superuser doit exister.")

        if "password" in form.changed_data:
            obj.password = make_password(obj.password)

        super().save_model(request, obj, form, change)

    def has_delete_permission(self, request, obj=None):
        return request.user.is_superuser

    def delete_model(self, request, obj):
        obj.hard_delete()
        messages.success(request, "Utilisateur supprimé définitivement.")


@admin.register(Student)
class StudentAdmin(BaseModelAdmin):
    list_display = ("get_user_email", "get_user_name", "matricule", "year", "pfe_subject")
    search_fields = ("user__email", "user__name", "matricule")
    list_filter = ("year",)
    readonly_fields = BaseModelAdmin.readonly_fields + ("pfe_subject",)

    def get_user_email(self, obj):
        return obj.user.email

    def get_user_name(self, obj):
        return obj.user.name

    get_user_email.short_description = "Email"
    get_user_name.short_description = "Nom"


@admin.register(Teacher)
class TeacherAdmin(BaseModelAdmin):
    list_display = ("get_user_email", "get_user_name", "specialization")
    search_fields = ("user__email", "user__name", "specialization")

    def get_user_email(self, obj):
        return obj.user.email

    def get_user_name(self, obj):
        return obj.user.name

    get_user_email.short_description = "Email"
    get_user_name.short_description = "Nom"
