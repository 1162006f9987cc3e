from django.contrib import admin


class BaseModelAdmin(admin.ModelAdmin):
    """Admin de base réservé au personnel.

    Les compteurs dérivés (inscrits, statut complet) ne sont jamais éditables
    à la main : ils sont listés dans `readonly_fields` par les sous-classes.
    """

    readonly_fields = ("created_at", "updated_at")

    def has_add_permission(self, request):
        return request.user.is_staff

    def has_change_permission(self, request, obj=None):
        return request.user.is_staff

    def has_delete_permission(self, request, obj=None):
        return request.user.is_staff

    def has_module_permission(self, request):
        return request.user.is_staff
