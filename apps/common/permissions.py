from rest_framework.permissions import BasePermission


class IsStudent(BasePermission):
    """Accès réservé aux étudiants.

    Attributes:
        message (str): message renvoyé en cas de refus.
    """

    message = "Accès réservé aux étudiants."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and hasattr(request.user, "student"))


class IsTeacher(BasePermission):
    """Accès réservé aux enseignants."""

    message = "Accès réservé aux enseignants."

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and hasattr(request.user, "teacher"))


class IsSubjectOwner(IsTeacher):
    """Enseignant propriétaire du sujet visé.

    La vue appelle `check_object_permissions` avec le `Subject` concerné,
    directement ou via la candidature ou le livrable qui le référence.
    """

    message = "Vous n'êtes pas autorisé à gérer ce sujet."

    def has_object_permission(self, request, view, obj):
        subject = getattr(obj, "subject", obj)
        return subject.teacher_id == request.user.teacher.pk


class IsDeliverableOwner(IsStudent):
    """Étudiant ayant déposé le livrable."""

    message = "Vous n'êtes pas autorisé à gérer ce livrable."

    def has_object_permission(self, request, view, obj):
        return obj.enrollment.student_id == request.user.student.pk
