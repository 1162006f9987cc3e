import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Erreur métier du cœur inscriptions/sujets.

    Les erreurs ne portent pas de texte destiné à l'utilisateur : seul le
    `kind` est significatif, la traduction est faite par
    `custom_exception_handler`.
    """

    kind = "DomainError"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, **context):
        self.context = context
        super().__init__(f"{self.kind} {context}" if context else self.kind)


class NotFound(DomainError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class SubjectNotFound(NotFound):
    pass


class EnrollmentNotFound(NotFound):
    pass


class StudentNotFound(NotFound):
    pass


class DeliverableNotFound(NotFound):
    pass


class DuplicateApplication(DomainError):
    kind = "DuplicateApplication"
    status_code = status.HTTP_409_CONFLICT


class AlreadyHasApprovedSubject(DomainError):
    kind = "AlreadyHasApprovedSubject"
    status_code = status.HTTP_409_CONFLICT


class CapacityExceeded(DomainError):
    kind = "CapacityExceeded"
    status_code = status.HTTP_409_CONFLICT


class HasActiveEnrollments(DomainError):
    kind = "HasActiveEnrollments"
    status_code = status.HTTP_409_CONFLICT


class InvalidTransition(DomainError):
    kind = "InvalidTransition"
    status_code = status.HTTP_409_CONFLICT


class NoApprovedSubject(DomainError):
    kind = "NoApprovedSubject"
    status_code = status.HTTP_409_CONFLICT


class DeliverableLimitReached(DomainError):
    kind = "DeliverableLimitReached"
    status_code = status.HTTP_409_CONFLICT


class DeliverableLocked(DomainError):
    kind = "DeliverableLocked"
    status_code = status.HTTP_409_CONFLICT


MESSAGES = {
    SubjectNotFound: "Sujet non trouvé.",
    EnrollmentNotFound: "Candidature non trouvée.",
    StudentNotFound: "Étudiant non trouvé.",
    DuplicateApplication: "Vous avez déjà postulé à ce sujet.",
    AlreadyHasApprovedSubject: "Cet étudiant a déjà un sujet PFE approuvé.",
    CapacityExceeded: "La capacité maximale du sujet est atteinte.",
    HasActiveEnrollments: "Impossible de supprimer un sujet avec des inscriptions.",
    InvalidTransition: "Cette candidature a déjà été traitée.",
    DeliverableNotFound: "Livrable non trouvé.",
    NoApprovedSubject: "Vous devez avoir un PFE approuvé pour déposer des livrables.",
    DeliverableLimitReached: "Nombre maximal de livrables atteint pour ce type.",
    DeliverableLocked: "Seuls les livrables au statut 'soumis' peuvent être modifiés.",
}


def error_message(exc):
    for klass in type(exc).__mro__:
        if klass in MESSAGES:
            return MESSAGES[klass]
    return "Requête invalide."


def custom_exception_handler(exc, context):
    """Traduit les erreurs métier en réponses HTTP.

    Args:
        exc (Exception): exception levée par la vue.
        context (dict): contexte DRF (vue, requête).

    Returns:
        Response | None: réponse `{kind, message}` pour une `DomainError`,
        réponse 400 pour une `ValidationError` Django, sinon la réponse du
        gestionnaire par défaut de DRF (None pour les erreurs inattendues).
    """
    if isinstance(exc, DomainError):
        view = context.get("view")
        logger.info("%s refusé (%s): %s", type(view).__name__ if view else "?", exc.kind, exc.context)
        return Response({"kind": exc.kind, "message": error_message(exc)}, status=exc.status_code)

    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, "error_dict") else {"non_field_errors": exc.messages}
        return Response({"kind": "ValidationError", "message": detail}, status=status.HTTP_400_BAD_REQUEST)

    return exception_handler(exc, context)
