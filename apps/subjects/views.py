from django.conf import settings
from django.core.cache import cache
from drf_spectacular.utils import OpenApiExample, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.permissions import IsStudent, IsSubjectOwner, IsTeacher

from .models import Subject
from .serializers import SubjectFilterSerializer, SubjectSerializer, SubjectWriteSerializer
from .signals import AVAILABLE_SUBJECTS_CACHE_KEY


def parse_filters(query_params):
    params = query_params.copy()
    if params.get("status") == "all":
        params.pop("status")
    serializer = SubjectFilterSerializer(data=params)
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def subject_page(filters):
    """Sujets filtrés, tronqués à `limit`, avec le total avant troncature."""
    limit = filters.pop("limit", None)
    subjects = Subject.objects.find_all(**filters)
    total = subjects.count()
    if limit:
        subjects = subjects[:limit]
    return {"subjects": SubjectSerializer(subjects, many=True).data, "total": total}


class SubjectListView(APIView):
    """Liste et création des sujets PFE.

    GET est ouvert à tout utilisateur connecté, POST aux enseignants.
    """

    def get_permissions(self):
        if self.request.method == "POST":
            return [IsTeacher()]
        return [IsAuthenticated()]

    @extend_schema(
        summary="Liste des sujets",
        description="Filtres: status, specialization, teacher, department, available_only, search, sort, limit.",
        parameters=[SubjectFilterSerializer],
        responses={200: SubjectSerializer(many=True)},
        tags=["Subject"],
    )
    def get(self, request):
        return Response(subject_page(parse_filters(request.query_params)), status=status.HTTP_200_OK)

    @extend_schema(
        summary="Créer un sujet",
        description="L'enseignant connecté devient responsable du sujet.",
        request=SubjectWriteSerializer,
        responses={201: SubjectSerializer, 400: OpenApiResponse(description="Données invalides")},
        tags=["Subject"],
    )
    def post(self, request):
        serializer = SubjectWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        subject = Subject.objects.create_subject(request.user.teacher, **serializer.validated_data)
        return Response(SubjectSerializer(subject).data, status=status.HTTP_201_CREATED)


class AvailableSubjectListView(APIView):
    """Catalogue des sujets encore ouverts aux candidatures (mis en cache)."""

    permission_classes = [IsStudent]

    @extend_schema(
        summary="Sujets disponibles",
        description="Sujets au statut 'available' ayant encore des places.",
        responses={200: SubjectSerializer(many=True)},
        tags=["Subject"],
    )
    def get(self, request):
        cached_data = cache.get(AVAILABLE_SUBJECTS_CACHE_KEY)
        if cached_data is not None:
            return Response(cached_data, status=status.HTTP_200_OK)

        subjects = Subject.objects.find_all(available_only=True, sort="deadline")
        response_data = SubjectSerializer(subjects, many=True).data
        cache.set(AVAILABLE_SUBJECTS_CACHE_KEY, response_data, timeout=settings.SUBJECT_CACHE_TIMEOUT)
        return Response(response_data, status=status.HTTP_200_OK)


class TeacherSubjectListView(APIView):
    """Sujets de l'enseignant connecté"""

    permission_classes = [IsTeacher]

    @extend_schema(
        summary="Mes sujets",
        parameters=[SubjectFilterSerializer],
        responses={200: SubjectSerializer(many=True)},
        tags=["Subject"],
    )
    def get(self, request):
        filters = parse_filters(request.query_params)
        filters["teacher"] = request.user.teacher
        return Response(subject_page(filters), status=status.HTTP_200_OK)


class SubjectDetailView(APIView):
    """Consultation, modification et suppression d'un sujet.

    Seul l'enseignant responsable peut modifier ou supprimer le sujet.
    """

    def get_permissions(self):
        if self.request.method in ("PATCH", "DELETE"):
            return [IsSubjectOwner()]
        return [IsAuthenticated()]

    @extend_schema(
        summary="Détail d'un sujet",
        responses={200: SubjectSerializer, 404: OpenApiExample("Erreur", value={"kind": "NotFound", "message": "Sujet non trouvé."})},
        tags=["Subject"],
    )
    def get(self, request, subject_id):
        subject = Subject.objects.find_by_id(subject_id)
        return Response(SubjectSerializer(subject).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Modifier un sujet",
        description="Champs modifiables: titre, description, département, spécialité, prérequis, mots-clés, capacité, statut, échéance.",
        request=SubjectWriteSerializer,
        responses={200: SubjectSerializer},
        tags=["Subject"],
    )
    def patch(self, request, subject_id):
        subject = Subject.objects.find_by_id(subject_id)
        self.check_object_permissions(request, subject)

        serializer = SubjectWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        subject = Subject.objects.update_subject(subject.pk, **serializer.validated_data)
        return Response(SubjectSerializer(subject).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Supprimer un sujet",
        responses={
            204: None,
            409: OpenApiExample(
                "Erreur",
                value={"kind": "HasActiveEnrollments", "message": "Impossible de supprimer un sujet avec des inscriptions."},
            ),
        },
        tags=["Subject"],
    )
    def delete(self, request, subject_id):
        subject = Subject.objects.find_by_id(subject_id)
        self.check_object_permissions(request, subject)

        Subject.objects.delete_subject(subject.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
