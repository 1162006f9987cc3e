from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.permissions import IsDeliverableOwner, IsStudent, IsSubjectOwner
from apps.subjects.models import Subject

from .models import DELIVERABLE_LIMITS, Deliverable
from .serializers import DeliverableFilterSerializer, DeliverableSerializer, DeliverableUploadSerializer


class DeliverableTypeListView(APIView):
    """Types de livrables et limites de dépôt"""

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Types de livrables",
        responses={200: OpenApiExample("Succès", value={"types": [{"value": "report", "label": "Rapport", "limit": 5}]})},
        tags=["Deliverable"],
    )
    def get(self, request):
        types = [
            {"value": value, "label": label, "limit": DELIVERABLE_LIMITS.get(value)}
            for value, label in Deliverable.Type.choices
        ]
        return Response({"types": types}, status=status.HTTP_200_OK)


class DeliverableUploadView(APIView):
    """Dépôt d'un livrable sur le PFE approuvé de l'étudiant connecté."""

    permission_classes = [IsStudent]
    parser_classes = [MultiPartParser, FormParser]

    @extend_schema(
        summary="Déposer un livrable",
        description="Réservé aux étudiants ayant un PFE approuvé. Certains types sont limités en nombre de dépôts.",
        request={"multipart/form-data": DeliverableUploadSerializer},
        responses={
            201: DeliverableSerializer,
            409: OpenApiExample(
                "Erreur",
                value={
                    "kind": "NoApprovedSubject",
                    "message": "Vous devez avoir un PFE approuvé pour déposer des livrables.",
                },
            ),
        },
        tags=["Deliverable"],
    )
    def post(self, request):
        """Enregistre le fichier envoyé comme nouvelle version du livrable.

        Args:
            request (Request): formulaire multipart avec `type`, `title`, `description` et `file`.

        Returns:
            Response: le livrable créé.
        """
        serializer = DeliverableUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        deliverable = Deliverable.objects.submit(
            request.user.student, data["type"], data["title"], data["file"], data["description"]
        )
        return Response(DeliverableSerializer(deliverable).data, status=status.HTTP_201_CREATED)


class MyDeliverableListView(APIView):
    """Livrables de l'étudiant connecté, avec leur répartition par statut."""

    permission_classes = [IsStudent]

    @extend_schema(
        summary="Mes livrables",
        parameters=[DeliverableFilterSerializer],
        responses={200: DeliverableSerializer(many=True)},
        tags=["Deliverable"],
    )
    def get(self, request):
        filters = DeliverableFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)

        student = request.user.student
        deliverables = Deliverable.objects.find_by_student(
            student, filters.validated_data.get("type"), filters.validated_data.get("status")
        )
        serializer = DeliverableSerializer(deliverables, many=True)
        return Response(
            {
                "deliverables": serializer.data,
                "total": len(serializer.data),
                "counts": Deliverable.objects.count_by_status(student),
            },
            status=status.HTTP_200_OK,
        )


class SubjectDeliverableListView(APIView):
    """Livrables déposés sur un sujet, réservé à son enseignant."""

    permission_classes = [IsSubjectOwner]

    @extend_schema(
        summary="Livrables d'un sujet",
        responses={200: DeliverableSerializer(many=True)},
        tags=["Deliverable"],
    )
    def get(self, request, subject_id):
        subject = Subject.objects.find_by_id(subject_id)
        self.check_object_permissions(request, subject)

        serializer = DeliverableSerializer(Deliverable.objects.find_by_subject(subject), many=True)
        return Response({"deliverables": serializer.data, "total": len(serializer.data)}, status=status.HTTP_200_OK)


class DeliverableDetailView(APIView):
    """Suppression d'un livrable par son auteur, tant qu'il n'a pas été consulté."""

    permission_classes = [IsDeliverableOwner]

    @extend_schema(
        summary="Supprimer un livrable",
        responses={
            204: None,
            409: OpenApiExample(
                "Erreur",
                value={"kind": "DeliverableLocked", "message": "Seuls les livrables au statut 'soumis' peuvent être modifiés."},
            ),
        },
        tags=["Deliverable"],
    )
    def delete(self, request, deliverable_id):
        deliverable = Deliverable.objects.find_by_id(deliverable_id)
        self.check_object_permissions(request, deliverable)

        Deliverable.objects.delete_deliverable(deliverable.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DeliverableReviewView(APIView):
    """Marque un livrable comme consulté par l'enseignant du sujet."""

    permission_classes = [IsSubjectOwner]

    @extend_schema(
        summary="Marquer un livrable comme consulté",
        request=None,
        responses={200: DeliverableSerializer},
        tags=["Deliverable"],
    )
    def put(self, request, deliverable_id):
        deliverable = Deliverable.objects.find_by_id(deliverable_id)
        self.check_object_permissions(request, deliverable)

        deliverable = Deliverable.objects.review(deliverable.pk)
        return Response(DeliverableSerializer(deliverable).data, status=status.HTTP_200_OK)
