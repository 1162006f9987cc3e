from drf_spectacular.utils import OpenApiExample, OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.common.permissions import IsStudent, IsSubjectOwner, IsTeacher
from apps.subjects.models import Subject

from .models import Enrollment
from .serializers import (
    EnrollmentApplySerializer,
    EnrollmentDecisionSerializer,
    EnrollmentSerializer,
    StudentEnrollmentSerializer,
)
from .services import coordinator

STATUS_PARAMETER = OpenApiParameter(
    "status", str, enum=Enrollment.Status.values, required=False, description="Filtrer par statut"
)


def status_filter(request):
    value = request.query_params.get("status")
    if value in (None, "", "all"):
        return None
    if value not in Enrollment.Status.values:
        raise ValidationError({"status": f"Statut inconnu: {value}"})
    return value


class EnrollmentApplyView(APIView):
    """Candidature d'un étudiant à un sujet PFE."""

    permission_classes = [IsStudent]

    @extend_schema(
        summary="Postuler à un sujet",
        description="Crée une candidature en attente. Un sujet complet accepte encore des candidatures (liste d'attente).",
        request=EnrollmentApplySerializer,
        responses={
            201: OpenApiExample("Succès", value={"enrollment_id": 1, "status": "pending"}),
            409: OpenApiExample(
                "Erreur", value={"kind": "DuplicateApplication", "message": "Vous avez déjà postulé à ce sujet."}
            ),
        },
        tags=["Enrollment"],
    )
    def post(self, request):
        """Dépose la candidature de l'étudiant connecté.

        Args:
            request (Request): requête contenant `subject_id` et `motivation`.

        Returns:
            Response: identifiant et statut de la candidature créée.
        """
        serializer = EnrollmentApplySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        enrollment = coordinator.apply(
            request.user.student.pk,
            serializer.validated_data["subject_id"],
            serializer.validated_data["motivation"],
        )
        return Response({"enrollment_id": enrollment.pk, "status": enrollment.status}, status=status.HTTP_201_CREATED)


class MyEnrollmentListView(APIView):
    """Candidatures de l'étudiant connecté"""

    permission_classes = [IsStudent]

    @extend_schema(
        summary="Mes candidatures",
        responses={200: StudentEnrollmentSerializer(many=True)},
        tags=["Enrollment"],
    )
    def get(self, request):
        enrollments = Enrollment.objects.find_by_student(request.user.student)
        serializer = StudentEnrollmentSerializer(enrollments, many=True)
        return Response({"enrollments": serializer.data}, status=status.HTTP_200_OK)


class TeacherApplicationListView(APIView):
    """Candidatures reçues sur les sujets de l'enseignant connecté."""

    permission_classes = [IsTeacher]

    @extend_schema(
        summary="Candidatures reçues",
        parameters=[STATUS_PARAMETER],
        responses={200: EnrollmentSerializer(many=True)},
        tags=["Enrollment"],
    )
    def get(self, request):
        enrollments = Enrollment.objects.find_for_teacher(request.user.teacher, status_filter(request))
        serializer = EnrollmentSerializer(enrollments, many=True)
        return Response({"applications": serializer.data, "total": len(serializer.data)}, status=status.HTTP_200_OK)


class SupervisedStudentListView(APIView):
    """Étudiants encadrés : candidatures approuvées sur les sujets de l'enseignant."""

    permission_classes = [IsTeacher]

    @extend_schema(
        summary="Étudiants encadrés",
        responses={200: EnrollmentSerializer(many=True)},
        tags=["Enrollment"],
    )
    def get(self, request):
        enrollments = Enrollment.objects.find_for_teacher(request.user.teacher, Enrollment.Status.APPROVED)
        serializer = EnrollmentSerializer(enrollments, many=True)
        return Response({"students": serializer.data, "total": len(serializer.data)}, status=status.HTTP_200_OK)


class SubjectEnrollmentListView(APIView):
    """Candidatures d'un sujet, réservé à son enseignant."""

    permission_classes = [IsSubjectOwner]

    @extend_schema(
        summary="Candidatures d'un sujet",
        parameters=[STATUS_PARAMETER],
        responses={200: EnrollmentSerializer(many=True)},
        tags=["Enrollment"],
    )
    def get(self, request, subject_id):
        subject = Subject.objects.find_by_id(subject_id)
        self.check_object_permissions(request, subject)

        enrollments = Enrollment.objects.find_by_subject(subject, status_filter(request))
        serializer = EnrollmentSerializer(enrollments, many=True)
        return Response(
            {
                "applications": serializer.data,
                "counts": Enrollment.objects.count_by_status(subject),
                "enrolled": subject.enrolled,
                "capacity": subject.capacity,
            },
            status=status.HTTP_200_OK,
        )


class EnrollmentApproveView(APIView):
    """Approbation d'une candidature par l'enseignant du sujet."""

    permission_classes = [IsSubjectOwner]

    @extend_schema(
        summary="Approuver une candidature",
        description="Les autres candidatures en attente de l'étudiant sont rejetées automatiquement.",
        request=EnrollmentDecisionSerializer,
        responses={
            200: OpenApiExample(
                "Succès", value={"enrollment_id": 1, "status": "approved", "subject_enrolled_count": 1}
            ),
            409: OpenApiExample(
                "Erreur", value={"kind": "CapacityExceeded", "message": "La capacité maximale du sujet est atteinte."}
            ),
        },
        tags=["Enrollment"],
    )
    def put(self, request, enrollment_id):
        enrollment = Enrollment.objects.find_by_id(enrollment_id)
        self.check_object_permissions(request, enrollment)

        serializer = EnrollmentDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        enrollment = coordinator.approve(enrollment.pk, serializer.validated_data["notes"])
        return Response(
            {
                "enrollment_id": enrollment.pk,
                "status": enrollment.status,
                "subject_enrolled_count": enrollment.subject.enrolled,
            },
            status=status.HTTP_200_OK,
        )


class EnrollmentRejectView(APIView):
    """Rejet d'une candidature par l'enseignant du sujet."""

    permission_classes = [IsSubjectOwner]

    @extend_schema(
        summary="Rejeter une candidature",
        request=EnrollmentDecisionSerializer,
        responses={200: OpenApiExample("Succès", value={"enrollment_id": 1, "status": "rejected"})},
        tags=["Enrollment"],
    )
    def put(self, request, enrollment_id):
        enrollment = Enrollment.objects.find_by_id(enrollment_id)
        self.check_object_permissions(request, enrollment)

        serializer = EnrollmentDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        enrollment = coordinator.reject(enrollment.pk, serializer.validated_data["notes"])
        return Response({"enrollment_id": enrollment.pk, "status": enrollment.status}, status=status.HTTP_200_OK)
