from rest_framework import serializers

from .models import Enrollment


class EnrollmentApplySerializer(serializers.Serializer):
    subject_id = serializers.IntegerField(min_value=1)
    motivation = serializers.CharField(required=False, allow_blank=True, default="")


class EnrollmentDecisionSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default="")


class EnrollmentSerializer(serializers.ModelSerializer):
    """Candidature vue par l'enseignant.

    Attributes:
        student_name: nom du candidat.
        matricule: matricule du candidat.
        subject_title: titre du sujet visé (lecture seule).
    """

    student_name = serializers.CharField(source="student.user.name", read_only=True)
    student_email = serializers.CharField(source="student.user.email", read_only=True)
    matricule = serializers.CharField(source="student.matricule", read_only=True)
    subject_title = serializers.CharField(source="subject.title", read_only=True)

    class Meta:
        model = Enrollment
        fields = [
            "id",
            "student",
            "student_name",
            "student_email",
            "matricule",
            "subject",
            "subject_title",
            "status",
            "application_date",
            "approval_date",
            "teacher_notes",
            "student_motivation",
        ]


class StudentEnrollmentSerializer(serializers.ModelSerializer):
    """Candidature vue par l'étudiant, avec l'état du sujet."""

    title = serializers.CharField(source="subject.title", read_only=True)
    subject_status = serializers.CharField(source="subject.status", read_only=True)
    teacher_name = serializers.CharField(source="subject.teacher.user.name", read_only=True)

    class Meta:
        model = Enrollment
        fields = [
            "id",
            "subject",
            "title",
            "subject_status",
            "teacher_name",
            "status",
            "application_date",
            "approval_date",
            "teacher_notes",
            "student_motivation",
        ]
