from rest_framework import serializers

from .models import User


class UserSerializer(serializers.ModelSerializer):
    role = serializers.CharField(read_only=True)
    student_id = serializers.SerializerMethodField()
    teacher_id = serializers.SerializerMethodField()
    pfe_subject = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "name",
            "department",
            "phone_number",
            "role",
            "student_id",
            "teacher_id",
            "pfe_subject",
        )

    def get_student_id(self, obj):
        return obj.student.id if hasattr(obj, "student") else None

    def get_teacher_id(self, obj):
        return obj.teacher.id if hasattr(obj, "teacher") else None

    def get_pfe_subject(self, obj):
        """Sujet PFE approuvé de l'étudiant, None sinon."""
        if not hasattr(obj, "student") or obj.student.pfe_subject is None:
            return None
        subject = obj.student.pfe_subject
        return {"id": subject.id, "title": subject.title, "teacher": subject.teacher.user.name}
