from rest_framework import serializers

from .models import Deliverable


class DeliverableUploadSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=Deliverable.Type.values)
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    file = serializers.FileField()


class DeliverableFilterSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=Deliverable.Type.values, required=False)
    status = serializers.ChoiceField(choices=Deliverable.Status.values, required=False)


class DeliverableSerializer(serializers.ModelSerializer):
    """Livrable avec le sujet, l'étudiant et l'URL du fichier stocké.

    Attributes:
        file_url (str | None): URL fournie par le backend de stockage.
    """

    subject_id = serializers.IntegerField(source="enrollment.subject_id", read_only=True)
    subject_title = serializers.CharField(source="enrollment.subject.title", read_only=True)
    student_name = serializers.CharField(source="enrollment.student.user.name", read_only=True)
    file_url = serializers.SerializerMethodField()

    class Meta:
        model = Deliverable
        fields = [
            "id",
            "enrollment",
            "subject_id",
            "subject_title",
            "student_name",
            "type",
            "title",
            "description",
            "file_name",
            "file_size",
            "file_url",
            "version",
            "status",
            "created_at",
            "reviewed_at",
        ]

    def get_file_url(self, obj):
        return obj.file.url if obj.file else None
