from rest_framework import serializers

from .models import Subject


class SubjectSerializer(serializers.ModelSerializer):
    """Sujet PFE en lecture.

    Attributes:
        teacher_name: nom de l'enseignant responsable.
        remaining_places: places restantes avant que le sujet soit complet.
    """

    teacher_name = serializers.CharField(source="teacher.user.name", read_only=True)
    remaining_places = serializers.IntegerField(read_only=True)

    class Meta:
        model = Subject
        fields = [
            "id",
            "title",
            "description",
            "teacher",
            "teacher_name",
            "department",
            "specialization",
            "requirements",
            "keywords",
            "capacity",
            "enrolled",
            "remaining_places",
            "status",
            "deadline",
            "created_at",
        ]


class SubjectWriteSerializer(serializers.Serializer):
    """Contrat de création/modification d'un sujet.

    Liste fermée de champs : `enrolled` et `teacher` sont ignorés s'ils sont
    envoyés. Les règles métier (capacité >= inscrits, statut 'full'
    réservé) sont vérifiées par `SubjectManager`.
    """

    title = serializers.CharField(max_length=255)
    description = serializers.CharField()
    department = serializers.CharField(max_length=100, required=False)
    specialization = serializers.CharField(max_length=100, required=False, allow_blank=True)
    requirements = serializers.CharField(required=False, allow_blank=True)
    keywords = serializers.CharField(max_length=255, required=False, allow_blank=True)
    capacity = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(
        choices=[choice for choice in Subject.Status.values if choice != Subject.Status.FULL], required=False
    )
    deadline = serializers.DateField(required=False, allow_null=True)


class SubjectFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Subject.Status.values, required=False)
    specialization = serializers.CharField(required=False)
    teacher = serializers.IntegerField(required=False)
    department = serializers.CharField(required=False)
    available_only = serializers.BooleanField(required=False, default=False)
    search = serializers.CharField(required=False)
    sort = serializers.ChoiceField(choices=["newest", "oldest", "title", "deadline"], required=False, default="newest")
    limit = serializers.IntegerField(min_value=1, max_value=200, required=False, default=50)
