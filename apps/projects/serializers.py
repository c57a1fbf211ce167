from rest_framework import serializers

from .models import Project, ProjectFile, ProjectMessage, ProjectTimeline


class ProjectSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source="client.display_name", read_only=True)

    class Meta:
        model = Project
        fields = (
            "id",
            "client",
            "client_name",
            "name",
            "description",
            "price",
            "status",
            "progress",
            "start_date",
            "delivery_date",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class ProjectCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    client_id = serializers.IntegerField(required=False)
    start_date = serializers.DateField(required=False)
    delivery_date = serializers.DateField(required=False)


class ProjectUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Project
        fields = (
            "name",
            "description",
            "price",
            "status",
            "progress",
            "start_date",
            "delivery_date",
        )

    def validate_progress(self, value):
        if not 0 <= value <= 100:
            raise serializers.ValidationError("Progress must be between 0 and 100.")
        return value

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative.")
        return value


class ProjectTimelineSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProjectTimeline
        fields = (
            "id",
            "project",
            "title",
            "description",
            "status",
            "estimated_date",
            "completed_at",
            "created_at",
        )
        read_only_fields = ("id", "project", "completed_at", "created_at")


class ProjectMessageSerializer(serializers.ModelSerializer):
    author_name = serializers.CharField(source="author.display_name", read_only=True)
    author_role = serializers.CharField(source="author.role", read_only=True)

    class Meta:
        model = ProjectMessage
        fields = ("id", "project", "author", "author_name", "author_role", "message", "created_at")
        read_only_fields = ("id", "project", "author", "created_at")


class ProjectFileSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProjectFile
        fields = ("id", "project", "file_name", "file_url", "file_type", "uploaded_by", "uploaded_at")
        read_only_fields = ("id", "project", "uploaded_by", "uploaded_at")
