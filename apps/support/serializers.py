from rest_framework import serializers

from .models import Ticket, TicketResponse


class TicketResponseSerializer(serializers.ModelSerializer):
    author_name = serializers.CharField(source="user.display_name", read_only=True)

    class Meta:
        model = TicketResponse
        fields = ("id", "ticket", "user", "author_name", "message", "is_from_support", "created_at")
        read_only_fields = ("id", "ticket", "user", "is_from_support", "created_at")


class TicketSerializer(serializers.ModelSerializer):
    user_name = serializers.CharField(source="user.display_name", read_only=True)
    user_email = serializers.EmailField(source="user.email", read_only=True)

    class Meta:
        model = Ticket
        fields = (
            "id",
            "user",
            "user_name",
            "user_email",
            "project",
            "title",
            "description",
            "priority",
            "status",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class TicketCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField()
    priority = serializers.ChoiceField(choices=[p for p, _ in Ticket.PRIORITY], default="medium")
    project_id = serializers.IntegerField(required=False, allow_null=True)


class TicketAdminUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Ticket
        fields = ("status", "priority")


class ContactSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255)
    email = serializers.EmailField()
    phone = serializers.CharField(max_length=50, required=False, allow_blank=True, default="")
    company = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    service = serializers.CharField(max_length=100, required=False, allow_blank=True, default="")
    message = serializers.CharField(min_length=10)
