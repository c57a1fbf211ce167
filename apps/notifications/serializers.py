from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Notification

User = get_user_model()


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = (
            "id",
            "title",
            "message",
            "notif_type",
            "event",
            "data",
            "is_read",
            "created_at",
        )
        read_only_fields = fields


class AdminNoticeSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    message = serializers.CharField()
    notif_type = serializers.ChoiceField(
        choices=[choice for choice, _ in Notification.TYPE_CHOICES],
        default="info",
    )
    user_ids = serializers.ListField(
        child=serializers.IntegerField(), required=False, allow_empty=False
    )
    all_users = serializers.BooleanField(default=False)
    send_email = serializers.BooleanField(default=False)

    def validate(self, attrs):
        if not attrs.get("all_users") and not attrs.get("user_ids"):
            raise serializers.ValidationError(
                {"user_ids": "Provide recipients or set all_users."}
            )
        return attrs

    def get_recipients(self):
        qs = User.objects.filter(is_active=True)
        if self.validated_data.get("all_users"):
            return qs
        return qs.filter(id__in=self.validated_data["user_ids"])
