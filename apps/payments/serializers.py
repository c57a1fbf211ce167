import json

from rest_framework import serializers

from .models import PaymentStage
from .utils.file_validation import validate_payment_proof


class PaymentStageSerializer(serializers.ModelSerializer):
    approved_by_name = serializers.CharField(
        source="approved_by.display_name", read_only=True, default=None
    )

    class Meta:
        model = PaymentStage
        fields = (
            "id",
            "project",
            "name",
            "percentage",
            "amount",
            "required_progress",
            "status",
            "payment_method",
            "proof_file_url",
            "payment_data",
            "paid_at",
            "approved_by",
            "approved_by_name",
            "approved_at",
            "created_at",
            "updated_at",
        )
        read_only_fields = fields


class StageDefinitionSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    percentage = serializers.DecimalField(max_digits=5, decimal_places=2)
    required_progress = serializers.IntegerField(default=0)


class StageCreateSerializer(serializers.Serializer):
    stages = StageDefinitionSerializer(many=True, allow_empty=True)


class StageUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    required_progress = serializers.IntegerField(required=False, min_value=0, max_value=100)
    status = serializers.ChoiceField(choices=[s for s, _ in PaymentStage.STATUS], required=False)


class ProofFileInfoField(serializers.JSONField):
    """Multipart forms send the descriptor as a JSON string."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except ValueError:
                raise serializers.ValidationError("Invalid file descriptor.")
        if not isinstance(data, dict):
            raise serializers.ValidationError("Invalid file descriptor.")
        return data


class ConfirmPaymentSerializer(serializers.Serializer):
    payment_method = serializers.CharField(max_length=50)
    proof_file = serializers.FileField(required=False)
    proof_file_info = ProofFileInfoField(required=False)

    def validate_proof_file(self, value):
        validate_payment_proof(value)
        return value


class RejectPaymentSerializer(serializers.Serializer):
    reason = serializers.CharField()
