from rest_framework import serializers

from .models import BudgetNegotiation


class BudgetNegotiationSerializer(serializers.ModelSerializer):
    proposed_by_name = serializers.CharField(source="proposed_by.display_name", read_only=True)
    proposed_by_role = serializers.CharField(source="proposed_by.role", read_only=True)

    class Meta:
        model = BudgetNegotiation
        fields = (
            "id",
            "project",
            "proposed_by",
            "proposed_by_name",
            "proposed_by_role",
            "original_price",
            "proposed_price",
            "message",
            "status",
            "created_at",
            "responded_at",
        )
        read_only_fields = fields


class ProposeSerializer(serializers.Serializer):
    proposed_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    message = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_proposed_price(self, value):
        if value <= 0:
            raise serializers.ValidationError("Proposed price must be positive.")
        return value


class RespondSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=["accepted", "rejected", "countered"])
    message = serializers.CharField(required=False, allow_blank=True, default="")
    counter_price = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )

    def validate(self, attrs):
        if attrs["status"] == "countered" and not attrs.get("counter_price"):
            raise serializers.ValidationError(
                {"counter_price": "A counter price is required to counter a proposal."}
            )
        return attrs
