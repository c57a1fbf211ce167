from rest_framework import serializers

from .models import ClientBillingInfo, CompanyBillingInfo, Invoice


class ClientBillingInfoSerializer(serializers.ModelSerializer):
    class Meta:
        model = ClientBillingInfo
        fields = (
            "id",
            "legal_name",
            "document_type",
            "document_number",
            "address",
            "city",
            "country",
            "phone",
            "updated_at",
        )
        read_only_fields = ("id", "updated_at")


class CompanyBillingInfoSerializer(serializers.ModelSerializer):
    class Meta:
        model = CompanyBillingInfo
        fields = (
            "id",
            "company_name",
            "ruc",
            "address",
            "city",
            "country",
            "phone",
            "email",
            "tax_regime",
            "is_active",
            "updated_at",
        )
        read_only_fields = ("id", "is_active", "updated_at")


class InvoiceSerializer(serializers.ModelSerializer):
    project_name = serializers.CharField(source="project.name", read_only=True)

    class Meta:
        model = Invoice
        fields = (
            "id",
            "invoice_number",
            "project",
            "project_name",
            "client",
            "amount",
            "currency",
            "status",
            "due_date",
            "paid_at",
            "issued_at",
        )
        read_only_fields = fields


class InvoiceCreateSerializer(serializers.Serializer):
    project_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    due_date = serializers.DateField()
    currency = serializers.CharField(max_length=10, default="USD")


class InvoiceUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Invoice
        fields = ("amount", "status", "due_date")
