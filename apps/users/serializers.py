from django.contrib.auth import authenticate, get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.tokens import RefreshToken

from .models import Commission, Partner, Referral

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "username",
            "full_name",
            "role",
            "is_active",
            "created_at",
        )
        read_only_fields = ("id", "created_at")


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, style={"input_type": "password"})

    def validate(self, data):
        email = data.get("email").lower().strip()
        password = data.get("password")

        user = authenticate(email=email, password=password)
        if not user:
            raise serializers.ValidationError("Invalid email or password.")

        if not user.is_active:
            raise serializers.ValidationError("User account is disabled.")

        refresh = RefreshToken.for_user(user)
        return {
            "refresh": str(refresh),
            "access": str(refresh.access_token),
            "user": UserSerializer(user).data,
        }


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)
    referral_code = serializers.CharField(write_only=True, required=False, allow_blank=True)

    class Meta:
        model = User
        fields = (
            "id", "email", "username", "full_name", "role", "password", "is_active", "referral_code",
        )
        read_only_fields = ("id",)
        extra_kwargs = {"username": {"required": False}}

    def validate_email(self, value):
        value = value.lower().strip()
        if User.objects.filter(email=value).exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value


class UserUpdateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8, required=False)

    class Meta:
        model = User
        fields = ("id", "email", "username", "full_name", "role", "is_active", "password")
        read_only_fields = ("id",)

    def validate_email(self, value):
        value = value.lower().strip()
        qs = User.objects.filter(email=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if qs.exists():
            raise serializers.ValidationError("A user with this email already exists.")
        return value

    def validate(self, attrs):
        request = self.context.get("request")
        # Only admins may change role or activation
        if request and not request.user.has_admin_access():
            attrs.pop("role", None)
            attrs.pop("is_active", None)
        return attrs

    def update(self, instance, validated_data):
        password = validated_data.pop("password", None)
        for field, value in validated_data.items():
            setattr(instance, field, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class PartnerSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)

    class Meta:
        model = Partner
        fields = (
            "id",
            "user",
            "referral_code",
            "commission_rate",
            "total_earnings",
            "created_at",
        )
        read_only_fields = ("id", "user", "referral_code", "total_earnings", "created_at")


class PartnerCreateSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    commission_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100, required=False
    )


class PartnerUpdateSerializer(serializers.ModelSerializer):
    commission_rate = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, max_value=100
    )

    class Meta:
        model = Partner
        fields = ("commission_rate", "total_earnings")


class ReferralSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source="client.display_name", read_only=True)
    client_email = serializers.EmailField(source="client.email", read_only=True)
    commission_total = serializers.DecimalField(
        max_digits=12, decimal_places=2, read_only=True, default=0
    )

    class Meta:
        model = Referral
        fields = (
            "id",
            "client_name",
            "client_email",
            "status",
            "commission_total",
            "created_at",
            "converted_at",
        )
        read_only_fields = fields


class CommissionSerializer(serializers.ModelSerializer):
    project_name = serializers.CharField(source="stage.project.name", read_only=True)
    stage_name = serializers.CharField(source="stage.name", read_only=True)
    stage_amount = serializers.DecimalField(
        source="stage.amount", max_digits=12, decimal_places=2, read_only=True
    )
    client_name = serializers.CharField(source="referral.client.display_name", read_only=True)

    class Meta:
        model = Commission
        fields = (
            "id",
            "project_name",
            "stage_name",
            "stage_amount",
            "client_name",
            "rate",
            "amount",
            "created_at",
        )
        read_only_fields = fields
