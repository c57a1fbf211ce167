from django.contrib.auth import get_user_model
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.cores.exceptions import Forbidden, NotFound
from apps.cores.permissions import IsAdminRole, IsPartner

from .models import Partner
from .selectors import (
    PartnerCommissionSelector,
    PartnerEarningsSelector,
    PartnerProfileSelector,
    PartnerReferralSelector,
)
from .serializers import (
    CommissionSerializer,
    LoginSerializer,
    PartnerCreateSerializer,
    PartnerSerializer,
    PartnerUpdateSerializer,
    ReferralSerializer,
    UserCreateSerializer,
    UserSerializer,
    UserUpdateSerializer,
)
from .services import PartnerService, UserService

User = get_user_model()


# -----------------------------
# AUTH
# -----------------------------

class LoginView(generics.GenericAPIView):
    """
    Login using email and password.
    Returns access and refresh JWT tokens.
    """
    serializer_class = LoginSerializer
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return Response(serializer.validated_data, status=status.HTTP_200_OK)


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


# -----------------------------
# USERS (ADMIN)
# -----------------------------

class AdminUserListCreateView(generics.ListCreateAPIView):
    permission_classes = [IsAuthenticated, IsAdminRole]
    queryset = User.objects.order_by("-created_at")
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ["role", "is_active"]
    search_fields = ["email", "full_name", "username"]

    def get_serializer_class(self):
        if self.request.method == "POST":
            return UserCreateSerializer
        return UserSerializer

    def create(self, request, *args, **kwargs):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = UserService.create_user(created_by=request.user, **serializer.validated_data)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


class UserDetailView(APIView):
    """Admins manage any account; everyone else only their own."""

    permission_classes = [IsAuthenticated]

    def get_user(self, request, user_id):
        if not request.user.has_admin_access() and request.user.pk != user_id:
            raise Forbidden("You can only manage your own account.")
        user = User.objects.filter(id=user_id).first()
        if user is None:
            raise NotFound("User not found.")
        return user

    def get(self, request, user_id):
        return Response(UserSerializer(self.get_user(request, user_id)).data)

    def patch(self, request, user_id):
        user = self.get_user(request, user_id)
        serializer = UserUpdateSerializer(
            user, data=request.data, partial=True, context={"request": request}
        )
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(UserSerializer(user).data)

    put = patch

    def delete(self, request, user_id):
        if not request.user.has_admin_access():
            raise Forbidden("Only admins can delete users.")
        UserService.delete_user(user_id, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminUserStatsView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        return Response(UserService.stats())


# -----------------------------
# PARTNERS
# -----------------------------

class PartnerMeView(APIView):
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        partner = PartnerProfileSelector.for_user(request.user)
        return Response(PartnerSerializer(partner).data)


class PartnerReferralListView(APIView):
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        partner = PartnerProfileSelector.for_user(request.user)
        qs = PartnerReferralSelector.for_partner(partner)
        return Response(ReferralSerializer(qs, many=True).data)


class PartnerCommissionListView(APIView):
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        partner = PartnerProfileSelector.for_user(request.user)
        qs = PartnerCommissionSelector.for_partner(partner)
        return Response(CommissionSerializer(qs, many=True).data)


class PartnerEarningsView(APIView):
    permission_classes = [IsAuthenticated, IsPartner]

    def get(self, request):
        partner = PartnerProfileSelector.for_user(request.user)
        return Response(PartnerEarningsSelector.summary(partner))


class AdminPartnerListCreateView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        qs = Partner.objects.select_related("user").all()
        return Response(PartnerSerializer(qs, many=True).data)

    def post(self, request):
        serializer = PartnerCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        partner = PartnerService.promote(
            serializer.validated_data["user_id"],
            serializer.validated_data.get("commission_rate"),
        )
        return Response(PartnerSerializer(partner).data, status=status.HTTP_201_CREATED)


class AdminPartnerDetailView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def patch(self, request, partner_id):
        partner = Partner.objects.select_related("user").filter(id=partner_id).first()
        if partner is None:
            raise NotFound("Partner not found.")

        serializer = PartnerUpdateSerializer(partner, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(PartnerSerializer(partner).data)


class AdminPartnerStatsView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        return Response(PartnerService.stats())
