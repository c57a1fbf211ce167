from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import generics, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.cores.exceptions import NotFound
from apps.cores.permissions import IsAdminRole

from .models import ClientBillingInfo, CompanyBillingInfo, Invoice
from .selectors import InvoiceAccessSelector, InvoiceSummarySelector
from .serializers import (
    ClientBillingInfoSerializer,
    CompanyBillingInfoSerializer,
    InvoiceCreateSerializer,
    InvoiceSerializer,
    InvoiceUpdateSerializer,
)
from .services import BillingProfileService, InvoiceService


# -----------------------------
# BILLING PROFILES
# -----------------------------

class ClientBillingInfoView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        info = ClientBillingInfo.objects.filter(user=request.user).first()
        if info is None:
            raise NotFound("Billing information not found.")
        return Response(ClientBillingInfoSerializer(info).data)

    def post(self, request):
        serializer = ClientBillingInfoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        info, created = BillingProfileService.save_client_info(
            request.user, serializer.validated_data
        )
        return Response(
            ClientBillingInfoSerializer(info).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def put(self, request):
        info = ClientBillingInfo.objects.filter(user=request.user).first()
        if info is None:
            raise NotFound("Billing information not found.")
        serializer = ClientBillingInfoSerializer(info, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    patch = put


class CompanyBillingInfoView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        info = CompanyBillingInfo.current()
        if info is None:
            raise NotFound("Company billing information not found.")
        return Response(CompanyBillingInfoSerializer(info).data)

    def post(self, request):
        serializer = CompanyBillingInfoSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        info = BillingProfileService.create_company_info(serializer.validated_data)
        return Response(CompanyBillingInfoSerializer(info).data, status=status.HTTP_201_CREATED)

    def put(self, request, info_id=None):
        info = (
            CompanyBillingInfo.objects.filter(id=info_id).first()
            if info_id else CompanyBillingInfo.current()
        )
        if info is None:
            raise NotFound("Company billing information not found.")
        serializer = CompanyBillingInfoSerializer(info, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    patch = put


# -----------------------------
# INVOICES
# -----------------------------

class InvoiceListView(generics.ListAPIView):
    """Admins see every invoice, clients only their own."""

    permission_classes = [IsAuthenticated]
    serializer_class = InvoiceSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["status", "project"]

    def get_queryset(self):
        return InvoiceAccessSelector.for_user(self.request.user)


class ClientInvoiceSummaryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(InvoiceSummarySelector.for_client(request.user))


class AdminInvoiceCreateView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def post(self, request):
        serializer = InvoiceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        invoice = InvoiceService.issue(**serializer.validated_data)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)


class AdminInvoiceDetailView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def put(self, request, invoice_id):
        invoice = Invoice.objects.select_related("project").filter(id=invoice_id).first()
        if invoice is None:
            raise NotFound("Invoice not found.")

        serializer = InvoiceUpdateSerializer(invoice, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        InvoiceService.update(invoice, serializer.validated_data)
        return Response(InvoiceSerializer(invoice).data)

    patch = put
