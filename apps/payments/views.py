from django.http import HttpResponse
from rest_framework import status
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.cores.exceptions import Forbidden
from apps.cores.permissions import IsAdminRole
from apps.projects.selectors import ProjectAccessSelector

from .documents import render_pdf
from .selectors import StageAccessSelector
from .serializers import (
    ConfirmPaymentSerializer,
    PaymentStageSerializer,
    RejectPaymentSerializer,
    StageCreateSerializer,
    StageUpdateSerializer,
)
from .services import PaymentStageService


class ProjectPaymentStageView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        project = ProjectAccessSelector.get_for_user(project_id, request.user)
        stages = StageAccessSelector.for_project(project)
        return Response(PaymentStageSerializer(stages, many=True).data)

    def post(self, request, project_id):
        if not request.user.has_admin_access():
            raise Forbidden("Only admins can create payment stages.")

        payload = request.data if "stages" in request.data else {"stages": [request.data]}
        serializer = StageCreateSerializer(data=payload)
        serializer.is_valid(raise_exception=True)

        stages = PaymentStageService.create_stages(
            project_id, serializer.validated_data["stages"]
        )
        return Response(
            PaymentStageSerializer(stages, many=True).data, status=status.HTTP_201_CREATED
        )


class PaymentStageDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, stage_id):
        stage = StageAccessSelector.get_for_user(stage_id, request.user)
        return Response(PaymentStageSerializer(stage).data)

    def patch(self, request, stage_id):
        if not request.user.has_admin_access():
            raise Forbidden("Only admins can edit payment stages.")

        serializer = StageUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        stage = PaymentStageService.update(stage_id, serializer.validated_data)
        return Response(PaymentStageSerializer(stage).data)


class ConfirmPaymentView(APIView):
    """Client uploads the proof of an out-of-band transfer."""

    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser, JSONParser]

    def post(self, request, stage_id):
        serializer = ConfirmPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        stage = PaymentStageService.submit_proof(
            stage_id,
            serializer.validated_data["payment_method"],
            request.user,
            proof_file=serializer.validated_data.get("proof_file"),
            proof_file_info=serializer.validated_data.get("proof_file_info"),
        )
        return Response(
            {
                "message": "Payment proof submitted. Pending verification.",
                "stage": PaymentStageSerializer(stage).data,
            }
        )


class ApprovePaymentView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def post(self, request, stage_id):
        stage = PaymentStageService.approve(stage_id, request.user)
        return Response(PaymentStageSerializer(stage).data)


class RejectPaymentView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def post(self, request, stage_id):
        serializer = RejectPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        stage = PaymentStageService.reject(
            stage_id, request.user, serializer.validated_data["reason"]
        )
        return Response(PaymentStageSerializer(stage).data)


class CompleteStageView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def post(self, request, stage_id):
        stage = PaymentStageService.complete(stage_id, request.user)
        return Response(PaymentStageSerializer(stage).data)


class ReceiptFileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, stage_id):
        return Response(PaymentStageService.receipt(stage_id, request.user))


class StageInvoiceDownloadView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, stage_id):
        document = PaymentStageService.settlement_document(stage_id, request.user)

        response = HttpResponse(render_pdf(document), content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="{document.file_name}"'
        return response
