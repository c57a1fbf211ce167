from django.urls import path

from .views import (
    ApprovePaymentView,
    CompleteStageView,
    ConfirmPaymentView,
    PaymentStageDetailView,
    ProjectPaymentStageView,
    ReceiptFileView,
    RejectPaymentView,
    StageInvoiceDownloadView,
)

urlpatterns = [
    path(
        "projects/<int:project_id>/payment-stages/",
        ProjectPaymentStageView.as_view(),
        name="project-payment-stages",
    ),
    path("payment-stages/<int:stage_id>/", PaymentStageDetailView.as_view(), name="payment-stage-detail"),
    path("payment-stages/<int:stage_id>/complete/", CompleteStageView.as_view(), name="payment-stage-complete"),
    path(
        "payment-stages/<int:stage_id>/confirm-payment/",
        ConfirmPaymentView.as_view(),
        name="payment-stage-confirm",
    ),
    path(
        "payment-stages/<int:stage_id>/approve-payment/",
        ApprovePaymentView.as_view(),
        name="payment-stage-approve",
    ),
    path(
        "payment-stages/<int:stage_id>/reject-payment/",
        RejectPaymentView.as_view(),
        name="payment-stage-reject",
    ),
    path(
        "payment-stages/<int:stage_id>/receipt-file/",
        ReceiptFileView.as_view(),
        name="payment-stage-receipt",
    ),

    # -------- Client --------
    path(
        "client/stage-invoices/<int:stage_id>/download/",
        StageInvoiceDownloadView.as_view(),
        name="stage-invoice-download",
    ),
]
