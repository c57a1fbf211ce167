from django.urls import path

from .views import (
    AdminInvoiceCreateView,
    AdminInvoiceDetailView,
    ClientBillingInfoView,
    ClientInvoiceSummaryView,
    CompanyBillingInfoView,
    InvoiceListView,
)

urlpatterns = [
    # -------- Billing profiles --------
    path("client/billing-info/", ClientBillingInfoView.as_view(), name="client-billing-info"),
    path(
        "admin/company-billing-info/",
        CompanyBillingInfoView.as_view(),
        name="company-billing-info",
    ),
    path(
        "admin/company-billing-info/<int:info_id>/",
        CompanyBillingInfoView.as_view(),
        name="company-billing-info-detail",
    ),

    # -------- Invoices (Admin + Client) --------
    path("invoices/", InvoiceListView.as_view(), name="invoice-list"),
    path("client/invoices/summary/", ClientInvoiceSummaryView.as_view(), name="client-invoice-summary"),
    path("admin/invoices/", AdminInvoiceCreateView.as_view(), name="admin-invoice-create"),
    path(
        "admin/invoices/<int:invoice_id>/",
        AdminInvoiceDetailView.as_view(),
        name="admin-invoice-detail",
    ),
]
