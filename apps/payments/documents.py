"""
Settlement document for a paid payment stage.

``SettlementDocument.for_stage`` gathers everything printed on the document
(numbering, biller, billee, line item, totals, payment block, legal footer)
into plain data; ``render_pdf`` lays that data out on an A4 page with
reportlab.
"""
import io
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List
from xml.sax.saxutils import escape

from django.conf import settings
from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from apps.billing.models import ClientBillingInfo, CompanyBillingInfo

from .constants import DEFAULT_PAYMENT_METHOD
from .selectors import StageNumberingSelector

logger = logging.getLogger(__name__)

DOCUMENT_TITLE = "RESIMPLE RECEIPT"
EXEMPTION_NOTICE = "Digital services exempt from VAT under Law 125/91"

PRIMARY = colors.HexColor("#1e40af")
MUTED = colors.HexColor("#6c757d")
LIGHT = colors.HexColor("#f8f9fa")
BORDER = colors.HexColor("#e9ecef")


def invoice_number_for(project_id, stage_number, year=None):
    year = year or timezone.localdate().year
    return f"INV-{year}-{project_id:04d}-{stage_number:02d}"


@dataclass
class LineItem:
    quantity: int
    description: str
    unit_price: Decimal
    total: Decimal


@dataclass
class SettlementDocument:
    invoice_number: str
    issue_date: date
    stage_number: int
    total_stages: int
    biller: dict
    billee: dict
    line_items: List[LineItem] = field(default_factory=list)
    subtotal: Decimal = Decimal("0.00")
    tax_rate: Decimal = Decimal("0")
    tax: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")
    payment_method: str = DEFAULT_PAYMENT_METHOD
    paid_date: date = None
    title: str = DOCUMENT_TITLE

    @property
    def stage_label(self):
        return f"Stage {self.stage_number} of {self.total_stages}"

    @property
    def file_name(self):
        return f"Factura_{self.invoice_number}.pdf"

    @property
    def legal_notice(self):
        return [
            f"Tax regime: {self.biller.get('tax_regime') or 'RESIMPLE'}",
            EXEMPTION_NOTICE,
        ]

    @classmethod
    def for_stage(cls, stage):
        project = stage.project
        client = project.client

        stage_number, total_stages = StageNumberingSelector.position(stage)
        issue_date = timezone.localdate()

        company = CompanyBillingInfo.current()
        biller = company.as_dict() if company else dict(settings.COMPANY_DEFAULTS)

        billing = ClientBillingInfo.objects.filter(user=client).first()
        billee = {
            "name": billing.legal_name if billing else client.display_name,
            "document": (
                f"{billing.get_document_type_display()}: {billing.document_number}"
                if billing else client.email
            ),
            "address": ", ".join(p for p in (billing.address, billing.city, billing.country) if p)
            if billing else "",
            "phone": billing.phone if billing else "",
            "client_code": f"{client.pk:06d}",
            "project_name": project.name,
        }

        amount = stage.amount
        paid_at = stage.paid_at

        return cls(
            invoice_number=invoice_number_for(project.pk, stage_number, issue_date.year),
            issue_date=issue_date,
            stage_number=stage_number,
            total_stages=total_stages,
            biller=biller,
            billee=billee,
            line_items=[
                LineItem(
                    quantity=1,
                    description=f"{stage.name} - Stage {stage_number} of {total_stages}",
                    unit_price=amount,
                    total=amount,
                )
            ],
            subtotal=amount,
            tax_rate=Decimal("0"),
            tax=Decimal("0.00"),
            total=amount,
            payment_method=stage.payment_method or DEFAULT_PAYMENT_METHOD,
            paid_date=timezone.localtime(paid_at).date() if paid_at else issue_date,
        )


def _money(value):
    return f"$ {Decimal(value):,.2f}"


def render_pdf(document: SettlementDocument) -> bytes:
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=18 * mm,
        rightMargin=18 * mm,
        topMargin=16 * mm,
        bottomMargin=16 * mm,
        title=document.invoice_number,
    )

    styles = getSampleStyleSheet()
    company_style = ParagraphStyle(
        "Company", parent=styles["Heading1"], fontSize=18, textColor=PRIMARY, spaceAfter=4
    )
    right_style = ParagraphStyle("Right", parent=styles["Normal"], alignment=TA_RIGHT)
    section_style = ParagraphStyle(
        "Section", parent=styles["Heading3"], textColor=colors.white, fontSize=11
    )
    small_center = ParagraphStyle(
        "Footer", parent=styles["Normal"], fontSize=9, textColor=MUTED, alignment=TA_CENTER
    )
    body = styles["Normal"]

    biller = {key: escape(str(value or "")) for key, value in document.biller.items()}
    billee = {key: escape(str(value or "")) for key, value in document.billee.items()}
    content = []

    # ===== HEADER =====
    header = Table(
        [[
            Paragraph(biller.get("company_name", ""), company_style),
            Paragraph(
                f"<b>{document.title}</b><br/>"
                f"No. {document.invoice_number}<br/>"
                f"Date: {document.issue_date:%d/%m/%Y}<br/>"
                f"{document.stage_label}",
                right_style,
            ),
        ]],
        colWidths=[95 * mm, 79 * mm],
    )
    header.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    content.extend([header, Spacer(1, 10)])

    # ===== PARTIES =====
    parties = Table(
        [
            [Paragraph("FROM", section_style), Paragraph("BILL TO", section_style)],
            [
                Paragraph(
                    f"<b>{biller.get('company_name', '')}</b><br/>"
                    f"RUC: {biller.get('ruc', '')}<br/>"
                    f"{biller.get('address', '')}<br/>"
                    f"{biller.get('city', '')}, {biller.get('country', '')}<br/>"
                    f"{biller.get('phone', '')}<br/>{biller.get('email', '')}",
                    body,
                ),
                Paragraph(
                    f"<b>{billee['name']}</b><br/>"
                    f"{billee['document']}<br/>"
                    f"{billee['address']}<br/>"
                    f"Client No. {billee['client_code']}<br/>"
                    f"Project: {billee['project_name']}",
                    body,
                ),
            ],
        ],
        colWidths=[87 * mm, 87 * mm],
    )
    parties.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
                ("BACKGROUND", (0, 1), (-1, 1), LIGHT),
                ("BOX", (0, 0), (-1, -1), 0.5, BORDER),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), 8),
                ("TOPPADDING", (0, 0), (-1, -1), 6),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    content.extend([parties, Spacer(1, 14)])

    # ===== LINE ITEMS =====
    rows = [["Qty", "Description", "Unit price", "Total"]]
    for item in document.line_items:
        rows.append(
            [str(item.quantity), Paragraph(escape(item.description), body),
             _money(item.unit_price), _money(item.total)]
        )
    items = Table(rows, colWidths=[15 * mm, 99 * mm, 30 * mm, 30 * mm])
    items.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), PRIMARY),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("ALIGN", (2, 0), (-1, -1), "RIGHT"),
                ("GRID", (0, 0), (-1, -1), 0.5, BORDER),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    content.extend([items, Spacer(1, 10)])

    # ===== TOTALS =====
    totals = Table(
        [
            ["Subtotal:", _money(document.subtotal)],
            [f"Tax ({document.tax_rate}%):", _money(document.tax)],
            ["TOTAL:", _money(document.total)],
        ],
        colWidths=[40 * mm, 35 * mm],
        hAlign="RIGHT",
    )
    totals.setStyle(
        TableStyle(
            [
                ("ALIGN", (0, 0), (-1, -1), "RIGHT"),
                ("BACKGROUND", (0, 2), (-1, 2), PRIMARY),
                ("TEXTCOLOR", (0, 2), (-1, 2), colors.white),
                ("FONTNAME", (0, 2), (-1, 2), "Helvetica-Bold"),
            ]
        )
    )
    content.extend([totals, Spacer(1, 14)])

    # ===== PAYMENT =====
    content.append(Paragraph("<b>PAYMENT INFORMATION</b>", body))
    content.append(Paragraph(f"Payment method: {document.payment_method}", body))
    content.append(Paragraph("Status: PAID", body))
    content.append(Paragraph(f"Payment date: {document.paid_date:%d/%m/%Y}", body))
    content.append(Spacer(1, 24))

    # ===== FOOTER =====
    for line in document.legal_notice:
        content.append(Paragraph(line, small_center))

    doc.build(content)
    logger.debug("Rendered settlement document %s", document.invoice_number)
    return buffer.getvalue()
