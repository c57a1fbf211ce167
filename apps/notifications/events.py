"""
Domain events delivered by the fan-out service.

Every event is a small frozen dataclass carrying its own payload. The
service only ever talks to the common interface: ``title()``,
``message()``, ``notif_type``, ``data()`` and ``render_email()``. Adding a
new kind of notification means adding a class here and, if it needs a
dedicated layout, a template under ``templates/emails/``.
"""
from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar, Optional

from django.conf import settings
from django.template.loader import render_to_string

STATUS_LABELS = {
    "pending": "Pending",
    "in_progress": "In progress",
    "completed": "Completed",
    "cancelled": "Cancelled",
}


def _jsonable(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def format_money(value) -> str:
    return f"${Decimal(str(value)).quantize(Decimal('0.01'))}"


@dataclass(frozen=True)
class NotificationEvent:
    tag: ClassVar[str] = "notice"
    notif_type: ClassVar[str] = "info"
    email_template: ClassVar[str] = "emails/notification.html"

    def title(self) -> str:
        raise NotImplementedError

    def message(self) -> str:
        raise NotImplementedError

    def subject(self) -> str:
        return self.title()

    def action_url(self) -> str:
        return settings.SITE_URL

    def data(self) -> dict:
        return {f.name: _jsonable(getattr(self, f.name)) for f in fields(self)}

    def email_context(self, recipient_name: str = "") -> dict:
        context = asdict(self)
        context.update(
            {
                "title": self.title(),
                "message": self.message(),
                "recipient_name": recipient_name,
                "action_url": self.action_url(),
                "notif_type": self.notif_type,
            }
        )
        return context

    def render_email(self, recipient_name: str = ""):
        html = render_to_string(self.email_template, self.email_context(recipient_name))
        return self.subject(), html


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProjectCreated(NotificationEvent):
    tag: ClassVar[str] = "project_created"
    notif_type: ClassVar[str] = "success"

    project_id: int
    project_name: str
    client_name: str
    for_admin: bool = False

    def title(self):
        return "New project created" if self.for_admin else "Project created"

    def message(self):
        if self.for_admin:
            return f'{self.client_name} created the project "{self.project_name}".'
        return (
            f'Your project "{self.project_name}" was created. '
            "Our team will review it shortly."
        )


@dataclass(frozen=True)
class ProjectUpdated(NotificationEvent):
    tag: ClassVar[str] = "project_updated"

    project_id: int
    project_name: str
    description: str
    updated_by: str

    def title(self):
        return "Project updated"

    def message(self):
        return f'"{self.project_name}": {self.description}. Updated by {self.updated_by}.'


@dataclass(frozen=True)
class ProjectStatusChanged(NotificationEvent):
    tag: ClassVar[str] = "project_status_changed"
    email_template: ClassVar[str] = "emails/project_status_changed.html"

    project_id: int
    project_name: str
    old_status: str
    new_status: str
    updated_by: str

    def title(self):
        return "Project status changed"

    def subject(self):
        return f"Status change: {self.project_name} - {STATUS_LABELS.get(self.new_status, self.new_status)}"

    def message(self):
        return (
            f'"{self.project_name}" moved from '
            f"{STATUS_LABELS.get(self.old_status, self.old_status)} to "
            f"{STATUS_LABELS.get(self.new_status, self.new_status)}."
        )

    def email_context(self, recipient_name=""):
        context = super().email_context(recipient_name)
        context["old_label"] = STATUS_LABELS.get(self.old_status, self.old_status)
        context["new_label"] = STATUS_LABELS.get(self.new_status, self.new_status)
        return context


@dataclass(frozen=True)
class NewProjectMessage(NotificationEvent):
    tag: ClassVar[str] = "project_message"

    project_id: int
    project_name: str
    sender_name: str
    text: str

    def title(self):
        return f"New message from {self.sender_name}"

    def message(self):
        preview = self.text if len(self.text) <= 140 else f"{self.text[:137]}..."
        return f'{self.project_name}: "{preview}"'


# ---------------------------------------------------------------------------
# Support
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TicketCreated(NotificationEvent):
    tag: ClassVar[str] = "ticket_created"
    notif_type: ClassVar[str] = "warning"

    ticket_id: int
    ticket_title: str
    author_name: str

    def title(self):
        return "New support ticket"

    def message(self):
        return f'{self.author_name} opened the ticket "{self.ticket_title}".'


@dataclass(frozen=True)
class TicketResponded(NotificationEvent):
    tag: ClassVar[str] = "ticket_response"

    ticket_id: int
    ticket_title: str
    responder_name: str
    text: str
    from_support: bool

    def title(self):
        return "Support replied to your ticket" if self.from_support else "New reply on ticket"

    def message(self):
        return f'{self.responder_name} replied on "{self.ticket_title}": {self.text}'


@dataclass(frozen=True)
class ContactReceived(NotificationEvent):
    tag: ClassVar[str] = "contact_received"
    notif_type: ClassVar[str] = "warning"
    email_template: ClassVar[str] = "emails/contact_received.html"

    full_name: str
    email: str
    text: str
    phone: str = ""
    company: str = ""
    service: str = ""

    def title(self):
        return "New contact request"

    def subject(self):
        return f"New contact request from {self.full_name}"

    def message(self):
        return f"{self.full_name} ({self.email}) wrote: {self.text}"


@dataclass(frozen=True)
class ContactConfirmation(NotificationEvent):
    tag: ClassVar[str] = "contact_confirmation"
    notif_type: ClassVar[str] = "success"

    full_name: str

    def title(self):
        return "We received your message"

    def message(self):
        return (
            f"Thanks for reaching out, {self.full_name}. "
            "Our team will answer within the next 24 hours."
        )


# ---------------------------------------------------------------------------
# Payment stages
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PaymentStageAvailable(NotificationEvent):
    tag: ClassVar[str] = "payment_stage_available"
    email_template: ClassVar[str] = "emails/payment_stage_available.html"

    project_id: int
    project_name: str
    stage_id: int
    stage_name: str
    amount: Decimal
    percentage: Decimal

    def title(self):
        return "Payment available"

    def subject(self):
        return f"Payment available: {self.project_name} - {self.stage_name}"

    def message(self):
        return (
            f'The stage "{self.stage_name}" of "{self.project_name}" is ready to be paid: '
            f"{format_money(self.amount)} ({self.percentage}% of the project)."
        )


@dataclass(frozen=True)
class PaymentProofReceived(NotificationEvent):
    tag: ClassVar[str] = "payment_proof_received"
    notif_type: ClassVar[str] = "warning"
    email_template: ClassVar[str] = "emails/payment_proof_received.html"

    project_id: int
    project_name: str
    stage_id: int
    stage_name: str
    amount: Decimal
    client_name: str
    payment_method: str
    file_description: Optional[str] = None

    def title(self):
        return "Payment proof received"

    def subject(self):
        return f"Payment proof: {self.client_name} - {self.stage_name}"

    def message(self):
        attachment = (
            f"Attached proof: {self.file_description}."
            if self.file_description else "No proof attached."
        )
        return (
            f'{self.client_name} submitted a payment proof for "{self.stage_name}" '
            f"via {self.payment_method}. {attachment} Verification required."
        )


@dataclass(frozen=True)
class PaymentProofConfirmation(NotificationEvent):
    tag: ClassVar[str] = "payment_proof_confirmation"
    email_template: ClassVar[str] = "emails/payment_proof_confirmation.html"

    project_id: int
    project_name: str
    stage_id: int
    stage_name: str
    amount: Decimal
    payment_method: str

    def title(self):
        return "Payment proof submitted"

    def subject(self):
        return f"We received your payment proof: {self.stage_name}"

    def message(self):
        return (
            f'Your proof for "{self.stage_name}" ({format_money(self.amount)}) is pending '
            "verification by our team. We will let you know once it is approved."
        )


@dataclass(frozen=True)
class PaymentApproved(NotificationEvent):
    tag: ClassVar[str] = "payment_approved"
    notif_type: ClassVar[str] = "success"

    project_id: int
    project_name: str
    stage_id: int
    stage_name: str

    def title(self):
        return "Payment approved"

    def message(self):
        return (
            f'Your payment for the stage "{self.stage_name}" was verified and approved. '
            "Development continues!"
        )


@dataclass(frozen=True)
class PaymentRejected(NotificationEvent):
    tag: ClassVar[str] = "payment_rejected"
    notif_type: ClassVar[str] = "error"

    project_id: int
    project_name: str
    stage_id: int
    stage_name: str
    reason: str

    def title(self):
        return "Payment rejected"

    def message(self):
        return (
            f'Your payment proof for "{self.stage_name}" was rejected. '
            f"Reason: {self.reason}. Please submit a new proof."
        )


# ---------------------------------------------------------------------------
# Budget negotiation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BudgetNegotiationProposed(NotificationEvent):
    tag: ClassVar[str] = "budget_negotiation"
    notif_type: ClassVar[str] = "warning"

    project_id: int
    project_name: str
    negotiation_id: int
    proposed_price: Decimal
    note: str = ""
    is_counter_proposal: bool = False

    def title(self):
        return "New counter-proposal" if self.is_counter_proposal else "New budget proposal"

    def message(self):
        text = f'Proposed price for "{self.project_name}": {format_money(self.proposed_price)}.'
        if self.note:
            text += f" Message: {self.note}"
        return text


@dataclass(frozen=True)
class BudgetNegotiationAccepted(NotificationEvent):
    tag: ClassVar[str] = "budget_accepted"
    notif_type: ClassVar[str] = "success"
    email_template: ClassVar[str] = "emails/budget_accepted.html"

    project_id: int
    project_name: str
    negotiation_id: int
    client_name: str
    client_email: str
    original_price: Decimal
    accepted_price: Decimal
    note: str = ""

    def title(self):
        return "Budget accepted"

    def subject(self):
        return f"Counter-offer accepted: {self.project_name} - {format_money(self.accepted_price)}"

    def message(self):
        return (
            f'The budget for "{self.project_name}" was accepted at '
            f"{format_money(self.accepted_price)} (was {format_money(self.original_price)}). "
            "The project is now in progress."
        )


@dataclass(frozen=True)
class BudgetNegotiationRejected(NotificationEvent):
    tag: ClassVar[str] = "budget_rejected"
    notif_type: ClassVar[str] = "error"

    project_id: int
    project_name: str
    negotiation_id: int
    proposed_price: Decimal
    note: str = ""

    def title(self):
        return "Budget proposal rejected"

    def message(self):
        text = f'The proposal of {format_money(self.proposed_price)} for "{self.project_name}" was rejected.'
        if self.note:
            text += f" Message: {self.note}"
        return text


# ---------------------------------------------------------------------------
# Billing / accounts / ad hoc
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class InvoiceIssued(NotificationEvent):
    tag: ClassVar[str] = "invoice_issued"

    invoice_id: int
    invoice_number: str
    project_name: str
    amount: Decimal
    due_date: date

    def title(self):
        return "New invoice issued"

    def message(self):
        return (
            f"Invoice {self.invoice_number} for {format_money(self.amount)} was issued for "
            f'"{self.project_name}". Due on {self.due_date:%d/%m/%Y}.'
        )


@dataclass(frozen=True)
class Welcome(NotificationEvent):
    tag: ClassVar[str] = "welcome"
    notif_type: ClassVar[str] = "success"
    email_template: ClassVar[str] = "emails/welcome.html"

    full_name: str
    email: str

    def title(self):
        return "Welcome aboard"

    def message(self):
        return (
            f"Hi {self.full_name}, your account ({self.email}) is ready. "
            "You can now follow your projects and payments online."
        )


@dataclass(frozen=True)
class PartnerCommissionEarned(NotificationEvent):
    tag: ClassVar[str] = "partner_commission"
    notif_type: ClassVar[str] = "success"

    commission_id: int
    client_name: str
    project_name: str
    stage_name: str
    amount: Decimal
    rate: Decimal

    def title(self):
        return "Commission earned"

    def message(self):
        return (
            f"You earned {format_money(self.amount)} ({self.rate}%) on the paid stage "
            f'"{self.stage_name}" of {self.client_name}\'s project "{self.project_name}".'
        )


@dataclass(frozen=True)
class AdminNotice(NotificationEvent):
    tag: ClassVar[str] = "admin_notice"

    heading: str
    body: str
    level: str = "info"

    def title(self):
        return self.heading

    def message(self):
        return self.body

    @property
    def notif_type(self):
        return self.level
