from decimal import Decimal
from unittest import mock

import pytest
from django.db import DatabaseError

from apps.cores.exceptions import Forbidden, InvalidState, NotFound, ValidationFailure
from apps.negotiations import services
from apps.negotiations.models import BudgetNegotiation
from apps.notifications.models import Notification

pytestmark = pytest.mark.django_db


def test_client_proposal_notifies_admins(project, client_user, admin_user):
    negotiation = services.propose(project.pk, client_user, Decimal("800.00"), "Tighter budget")

    assert negotiation.status == "pending"
    assert negotiation.original_price == Decimal("1000.00")
    assert negotiation.proposed_price == Decimal("800.00")

    notice = Notification.objects.get(recipient=admin_user, event="budget_negotiation")
    assert "Tighter budget" in notice.message
    assert not Notification.objects.filter(recipient=client_user).exists()


def test_admin_proposal_notifies_client(project, client_user, admin_user):
    services.propose(project.pk, admin_user, Decimal("1200.00"))

    assert Notification.objects.filter(recipient=client_user, event="budget_negotiation").exists()
    assert not Notification.objects.filter(recipient=admin_user).exists()


def test_propose_on_foreign_project(project, other_client):
    with pytest.raises(Forbidden):
        services.propose(project.pk, other_client, Decimal("10.00"))


def test_propose_on_missing_project(client_user):
    with pytest.raises(NotFound):
        services.propose(999, client_user, Decimal("10.00"))


def test_accept_updates_project(project, client_user, admin_user, mailer):
    negotiation = services.propose(project.pk, client_user, Decimal("850.00"))
    mailer.sent.clear()

    result = services.respond(negotiation.pk, admin_user, "accepted")

    project.refresh_from_db()
    assert result.status == "accepted"
    assert result.responded_at is not None
    assert project.price == Decimal("850.00")
    assert project.status == "in_progress"

    assert Notification.objects.filter(recipient=client_user, event="budget_accepted").exists()
    recipients = mailer.recipients()
    assert client_user.email in recipients
    assert admin_user.email in recipients
    assert "ops@agency.test" in recipients


def test_client_accepting_admin_offer_notifies_admins(project, client_user, admin_user, mailer):
    negotiation = services.propose(project.pk, admin_user, Decimal("900.00"))

    services.respond(negotiation.pk, client_user, "accepted")

    assert Notification.objects.filter(recipient=admin_user, event="budget_accepted").exists()
    assert "ops@agency.test" in mailer.recipients()


def test_reject(project, client_user, admin_user):
    negotiation = services.propose(project.pk, client_user, Decimal("700.00"))

    result = services.respond(negotiation.pk, admin_user, "rejected", "Too low")

    project.refresh_from_db()
    assert result.status == "rejected"
    assert project.price == Decimal("1000.00")
    notice = Notification.objects.get(recipient=client_user, event="budget_rejected")
    assert "Too low" in notice.message


def test_counter_opens_new_pending_row(project, client_user, admin_user):
    original = services.propose(project.pk, client_user, Decimal("700.00"))

    counter = services.respond(
        original.pk, admin_user, "countered", "Meet halfway", counter_price=Decimal("850.00")
    )

    original.refresh_from_db()
    assert original.status == "countered"
    assert counter.pk != original.pk
    assert counter.status == "pending"
    assert counter.original_price == original.proposed_price == Decimal("700.00")
    assert counter.proposed_price == Decimal("850.00")
    assert counter.proposed_by == admin_user

    notice = Notification.objects.get(recipient=client_user, event="budget_negotiation")
    assert notice.title == "New counter-proposal"


def test_counter_chain_can_be_accepted(project, client_user, admin_user):
    first = services.propose(project.pk, client_user, Decimal("700.00"))
    counter = services.respond(first.pk, admin_user, "countered", counter_price=Decimal("850.00"))

    services.respond(counter.pk, client_user, "accepted")

    project.refresh_from_db()
    assert project.price == Decimal("850.00")
    assert list(
        BudgetNegotiation.objects.filter(project=project).order_by("id").values_list("status", flat=True)
    ) == ["countered", "accepted"]


def test_counter_requires_price(project, client_user, admin_user):
    negotiation = services.propose(project.pk, client_user, Decimal("700.00"))

    with pytest.raises(ValidationFailure):
        services.respond(negotiation.pk, admin_user, "countered")

    negotiation.refresh_from_db()
    assert negotiation.status == "pending"
    assert BudgetNegotiation.objects.count() == 1


@pytest.mark.parametrize("first", ["accepted", "rejected"])
def test_only_pending_can_be_answered(project, client_user, admin_user, first):
    negotiation = services.propose(project.pk, client_user, Decimal("700.00"))
    services.respond(negotiation.pk, admin_user, first)

    with pytest.raises(InvalidState):
        services.respond(negotiation.pk, admin_user, "accepted")


def test_unknown_response_status(project, client_user, admin_user):
    negotiation = services.propose(project.pk, client_user, Decimal("700.00"))

    with pytest.raises(ValidationFailure):
        services.respond(negotiation.pk, admin_user, "maybe")


def test_proposer_cannot_accept_own_offer(project, client_user):
    negotiation = services.propose(project.pk, client_user, Decimal("1.00"))

    with pytest.raises(Forbidden):
        services.respond(negotiation.pk, client_user, "accepted")

    project.refresh_from_db()
    negotiation.refresh_from_db()
    assert project.price == Decimal("1000.00")
    assert project.status == "pending"
    assert negotiation.status == "pending"


def test_admin_cannot_answer_another_admins_offer(project, admin_user):
    colleague = type(admin_user).objects.create_user(
        email="a2@agency.test", password="secret-pass-1", role="admin"
    )
    negotiation = services.propose(project.pk, admin_user, Decimal("1500.00"))

    with pytest.raises(Forbidden):
        services.respond(negotiation.pk, colleague, "accepted")

    project.refresh_from_db()
    assert project.price == Decimal("1000.00")


def test_failed_project_update_rolls_back_acceptance(project, client_user, admin_user):
    negotiation = services.propose(project.pk, client_user, Decimal("850.00"))

    with mock.patch.object(services.Project, "objects") as objects:
        objects.filter.return_value.update.side_effect = DatabaseError("lock timeout")
        with pytest.raises(DatabaseError):
            services.respond(negotiation.pk, admin_user, "accepted")

    negotiation.refresh_from_db()
    project.refresh_from_db()
    assert negotiation.status == "pending"
    assert negotiation.responded_at is None
    assert project.price == Decimal("1000.00")
    assert project.status == "pending"
    assert not Notification.objects.filter(event="budget_accepted").exists()
