import logging
from decimal import ROUND_HALF_UP, Decimal

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, F, Q, Sum
from django.utils import timezone

from apps.cores.exceptions import InvalidState, NotFound, ValidationFailure
from apps.notifications.events import PartnerCommissionEarned, Welcome
from apps.notifications.services import get_notification_service

from .models import Commission, Partner, Referral, generate_referral_code

logger = logging.getLogger(__name__)

User = get_user_model()


class UserService:

    @staticmethod
    def create_user(*, email, password, role="client", created_by=None, referral_code=None, **fields):
        """
        Admin-driven account creation. Partner accounts get their
        referral profile in the same transaction; a client created with a
        partner's referral code is linked to that partner.
        """
        with transaction.atomic():
            user = User.objects.create_user(
                email=email, password=password, role=role, **fields
            )
            if role == "partner":
                PartnerService.attach_profile(user)
            elif role == "client" and referral_code:
                PartnerService.refer(referral_code, user)

        logger.info(
            "User %s (%s) created by %s", user.pk, role,
            created_by.pk if created_by else "system",
        )

        get_notification_service().notify(
            user, Welcome(full_name=user.display_name, email=user.email)
        )
        return user

    @staticmethod
    def delete_user(user_id, acting_user):
        user = User.objects.filter(id=user_id).first()
        if user is None:
            raise NotFound("User not found.")

        if user.pk == acting_user.pk:
            raise InvalidState("You cannot delete your own account.")

        if user.role == "admin" and User.objects.admins().exclude(pk=user.pk).count() == 0:
            raise InvalidState("Cannot delete the last active admin.")

        user.delete()
        logger.info("User %s deleted by %s", user_id, acting_user.pk)

    @staticmethod
    def stats():
        return User.objects.aggregate(
            total=Count("id"),
            active=Count("id", filter=Q(is_active=True)),
            clients=Count("id", filter=Q(role="client")),
            partners=Count("id", filter=Q(role="partner")),
            admins=Count("id", filter=Q(role="admin")),
        )


class PartnerService:

    @staticmethod
    def attach_profile(user, commission_rate=None):
        extra = {}
        if commission_rate is not None:
            extra["commission_rate"] = commission_rate

        # Referral codes carry a random suffix; retry on the rare collision
        for _ in range(5):
            try:
                with transaction.atomic():
                    return Partner.objects.create(
                        user=user,
                        referral_code=generate_referral_code(user.pk),
                        **extra,
                    )
            except IntegrityError:
                if Partner.objects.filter(user=user).exists():
                    raise InvalidState("User is already a partner.")
        raise InvalidState("Could not allocate a referral code.")

    @staticmethod
    @transaction.atomic
    def promote(user_id, commission_rate=None):
        user = User.objects.select_for_update().filter(id=user_id).first()
        if user is None:
            raise NotFound("User not found.")

        if Partner.objects.filter(user=user).exists():
            raise InvalidState("User is already a partner.")

        partner = PartnerService.attach_profile(user, commission_rate)
        if user.role != "partner":
            user.role = "partner"
            user.save(update_fields=["role"])

        logger.info("User %s promoted to partner %s", user.pk, partner.referral_code)
        return partner

    @staticmethod
    def refer(referral_code, client):
        partner = Partner.objects.filter(referral_code=referral_code.strip().upper()).first()
        if partner is None:
            raise ValidationFailure({"referral_code": "Unknown referral code."})
        referral = Referral.objects.create(partner=partner, client=client)
        logger.info("Client %s referred by partner %s", client.pk, partner.referral_code)
        return referral

    @staticmethod
    def record_commission(stage):
        """
        Credit the referring partner for a stage that just became paid.
        Returns None when the client was not referred or the stage was
        already credited.
        """
        project = stage.project
        referral = (
            Referral.objects
            .select_related("partner", "partner__user")
            .filter(client_id=project.client_id)
            .first()
        )
        if referral is None:
            return None

        partner = referral.partner
        rate = partner.commission_rate
        amount = (stage.amount * rate / Decimal("100")).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

        with transaction.atomic():
            commission, created = Commission.objects.get_or_create(
                stage=stage,
                defaults={"partner": partner, "referral": referral, "rate": rate, "amount": amount},
            )
            if not created:
                return None
            Partner.objects.filter(pk=partner.pk).update(
                total_earnings=F("total_earnings") + amount
            )
            Referral.objects.filter(pk=referral.pk, status="pending").update(
                status="converted", converted_at=timezone.now()
            )

        logger.info(
            "Commission %s of %s credited to partner %s for stage %s",
            commission.pk, amount, partner.referral_code, stage.pk,
        )
        return commission

    @staticmethod
    def announce_commission(commission):
        stage = commission.stage
        get_notification_service().notify(
            commission.partner.user,
            PartnerCommissionEarned(
                commission_id=commission.pk,
                client_name=stage.project.client.display_name,
                project_name=stage.project.name,
                stage_name=stage.name,
                amount=commission.amount,
                rate=commission.rate,
            ),
        )

    @staticmethod
    def stats():
        partners = Partner.objects.aggregate(
            total=Count("id"),
            total_earnings=Sum("total_earnings"),
            average_commission_rate=Avg("commission_rate"),
        )
        referrals = Referral.objects.aggregate(
            total=Count("id"),
            converted=Count("id", filter=Q(status="converted")),
        )
        return {
            "total_partners": partners["total"],
            "total_earnings": partners["total_earnings"] or Decimal("0.00"),
            "average_commission_rate": partners["average_commission_rate"] or Decimal("0.00"),
            "total_referrals": referrals["total"],
            "converted_referrals": referrals["converted"],
            "total_commissions": Commission.objects.count(),
        }
