from decimal import Decimal

from django.db.models import Count, Q, Sum
from django.db.models.functions import TruncMonth
from django.utils import timezone

from apps.cores.exceptions import NotFound

from .models import Commission, Partner, Referral


class PartnerProfileSelector:
    @staticmethod
    def for_user(user):
        partner = Partner.objects.select_related("user").filter(user=user).first()
        if partner is None:
            raise NotFound("Partner profile not found.")
        return partner


class PartnerReferralSelector:
    @staticmethod
    def for_partner(partner):
        return (
            Referral.objects
            .filter(partner=partner)
            .select_related("client")
            .annotate(commission_total=Sum("commissions__amount"))
        )


class PartnerCommissionSelector:
    @staticmethod
    def for_partner(partner):
        return (
            Commission.objects
            .filter(partner=partner)
            .select_related("stage", "stage__project", "referral__client")
        )


class PartnerEarningsSelector:
    """
    Aggregations for one partner (NOT access control).
    """
    @staticmethod
    def summary(partner):
        month_start = timezone.localdate().replace(day=1)
        commissions = Commission.objects.filter(partner=partner).aggregate(
            current_month=Sum("amount", filter=Q(created_at__date__gte=month_start)),
            count=Count("id"),
        )
        referrals = Referral.objects.filter(partner=partner).aggregate(
            total=Count("id"),
            converted=Count("id", filter=Q(status="converted")),
        )

        return {
            "referral_code": partner.referral_code,
            "commission_rate": partner.commission_rate,
            "total_earnings": partner.total_earnings,
            "current_month_earnings": commissions["current_month"] or Decimal("0.00"),
            "commission_count": commissions["count"],
            "total_referrals": referrals["total"],
            "converted_referrals": referrals["converted"],
            "monthly": PartnerEarningsSelector.monthly_breakdown(partner),
        }

    @staticmethod
    def monthly_breakdown(partner):
        qs = (
            Commission.objects
            .filter(partner=partner)
            .annotate(month=TruncMonth("created_at"))
            .values("month")
            .annotate(amount=Sum("amount"), commissions=Count("id"))
            .order_by("month")
        )
        return list(qs)
