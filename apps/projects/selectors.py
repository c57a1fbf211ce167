from decimal import Decimal

from django.db.models import Avg, Count, Q, Sum

from apps.cores.exceptions import Forbidden, NotFound

from .models import Project


class ProjectAccessSelector:
    """
    Row-level read access for projects and everything hanging off them.
    """
    @staticmethod
    def for_user(user):
        qs = Project.objects.select_related("client")
        if user.has_admin_access():
            return qs
        return qs.filter(client=user)

    @staticmethod
    def get_for_user(project_id, user):
        project = Project.objects.select_related("client").filter(id=project_id).first()
        if project is None:
            raise NotFound("Project not found.")
        if not user.has_admin_access() and project.client_id != user.pk:
            raise Forbidden("You do not have access to this project.")
        return project


class ProjectStatsSelector:
    """
    Portfolio-wide aggregations (ADMIN ONLY)
    """
    @staticmethod
    def summary():
        totals = Project.objects.aggregate(
            total=Count("id"),
            pending=Count("id", filter=Q(status="pending")),
            in_progress=Count("id", filter=Q(status="in_progress")),
            completed=Count("id", filter=Q(status="completed")),
            cancelled=Count("id", filter=Q(status="cancelled")),
            total_value=Sum("price"),
            average_progress=Avg("progress"),
        )
        totals["total_value"] = totals["total_value"] or Decimal("0.00")
        totals["average_progress"] = round(totals["average_progress"] or 0)
        return totals
