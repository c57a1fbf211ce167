from apps.cores.exceptions import Forbidden, NotFound

from .models import PaymentStage


class StageAccessSelector:
    """
    Row-level access for payment stages: admins see everything,
    clients only the stages of their own projects.
    """
    @staticmethod
    def get(stage_id):
        stage = (
            PaymentStage.objects
            .select_related("project", "project__client")
            .filter(id=stage_id)
            .first()
        )
        if stage is None:
            raise NotFound("Payment stage not found.")
        return stage

    @staticmethod
    def get_for_user(stage_id, user):
        stage = StageAccessSelector.get(stage_id)
        if not user.has_admin_access() and stage.project.client_id != user.pk:
            raise Forbidden("You do not have access to this payment stage.")
        return stage

    @staticmethod
    def for_project(project):
        return PaymentStage.objects.filter(project=project).ordered()


class StageNumberingSelector:
    """
    Position of a stage within its project, ordered by the progress gate.
    """
    @staticmethod
    def position(stage):
        ids = list(
            PaymentStage.objects
            .filter(project_id=stage.project_id)
            .ordered()
            .values_list("id", flat=True)
        )
        return ids.index(stage.id) + 1, len(ids)
