from django.urls import path

from .views import NegotiationRespondView, ProjectNegotiationView

urlpatterns = [
    path(
        "projects/<int:project_id>/budget-negotiations/",
        ProjectNegotiationView.as_view(),
        name="project-budget-negotiations",
    ),
    path(
        "budget-negotiations/<int:negotiation_id>/respond/",
        NegotiationRespondView.as_view(),
        name="budget-negotiation-respond",
    ),
]
