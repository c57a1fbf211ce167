from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.projects.selectors import ProjectAccessSelector

from . import services
from .serializers import BudgetNegotiationSerializer, ProposeSerializer, RespondSerializer


class ProjectNegotiationView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, project_id):
        project = ProjectAccessSelector.get_for_user(project_id, request.user)
        return Response(
            BudgetNegotiationSerializer(services.for_project(project), many=True).data
        )

    def post(self, request, project_id):
        serializer = ProposeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        negotiation = services.propose(project_id, request.user, **serializer.validated_data)
        return Response(
            BudgetNegotiationSerializer(negotiation).data, status=status.HTTP_201_CREATED
        )


class NegotiationRespondView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, negotiation_id):
        serializer = RespondSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        negotiation = services.respond(negotiation_id, request.user, **serializer.validated_data)
        return Response(BudgetNegotiationSerializer(negotiation).data)

    put = post
