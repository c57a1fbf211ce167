from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, generics, status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.cores.exceptions import NotFound
from apps.cores.permissions import IsAdminRole

from .models import Ticket
from .serializers import (
    ContactSerializer,
    TicketAdminUpdateSerializer,
    TicketCreateSerializer,
    TicketResponseSerializer,
    TicketSerializer,
)
from .services import ContactService, TicketService


class TicketListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = Ticket.objects.filter(user=request.user).select_related("user")
        return Response(TicketSerializer(qs, many=True).data)

    def post(self, request):
        serializer = TicketCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        ticket = TicketService.create(request.user, **serializer.validated_data)
        return Response(TicketSerializer(ticket).data, status=status.HTTP_201_CREATED)


class TicketResponseListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, ticket_id):
        ticket = TicketService.get_for_user(ticket_id, request.user)
        qs = ticket.responses.select_related("user")
        return Response(TicketResponseSerializer(qs, many=True).data)

    def post(self, request, ticket_id):
        ticket = TicketService.get_for_user(ticket_id, request.user)
        response = TicketService.respond(ticket, request.user, request.data.get("message"))
        return Response(TicketResponseSerializer(response).data, status=status.HTTP_201_CREATED)


# -----------------------------
# ADMIN
# -----------------------------

class AdminTicketListView(generics.ListAPIView):
    permission_classes = [IsAuthenticated, IsAdminRole]
    serializer_class = TicketSerializer
    queryset = Ticket.objects.select_related("user")
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ["status", "priority"]
    search_fields = ["title", "description", "user__email"]


class AdminTicketDetailView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get_ticket(self, ticket_id):
        ticket = Ticket.objects.select_related("user").filter(id=ticket_id).first()
        if ticket is None:
            raise NotFound("Ticket not found.")
        return ticket

    def put(self, request, ticket_id):
        ticket = self.get_ticket(ticket_id)
        serializer = TicketAdminUpdateSerializer(ticket, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(TicketSerializer(ticket).data)

    patch = put

    def delete(self, request, ticket_id):
        self.get_ticket(ticket_id).delete()
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminTicketStatsView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        return Response(TicketService.stats())


class ContactView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = ContactSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        ContactService.submit(**serializer.validated_data)
        return Response(
            {"message": "Thanks for contacting us. We will get back to you within 24 hours."}
        )
