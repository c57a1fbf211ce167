import logging

from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.cores.exceptions import NotFound
from apps.cores.permissions import IsAdminRole

from .events import AdminNotice
from .models import Notification
from .serializers import AdminNoticeSerializer, NotificationSerializer
from .services import get_notification_service

logger = logging.getLogger(__name__)


class NotificationListView(ListAPIView):
    """Own notifications, newest first. ``?unread=true`` keeps unread ones only."""

    permission_classes = [IsAuthenticated]
    serializer_class = NotificationSerializer
    filter_backends = []

    def get_queryset(self):
        qs = Notification.objects.filter(recipient=self.request.user)
        if self.request.query_params.get("unread", "").lower() in ("1", "true", "yes"):
            qs = qs.filter(is_read=False)
        return qs


class NotificationMarkReadView(APIView):
    permission_classes = [IsAuthenticated]

    def patch(self, request, notification_id):
        updated = Notification.objects.filter(
            id=notification_id, recipient=request.user
        ).update(is_read=True)
        if not updated:
            raise NotFound("Notification not found.")
        return Response({"id": notification_id, "is_read": True})

    post = patch


class NotificationMarkAllReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        updated = Notification.objects.filter(
            recipient=request.user, is_read=False
        ).update(is_read=True)
        return Response({"updated": updated})

    patch = post


class NotificationUnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        count = Notification.objects.filter(recipient=request.user, is_read=False).count()
        return Response({"count": count})


class AdminNotificationView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def post(self, request):
        serializer = AdminNoticeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        event = AdminNotice(
            heading=serializer.validated_data["title"],
            body=serializer.validated_data["message"],
            level=serializer.validated_data["notif_type"],
        )
        created = get_notification_service().notify_many(
            serializer.get_recipients(),
            event,
            email=serializer.validated_data["send_email"],
        )

        logger.info("Admin %s sent a notice to %d user(s)", request.user.pk, len(created))
        return Response({"sent": len(created)}, status=status.HTTP_201_CREATED)
