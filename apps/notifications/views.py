# apps/notifications/views.py
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView
import logging

from apps.ledger.exceptions import PersistenceFailure
from apps.ledger.services import commit_mutation
from apps.ledger.store import get_ledger
from apps.users.permissions import IsOwner
from .log import append_notification, clear_notifications, mark_all_read

logger = logging.getLogger(__name__)


def _persistence_error(e):
    logger.error(f"Notification change not persisted: {e}")
    return Response(
        {"error": "Notifications could not be saved", "detail": str(e)},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


class NotificationListView(APIView):
    def get_permissions(self):
        # Clearing the log is reserved for the owner
        if self.request.method == 'DELETE':
            return [IsOwner()]
        return [IsAuthenticated()]

    def get(self, request):
        return Response(get_ledger().collection('notifications'))

    def post(self, request):
        if not hasattr(request.data, "get"):
            return Response({"error": "Expected a JSON object"}, status=status.HTTP_400_BAD_REQUEST)
        message = str(request.data.get("message", "")).strip()
        if not message:
            return Response({"error": "Message is required"}, status=status.HTTP_400_BAD_REQUEST)
        try:
            entry = commit_mutation(lambda document: (append_notification(document, message), ['notifications']))
        except PersistenceFailure as e:
            return _persistence_error(e)
        return Response({"ok": True, "notification": entry}, status=status.HTTP_201_CREATED)

    def delete(self, request):
        try:
            commit_mutation(lambda document: (clear_notifications(document), ['notifications']))
        except PersistenceFailure as e:
            return _persistence_error(e)
        logger.info(f"Notifications cleared by {request.user.email}")
        return Response({"ok": True, "notifications": []}, status=status.HTTP_200_OK)


class MarkNotificationsReadView(APIView):
    def post(self, request):
        try:
            notifications = commit_mutation(lambda document: (mark_all_read(document), ['notifications']))
        except PersistenceFailure as e:
            return _persistence_error(e)
        return Response({"ok": True, "notifications": notifications}, status=status.HTTP_200_OK)
