# apps/payments/views.py
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
import logging

from apps.ledger.exceptions import PersistenceFailure, RoomNotFound
from apps.ledger.services import commit_mutation
from apps.ledger.store import get_ledger
from apps.notifications.log import append_notification
from apps.rooms.lifecycle import room_label
from .reconciliation import apply_payment, classify_method

logger = logging.getLogger(__name__)


class PaymentAggregateView(APIView):
    def get(self, request):
        return Response(get_ledger().collection('payments'))

    def post(self, request):
        if not hasattr(request.data, "get"):
            return Response({"error": "Expected a JSON object"}, status=status.HTTP_400_BAD_REQUEST)
        amount = request.data.get("amount")
        mode = request.data.get("mode", "cash")
        room_id = request.data.get("roomId")
        request_id = request.data.get("requestId")

        def mutation(document):
            outcome = apply_payment(document, amount, mode, room_id=room_id, request_id=request_id)
            if not outcome.applied:
                return outcome, []
            target = f" for {room_label(outcome.room)}" if outcome.room else ""
            append_notification(document, f"₹{outcome.amount} received via {classify_method(mode).upper()}{target}")
            changed = ['payments', 'notifications']
            if outcome.room is not None:
                changed.insert(0, 'rooms')
            return outcome, changed

        try:
            outcome = commit_mutation(mutation)
        except RoomNotFound as e:
            return Response({"error": str(e)}, status=status.HTTP_404_NOT_FOUND)
        except PersistenceFailure as e:
            logger.error(f"Payment not persisted: {e}")
            return Response(
                {"error": "Payment could not be saved", "detail": str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        return Response({
            "ok": True,
            "applied": outcome.applied,
            "payments": outcome.payments,
            "room": outcome.room,
        }, status=status.HTTP_200_OK)
