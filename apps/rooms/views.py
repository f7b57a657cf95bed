# apps/rooms/views.py
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView
import logging

from apps.customers.directory import merge_customer, stay_from_room
from apps.ledger.exceptions import PersistenceFailure, RoomNotFound
from apps.ledger.services import commit_mutation
from apps.ledger.store import get_ledger
from apps.notifications.log import append_notification
from apps.payments.reconciliation import apply_payment, classify_method
from .lifecycle import apply_room_edit, find_room_index, room_label

logger = logging.getLogger(__name__)


def room_edit_mutation(room_id, changes, role):
    """Build the ledger mutation for one whole-record room replace"""

    def mutation(document):
        result = apply_room_edit(document, room_id, changes, role)
        room = result.room
        changed = ['rooms']

        if result.payment:
            outcome = apply_payment(document, result.payment.delta, result.payment.method)
            if outcome.applied:
                append_notification(
                    document,
                    f"₹{result.payment.delta} received via {classify_method(result.payment.method).upper()} for {room_label(room)}"
                )
                changed += ['payments', 'notifications']

        if result.started_stay:
            merge_customer(document, {
                'aadhar': room['aadharNumber'],
                'name': room['customerName'],
                'phoneNumber': room['phoneNumber'],
                'stay': stay_from_room(room),
            })
            append_notification(document, f"{room_label(room)} checked in: {room['customerName'] or room['aadharNumber']}")
            changed += ['customers', 'notifications']
        elif result.released:
            append_notification(document, f"{room_label(room)} released ({room.get('status')})")
            changed.append('notifications')

        return room, list(dict.fromkeys(changed))

    return mutation


class RoomListView(APIView):
    def get(self, request):
        return Response(get_ledger().collection('rooms'))


class RoomDetailView(APIView):
    def get(self, request, room_id):
        rooms = get_ledger().collection('rooms')
        index = find_room_index(rooms, room_id)
        if index is None:
            return Response({"error": f"Room {room_id} not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(rooms[index])

    def put(self, request, room_id):
        changes = dict(request.data.items()) if hasattr(request.data, 'items') else {}
        role = getattr(request.user, 'role', None)

        try:
            room = commit_mutation(room_edit_mutation(room_id, changes, role))
        except RoomNotFound as e:
            return Response({"error": str(e)}, status=status.HTTP_404_NOT_FOUND)
        except PersistenceFailure as e:
            logger.error(f"Room {room_id} update not persisted: {e}")
            return Response(
                {"error": "Room update could not be saved", "detail": str(e)},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )

        logger.info(f"Room {room_id} updated by {request.user.email}: {room.get('status')}")
        return Response(room, status=status.HTTP_200_OK)

    def patch(self, request, room_id):
        return self.put(request, room_id)
