# apps/payments/reconciliation.py - applies payment deltas to the shared aggregate
import logging
from dataclasses import dataclass
from typing import Optional

from django.utils import timezone

from apps.ledger.coercion import to_number, as_json_number
from apps.ledger.exceptions import RoomNotFound
from apps.rooms.lifecycle import OCCUPIED, find_room_index

logger = logging.getLogger(__name__)

UPI = 'upi'
CASH = 'cash'

PAYMENT_REQUEST_MEMORY = 200


@dataclass
class PaymentOutcome:
    payments: dict
    room: Optional[dict] = None
    applied: bool = False
    amount: float = 0


def classify_method(method):
    """Two buckets only: the ``upi`` token (any case) and cash for everything else"""
    return UPI if str(method or '').strip().lower() == UPI else CASH


def _remember_request(document, request_id):
    seen = document.setdefault('paymentRequests', [])
    seen.append(request_id)
    if len(seen) > PAYMENT_REQUEST_MEMORY:
        del seen[:len(seen) - PAYMENT_REQUEST_MEMORY]


def apply_payment(document, delta, method, room_id=None, request_id=None, now=None):
    """
    Add ``delta`` to the aggregate and, if ``room_id`` is given, to that room.

    Must run inside ``LedgerStore.transaction()``; the store's lock is what
    keeps two concurrent payments from losing an update.
    """
    rooms = document['rooms']
    room_index = None
    if room_id not in (None, ''):
        room_index = find_room_index(rooms, room_id)
        if room_index is None:
            raise RoomNotFound(room_id)

    payments = document['payments']
    room = rooms[room_index] if room_index is not None else None

    amount = to_number(delta)
    if amount <= 0:
        logger.info(f"Ignoring non-positive payment delta {delta!r}")
        return PaymentOutcome(payments=payments, room=room, applied=False)

    if request_id:
        request_id = str(request_id)
        if request_id in document.get('paymentRequests', []):
            logger.warning(f"Duplicate payment request {request_id} ignored")
            return PaymentOutcome(payments=payments, room=room, applied=False)
        _remember_request(document, request_id)

    bucket = classify_method(method)
    payments[bucket] = as_json_number(to_number(payments.get(bucket)) + amount)
    payments['dayRevenue'] = as_json_number(to_number(payments.get('dayRevenue')) + amount)
    payments['monthRevenue'] = as_json_number(to_number(payments.get('monthRevenue')) + amount)
    payments['lastUpdated'] = (now or timezone.now()).isoformat()

    if room is not None and room.get('status') != OCCUPIED:
        # A freed room carries no money fields; the receipt still counts
        logger.warning(f"Payment for room {room_id} which is not occupied; aggregate only")
        room = None

    if room is not None:
        paid = to_number(room.get('paidAmount')) + amount
        room['paidAmount'] = as_json_number(paid)
        room['dueAmount'] = as_json_number(max(0, to_number(room.get('totalAmount')) - paid))
        room['paymentMode'] = str(method or '').strip()

    logger.info(f"Applied payment {amount} to {bucket}" + (f" for room {room_id}" if room is not None else ""))
    return PaymentOutcome(payments=payments, room=room, applied=True, amount=amount)
