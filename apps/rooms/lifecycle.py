# apps/rooms/lifecycle.py - derived room fields and edit rules
#
# Kept free of Django model imports so the front-desk terminal can run the
# same recompute for its optimistic updates.
import logging
import math
from dataclasses import dataclass
from decimal import InvalidOperation
from typing import Optional

from django.utils.dateparse import parse_datetime

from apps.ledger.coercion import to_number, as_json_number
from apps.ledger.exceptions import RoomNotFound

logger = logging.getLogger(__name__)

OWNER = 'owner'
MANAGER = 'manager'
ALL_ROLES = frozenset({OWNER, MANAGER})

AVAILABLE = 'available'
OCCUPIED = 'occupied'
MAINTENANCE = 'maintenance'
ROOM_STATUSES = (AVAILABLE, OCCUPIED, MAINTENANCE)

# field -> roles allowed to write it; anything missing here is never stored
FIELD_WRITE_POLICY = {
    'label': frozenset({OWNER}),
    'price': frozenset({OWNER}),
    'status': ALL_ROLES,
    'customerName': ALL_ROLES,
    'numberOfPersons': ALL_ROLES,
    'aadharNumber': ALL_ROLES,
    'phoneNumber': ALL_ROLES,
    'checkinTime': ALL_ROLES,
    'checkoutTime': ALL_ROLES,
    'paymentMode': ALL_ROLES,
    'paidAmount': ALL_ROLES,
}

NUMERIC_FIELDS = {'price': 0, 'paidAmount': 0, 'numberOfPersons': 1}

GUEST_DEFAULTS = {
    'customerName': '',
    'numberOfPersons': 1,
    'aadharNumber': '',
    'phoneNumber': '',
    'checkinTime': '',
    'checkoutTime': '',
    'paymentMode': '',
    'totalAmount': 0,
    'paidAmount': 0,
    'dueAmount': 0,
}


@dataclass
class PaymentEvent:
    delta: float
    method: str


@dataclass
class RoomEditResult:
    room: dict
    previous: dict
    payment: Optional[PaymentEvent] = None
    started_stay: bool = False
    released: bool = False


def blank_room(room_id, rate):
    return {'id': room_id, 'label': f"Room {room_id}", 'price': rate, 'status': AVAILABLE, **GUEST_DEFAULTS}


def find_room_index(rooms, room_id):
    for index, room in enumerate(rooms):
        if str(room.get('id')) == str(room_id):
            return index
    return None


def writable_changes(changes, role):
    """Split a change set into fields the role may write and everything else"""
    accepted, dropped = {}, []
    for field, value in (changes or {}).items():
        allowed = FIELD_WRITE_POLICY.get(field)
        if allowed is not None and role in allowed:
            accepted[field] = value
        else:
            dropped.append(field)
    return accepted, dropped


def coerce_field(field, value):
    if field in NUMERIC_FIELDS:
        return to_number(value, default=NUMERIC_FIELDS[field])
    if field == 'status':
        return value if value in ROOM_STATUSES else None
    if value is None:
        return ''
    return str(value).strip()


def stay_nights(checkin, checkout):
    """Nights billed between two timestamps, or None when no stay can be priced"""
    if not checkin or not checkout:
        return None
    try:
        start = parse_datetime(str(checkin))
        end = parse_datetime(str(checkout))
    except ValueError:
        return None
    if start is None or end is None:
        return None
    if (start.tzinfo is None) != (end.tzinfo is None):
        start, end = start.replace(tzinfo=None), end.replace(tzinfo=None)
    if end <= start:
        return None
    hours = (end - start).total_seconds() / 3600
    return max(1, math.ceil(hours / 24))


def recompute_room(room):
    """Clear or re-derive the guest and money fields in place; returns the room"""
    if room.get('status') != OCCUPIED:
        room.update(GUEST_DEFAULTS)
        return room

    nights = stay_nights(room.get('checkinTime'), room.get('checkoutTime'))
    price = to_number(room.get('price'))
    paid = to_number(room.get('paidAmount'))
    try:
        total = as_json_number(nights * price) if nights else 0
    except InvalidOperation:
        logger.warning(f"Room {room.get('id')}: stay total out of range, leaving it at 0")
        total = 0
    room['totalAmount'] = total
    room['paidAmount'] = paid
    room['dueAmount'] = as_json_number(max(0, total - paid))
    return room


def apply_changes(room, changes):
    """Return a new, recomputed room with already-authorised changes applied"""
    updated = dict(room)
    for field, value in changes.items():
        coerced = coerce_field(field, value)
        if coerced is None:
            logger.warning(f"Ignoring unknown status {value!r} for room {room.get('id')}")
            continue
        updated[field] = coerced
    return recompute_room(updated)


def apply_room_edit(document, room_id, changes, role):
    """
    Replace one room in ``document`` with the recomputed result of ``changes``.

    Raises :class:`RoomNotFound` before touching anything if the id is unknown.
    """
    rooms = document['rooms']
    index = find_room_index(rooms, room_id)
    if index is None:
        raise RoomNotFound(room_id)

    accepted, dropped = writable_changes(changes, role)
    if dropped:
        logger.info(f"Room {room_id}: ignored fields {sorted(dropped)} for role {role}")

    previous = rooms[index]
    room = apply_changes(previous, accepted)
    rooms[index] = room

    result = RoomEditResult(room=room, previous=previous)
    was_occupied = previous.get('status') == OCCUPIED
    if room.get('status') == OCCUPIED:
        delta = to_number(room['paidAmount']) - to_number(previous.get('paidAmount'))
        if delta > 0:
            result.payment = PaymentEvent(delta=as_json_number(delta), method=room.get('paymentMode', ''))
        identity = room.get('aadharNumber')
        result.started_stay = bool(identity) and (
            not was_occupied or identity != previous.get('aadharNumber')
        )
    else:
        result.released = was_occupied
    return result


def room_label(room):
    return room.get('label') or f"Room {room.get('id')}"
