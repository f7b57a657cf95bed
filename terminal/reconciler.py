# terminal/reconciler.py - optimistic local cache kept in step with the server
import copy
import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from apps.customers.directory import merge_customer, stay_from_room
from apps.ledger.coercion import to_number
from apps.ledger.exceptions import RoomNotFound
from apps.payments.reconciliation import apply_payment
from apps.realtime.broadcast import COLLECTION_FOR_EVENT
from apps.rooms.lifecycle import (
    FIELD_WRITE_POLICY, OCCUPIED, OWNER, apply_changes, coerce_field, find_room_index,
)
from . import config
from .api import LedgerApiClient
from .exceptions import (
    Forbidden, NetworkUnavailable, NotFound, RequestFailed, TerminalError, Unauthorized,
)
from .mirror import LocalMirror

logger = logging.getLogger(__name__)

# Fields a non-owner may change on screen but which never reach the server
LOCAL_OVERRIDE_FIELDS = tuple(
    field for field, roles in FIELD_WRITE_POLICY.items() if roles == frozenset({OWNER})
)


class WriteState(Enum):
    IDLE = 'idle'
    OPTIMISTIC = 'optimistic'
    CONFIRMED = 'confirmed'
    OFFLINE_FALLBACK = 'offline_fallback'


class Signal:
    CONFIRMED = 'confirmed'
    SAVED_LOCALLY = 'saved_locally'
    FORBIDDEN = 'forbidden'
    NOT_FOUND = 'not_found'
    REJECTED = 'rejected'


@dataclass
class WriteResult:
    signal: str
    record: Optional[object] = None
    message: str = ''

    @property
    def synced(self):
        return self.signal == Signal.CONFIRMED


class TerminalCache:
    """
    Local mirror of rooms, payments, customers and notifications.

    Every write is applied to the mirror first, then sent to the server. The
    server's answer replaces the optimistic guess; a failed call keeps it and
    reports ``saved_locally``. There is no retry queue: the next broadcast or
    the next action is the retry.
    """

    def __init__(self, api, mirror, on_state_change=None):
        self.api = api
        self.mirror = mirror
        self.on_state_change = on_state_change
        self.state = WriteState.IDLE
        self.role = mirror.session.get('userRole') or None
        self.api.token = mirror.session.get('authToken') or None
        self.local_overrides = {}
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, mirror_file=None, api_base=None):
        mirror = LocalMirror(
            mirror_file or config.MIRROR_FILE,
            room_count=config.ROOM_COUNT,
            default_rate=config.DEFAULT_RATE,
        ).load()
        return cls(LedgerApiClient(api_base), mirror)

    # Collections
    @property
    def rooms(self):
        return self.mirror.data['rooms']

    @property
    def payments(self):
        return self.mirror.data['payments']

    @property
    def customers(self):
        return self.mirror.data['customers']

    @property
    def notifications(self):
        return self.mirror.data['notifications']

    @property
    def is_owner(self):
        return self.role == OWNER

    @property
    def logged_in(self):
        return bool(self.api.token)

    # Session
    def login(self, email, password):
        data = self.api.login(email, password)
        self.api.token = data['access']
        self.role = data.get('role')
        self.mirror.set_session(self.api.token, self.role)
        logger.info(f"Logged in as {data.get('email', email)} ({self.role})")
        return self.role

    def logout(self):
        """Forget the credential; the mirror itself is kept"""
        self.api.token = None
        self.role = None
        self.mirror.clear_session()
        logger.info("Logged out")

    def load_initial(self):
        """Pull all four collections, keeping the local copy of any that fail"""
        names = ['rooms', 'payments', 'notifications']
        if self.is_owner:
            names.insert(2, 'customers')
        for name in names:
            try:
                data = self.api.fetch(name)
            except Unauthorized:
                self.logout()
                break
            except (NetworkUnavailable, Forbidden, NotFound, RequestFailed) as e:
                logger.warning(f"Could not load {name}, keeping local copy: {e}")
                continue
            with self._lock:
                self._replace(name, data)
        self.mirror.save()

    # Broadcasts
    def apply_broadcast(self, event, data):
        """
        Replace the named collection wholesale. Returns True if anything
        changed; applying the same payload twice is a no-op.
        """
        name = COLLECTION_FOR_EVENT.get(event)
        if name is None:
            logger.warning(f"Ignoring unknown broadcast {event}")
            return False
        with self._lock:
            if not self._replace(name, data):
                return False
            self.mirror.save()
        return True

    def _replace(self, name, data):
        incoming = copy.deepcopy(data)
        if name == 'rooms':
            incoming = [self._with_overrides(room) for room in incoming]
        if incoming == self.mirror.data[name]:
            return False
        self.mirror.data[name] = incoming
        return True

    def _with_overrides(self, room):
        overrides = self.local_overrides.get(str(room.get('id')))
        if overrides:
            room = {**room, **overrides}
        return room

    # State machine
    def _set_state(self, state):
        self.state = state
        logger.debug(f"Write state -> {state.value}")
        if self.on_state_change:
            self.on_state_change(state)

    def _finish(self, state, signal, record, message=''):
        self._set_state(state)
        self._set_state(WriteState.IDLE)
        return WriteResult(signal=signal, record=record, message=message)

    def _offline(self, record, error):
        if isinstance(error, Unauthorized):
            self.logout()
        logger.warning(f"Saved locally, not yet synced: {error}")
        return self._finish(WriteState.OFFLINE_FALLBACK, Signal.SAVED_LOCALLY, record, "Saved locally (server offline)")

    def _now(self):
        return datetime.now(timezone.utc)

    # Writes
    def edit_room(self, room_id, changes):
        with self._lock:
            index = find_room_index(self.rooms, room_id)
            if index is None:
                return WriteResult(signal=Signal.NOT_FOUND, message=f"Room {room_id} not found")

            self._set_state(WriteState.OPTIMISTIC)
            previous = self.rooms[index]
            known = {field: value for field, value in changes.items() if field in FIELD_WRITE_POLICY}
            if not self.is_owner:
                overrides = {
                    field: coerce_field(field, known[field]) for field in LOCAL_OVERRIDE_FIELDS if field in known
                }
                if overrides:
                    key = str(previous.get('id'))
                    self.local_overrides[key] = {**self.local_overrides.get(key, {}), **overrides}
            room = apply_changes(previous, known)
            self.rooms[index] = room
            self._apply_side_effects(previous, room)
            self.mirror.save()

        try:
            confirmed = self.api.update_room(room_id, changes)
        except TerminalError as e:
            return self._offline(room, e)

        with self._lock:
            index = find_room_index(self.rooms, room_id)
            confirmed = self._with_overrides(confirmed)
            if index is not None:
                self.rooms[index] = confirmed
            self.mirror.save()
        return self._finish(WriteState.CONFIRMED, Signal.CONFIRMED, confirmed, "Room updated")

    def _apply_side_effects(self, previous, room):
        """Mirror the server's payment and directory bookkeeping locally"""
        if room.get('status') != OCCUPIED:
            return
        delta = to_number(room.get('paidAmount')) - to_number(previous.get('paidAmount'))
        if delta > 0:
            apply_payment(self.mirror.data, delta, room.get('paymentMode'), now=self._now())
        if not self.is_owner:
            # The directory is owner-only and never reaches this mirror
            return
        identity = room.get('aadharNumber')
        was_occupied = previous.get('status') == OCCUPIED
        if identity and (not was_occupied or identity != previous.get('aadharNumber')):
            merge_customer(self.mirror.data, {
                'aadhar': identity,
                'name': room.get('customerName'),
                'phoneNumber': room.get('phoneNumber'),
                'stay': stay_from_room(room),
            })

    def record_payment(self, room_id, amount, mode='cash'):
        amount = to_number(amount)
        if amount <= 0:
            return WriteResult(signal=Signal.REJECTED, message="Enter amount")
        request_id = uuid.uuid4().hex

        with self._lock:
            self._set_state(WriteState.OPTIMISTIC)
            try:
                outcome = apply_payment(self.mirror.data, amount, mode, room_id=room_id, now=self._now())
            except RoomNotFound as e:
                self._set_state(WriteState.IDLE)
                return WriteResult(signal=Signal.NOT_FOUND, message=str(e))
            self.mirror.save()

        try:
            data = self.api.record_payment(amount, mode, room_id=room_id, request_id=request_id)
        except TerminalError as e:
            return self._offline(outcome.payments, e)

        with self._lock:
            self.mirror.data['payments'] = data['payments']
            if data.get('room'):
                index = find_room_index(self.rooms, data['room'].get('id'))
                if index is not None:
                    self.rooms[index] = self._with_overrides(data['room'])
            self.mirror.save()
        return self._finish(WriteState.CONFIRMED, Signal.CONFIRMED, data['payments'], "Payment updated")

    def add_notification(self, message):
        message = str(message or '').strip()
        if not message:
            return WriteResult(signal=Signal.REJECTED, message="Message is required")

        with self._lock:
            self._set_state(WriteState.OPTIMISTIC)
            entry = {'id': uuid.uuid4().hex, 'message': message, 'timestamp': self._now().isoformat(), 'read': False}
            self.notifications.append(entry)
            self.mirror.save()

        try:
            data = self.api.add_notification(message)
        except TerminalError as e:
            return self._offline(entry, e)

        with self._lock:
            confirmed = data['notification']
            self.mirror.data['notifications'] = [
                confirmed if item is entry else item for item in self.notifications
            ]
            self.mirror.save()
        return self._finish(WriteState.CONFIRMED, Signal.CONFIRMED, confirmed, "Notification added")

    def mark_notifications_read(self):
        with self._lock:
            self._set_state(WriteState.OPTIMISTIC)
            for entry in self.notifications:
                entry['read'] = True
            self.mirror.save()

        try:
            data = self.api.mark_notifications_read()
        except TerminalError as e:
            return self._offline(self.notifications, e)

        with self._lock:
            self._replace('notifications', data['notifications'])
            self.mirror.save()
        return self._finish(WriteState.CONFIRMED, Signal.CONFIRMED, self.notifications)

    # Owner-only actions fail outright for other roles
    def clear_notifications(self):
        if not self.is_owner:
            return WriteResult(signal=Signal.FORBIDDEN, message="Only owner allowed")

        with self._lock:
            self._set_state(WriteState.OPTIMISTIC)
            self.mirror.data['notifications'] = []
            self.mirror.save()

        try:
            self.api.clear_notifications()
        except Forbidden as e:
            self._set_state(WriteState.IDLE)
            return WriteResult(signal=Signal.FORBIDDEN, message=str(e))
        except TerminalError as e:
            return self._offline([], e)
        return self._finish(WriteState.CONFIRMED, Signal.CONFIRMED, [], "Notifications cleared")

    def customer_directory(self):
        if not self.is_owner:
            return WriteResult(signal=Signal.FORBIDDEN, message="Only owner allowed")
        try:
            data = self.api.fetch('customers')
        except Forbidden as e:
            return WriteResult(signal=Signal.FORBIDDEN, message=str(e))
        except TerminalError as e:
            if isinstance(e, Unauthorized):
                self.logout()
            logger.warning(f"Showing local customer directory: {e}")
            return WriteResult(signal=Signal.SAVED_LOCALLY, record=self.customers)
        with self._lock:
            self._replace('customers', data)
            self.mirror.save()
        return WriteResult(signal=Signal.CONFIRMED, record=self.customers)
