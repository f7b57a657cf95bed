# apps/realtime/consumers.py - push channel for front-desk terminals
from asgiref.sync import sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.utils import timezone
import logging

from apps.ledger.store import get_ledger
from .broadcast import EVENT_NAMES, groups_for_role, visible_collections

logger = logging.getLogger(__name__)

CLOSE_UNAUTHORIZED = 4401


class LedgerConsumer(AsyncJsonWebsocketConsumer):
    """Streams roomsUpdated/paymentsUpdated/customersUpdated/notificationsUpdated"""

    async def connect(self):
        user = self.scope.get('user')
        if user is None or not user.is_authenticated:
            logger.warning("Rejected unauthenticated ledger socket")
            await self.close(code=CLOSE_UNAUTHORIZED)
            return

        self.role = getattr(user, 'role', None)
        self.joined_groups = groups_for_role(self.role)
        for group in self.joined_groups:
            await self.channel_layer.group_add(group, self.channel_name)

        await self.accept()
        # A terminal joining mid-session needs no separate bootstrap call
        await self.send_snapshot()
        logger.info(f"Ledger socket connected: {user.email} ({self.role})")

    async def disconnect(self, close_code):
        for group in getattr(self, 'joined_groups', []):
            await self.channel_layer.group_discard(group, self.channel_name)
        logger.info(f"Ledger socket disconnected: {self.channel_name} ({close_code})")

    async def receive_json(self, content, **kwargs):
        message_type = content.get('type') if isinstance(content, dict) else None
        if message_type == 'heartbeat':
            await self.send_json({
                'type': 'heartbeat_ack',
                'timestamp': timezone.now().isoformat(),
            })
        elif message_type == 'request_refresh':
            await self.send_snapshot()
        else:
            logger.warning(f"Unknown ledger socket message type: {message_type}")

    async def send_snapshot(self):
        document = await sync_to_async(get_ledger().snapshot)()
        for name in visible_collections(self.role):
            await self.send_json({'event': EVENT_NAMES[name], 'data': document[name]})

    # Channel layer event handlers
    async def ledger_collection(self, event):
        await self.send_json({'event': event['event'], 'data': event['data']})
