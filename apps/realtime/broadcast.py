# apps/realtime/broadcast.py - push canonical collections to every terminal
from channels.layers import get_channel_layer
from asgiref.sync import async_to_sync
import logging

logger = logging.getLogger(__name__)

TERMINALS_GROUP = 'ledger_terminals'
OWNERS_GROUP = 'ledger_owners'

EVENT_NAMES = {
    'rooms': 'roomsUpdated',
    'payments': 'paymentsUpdated',
    'customers': 'customersUpdated',
    'notifications': 'notificationsUpdated',
}
COLLECTION_FOR_EVENT = {event: name for name, event in EVENT_NAMES.items()}

# The guest directory is only ever shown to the owner
OWNER_ONLY_COLLECTIONS = frozenset({'customers'})


def groups_for_role(role):
    if role == 'owner':
        return [TERMINALS_GROUP, OWNERS_GROUP]
    return [TERMINALS_GROUP]


def visible_collections(role):
    return [name for name in EVENT_NAMES if role == 'owner' or name not in OWNER_ONLY_COLLECTIONS]


def broadcast_collections(document, names):
    """
    Send each named collection, whole, to the connected terminals.

    Fire-and-forget: a delivery failure is logged and never reaches the
    request that triggered it.
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning("No channel layer configured, skipping broadcast")
        return

    for name in names:
        group = OWNERS_GROUP if name in OWNER_ONLY_COLLECTIONS else TERMINALS_GROUP
        try:
            async_to_sync(channel_layer.group_send)(
                group,
                {
                    'type': 'ledger.collection',
                    'event': EVENT_NAMES[name],
                    'data': document[name],
                }
            )
            logger.debug(f"Broadcasted {EVENT_NAMES[name]} to {group}")
        except Exception as e:
            logger.error(f"Error broadcasting {name}: {e}")
