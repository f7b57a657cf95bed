# apps/ledger/services.py - one authoritative mutation plus its broadcast
import logging

from apps.realtime.broadcast import broadcast_collections
from .exceptions import PersistenceFailure
from .store import get_ledger

logger = logging.getLogger(__name__)


def commit_mutation(mutation):
    """
    Run ``mutation(document)`` as one read-modify-write cycle and push the
    collections it reports as changed.

    ``mutation`` returns ``(result, changed_collection_names)``. The store lock
    is held until the broadcast is queued, so each terminal sees a collection's
    versions in the order they were written. A failed write still broadcasts
    the in-memory result before :class:`PersistenceFailure` propagates.
    """
    store = get_ledger()
    changed = []
    with store.lock:
        try:
            with store.transaction() as document:
                result, changed = mutation(document)
        except PersistenceFailure as e:
            logger.error(f"Broadcasting unsaved ledger state after write failure: {e}")
            broadcast_collections(e.document, changed)
            raise
        broadcast_collections(document, changed)
    return result
