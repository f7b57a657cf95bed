# apps/ledger/store.py - single shared document holding the whole ledger
import copy
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path

from django.conf import settings

from apps.rooms.lifecycle import blank_room
from .exceptions import PersistenceFailure

logger = logging.getLogger(__name__)

COLLECTIONS = ('rooms', 'payments', 'customers', 'notifications')

_stores = {}
_stores_lock = threading.Lock()


def empty_payments():
    return {'cash': 0, 'upi': 0, 'dayRevenue': 0, 'monthRevenue': 0, 'lastUpdated': None}


def seed_document(room_count=None, default_rate=None):
    """Build a fresh document with one room record per physical room"""
    if room_count is None:
        room_count = settings.LEDGER_ROOM_COUNT
    if default_rate is None:
        default_rate = settings.LEDGER_DEFAULT_RATE
    return {
        'rooms': [blank_room(room_id, default_rate) for room_id in range(1, room_count + 1)],
        'payments': empty_payments(),
        'customers': [],
        'notifications': [],
        'paymentRequests': [],
    }


class LedgerStore:
    """
    Authoritative ledger document backed by a JSON file.

    Every mutation goes through :meth:`transaction`, which holds the store's
    lock across the whole read -> mutate -> write cycle so two requests can
    never interleave on a stale read.
    """

    def __init__(self, path):
        self.path = Path(path)
        self.lock = threading.RLock()

    def _load(self):
        if not self.path.exists():
            logger.info(f"Ledger file {self.path} missing, seeding a new document")
            return seed_document()
        try:
            with open(self.path, encoding='utf-8') as fh:
                document = json.load(fh)
        except (OSError, ValueError) as e:
            logger.warning(f"Ledger file {self.path} unreadable ({e}), seeding a new document")
            return seed_document()
        if not isinstance(document, dict):
            logger.warning(f"Ledger file {self.path} does not hold an object, seeding a new document")
            return seed_document()
        return self._normalize(document)

    def _normalize(self, document):
        if not isinstance(document.get('rooms'), list) or not document['rooms']:
            document['rooms'] = seed_document()['rooms']
        payments = document.get('payments')
        if not isinstance(payments, dict):
            payments = {}
        document['payments'] = {**empty_payments(), **payments}
        for key in ('customers', 'notifications', 'paymentRequests'):
            if not isinstance(document.get(key), list):
                document[key] = []
        return document

    def _write(self, document):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix='.ledger-', suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(document, fh, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def snapshot(self):
        """Return a private deep copy of the whole document"""
        with self.lock:
            return copy.deepcopy(self._load())

    def collection(self, name):
        if name not in COLLECTIONS:
            raise KeyError(name)
        return self.snapshot()[name]

    @contextmanager
    def transaction(self):
        """
        Yield the document for in-memory mutation and write it back on exit.

        If the body raises, nothing is written. If the write itself fails,
        :class:`PersistenceFailure` is raised carrying the mutated document.
        """
        with self.lock:
            document = self._load()
            yield document
            try:
                self._write(document)
            except (OSError, TypeError, ValueError) as e:
                logger.error(f"Ledger write to {self.path} failed: {e}")
                raise PersistenceFailure(f"Ledger write failed: {e}", document=document) from e


def get_ledger():
    """Return the shared store for the configured data file"""
    path = os.path.abspath(settings.LEDGER_DATA_FILE)
    with _stores_lock:
        store = _stores.get(path)
        if store is None:
            store = _stores[path] = LedgerStore(path)
        return store
