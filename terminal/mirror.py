# terminal/mirror.py - durable per-terminal copy of the four collections
import json
import logging
import os
import tempfile
from pathlib import Path

from apps.rooms.lifecycle import blank_room

logger = logging.getLogger(__name__)

# collection -> key in the mirror file
STORAGE_KEYS = {
    'rooms': 'hotelRooms',
    'payments': 'hotelPayments',
    'customers': 'hotelCustomersDB',
    'notifications': 'hotelNotifications',
}
SESSION_KEYS = ('authToken', 'userRole')

DEFAULTS = {
    'rooms': list,
    'payments': dict,
    'customers': list,
    'notifications': list,
}


class LocalMirror:
    """
    Key/value mirror file read at startup and rewritten after every change.

    ``data`` is shaped like the server document (``rooms``, ``payments``,
    ``customers``, ``notifications``) so the shared engines run on it as-is.
    """

    def __init__(self, path, room_count=29, default_rate=1500):
        self.path = Path(path)
        self.room_count = room_count
        self.default_rate = default_rate
        self.data = {name: factory() for name, factory in DEFAULTS.items()}
        self.session = {key: '' for key in SESSION_KEYS}

    def load(self):
        raw = {}
        if self.path.exists():
            try:
                with open(self.path, encoding='utf-8') as fh:
                    raw = json.load(fh)
            except (OSError, ValueError) as e:
                logger.warning(f"Mirror {self.path} unreadable ({e}), starting empty")
                raw = {}
        if not isinstance(raw, dict):
            raw = {}

        for name, key in STORAGE_KEYS.items():
            value = raw.get(key)
            expected = DEFAULTS[name]
            self.data[name] = value if isinstance(value, expected) else expected()
        for key in SESSION_KEYS:
            self.session[key] = raw.get(key) or ''

        if not self.data['rooms']:
            self.data['rooms'] = [blank_room(i, self.default_rate) for i in range(1, self.room_count + 1)]
            self.save()
        return self

    def save(self):
        payload = {key: self.data[name] for name, key in STORAGE_KEYS.items()}
        payload.update({key: value for key, value in self.session.items() if value})
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix='.mirror-', suffix='.json')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as fh:
                json.dump(payload, fh, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            logger.error(f"Could not write mirror {self.path}: {e}")

    def set_session(self, token, role):
        self.session = {'authToken': token or '', 'userRole': role or ''}
        self.save()

    def clear_session(self):
        self.set_session('', '')
