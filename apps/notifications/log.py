# apps/notifications/log.py
import uuid

from django.utils import timezone


def append_notification(document, message, now=None):
    entry = {
        'id': uuid.uuid4().hex,
        'message': str(message or '').strip(),
        'timestamp': (now or timezone.now()).isoformat(),
        'read': False,
    }
    document.setdefault('notifications', []).append(entry)
    return entry


def mark_all_read(document):
    notifications = document.setdefault('notifications', [])
    for entry in notifications:
        entry['read'] = True
    return notifications


def clear_notifications(document):
    document['notifications'] = []
    return document['notifications']
