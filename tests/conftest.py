import copy

import pytest
from rest_framework.test import APIClient

from apps.users.models import CustomUser


@pytest.fixture(autouse=True)
def ledger_file(settings, tmp_path):
    settings.LEDGER_DATA_FILE = str(tmp_path / 'data.json')
    settings.LEDGER_ROOM_COUNT = 10
    settings.LEDGER_DEFAULT_RATE = 1500
    return tmp_path / 'data.json'


@pytest.fixture
def broadcasts(monkeypatch):
    """Record every collection push instead of sending it to the channel layer"""
    sent = []

    def record(document, names):
        for name in names:
            sent.append((name, copy.deepcopy(document[name])))

    monkeypatch.setattr('apps.ledger.services.broadcast_collections', record)
    return sent


def _client_for(role):
    client = APIClient()
    client.force_authenticate(user=CustomUser(email=f"{role}@hotel.test", role=role))
    return client


@pytest.fixture
def owner_client():
    return _client_for(CustomUser.OWNER)


@pytest.fixture
def manager_client():
    return _client_for(CustomUser.MANAGER)


@pytest.fixture
def anon_client():
    return APIClient()
