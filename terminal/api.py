# terminal/api.py - REST calls from a front-desk terminal to the ledger server
import logging

import requests

from . import config
from .exceptions import Forbidden, NetworkUnavailable, NotFound, RequestFailed, Unauthorized

logger = logging.getLogger(__name__)


class LedgerApiClient:
    def __init__(self, base_url=None, token=None, timeout=None, session=None):
        self.base_url = (base_url or config.API_BASE).rstrip('/')
        self.token = token
        self.timeout = timeout if timeout is not None else config.HTTP_TIMEOUT
        self.session = session or requests.Session()

    def _headers(self):
        headers = {'Content-Type': 'application/json'}
        if self.token:
            headers['Authorization'] = f"Bearer {self.token}"
        return headers

    def _request(self, method, path, payload=None):
        url = f"{self.base_url}/api/{path}"
        try:
            response = self.session.request(
                method, url, json=payload, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkUnavailable(str(e)) from e

        if response.status_code == 401:
            raise Unauthorized(response.text)
        if response.status_code == 403:
            raise Forbidden(response.text)
        if response.status_code == 404:
            raise NotFound(response.text)
        if not response.ok:
            raise RequestFailed(response.status_code, response.text)
        try:
            return response.json()
        except ValueError as e:
            raise RequestFailed(response.status_code, f"Invalid JSON body: {e}") from e

    def login(self, email, password):
        return self._request('POST', 'auth/token/', {'email': email, 'password': password})

    def fetch(self, collection):
        return self._request('GET', f"{collection}/")

    def update_room(self, room_id, changes):
        return self._request('PUT', f"rooms/{room_id}/", changes)

    def record_payment(self, amount, mode, room_id=None, request_id=None):
        payload = {'amount': amount, 'mode': mode}
        if room_id is not None:
            payload['roomId'] = room_id
        if request_id:
            payload['requestId'] = request_id
        return self._request('POST', 'payments/', payload)

    def upsert_customer(self, fragment):
        return self._request('POST', 'customers/', fragment)

    def add_notification(self, message):
        return self._request('POST', 'notifications/', {'message': message})

    def mark_notifications_read(self):
        return self._request('POST', 'notifications/read/')

    def clear_notifications(self):
        return self._request('DELETE', 'notifications/')
