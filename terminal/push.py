# terminal/push.py - listens on the ledger push channel
import json
import logging
import threading

import websocket

from . import config

logger = logging.getLogger(__name__)

CLOSE_UNAUTHORIZED = 4401


class PushListener:
    """
    Keeps one websocket open to the server and feeds every collection frame
    into ``TerminalCache.apply_broadcast``.
    """

    def __init__(self, cache, url=None, reconnect_delay=5):
        self.cache = cache
        self.url = url or config.websocket_url(cache.api.base_url)
        self.reconnect_delay = reconnect_delay
        self.app = None
        self._thread = None

    def handle_message(self, message):
        try:
            frame = json.loads(message)
        except ValueError as e:
            logger.error(f"Invalid JSON received: {e}")
            return False
        if not isinstance(frame, dict) or 'event' not in frame:
            logger.debug(f"Ignoring frame without event: {frame}")
            return False
        return self.cache.apply_broadcast(frame['event'], frame.get('data'))

    def _on_message(self, ws, message):
        self.handle_message(message)

    def _on_error(self, ws, error):
        logger.warning(f"Push channel error: {error}")

    def _on_close(self, ws, close_status_code, close_msg):
        logger.info(f"Push channel closed: {close_status_code} {close_msg or ''}".strip())
        if close_status_code == CLOSE_UNAUTHORIZED:
            self.cache.logout()
            self.stop()

    def start(self):
        if not self.cache.api.token:
            raise RuntimeError("Log in before opening the push channel")
        self.app = websocket.WebSocketApp(
            self.url,
            header=[f"Authorization: Bearer {self.cache.api.token}"],
            on_message=self._on_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )
        self._thread = threading.Thread(
            target=self.app.run_forever,
            kwargs={'reconnect': self.reconnect_delay},
            daemon=True,
        )
        self._thread.start()
        logger.info(f"Push channel listening on {self.url}")

    def stop(self):
        if self.app is not None:
            self.app.keep_running = False
            self.app.close()
