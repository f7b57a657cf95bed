# apps/ledger/exceptions.py
class LedgerError(Exception):
    """Base class for ledger failures"""


class RoomNotFound(LedgerError):
    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class PersistenceFailure(LedgerError):
    """
    The document could not be written back to disk.

    ``document`` holds the in-memory result of the mutation so callers can
    still push it to connected terminals before reporting the failure.
    """

    def __init__(self, message, document=None):
        self.document = document
        super().__init__(message)
