# terminal/exceptions.py
class TerminalError(Exception):
    """Base class for failures talking to the ledger server"""


class NetworkUnavailable(TerminalError):
    """The server could not be reached at all"""


class Unauthorized(TerminalError):
    """Missing, expired or invalid bearer credential"""


class Forbidden(TerminalError):
    """The credential is valid but its role may not do this"""


class NotFound(TerminalError):
    pass


class RequestFailed(TerminalError):
    def __init__(self, status_code, detail=''):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Server answered {status_code}: {detail}")
