class ClientError(Exception):
    """Base class for everything the client raises."""

    def __init__(self, message, status_code=None, details=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details


class TransportError(ClientError):
    """The server could not be reached (timeout, refused connection, DNS)."""


class AuthenticationRequired(ClientError):
    """401: the stored token was cleared and the user must log in again."""


class RequestRejected(ClientError):
    """A 4xx answer; `message` is the server's own text."""


class NotFound(RequestRejected):
    pass


class ServerError(ClientError):
    pass
