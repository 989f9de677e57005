"""Gateway-specific exceptions for error handling."""


class ArchestraError(Exception):
    """Base exception for all Archestra API client operations."""
    pass


class TransportError(ArchestraError):
    """Network or connection failure; no HTTP response was received.

    Attributes:
        method: HTTP method of the failed request
        endpoint: URL of the failed request
    """

    def __init__(self, message: str, method: str = "", endpoint: str = ""):
        self.method = method
        self.endpoint = endpoint
        self.message = message
        super().__init__(f"{method} {endpoint}: {message}" if endpoint else message)


class NotAuthenticatedError(ArchestraError):
    """No API key configured for the client."""
    pass
