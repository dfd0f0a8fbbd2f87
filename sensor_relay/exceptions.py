"""
Sensor Relay Exceptions

Custom exception classes for error handling
"""

from typing import Optional


class RelayError(Exception):
    """Base Sensor Relay exception"""

    def __init__(
        self, message: str, error_code: str = "RELAY000", details: Optional[dict] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary format"""
        return {
            "error_code": self.error_code,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# Handshake errors
class InvalidUpgradeRequest(RelayError):
    """Request is not a valid WebSocket upgrade; no connection is created"""

    def __init__(self, message: str = "Expected websocket", details: dict = None):
        super().__init__(message, "UPG001", details)


# Connection errors
class DuplicateConnection(RelayError):
    """A connection with the same id is already registered"""

    def __init__(self, connection_id: str, details: dict = None):
        super().__init__(
            f"Connection {connection_id} already registered", "CONN001", details
        )
        self.connection_id = connection_id


class TransportError(RelayError):
    """Transport failure on a single connection"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "CONN002", details)


# Message errors
class MalformedMessage(RelayError):
    """Inbound frame could not be parsed as a JSON object"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, "MSG001", details)


class SendSkipped(RelayError):
    """Outbound message dropped for one target (queue full or not open)"""

    def __init__(self, message: str = "Send skipped", details: dict = None):
        super().__init__(message, "MSG002", details)
