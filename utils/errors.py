"""
Custom exception classes for the VAC bot.

These provide a hierarchy of typed exceptions for better error handling.
"""


class BotError(Exception):
    """Base exception for bot-related errors."""

    pass


class DatabaseError(BotError):
    """Exception raised for database-related errors."""

    pass


class RegistryError(DatabaseError):
    """Raised when the VAC registry cannot be read or written."""

    pass


class ServiceError(BotError):
    """Exception raised for service-related errors."""

    pass


class RemoteCallError(ServiceError):
    """
    Raised when a gateway call (create, delete, move, occupancy) fails.

    The original discord.py exception, if any, is chained as ``__cause__``.
    """

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation
