"""Authorization domain exceptions."""

from .base import DomainException


class UnauthorizedException(DomainException):
    """Raised when an operation requires an acting user and none was given."""

    def __init__(self, message: str = "User ID is required"):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
        )
