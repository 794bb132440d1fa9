"""Credit bureau domain exceptions."""

from .base import DomainException


class CreditCheckException(DomainException):
    """Raised when the credit bureau returns an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(
            message=message,
            code="CREDIT_CHECK_ERROR",
        )
        self.status_code = status_code


class CreditCheckTimeoutException(CreditCheckException):
    """Raised when the credit bureau times out."""

    def __init__(self):
        super().__init__(
            message="Credit bureau request timed out",
            status_code=None,
        )
        self.code = "CREDIT_CHECK_TIMEOUT"
