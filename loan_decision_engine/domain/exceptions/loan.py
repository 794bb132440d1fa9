"""Loan-related domain exceptions."""

from .base import DomainException


class LoanNotFoundException(DomainException):
    """Raised when a loan cannot be found."""

    def __init__(self, loan_id: str):
        super().__init__(
            message=f"Loan not found: {loan_id}",
            code="LOAN_NOT_FOUND",
        )
        self.loan_id = loan_id


class InvalidLoanStatusException(DomainException):
    """Raised when a loan's status does not allow decisioning."""

    def __init__(self, loan_id: str, status: str):
        super().__init__(
            message=f"Cannot make decision for loan {loan_id} with status {status}",
            code="INVALID_LOAN_STATUS",
        )
        self.loan_id = loan_id
        self.status = status
