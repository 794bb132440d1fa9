"""Loan, product terms and client data the decision engine reads."""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional


class LoanStatus(str, Enum):
    """Statuses the engine reads or writes; the store may hold others."""

    SUBMITTED_AND_PENDING_APPROVAL = "submitted_and_pending_approval"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    ACTIVE = "active"
    CLOSED = "closed"


# Approved loans stay eligible so they can be re-decided.
DECIDABLE_STATUSES = frozenset(
    status.value
    for status in (
        LoanStatus.SUBMITTED_AND_PENDING_APPROVAL,
        LoanStatus.PENDING_APPROVAL,
        LoanStatus.APPROVED,
    )
)


@dataclass(frozen=True)
class ProductTerms:
    """Decisioning thresholds configured on the loan product."""

    min_credit_score: Optional[int] = None
    max_debt_to_income_ratio: Optional[float] = None
    member_years_required: int = 0
    requires_savings_account: bool = False
    credit_committee_approval_required: bool = False
    approval_levels: int = 1
    decisioning_ruleset_id: Optional[str] = None


@dataclass(frozen=True)
class Client:
    id: str
    firstname: Optional[str] = None
    lastname: Optional[str] = None
    date_of_birth: Optional[date] = None
    member_since: Optional[date] = None


@dataclass(frozen=True)
class Loan:
    """A loan application joined with its product terms and client."""

    id: str
    client: Client
    product_id: str
    terms: ProductTerms
    loan_status: str
    principal_amount: float
    loan_officer_id: Optional[str] = None
    credit_score: Optional[int] = None
    credit_check_date: Optional[date] = None
    debt_to_income_ratio: Optional[float] = None
    employment_verified: bool = False
    monthly_income: Optional[float] = None
    monthly_expenses: Optional[float] = None
    member_savings_account_id: Optional[str] = None

    @property
    def accepts_decisions(self) -> bool:
        return self.loan_status in DECIDABLE_STATUSES


@dataclass(frozen=True)
class LoanDocument:
    document_type: str
    status: str
    verification_status: Optional[str]
    is_required: bool

    @property
    def is_verified(self) -> bool:
        return self.verification_status == "verified"
