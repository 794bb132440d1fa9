"""Credit bureau request and result contract."""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class CreditCheckRequest:
    client_id: str
    request_source: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None

    def to_dict(self) -> dict:
        return {
            "client_id": self.client_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "date_of_birth": (
                self.date_of_birth.isoformat() if self.date_of_birth else None
            ),
            "request_source": self.request_source,
        }


@dataclass(frozen=True)
class CreditCheckResult:
    """
    Immutable credit bureau report summary.

    Attributes:
        credit_score: Bureau score, conventionally 300-850
        score_date: Date the bureau computed the score
        risk_category: Bureau's own risk label (LOW, MEDIUM, HIGH)
        delinquency_status: True if delinquent payments are on file
        active_loans: Number of open credit facilities
        bankruptcy_flag: True if a bankruptcy record exists
        fraud_flag: True if fraud indicators exist
    """

    credit_score: int
    score_date: date
    risk_category: str
    delinquency_status: bool = False
    active_loans: int = 0
    bankruptcy_flag: bool = False
    fraud_flag: bool = False
    total_outstanding: Optional[float] = None
    max_days_in_arrears: Optional[int] = None
    credit_bureau: Optional[str] = None
