"""Loan decision entities: outcomes, factors, conditions and the decision record."""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, List, Optional
from uuid import UUID, uuid4


class DecisionResult(str, Enum):
    """Outcome of a decisioning event."""

    APPROVED = "APPROVED"
    CONDITIONALLY_APPROVED = "CONDITIONALLY_APPROVED"
    DECLINED = "DECLINED"
    MANUAL_REVIEW = "MANUAL_REVIEW"

    @property
    def restrictiveness(self) -> int:
        """Rank in the total order used to combine outcomes (higher wins)."""
        return _RESTRICTIVENESS[self]

    @classmethod
    def most_restrictive(cls, *results: "DecisionResult") -> "DecisionResult":
        """Return the strongest of the given outcomes, APPROVED if none."""
        return max(results, key=lambda r: r.restrictiveness, default=cls.APPROVED)


_RESTRICTIVENESS = {
    DecisionResult.APPROVED: 0,
    DecisionResult.CONDITIONALLY_APPROVED: 1,
    DecisionResult.MANUAL_REVIEW: 2,
    DecisionResult.DECLINED: 3,
}


class DecisionSource(str, Enum):
    AUTOMATED = "automated"
    MANUAL = "manual"
    HYBRID = "hybrid"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class DecisionFactorType(str, Enum):
    CREDIT_SCORE = "CREDIT_SCORE"
    INCOME = "INCOME"
    DEBT_RATIO = "DEBT_RATIO"
    EMPLOYMENT = "EMPLOYMENT"
    COLLATERAL = "COLLATERAL"
    SAVINGS_HISTORY = "SAVINGS_HISTORY"
    REPAYMENT_CAPACITY = "REPAYMENT_CAPACITY"
    CUSTOM = "CUSTOM"


class FactorImpact(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class ConditionStatus(str, Enum):
    PENDING = "pending"
    MET = "met"
    WAIVED = "waived"


@dataclass(frozen=True)
class DecisionFactor:
    """
    A single named signal feeding into a decision.

    Factors are snapshotted onto the decision record for audit; later
    decisions recompute them rather than referencing earlier snapshots.
    """

    type: DecisionFactorType
    name: str
    value: Any
    impact: FactorImpact
    details: str = ""
    threshold: Optional[float] = None
    weight: Optional[float] = None

    @property
    def is_negative(self) -> bool:
        return self.impact == FactorImpact.NEGATIVE

    def to_dict(self) -> dict:
        data = {
            "type": self.type.value,
            "name": self.name,
            "value": self.value,
            "impact": self.impact.value,
            "details": self.details,
        }
        if self.threshold is not None:
            data["threshold"] = self.threshold
        if self.weight is not None:
            data["weight"] = self.weight
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DecisionFactor":
        return cls(
            type=DecisionFactorType(data["type"]),
            name=data["name"],
            value=data.get("value"),
            impact=FactorImpact(data["impact"]),
            details=data.get("details", ""),
            threshold=data.get("threshold"),
            weight=data.get("weight"),
        )


@dataclass(frozen=True)
class ApprovalCondition:
    """A requirement attached to a conditional approval."""

    description: str
    type: str
    required_by: date
    is_mandatory: bool = True
    status: ConditionStatus = ConditionStatus.PENDING
    id: UUID = field(default_factory=uuid4)
    satisfied_date: Optional[date] = None
    satisfied_by: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def pending(
        cls,
        description: str,
        type: str,
        due_in_days: int,
        today: Optional[date] = None,
    ) -> "ApprovalCondition":
        """Create a mandatory pending condition due ``due_in_days`` from today."""
        start = today or date.today()
        return cls(
            description=description,
            type=type,
            required_by=start + timedelta(days=due_in_days),
        )

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "description": self.description,
            "type": self.type,
            "required_by": self.required_by.isoformat(),
            "is_mandatory": self.is_mandatory,
            "status": self.status.value,
            "satisfied_date": (
                self.satisfied_date.isoformat() if self.satisfied_date else None
            ),
            "satisfied_by": self.satisfied_by,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ApprovalCondition":
        satisfied = data.get("satisfied_date")
        return cls(
            id=UUID(data["id"]) if data.get("id") else uuid4(),
            description=data["description"],
            type=data["type"],
            required_by=date.fromisoformat(data["required_by"]),
            is_mandatory=data.get("is_mandatory", True),
            status=ConditionStatus(data.get("status", ConditionStatus.PENDING.value)),
            satisfied_date=date.fromisoformat(satisfied) if satisfied else None,
            satisfied_by=data.get("satisfied_by"),
            notes=data.get("notes"),
        )


@dataclass(frozen=True)
class LoanDecision:
    """
    Immutable record of one decisioning event for a loan.

    Decisions for a loan form a linked chain through ``previous_decision_id``.
    An override never mutates the record it supersedes; it appends a new,
    always-final decision pointing back at it.
    """

    loan_id: str
    decision_result: DecisionResult
    decision_source: DecisionSource
    approval_level: int = 1
    is_final: bool = False
    risk_score: Optional[int] = None
    risk_level: Optional[RiskLevel] = None
    decision_factors: List[DecisionFactor] = field(default_factory=list)
    approval_conditions: List[ApprovalCondition] = field(default_factory=list)
    next_approval_level: Optional[int] = None
    manual_override: bool = False
    override_reason: Optional[str] = None
    expiry_date: Optional[date] = None
    previous_decision_id: Optional[UUID] = None
    decision_by: Optional[str] = None
    notes: Optional[str] = None
    id: UUID = field(default_factory=uuid4)
    decision_timestamp: datetime = field(default_factory=datetime.utcnow)
    is_current: bool = True

    def to_dict(self, include_details: bool = True) -> dict:
        """Convert to dictionary for serialization."""
        data = {
            "id": str(self.id),
            "loan_id": self.loan_id,
            "decision_timestamp": self.decision_timestamp.isoformat() + "Z",
            "decision_result": self.decision_result.value,
            "decision_source": self.decision_source.value,
            "decision_by": self.decision_by,
            "risk_score": self.risk_score,
            "risk_level": self.risk_level.value if self.risk_level else None,
            "notes": self.notes,
            "approval_level": self.approval_level,
            "next_approval_level": self.next_approval_level,
            "is_final": self.is_final,
            "expiry_date": self.expiry_date.isoformat() if self.expiry_date else None,
            "manual_override": self.manual_override,
            "override_reason": self.override_reason,
            "previous_decision_id": (
                str(self.previous_decision_id) if self.previous_decision_id else None
            ),
        }
        if include_details:
            data["decision_factors"] = [f.to_dict() for f in self.decision_factors]
            data["approval_conditions"] = [
                c.to_dict() for c in self.approval_conditions
            ]
        return data
