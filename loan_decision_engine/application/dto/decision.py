"""Data transfer objects for loan decisioning operations."""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional
from uuid import UUID

from loan_decision_engine.domain.entities import (
    ApprovalCondition,
    DecisionFactor,
    DecisionResult,
    LoanDecision,
    RiskLevel,
)

MIN_RISK_SCORE = 300
MAX_RISK_SCORE = 850


def _risk_score_errors(risk_score: Optional[int]) -> List[str]:
    if risk_score is not None and not MIN_RISK_SCORE <= risk_score <= MAX_RISK_SCORE:
        return [f"risk_score must be between {MIN_RISK_SCORE} and {MAX_RISK_SCORE}"]
    return []


@dataclass(frozen=True)
class LoanAssessmentRequest:
    """Input data for an automated loan assessment."""

    loan_id: str
    assessment_date: date
    include_document_verification: bool = False
    include_employment_verification: bool = False
    include_credit_check: bool = False
    force_reevaluation: bool = False
    actor_id: Optional[str] = None

    def validate(self) -> List[str]:
        errors = []

        if not self.loan_id or not self.loan_id.strip():
            errors.append("loan_id is required")

        return errors


@dataclass(frozen=True)
class LoanAssessmentResponse:
    """Outcome of an automated assessment, or the final decision it found."""

    loan_id: str
    decision_id: str
    result: str
    risk_score: Optional[int]
    risk_level: Optional[str]
    factors: List[dict]
    conditions: List[dict]
    is_final: bool
    next_approval_level: Optional[int]
    assessment_date: str
    assessed_by: Optional[str]
    notes: Optional[str]

    @classmethod
    def from_entity(cls, decision: LoanDecision) -> "LoanAssessmentResponse":
        return cls(
            loan_id=decision.loan_id,
            decision_id=str(decision.id),
            result=decision.decision_result.value,
            risk_score=decision.risk_score,
            risk_level=decision.risk_level.value if decision.risk_level else None,
            factors=[f.to_dict() for f in decision.decision_factors],
            conditions=[c.to_dict() for c in decision.approval_conditions],
            is_final=decision.is_final,
            next_approval_level=decision.next_approval_level,
            assessment_date=decision.decision_timestamp.date().isoformat(),
            assessed_by=decision.decision_by,
            notes=decision.notes,
        )


@dataclass(frozen=True)
class MakeLoanDecisionRequest:
    """Input data for a manual decision at the next approval level."""

    loan_id: str
    decision_result: DecisionResult
    actor_id: Optional[str] = None
    risk_score: Optional[int] = None
    risk_level: Optional[RiskLevel] = None
    factors: List[DecisionFactor] = field(default_factory=list)
    conditions: List[ApprovalCondition] = field(default_factory=list)
    notes: Optional[str] = None
    approval_level: Optional[int] = None
    is_final: Optional[bool] = None
    expiry_date: Optional[date] = None
    manual_override: bool = False
    override_reason: Optional[str] = None

    def validate(self) -> List[str]:
        errors = []

        if not self.loan_id or not self.loan_id.strip():
            errors.append("loan_id is required")

        errors.extend(_risk_score_errors(self.risk_score))

        if self.approval_level is not None and self.approval_level < 1:
            errors.append("approval_level must be at least 1")

        return errors


@dataclass(frozen=True)
class MakeLoanDecisionResponse:
    loan_id: str
    decision_id: str
    result: str
    approval_level: int
    next_approval_level: Optional[int]
    is_final: bool
    previous_decision_id: Optional[str]
    decision_timestamp: str
    decision_by: Optional[str]

    @classmethod
    def from_entity(cls, decision: LoanDecision) -> "MakeLoanDecisionResponse":
        return cls(
            loan_id=decision.loan_id,
            decision_id=str(decision.id),
            result=decision.decision_result.value,
            approval_level=decision.approval_level,
            next_approval_level=decision.next_approval_level,
            is_final=decision.is_final,
            previous_decision_id=(
                str(decision.previous_decision_id)
                if decision.previous_decision_id
                else None
            ),
            decision_timestamp=decision.decision_timestamp.isoformat() + "Z",
            decision_by=decision.decision_by,
        )


@dataclass(frozen=True)
class OverrideLoanDecisionRequest:
    """
    Input data for overriding an existing decision.

    Score, level, factors and conditions left as None are carried over from
    the overridden decision.
    """

    decision_id: UUID
    new_result: DecisionResult
    override_reason: str
    actor_id: Optional[str] = None
    risk_score: Optional[int] = None
    risk_level: Optional[RiskLevel] = None
    factors: Optional[List[DecisionFactor]] = None
    conditions: Optional[List[ApprovalCondition]] = None
    notes: Optional[str] = None

    def validate(self) -> List[str]:
        errors = []

        if not self.override_reason or not self.override_reason.strip():
            errors.append("override_reason is required")

        errors.extend(_risk_score_errors(self.risk_score))

        return errors


@dataclass(frozen=True)
class OverrideLoanDecisionResponse:
    loan_id: str
    decision_id: str
    previous_decision_id: str
    result: str
    approval_level: int
    is_final: bool
    override_reason: Optional[str]
    decision_timestamp: str
    decision_by: Optional[str]

    @classmethod
    def from_entity(cls, decision: LoanDecision) -> "OverrideLoanDecisionResponse":
        return cls(
            loan_id=decision.loan_id,
            decision_id=str(decision.id),
            previous_decision_id=str(decision.previous_decision_id),
            result=decision.decision_result.value,
            approval_level=decision.approval_level,
            is_final=decision.is_final,
            override_reason=decision.override_reason,
            decision_timestamp=decision.decision_timestamp.isoformat() + "Z",
            decision_by=decision.decision_by,
        )


@dataclass(frozen=True)
class LoanDecisionHistoryResponse:
    """A loan's decisions, newest first."""

    loan_id: str
    decisions: List[dict]
    count: int

    @classmethod
    def from_entities(
        cls,
        loan_id: str,
        decisions: List[LoanDecision],
        include_details: bool = True,
    ) -> "LoanDecisionHistoryResponse":
        return cls(
            loan_id=loan_id,
            decisions=[d.to_dict(include_details=include_details) for d in decisions],
            count=len(decisions),
        )
