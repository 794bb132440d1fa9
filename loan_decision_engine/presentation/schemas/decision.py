"""Decision-related Pydantic schemas."""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from loan_decision_engine.application.dto.decision import MAX_RISK_SCORE, MIN_RISK_SCORE
from loan_decision_engine.domain.entities import (
    ApprovalCondition,
    DecisionFactor,
    DecisionFactorType,
    DecisionResult,
    FactorImpact,
    RiskLevel,
)


class DecisionFactorSchema(BaseModel):
    """A single signal that contributed to a decision."""

    type: DecisionFactorType = Field(..., examples=["CREDIT_SCORE"])
    name: str = Field(..., min_length=1, examples=["credit_score"])
    value: Any = Field(None, description="Observed value", examples=[710])
    impact: FactorImpact = Field(..., examples=["positive"])
    details: str = Field("", examples=["Credit score meets minimum requirement of 650"])
    threshold: Optional[float] = Field(None, examples=[650])
    weight: Optional[float] = None

    def to_entity(self) -> DecisionFactor:
        return DecisionFactor(
            type=self.type,
            name=self.name,
            value=self.value,
            impact=self.impact,
            details=self.details,
            threshold=self.threshold,
            weight=self.weight,
        )


class ApprovalConditionRequestSchema(BaseModel):
    """A condition attached to a manual decision."""

    description: str = Field(..., min_length=1, examples=["Provide six months of payslips"])
    type: str = Field(..., min_length=1, examples=["DOCUMENT"])
    required_by: date = Field(..., examples=["2025-10-01"])
    is_mandatory: bool = True
    notes: Optional[str] = None

    def to_entity(self) -> ApprovalCondition:
        return ApprovalCondition(
            description=self.description,
            type=self.type,
            required_by=self.required_by,
            is_mandatory=self.is_mandatory,
            notes=self.notes,
        )


class ApprovalConditionSchema(BaseModel):
    """A condition as stored on a decision."""

    id: str
    description: str
    type: str
    required_by: date
    is_mandatory: bool
    status: str = Field(..., examples=["pending"])
    satisfied_date: Optional[date] = None
    satisfied_by: Optional[str] = None
    notes: Optional[str] = None


# =============================================================================
# Assessment
# =============================================================================


class LoanAssessmentRequestSchema(BaseModel):
    """Schema for POST /v1/loans/{loan_id}/assessment request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "assessment_date": "2025-09-17",
                    "include_document_verification": True,
                    "include_employment_verification": True,
                    "include_credit_check": True,
                    "force_reevaluation": False,
                }
            ]
        }
    )

    assessment_date: Optional[date] = Field(
        None,
        description="Date the assessment is performed on (defaults to today)",
    )
    include_document_verification: bool = False
    include_employment_verification: bool = False
    include_credit_check: bool = False
    force_reevaluation: bool = Field(
        False,
        description="Reassess even when a final decision already exists",
    )


class LoanAssessmentResponseSchema(BaseModel):
    """Schema for POST /v1/loans/{loan_id}/assessment response body."""

    loan_id: str
    decision_id: str
    result: DecisionResult
    risk_score: Optional[int] = Field(None, examples=[735])
    risk_level: Optional[RiskLevel] = None
    factors: list[DecisionFactorSchema]
    conditions: list[ApprovalConditionSchema]
    is_final: bool
    next_approval_level: Optional[int] = None
    assessment_date: str = Field(..., examples=["2025-09-17"])
    assessed_by: Optional[str] = None
    notes: Optional[str] = None


# =============================================================================
# Manual decision
# =============================================================================


class MakeLoanDecisionRequestSchema(BaseModel):
    """Schema for POST /v1/loans/{loan_id}/decisions request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "decision_result": "APPROVED",
                    "risk_score": 720,
                    "risk_level": "LOW",
                    "notes": "Committee approved",
                }
            ]
        }
    )

    decision_result: DecisionResult
    risk_score: Optional[int] = Field(None, ge=MIN_RISK_SCORE, le=MAX_RISK_SCORE)
    risk_level: Optional[RiskLevel] = None
    factors: list[DecisionFactorSchema] = Field(default_factory=list)
    conditions: list[ApprovalConditionRequestSchema] = Field(default_factory=list)
    notes: Optional[str] = None
    approval_level: Optional[int] = Field(
        None,
        ge=1,
        description="Must be the level after the current decision's, when given",
    )
    is_final: Optional[bool] = Field(
        None,
        description="Defaults to whether the product's last approval level is reached",
    )
    expiry_date: Optional[date] = None
    manual_override: bool = False
    override_reason: Optional[str] = None


class MakeLoanDecisionResponseSchema(BaseModel):
    """Schema for POST /v1/loans/{loan_id}/decisions response body."""

    loan_id: str
    decision_id: str
    result: DecisionResult
    approval_level: int
    next_approval_level: Optional[int] = None
    is_final: bool
    previous_decision_id: Optional[str] = None
    decision_timestamp: str = Field(..., examples=["2025-09-17T12:00:00Z"])
    decision_by: Optional[str] = None


# =============================================================================
# Override
# =============================================================================


class OverrideDecisionRequestSchema(BaseModel):
    """Schema for POST /v1/decisions/{decision_id}/override request body."""

    new_result: DecisionResult
    override_reason: str = Field(..., min_length=1, max_length=2000)
    risk_score: Optional[int] = Field(None, ge=MIN_RISK_SCORE, le=MAX_RISK_SCORE)
    risk_level: Optional[RiskLevel] = None
    factors: Optional[list[DecisionFactorSchema]] = Field(
        None,
        description="Replaces the overridden decision's factors when given",
    )
    conditions: Optional[list[ApprovalConditionRequestSchema]] = Field(
        None,
        description="Replaces the overridden decision's conditions when given",
    )
    notes: Optional[str] = None

    @field_validator("override_reason")
    @classmethod
    def validate_override_reason(cls, v: str) -> str:
        """Ensure override_reason is not just whitespace."""
        if not v.strip():
            raise ValueError("override_reason cannot be empty or whitespace")
        return v.strip()


class OverrideDecisionResponseSchema(BaseModel):
    """Schema for POST /v1/decisions/{decision_id}/override response body."""

    loan_id: str
    decision_id: str
    previous_decision_id: str
    result: DecisionResult
    approval_level: int
    is_final: bool
    override_reason: Optional[str] = None
    decision_timestamp: str
    decision_by: Optional[str] = None


# =============================================================================
# History
# =============================================================================


class DecisionRecordSchema(BaseModel):
    """One decision in a loan's history."""

    id: str
    loan_id: str
    decision_timestamp: str
    decision_result: DecisionResult
    decision_source: str
    decision_by: Optional[str] = None
    risk_score: Optional[int] = None
    risk_level: Optional[RiskLevel] = None
    notes: Optional[str] = None
    approval_level: int
    next_approval_level: Optional[int] = None
    is_final: bool
    expiry_date: Optional[date] = None
    manual_override: bool
    override_reason: Optional[str] = None
    previous_decision_id: Optional[str] = None
    decision_factors: Optional[list[DecisionFactorSchema]] = Field(
        None,
        description="Omitted unless include_details is set",
    )
    approval_conditions: Optional[list[ApprovalConditionSchema]] = Field(
        None,
        description="Omitted unless include_details is set",
    )


class DecisionHistoryResponseSchema(BaseModel):
    """Schema for GET /v1/loans/{loan_id}/decisions response."""

    loan_id: str
    decisions: list[DecisionRecordSchema] = Field(
        ...,
        description="Decisions recorded for the loan, newest first",
    )
    count: int = Field(..., ge=0)
