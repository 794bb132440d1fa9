"""Pydantic schemas for API request/response validation."""

from .decision import (
    ApprovalConditionRequestSchema,
    ApprovalConditionSchema,
    DecisionFactorSchema,
    DecisionHistoryResponseSchema,
    DecisionRecordSchema,
    LoanAssessmentRequestSchema,
    LoanAssessmentResponseSchema,
    MakeLoanDecisionRequestSchema,
    MakeLoanDecisionResponseSchema,
    OverrideDecisionRequestSchema,
    OverrideDecisionResponseSchema,
)
from .ruleset import (
    EvaluateRulesetRequestSchema,
    RulesetEvaluationResponseSchema,
    TriggeredRuleSchema,
)
from .error import ErrorResponseSchema

__all__ = [
    "ApprovalConditionRequestSchema",
    "ApprovalConditionSchema",
    "DecisionFactorSchema",
    "DecisionHistoryResponseSchema",
    "DecisionRecordSchema",
    "LoanAssessmentRequestSchema",
    "LoanAssessmentResponseSchema",
    "MakeLoanDecisionRequestSchema",
    "MakeLoanDecisionResponseSchema",
    "OverrideDecisionRequestSchema",
    "OverrideDecisionResponseSchema",
    "EvaluateRulesetRequestSchema",
    "RulesetEvaluationResponseSchema",
    "TriggeredRuleSchema",
    "ErrorResponseSchema",
]
