"""Data Transfer Objects for application layer."""

from .decision import (
    LoanAssessmentRequest,
    LoanAssessmentResponse,
    LoanDecisionHistoryResponse,
    MakeLoanDecisionRequest,
    MakeLoanDecisionResponse,
    OverrideLoanDecisionRequest,
    OverrideLoanDecisionResponse,
)
from .ruleset import EvaluateRulesetRequest, RulesetEvaluationResponse

__all__ = [
    "LoanAssessmentRequest",
    "LoanAssessmentResponse",
    "LoanDecisionHistoryResponse",
    "MakeLoanDecisionRequest",
    "MakeLoanDecisionResponse",
    "OverrideLoanDecisionRequest",
    "OverrideLoanDecisionResponse",
    "EvaluateRulesetRequest",
    "RulesetEvaluationResponse",
]
