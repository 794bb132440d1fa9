"""
Decisioning Module for the Loan Decision Engine
"""

from .settings import DecisioningSettings, decisioning_settings
from .expression import evaluate_condition, parse, tokenize
from .factors import (
    credit_check_error_factor,
    credit_report_factors,
    credit_score_factor,
    debt_ratio_factor,
    employment_factor,
    evaluate_documents,
    is_credit_score_stale,
    membership_factor,
    membership_years,
    repayment_capacity_factor,
    savings_account_factor,
)
from .rules import (
    RULE_FIELDS,
    build_field_map,
    clamp_score,
    evaluate_rule,
    evaluate_rules,
    rule_action,
    risk_level_for,
)
from .risk_score import FallbackAssessment, calculate_risk_score, score_factors
from .workflow import DECISION_STAGES, loan_status_for_result, stage_for_result

__all__ = [
    # Settings
    "DecisioningSettings",
    "decisioning_settings",
    # Expressions
    "evaluate_condition",
    "parse",
    "tokenize",
    # Factors
    "credit_check_error_factor",
    "credit_report_factors",
    "credit_score_factor",
    "debt_ratio_factor",
    "employment_factor",
    "evaluate_documents",
    "is_credit_score_stale",
    "membership_factor",
    "membership_years",
    "repayment_capacity_factor",
    "savings_account_factor",
    # Rules
    "RULE_FIELDS",
    "build_field_map",
    "clamp_score",
    "evaluate_rule",
    "evaluate_rules",
    "rule_action",
    "risk_level_for",
    # Fallback Scoring
    "FallbackAssessment",
    "calculate_risk_score",
    "score_factors",
    # Workflow
    "DECISION_STAGES",
    "loan_status_for_result",
    "stage_for_result",
]
