"""
Ruleset Evaluation for the Loan Decision Engine.

A ruleset is evaluated by running each active rule's condition, in ascending
priority order, against a flat field map built from the loan data. Triggered
rules are aggregated into a single outcome:

- Score starts at the base score (700) and every triggered rule adds its
  signed adjustment
- The outcome is the most restrictive action triggered, using the total
  order DECLINED > MANUAL_REVIEW > CONDITIONALLY_APPROVED > APPROVED
- A conditional-approval rule attaches an approval condition, but only
  when nothing stronger than a conditional approval has been reached yet

A rule whose definition, condition or action cannot be used is logged,
counted and treated as not triggered. It never fails the ruleset.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Iterable, List, Mapping, Optional

import structlog

from loan_decision_engine.core.metrics import (
    record_rule_evaluation_failure,
    record_rule_triggered,
)
from loan_decision_engine.domain.entities import (
    ApprovalCondition,
    DecisionResult,
    DecisioningRule,
    RiskLevel,
    RuleAction,
    RulesetEvaluation,
    TriggeredRule,
)
from loan_decision_engine.domain.exceptions import RuleEvaluationException

from .expression import evaluate_condition
from .settings import DecisioningSettings, decisioning_settings

logger = structlog.get_logger(__name__)


# Rule field token -> key in the loan data passed to the evaluator
RULE_FIELDS = {
    "credit_score": "credit_score",
    "debt_to_income_ratio": "debt_to_income_ratio",
    "member_years": "member_years",
    "employment_verified": "employment_verified",
    "loan_amount": "principal_amount",
    "document_verification_complete": "document_verification_complete",
    "document_verification_passed": "document_verification_passed",
}


def _as_literal(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


def build_field_map(loan_data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Build the field map rule conditions are evaluated against.

    Every recognized field is always present; values missing from the loan
    data map to None and behave as ``null`` in conditions.
    """
    return {
        field_name: _as_literal(loan_data.get(key))
        for field_name, key in RULE_FIELDS.items()
    }


def clamp_score(score: float, settings: DecisioningSettings = decisioning_settings) -> int:
    """Round a score and clamp it to the configured bounds."""
    return max(settings.min_risk_score, min(settings.max_risk_score, int(round(score))))


def risk_level_for(score: int, settings: DecisioningSettings = decisioning_settings) -> RiskLevel:
    """
    Map a risk score to a discrete risk level.

    Default bands:
        >= 720: LOW
        <  620: HIGH
        otherwise MEDIUM
    """
    if score >= settings.low_risk_threshold:
        return RiskLevel.LOW
    if score < settings.high_risk_threshold:
        return RiskLevel.HIGH
    return RiskLevel.MEDIUM


def _rule_failed(rule: DecisioningRule, error: str) -> bool:
    logger.error(
        "rule_evaluation_failed",
        rule_id=rule.id,
        rule_name=rule.rule_name,
        ruleset_id=rule.ruleset_id,
        error=error,
    )
    record_rule_evaluation_failure(rule.ruleset_id)
    return False


def evaluate_rule(rule: DecisioningRule, fields: Mapping[str, Any]) -> bool:
    """
    Evaluate one rule's condition.

    Returns False for rules without a condition and for definitions or
    conditions that fail to parse or evaluate.
    """
    try:
        condition = rule.condition
        if condition is None:
            logger.warning(
                "rule_condition_missing",
                rule_id=rule.id,
                rule_name=rule.rule_name,
            )
            return False

        return evaluate_condition(condition, fields)
    except RuleEvaluationException as e:
        return _rule_failed(rule, e.message)
    except (AttributeError, TypeError) as e:
        return _rule_failed(rule, f"Malformed rule definition: {e}")


def rule_action(rule: DecisioningRule) -> Optional[RuleAction]:
    """The rule's action, or None when it is not one the engine knows."""
    try:
        return RuleAction(rule.action_on_trigger)
    except ValueError:
        _rule_failed(rule, f"Unknown action: {rule.action_on_trigger}")
        return None


def evaluate_rules(
    ruleset_id: str,
    rules: Iterable[DecisioningRule],
    loan_data: Mapping[str, Any],
    settings: DecisioningSettings = decisioning_settings,
    today: Optional[date] = None,
) -> RulesetEvaluation:
    """
    Evaluate a ruleset's rules against loan data and aggregate the outcome.

    Args:
        ruleset_id: The ruleset the rules belong to
        rules: The ruleset's rules; inactive rules are skipped
        loan_data: Loan values keyed as in RULE_FIELDS
        settings: Decisioning settings (uses defaults if not provided)
        today: Date conditions are due from (defaults to today)

    Returns:
        RulesetEvaluation with the clamped score and its risk level
    """
    fields = build_field_map(loan_data)
    ordered = sorted((r for r in rules if r.is_active), key=lambda r: r.priority)

    result = DecisionResult.APPROVED
    score = settings.base_risk_score
    triggered: List[TriggeredRule] = []
    conditions: List[ApprovalCondition] = []

    for rule in ordered:
        action = rule_action(rule)
        if action is None or not evaluate_rule(rule, fields):
            continue

        score += rule.risk_score_adjustment
        triggered.append(
            TriggeredRule(
                rule_id=rule.id,
                rule_name=rule.rule_name,
                action=action,
                risk_score_adjustment=rule.risk_score_adjustment,
            )
        )
        record_rule_triggered(action.value)

        if (
            action == RuleAction.CONDITIONAL_APPROVAL
            and result.restrictiveness <= DecisionResult.CONDITIONALLY_APPROVED.restrictiveness
        ):
            conditions.append(
                ApprovalCondition.pending(
                    description=f"Condition from rule: {rule.rule_name}",
                    type=rule.rule_type,
                    due_in_days=settings.condition_due_days,
                    today=today,
                )
            )

        result = DecisionResult.most_restrictive(result, action.result)

    final_score = clamp_score(score, settings)

    return RulesetEvaluation(
        ruleset_id=ruleset_id,
        result=result,
        risk_score=final_score,
        risk_level=risk_level_for(final_score, settings),
        triggered_rules=triggered,
        conditions=conditions,
    )
