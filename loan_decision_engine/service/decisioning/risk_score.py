"""
Fallback Risk Scoring for the Loan Decision Engine.

Used when a loan's product has no applicable ruleset. The outcome is driven
by the number of negative factors; the score is a heuristic on the
conventional 300-850 scale.

Scoring Formula:
    score = 700
          + (credit_score - credit_threshold)
          - (debt_ratio - debt_threshold) * 100
          - negative_factor_count * 25
          + min(membership_years, 5) * 10

    clamped to [300, 850]. Terms whose factor is absent contribute nothing.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from loan_decision_engine.domain.entities import (
    ApprovalCondition,
    DecisionFactor,
    DecisionResult,
    RiskLevel,
)

from .rules import clamp_score, risk_level_for
from .settings import DecisioningSettings, decisioning_settings


@dataclass(frozen=True)
class FallbackAssessment:
    """Outcome of scoring a factor set without a ruleset."""

    result: DecisionResult
    risk_score: int
    risk_level: RiskLevel
    conditions: List[ApprovalCondition] = field(default_factory=list)


def _numeric_factor(factors: Sequence[DecisionFactor], name: str) -> Optional[DecisionFactor]:
    for factor in factors:
        if factor.name == name and isinstance(factor.value, (int, float)) and not isinstance(factor.value, bool):
            return factor
    return None


def calculate_risk_score(
    factors: Sequence[DecisionFactor],
    settings: DecisioningSettings = decisioning_settings,
) -> int:
    """
    Calculate the fallback risk score from a factor set.

    Args:
        factors: Factors produced by the field evaluation
        settings: Decisioning settings (uses defaults if not provided)

    Returns:
        Risk score clamped to [min_risk_score, max_risk_score]
    """
    score = float(settings.base_risk_score)

    credit = _numeric_factor(factors, "credit_score")
    if credit is not None:
        threshold = credit.threshold or settings.default_credit_threshold
        score += credit.value - threshold

    debt = _numeric_factor(factors, "debt_to_income_ratio")
    if debt is not None:
        threshold = debt.threshold or settings.default_debt_threshold
        score -= (debt.value - threshold) * 100

    negatives = sum(1 for f in factors if f.is_negative)
    score -= negatives * settings.negative_factor_penalty

    membership = _numeric_factor(factors, "membership_duration")
    if membership is not None:
        years = min(membership.value, settings.membership_year_cap)
        score += years * settings.membership_points_per_year

    return clamp_score(score, settings)


def score_factors(
    factors: Sequence[DecisionFactor],
    settings: DecisioningSettings = decisioning_settings,
    today: Optional[date] = None,
) -> FallbackAssessment:
    """
    Decide an outcome from the number of negative factors.

    Decision Logic:
        - 0 negatives: APPROVED / LOW
        - 1-2 negatives: CONDITIONALLY_APPROVED, one pending condition per
          negative factor, level MEDIUM refined by the score bands
        - 3+ negatives: DECLINED / HIGH
    """
    negatives = [f for f in factors if f.is_negative]
    risk_score = calculate_risk_score(factors, settings)

    if not negatives:
        return FallbackAssessment(
            result=DecisionResult.APPROVED,
            risk_score=risk_score,
            risk_level=RiskLevel.LOW,
        )

    if len(negatives) >= settings.decline_negative_count:
        return FallbackAssessment(
            result=DecisionResult.DECLINED,
            risk_score=risk_score,
            risk_level=RiskLevel.HIGH,
        )

    conditions = [
        ApprovalCondition.pending(
            description=f"Resolve issue: {factor.details}",
            type=factor.type.value,
            due_in_days=settings.condition_due_days,
            today=today,
        )
        for factor in negatives
    ]
    return FallbackAssessment(
        result=DecisionResult.CONDITIONALLY_APPROVED,
        risk_score=risk_score,
        risk_level=risk_level_for(risk_score, settings),
        conditions=conditions,
    )
