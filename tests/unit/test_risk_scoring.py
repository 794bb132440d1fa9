"""
Unit Tests for fallback risk scoring.

These tests verify:
1. The score formula and its clamping
2. Outcome by negative factor count
3. Conditions synthesized for conditional approvals
"""

from datetime import date, timedelta

from loan_decision_engine.domain.entities import DecisionResult, RiskLevel
from loan_decision_engine.service.decisioning import (
    DecisioningSettings,
    calculate_risk_score,
    credit_check_error_factor,
    credit_score_factor,
    debt_ratio_factor,
    employment_factor,
    membership_factor,
    savings_account_factor,
    score_factors,
)


TODAY = date(2025, 9, 17)


# =============================================================================
# Score Formula
# =============================================================================

class TestCalculateRiskScore:
    """Tests for calculate_risk_score."""

    def test_base_score_without_factors(self):
        assert calculate_risk_score([]) == 700

    def test_full_formula(self):
        factors = [
            credit_score_factor(710, 650),
            debt_ratio_factor(0.30, 0.40),
            membership_factor(5, 1),
        ]

        # 700 + 60 + 10 + 50
        assert calculate_risk_score(factors) == 820

    def test_each_negative_factor_costs_points(self):
        factors = [
            employment_factor(False),
            savings_account_factor(True, None),
        ]

        assert calculate_risk_score(factors) == 650

    def test_membership_points_are_capped(self):
        assert calculate_risk_score([membership_factor(12, 0)]) == 750

    def test_credit_error_counts_only_as_negative(self):
        assert calculate_risk_score([credit_check_error_factor("timeout")]) == 675

    def test_clamped_to_bounds(self):
        low = [credit_score_factor(300, 850)]
        high = [credit_score_factor(850, 300)]

        assert calculate_risk_score(low) == 300
        assert calculate_risk_score(high) == 850

    def test_custom_penalty(self):
        settings = DecisioningSettings(negative_factor_penalty=40)

        assert calculate_risk_score([employment_factor(False)], settings) == 660


# =============================================================================
# Outcome
# =============================================================================

class TestScoreFactors:
    """Tests for score_factors."""

    def test_no_negatives_is_approved_low(self):
        factors = [credit_score_factor(710, 650), membership_factor(5, 1)]

        assessment = score_factors(factors, today=TODAY)

        assert assessment.result == DecisionResult.APPROVED
        assert assessment.risk_level == RiskLevel.LOW
        assert assessment.risk_score == 810
        assert assessment.conditions == []

    def test_one_negative_is_conditional(self):
        factors = [
            credit_score_factor(710, 650),
            employment_factor(False),
            membership_factor(2, 1),
        ]

        assessment = score_factors(factors, today=TODAY)

        assert assessment.result == DecisionResult.CONDITIONALLY_APPROVED
        assert assessment.risk_score == 755
        assert assessment.risk_level == RiskLevel.LOW
        assert len(assessment.conditions) == 1

        condition = assessment.conditions[0]
        assert condition.description == "Resolve issue: Employment not yet verified"
        assert condition.type == "EMPLOYMENT"
        assert condition.required_by == TODAY + timedelta(days=14)

    def test_conditional_level_follows_score_bands(self):
        factors = [
            credit_score_factor(640, 650),
            employment_factor(False),
            membership_factor(0, 0),
        ]

        assessment = score_factors(factors, today=TODAY)

        assert assessment.result == DecisionResult.CONDITIONALLY_APPROVED
        assert assessment.risk_score == 640
        assert assessment.risk_level == RiskLevel.MEDIUM
        assert len(assessment.conditions) == 2

    def test_three_negatives_decline(self):
        factors = [
            credit_score_factor(800, 650),
            employment_factor(False),
            savings_account_factor(True, None),
            credit_check_error_factor("bureau down"),
        ]

        assessment = score_factors(factors, today=TODAY)

        assert assessment.result == DecisionResult.DECLINED
        assert assessment.risk_level == RiskLevel.HIGH
        assert assessment.conditions == []

    def test_decline_count_is_configurable(self):
        settings = DecisioningSettings(decline_negative_count=1)

        assessment = score_factors([employment_factor(False)], settings, today=TODAY)

        assert assessment.result == DecisionResult.DECLINED
