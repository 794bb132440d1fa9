"""
Unit Tests for ruleset evaluation.

These tests verify:
1. Most-restrictive-wins aggregation over any trigger order
2. Score adjustment, clamping and risk level bands
3. Conditional-approval conditions
4. Failing, empty, malformed and inactive rules and unknown actions are skipped
"""

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal
from itertools import permutations

import pytest
from prometheus_client import REGISTRY

from loan_decision_engine.domain.entities import (
    DecisionResult,
    DecisioningRule,
    RiskLevel,
    RuleAction,
)
from loan_decision_engine.service.decisioning import (
    DecisioningSettings,
    build_field_map,
    clamp_score,
    evaluate_rule,
    evaluate_rules,
    rule_action,
    risk_level_for,
)


TODAY = date(2025, 9, 17)


def make_rule(
    rule_id: str,
    condition,
    action,
    adjustment: int = 0,
    priority: int = 0,
    is_active: bool = True,
) -> DecisioningRule:
    """Helper to create a rule in ruleset RS-1."""
    return DecisioningRule(
        id=rule_id,
        ruleset_id="RS-1",
        rule_name=f"rule {rule_id}",
        rule_type="RISK",
        rule_definition={"condition": condition} if condition is not None else {},
        action_on_trigger=action,
        risk_score_adjustment=adjustment,
        priority=priority,
        is_active=is_active,
    )


# =============================================================================
# Field Map
# =============================================================================

class TestBuildFieldMap:
    """Tests for build_field_map."""

    def test_loan_amount_reads_principal_amount(self):
        fields = build_field_map({"principal_amount": 1200.0})

        assert fields["loan_amount"] == 1200.0

    def test_missing_values_are_null(self):
        fields = build_field_map({})

        assert fields["credit_score"] is None
        assert fields["employment_verified"] is None

    def test_decimals_become_floats(self):
        fields = build_field_map({"debt_to_income_ratio": Decimal("0.35")})

        assert fields["debt_to_income_ratio"] == 0.35
        assert isinstance(fields["debt_to_income_ratio"], float)


# =============================================================================
# Aggregation
# =============================================================================

class TestPrecedence:
    """Most restrictive action wins regardless of priority order."""

    ALWAYS = "credit_score > 0"

    @pytest.mark.parametrize(
        "actions,expected",
        [
            ((RuleAction.APPROVE,), DecisionResult.APPROVED),
            ((RuleAction.APPROVE, RuleAction.CONDITIONAL_APPROVAL), DecisionResult.CONDITIONALLY_APPROVED),
            ((RuleAction.CONDITIONAL_APPROVAL, RuleAction.MANUAL_REVIEW), DecisionResult.MANUAL_REVIEW),
            ((RuleAction.MANUAL_REVIEW, RuleAction.DECLINE), DecisionResult.DECLINED),
            (tuple(RuleAction), DecisionResult.DECLINED),
        ],
    )
    def test_any_order(self, actions, expected):
        for ordering in permutations(actions):
            rules = [
                make_rule(f"R{i}", self.ALWAYS, action, priority=i)
                for i, action in enumerate(ordering)
            ]

            evaluation = evaluate_rules("RS-1", rules, {"credit_score": 700}, today=TODAY)

            assert evaluation.result == expected

    def test_no_triggered_rules_is_approved(self):
        rules = [make_rule("R1", "credit_score < 100", RuleAction.DECLINE, -100)]

        evaluation = evaluate_rules("RS-1", rules, {"credit_score": 700}, today=TODAY)

        assert evaluation.result == DecisionResult.APPROVED
        assert evaluation.risk_score == 700
        assert evaluation.triggered_rules == []

    def test_rules_run_in_priority_order(self):
        rules = [
            make_rule("late", self.ALWAYS, RuleAction.APPROVE, priority=20),
            make_rule("early", self.ALWAYS, RuleAction.APPROVE, priority=1),
        ]

        evaluation = evaluate_rules("RS-1", rules, {"credit_score": 700}, today=TODAY)

        assert [r.rule_id for r in evaluation.triggered_rules] == ["early", "late"]


class TestWorkedExamples:
    """Reference rulesets with known outcomes."""

    def test_three_rules_decline(self):
        rules = [
            make_rule("R1", "credit_score < 650", RuleAction.DECLINE, -100, priority=1),
            make_rule("R2", "debt_to_income_ratio > 0.40", RuleAction.MANUAL_REVIEW, -50, priority=2),
            make_rule("R3", "loan_amount > 50000", RuleAction.CONDITIONAL_APPROVAL, -25, priority=3),
        ]
        loan_data = {
            "credit_score": 600,
            "debt_to_income_ratio": 0.42,
            "principal_amount": 60000,
        }

        evaluation = evaluate_rules("RS-1", rules, loan_data, today=TODAY)

        assert len(evaluation.triggered_rules) == 3
        assert evaluation.result == DecisionResult.DECLINED
        assert evaluation.risk_score == 525
        assert evaluation.risk_level == RiskLevel.HIGH
        # Already declined when the conditional rule triggered
        assert evaluation.conditions == []

    def test_single_approve_rule(self):
        rules = [make_rule("R1", "credit_score >= 700", RuleAction.APPROVE, 50)]

        evaluation = evaluate_rules("RS-1", rules, {"credit_score": 720}, today=TODAY)

        assert len(evaluation.triggered_rules) == 1
        assert evaluation.result == DecisionResult.APPROVED
        assert evaluation.risk_score == 750
        assert evaluation.risk_level == RiskLevel.LOW


class TestConditions:
    """Conditional approvals attach conditions only while nothing stronger is reached."""

    def test_condition_added_before_stronger_action(self):
        rules = [
            make_rule("R1", "member_years < 2", RuleAction.CONDITIONAL_APPROVAL, -10, priority=1),
            make_rule("R2", "credit_score < 650", RuleAction.DECLINE, -100, priority=2),
        ]

        evaluation = evaluate_rules(
            "RS-1",
            rules,
            {"member_years": 1, "credit_score": 600},
            today=TODAY,
        )

        assert evaluation.result == DecisionResult.DECLINED
        assert len(evaluation.conditions) == 1

        condition = evaluation.conditions[0]
        assert condition.description == "Condition from rule: rule R1"
        assert condition.type == "RISK"
        assert condition.required_by == TODAY + timedelta(days=14)
        assert condition.is_mandatory is True

    def test_condition_skipped_after_manual_review(self):
        rules = [
            make_rule("R1", "credit_score < 650", RuleAction.MANUAL_REVIEW, -20, priority=1),
            make_rule("R2", "member_years < 2", RuleAction.CONDITIONAL_APPROVAL, -10, priority=2),
        ]

        evaluation = evaluate_rules(
            "RS-1",
            rules,
            {"member_years": 1, "credit_score": 600},
            today=TODAY,
        )

        assert evaluation.result == DecisionResult.MANUAL_REVIEW
        assert evaluation.conditions == []

    def test_one_condition_per_conditional_rule(self):
        rules = [
            make_rule("R1", "member_years < 2", RuleAction.CONDITIONAL_APPROVAL, priority=1),
            make_rule("R2", "loan_amount > 1000", RuleAction.CONDITIONAL_APPROVAL, priority=2),
        ]

        evaluation = evaluate_rules(
            "RS-1",
            rules,
            {"member_years": 1, "principal_amount": 5000},
            today=TODAY,
        )

        assert evaluation.result == DecisionResult.CONDITIONALLY_APPROVED
        assert len(evaluation.conditions) == 2


class TestSkippedRules:
    """Rules that cannot trigger never fail the ruleset."""

    def test_failing_condition_is_not_triggered(self):
        rules = [
            make_rule("bad", "income > 1000", RuleAction.DECLINE, -100, priority=1),
            make_rule("good", "credit_score >= 700", RuleAction.APPROVE, 10, priority=2),
        ]

        evaluation = evaluate_rules("RS-1", rules, {"credit_score": 720}, today=TODAY)

        assert evaluation.result == DecisionResult.APPROVED
        assert [r.rule_id for r in evaluation.triggered_rules] == ["good"]
        assert evaluation.risk_score == 710

    def test_null_field_in_ordering_is_not_triggered(self):
        rule = make_rule("R1", "credit_score < 650", RuleAction.DECLINE)

        assert evaluate_rule(rule, build_field_map({})) is False

    def test_missing_condition_is_not_triggered(self):
        rule = make_rule("R1", None, RuleAction.DECLINE)

        assert evaluate_rule(rule, build_field_map({"credit_score": 500})) is False

    def test_bare_string_definition_is_the_condition(self):
        rule = make_rule("R1", None, RuleAction.DECLINE)
        rule = replace(rule, rule_definition="credit_score < 650")

        assert rule.condition == "credit_score < 650"
        assert evaluate_rule(rule, build_field_map({"credit_score": 600})) is True

    @pytest.mark.parametrize("definition", [["credit_score < 650"], 42, {"condition": 7}])
    def test_malformed_definition_is_not_triggered(self, definition):
        rules = [
            replace(make_rule("bad", None, RuleAction.DECLINE, -100), rule_definition=definition),
            make_rule("good", "credit_score >= 700", RuleAction.APPROVE, 10, priority=2),
        ]

        evaluation = evaluate_rules("RS-1", rules, {"credit_score": 720}, today=TODAY)

        assert evaluation.result == DecisionResult.APPROVED
        assert [r.rule_id for r in evaluation.triggered_rules] == ["good"]

    def test_unknown_action_is_skipped_and_counted(self):
        labels = {"ruleset_id": "RS-1"}
        before = REGISTRY.get_sample_value("lde_rule_evaluation_failures_total", labels) or 0.0
        rules = [
            make_rule("flagged", "credit_score > 0", "flag", -100, priority=1),
            make_rule("good", "credit_score >= 700", RuleAction.APPROVE, 10, priority=2),
        ]

        evaluation = evaluate_rules("RS-1", rules, {"credit_score": 720}, today=TODAY)

        assert evaluation.result == DecisionResult.APPROVED
        assert evaluation.risk_score == 710
        assert [r.rule_id for r in evaluation.triggered_rules] == ["good"]
        after = REGISTRY.get_sample_value("lde_rule_evaluation_failures_total", labels)
        assert after == before + 1

    def test_known_action_strings_are_accepted(self):
        rule = make_rule("R1", "credit_score > 0", "manual_review")

        assert rule_action(rule) == RuleAction.MANUAL_REVIEW
        assert rule_action(make_rule("R2", "credit_score > 0", "flag")) is None

    def test_inactive_rules_are_skipped(self):
        rules = [make_rule("R1", "credit_score > 0", RuleAction.DECLINE, is_active=False)]

        evaluation = evaluate_rules("RS-1", rules, {"credit_score": 500}, today=TODAY)

        assert evaluation.result == DecisionResult.APPROVED
        assert evaluation.triggered_rules == []


# =============================================================================
# Score Clamping and Bands
# =============================================================================

class TestScoreBounds:
    """Scores are clamped to [300, 850] and banded into risk levels."""

    def test_clamped_to_minimum(self):
        rules = [make_rule("R1", "credit_score > 0", RuleAction.DECLINE, -1000)]

        evaluation = evaluate_rules("RS-1", rules, {"credit_score": 500}, today=TODAY)

        assert evaluation.risk_score == 300
        assert evaluation.risk_level == RiskLevel.HIGH

    def test_clamped_to_maximum(self):
        rules = [make_rule("R1", "credit_score > 0", RuleAction.APPROVE, 1000)]

        evaluation = evaluate_rules("RS-1", rules, {"credit_score": 800}, today=TODAY)

        assert evaluation.risk_score == 850
        assert evaluation.risk_level == RiskLevel.LOW

    @pytest.mark.parametrize(
        "score,expected",
        [
            (850, RiskLevel.LOW),
            (720, RiskLevel.LOW),
            (719, RiskLevel.MEDIUM),
            (620, RiskLevel.MEDIUM),
            (619, RiskLevel.HIGH),
            (300, RiskLevel.HIGH),
        ],
    )
    def test_risk_level_bands(self, score, expected):
        assert risk_level_for(score) == expected

    def test_clamp_rounds(self):
        assert clamp_score(700.4) == 700
        assert clamp_score(299.0) == 300
        assert clamp_score(10_000) == 850

    def test_custom_settings(self):
        settings = DecisioningSettings(base_risk_score=600, low_risk_threshold=650)
        rules = [make_rule("R1", "credit_score > 0", RuleAction.APPROVE, 60)]

        evaluation = evaluate_rules(
            "RS-1",
            rules,
            {"credit_score": 700},
            settings=settings,
            today=TODAY,
        )

        assert evaluation.risk_score == 660
        assert evaluation.risk_level == RiskLevel.LOW
