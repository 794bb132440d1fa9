"""Decisioning rulesets and rules."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, List, Optional, Union

from .decision import ApprovalCondition, DecisionResult, RiskLevel


class RuleAction(str, Enum):
    """Action a rule contributes when its condition triggers."""

    APPROVE = "approve"
    DECLINE = "decline"
    MANUAL_REVIEW = "manual_review"
    CONDITIONAL_APPROVAL = "conditional_approval"

    @property
    def result(self) -> DecisionResult:
        return _ACTION_RESULTS[self]


_ACTION_RESULTS = {
    RuleAction.APPROVE: DecisionResult.APPROVED,
    RuleAction.DECLINE: DecisionResult.DECLINED,
    RuleAction.MANUAL_REVIEW: DecisionResult.MANUAL_REVIEW,
    RuleAction.CONDITIONAL_APPROVAL: DecisionResult.CONDITIONALLY_APPROVED,
}


@dataclass(frozen=True)
class DecisioningRule:
    """A boolean condition over loan fields mapped to an action and score delta."""

    id: str
    ruleset_id: str
    rule_name: str
    rule_type: str
    rule_definition: Union[dict[str, Any], str]
    action_on_trigger: Union[RuleAction, str]
    risk_score_adjustment: int = 0
    priority: int = 0
    is_active: bool = True

    @property
    def condition(self) -> Optional[str]:
        """
        The condition expression, if the definition carries one.

        Definitions are stored either as ``{"condition": "..."}`` or as the
        bare expression string.
        """
        definition = self.rule_definition
        if isinstance(definition, str):
            condition = definition
        elif isinstance(definition, dict):
            condition = definition.get("condition")
        else:
            condition = None
        return condition if isinstance(condition, str) and condition.strip() else None


@dataclass(frozen=True)
class DecisioningRuleset:
    """A named, versioned collection of rules."""

    id: str
    name: str
    is_active: bool = True
    priority: int = 0
    version: int = 1
    description: Optional[str] = None
    effective_from: Optional[date] = None
    effective_to: Optional[date] = None
    rules: List[DecisioningRule] = field(default_factory=list)

    def is_effective_on(self, on: date) -> bool:
        """Whether the ruleset is active and within its effective date range."""
        if not self.is_active:
            return False
        if self.effective_from and on < self.effective_from:
            return False
        if self.effective_to and on > self.effective_to:
            return False
        return True


@dataclass(frozen=True)
class TriggeredRule:
    rule_id: str
    rule_name: str
    action: RuleAction
    risk_score_adjustment: int = 0

    def to_dict(self) -> dict:
        return {
            "rule_id": self.rule_id,
            "rule_name": self.rule_name,
            "action": self.action.value,
            "risk_score_adjustment": self.risk_score_adjustment,
        }


@dataclass(frozen=True)
class RulesetEvaluation:
    """Aggregate outcome of evaluating a ruleset against loan data."""

    ruleset_id: str
    result: DecisionResult
    risk_score: int
    risk_level: RiskLevel
    triggered_rules: List[TriggeredRule] = field(default_factory=list)
    conditions: List[ApprovalCondition] = field(default_factory=list)
