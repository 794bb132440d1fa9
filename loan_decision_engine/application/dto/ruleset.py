"""Data transfer objects for ruleset evaluation."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from loan_decision_engine.domain.entities import RulesetEvaluation


@dataclass(frozen=True)
class EvaluateRulesetRequest:
    """Loan data to evaluate a ruleset against, keyed by loan field name."""

    ruleset_id: str
    loan_data: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> List[str]:
        errors = []

        if not self.ruleset_id or not self.ruleset_id.strip():
            errors.append("ruleset_id is required")

        return errors


@dataclass(frozen=True)
class RulesetEvaluationResponse:
    ruleset_id: str
    result: str
    risk_score: int
    risk_level: str
    triggered_rules: List[dict]
    conditions: List[dict]

    @classmethod
    def from_entity(cls, evaluation: RulesetEvaluation) -> "RulesetEvaluationResponse":
        return cls(
            ruleset_id=evaluation.ruleset_id,
            result=evaluation.result.value,
            risk_score=evaluation.risk_score,
            risk_level=evaluation.risk_level.value,
            triggered_rules=[r.to_dict() for r in evaluation.triggered_rules],
            conditions=[c.to_dict() for c in evaluation.conditions],
        )
