"""Ruleset evaluation Pydantic schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from loan_decision_engine.domain.entities import DecisionResult, RiskLevel, RuleAction

from .decision import ApprovalConditionSchema


class EvaluateRulesetRequestSchema(BaseModel):
    """Schema for POST /v1/rulesets/{ruleset_id}/evaluate request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "loan_data": {
                        "credit_score": 580,
                        "debt_to_income_ratio": 0.35,
                        "member_years": 2,
                        "employment_verified": True,
                        "principal_amount": 5000,
                    }
                }
            ]
        }
    )

    loan_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Loan values rules are evaluated against; missing values are null",
    )


class TriggeredRuleSchema(BaseModel):
    rule_id: str
    rule_name: str
    action: RuleAction
    risk_score_adjustment: int


class RulesetEvaluationResponseSchema(BaseModel):
    """Schema for POST /v1/rulesets/{ruleset_id}/evaluate response body."""

    ruleset_id: str
    result: DecisionResult
    risk_score: int = Field(..., examples=[525])
    risk_level: RiskLevel
    triggered_rules: list[TriggeredRuleSchema] = Field(
        ...,
        description="Triggered rules in evaluation order",
    )
    conditions: list[ApprovalConditionSchema]
