"""Domain Entities - Core business objects."""

from .credit import CreditCheckRequest, CreditCheckResult
from .decision import (
    ApprovalCondition,
    ConditionStatus,
    DecisionFactor,
    DecisionFactorType,
    DecisionResult,
    DecisionSource,
    FactorImpact,
    LoanDecision,
    RiskLevel,
)
from .loan import Client, Loan, LoanDocument, LoanStatus, ProductTerms
from .ruleset import (
    DecisioningRule,
    DecisioningRuleset,
    RuleAction,
    RulesetEvaluation,
    TriggeredRule,
)
from .workflow import LoanApplicationWorkflow, WorkflowStage, WorkflowStatus

__all__ = [
    "ApprovalCondition",
    "Client",
    "ConditionStatus",
    "CreditCheckRequest",
    "CreditCheckResult",
    "DecisionFactor",
    "DecisionFactorType",
    "DecisionResult",
    "DecisionSource",
    "DecisioningRule",
    "DecisioningRuleset",
    "FactorImpact",
    "Loan",
    "LoanApplicationWorkflow",
    "LoanDecision",
    "LoanDocument",
    "LoanStatus",
    "ProductTerms",
    "RiskLevel",
    "RuleAction",
    "RulesetEvaluation",
    "TriggeredRule",
    "WorkflowStage",
    "WorkflowStatus",
]
