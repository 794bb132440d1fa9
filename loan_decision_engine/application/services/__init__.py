"""Application services (use cases)."""

from .decision_ledger import DecisionLedger
from .decision_service import LoanDecisionService
from .ruleset_service import RulesetService
from .workflow_service import WorkflowService

__all__ = [
    "DecisionLedger",
    "LoanDecisionService",
    "RulesetService",
    "WorkflowService",
]
