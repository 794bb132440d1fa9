"""
Domain Interfaces (Ports)
"""

from .repositories import (
    DecisionRepository,
    LoanRepository,
    RulesetRepository,
    WorkflowRepository,
)
from .clients import CreditCheckClient
from .unit_of_work import UnitOfWork

__all__ = [
    "DecisionRepository",
    "LoanRepository",
    "RulesetRepository",
    "WorkflowRepository",
    "CreditCheckClient",
    "UnitOfWork",
]
