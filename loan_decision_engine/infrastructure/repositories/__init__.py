"""Repository implementations."""

from .decision_repository import PostgresDecisionRepository
from .loan_repository import PostgresLoanRepository
from .ruleset_repository import PostgresRulesetRepository
from .unit_of_work import SqlAlchemyUnitOfWork
from .workflow_repository import PostgresWorkflowRepository

__all__ = [
    "PostgresDecisionRepository",
    "PostgresLoanRepository",
    "PostgresRulesetRepository",
    "PostgresWorkflowRepository",
    "SqlAlchemyUnitOfWork",
]
