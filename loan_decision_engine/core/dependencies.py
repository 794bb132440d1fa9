"""Dependency injection for FastAPI."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from loan_decision_engine.core.config import settings
from loan_decision_engine.infrastructure.database import get_db_session
from loan_decision_engine.infrastructure.repositories import (
    PostgresDecisionRepository,
    PostgresLoanRepository,
    PostgresRulesetRepository,
    PostgresWorkflowRepository,
    SqlAlchemyUnitOfWork,
)
from loan_decision_engine.infrastructure.clients import HttpCreditCheckClient
from loan_decision_engine.application.services import (
    DecisionLedger,
    LoanDecisionService,
    RulesetService,
    WorkflowService,
)


# Repository dependencies
async def get_loan_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresLoanRepository:
    """Get a LoanRepository instance."""
    return PostgresLoanRepository(session)


async def get_decision_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresDecisionRepository:
    """Get a DecisionRepository instance."""
    return PostgresDecisionRepository(session)


async def get_ruleset_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresRulesetRepository:
    """Get a RulesetRepository instance."""
    return PostgresRulesetRepository(session)


async def get_workflow_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresWorkflowRepository:
    """Get a WorkflowRepository instance."""
    return PostgresWorkflowRepository(session)


async def get_unit_of_work(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SqlAlchemyUnitOfWork:
    """Get a UnitOfWork bound to the request's session."""
    return SqlAlchemyUnitOfWork(session)


# External client dependencies
def get_credit_client() -> HttpCreditCheckClient:
    """Get a CreditCheckClient instance."""
    return HttpCreditCheckClient()


# Service dependencies
async def get_ruleset_service(
    ruleset_repo: Annotated[PostgresRulesetRepository, Depends(get_ruleset_repository)],
) -> RulesetService:
    """Get a RulesetService instance."""
    return RulesetService(ruleset_repository=ruleset_repo)


async def get_decision_service(
    loan_repo: Annotated[PostgresLoanRepository, Depends(get_loan_repository)],
    decision_repo: Annotated[PostgresDecisionRepository, Depends(get_decision_repository)],
    workflow_repo: Annotated[PostgresWorkflowRepository, Depends(get_workflow_repository)],
    ruleset_service: Annotated[RulesetService, Depends(get_ruleset_service)],
    credit_client: Annotated[HttpCreditCheckClient, Depends(get_credit_client)],
    unit_of_work: Annotated[SqlAlchemyUnitOfWork, Depends(get_unit_of_work)],
) -> LoanDecisionService:
    """Get a LoanDecisionService instance with all dependencies."""
    return LoanDecisionService(
        loan_repository=loan_repo,
        ledger=DecisionLedger(decision_repo),
        ruleset_service=ruleset_service,
        workflow_service=WorkflowService(
            loan_repository=loan_repo,
            workflow_repository=workflow_repo,
            stage_due_days=settings.workflow_stage_due_days,
        ),
        credit_client=credit_client,
        unit_of_work=unit_of_work,
    )
