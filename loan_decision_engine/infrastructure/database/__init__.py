"""Database infrastructure."""

from .connection import (
    DatabaseSessionManager,
    async_database_url,
    db_manager,
    get_db_session,
)
from .models import (
    Base,
    ClientModel,
    DecisioningRuleModel,
    DecisioningRulesetModel,
    LoanApplicationWorkflowModel,
    LoanDecisionModel,
    LoanDocumentModel,
    LoanModel,
    LoanProductModel,
    LoanRepaymentScheduleModel,
)

__all__ = [
    "get_db_session",
    "DatabaseSessionManager",
    "db_manager",
    "async_database_url",
    "Base",
    "ClientModel",
    "DecisioningRuleModel",
    "DecisioningRulesetModel",
    "LoanApplicationWorkflowModel",
    "LoanDecisionModel",
    "LoanDocumentModel",
    "LoanModel",
    "LoanProductModel",
    "LoanRepaymentScheduleModel",
]
