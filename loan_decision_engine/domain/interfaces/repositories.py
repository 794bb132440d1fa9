"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Iterable, List, Optional
from uuid import UUID

from loan_decision_engine.domain.entities import (
    DecisioningRule,
    DecisioningRuleset,
    DecisionSource,
    Loan,
    LoanApplicationWorkflow,
    LoanDecision,
    LoanDocument,
    LoanStatus,
    WorkflowStage,
    WorkflowStatus,
)


class LoanRepository(ABC):
    """
    Abstract repository for the loan data the engine reads and updates.

    Implementations may use PostgreSQL, in-memory storage, etc.
    """

    @abstractmethod
    async def get_by_id(self, loan_id: str, for_update: bool = False) -> Optional[Loan]:
        """
        Retrieve a loan joined with its product terms and client.

        Args:
            loan_id: The loan's identifier
            for_update: Lock the loan row until the transaction ends

        Returns:
            The loan if found, None otherwise
        """
        ...

    @abstractmethod
    async def get_documents(self, loan_id: str) -> List[LoanDocument]:
        """Retrieve the documents on file for a loan."""
        ...

    @abstractmethod
    async def get_average_open_installment(self, loan_id: str) -> float:
        """
        Average total amount of the loan's not-yet-completed installments.

        Returns:
            The average installment, 0.0 if no open installments exist
        """
        ...

    @abstractmethod
    async def update_credit_score(
        self,
        loan_id: str,
        credit_score: int,
        score_date: date,
    ) -> None:
        """Persist a refreshed credit score onto the loan."""
        ...

    @abstractmethod
    async def update_status(
        self,
        loan_id: str,
        status: LoanStatus,
        decision_source: DecisionSource,
        decided_on: datetime,
        decided_by: Optional[str],
    ) -> None:
        """
        Move the loan to a new status after a final decision.

        Approval and rejection audit columns are filled according to the
        new status.
        """
        ...


class DecisionRepository(ABC):
    """
    Abstract repository for the append-only decision ledger.
    """

    @abstractmethod
    async def save(self, decision: LoanDecision) -> LoanDecision:
        """
        Append a decision and make it the loan's current decision.

        Args:
            decision: The decision to save

        Returns:
            The saved decision
        """
        ...

    @abstractmethod
    async def get_by_id(self, decision_id: UUID) -> Optional[LoanDecision]:
        """Retrieve a decision by ID."""
        ...

    @abstractmethod
    async def get_current(self, loan_id: str) -> Optional[LoanDecision]:
        """Retrieve the most recently appended decision for a loan."""
        ...

    @abstractmethod
    async def get_by_loan_id(self, loan_id: str) -> List[LoanDecision]:
        """
        Retrieve every decision for a loan.

        Returns:
            Decisions ordered by decision_timestamp descending
        """
        ...


class RulesetRepository(ABC):
    """Abstract repository for decisioning rulesets."""

    @abstractmethod
    async def get_by_id(self, ruleset_id: str) -> Optional[DecisioningRuleset]:
        """Retrieve a ruleset without its rules."""
        ...

    @abstractmethod
    async def get_active_rules(self, ruleset_id: str) -> List[DecisioningRule]:
        """
        Retrieve the active rules of a ruleset.

        Returns:
            Rules ordered by ascending priority
        """
        ...


class WorkflowRepository(ABC):
    """Abstract repository for loan application workflow stages."""

    @abstractmethod
    async def close_open_stages(
        self,
        loan_id: str,
        ended_at: datetime,
        status: WorkflowStatus,
        closed_by: Optional[str],
        stages: Optional[Iterable[WorkflowStage]] = None,
    ) -> int:
        """
        Close the loan's open stages.

        Args:
            loan_id: The loan's identifier
            ended_at: Timestamp written to stage_end_date
            status: Final stage status
            closed_by: Acting user
            stages: Only close open stages among these; None closes any

        Returns:
            Number of stages closed
        """
        ...

    @abstractmethod
    async def open_stage(
        self,
        stage: LoanApplicationWorkflow,
        created_by: Optional[str],
    ) -> LoanApplicationWorkflow:
        """Persist a newly opened stage."""
        ...

    @abstractmethod
    async def get_open_stage(self, loan_id: str) -> Optional[LoanApplicationWorkflow]:
        """Retrieve the loan's open stage, if any."""
        ...
