"""Workflow service - advances loan status and pipeline stage on final decisions."""

from datetime import timedelta
from typing import Iterable, Optional

import structlog

from loan_decision_engine.domain.entities import (
    Loan,
    LoanApplicationWorkflow,
    LoanDecision,
    WorkflowStage,
    WorkflowStatus,
)
from loan_decision_engine.domain.interfaces import LoanRepository, WorkflowRepository
from loan_decision_engine.service.decisioning import (
    loan_status_for_result,
    stage_for_result,
)

logger = structlog.get_logger(__name__)


class WorkflowService:
    """
    Application service for the loan workflow stage machine.

    A final decision sets the loan status its result maps to, closes the
    open stage(s) it is allowed to close and opens the stage for the result.
    """

    def __init__(
        self,
        loan_repository: LoanRepository,
        workflow_repository: WorkflowRepository,
        stage_due_days: int = 3,
    ):
        self._loan_repo = loan_repository
        self._workflow_repo = workflow_repository
        self._stage_due_days = stage_due_days

    async def apply_final_decision(
        self,
        loan: Loan,
        decision: LoanDecision,
        close_stages: Optional[Iterable[WorkflowStage]],
        notes: Optional[str] = None,
    ) -> LoanApplicationWorkflow:
        """
        Move the loan forward after a final decision.

        Args:
            loan: The decided loan, as read at the start of the transaction
            decision: The final decision just appended to the ledger
            close_stages: Open stages to close; None closes whatever is open
            notes: Notes for the newly opened stage

        Returns:
            The newly opened stage
        """
        decided_at = decision.decision_timestamp
        log = logger.bind(loan_id=loan.id, decision_id=str(decision.id))

        new_status = loan_status_for_result(decision.decision_result)
        if new_status is not None and new_status.value != loan.loan_status:
            await self._loan_repo.update_status(
                loan.id,
                new_status,
                decision_source=decision.decision_source,
                decided_on=decided_at,
                decided_by=decision.decision_by,
            )
            log.info(
                "loan_status_updated",
                previous_status=loan.loan_status,
                new_status=new_status.value,
            )

        previous = await self._workflow_repo.get_open_stage(loan.id)
        if previous is not None and previous.is_overdue:
            log.warning(
                "workflow_stage_overdue",
                stage=previous.current_stage.value,
                due_date=previous.due_date.isoformat(),
            )

        closed = await self._workflow_repo.close_open_stages(
            loan.id,
            ended_at=decided_at,
            status=WorkflowStatus.COMPLETED,
            closed_by=decision.decision_by,
            stages=close_stages,
        )

        stage = LoanApplicationWorkflow(
            loan_id=loan.id,
            current_stage=stage_for_result(decision.decision_result),
            stage_status=WorkflowStatus.IN_PROGRESS,
            stage_start_date=decided_at,
            assigned_to=loan.loan_officer_id,
            due_date=decided_at.date() + timedelta(days=self._stage_due_days),
            notes=notes,
        )
        await self._workflow_repo.open_stage(stage, created_by=decision.decision_by)

        log.info(
            "workflow_advanced",
            stages_closed=closed,
            previous_stage=previous.current_stage.value if previous else None,
            new_stage=stage.current_stage.value,
        )

        return stage
