"""PostgreSQL repository implementation for loan application workflow stages."""

from datetime import datetime
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from loan_decision_engine.domain.entities import (
    LoanApplicationWorkflow,
    WorkflowStage,
    WorkflowStatus,
)
from loan_decision_engine.domain.interfaces import WorkflowRepository
from loan_decision_engine.infrastructure.database.models import (
    LoanApplicationWorkflowModel,
)


class PostgresWorkflowRepository(WorkflowRepository):
    """PostgreSQL-backed workflow stage repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def close_open_stages(
        self,
        loan_id: str,
        ended_at: datetime,
        status: WorkflowStatus,
        closed_by: Optional[str],
        stages: Optional[Iterable[WorkflowStage]] = None,
    ) -> int:
        stmt = update(LoanApplicationWorkflowModel).where(
            LoanApplicationWorkflowModel.loan_id == loan_id,
            LoanApplicationWorkflowModel.stage_end_date.is_(None),
        )
        if stages is not None:
            stmt = stmt.where(
                LoanApplicationWorkflowModel.current_stage.in_([s.value for s in stages])
            )

        result = await self._session.execute(
            stmt.values(
                stage_end_date=ended_at,
                stage_status=status.value,
                last_modified_by=closed_by,
                last_modified_date=ended_at,
            )
        )
        return result.rowcount

    async def open_stage(
        self,
        stage: LoanApplicationWorkflow,
        created_by: Optional[str],
    ) -> LoanApplicationWorkflow:
        model = LoanApplicationWorkflowModel(
            id=str(stage.id),
            loan_id=stage.loan_id,
            current_stage=stage.current_stage.value,
            stage_status=stage.stage_status.value,
            stage_start_date=stage.stage_start_date,
            stage_end_date=stage.stage_end_date,
            assigned_to=stage.assigned_to,
            due_date=stage.due_date,
            notes=stage.notes,
            created_by=created_by,
        )

        self._session.add(model)
        await self._session.flush()

        return stage

    async def get_open_stage(self, loan_id: str) -> Optional[LoanApplicationWorkflow]:
        stmt = (
            select(LoanApplicationWorkflowModel)
            .where(
                LoanApplicationWorkflowModel.loan_id == loan_id,
                LoanApplicationWorkflowModel.stage_end_date.is_(None),
            )
            .order_by(LoanApplicationWorkflowModel.stage_start_date.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    def _to_entity(self, model: LoanApplicationWorkflowModel) -> LoanApplicationWorkflow:
        return LoanApplicationWorkflow(
            id=UUID(model.id),
            loan_id=model.loan_id,
            current_stage=WorkflowStage(model.current_stage),
            stage_status=WorkflowStatus(model.stage_status),
            stage_start_date=model.stage_start_date,
            stage_end_date=model.stage_end_date,
            assigned_to=model.assigned_to,
            due_date=model.due_date,
            notes=model.notes,
        )
