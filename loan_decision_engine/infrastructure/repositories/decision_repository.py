"""PostgreSQL implementation of DecisionRepository."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from loan_decision_engine.domain.entities import (
    ApprovalCondition,
    DecisionFactor,
    DecisionResult,
    DecisionSource,
    LoanDecision,
    RiskLevel,
)
from loan_decision_engine.domain.interfaces import DecisionRepository
from loan_decision_engine.infrastructure.database.models import LoanDecisionModel


class PostgresDecisionRepository(DecisionRepository):
    """
    PostgreSQL implementation of the Decision repository.

    Decisions are only ever inserted. The one column that changes after
    insert is ``is_current``, which moves to the newest decision of a loan.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, decision: LoanDecision) -> LoanDecision:
        """Persist a decision and make it the loan's current decision."""
        await self._session.execute(
            update(LoanDecisionModel)
            .where(
                LoanDecisionModel.loan_id == decision.loan_id,
                LoanDecisionModel.is_current.is_(True),
            )
            .values(is_current=False)
        )

        model = LoanDecisionModel(
            id=str(decision.id),
            loan_id=decision.loan_id,
            decision_timestamp=decision.decision_timestamp,
            decision_result=decision.decision_result.value,
            decision_source=decision.decision_source.value,
            decision_by=decision.decision_by,
            risk_score=decision.risk_score,
            risk_level=decision.risk_level.value if decision.risk_level else None,
            decision_factors=[f.to_dict() for f in decision.decision_factors],
            approval_conditions=[c.to_dict() for c in decision.approval_conditions],
            notes=decision.notes,
            approval_level=decision.approval_level,
            next_approval_level=decision.next_approval_level,
            is_final=decision.is_final,
            expiry_date=decision.expiry_date,
            manual_override=decision.manual_override,
            override_reason=decision.override_reason,
            previous_decision_id=(
                str(decision.previous_decision_id)
                if decision.previous_decision_id
                else None
            ),
            is_current=True,
            created_date=decision.decision_timestamp,
        )

        self._session.add(model)
        await self._session.flush()

        return decision

    async def get_by_id(self, decision_id: UUID) -> Optional[LoanDecision]:
        """Retrieve a decision by ID."""
        stmt = select(LoanDecisionModel).where(LoanDecisionModel.id == str(decision_id))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def get_current(self, loan_id: str) -> Optional[LoanDecision]:
        stmt = (
            select(LoanDecisionModel)
            .where(
                LoanDecisionModel.loan_id == loan_id,
                LoanDecisionModel.is_current.is_(True),
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def get_by_loan_id(self, loan_id: str) -> List[LoanDecision]:
        """Retrieve decisions for a loan, ordered by decision_timestamp descending."""
        stmt = (
            select(LoanDecisionModel)
            .where(LoanDecisionModel.loan_id == loan_id)
            .order_by(LoanDecisionModel.decision_timestamp.desc())
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    def _to_entity(self, model: LoanDecisionModel) -> LoanDecision:
        """Convert database model to domain entity."""
        return LoanDecision(
            id=UUID(model.id),
            loan_id=model.loan_id,
            decision_timestamp=model.decision_timestamp,
            decision_result=DecisionResult(model.decision_result),
            decision_source=DecisionSource(model.decision_source),
            decision_by=model.decision_by,
            risk_score=model.risk_score,
            risk_level=RiskLevel(model.risk_level) if model.risk_level else None,
            decision_factors=[
                DecisionFactor.from_dict(f) for f in model.decision_factors or []
            ],
            approval_conditions=[
                ApprovalCondition.from_dict(c) for c in model.approval_conditions or []
            ],
            notes=model.notes,
            approval_level=model.approval_level,
            next_approval_level=model.next_approval_level,
            is_final=model.is_final,
            expiry_date=model.expiry_date,
            manual_override=model.manual_override,
            override_reason=model.override_reason,
            previous_decision_id=(
                UUID(model.previous_decision_id) if model.previous_decision_id else None
            ),
            is_current=model.is_current,
        )
