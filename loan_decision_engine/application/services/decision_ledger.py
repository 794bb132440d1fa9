"""Decision ledger - the append-only, chain-linked decision store."""

from typing import List, Optional
from uuid import UUID

import structlog

from loan_decision_engine.core.metrics import record_decision
from loan_decision_engine.domain.entities import LoanDecision
from loan_decision_engine.domain.exceptions import (
    DecisionNotFoundException,
    InvalidDecisionStateException,
)
from loan_decision_engine.domain.interfaces import DecisionRepository

logger = structlog.get_logger(__name__)


class DecisionLedger:
    """
    Append-only view over a loan's decisions.

    Every decision links to its predecessor through ``previous_decision_id``.
    Appending checks that link before the decision is written: the
    predecessor must exist for the same loan and, unless the new decision is
    an override, the approval level may not go down.
    """

    def __init__(self, decision_repository: DecisionRepository):
        self._decision_repo = decision_repository

    async def current(self, loan_id: str) -> Optional[LoanDecision]:
        """The most recently appended decision for a loan, if any."""
        return await self._decision_repo.get_current(loan_id)

    async def get(self, decision_id: UUID) -> LoanDecision:
        """
        Get a specific decision by ID.

        Raises:
            DecisionNotFoundException: If decision not found
        """
        decision = await self._decision_repo.get_by_id(decision_id)
        if decision is None:
            raise DecisionNotFoundException(str(decision_id))
        return decision

    async def history(self, loan_id: str) -> List[LoanDecision]:
        """All decisions for a loan, newest first."""
        return await self._decision_repo.get_by_loan_id(loan_id)

    async def append(self, decision: LoanDecision) -> LoanDecision:
        """
        Append a decision and make it the loan's current decision.

        Raises:
            InvalidDecisionStateException: If the decision does not link
                correctly to its predecessor
        """
        if decision.previous_decision_id is not None:
            previous = await self._decision_repo.get_by_id(decision.previous_decision_id)

            if previous is None or previous.loan_id != decision.loan_id:
                raise InvalidDecisionStateException(
                    f"Previous decision {decision.previous_decision_id} "
                    f"does not belong to loan {decision.loan_id}"
                )

            if (
                not decision.manual_override
                and decision.approval_level < previous.approval_level
            ):
                raise InvalidDecisionStateException(
                    f"Approval level {decision.approval_level} is below "
                    f"the previous level {previous.approval_level}"
                )

        saved = await self._decision_repo.save(decision)

        record_decision(saved.decision_result.value, saved.decision_source.value)
        logger.info(
            "decision_persisted",
            loan_id=saved.loan_id,
            decision_id=str(saved.id),
            result=saved.decision_result.value,
            source=saved.decision_source.value,
            approval_level=saved.approval_level,
            is_final=saved.is_final,
            previous_decision_id=(
                str(saved.previous_decision_id) if saved.previous_decision_id else None
            ),
        )

        return saved
