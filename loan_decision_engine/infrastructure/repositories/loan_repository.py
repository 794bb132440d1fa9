"""PostgreSQL implementation of LoanRepository."""

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from loan_decision_engine.domain.entities import (
    Client,
    DecisionSource,
    Loan,
    LoanDocument,
    LoanStatus,
    ProductTerms,
)
from loan_decision_engine.domain.exceptions import LoanNotFoundException
from loan_decision_engine.domain.interfaces import LoanRepository
from loan_decision_engine.infrastructure.database.models import (
    LoanDocumentModel,
    LoanModel,
    LoanRepaymentScheduleModel,
)


class PostgresLoanRepository(LoanRepository):
    """
    PostgreSQL implementation of the Loan repository.

    Uses SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, loan_id: str, for_update: bool = False) -> Optional[Loan]:
        """
        Retrieve a loan with its client and product.

        With ``for_update`` the loan row stays locked until the surrounding
        transaction ends, which serializes concurrent decisioning of one loan.
        """
        stmt = (
            select(LoanModel)
            .options(
                selectinload(LoanModel.client),
                selectinload(LoanModel.product),
            )
            .where(LoanModel.id == loan_id)
        )
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)

        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def get_documents(self, loan_id: str) -> List[LoanDocument]:
        stmt = select(LoanDocumentModel).where(LoanDocumentModel.loan_id == loan_id)
        result = await self._session.execute(stmt)

        return [
            LoanDocument(
                document_type=doc.document_type,
                status=doc.status,
                verification_status=doc.verification_status,
                is_required=doc.is_required,
            )
            for doc in result.scalars().all()
        ]

    async def get_average_open_installment(self, loan_id: str) -> float:
        installment_total = (
            LoanRepaymentScheduleModel.principal_amount
            + LoanRepaymentScheduleModel.interest_amount
            + LoanRepaymentScheduleModel.fee_charges_amount
            + LoanRepaymentScheduleModel.penalty_charges_amount
        )
        stmt = select(func.avg(installment_total)).where(
            LoanRepaymentScheduleModel.loan_id == loan_id,
            LoanRepaymentScheduleModel.completed.is_(False),
        )
        result = await self._session.execute(stmt)
        average = result.scalar_one_or_none()

        return float(average) if average is not None else 0.0

    async def update_credit_score(
        self,
        loan_id: str,
        credit_score: int,
        score_date: date,
    ) -> None:
        model = await self._get_model(loan_id)
        model.credit_score = credit_score
        model.credit_check_date = score_date
        await self._session.flush()

    async def update_status(
        self,
        loan_id: str,
        status: LoanStatus,
        decision_source: DecisionSource,
        decided_on: datetime,
        decided_by: Optional[str],
    ) -> None:
        model = await self._get_model(loan_id)
        model.loan_status = status.value
        model.decision_source = decision_source.value
        model.last_modified_by = decided_by
        model.last_modified_date = decided_on

        if status == LoanStatus.APPROVED:
            model.approved_on_date = decided_on.date()
            model.approved_by_user_id = decided_by
        elif status == LoanStatus.REJECTED:
            model.rejected_on_date = decided_on.date()
            model.rejected_by_user_id = decided_by

        await self._session.flush()

    async def _get_model(self, loan_id: str) -> LoanModel:
        model = await self._session.get(LoanModel, loan_id)
        if model is None:
            raise LoanNotFoundException(loan_id)
        return model

    def _to_entity(self, model: LoanModel) -> Loan:
        """Convert database model to domain entity."""
        product = model.product
        client = model.client

        return Loan(
            id=model.id,
            client=Client(
                id=client.id,
                firstname=client.firstname,
                lastname=client.lastname,
                date_of_birth=client.date_of_birth,
                member_since=client.member_since,
            ),
            product_id=model.product_id,
            terms=ProductTerms(
                min_credit_score=product.min_credit_score,
                max_debt_to_income_ratio=product.max_debt_to_income_ratio,
                member_years_required=product.member_years_required or 0,
                requires_savings_account=product.requires_savings_account,
                credit_committee_approval_required=product.credit_committee_approval_required,
                approval_levels=product.approval_levels or 1,
                decisioning_ruleset_id=product.decisioning_ruleset_id,
            ),
            loan_status=model.loan_status,
            principal_amount=model.principal_amount,
            loan_officer_id=model.loan_officer_id,
            credit_score=model.credit_score,
            credit_check_date=model.credit_check_date,
            debt_to_income_ratio=model.debt_to_income_ratio,
            employment_verified=model.employment_verified,
            monthly_income=model.monthly_income,
            monthly_expenses=model.monthly_expenses,
            member_savings_account_id=model.member_savings_account_id,
        )
