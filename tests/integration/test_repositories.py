"""
Integration tests for the SQLAlchemy repositories.

These tests verify:
1. Decisions keep factors and conditions through a save/load cycle
2. Exactly one decision per loan is current
3. Loan loading joins the product terms and client
4. Workflow stages open and close
"""

from datetime import date, datetime, timedelta
from uuid import uuid4

import pytest

from loan_decision_engine.domain.entities import (
    ApprovalCondition,
    DecisionFactor,
    DecisionFactorType,
    DecisionResult,
    DecisionSource,
    FactorImpact,
    LoanApplicationWorkflow,
    LoanDecision,
    LoanStatus,
    RiskLevel,
    WorkflowStage,
    WorkflowStatus,
)


def make_decision(loan_id: str = "L-1", **overrides) -> LoanDecision:
    values = {
        "loan_id": loan_id,
        "decision_result": DecisionResult.CONDITIONALLY_APPROVED,
        "decision_source": DecisionSource.AUTOMATED,
        "risk_score": 735,
        "risk_level": RiskLevel.LOW,
        "decision_factors": [
            DecisionFactor(
                type=DecisionFactorType.CREDIT_SCORE,
                name="credit_score",
                value=710,
                threshold=650,
                impact=FactorImpact.POSITIVE,
                details="Credit score: 710, Minimum required: 650",
            ),
        ],
        "approval_conditions": [
            ApprovalCondition(
                description="Resolve issue: Employment not yet verified",
                type="EMPLOYMENT",
                required_by=date(2025, 10, 1),
            ),
        ],
        "is_final": True,
    }
    values.update(overrides)
    return LoanDecision(**values)


class TestDecisionRepository:
    """Tests for PostgresDecisionRepository."""

    @pytest.mark.asyncio
    async def test_round_trip(self, seed, decision_repository):
        await seed.standard_loan()
        decision = make_decision()

        await decision_repository.save(decision)
        loaded = await decision_repository.get_by_id(decision.id)

        assert loaded.id == decision.id
        assert loaded.decision_result == DecisionResult.CONDITIONALLY_APPROVED
        assert loaded.risk_level == RiskLevel.LOW
        assert loaded.decision_factors == decision.decision_factors
        assert loaded.approval_conditions == decision.approval_conditions
        assert loaded.is_current is True

    @pytest.mark.asyncio
    async def test_only_newest_is_current(self, seed, decision_repository):
        await seed.standard_loan()
        first = make_decision()
        second = make_decision(previous_decision_id=first.id)

        await decision_repository.save(first)
        await decision_repository.save(second)

        current = await decision_repository.get_current("L-1")
        assert current.id == second.id
        assert (await decision_repository.get_by_id(first.id)).is_current is False

    @pytest.mark.asyncio
    async def test_current_is_per_loan(self, seed, decision_repository):
        await seed.standard_loan()
        await seed.loan(id="L-2")
        one = make_decision("L-1")
        two = make_decision("L-2")

        await decision_repository.save(one)
        await decision_repository.save(two)

        assert (await decision_repository.get_current("L-1")).id == one.id
        assert (await decision_repository.get_current("L-2")).id == two.id

    @pytest.mark.asyncio
    async def test_unknown_decision(self, decision_repository):
        assert await decision_repository.get_by_id(uuid4()) is None
        assert await decision_repository.get_current("L-404") is None


class TestLoanRepository:
    """Tests for PostgresLoanRepository."""

    @pytest.mark.asyncio
    async def test_loads_terms_and_client(self, seed, loan_repository):
        await seed.standard_loan(
            product={"min_credit_score": 680, "approval_levels": 2},
            member_savings_account_id="SAV-9",
        )

        loan = await loan_repository.get_by_id("L-1", for_update=True)

        assert loan.loan_status == LoanStatus.SUBMITTED_AND_PENDING_APPROVAL
        assert loan.terms.min_credit_score == 680
        assert loan.terms.approval_levels == 2
        assert loan.client.member_since == date(2020, 1, 1)
        assert loan.member_savings_account_id == "SAV-9"

    @pytest.mark.asyncio
    async def test_unknown_loan(self, loan_repository):
        assert await loan_repository.get_by_id("L-404") is None

    @pytest.mark.asyncio
    async def test_average_open_installment(self, seed, loan_repository):
        await seed.standard_loan()
        await seed.installments("L-1", [300.0, 500.0])
        await seed.installments("L-1", [10_000.0], completed=True)

        assert await loan_repository.get_average_open_installment("L-1") == 400.0
        assert await loan_repository.get_average_open_installment("L-404") == 0.0

    @pytest.mark.asyncio
    async def test_update_status_stamps_approval(self, seed, loan_repository):
        loan_model = await seed.standard_loan()
        decided_at = datetime(2025, 9, 17, 10, 30)

        await loan_repository.update_status(
            "L-1",
            LoanStatus.APPROVED,
            decision_source=DecisionSource.MANUAL,
            decided_on=decided_at,
            decided_by="officer-7",
        )

        assert loan_model.loan_status == "approved"
        assert loan_model.approved_on_date == date(2025, 9, 17)
        assert loan_model.approved_by_user_id == "officer-7"
        assert loan_model.decision_source == "manual"
        assert loan_model.rejected_on_date is None


class TestWorkflowRepository:
    """Tests for PostgresWorkflowRepository."""

    @pytest.mark.asyncio
    async def test_close_only_listed_stages(self, seed, workflow_repository):
        await seed.standard_loan()
        await seed.workflow_stage(stage="DECISIONING")
        await seed.workflow_stage(stage="DOCUMENT_VERIFICATION")

        closed = await workflow_repository.close_open_stages(
            "L-1",
            ended_at=datetime(2025, 9, 17, 12, 0),
            status=WorkflowStatus.COMPLETED,
            closed_by="officer-7",
            stages=[WorkflowStage.DECISIONING],
        )

        assert closed == 1
        open_stage = await workflow_repository.get_open_stage("L-1")
        assert open_stage.current_stage == WorkflowStage.DOCUMENT_VERIFICATION

    @pytest.mark.asyncio
    async def test_open_stage(self, seed, workflow_repository):
        await seed.standard_loan()
        stage = LoanApplicationWorkflow(
            loan_id="L-1",
            current_stage=WorkflowStage.APPROVAL,
            assigned_to="officer-7",
            due_date=date(2025, 9, 20),
        )

        await workflow_repository.open_stage(stage, created_by="officer-7")
        loaded = await workflow_repository.get_open_stage("L-1")

        assert loaded.id == stage.id
        assert loaded.current_stage == WorkflowStage.APPROVAL
        assert loaded.stage_status == WorkflowStatus.IN_PROGRESS
        assert loaded.due_date == stage.due_date
        assert loaded.is_open

    @pytest.mark.asyncio
    async def test_no_open_stage(self, seed, workflow_repository):
        await seed.standard_loan()
        await seed.workflow_stage(stage_end_date=datetime(2025, 9, 16, 9, 0))

        assert await workflow_repository.get_open_stage("L-1") is None

    def test_overdue(self):
        stage = LoanApplicationWorkflow(
            loan_id="L-1",
            current_stage=WorkflowStage.APPROVAL,
            due_date=date.today() - timedelta(days=1),
        )

        assert stage.is_overdue
