"""
Fixtures for integration tests.

Provides:
- In-memory SQLite database and session
- Seeder for clients, products, loans, rulesets, documents, schedules and
  workflow stages
- Mock credit bureau client (healthy and failing)
- Service-level LoanDecisionService / RulesetService wired to the session
- Test client for the FastAPI app with the session and bureau overridden
"""

from datetime import date, datetime, timedelta
from typing import AsyncGenerator, Awaitable, Callable, Iterable, List, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from loan_decision_engine.main import app
from loan_decision_engine.application.services import (
    DecisionLedger,
    LoanDecisionService,
    RulesetService,
    WorkflowService,
)
from loan_decision_engine.core.dependencies import get_credit_client
from loan_decision_engine.domain.entities import (
    CreditCheckRequest,
    CreditCheckResult,
)
from loan_decision_engine.domain.exceptions import CreditCheckException
from loan_decision_engine.domain.interfaces import CreditCheckClient, WorkflowRepository
from loan_decision_engine.infrastructure.database import (
    Base,
    ClientModel,
    DecisioningRuleModel,
    DecisioningRulesetModel,
    LoanApplicationWorkflowModel,
    LoanDocumentModel,
    LoanModel,
    LoanProductModel,
    LoanRepaymentScheduleModel,
    get_db_session,
)
from loan_decision_engine.infrastructure.repositories import (
    PostgresDecisionRepository,
    PostgresLoanRepository,
    PostgresRulesetRepository,
    PostgresWorkflowRepository,
    SqlAlchemyUnitOfWork,
)


ASSESSMENT_DATE = date(2025, 9, 17)


# =============================================================================
# Mock Clients
# =============================================================================

class MockCreditCheckClient(CreditCheckClient):
    """Mock credit bureau that returns a fixed report or always fails."""

    def __init__(
        self,
        credit_score: int = 760,
        score_date: date = ASSESSMENT_DATE,
        fail_mode: bool = False,
        **report_overrides,
    ):
        self.credit_score = credit_score
        self.score_date = score_date
        self.fail_mode = fail_mode
        self.report_overrides = report_overrides
        self.requests: List[CreditCheckRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    async def perform_credit_check(self, request: CreditCheckRequest) -> CreditCheckResult:
        self.requests.append(request)

        if self.fail_mode:
            raise CreditCheckException("Credit bureau returned 503", status_code=503)

        return CreditCheckResult(
            credit_score=self.credit_score,
            score_date=self.score_date,
            risk_category="LOW",
            **self.report_overrides,
        )


class FailingWorkflowRepository(PostgresWorkflowRepository):
    """Workflow repository whose stage writes blow up mid-transaction."""

    async def open_stage(self, stage, created_by):
        raise RuntimeError("workflow store unavailable")


# =============================================================================
# Seeding
# =============================================================================

class Seeder:
    """Inserts reference data the decision engine reads."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _commit(self, *models):
        self._session.add_all(models)
        await self._session.commit()
        return models[0] if len(models) == 1 else models

    async def client(self, id: str = "C-1", **overrides) -> ClientModel:
        values = {
            "firstname": "Amina",
            "lastname": "Okafor",
            "date_of_birth": date(1988, 4, 2),
            "member_since": date(2020, 1, 1),
        }
        values.update(overrides)
        return await self._commit(ClientModel(id=id, **values))

    async def product(self, id: str = "P-STD", **overrides) -> LoanProductModel:
        values = {
            "name": "Standard Microloan",
            "min_credit_score": 650,
            "max_debt_to_income_ratio": 0.40,
            "member_years_required": 1,
            "requires_savings_account": False,
            "credit_committee_approval_required": False,
            "approval_levels": 1,
            "decisioning_ruleset_id": None,
        }
        values.update(overrides)
        return await self._commit(LoanProductModel(id=id, **values))

    async def loan(
        self,
        id: str = "L-1",
        client_id: str = "C-1",
        product_id: str = "P-STD",
        **overrides,
    ) -> LoanModel:
        values = {
            "loan_officer_id": "officer-7",
            "principal_amount": 5000.0,
            "loan_status": "submitted_and_pending_approval",
            "credit_score": 710,
            "credit_check_date": ASSESSMENT_DATE - timedelta(days=10),
            "debt_to_income_ratio": 0.30,
            "employment_verified": True,
        }
        values.update(overrides)
        return await self._commit(
            LoanModel(id=id, client_id=client_id, product_id=product_id, **values)
        )

    async def standard_loan(self, id: str = "L-1", product: Optional[dict] = None, **overrides):
        """Client C-1, product P-STD and one loan on them."""
        await self.client()
        await self.product(**(product or {}))
        return await self.loan(id=id, **overrides)

    async def ruleset(
        self,
        id: str = "RS-1",
        rules: Iterable[tuple] = (),
        bare_definitions: bool = False,
        **overrides,
    ) -> DecisioningRulesetModel:
        """
        Insert a ruleset. Each rule is
        ``(rule_id, condition, action, adjustment, priority)``. With
        ``bare_definitions`` the condition is stored as the whole definition.
        """
        values = {"name": "Standard rules", "is_active": True, "version": 1}
        values.update(overrides)
        ruleset = DecisioningRulesetModel(id=id, **values)
        ruleset.rules = [
            DecisioningRuleModel(
                id=rule_id,
                rule_name=rule_id.lower(),
                rule_type="RISK",
                rule_definition=condition if bare_definitions else {"condition": condition},
                action_on_trigger=action,
                risk_score_adjustment=adjustment,
                priority=priority,
                is_active=True,
            )
            for rule_id, condition, action, adjustment, priority in rules
        ]
        return await self._commit(ruleset)

    async def document(
        self,
        loan_id: str = "L-1",
        verification_status: Optional[str] = "verified",
        is_required: bool = True,
        document_type: str = "NATIONAL_ID",
    ) -> LoanDocumentModel:
        return await self._commit(
            LoanDocumentModel(
                loan_id=loan_id,
                document_type=document_type,
                status="uploaded",
                verification_status=verification_status,
                is_required=is_required,
            )
        )

    async def installments(self, loan_id: str, amounts: Iterable[float], completed: bool = False):
        models = [
            LoanRepaymentScheduleModel(
                loan_id=loan_id,
                installment_number=number,
                due_date=ASSESSMENT_DATE + timedelta(days=30 * number),
                principal_amount=amount,
                completed=completed,
            )
            for number, amount in enumerate(amounts, start=1)
        ]
        return await self._commit(*models)

    async def workflow_stage(
        self,
        loan_id: str = "L-1",
        stage: str = "DECISIONING",
        **overrides,
    ):
        values = {
            "stage_status": "in_progress",
            "stage_start_date": datetime(2025, 9, 1, 9, 0),
            "due_date": None,
        }
        values.update(overrides)
        return await self._commit(
            LoanApplicationWorkflowModel(loan_id=loan_id, current_stage=stage, **values)
        )


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def seed(test_session: AsyncSession) -> Seeder:
    return Seeder(test_session)


@pytest.fixture
def assessment_date() -> date:
    return ASSESSMENT_DATE


# =============================================================================
# Repository Fixtures
# =============================================================================

@pytest.fixture
def loan_repository(test_session: AsyncSession) -> PostgresLoanRepository:
    return PostgresLoanRepository(test_session)


@pytest.fixture
def decision_repository(test_session: AsyncSession) -> PostgresDecisionRepository:
    return PostgresDecisionRepository(test_session)


@pytest.fixture
def workflow_repository(test_session: AsyncSession) -> PostgresWorkflowRepository:
    return PostgresWorkflowRepository(test_session)


@pytest.fixture
def workflow_stages(
    test_session: AsyncSession,
) -> Callable[[str], Awaitable[List[LoanApplicationWorkflowModel]]]:
    """Read a loan's workflow stage rows, oldest first."""

    async def read(loan_id: str) -> List[LoanApplicationWorkflowModel]:
        result = await test_session.execute(
            select(LoanApplicationWorkflowModel)
            .where(LoanApplicationWorkflowModel.loan_id == loan_id)
            .order_by(LoanApplicationWorkflowModel.stage_start_date.asc())
        )
        return list(result.scalars().all())

    return read


# =============================================================================
# Mock Client Fixtures
# =============================================================================

@pytest.fixture
def credit_client() -> MockCreditCheckClient:
    """Create a healthy mock credit bureau."""
    return MockCreditCheckClient()


@pytest.fixture
def failing_credit_client() -> MockCreditCheckClient:
    """Create a credit bureau that always fails."""
    return MockCreditCheckClient(fail_mode=True)


@pytest.fixture
def make_credit_client() -> Callable[..., MockCreditCheckClient]:
    """Factory for a mock bureau returning a customised report."""
    return MockCreditCheckClient


# =============================================================================
# Service Fixtures
# =============================================================================

@pytest.fixture
def make_decision_service(
    test_session: AsyncSession,
    credit_client: MockCreditCheckClient,
) -> Callable[..., LoanDecisionService]:
    """Factory for a LoanDecisionService over the test session."""

    def factory(
        credit: Optional[CreditCheckClient] = None,
        workflow_repository: Optional[WorkflowRepository] = None,
    ) -> LoanDecisionService:
        loan_repo = PostgresLoanRepository(test_session)
        return LoanDecisionService(
            loan_repository=loan_repo,
            ledger=DecisionLedger(PostgresDecisionRepository(test_session)),
            ruleset_service=RulesetService(PostgresRulesetRepository(test_session)),
            workflow_service=WorkflowService(
                loan_repository=loan_repo,
                workflow_repository=(
                    workflow_repository or PostgresWorkflowRepository(test_session)
                ),
            ),
            credit_client=credit or credit_client,
            unit_of_work=SqlAlchemyUnitOfWork(test_session),
        )

    return factory


@pytest.fixture
def decision_service(make_decision_service) -> LoanDecisionService:
    return make_decision_service()


@pytest.fixture
def ruleset_service(test_session: AsyncSession) -> RulesetService:
    return RulesetService(PostgresRulesetRepository(test_session))


# =============================================================================
# App Client Fixtures
# =============================================================================

def _override_dependencies(session: AsyncSession, credit: CreditCheckClient) -> None:
    async def override_get_db_session():
        yield session

    def override_get_credit_client():
        return credit

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_credit_client] = override_get_credit_client


@pytest_asyncio.fixture
async def client(
    test_session: AsyncSession,
    credit_client: MockCreditCheckClient,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with mocked dependencies.

    This client:
    - Uses the in-memory SQLite session for every repository
    - Mocks the credit bureau
    """
    _override_dependencies(test_session, credit_client)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client_with_failing_bureau(
    test_session: AsyncSession,
    failing_credit_client: MockCreditCheckClient,
) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client where the credit bureau always fails."""
    _override_dependencies(test_session, failing_credit_client)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def failing_workflow_repository(test_session: AsyncSession) -> FailingWorkflowRepository:
    return FailingWorkflowRepository(test_session)
