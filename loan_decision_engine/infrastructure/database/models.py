"""SQLAlchemy ORM models for loan decisioning."""

from datetime import datetime, date
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class ClientModel(Base):
    """Loan applicant."""

    __tablename__ = "client"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    firstname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    lastname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    member_since: Mapped[date | None] = mapped_column(Date, nullable=True)


class LoanProductModel(Base):
    """Loan product with its decisioning thresholds."""

    __tablename__ = "loan_product"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    min_credit_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_debt_to_income_ratio: Mapped[float | None] = mapped_column(Float, nullable=True)
    member_years_required: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    requires_savings_account: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    credit_committee_approval_required: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    approval_levels: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    decisioning_ruleset_id: Mapped[str | None] = mapped_column(
        String(64),
        ForeignKey("decisioning_ruleset.id"),
        nullable=True,
    )


class LoanModel(Base):
    """Loan application and its decisioning state."""

    __tablename__ = "loan"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    client_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("client.id"),
        nullable=False,
        index=True,
    )
    product_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("loan_product.id"),
        nullable=False,
    )
    loan_officer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    principal_amount: Mapped[float] = mapped_column(Float, nullable=False)
    loan_status: Mapped[str] = mapped_column(String(50), nullable=False)
    credit_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    credit_check_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    debt_to_income_ratio: Mapped[float | None] = mapped_column(Float, nullable=True)
    employment_verified: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )
    monthly_income: Mapped[float | None] = mapped_column(Float, nullable=True)
    monthly_expenses: Mapped[float | None] = mapped_column(Float, nullable=True)
    member_savings_account_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    decision_source: Mapped[str | None] = mapped_column(String(20), nullable=True)
    approved_on_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    approved_by_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    rejected_on_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    rejected_by_user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_modified_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_modified_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    client: Mapped["ClientModel"] = relationship("ClientModel")
    product: Mapped["LoanProductModel"] = relationship("LoanProductModel")


class LoanDocumentModel(Base):
    """Document on file for a loan."""

    __tablename__ = "loan_document"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    loan_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("loan.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="uploaded")
    verification_status: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class LoanRepaymentScheduleModel(Base):
    """One scheduled installment of a loan."""

    __tablename__ = "loan_repayment_schedule"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    loan_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("loan.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    installment_number: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    principal_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    interest_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    fee_charges_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    penalty_charges_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class LoanDecisionModel(Base):
    """Persisted decision record. Rows are appended, never rewritten."""

    __tablename__ = "loan_decision"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    loan_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("loan.id"),
        nullable=False,
        index=True,
    )
    decision_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )
    decision_result: Mapped[str] = mapped_column(String(30), nullable=False)
    decision_source: Mapped[str] = mapped_column(String(20), nullable=False)
    decision_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    risk_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    risk_level: Mapped[str | None] = mapped_column(String(10), nullable=True)
    decision_factors: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    approval_conditions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    approval_level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    next_approval_level: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_final: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    manual_override: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    override_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    previous_decision_id: Mapped[str | None] = mapped_column(
        Uuid(as_uuid=False),
        ForeignKey("loan_decision.id"),
        nullable=True,
    )
    is_current: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
    )
    created_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )


class DecisioningRulesetModel(Base):
    """Named, versioned collection of decisioning rules."""

    __tablename__ = "decisioning_ruleset"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    effective_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)

    rules: Mapped[list["DecisioningRuleModel"]] = relationship(
        "DecisioningRuleModel",
        back_populates="ruleset",
        cascade="all, delete-orphan",
        order_by="DecisioningRuleModel.priority",
    )


class DecisioningRuleModel(Base):
    """Boolean condition mapped to an action and a risk score adjustment."""

    __tablename__ = "decisioning_rule"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    ruleset_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("decisioning_ruleset.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rule_name: Mapped[str] = mapped_column(String(100), nullable=False)
    rule_type: Mapped[str] = mapped_column(String(50), nullable=False)
    rule_definition: Mapped[dict] = mapped_column(JSON, nullable=False)
    action_on_trigger: Mapped[str] = mapped_column(String(30), nullable=False)
    risk_score_adjustment: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    ruleset: Mapped["DecisioningRulesetModel"] = relationship(
        "DecisioningRulesetModel",
        back_populates="rules",
    )


class LoanApplicationWorkflowModel(Base):
    """One stage row in a loan's application pipeline."""

    __tablename__ = "loan_application_workflow"

    id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    loan_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("loan.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    current_stage: Mapped[str] = mapped_column(String(30), nullable=False)
    stage_status: Mapped[str] = mapped_column(String(20), nullable=False)
    stage_start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime.utcnow,
    )
    stage_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    assigned_to: Mapped[str | None] = mapped_column(String(64), nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_modified_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    last_modified_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
