"""Loan application workflow stage entity."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


class WorkflowStage(str, Enum):
    APPLICATION = "APPLICATION"
    DOCUMENT_VERIFICATION = "DOCUMENT_VERIFICATION"
    CREDIT_CHECK = "CREDIT_CHECK"
    EMPLOYMENT_VERIFICATION = "EMPLOYMENT_VERIFICATION"
    DECISIONING = "DECISIONING"
    COMMITTEE_REVIEW = "COMMITTEE_REVIEW"
    APPROVAL = "APPROVAL"
    DISBURSEMENT = "DISBURSEMENT"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"
    CLOSED = "CLOSED"


class WorkflowStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"


@dataclass
class LoanApplicationWorkflow:
    """
    One stage row in a loan's application pipeline.

    A stage is open while ``stage_end_date`` is None.
    """

    loan_id: str
    current_stage: WorkflowStage
    stage_status: WorkflowStatus = WorkflowStatus.IN_PROGRESS
    id: UUID = field(default_factory=uuid4)
    stage_start_date: datetime = field(default_factory=datetime.utcnow)
    stage_end_date: Optional[datetime] = None
    assigned_to: Optional[str] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.stage_end_date is None

    @property
    def is_overdue(self) -> bool:
        return self.is_open and self.due_date is not None and self.due_date < date.today()
