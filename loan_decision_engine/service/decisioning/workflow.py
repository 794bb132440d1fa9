"""
Workflow Stage Mapping for the Loan Decision Engine.

A final decision moves the loan out of decisioning:

    APPROVED                -> loan approved, stage APPROVAL
    DECLINED                -> loan rejected, stage REJECTED
    CONDITIONALLY_APPROVED  -> loan unchanged, stage COMMITTEE_REVIEW
    MANUAL_REVIEW           -> loan unchanged, stage COMMITTEE_REVIEW
"""

from typing import Optional

from loan_decision_engine.domain.entities import (
    DecisionResult,
    LoanStatus,
    WorkflowStage,
)

# Stages a manual decision may close
DECISION_STAGES = (WorkflowStage.DECISIONING, WorkflowStage.COMMITTEE_REVIEW)


def stage_for_result(result: DecisionResult) -> WorkflowStage:
    """Pipeline stage a final decision opens."""
    if result == DecisionResult.APPROVED:
        return WorkflowStage.APPROVAL
    if result == DecisionResult.DECLINED:
        return WorkflowStage.REJECTED
    return WorkflowStage.COMMITTEE_REVIEW


def loan_status_for_result(result: DecisionResult) -> Optional[LoanStatus]:
    """Loan status a final decision sets, None when the status is left alone."""
    if result == DecisionResult.APPROVED:
        return LoanStatus.APPROVED
    if result == DecisionResult.DECLINED:
        return LoanStatus.REJECTED
    return None
