"""Loan decision API endpoints."""

from dataclasses import asdict
from datetime import date
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, Path, Query

from loan_decision_engine.application.dto import (
    LoanAssessmentRequest,
    MakeLoanDecisionRequest,
    OverrideLoanDecisionRequest,
)
from loan_decision_engine.application.services import LoanDecisionService
from loan_decision_engine.core.dependencies import get_decision_service
from loan_decision_engine.presentation.schemas import (
    DecisionHistoryResponseSchema,
    ErrorResponseSchema,
    LoanAssessmentRequestSchema,
    LoanAssessmentResponseSchema,
    MakeLoanDecisionRequestSchema,
    MakeLoanDecisionResponseSchema,
    OverrideDecisionRequestSchema,
    OverrideDecisionResponseSchema,
)

ActorId = Annotated[
    Optional[str],
    Header(alias="X-User-Id", description="Identifier of the acting user"),
]
LoanId = Annotated[str, Path(min_length=1, max_length=64, description="Loan identifier")]

decision_router = APIRouter(
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid request"},
        404: {"model": ErrorResponseSchema, "description": "Loan or decision not found"},
    },
)


@decision_router.post(
    "/loans/{loan_id}/assessment",
    response_model=LoanAssessmentResponseSchema,
    status_code=200,
    summary="Assess Loan Application",
    description="""
    Run an automated assessment of a loan application.

    Gathers the requested decision factors, scores them through the loan
    product's ruleset (or the fallback scorer) and records the decision.
    A loan that already has a final decision is returned as-is unless
    `force_reevaluation` is set.
    """,
    responses={
        409: {"model": ErrorResponseSchema, "description": "Loan cannot be decided"},
    },
)
async def assess_loan(
    loan_id: LoanId,
    request: LoanAssessmentRequestSchema,
    decision_service: Annotated[LoanDecisionService, Depends(get_decision_service)],
    actor_id: ActorId = None,
) -> LoanAssessmentResponseSchema:
    dto = LoanAssessmentRequest(
        loan_id=loan_id,
        assessment_date=request.assessment_date or date.today(),
        include_document_verification=request.include_document_verification,
        include_employment_verification=request.include_employment_verification,
        include_credit_check=request.include_credit_check,
        force_reevaluation=request.force_reevaluation,
        actor_id=actor_id,
    )

    response = await decision_service.assess_loan_application(dto)

    return LoanAssessmentResponseSchema.model_validate(asdict(response))


@decision_router.post(
    "/loans/{loan_id}/decisions",
    response_model=MakeLoanDecisionResponseSchema,
    status_code=201,
    summary="Record Manual Decision",
    description="""
    Record a manual decision at the loan's next approval level.

    Requires the `X-User-Id` header.
    """,
    responses={
        401: {"model": ErrorResponseSchema, "description": "Acting user missing"},
        409: {"model": ErrorResponseSchema, "description": "Decision not allowed in current state"},
    },
)
async def make_decision(
    loan_id: LoanId,
    request: MakeLoanDecisionRequestSchema,
    decision_service: Annotated[LoanDecisionService, Depends(get_decision_service)],
    actor_id: ActorId = None,
) -> MakeLoanDecisionResponseSchema:
    dto = MakeLoanDecisionRequest(
        loan_id=loan_id,
        decision_result=request.decision_result,
        actor_id=actor_id,
        risk_score=request.risk_score,
        risk_level=request.risk_level,
        factors=[f.to_entity() for f in request.factors],
        conditions=[c.to_entity() for c in request.conditions],
        notes=request.notes,
        approval_level=request.approval_level,
        is_final=request.is_final,
        expiry_date=request.expiry_date,
        manual_override=request.manual_override,
        override_reason=request.override_reason,
    )

    response = await decision_service.make_loan_decision(dto)

    return MakeLoanDecisionResponseSchema.model_validate(asdict(response))


@decision_router.get(
    "/loans/{loan_id}/decisions",
    response_model=DecisionHistoryResponseSchema,
    summary="Get Decision History",
    description="""
    Retrieve every decision recorded for a loan, newest first.
    """,
)
async def get_decision_history(
    loan_id: LoanId,
    decision_service: Annotated[LoanDecisionService, Depends(get_decision_service)],
    include_details: Annotated[
        bool,
        Query(description="Include decision factors and approval conditions"),
    ] = True,
) -> DecisionHistoryResponseSchema:
    response = await decision_service.get_loan_decision_history(
        loan_id,
        include_details=include_details,
    )

    return DecisionHistoryResponseSchema.model_validate(asdict(response))


@decision_router.post(
    "/decisions/{decision_id}/override",
    response_model=OverrideDecisionResponseSchema,
    status_code=201,
    summary="Override Decision",
    description="""
    Supersede a decision with a new, final manual decision.

    The overridden decision is kept unchanged in the loan's history.
    Requires the `X-User-Id` header.
    """,
    responses={
        401: {"model": ErrorResponseSchema, "description": "Acting user missing"},
    },
)
async def override_decision(
    decision_id: Annotated[UUID, Path(description="UUID of the decision to override")],
    request: OverrideDecisionRequestSchema,
    decision_service: Annotated[LoanDecisionService, Depends(get_decision_service)],
    actor_id: ActorId = None,
) -> OverrideDecisionResponseSchema:
    dto = OverrideLoanDecisionRequest(
        decision_id=decision_id,
        new_result=request.new_result,
        override_reason=request.override_reason,
        actor_id=actor_id,
        risk_score=request.risk_score,
        risk_level=request.risk_level,
        factors=(
            [f.to_entity() for f in request.factors]
            if request.factors is not None
            else None
        ),
        conditions=(
            [c.to_entity() for c in request.conditions]
            if request.conditions is not None
            else None
        ),
        notes=request.notes,
    )

    response = await decision_service.override_loan_decision(dto)

    return OverrideDecisionResponseSchema.model_validate(asdict(response))
