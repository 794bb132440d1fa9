"""Ruleset evaluation API endpoint."""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Path

from loan_decision_engine.application.dto import EvaluateRulesetRequest
from loan_decision_engine.application.services import RulesetService
from loan_decision_engine.core.dependencies import get_ruleset_service
from loan_decision_engine.presentation.schemas import (
    ErrorResponseSchema,
    EvaluateRulesetRequestSchema,
    RulesetEvaluationResponseSchema,
)

ruleset_router = APIRouter(prefix="/rulesets")


@ruleset_router.post(
    "/{ruleset_id}/evaluate",
    response_model=RulesetEvaluationResponseSchema,
    summary="Evaluate Ruleset",
    description="""
    Evaluate a decisioning ruleset against the given loan data.

    Nothing is recorded; use this to preview what a ruleset decides.
    """,
    responses={
        404: {"model": ErrorResponseSchema, "description": "Ruleset not found"},
    },
)
async def evaluate_ruleset(
    ruleset_id: Annotated[str, Path(min_length=1, max_length=64)],
    request: EvaluateRulesetRequestSchema,
    ruleset_service: Annotated[RulesetService, Depends(get_ruleset_service)],
) -> RulesetEvaluationResponseSchema:
    response = await ruleset_service.evaluate_ruleset(
        EvaluateRulesetRequest(ruleset_id=ruleset_id, loan_data=request.loan_data)
    )

    return RulesetEvaluationResponseSchema.model_validate(asdict(response))
