"""Ruleset service - loads rulesets and evaluates them against loan data."""

from datetime import date
from typing import Any, Mapping, Optional

import structlog

from loan_decision_engine.application.dto import (
    EvaluateRulesetRequest,
    RulesetEvaluationResponse,
)
from loan_decision_engine.domain.entities import DecisioningRuleset, RulesetEvaluation
from loan_decision_engine.domain.exceptions import (
    InvalidDecisionRequestException,
    RulesetNotFoundException,
)
from loan_decision_engine.domain.interfaces import RulesetRepository
from loan_decision_engine.service.decisioning import (
    DecisioningSettings,
    decisioning_settings,
    evaluate_rules,
)

logger = structlog.get_logger(__name__)


class RulesetService:
    """
    Application service for ruleset evaluation.

    Evaluation is read-only: no decision is written.
    """

    def __init__(
        self,
        ruleset_repository: RulesetRepository,
        settings: DecisioningSettings = decisioning_settings,
    ):
        self._ruleset_repo = ruleset_repository
        self._settings = settings

    async def evaluate_ruleset(
        self,
        request: EvaluateRulesetRequest,
    ) -> RulesetEvaluationResponse:
        """
        Evaluate a ruleset against caller-supplied loan data.

        Raises:
            InvalidDecisionRequestException: If request validation fails
            RulesetNotFoundException: If the ruleset does not exist
        """
        errors = request.validate()
        if errors:
            raise InvalidDecisionRequestException("; ".join(errors))

        evaluation = await self.evaluate(request.ruleset_id, request.loan_data)
        return RulesetEvaluationResponse.from_entity(evaluation)

    async def evaluate(
        self,
        ruleset_id: str,
        loan_data: Mapping[str, Any],
        today: Optional[date] = None,
    ) -> RulesetEvaluation:
        """
        Evaluate a ruleset's active rules against loan data.

        Raises:
            RulesetNotFoundException: If the ruleset does not exist
        """
        ruleset = await self._ruleset_repo.get_by_id(ruleset_id)
        if ruleset is None:
            raise RulesetNotFoundException(ruleset_id)

        rules = await self._ruleset_repo.get_active_rules(ruleset_id)
        evaluation = evaluate_rules(
            ruleset_id,
            rules,
            loan_data,
            settings=self._settings,
            today=today,
        )

        logger.info(
            "ruleset_evaluated",
            ruleset_id=ruleset_id,
            version=ruleset.version,
            rules=len(rules),
            triggered=len(evaluation.triggered_rules),
            result=evaluation.result.value,
            risk_score=evaluation.risk_score,
        )

        return evaluation

    async def find_applicable(
        self,
        ruleset_id: str,
        on: date,
    ) -> Optional[DecisioningRuleset]:
        """The ruleset if it exists, is active and is effective on the given date."""
        ruleset = await self._ruleset_repo.get_by_id(ruleset_id)

        if ruleset is None or not ruleset.is_effective_on(on):
            logger.info(
                "ruleset_not_applicable",
                ruleset_id=ruleset_id,
                found=ruleset is not None,
                on=on.isoformat(),
            )
            return None

        return ruleset
