"""PostgreSQL repository implementation for decisioning rulesets."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loan_decision_engine.domain.entities import DecisioningRule, DecisioningRuleset
from loan_decision_engine.domain.interfaces import RulesetRepository
from loan_decision_engine.infrastructure.database.models import (
    DecisioningRuleModel,
    DecisioningRulesetModel,
)


class PostgresRulesetRepository(RulesetRepository):
    """PostgreSQL-backed ruleset repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, ruleset_id: str) -> Optional[DecisioningRuleset]:
        model = await self._session.get(DecisioningRulesetModel, ruleset_id)

        if model is None:
            return None

        return DecisioningRuleset(
            id=model.id,
            name=model.name,
            description=model.description,
            is_active=model.is_active,
            priority=model.priority,
            version=model.version,
            effective_from=model.effective_from,
            effective_to=model.effective_to,
        )

    async def get_active_rules(self, ruleset_id: str) -> List[DecisioningRule]:
        stmt = (
            select(DecisioningRuleModel)
            .where(
                DecisioningRuleModel.ruleset_id == ruleset_id,
                DecisioningRuleModel.is_active.is_(True),
            )
            .order_by(DecisioningRuleModel.priority.asc())
        )
        result = await self._session.execute(stmt)

        return [self._to_entity(model) for model in result.scalars().all()]

    def _to_entity(self, model: DecisioningRuleModel) -> DecisioningRule:
        return DecisioningRule(
            id=model.id,
            ruleset_id=model.ruleset_id,
            rule_name=model.rule_name,
            rule_type=model.rule_type,
            rule_definition=model.rule_definition or {},
            action_on_trigger=model.action_on_trigger,
            risk_score_adjustment=model.risk_score_adjustment,
            priority=model.priority,
            is_active=model.is_active,
        )
