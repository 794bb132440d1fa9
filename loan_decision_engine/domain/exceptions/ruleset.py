"""Ruleset-related domain exceptions."""

from .base import DomainException


class RulesetNotFoundException(DomainException):
    """Raised when a decisioning ruleset cannot be found."""

    def __init__(self, ruleset_id: str):
        super().__init__(
            message=f"Ruleset not found: {ruleset_id}",
            code="RULESET_NOT_FOUND",
        )
        self.ruleset_id = ruleset_id


class RuleEvaluationException(DomainException):
    """Raised when a rule condition cannot be parsed or evaluated."""

    def __init__(self, message: str, condition: str | None = None):
        super().__init__(
            message=message,
            code="RULE_EVALUATION_ERROR",
        )
        self.condition = condition
