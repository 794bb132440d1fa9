"""Domain Exceptions - Business rule violations and domain errors."""

from .base import DomainException
from .auth import UnauthorizedException
from .credit import CreditCheckException, CreditCheckTimeoutException
from .decision import (
    DecisionNotFoundException,
    InvalidDecisionRequestException,
    InvalidDecisionStateException,
)
from .loan import InvalidLoanStatusException, LoanNotFoundException
from .ruleset import RuleEvaluationException, RulesetNotFoundException

__all__ = [
    "DomainException",
    "UnauthorizedException",
    "CreditCheckException",
    "CreditCheckTimeoutException",
    "DecisionNotFoundException",
    "InvalidDecisionRequestException",
    "InvalidDecisionStateException",
    "InvalidLoanStatusException",
    "LoanNotFoundException",
    "RuleEvaluationException",
    "RulesetNotFoundException",
]
