"""Error handling middleware and exception handlers."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import structlog

from loan_decision_engine.domain.exceptions import (
    CreditCheckException,
    DecisionNotFoundException,
    DomainException,
    InvalidDecisionRequestException,
    InvalidDecisionStateException,
    InvalidLoanStatusException,
    LoanNotFoundException,
    RulesetNotFoundException,
    UnauthorizedException,
)
from .request_context import get_request_id

logger = structlog.get_logger(__name__)

NOT_FOUND_EXCEPTIONS = (
    LoanNotFoundException,
    DecisionNotFoundException,
    RulesetNotFoundException,
)
INVALID_STATE_EXCEPTIONS = (
    InvalidLoanStatusException,
    InvalidDecisionStateException,
)


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": code,
            "message": message,
            "request_id": get_request_id(),
        },
    )


def error_handler_middleware(app: FastAPI) -> None:
    """
    Register exception handlers with the FastAPI app.

    Maps domain exceptions to appropriate HTTP responses.
    """

    async def not_found_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle missing loans, decisions and rulesets."""
        return _error_response(404, exc.code, exc.message)

    for exc_class in NOT_FOUND_EXCEPTIONS:
        app.add_exception_handler(exc_class, not_found_handler)

    async def invalid_state_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle decisions the loan's current state does not allow."""
        logger.info(
            "decision_rejected",
            request_id=get_request_id(),
            code=exc.code,
            message=exc.message,
        )
        return _error_response(409, exc.code, exc.message)

    for exc_class in INVALID_STATE_EXCEPTIONS:
        app.add_exception_handler(exc_class, invalid_state_handler)

    @app.exception_handler(UnauthorizedException)
    async def unauthorized_handler(
        request: Request,
        exc: UnauthorizedException,
    ) -> JSONResponse:
        """Handle requests without an acting user."""
        return _error_response(401, exc.code, exc.message)

    @app.exception_handler(InvalidDecisionRequestException)
    async def invalid_request_handler(
        request: Request,
        exc: InvalidDecisionRequestException,
    ) -> JSONResponse:
        """Handle invalid request errors."""
        return _error_response(400, exc.code, exc.message)

    @app.exception_handler(CreditCheckException)
    async def credit_check_handler(
        request: Request,
        exc: CreditCheckException,
    ) -> JSONResponse:
        """Handle credit bureau failures not recovered by the service."""
        logger.error(
            "credit_bureau_error",
            request_id=get_request_id(),
            message=exc.message,
            status_code=exc.status_code,
        )
        return _error_response(
            503,
            exc.code,
            "Credit bureau unavailable. Please try again later.",
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request,
        exc: DomainException,
    ) -> JSONResponse:
        """Handle generic domain exceptions."""
        logger.warning(
            "domain_exception",
            request_id=get_request_id(),
            code=exc.code,
            message=exc.message,
        )
        return _error_response(400, exc.code, exc.message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception(
            "unhandled_exception",
            request_id=get_request_id(),
            error=str(exc),
            error_type=type(exc).__name__,
        )
        return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred.")
