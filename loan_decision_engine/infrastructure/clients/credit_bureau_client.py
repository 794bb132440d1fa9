"""HTTP implementation of CreditCheckClient."""

import asyncio
from datetime import date, datetime
from typing import Any, Dict

import httpx
import structlog

from loan_decision_engine.core.config import settings
from loan_decision_engine.core.metrics import (
    track_credit_check_latency,
    record_credit_check_success,
    record_credit_check_failure,
)
from loan_decision_engine.domain.entities import CreditCheckRequest, CreditCheckResult
from loan_decision_engine.domain.exceptions import (
    CreditCheckException,
    CreditCheckTimeoutException,
)
from loan_decision_engine.domain.interfaces import CreditCheckClient

logger = structlog.get_logger(__name__)


class HttpCreditCheckClient(CreditCheckClient):
    """
    HTTP client for the credit bureau.

    Posts a credit check request and parses the bureau's report. Timeouts
    and transport errors are retried with exponential backoff; every failure
    surfaces as a CreditCheckException.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        bureau: str | None = None,
    ):
        self._base_url = base_url or settings.credit_bureau_url
        self._timeout = timeout or settings.credit_bureau_timeout
        self._max_retries = max(1, max_retries or settings.credit_bureau_max_retries)
        self._bureau = bureau or settings.default_credit_bureau

    async def perform_credit_check(self, request: CreditCheckRequest) -> CreditCheckResult:
        """
        Request a credit report for a client.

        Client errors (4xx) are not retried.
        """
        url = f"{self._base_url}/credit-checks"
        payload = {**request.to_dict(), "bureau": self._bureau}

        last_exception = None

        for attempt in range(self._max_retries):
            try:
                with track_credit_check_latency():
                    async with httpx.AsyncClient(timeout=self._timeout) as client:
                        response = await client.post(url, json=payload)

                        if response.status_code >= 400:
                            record_credit_check_failure("error")
                            raise CreditCheckException(
                                message=f"Credit bureau error: {response.text}",
                                status_code=response.status_code,
                            )

                        result = self._parse_result(response.json())
                        record_credit_check_success()
                        return result

            except httpx.TimeoutException:
                record_credit_check_failure("timeout")
                last_exception = CreditCheckTimeoutException()
                logger.warning(
                    "credit_bureau_timeout",
                    client_id=request.client_id,
                    attempt=attempt + 1,
                    max_retries=self._max_retries,
                )
            except CreditCheckException as e:
                if e.status_code is not None and e.status_code < 500:
                    raise
                last_exception = e
                logger.warning(
                    "credit_bureau_error",
                    client_id=request.client_id,
                    attempt=attempt + 1,
                    status_code=e.status_code,
                )
            except (KeyError, TypeError, ValueError) as e:
                record_credit_check_failure("invalid_response")
                raise CreditCheckException(
                    message=f"Invalid credit bureau response: {e}",
                ) from e
            except httpx.HTTPError as e:
                record_credit_check_failure("error")
                last_exception = CreditCheckException(
                    message=f"Credit bureau request failed: {str(e)}",
                )
                logger.error(
                    "credit_bureau_request_failed",
                    client_id=request.client_id,
                    attempt=attempt + 1,
                    error=str(e),
                )

            # Exponential backoff
            if attempt < self._max_retries - 1:
                await asyncio.sleep(2**attempt * 0.1)

        raise last_exception or CreditCheckException("Credit check failed")

    def _parse_result(self, data: Dict[str, Any]) -> CreditCheckResult:
        """Parse the bureau's report into a CreditCheckResult."""
        return CreditCheckResult(
            credit_score=int(data["credit_score"]),
            score_date=self._parse_date(data.get("score_date")),
            risk_category=data.get("risk_category", "UNKNOWN"),
            delinquency_status=bool(data.get("delinquency_status", False)),
            active_loans=int(data.get("active_loans") or 0),
            bankruptcy_flag=bool(data.get("bankruptcy_flag", False)),
            fraud_flag=bool(data.get("fraud_flag", False)),
            total_outstanding=data.get("total_outstanding"),
            max_days_in_arrears=data.get("max_days_in_arrears"),
            credit_bureau=data.get("credit_bureau", self._bureau),
        )

    @staticmethod
    def _parse_date(value: Any) -> date:
        if not value:
            return date.today()
        if "T" in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return date.fromisoformat(value)
