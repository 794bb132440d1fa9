"""External client interfaces."""

from abc import ABC, abstractmethod

from loan_decision_engine.domain.entities import CreditCheckRequest, CreditCheckResult


class CreditCheckClient(ABC):
    """
    Abstract client for the credit bureau.

    Fetches a credit score and risk flags for a client.
    """

    @abstractmethod
    async def perform_credit_check(self, request: CreditCheckRequest) -> CreditCheckResult:
        """
        Request a credit report for a client.

        Args:
            request: Client identification and request source

        Returns:
            The bureau's credit check result

        Raises:
            CreditCheckException: If the bureau returns an error
            CreditCheckTimeoutException: If the request times out
        """
        ...
