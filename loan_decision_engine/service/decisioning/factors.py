"""
Decision Factor Evaluation for the Loan Decision Engine.

This module turns loan, client and credit data into DecisionFactor snapshots.
Each function covers one signal and is free of I/O; the assessment service
gathers the inputs (documents, credit report, installments) and concatenates
the results in a fixed order:

    documents, employment, credit (+ debt ratio), membership (+ savings),
    repayment capacity

Factor impact is what the fallback risk scorer counts: every NEGATIVE factor
costs points and, in numbers, decides between approval, conditional approval
and decline.
"""

from datetime import date
from typing import List, Optional, Sequence, Tuple

from loan_decision_engine.domain.entities import (
    CreditCheckResult,
    DecisionFactor,
    DecisionFactorType,
    FactorImpact,
    LoanDocument,
)

from .settings import DecisioningSettings, decisioning_settings


def _impact(is_positive: bool) -> FactorImpact:
    return FactorImpact.POSITIVE if is_positive else FactorImpact.NEGATIVE


# =============================================================================
# Documents and Employment
# =============================================================================

def evaluate_documents(
    documents: Sequence[LoanDocument],
) -> Tuple[List[DecisionFactor], bool, bool]:
    """
    Evaluate the loan's required documents.

    Rules:
        - No required documents on file: negative ``missing_required_documents``
        - Any required document not verified: negative
          ``pending_document_verification`` valued with the pending count
        - Otherwise positive ``documents_verified``

    Args:
        documents: All documents on file for the loan

    Returns:
        (factors, verification_complete, verification_passed)
    """
    required = [d for d in documents if d.is_required]

    if not required:
        factor = DecisionFactor(
            type=DecisionFactorType.CUSTOM,
            name="missing_required_documents",
            value=True,
            impact=FactorImpact.NEGATIVE,
            details="No required documents have been uploaded",
        )
        return [factor], False, False

    pending = [d for d in required if not d.is_verified]
    if pending:
        factor = DecisionFactor(
            type=DecisionFactorType.CUSTOM,
            name="pending_document_verification",
            value=len(pending),
            impact=FactorImpact.NEGATIVE,
            details=f"{len(pending)} required documents pending verification",
        )
        return [factor], False, False

    factor = DecisionFactor(
        type=DecisionFactorType.CUSTOM,
        name="documents_verified",
        value=True,
        impact=FactorImpact.POSITIVE,
        details="All required documents verified successfully",
    )
    return [factor], True, True


def employment_factor(employment_verified: bool) -> DecisionFactor:
    """Positive iff the loan's employment has been verified."""
    return DecisionFactor(
        type=DecisionFactorType.EMPLOYMENT,
        name="employment_verification",
        value=employment_verified,
        impact=_impact(employment_verified),
        details=(
            "Employment verified successfully"
            if employment_verified
            else "Employment not yet verified"
        ),
    )


# =============================================================================
# Credit
# =============================================================================

def is_credit_score_stale(
    credit_score: Optional[int],
    credit_check_date: Optional[date],
    today: date,
    settings: DecisioningSettings = decisioning_settings,
) -> bool:
    """
    Whether the stored credit score must be refreshed from the bureau.

    A score is stale when it is missing, undated, or older than
    ``credit_score_max_age_days`` (90 by default).
    """
    if not credit_score or credit_check_date is None:
        return True
    return (today - credit_check_date).days > settings.credit_score_max_age_days


def credit_score_factor(
    credit_score: int,
    min_credit_score: Optional[int],
    settings: DecisioningSettings = decisioning_settings,
) -> DecisionFactor:
    """Compare a credit score with the product minimum."""
    threshold = (
        min_credit_score
        if min_credit_score is not None
        else settings.default_credit_threshold
    )
    return DecisionFactor(
        type=DecisionFactorType.CREDIT_SCORE,
        name="credit_score",
        value=credit_score,
        threshold=threshold,
        impact=_impact(credit_score >= threshold),
        details=f"Credit score: {credit_score}, Minimum required: {threshold}",
    )


def credit_report_factors(
    report: CreditCheckResult,
    settings: DecisioningSettings = decisioning_settings,
) -> List[DecisionFactor]:
    """
    Derive risk-flag factors from a fresh bureau report.

    Delinquency, bankruptcy and fraud flags are negative when present.
    Active loans are reported only when there are any: negative at or above
    ``active_loans_threshold``, neutral below it.
    """
    factors = []

    if report.delinquency_status:
        arrears = (
            report.max_days_in_arrears
            if report.max_days_in_arrears is not None
            else "unknown"
        )
        factors.append(
            DecisionFactor(
                type=DecisionFactorType.CUSTOM,
                name="delinquency_status",
                value=True,
                impact=FactorImpact.NEGATIVE,
                details=(
                    "Delinquent payments found in credit history. "
                    f"Max days in arrears: {arrears}"
                ),
            )
        )

    if report.bankruptcy_flag:
        factors.append(
            DecisionFactor(
                type=DecisionFactorType.CUSTOM,
                name="bankruptcy_flag",
                value=True,
                impact=FactorImpact.NEGATIVE,
                details="Bankruptcy record found in credit history",
            )
        )

    if report.active_loans > 0:
        outstanding = (
            report.total_outstanding
            if report.total_outstanding is not None
            else "unknown"
        )
        factors.append(
            DecisionFactor(
                type=DecisionFactorType.CUSTOM,
                name="active_loans",
                value=report.active_loans,
                threshold=settings.active_loans_threshold,
                impact=(
                    FactorImpact.NEGATIVE
                    if report.active_loans >= settings.active_loans_threshold
                    else FactorImpact.NEUTRAL
                ),
                details=(
                    f"Client has {report.active_loans} active loans "
                    f"with total outstanding of {outstanding}"
                ),
            )
        )

    if report.fraud_flag:
        factors.append(
            DecisionFactor(
                type=DecisionFactorType.CUSTOM,
                name="fraud_flag",
                value=True,
                impact=FactorImpact.NEGATIVE,
                details="Potential fraud indicators found in credit history",
            )
        )

    return factors


def credit_check_error_factor(message: str) -> DecisionFactor:
    """Negative factor standing in for a failed bureau request."""
    return DecisionFactor(
        type=DecisionFactorType.CUSTOM,
        name="credit_check_error",
        value=True,
        impact=FactorImpact.NEGATIVE,
        details=f"Failed to retrieve credit score: {message}",
    )


def debt_ratio_factor(
    ratio: float,
    max_ratio: Optional[float],
    settings: DecisioningSettings = decisioning_settings,
) -> DecisionFactor:
    """Positive iff the debt-to-income ratio is within the product maximum."""
    threshold = max_ratio if max_ratio is not None else settings.default_debt_threshold
    return DecisionFactor(
        type=DecisionFactorType.DEBT_RATIO,
        name="debt_to_income_ratio",
        value=ratio,
        threshold=threshold,
        impact=_impact(ratio <= threshold),
        details=(
            f"Debt-to-income ratio: {ratio * 100:.2f}%, "
            f"Maximum allowed: {threshold * 100:.2f}%"
        ),
    )


# =============================================================================
# Membership and Savings
# =============================================================================

def membership_years(member_since: Optional[date], today: date) -> int:
    """
    Whole years of membership.

    The current year counts only once the membership anniversary has passed.

    Examples:
        member_since=2020-06-15, today=2024-06-14 -> 3
        member_since=2020-06-15, today=2024-06-15 -> 4
    """
    if member_since is None:
        return 0

    years = today.year - member_since.year
    if (today.month, today.day) < (member_since.month, member_since.day):
        years -= 1
    return max(years, 0)


def membership_factor(years: int, required_years: Optional[int]) -> DecisionFactor:
    required = required_years or 0
    return DecisionFactor(
        type=DecisionFactorType.CUSTOM,
        name="membership_duration",
        value=years,
        threshold=required,
        impact=_impact(years >= required),
        details=f"Member for {years} years, Required: {required} years",
    )


def savings_account_factor(
    requires_savings_account: bool,
    savings_account_id: Optional[str],
) -> Optional[DecisionFactor]:
    """Negative factor when the product requires a savings account that is not linked."""
    if not requires_savings_account or savings_account_id:
        return None
    return DecisionFactor(
        type=DecisionFactorType.SAVINGS_HISTORY,
        name="missing_savings_account",
        value=True,
        impact=FactorImpact.NEGATIVE,
        details="Required savings account not linked",
    )


# =============================================================================
# Repayment Capacity
# =============================================================================

def repayment_capacity_factor(
    monthly_income: Optional[float],
    monthly_expenses: Optional[float],
    average_installment: float,
    settings: DecisioningSettings = decisioning_settings,
) -> Optional[DecisionFactor]:
    """
    Compare the average open installment with disposable income.

    Algorithm:
        disposable = income - expenses
        ratio = installment / disposable
        positive iff ratio <= repayment_capacity_threshold (0.5)

    Edge Cases:
        - Income or expenses unknown: no factor
        - No open installments: no factor
        - Non-positive disposable income: negative factor with no ratio

    Returns:
        The factor, or None when it cannot be computed
    """
    if monthly_income is None or monthly_expenses is None:
        return None
    if not average_installment or average_installment <= 0:
        return None

    threshold = settings.repayment_capacity_threshold
    disposable = monthly_income - monthly_expenses

    if disposable <= 0:
        return DecisionFactor(
            type=DecisionFactorType.REPAYMENT_CAPACITY,
            name="repayment_capacity",
            value=None,
            threshold=threshold,
            impact=FactorImpact.NEGATIVE,
            details=(
                f"Installment: {average_installment:.2f}, "
                "no disposable income to cover it"
            ),
        )

    ratio = average_installment / disposable
    return DecisionFactor(
        type=DecisionFactorType.REPAYMENT_CAPACITY,
        name="repayment_capacity",
        value=round(ratio, 4),
        threshold=threshold,
        impact=_impact(ratio <= threshold),
        details=(
            f"Installment: {average_installment:.2f}, "
            f"{ratio * 100:.2f}% of disposable income"
        ),
    )
