"""Loan decision service - orchestrates assessment, manual decisions and overrides."""

from datetime import date
from typing import Any, Dict, List, Tuple

import structlog

from loan_decision_engine.application.dto import (
    LoanAssessmentRequest,
    LoanAssessmentResponse,
    LoanDecisionHistoryResponse,
    MakeLoanDecisionRequest,
    MakeLoanDecisionResponse,
    OverrideLoanDecisionRequest,
    OverrideLoanDecisionResponse,
)
from loan_decision_engine.application.services.decision_ledger import DecisionLedger
from loan_decision_engine.application.services.ruleset_service import RulesetService
from loan_decision_engine.application.services.workflow_service import WorkflowService
from loan_decision_engine.core.metrics import record_override, track_operation_latency
from loan_decision_engine.domain.entities import (
    ApprovalCondition,
    CreditCheckRequest,
    DecisionFactor,
    DecisionResult,
    DecisionSource,
    Loan,
    LoanDecision,
    RiskLevel,
    WorkflowStage,
)
from loan_decision_engine.domain.exceptions import (
    CreditCheckException,
    InvalidDecisionRequestException,
    InvalidDecisionStateException,
    InvalidLoanStatusException,
    LoanNotFoundException,
    UnauthorizedException,
)
from loan_decision_engine.domain.interfaces import (
    CreditCheckClient,
    LoanRepository,
    UnitOfWork,
)
from loan_decision_engine.service.decisioning import (
    DECISION_STAGES,
    DecisioningSettings,
    decisioning_settings,
    credit_check_error_factor,
    credit_report_factors,
    credit_score_factor,
    debt_ratio_factor,
    employment_factor,
    evaluate_documents,
    is_credit_score_stale,
    membership_factor,
    membership_years,
    repayment_capacity_factor,
    savings_account_factor,
    score_factors,
)

logger = structlog.get_logger(__name__)

Outcome = Tuple[DecisionResult, int, RiskLevel, List[ApprovalCondition]]


class LoanDecisionService:
    """
    Application service for loan decisioning use cases.

    Every mutating operation runs in one unit of work: the loan row is locked,
    the current decision read, the new decision appended and the loan status
    and workflow advanced together, or not at all.
    """

    def __init__(
        self,
        loan_repository: LoanRepository,
        ledger: DecisionLedger,
        ruleset_service: RulesetService,
        workflow_service: WorkflowService,
        credit_client: CreditCheckClient,
        unit_of_work: UnitOfWork,
        settings: DecisioningSettings = decisioning_settings,
    ):
        self._loan_repo = loan_repository
        self._ledger = ledger
        self._rulesets = ruleset_service
        self._workflow = workflow_service
        self._credit_client = credit_client
        self._uow = unit_of_work
        self._settings = settings

    # =========================================================================
    # Automated assessment
    # =========================================================================

    async def assess_loan_application(
        self,
        request: LoanAssessmentRequest,
    ) -> LoanAssessmentResponse:
        """
        Run an automated assessment of a loan application.

        Unless ``force_reevaluation`` is set, a loan whose current decision
        is already final is not reassessed: that decision is returned and
        nothing is written.

        Args:
            request: The loan, assessment date and sub-checks to run

        Returns:
            LoanAssessmentResponse for the new (or existing final) decision

        Raises:
            InvalidDecisionRequestException: If request validation fails
            LoanNotFoundException: If the loan doesn't exist
            InvalidLoanStatusException: If the loan cannot be decided
        """
        errors = request.validate()
        if errors:
            raise InvalidDecisionRequestException("; ".join(errors))

        log = logger.bind(
            loan_id=request.loan_id,
            force_reevaluation=request.force_reevaluation,
        )
        log.info("assessment_requested")

        with track_operation_latency("assessment"):
            async with self._uow.transaction():
                loan = await self._load_loan(request.loan_id)

                current = await self._ledger.current(loan.id)
                if current is not None and current.is_final and not request.force_reevaluation:
                    log.info("final_decision_exists", decision_id=str(current.id))
                    return LoanAssessmentResponse.from_entity(current)

                self._ensure_decidable(loan)

                factors, rule_data = await self._gather_factors(loan, request)
                log.info("factors_gathered", count=len(factors))

                result, risk_score, risk_level, conditions = await self._score(
                    loan,
                    factors,
                    rule_data,
                    request.assessment_date,
                )

                committee_required = loan.terms.credit_committee_approval_required
                decision = LoanDecision(
                    loan_id=loan.id,
                    decision_result=result,
                    decision_source=DecisionSource.AUTOMATED,
                    decision_by=request.actor_id,
                    risk_score=risk_score,
                    risk_level=risk_level,
                    decision_factors=factors,
                    approval_conditions=conditions,
                    approval_level=1,
                    next_approval_level=2 if committee_required else None,
                    is_final=not committee_required,
                    previous_decision_id=current.id if current else None,
                    notes=f"Automated assessment performed on {request.assessment_date.isoformat()}",
                )
                await self._ledger.append(decision)

                if decision.is_final:
                    await self._workflow.apply_final_decision(
                        loan,
                        decision,
                        close_stages=(WorkflowStage.DECISIONING,),
                        notes=f"Automated decision: {result.value}",
                    )

        log.info(
            "assessment_completed",
            decision_id=str(decision.id),
            result=result.value,
            risk_score=risk_score,
            risk_level=risk_level.value,
            is_final=decision.is_final,
        )

        return LoanAssessmentResponse.from_entity(decision)

    async def _gather_factors(
        self,
        loan: Loan,
        request: LoanAssessmentRequest,
    ) -> Tuple[List[DecisionFactor], Dict[str, Any]]:
        """
        Compute the ordered decision factors and the data rules see.

        The only write is the credit score refresh when the stored score is
        stale and a credit check was requested.
        """
        today = request.assessment_date
        terms = loan.terms
        factors: List[DecisionFactor] = []

        documents_complete = True
        documents_passed = True
        if request.include_document_verification:
            documents = await self._loan_repo.get_documents(loan.id)
            document_factors, documents_complete, documents_passed = evaluate_documents(documents)
            factors.extend(document_factors)

        if request.include_employment_verification:
            factors.append(employment_factor(loan.employment_verified))

        credit_score = loan.credit_score
        if request.include_credit_check:
            if is_credit_score_stale(loan.credit_score, loan.credit_check_date, today, self._settings):
                try:
                    report = await self._credit_client.perform_credit_check(
                        CreditCheckRequest(
                            client_id=loan.client.id,
                            first_name=loan.client.firstname,
                            last_name=loan.client.lastname,
                            date_of_birth=loan.client.date_of_birth,
                            request_source="loan_assessment",
                        )
                    )
                except CreditCheckException as e:
                    logger.warning(
                        "credit_check_failed",
                        loan_id=loan.id,
                        client_id=loan.client.id,
                        error=e.message,
                    )
                    factors.append(credit_check_error_factor(e.message))
                else:
                    await self._loan_repo.update_credit_score(
                        loan.id,
                        report.credit_score,
                        report.score_date,
                    )
                    credit_score = report.credit_score
                    factors.append(
                        credit_score_factor(credit_score, terms.min_credit_score, self._settings)
                    )
                    factors.extend(credit_report_factors(report, self._settings))
            else:
                factors.append(
                    credit_score_factor(credit_score, terms.min_credit_score, self._settings)
                )

            if loan.debt_to_income_ratio is not None:
                factors.append(
                    debt_ratio_factor(
                        loan.debt_to_income_ratio,
                        terms.max_debt_to_income_ratio,
                        self._settings,
                    )
                )

        years = membership_years(loan.client.member_since, today)
        factors.append(membership_factor(years, terms.member_years_required))

        savings = savings_account_factor(
            terms.requires_savings_account,
            loan.member_savings_account_id,
        )
        if savings is not None:
            factors.append(savings)

        if loan.monthly_income is not None and loan.monthly_expenses is not None:
            installment = await self._loan_repo.get_average_open_installment(loan.id)
            repayment = repayment_capacity_factor(
                loan.monthly_income,
                loan.monthly_expenses,
                installment,
                self._settings,
            )
            if repayment is not None:
                factors.append(repayment)

        rule_data = {
            "credit_score": credit_score,
            "debt_to_income_ratio": loan.debt_to_income_ratio,
            "member_years": years,
            "employment_verified": loan.employment_verified,
            "principal_amount": loan.principal_amount,
            "document_verification_complete": documents_complete,
            "document_verification_passed": documents_passed,
        }

        return factors, rule_data

    async def _score(
        self,
        loan: Loan,
        factors: List[DecisionFactor],
        rule_data: Dict[str, Any],
        assessment_date: date,
    ) -> Outcome:
        """Score through the product's ruleset if one applies, else the fallback scorer."""
        ruleset_id = loan.terms.decisioning_ruleset_id

        if ruleset_id:
            ruleset = await self._rulesets.find_applicable(ruleset_id, assessment_date)
            if ruleset is not None:
                evaluation = await self._rulesets.evaluate(
                    ruleset.id,
                    rule_data,
                    today=assessment_date,
                )
                return (
                    evaluation.result,
                    evaluation.risk_score,
                    evaluation.risk_level,
                    evaluation.conditions,
                )

        fallback = score_factors(factors, self._settings, today=assessment_date)
        return fallback.result, fallback.risk_score, fallback.risk_level, fallback.conditions

    # =========================================================================
    # Manual decision
    # =========================================================================

    async def make_loan_decision(
        self,
        request: MakeLoanDecisionRequest,
    ) -> MakeLoanDecisionResponse:
        """
        Record a manual decision at the loan's next approval level.

        Raises:
            UnauthorizedException: If no acting user is given
            InvalidDecisionRequestException: If request validation fails
            LoanNotFoundException: If the loan doesn't exist
            InvalidLoanStatusException: If the loan cannot be decided
            InvalidDecisionStateException: If the current decision is final
                and ``manual_override`` is not set, or the approval level
                does not follow the current one
        """
        self._require_actor(request.actor_id)

        errors = request.validate()
        if errors:
            raise InvalidDecisionRequestException("; ".join(errors))

        log = logger.bind(
            loan_id=request.loan_id,
            actor_id=request.actor_id,
            result=request.decision_result.value,
        )
        log.info("manual_decision_requested")

        with track_operation_latency("manual_decision"):
            async with self._uow.transaction():
                loan = await self._load_loan(request.loan_id)
                self._ensure_decidable(loan)

                current = await self._ledger.current(loan.id)
                if current is not None and current.is_final and not request.manual_override:
                    raise InvalidDecisionStateException(
                        f"Loan {loan.id} already has a final decision; "
                        "set manual_override or override the decision"
                    )

                approval_level = current.approval_level + 1 if current else 1
                if request.approval_level is not None and request.approval_level != approval_level:
                    raise InvalidDecisionStateException(
                        f"Approval level {request.approval_level} does not follow "
                        f"the current level; expected {approval_level}"
                    )

                is_final = (
                    request.is_final
                    if request.is_final is not None
                    else approval_level >= loan.terms.approval_levels
                )

                decision = LoanDecision(
                    loan_id=loan.id,
                    decision_result=request.decision_result,
                    decision_source=DecisionSource.MANUAL,
                    decision_by=request.actor_id,
                    risk_score=request.risk_score,
                    risk_level=request.risk_level,
                    decision_factors=list(request.factors),
                    approval_conditions=list(request.conditions),
                    approval_level=approval_level,
                    next_approval_level=None if is_final else approval_level + 1,
                    is_final=is_final,
                    expiry_date=request.expiry_date,
                    manual_override=request.manual_override,
                    override_reason=request.override_reason,
                    previous_decision_id=current.id if current else None,
                    notes=request.notes,
                )
                await self._ledger.append(decision)

                if decision.is_final:
                    stage_notes = f"Manual decision: {request.decision_result.value}"
                    if request.notes:
                        stage_notes += f" - {request.notes}"
                    await self._workflow.apply_final_decision(
                        loan,
                        decision,
                        close_stages=DECISION_STAGES,
                        notes=stage_notes,
                    )

        log.info(
            "manual_decision_recorded",
            decision_id=str(decision.id),
            approval_level=decision.approval_level,
            is_final=decision.is_final,
        )

        return MakeLoanDecisionResponse.from_entity(decision)

    # =========================================================================
    # Override
    # =========================================================================

    async def override_loan_decision(
        self,
        request: OverrideLoanDecisionRequest,
    ) -> OverrideLoanDecisionResponse:
        """
        Supersede a decision with a new, always-final manual decision.

        The overridden decision is left untouched; the new one points back at
        it. Whatever workflow stage is open is closed.

        Raises:
            UnauthorizedException: If no acting user is given
            InvalidDecisionRequestException: If the override reason is blank
            DecisionNotFoundException: If the decision doesn't exist
            LoanNotFoundException: If the decision's loan doesn't exist
        """
        self._require_actor(request.actor_id)

        errors = request.validate()
        if errors:
            raise InvalidDecisionRequestException("; ".join(errors))

        log = logger.bind(
            decision_id=str(request.decision_id),
            actor_id=request.actor_id,
            new_result=request.new_result.value,
        )
        log.info("override_requested")

        with track_operation_latency("override"):
            async with self._uow.transaction():
                target = await self._ledger.get(request.decision_id)
                loan = await self._load_loan(target.loan_id)

                decision = LoanDecision(
                    loan_id=loan.id,
                    decision_result=request.new_result,
                    decision_source=DecisionSource.MANUAL,
                    decision_by=request.actor_id,
                    risk_score=(
                        request.risk_score
                        if request.risk_score is not None
                        else target.risk_score
                    ),
                    risk_level=request.risk_level or target.risk_level,
                    decision_factors=(
                        list(request.factors)
                        if request.factors is not None
                        else list(target.decision_factors)
                    ),
                    approval_conditions=(
                        list(request.conditions)
                        if request.conditions is not None
                        else list(target.approval_conditions)
                    ),
                    approval_level=target.approval_level,
                    is_final=True,
                    manual_override=True,
                    override_reason=request.override_reason,
                    previous_decision_id=target.id,
                    notes=request.notes or f"Override of previous decision {target.id}",
                )
                await self._ledger.append(decision)

                await self._workflow.apply_final_decision(
                    loan,
                    decision,
                    close_stages=None,
                    notes=f"Decision override: {request.new_result.value} - {request.override_reason}",
                )

        record_override(request.new_result.value)
        log.info(
            "decision_overridden",
            loan_id=loan.id,
            new_decision_id=str(decision.id),
            previous_result=target.decision_result.value,
        )

        return OverrideLoanDecisionResponse.from_entity(decision)

    # =========================================================================
    # History
    # =========================================================================

    async def get_loan_decision_history(
        self,
        loan_id: str,
        include_details: bool = True,
    ) -> LoanDecisionHistoryResponse:
        """
        Get every decision recorded for a loan, newest first.

        Args:
            loan_id: The loan's identifier
            include_details: Include factors and conditions of each decision

        Raises:
            LoanNotFoundException: If the loan doesn't exist
        """
        if await self._loan_repo.get_by_id(loan_id) is None:
            raise LoanNotFoundException(loan_id)

        decisions = await self._ledger.history(loan_id)
        return LoanDecisionHistoryResponse.from_entities(
            loan_id,
            decisions,
            include_details=include_details,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _load_loan(self, loan_id: str) -> Loan:
        """Load and lock a loan for the rest of the transaction."""
        loan = await self._loan_repo.get_by_id(loan_id, for_update=True)
        if loan is None:
            raise LoanNotFoundException(loan_id)
        return loan

    @staticmethod
    def _ensure_decidable(loan: Loan) -> None:
        if not loan.accepts_decisions:
            raise InvalidLoanStatusException(loan.id, loan.loan_status)

    @staticmethod
    def _require_actor(actor_id: str | None) -> None:
        if not actor_id or not actor_id.strip():
            raise UnauthorizedException()
