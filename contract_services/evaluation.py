"""
contract_services.evaluation -- full read-only evaluation of one contract.

Responsibility:
    Run every engine over a contract snapshot in dependency order and
    return one frozen ``ContractEvaluation``:

        approval lock -> validity bucket -> period math (fixed-term only)
        -> benefit lookups -> pay figures -> onboarding completeness

Architecture position:
    Services -- read-only orchestration.  Policy comes from
    ``contract_config.get_active_policy()`` unless the caller passes one.

Invariants enforced:
    - Nothing is cached; every call recomputes from the stored rows.
    - ``as_of`` defaults to the injected clock's date.

Failure modes:
    - ContractNotFoundError.
    - AmbiguousAssignmentError when benefit data is inconsistent.
    - FileNotFoundError when no policy set covers ``as_of``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from contract_config import LifecyclePolicy, get_active_policy
from contract_engines.approval import completeness_errors
from contract_engines.financial import CompensationFigures, compensation_figures
from contract_engines.onboarding import progress, step_progress, validate_onboarding
from contract_engines.period_ledger import LedgerSummary, LegalAlert, legal_alerts, summarize
from contract_engines.validity import ValidityAssessment, assess_validity
from contract_kernel.domain.clock import Clock, SystemClock
from contract_kernel.domain.dtos import (
    BenefitAssignmentInfo,
    BenefitKind,
    ContractInfo,
    ContractType,
    ResolvedParameter,
)
from contract_kernel.exceptions import ValidationError
from contract_kernel.logging_config import LogContext, get_logger
from contract_kernel.selectors.contract_selector import ContractSelector
from contract_services.annual_parameter_service import AnnualParameterService
from contract_services.benefit_assignment_service import BenefitAssignmentService
from contract_services.period_ledger_service import PeriodLedgerService

logger = get_logger("services.evaluation")


@dataclass(frozen=True)
class ContractEvaluation:
    """Everything the contract screen derives, as of one date."""

    contract: ContractInfo
    as_of: date
    is_editable: bool
    validity: ValidityAssessment
    ledger_summary: LedgerSummary | None
    legal_alerts: tuple[LegalAlert, ...]
    insurer: BenefitAssignmentInfo | None
    compensation_fund: BenefitAssignmentInfo | None
    compensation: CompensationFigures
    onboarding_errors: tuple[ValidationError, ...]
    onboarding_progress: int
    onboarding_step_progress: int
    approval_blockers: tuple[ValidationError, ...]
    config_checksum: str = ""

    @property
    def can_approve(self) -> bool:
        return (
            not self.contract.is_approved
            and not self.contract.is_archived
            and not self.approval_blockers
        )

    @property
    def parameter_fallbacks(self) -> tuple[ResolvedParameter, ...]:
        """Annual parameters that came from a prior year or the default."""
        return self.compensation.parameter_fallbacks


class ContractEvaluationService:
    """Read-only evaluation of contracts."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: LifecyclePolicy | None = None,
    ) -> None:
        self._session = session
        self._clock = clock or SystemClock()
        self._policy = policy
        self._contracts = ContractSelector(session)
        self._benefits = BenefitAssignmentService(session)

    def evaluate(self, contract_id: UUID, as_of: date | None = None) -> ContractEvaluation:
        as_of = as_of or self._clock.today()
        policy = self._policy or get_active_policy(as_of)
        contract = self._contracts.get(contract_id)

        with LogContext.bind(contract_id=str(contract_id)):
            is_editable = not contract.is_approved and not contract.is_archived
            validity = assess_validity(
                contract.end_date, contract.contract_type, as_of, policy.validity
            )

            summary = None
            alerts: tuple[LegalAlert, ...] = ()
            if contract.contract_type == ContractType.FIXED_TERM:
                periods = PeriodLedgerService(
                    self._session, self._clock, policy.tenure, policy.parameter_defaults
                )
                summary = summarize(periods.load(contract_id), policy.tenure)
                alerts = legal_alerts(summary, policy.tenure)

            insurer = None
            compensation_fund = None
            if contract.company_id is not None:
                insurer = self._benefits.resolve_active(
                    BenefitKind.INSURER, contract.company_id, None, as_of
                )
                if contract.location_id is not None:
                    compensation_fund = self._benefits.resolve_active(
                        BenefitKind.COMPENSATION_FUND,
                        contract.company_id,
                        contract.location_id,
                        as_of,
                    )

            parameters = AnnualParameterService(self._session, policy.parameter_defaults)
            year = (contract.start_date or as_of).year
            minimum_wage, subsidy = parameters.resolve_subsidy_inputs(year)
            compensation = compensation_figures(
                contract.base_salary, contract.allowances, minimum_wage, subsidy
            )

            evaluation = ContractEvaluation(
                contract=contract,
                as_of=as_of,
                is_editable=is_editable,
                validity=validity,
                ledger_summary=summary,
                legal_alerts=alerts,
                insurer=insurer,
                compensation_fund=compensation_fund,
                compensation=compensation,
                onboarding_errors=validate_onboarding(contract.onboarding),
                onboarding_progress=progress(contract.onboarding),
                onboarding_step_progress=step_progress(contract.onboarding),
                approval_blockers=completeness_errors(contract),
                config_checksum=policy.checksum,
            )
            logger.info(
                "contract_evaluated",
                extra={
                    "as_of": as_of,
                    "validity_state": validity.state.value,
                    "must_be_indefinite": summary.must_be_indefinite if summary else None,
                    "onboarding_progress": evaluation.onboarding_progress,
                    "parameter_fallbacks": [p.parameter_type.value for p in evaluation.parameter_fallbacks],
                },
            )
        return evaluation
