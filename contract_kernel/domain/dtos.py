"""
Domain DTOs -- immutable snapshots passed between layers.

Services convert ORM rows into these frozen dataclasses before handing
them to engines or callers.  Nothing here touches the database or the
clock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from contract_kernel.domain.values import Money

# =============================================================================
# Enumerations
# =============================================================================


class ContractType(str, Enum):
    INDEFINITE = "indefinite"
    FIXED_TERM = "fixed_term"
    PER_TASK = "per_task"
    INTERNSHIP = "internship"
    INSTITUTIONAL_AGREEMENT = "institutional_agreement"


class ApprovalStatus(str, Enum):
    """
    Approval lifecycle of a contract.

    DRAFT -> APPROVED is the only ordinary edge; APPROVED -> DRAFT is an
    administrative reopen.
    """

    DRAFT = "draft"
    APPROVED = "approved"


class ValidityState(str, Enum):
    ACTIVE = "active"
    ABOUT_TO_EXPIRE = "about_to_expire"
    CRITICAL = "critical"
    TERMINATED = "terminated"


class PeriodKind(str, Enum):
    INITIAL = "initial"
    AUTOMATIC_RENEWAL = "automatic_renewal"
    NEGOTIATED_RENEWAL = "negotiated_renewal"


class BenefitKind(str, Enum):
    """Benefit provider families.  Compensation funds are keyed by location."""

    INSURER = "insurer"
    COMPENSATION_FUND = "compensation_fund"

    @property
    def requires_location(self) -> bool:
        return self is BenefitKind.COMPENSATION_FUND


class AssignmentState(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class HistoryStatus(str, Enum):
    ACTIVE = "active"
    FINISHED = "finished"


class AllowanceCategory(str, Enum):
    SALARIAL = "salarial"
    NON_SALARIAL = "non_salarial"


class ParameterType(str, Enum):
    MINIMUM_WAGE = "minimum_wage"
    TRANSPORT_SUBSIDY = "transport_subsidy"


class ParameterSource(str, Enum):
    EXACT = "exact"
    PRIOR_YEAR = "prior_year"
    DEFAULT = "default"


# =============================================================================
# Companies and providers
# =============================================================================


@dataclass(frozen=True)
class CompanyInfo:
    id: UUID
    name: str
    tax_id: str
    is_active: bool = True


@dataclass(frozen=True)
class BenefitProviderInfo:
    id: UUID
    kind: BenefitKind
    name: str
    is_active: bool = True


# =============================================================================
# Contracts
# =============================================================================


@dataclass(frozen=True)
class AllowanceInfo:
    """One line of additional pay on top of the base salary."""

    category: AllowanceCategory
    amount: Money
    concept: str = ""


@dataclass(frozen=True)
class OnboardingSnapshot:
    """
    The onboarding checklist fields of a contract.

    Booleans default to False and references/dates to None so a partial
    draft is representable.
    """

    exam_scheduled: bool = False
    exam_done: bool = False
    exam_date: date | None = None

    contract_sent: bool = False
    signed_contract_received: bool = False
    contract_confirmation_date: date | None = None

    insurer_requested: bool = False
    insurer_name: str | None = None
    insurer_confirmation_date: date | None = None

    health_plan_requested: bool = False
    health_plan_filing_number: str | None = None
    health_plan_confirmation_date: date | None = None

    compensation_fund_requested: bool = False
    compensation_fund_filing_number: str | None = None
    compensation_fund_confirmation_date: date | None = None

    severance_requested: bool = False
    severance_fund: str | None = None
    severance_confirmation_date: date | None = None

    pension_requested: bool = False
    pension_fund: str | None = None
    pension_confirmation_date: date | None = None


ONBOARDING_FIELDS: tuple[str, ...] = tuple(
    OnboardingSnapshot.__dataclass_fields__.keys()
)


@dataclass(frozen=True)
class ContractInfo:
    """
    Immutable snapshot of one contract.

    ``end_date`` may only be None for indefinite contracts; the service
    enforces that on save.
    """

    id: UUID
    company_id: UUID | None
    first_name: str
    last_name: str
    document_type: str
    document_number: str
    contract_type: ContractType
    start_date: date | None
    end_date: date | None
    base_salary: Money
    transport_subsidy: Money
    approval_status: ApprovalStatus = ApprovalStatus.DRAFT
    position: str | None = None
    location_id: UUID | None = None
    contract_number: str | None = None
    approved_at: datetime | None = None
    approved_by_id: UUID | None = None
    archived_at: datetime | None = None
    archived_by_id: UUID | None = None
    archive_reason: str | None = None
    allowances: tuple[AllowanceInfo, ...] = ()
    onboarding: OnboardingSnapshot = field(default_factory=OnboardingSnapshot)

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# =============================================================================
# Periods
# =============================================================================


@dataclass(frozen=True)
class PeriodSpan:
    """
    One bounded interval in a fixed-term contract's ledger.

    Both ends are inclusive, so a span from Jan 1 to Jan 31 lasts 31 days.
    """

    sequence_number: int
    start_date: date
    end_date: date
    kind: PeriodKind
    is_current: bool = False

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class PeriodInfo:
    """Persisted period row."""

    id: UUID
    contract_id: UUID
    sequence_number: int
    start_date: date
    end_date: date
    kind: PeriodKind
    is_current: bool

    def to_span(self) -> PeriodSpan:
        return PeriodSpan(
            sequence_number=self.sequence_number,
            start_date=self.start_date,
            end_date=self.end_date,
            kind=self.kind,
            is_current=self.is_current,
        )


# =============================================================================
# Benefit assignments
# =============================================================================


@dataclass(frozen=True)
class BenefitAssignmentInfo:
    """
    One validity window during which an employer (and, for compensation
    funds, a location) is registered with a provider.
    """

    id: UUID
    kind: BenefitKind
    employer_id: UUID
    provider_id: UUID
    start_date: date
    end_date: date | None
    state: AssignmentState
    location_id: UUID | None = None

    @property
    def is_active(self) -> bool:
        return self.state == AssignmentState.ACTIVE

    def covers(self, on_date: date) -> bool:
        return self.start_date <= on_date and (
            self.end_date is None or self.end_date >= on_date
        )


@dataclass(frozen=True)
class AssignmentHistoryItem:
    assignment: BenefitAssignmentInfo
    status: HistoryStatus
    provider_name: str | None = None


# =============================================================================
# Annual parameters
# =============================================================================


@dataclass(frozen=True)
class AnnualParameterInfo:
    id: UUID
    parameter_type: ParameterType
    year: int
    value: Decimal
    is_active: bool = True


@dataclass(frozen=True)
class ResolvedParameter:
    """
    Outcome of an annual parameter lookup.

    ``source_year`` is None when the documented default was used.
    """

    parameter_type: ParameterType
    requested_year: int
    value: Decimal
    source: ParameterSource
    source_year: int | None = None

    @property
    def is_fallback(self) -> bool:
        return self.source != ParameterSource.EXACT
