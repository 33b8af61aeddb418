"""
contract_services.contract_service -- contract drafts, approval and archival.

Responsibility:
    Create and edit contract drafts, derive the transport subsidy on every
    save, keep the current period of fixed-term contracts in step with the
    contract dates, and apply the approval and archival transitions decided
    by ``contract_engines.approval``.

Architecture position:
    Services -- orchestration over the Contract model, the approval,
    onboarding and financial engines, AnnualParameterService and
    PeriodLedgerService.  Flush-only; the caller owns the transaction.

Invariants enforced:
    - Approved and archived contracts reject field edits.
    - ``transport_subsidy`` is never accepted as input.
    - ``end_date`` is NULL only for indefinite contracts.
    - One non-archived contract per identity document.
    - Onboarding confirmation data needs its track to be initiated.
    - A fixed-term contract with period history starts the day after its
      last historical period; a different start_date is rejected before
      anything is flushed.

Failure modes:
    - ValidationError (unknown field, derived field, bad dates, negative
      salary, confirmation on an uninitiated track).
    - DuplicateContractError, ContractNotFoundError, CompanyNotFoundError.
    - StaleStateError, ContractArchivedError, InvalidTransitionError,
      ApprovalBlockedError.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from contract_engines.approval import (
    check_approval,
    check_reopen,
    ensure_editable,
    validate_annulment,
    validate_unarchive,
)
from contract_engines.financial import CompensationFigures, compensation_figures
from contract_engines.onboarding import (
    ONBOARDING_TRACKS,
    can_initiate_confirmation,
    clear_track,
    get_track,
)
from contract_kernel.domain.clock import Clock, SystemClock
from contract_kernel.domain.currency import CurrencyRegistry
from contract_kernel.domain.dtos import (
    ONBOARDING_FIELDS,
    AllowanceCategory,
    AllowanceInfo,
    ApprovalStatus,
    ContractInfo,
    ContractType,
    OnboardingSnapshot,
)
from contract_kernel.domain.policy import ParameterDefaults, TenurePolicy
from contract_kernel.domain.values import Money
from contract_kernel.exceptions import (
    CompanyNotFoundError,
    ContractNotFoundError,
    DuplicateContractError,
    ValidationError,
)
from contract_kernel.logging_config import LogContext, get_logger
from contract_kernel.models.company import Company
from contract_kernel.models.contract import Contract, ContractAllowance
from contract_kernel.selectors.contract_selector import ContractSelector
from contract_services.annual_parameter_service import AnnualParameterService
from contract_services.period_ledger_service import PeriodLedgerService

logger = get_logger("services.contract")

CONTRACT_FIELDS: frozenset[str] = frozenset({
    "company_id",
    "first_name",
    "last_name",
    "document_type",
    "document_number",
    "position",
    "contract_type",
    "start_date",
    "end_date",
    "location_id",
    "contract_number",
    "base_salary",
    "currency",
    "allowances",
}) | frozenset(ONBOARDING_FIELDS)

DERIVED_FIELDS: frozenset[str] = frozenset({"transport_subsidy"})

REQUIRED_ON_CREATE: tuple[str, ...] = (
    "first_name",
    "document_type",
    "document_number",
    "contract_type",
)


class ContractService:
    """Contract lifecycle writes."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        parameter_defaults: ParameterDefaults | None = None,
        tenure_policy: TenurePolicy | None = None,
    ) -> None:
        self._session = session
        self._clock = clock or SystemClock()
        self._selector = ContractSelector(session)
        self._parameters = AnnualParameterService(session, parameter_defaults)
        self._periods = PeriodLedgerService(session, self._clock, tenure_policy, parameter_defaults)

    # -------------------------------------------------------------------------
    # Drafts
    # -------------------------------------------------------------------------

    def create_draft(self, actor_id: UUID, **fields: Any) -> ContractInfo:
        """
        Create a contract in draft.

        Partial data is accepted; only the employee identity and the
        contract type are required up front.
        """
        self._check_field_names(fields)
        for name in REQUIRED_ON_CREATE:
            value = fields.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError(name, "is required")

        contract = Contract(
            approval_status=ApprovalStatus.DRAFT.value,
            currency=CurrencyRegistry.DEFAULT_CODE,
            base_salary=Decimal("0"),
            transport_subsidy=Decimal("0"),
            last_name="",
            created_by_id=actor_id,
        )
        for name in ONBOARDING_FIELDS:
            if getattr(OnboardingSnapshot, name, None) is False:
                setattr(contract, name, False)
        self._apply(contract, fields, actor_id)
        self._validate(contract)
        self._session.add(contract)
        self._session.flush()
        self._after_save(contract, actor_id)

        with LogContext.bind(contract_id=str(contract.id), actor_id=str(actor_id)):
            logger.info(
                "contract_draft_created",
                extra={"contract_type": contract.contract_type},
            )
        return contract.to_dto()

    def update(self, contract_id: UUID, actor_id: UUID, **fields: Any) -> ContractInfo:
        """Save changes to a draft.  May be called any number of times."""
        contract = self._get(contract_id)
        ensure_editable(contract.to_dto())
        self._check_field_names(fields)

        previous_type = contract.contract_type
        contract.updated_by_id = actor_id
        self._apply(contract, fields, actor_id)
        self._validate(contract, fields)
        self._session.flush()
        if previous_type == ContractType.FIXED_TERM.value and contract.contract_type != previous_type:
            self._periods.clear(contract.id)
        self._after_save(contract, actor_id)

        with LogContext.bind(contract_id=str(contract.id), actor_id=str(actor_id)):
            logger.info("contract_updated", extra={"fields": sorted(fields)})
        return contract.to_dto()

    def clear_onboarding_track(self, contract_id: UUID, track: str, actor_id: UUID) -> ContractInfo:
        contract = self._get(contract_id)
        ensure_editable(contract.to_dto())
        for name, value in clear_track(track).items():
            setattr(contract, name, value)
        contract.updated_by_id = actor_id
        self._session.flush()

        with LogContext.bind(contract_id=str(contract.id), actor_id=str(actor_id)):
            logger.info("onboarding_track_cleared", extra={"track": get_track(track).name})
        return contract.to_dto()

    # -------------------------------------------------------------------------
    # Approval and archival
    # -------------------------------------------------------------------------

    def approve(
        self,
        contract_id: UUID,
        actor_id: UUID,
        contract_number: str | None = None,
    ) -> ContractInfo:
        """
        draft -> approved.  ``contract_number`` is assigned here when given.

        Every completeness problem is reported at once through
        ApprovalBlockedError; nothing is written in that case.
        """
        contract = self._get(contract_id)
        snapshot = contract.to_dto()
        if contract_number is not None and not snapshot.is_approved:
            snapshot = replace(snapshot, contract_number=contract_number.strip())
        try:
            check_approval(snapshot)
        except ValidationError as exc:
            logger.warning(
                "contract_approval_blocked",
                extra={"contract_id": str(contract_id), "error": exc.to_dict()},
            )
            raise

        contract.contract_number = snapshot.contract_number
        contract.approval_status = ApprovalStatus.APPROVED.value
        contract.approved_at = self._clock.now_utc()
        contract.approved_by_id = actor_id
        contract.updated_by_id = actor_id
        self._session.flush()

        with LogContext.bind(contract_id=str(contract.id), actor_id=str(actor_id)):
            logger.info("contract_approved", extra={"contract_number": contract.contract_number})
        return contract.to_dto()

    def reopen(self, contract_id: UUID, actor_id: UUID, administrative: bool = False) -> ContractInfo:
        """approved -> draft; administrative only."""
        contract = self._get(contract_id)
        check_reopen(contract.to_dto(), administrative)
        contract.approval_status = ApprovalStatus.DRAFT.value
        contract.approved_at = None
        contract.approved_by_id = None
        contract.updated_by_id = actor_id
        self._session.flush()

        with LogContext.bind(contract_id=str(contract.id), actor_id=str(actor_id)):
            logger.info("contract_reopened")
        return contract.to_dto()

    def annul(self, contract_id: UUID, reason: str, actor_id: UUID) -> ContractInfo:
        """Archive a contract.  Allowed in draft and approved alike."""
        contract = self._get(contract_id)
        reason = validate_annulment(contract.to_dto(), reason)
        contract.archived_at = self._clock.now_utc()
        contract.archived_by_id = actor_id
        contract.archive_reason = reason
        contract.updated_by_id = actor_id
        self._session.flush()

        with LogContext.bind(contract_id=str(contract.id), actor_id=str(actor_id)):
            logger.info("contract_annulled", extra={"reason": reason})
        return contract.to_dto()

    def unarchive(self, contract_id: UUID, actor_id: UUID, administrative: bool = False) -> ContractInfo:
        contract = self._get(contract_id)
        validate_unarchive(contract.to_dto(), administrative)
        self._check_unique_document(contract)
        contract.archived_at = None
        contract.archived_by_id = None
        contract.archive_reason = None
        contract.updated_by_id = actor_id
        self._session.flush()

        with LogContext.bind(contract_id=str(contract.id), actor_id=str(actor_id)):
            logger.info("contract_unarchived")
        return contract.to_dto()

    # -------------------------------------------------------------------------
    # Figures
    # -------------------------------------------------------------------------

    def compensation(self, contract_id: UUID) -> CompensationFigures:
        contract = self._get(contract_id).to_dto()
        year = self._subsidy_year(contract.start_date)
        minimum_wage, subsidy = self._parameters.resolve_subsidy_inputs(year)
        return compensation_figures(contract.base_salary, contract.allowances, minimum_wage, subsidy)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _get(self, contract_id: UUID) -> Contract:
        contract = self._session.get(Contract, contract_id)
        if contract is None:
            raise ContractNotFoundError(contract_id)
        return contract

    def _check_field_names(self, fields: Mapping[str, Any]) -> None:
        for name in fields:
            if name in DERIVED_FIELDS:
                raise ValidationError(name, "is derived and cannot be set")
            if name not in CONTRACT_FIELDS:
                raise ValidationError(name, "unknown field")

    def _apply(self, contract: Contract, fields: Mapping[str, Any], actor_id: UUID) -> None:
        for name, value in fields.items():
            if name == "allowances":
                continue
            if name == "contract_type":
                value = ContractType(value).value
            elif name == "base_salary":
                value = self._decimal(name, value)
            elif name == "currency":
                if not CurrencyRegistry.is_valid(value):
                    raise ValidationError("currency", f"unknown currency {value!r}")
            elif isinstance(value, str):
                value = value.strip()
            setattr(contract, name, value)
        if "allowances" in fields:
            self._replace_allowances(contract, fields["allowances"] or (), actor_id)

    def _replace_allowances(
        self, contract: Contract, allowances: Iterable[Any], actor_id: UUID
    ) -> None:
        currency = contract.currency or CurrencyRegistry.DEFAULT_CODE
        lines: list[ContractAllowance] = []
        for index, item in enumerate(allowances):
            if isinstance(item, AllowanceInfo):
                category, amount, concept = item.category, item.amount, item.concept
            else:
                category = item.get("category")
                amount = item.get("amount")
                concept = item.get("concept", "")
            field = f"allowances[{index}]"
            try:
                category = AllowanceCategory(category)
            except ValueError as exc:
                raise ValidationError(f"{field}.category", f"unknown category {category!r}") from exc
            if isinstance(amount, Money):
                if amount.currency.code != currency:
                    raise ValidationError(
                        f"{field}.amount", f"currency {amount.currency.code} differs from {currency}"
                    )
                amount = amount.amount
            amount = self._decimal(f"{field}.amount", amount)
            lines.append(ContractAllowance(
                line_number=index + 1,
                category=category.value,
                amount=amount,
                currency=currency,
                concept=(concept or "").strip(),
                created_by_id=actor_id,
            ))
        contract.allowances = lines

    @staticmethod
    def _decimal(field: str, value: Any) -> Decimal:
        if isinstance(value, float):
            raise ValidationError(field, "floats are not accepted for money")
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation as exc:
            raise ValidationError(field, f"not a number: {value!r}") from exc
        if amount < 0:
            raise ValidationError(field, "must not be negative")
        return amount

    def _validate(self, contract: Contract, fields: Mapping[str, Any] | None = None) -> None:
        contract_type = ContractType(contract.contract_type)
        if contract_type == ContractType.FIXED_TERM and contract.id is not None:
            self._derive_start_date(contract, fields or {})
        if contract.start_date is not None and contract.end_date is not None:
            if contract.end_date <= contract.start_date:
                raise ValidationError("end_date", "must be after start_date")
        if contract_type == ContractType.INDEFINITE and contract.end_date is not None:
            raise ValidationError("end_date", "must be empty for indefinite contracts")
        if (
            contract_type != ContractType.INDEFINITE
            and contract.start_date is not None
            and contract.end_date is None
        ):
            raise ValidationError("end_date", f"is required for {contract_type.value} contracts")

        if contract.company_id is not None and self._session.get(Company, contract.company_id) is None:
            raise CompanyNotFoundError(contract.company_id)

        snapshot = contract.onboarding_snapshot()
        for track in ONBOARDING_TRACKS:
            if can_initiate_confirmation(snapshot, track):
                continue
            for name in (track.reference_field, track.confirmation_date_field):
                value = getattr(snapshot, name)
                if value not in (None, False, ""):
                    raise ValidationError(name, f"requires {track.initiating_field}")

        self._check_unique_document(contract)

    def _derive_start_date(self, contract: Contract, fields: Mapping[str, Any]) -> None:
        """With period history the start date is the day after the last period."""
        derived = self._periods.derived_start_date(contract.id)
        if derived is None:
            return
        if fields.get("start_date") is not None and fields["start_date"] != derived:
            raise ValidationError(
                "start_date", f"is derived from the period history and must be {derived}"
            )
        contract.start_date = derived

    def _check_unique_document(self, contract: Contract) -> None:
        existing = self._selector.find_active_by_document(
            contract.document_type, contract.document_number, exclude_id=contract.id
        )
        if existing is not None:
            raise DuplicateContractError(
                contract.document_type, contract.document_number, existing.id
            )

    def _subsidy_year(self, start_date: date | None) -> int:
        return (start_date or self._clock.today()).year

    def _after_save(self, contract: Contract, actor_id: UUID) -> None:
        """Derived values that follow every save."""
        if (
            contract.contract_type == ContractType.FIXED_TERM.value
            and contract.start_date is not None
            and contract.end_date is not None
        ):
            self._periods.set_current(contract.id, contract.start_date, contract.end_date, actor_id)

        currency = contract.currency or CurrencyRegistry.DEFAULT_CODE
        contract.transport_subsidy = self._parameters.transport_subsidy(
            Money.of(contract.base_salary, currency), self._subsidy_year(contract.start_date)
        ).amount
        self._session.flush()
