"""
contract_services.period_ledger_service -- persisted fixed-term period ledger.

Responsibility:
    Load a contract's periods into a ``PeriodLedger``, run the period
    ledger engine over it and write the result back.

Architecture position:
    Services -- orchestration over PeriodSelector, the period ledger engine
    and the ContractPeriod model.  Flush-only.

Invariants enforced:
    - Only fixed-term contracts carry periods.
    - Every write goes through the engine first, so continuity, the
      initial-kind rule and the future-period rule hold before any row
      changes.
    - Rows are synchronised by sequence number; the stored ledger is always
      the engine's output.
    - A renewal moves the contract's end date to the new current period end.
    - With history present the contract start date is the current period
      start; it is written back (and the subsidy re-derived) on every save.

Failure modes:
    - ContractNotFoundError, ContractArchivedError.
    - ValidationError when the contract is not fixed-term.
    - InvalidPeriodError / ValidationError from the engine.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from contract_engines.period_ledger import (
    LedgerSummary,
    LegalAlert,
    PeriodLedger,
    RenewalAssessment,
    append_historical_period,
    assess_renewal,
    legal_alerts,
    remove_historical_period,
    renew,
    replace_current_period,
    rewrite_history,
    summarize,
)
from contract_kernel.domain.clock import Clock, SystemClock
from contract_kernel.domain.dtos import ContractType, PeriodKind, PeriodSpan
from contract_kernel.domain.policy import ParameterDefaults, TenurePolicy
from contract_kernel.domain.values import Money
from contract_kernel.exceptions import (
    ContractArchivedError,
    ContractNotFoundError,
    ValidationError,
)
from contract_kernel.logging_config import LogContext, get_logger
from contract_kernel.models.contract import Contract
from contract_kernel.models.contract_period import ContractPeriod
from contract_kernel.selectors.period_selector import PeriodSelector
from contract_services.annual_parameter_service import AnnualParameterService

logger = get_logger("services.period_ledger")


class PeriodLedgerService:
    """Period ledger reads and writes for fixed-term contracts."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        tenure_policy: TenurePolicy | None = None,
        parameter_defaults: ParameterDefaults | None = None,
    ) -> None:
        self._session = session
        self._clock = clock or SystemClock()
        self._tenure_policy = tenure_policy or TenurePolicy()
        self._selector = PeriodSelector(session)
        self._parameters = AnnualParameterService(session, parameter_defaults)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def load(self, contract_id: UUID) -> PeriodLedger:
        self._get_contract(contract_id)
        spans = [p.to_span() for p in self._selector.list_for_contract(contract_id)]
        return PeriodLedger.from_spans(spans)

    def summary(self, contract_id: UUID) -> LedgerSummary:
        return summarize(self.load(contract_id), self._tenure_policy)

    def alerts(self, contract_id: UUID) -> tuple[LegalAlert, ...]:
        return legal_alerts(self.summary(contract_id), self._tenure_policy)

    def preview_renewal(self, contract_id: UUID, new_end_date: date) -> RenewalAssessment:
        """Run the renewal checks without writing anything."""
        return assess_renewal(self.load(contract_id), new_end_date, self._tenure_policy)

    def derived_start_date(self, contract_id: UUID) -> date | None:
        """Day after the last historical period; None without history."""
        with self._session.no_autoflush:
            last_end = self.load(contract_id).last_historical_end
        return last_end + timedelta(days=1) if last_end is not None else None

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def append_historical(
        self,
        contract_id: UUID,
        start_date: date,
        end_date: date,
        actor_id: UUID,
        kind: PeriodKind | None = None,
    ) -> PeriodLedger:
        contract = self._get_fixed_term(contract_id)
        ledger = append_historical_period(
            self.load(contract_id), start_date, end_date, self._clock.today(), kind
        )
        return self._save(contract, ledger, actor_id, "period_appended")

    def set_current(
        self,
        contract_id: UUID,
        start_date: date,
        end_date: date,
        actor_id: UUID,
    ) -> PeriodLedger:
        """Replace the current period; called whenever the contract dates change."""
        contract = self._get_fixed_term(contract_id)
        ledger = replace_current_period(self.load(contract_id), start_date, end_date)
        return self._save(contract, ledger, actor_id, "current_period_replaced")

    def remove_historical(self, contract_id: UUID, sequence_number: int, actor_id: UUID) -> PeriodLedger:
        contract = self._get_fixed_term(contract_id)
        ledger = remove_historical_period(self.load(contract_id), sequence_number)
        return self._save(contract, ledger, actor_id, "period_removed")

    def rewrite(
        self,
        contract_id: UUID,
        periods: Sequence[tuple[date, date, PeriodKind | str | None]],
        actor_id: UUID,
    ) -> PeriodLedger:
        """Replace the whole history, keeping (and re-anchoring) the current period."""
        contract = self._get_fixed_term(contract_id)
        existing = self.load(contract_id)
        ledger = rewrite_history(periods, self._clock.today())
        if existing.current is not None:
            ledger = replace_current_period(
                PeriodLedger(historical=ledger.historical, current=existing.current),
                existing.current.start_date,
                existing.current.end_date,
            )
        return self._save(contract, ledger, actor_id, "history_rewritten")

    def renew(
        self,
        contract_id: UUID,
        new_end_date: date,
        actor_id: UUID,
        kind: PeriodKind = PeriodKind.AUTOMATIC_RENEWAL,
    ) -> tuple[PeriodLedger, RenewalAssessment]:
        contract = self._get_fixed_term(contract_id)
        ledger, assessment = renew(
            self.load(contract_id), new_end_date, kind, self._tenure_policy
        )
        contract.end_date = ledger.current.end_date
        contract.updated_by_id = actor_id
        self._save(contract, ledger, actor_id, "contract_renewed")
        for alert in assessment.alerts:
            logger.warning(
                "renewal_alert",
                extra={"contract_id": str(contract_id), "code": alert.code, "level": alert.level.value},
            )
        return ledger, assessment

    def clear(self, contract_id: UUID) -> None:
        """Drop every period row; used when a contract stops being fixed-term."""
        for row in self._rows(contract_id):
            self._session.delete(row)
        self._session.flush()

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _get_contract(self, contract_id: UUID) -> Contract:
        contract = self._session.get(Contract, contract_id)
        if contract is None:
            raise ContractNotFoundError(contract_id)
        return contract

    def _get_fixed_term(self, contract_id: UUID) -> Contract:
        contract = self._get_contract(contract_id)
        if contract.is_archived:
            raise ContractArchivedError(contract_id)
        if contract.contract_type != ContractType.FIXED_TERM.value:
            raise ValidationError(
                "contract_type", f"periods only apply to fixed-term contracts, got {contract.contract_type}"
            )
        return contract

    def _rows(self, contract_id: UUID) -> list[ContractPeriod]:
        stmt = (
            select(ContractPeriod)
            .where(ContractPeriod.contract_id == contract_id)
            .order_by(ContractPeriod.sequence_number)
        )
        return list(self._session.execute(stmt).scalars())

    def _save(self, contract: Contract, ledger: PeriodLedger, actor_id: UUID, event: str) -> PeriodLedger:
        contract_id = contract.id
        current = ledger.current
        if ledger.historical and current is not None and contract.start_date != current.start_date:
            self._move_start_date(contract, current.start_date, actor_id)
        rows = {row.sequence_number: row for row in self._rows(contract_id)}
        wanted: dict[int, PeriodSpan] = {p.sequence_number: p for p in ledger.periods}

        for sequence_number, span in wanted.items():
            row = rows.get(sequence_number)
            if row is None:
                self._session.add(ContractPeriod(
                    contract_id=contract_id,
                    sequence_number=sequence_number,
                    start_date=span.start_date,
                    end_date=span.end_date,
                    kind=span.kind.value,
                    is_current=span.is_current,
                    created_by_id=actor_id,
                ))
            else:
                row.start_date = span.start_date
                row.end_date = span.end_date
                row.kind = span.kind.value
                row.is_current = span.is_current
                row.updated_by_id = actor_id
        for sequence_number, row in rows.items():
            if sequence_number not in wanted:
                self._session.delete(row)
        self._session.flush()

        with LogContext.bind(contract_id=str(contract_id), actor_id=str(actor_id)):
            logger.info(
                event,
                extra={
                    "total_periods": len(ledger.periods),
                    "current_sequence_number": (
                        ledger.current.sequence_number if ledger.current else None
                    ),
                },
            )
        return ledger

    def _move_start_date(self, contract: Contract, start_date: date, actor_id: UUID) -> None:
        previous = contract.start_date
        contract.start_date = start_date
        contract.transport_subsidy = self._parameters.transport_subsidy(
            Money.of(contract.base_salary, contract.currency), start_date.year
        ).amount
        contract.updated_by_id = actor_id
        logger.info(
            "contract_start_date_derived",
            extra={"contract_id": str(contract.id), "previous": previous, "start_date": start_date},
        )
