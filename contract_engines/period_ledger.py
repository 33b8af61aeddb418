"""
contract_engines.period_ledger -- fixed-term period ledger math.

Responsibility:
    Validate and transform the ordered, contiguous sequence of periods that
    make up a fixed-term contract's life, and derive tenure totals and the
    legal alerts that depend on them.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Every operation takes a
    frozen ``PeriodLedger`` and returns a new one; nothing is mutated.

Invariants enforced:
    - sequence_number 1 <=> kind initial.
    - start_date < end_date for every period.
    - start[i] == end[i-1] + 1 day (no gap, no overlap), current included.
    - Historical periods do not end after the evaluation date.
    - Exactly zero or one current period, always last.
    - ``must_be_indefinite`` is advisory; the contract type is never changed.

Failure modes:
    - InvalidPeriodError with ``invariant`` set to ``not_a_date``,
      ``end_before_start``, ``gap_or_overlap``, ``future_period`` or
      ``kind_mismatch``.
    - ValidationError from ``assess_renewal`` when a renewal would break a
      tenure rule.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from contract_engines.tracer import traced_engine
from contract_kernel.domain.dtos import PeriodKind, PeriodSpan
from contract_kernel.domain.policy import TenurePolicy
from contract_kernel.exceptions import InvalidPeriodError, ValidationError
from contract_kernel.logging_config import get_logger

logger = get_logger("engines.period_ledger")

ONE_DAY = timedelta(days=1)
DAYS_PER_YEAR = Decimal("365")
DEFAULT_TENURE_POLICY = TenurePolicy()


@dataclass(frozen=True)
class PeriodLedger:
    """Historical periods in sequence order plus the optional current one."""

    historical: tuple[PeriodSpan, ...] = ()
    current: PeriodSpan | None = None

    @property
    def periods(self) -> tuple[PeriodSpan, ...]:
        if self.current is None:
            return self.historical
        return self.historical + (self.current,)

    @property
    def last_historical_end(self) -> date | None:
        return self.historical[-1].end_date if self.historical else None

    @classmethod
    def from_spans(cls, spans: tuple[PeriodSpan, ...] | list[PeriodSpan]) -> PeriodLedger:
        """Split stored rows into history and current, ordered by sequence."""
        ordered = sorted(spans, key=lambda s: s.sequence_number)
        currents = [s for s in ordered if s.is_current]
        if len(currents) > 1:
            raise InvalidPeriodError(
                "gap_or_overlap",
                f"{len(currents)} periods are flagged as current",
                sequence_number=currents[1].sequence_number,
            )
        return cls(
            historical=tuple(s for s in ordered if not s.is_current),
            current=currents[0] if currents else None,
        )


@dataclass(frozen=True)
class LedgerSummary:
    total_periods: int
    total_days: int
    total_years: Decimal
    next_sequence_number: int
    current_sequence_number: int | None
    must_be_indefinite: bool


class AlertLevel(str, Enum):
    DANGER = "danger"
    WARNING = "warning"


@dataclass(frozen=True)
class LegalAlert:
    code: str
    level: AlertLevel
    message: str


@dataclass(frozen=True)
class RenewalAssessment:
    """What a proposed renewal would do to tenure, before it is applied."""

    renewal_number: int
    new_end_date: date
    extension_days: int
    projected_years: Decimal
    alerts: tuple[LegalAlert, ...] = ()


# =============================================================================
# Validation helpers
# =============================================================================


def _require_date(value: object, field: str, sequence_number: int) -> date:
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, date):
        raise InvalidPeriodError(
            "not_a_date",
            f"period #{sequence_number}: {field} is not a date ({value!r})",
            sequence_number=sequence_number,
            field=field,
        )
    return value


def _check_bounds(start: date, end: date, sequence_number: int) -> None:
    if end <= start:
        raise InvalidPeriodError(
            "end_before_start",
            f"period #{sequence_number}: end date {end} must be after start date {start}",
            sequence_number=sequence_number,
            field="end_date",
        )


def _check_continuity(previous_end: date | None, start: date, sequence_number: int) -> None:
    if previous_end is None:
        return
    expected = previous_end + ONE_DAY
    if start != expected:
        raise InvalidPeriodError(
            "gap_or_overlap",
            f"period #{sequence_number} must start on {expected}, got {start}",
            sequence_number=sequence_number,
            field="start_date",
        )


def _resolve_kind(kind: PeriodKind | str | None, sequence_number: int) -> PeriodKind:
    if kind is None:
        return PeriodKind.INITIAL if sequence_number == 1 else PeriodKind.AUTOMATIC_RENEWAL
    kind = PeriodKind(kind)
    if (sequence_number == 1) != (kind == PeriodKind.INITIAL):
        raise InvalidPeriodError(
            "kind_mismatch",
            f"period #{sequence_number} cannot be of kind {kind.value}",
            sequence_number=sequence_number,
            field="kind",
        )
    return kind


def _current_kind(existing: PeriodSpan | None, has_history: bool) -> PeriodKind:
    if not has_history:
        return PeriodKind.INITIAL
    if existing is not None and existing.kind == PeriodKind.NEGOTIATED_RENEWAL:
        return PeriodKind.NEGOTIATED_RENEWAL
    return PeriodKind.AUTOMATIC_RENEWAL


def _reanchor_current(ledger: PeriodLedger) -> PeriodLedger:
    """Re-derive the current period after history changed."""
    if ledger.current is None:
        return ledger
    return replace_current_period(ledger, ledger.current.start_date, ledger.current.end_date)


# =============================================================================
# Operations
# =============================================================================


def append_historical_period(
    ledger: PeriodLedger,
    start_date: date,
    end_date: date,
    as_of: date,
    kind: PeriodKind | str | None = None,
) -> PeriodLedger:
    """
    Append one finished period to the history.

    The current period, if any, is re-anchored to start the day after the
    new last historical period.
    """
    sequence_number = len(ledger.historical) + 1
    start = _require_date(start_date, "start_date", sequence_number)
    end = _require_date(end_date, "end_date", sequence_number)
    today = _require_date(as_of, "as_of", sequence_number)

    _check_bounds(start, end, sequence_number)
    _check_continuity(ledger.last_historical_end, start, sequence_number)
    if end > today:
        raise InvalidPeriodError(
            "future_period",
            f"period #{sequence_number} ends {end}, after {today}",
            sequence_number=sequence_number,
            field="end_date",
        )
    resolved_kind = _resolve_kind(kind, sequence_number)

    period = PeriodSpan(
        sequence_number=sequence_number,
        start_date=start,
        end_date=end,
        kind=resolved_kind,
        is_current=False,
    )
    return _reanchor_current(replace(ledger, historical=ledger.historical + (period,)))


def replace_current_period(
    ledger: PeriodLedger,
    start_date: date,
    end_date: date,
) -> PeriodLedger:
    """
    Write the single current period.

    When history exists the effective start is the day after the last
    historical period and ``start_date`` is ignored.
    """
    sequence_number = len(ledger.historical) + 1
    end = _require_date(end_date, "end_date", sequence_number)
    if ledger.historical:
        start = ledger.last_historical_end + ONE_DAY
    else:
        start = _require_date(start_date, "start_date", sequence_number)

    _check_bounds(start, end, sequence_number)

    current = PeriodSpan(
        sequence_number=sequence_number,
        start_date=start,
        end_date=end,
        kind=_current_kind(ledger.current, bool(ledger.historical)),
        is_current=True,
    )
    return replace(ledger, current=current)


def remove_historical_period(ledger: PeriodLedger, sequence_number: int) -> PeriodLedger:
    """
    Drop one historical period and re-sequence the rest from 1.

    Only the first or the last historical period can be removed; removing
    one in the middle would leave a hole in the ledger.
    """
    positions = [p.sequence_number for p in ledger.historical]
    if sequence_number not in positions:
        raise InvalidPeriodError(
            "gap_or_overlap",
            f"no historical period #{sequence_number}",
            sequence_number=sequence_number,
        )
    if sequence_number not in (positions[0], positions[-1]):
        raise InvalidPeriodError(
            "gap_or_overlap",
            f"removing period #{sequence_number} would leave a gap between "
            f"#{sequence_number - 1} and #{sequence_number + 1}",
            sequence_number=sequence_number,
        )

    remaining = [p for p in ledger.historical if p.sequence_number != sequence_number]
    resequenced = tuple(
        replace(
            p,
            sequence_number=index,
            kind=PeriodKind.INITIAL if index == 1 else (
                PeriodKind.AUTOMATIC_RENEWAL if p.kind == PeriodKind.INITIAL else p.kind
            ),
        )
        for index, p in enumerate(remaining, start=1)
    )
    return _reanchor_current(replace(ledger, historical=resequenced))


@traced_engine("period_ledger.rewrite", "1.0", fingerprint_fields=("periods", "as_of"))
def rewrite_history(
    periods: Sequence[tuple[date, date, PeriodKind | str | None]],
    as_of: date,
    current: PeriodSpan | None = None,
) -> PeriodLedger:
    """
    Build a ledger from scratch, validating period by period.

    ``periods`` is an ordered list of ``(start, end, kind)`` triples; kind
    may be None to take the default for its position.
    """
    ledger = PeriodLedger(current=current)
    for start, end, kind in periods:
        ledger = append_historical_period(ledger, start, end, as_of, kind)
    return ledger


@traced_engine("period_ledger.summary", "1.0", fingerprint_fields=("ledger",))
def summarize(ledger: PeriodLedger, tenure_policy: TenurePolicy | None = None) -> LedgerSummary:
    """Totals across every period, current one included."""
    policy = tenure_policy or DEFAULT_TENURE_POLICY
    periods = ledger.periods
    total_days = sum(p.days for p in periods)
    total_years = (Decimal(total_days) / DAYS_PER_YEAR).quantize(
        Decimal("0.01"), rounding=ROUND_HALF_UP
    )
    must_be_indefinite = total_years >= policy.max_years or (
        policy.max_periods is not None and len(periods) >= policy.max_periods
    )
    return LedgerSummary(
        total_periods=len(periods),
        total_days=total_days,
        total_years=total_years,
        next_sequence_number=len(periods) + 1,
        current_sequence_number=ledger.current.sequence_number if ledger.current else None,
        must_be_indefinite=must_be_indefinite,
    )


def legal_alerts(
    summary: LedgerSummary,
    tenure_policy: TenurePolicy | None = None,
    projected_years: Decimal | None = None,
) -> tuple[LegalAlert, ...]:
    """Advisory alerts for a ledger, optionally for a proposed renewal."""
    policy = tenure_policy or DEFAULT_TENURE_POLICY
    years = projected_years if projected_years is not None else summary.total_years
    alerts: list[LegalAlert] = []

    if summary.must_be_indefinite:
        alerts.append(LegalAlert(
            code="must_be_indefinite",
            level=AlertLevel.DANGER,
            message=(
                f"{summary.total_years} years accumulated; the contract must "
                f"become indefinite"
            ),
        ))
    elif years > policy.max_years:
        alerts.append(LegalAlert(
            code="renewal_exceeds_max_years",
            level=AlertLevel.DANGER,
            message=f"renewal would reach {years} years, above {policy.max_years}",
        ))
    elif years > policy.near_limit_years:
        alerts.append(LegalAlert(
            code="near_tenure_limit",
            level=AlertLevel.WARNING,
            message=f"{years} years, close to the {policy.max_years} year limit",
        ))

    next_renewal = summary.total_periods
    if summary.total_periods and next_renewal >= policy.min_year_renewal_from:
        alerts.append(LegalAlert(
            code="next_renewal_minimum_year",
            level=AlertLevel.WARNING,
            message=(
                f"renewal #{next_renewal} must last at least "
                f"{policy.min_renewal_days} days"
            ),
        ))
    return tuple(alerts)


@traced_engine("period_ledger.renewal", "1.0", fingerprint_fields=("ledger", "new_end_date"))
def assess_renewal(
    ledger: PeriodLedger,
    new_end_date: date,
    tenure_policy: TenurePolicy | None = None,
) -> RenewalAssessment:
    """
    Check a proposed renewal against the tenure rules.

    Renewal N (the initial period is not a renewal) from
    ``min_year_renewal_from`` on must extend by ``min_renewal_days``;
    no renewal may push tenure past ``max_years``.
    """
    policy = tenure_policy or DEFAULT_TENURE_POLICY
    if ledger.current is None:
        raise ValidationError("end_date", "there is no current period to renew")
    new_end = _require_date(new_end_date, "end_date", ledger.current.sequence_number + 1)
    current_end = ledger.current.end_date
    if new_end <= current_end:
        raise ValidationError(
            "end_date",
            f"new end date {new_end} must be after the current end date {current_end}",
        )

    summary = summarize(ledger, policy)
    renewal_number = summary.total_periods
    extension_days = (new_end - current_end).days
    projected_years = (
        Decimal(summary.total_days + extension_days) / DAYS_PER_YEAR
    ).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    if summary.must_be_indefinite:
        raise ValidationError(
            "contract_type",
            f"{summary.total_years} years accumulated; no further fixed-term renewals",
        )
    if renewal_number >= policy.min_year_renewal_from and extension_days < policy.min_renewal_days:
        raise ValidationError(
            "end_date",
            f"renewal #{renewal_number} must last at least {policy.min_renewal_days} "
            f"days, got {extension_days}",
        )
    if projected_years > policy.max_years:
        raise ValidationError(
            "end_date",
            f"renewal would reach {projected_years} years; above {policy.max_years} "
            f"the contract must be indefinite",
        )

    return RenewalAssessment(
        renewal_number=renewal_number,
        new_end_date=new_end,
        extension_days=extension_days,
        projected_years=projected_years,
        alerts=legal_alerts(summary, policy, projected_years),
    )


def renew(
    ledger: PeriodLedger,
    new_end_date: date,
    kind: PeriodKind | str = PeriodKind.AUTOMATIC_RENEWAL,
    tenure_policy: TenurePolicy | None = None,
) -> tuple[PeriodLedger, RenewalAssessment]:
    """
    Roll the current period into history and open the next one.

    The rolled period is validated as of its own end date, so a renewal
    agreed before the current period finishes is accepted.
    """
    assessment = assess_renewal(ledger, new_end_date, tenure_policy)
    kind = PeriodKind(kind)
    if kind == PeriodKind.INITIAL:
        raise InvalidPeriodError(
            "kind_mismatch",
            "a renewal cannot be of kind initial",
            sequence_number=ledger.current.sequence_number + 1,
            field="kind",
        )

    rolled = ledger.current
    history = append_historical_period(
        PeriodLedger(historical=ledger.historical),
        rolled.start_date,
        rolled.end_date,
        as_of=rolled.end_date,
        kind=rolled.kind,
    )
    next_start = rolled.end_date + ONE_DAY
    renewed = replace(
        history,
        current=PeriodSpan(
            sequence_number=len(history.historical) + 1,
            start_date=next_start,
            end_date=assessment.new_end_date,
            kind=kind,
            is_current=True,
        ),
    )
    logger.info(
        "period_ledger_renewed",
        extra={
            "renewal_number": assessment.renewal_number,
            "new_end_date": assessment.new_end_date,
            "projected_years": assessment.projected_years,
        },
    )
    return renewed, assessment
