"""
contract_engines.benefit_resolver -- which provider applies on a date.

Responsibility:
    Select the single active benefit assignment covering a date, plan the
    close-then-open steps of a provider change, and build the
    most-recent-first history view.

Architecture position:
    Engines -- pure calculation layer over ``BenefitAssignmentInfo``
    snapshots.  The benefit assignment service does the writes.

Invariants enforced:
    - At most one active assignment covers any date; two matches raise
      instead of silently picking one.
    - A change closes the old window the day before the new one opens.

Failure modes:
    - AmbiguousAssignmentError: more than one active match.
    - OverlapError: effective date not strictly after the active start.
    - ValidationError: kind/location shape mismatch.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from uuid import UUID

from contract_engines.tracer import traced_engine
from contract_kernel.domain.dtos import (
    AssignmentHistoryItem,
    AssignmentState,
    BenefitAssignmentInfo,
    BenefitKind,
    HistoryStatus,
)
from contract_kernel.exceptions import (
    AmbiguousAssignmentError,
    OverlapError,
    ValidationError,
)


@dataclass(frozen=True)
class ChangePlan:
    """
    The two writes of a provider change.

    ``close_assignment_id`` is None when nothing was active.
    """

    effective_date: date
    close_assignment_id: UUID | None
    close_end_date: date | None


def validate_key(kind: BenefitKind | str, location_id: UUID | None) -> BenefitKind:
    """Compensation funds are keyed by location; insurers are not."""
    kind = BenefitKind(kind)
    if kind.requires_location and location_id is None:
        raise ValidationError("location_id", f"is required for {kind.value}")
    if not kind.requires_location and location_id is not None:
        raise ValidationError("location_id", f"must be empty for {kind.value}")
    return kind


@traced_engine("benefit_resolver", "1.0", fingerprint_fields=("on_date",))
def select_active_assignment(
    assignments: Iterable[BenefitAssignmentInfo],
    on_date: date,
) -> BenefitAssignmentInfo | None:
    """The one active assignment whose window covers ``on_date``, if any."""
    matches = [
        a for a in assignments
        if a.state == AssignmentState.ACTIVE and a.covers(on_date)
    ]
    if len(matches) > 1:
        raise AmbiguousAssignmentError(on_date, tuple(a.id for a in matches))
    return matches[0] if matches else None


def current_active(assignments: Iterable[BenefitAssignmentInfo]) -> BenefitAssignmentInfo | None:
    """The assignment in state active regardless of date."""
    active = [a for a in assignments if a.state == AssignmentState.ACTIVE]
    if len(active) > 1:
        latest = max(a.start_date for a in active)
        raise AmbiguousAssignmentError(latest, tuple(a.id for a in active))
    return active[0] if active else None


def plan_change(active: BenefitAssignmentInfo | None, effective_date: date) -> ChangePlan:
    """Work out what a change effective on ``effective_date`` has to close."""
    if active is None:
        return ChangePlan(effective_date=effective_date, close_assignment_id=None, close_end_date=None)
    if effective_date <= active.start_date:
        raise OverlapError(effective_date, active.start_date, active.id)
    return ChangePlan(
        effective_date=effective_date,
        close_assignment_id=active.id,
        close_end_date=effective_date - timedelta(days=1),
    )


def history_view(
    assignments: Iterable[BenefitAssignmentInfo],
    provider_names: dict[UUID, str] | None = None,
) -> tuple[AssignmentHistoryItem, ...]:
    """All windows, most recent start first, tagged active or finished."""
    names = provider_names or {}
    ordered = sorted(assignments, key=lambda a: a.start_date, reverse=True)
    return tuple(
        AssignmentHistoryItem(
            assignment=a,
            status=HistoryStatus.ACTIVE if a.state == AssignmentState.ACTIVE else HistoryStatus.FINISHED,
            provider_name=names.get(a.provider_id),
        )
        for a in ordered
    )
