"""
contract_services.benefit_assignment_service -- employer benefit-provider windows.

Responsibility:
    Resolve which insurer or compensation fund applies to an employer (and
    location) on a date, and write provider changes and closures.

Architecture position:
    Services -- orchestration over BenefitSelector, the benefit resolver
    engine and the BenefitAssignment model.  Flush-only.

Invariants enforced:
    - At most one active assignment per (kind, employer_id, location_id).
    - A change closes the old window on ``effective_date - 1`` and opens the
      new one on ``effective_date``; both writes share the caller's
      transaction.
    - Compensation funds require a location; insurers forbid one.

Failure modes:
    - ValidationError: bad kind/location shape, provider of another kind,
      close date before the window start.
    - NotFoundError: unknown provider.
    - AssignmentNotFoundError: close with nothing active.
    - OverlapError: effective date on or before the active start.
    - AmbiguousAssignmentError: more than one active row for the key.
    - PartialFailureError: the open step failed after the close step was
      flushed.  The caller must roll back.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from contract_engines.benefit_resolver import (
    current_active,
    history_view,
    plan_change,
    select_active_assignment,
    validate_key,
)
from contract_kernel.domain.dtos import (
    AssignmentHistoryItem,
    AssignmentState,
    BenefitAssignmentInfo,
    BenefitKind,
)
from contract_kernel.exceptions import (
    AssignmentNotFoundError,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from contract_kernel.logging_config import LogContext, get_logger
from contract_kernel.models.benefit import BenefitAssignment, BenefitProvider
from contract_kernel.selectors.benefit_selector import BenefitSelector

logger = get_logger("services.benefit_assignment")


class BenefitAssignmentService:
    """Reads and writes benefit assignment windows for one session."""

    def __init__(self, session: Session) -> None:
        self._session = session
        self._selector = BenefitSelector(session)

    def resolve_active(
        self,
        kind: BenefitKind,
        employer_id: UUID,
        location_id: UUID | None,
        on_date: date,
    ) -> BenefitAssignmentInfo | None:
        """The provider assignment covering ``on_date``, or None."""
        kind = validate_key(kind, location_id)
        assignments = self._selector.list_assignments(kind, employer_id, location_id)
        return select_active_assignment(assignments, on_date)

    def change(
        self,
        kind: BenefitKind,
        employer_id: UUID,
        location_id: UUID | None,
        new_provider_id: UUID,
        effective_date: date,
        actor_id: UUID,
    ) -> BenefitAssignmentInfo:
        """
        Switch the employer to ``new_provider_id`` from ``effective_date``.

        Close-then-open, each step flushed.  All validation happens before
        the first write.
        """
        kind = validate_key(kind, location_id)
        self._require_provider(kind, new_provider_id)
        assignments = self._selector.list_assignments(kind, employer_id, location_id)
        active = current_active(assignments)
        plan = plan_change(active, effective_date)

        with LogContext.bind(actor_id=str(actor_id), employer_id=str(employer_id)):
            if plan.close_assignment_id is not None:
                row = self._session.get(BenefitAssignment, plan.close_assignment_id)
                row.close(plan.close_end_date)
                row.updated_by_id = actor_id
                self._session.flush()
                logger.info(
                    "assignment_closed",
                    extra={
                        "assignment_id": str(row.id),
                        "kind": kind.value,
                        "end_date": plan.close_end_date,
                    },
                )

            try:
                opened = BenefitAssignment(
                    kind=kind.value,
                    employer_id=employer_id,
                    location_id=location_id,
                    provider_id=new_provider_id,
                    start_date=effective_date,
                    end_date=None,
                    state=AssignmentState.ACTIVE.value,
                    created_by_id=actor_id,
                )
                self._session.add(opened)
                self._session.flush()
            except SQLAlchemyError as exc:
                if plan.close_assignment_id is None:
                    raise
                logger.error(
                    "assignment_change_partial_failure",
                    extra={
                        "closed_assignment_id": str(plan.close_assignment_id),
                        "kind": kind.value,
                        "error": str(exc),
                    },
                )
                raise PartialFailureError(
                    completed_step="close",
                    failed_step="open",
                    record_id=plan.close_assignment_id,
                    cause=str(exc),
                ) from exc

            logger.info(
                "assignment_changed",
                extra={
                    "assignment_id": str(opened.id),
                    "kind": kind.value,
                    "provider_id": str(new_provider_id),
                    "effective_date": effective_date,
                },
            )
        return opened.to_dto()

    def close(
        self,
        kind: BenefitKind,
        employer_id: UUID,
        location_id: UUID | None,
        effective_date: date,
        actor_id: UUID,
    ) -> BenefitAssignmentInfo:
        """End the active window on ``effective_date`` without a successor."""
        kind = validate_key(kind, location_id)
        assignments = self._selector.list_assignments(kind, employer_id, location_id)
        active = current_active(assignments)
        if active is None:
            raise AssignmentNotFoundError(kind.value, employer_id, location_id)
        if effective_date < active.start_date:
            raise ValidationError(
                "end_date",
                f"close date {effective_date} is before the window start {active.start_date}",
            )

        row = self._session.get(BenefitAssignment, active.id)
        row.close(effective_date)
        row.updated_by_id = actor_id
        self._session.flush()

        logger.info(
            "assignment_closed",
            extra={
                "assignment_id": str(row.id),
                "kind": kind.value,
                "employer_id": str(employer_id),
                "end_date": effective_date,
            },
        )
        return row.to_dto()

    def history(
        self,
        kind: BenefitKind,
        employer_id: UUID,
        location_id: UUID | None = None,
    ) -> tuple[AssignmentHistoryItem, ...]:
        kind = validate_key(kind, location_id)
        assignments = self._selector.list_assignments(kind, employer_id, location_id)
        names = self._selector.provider_names({a.provider_id for a in assignments})
        return history_view(assignments, names)

    def _require_provider(self, kind: BenefitKind, provider_id: UUID) -> None:
        provider = self._session.get(BenefitProvider, provider_id)
        if provider is None:
            raise NotFoundError("BenefitProvider", provider_id)
        if provider.kind != kind.value:
            raise ValidationError(
                "provider_id", f"provider {provider.name} is a {provider.kind}, not a {kind.value}"
            )
