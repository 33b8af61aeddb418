"""
contract_engines.validity -- lifecycle bucket of a contract on a given day.

Responsibility:
    Classify a contract as active, about_to_expire, critical or terminated
    from its end date, its type and an evaluation date.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The caller supplies
    ``as_of``; nothing here reads a clock.

Invariants enforced:
    - Day precision only; times of day never matter.
    - A contract ending today is still active (terminated means the end
      date is strictly before ``as_of``).
    - Only fixed-term contracts receive the expiry refinement.

Failure modes:
    - ValidationError if ``as_of`` or ``end_date`` is not a date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from contract_engines.tracer import traced_engine
from contract_kernel.domain.dtos import ContractType, ValidityState
from contract_kernel.domain.policy import ValidityThresholds
from contract_kernel.exceptions import ValidationError

DEFAULT_THRESHOLDS = ValidityThresholds()


@dataclass(frozen=True)
class ValidityAssessment:
    state: ValidityState
    days_until_expiry: int | None

    @property
    def needs_attention(self) -> bool:
        return self.state in (ValidityState.CRITICAL, ValidityState.ABOUT_TO_EXPIRE)


def _as_day(value: date | None, field: str) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if not isinstance(value, date):
        raise ValidationError(field, f"not a date: {value!r}")
    return value


def days_until_expiry(end_date: date | None, as_of: date) -> int | None:
    """Whole days from ``as_of`` to ``end_date``; negative once expired."""
    end = _as_day(end_date, "end_date")
    today = _as_day(as_of, "as_of")
    if end is None:
        return None
    return (end - today).days


@traced_engine("validity", "1.0", fingerprint_fields=("end_date", "contract_type", "as_of"))
def resolve_validity_state(
    end_date: date | None,
    contract_type: ContractType | str,
    as_of: date,
    thresholds: ValidityThresholds | None = None,
) -> ValidityState:
    """
    Bucket a contract by its end date.

    - No end date: active.
    - End date before ``as_of``: terminated, whatever the type.
    - Fixed-term ending within ``critical_days``: critical; within
      ``about_to_expire_days``: about_to_expire.
    - Anything else: active.
    """
    thresholds = thresholds or DEFAULT_THRESHOLDS
    today = _as_day(as_of, "as_of")
    if today is None:
        raise ValidationError("as_of", "is required")
    end = _as_day(end_date, "end_date")

    if end is None:
        return ValidityState.ACTIVE
    if end < today:
        return ValidityState.TERMINATED
    if ContractType(contract_type) != ContractType.FIXED_TERM:
        return ValidityState.ACTIVE

    remaining = (end - today).days
    if 0 < remaining <= thresholds.critical_days:
        return ValidityState.CRITICAL
    if thresholds.critical_days < remaining <= thresholds.about_to_expire_days:
        return ValidityState.ABOUT_TO_EXPIRE
    return ValidityState.ACTIVE


def assess_validity(
    end_date: date | None,
    contract_type: ContractType | str,
    as_of: date,
    thresholds: ValidityThresholds | None = None,
) -> ValidityAssessment:
    """State plus the day count shown next to it."""
    return ValidityAssessment(
        state=resolve_validity_state(end_date, contract_type, as_of, thresholds),
        days_until_expiry=days_until_expiry(end_date, as_of),
    )
