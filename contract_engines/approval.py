"""
contract_engines.approval -- draft/approved lifecycle and the archive side-state.

Responsibility:
    Legal approval transitions, the completeness predicate that gates
    approval, the edit lock and annulment checks.

Architecture position:
    Engines -- pure calculation layer over ``ContractInfo`` snapshots.
    The contract service applies the resulting writes.

Invariants enforced:
    - draft -> approved is the only ordinary edge.
    - approved -> draft (reopen) needs ``administrative=True``.
    - Approved or archived contracts reject field edits.
    - Annulment needs a non-blank reason.

Failure modes:
    - InvalidTransitionError: edge not in APPROVAL_TRANSITIONS, or an
      administrative edge requested without the flag.
    - ApprovalBlockedError: completeness predicate failed; carries every
      field error at once.
    - StaleStateError / ContractArchivedError: edit lock.
    - ValidationError on ``archive_reason``.
"""

from __future__ import annotations

from dataclasses import dataclass

from contract_engines.onboarding import validate_onboarding
from contract_engines.tracer import traced_engine
from contract_kernel.domain.dtos import ApprovalStatus, ContractInfo, ContractType
from contract_kernel.exceptions import (
    ApprovalBlockedError,
    ContractArchivedError,
    InvalidTransitionError,
    StaleStateError,
    ValidationError,
)


@dataclass(frozen=True)
class Transition:
    action: str
    administrative: bool = False


APPROVAL_TRANSITIONS: dict[ApprovalStatus, dict[ApprovalStatus, Transition]] = {
    ApprovalStatus.DRAFT: {
        ApprovalStatus.APPROVED: Transition("approve"),
    },
    ApprovalStatus.APPROVED: {
        ApprovalStatus.DRAFT: Transition("reopen", administrative=True),
    },
}


def check_transition(
    from_status: ApprovalStatus | str,
    to_status: ApprovalStatus | str,
    administrative: bool = False,
) -> Transition:
    """Return the edge or raise InvalidTransitionError."""
    from_status = ApprovalStatus(from_status)
    to_status = ApprovalStatus(to_status)
    edge = APPROVAL_TRANSITIONS.get(from_status, {}).get(to_status)
    if edge is None:
        raise InvalidTransitionError(from_status.value, to_status.value)
    if edge.administrative and not administrative:
        raise InvalidTransitionError(
            from_status.value, to_status.value, "administrative action required"
        )
    return edge


def ensure_editable(contract: ContractInfo) -> None:
    if contract.is_archived:
        raise ContractArchivedError(contract.id)
    if contract.is_approved:
        raise StaleStateError(contract.id, contract.approval_status.value)


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def completeness_errors(contract: ContractInfo) -> tuple[ValidationError, ...]:
    """Every reason ``contract`` cannot be approved yet."""
    errors: list[ValidationError] = []
    if contract.company_id is None:
        errors.append(ValidationError("company_id", "is required"))
    if _blank(contract.contract_number):
        errors.append(ValidationError("contract_number", "is required"))
    if _blank(contract.first_name):
        errors.append(ValidationError("first_name", "is required"))
    if _blank(contract.last_name):
        errors.append(ValidationError("last_name", "is required"))
    if contract.start_date is None:
        errors.append(ValidationError("start_date", "is required"))
    if contract.end_date is None and contract.contract_type != ContractType.INDEFINITE:
        errors.append(ValidationError("end_date", "is required unless the contract is indefinite"))
    if (
        contract.start_date is not None
        and contract.end_date is not None
        and contract.end_date <= contract.start_date
    ):
        errors.append(ValidationError("end_date", "must be after start_date"))
    if contract.base_salary.is_negative:
        errors.append(ValidationError("base_salary", "must not be negative"))
    errors.extend(validate_onboarding(contract.onboarding))
    return tuple(errors)


@traced_engine("approval", "1.0", fingerprint_fields=("contract",))
def check_approval(contract: ContractInfo) -> Transition:
    """
    Gate for draft -> approved.

    Archived contracts cannot be approved; an already-approved contract is
    an invalid transition.
    """
    if contract.is_archived:
        raise ContractArchivedError(contract.id)
    edge = check_transition(contract.approval_status, ApprovalStatus.APPROVED)
    errors = completeness_errors(contract)
    if errors:
        raise ApprovalBlockedError(contract.id, errors)
    return edge


def check_reopen(contract: ContractInfo, administrative: bool) -> Transition:
    if contract.is_archived:
        raise ContractArchivedError(contract.id)
    return check_transition(contract.approval_status, ApprovalStatus.DRAFT, administrative)


def validate_annulment(contract: ContractInfo, reason: str | None) -> str:
    """Return the trimmed reason for archiving ``contract``."""
    if contract.is_archived:
        raise ContractArchivedError(contract.id)
    if _blank(reason):
        raise ValidationError("archive_reason", "is required")
    return reason.strip()


def validate_unarchive(contract: ContractInfo, administrative: bool) -> None:
    if not contract.is_archived:
        raise InvalidTransitionError("active", "active", "contract is not archived")
    if not administrative:
        raise InvalidTransitionError("archived", "active", "administrative action required")
