"""
Typed exception hierarchy for the contract lifecycle engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure in this package maps to a form field or a structured payload
that a caller can render without parsing message strings.  Each class
carries a machine-readable ``code`` class attribute and stores its context
as attributes.

    try:
        service.approve(contract_id, actor_id)
    except ApprovalBlockedError as e:
        for err in e.field_errors:
            form.mark(err.field, err.reason)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    ContractEngineError (base)
    |
    +-- ValidationError
    |   +-- InvalidPeriodError
    |   +-- ApprovalBlockedError
    |
    +-- NotFoundError
    |   +-- ContractNotFoundError
    |   +-- AssignmentNotFoundError
    |   +-- CompanyNotFoundError
    |
    +-- TemporalConflictError
    |   +-- OverlapError
    |   +-- AmbiguousAssignmentError
    |
    +-- StateError
    |   +-- StaleStateError
    |   +-- ContractArchivedError
    |   +-- InvalidTransitionError
    |
    +-- DuplicateError
    |   +-- DuplicateContractError
    |   +-- DuplicateParameterError
    |
    +-- CurrencyMismatchError
    +-- PartialFailureError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                     | When Raised
-------------|--------------------------|--------------------------------------
Validation   | VALIDATION_ERROR         | A field violates a rule
             | INVALID_PERIOD           | Period ledger continuity broken
             | APPROVAL_BLOCKED         | Completeness predicate failed
-------------|--------------------------|--------------------------------------
Not found    | CONTRACT_NOT_FOUND       | Contract id does not exist
             | ASSIGNMENT_NOT_FOUND     | No active benefit assignment
             | COMPANY_NOT_FOUND        | Company id does not exist
-------------|--------------------------|--------------------------------------
Temporal     | ASSIGNMENT_OVERLAP       | Effective date not after active start
             | AMBIGUOUS_ASSIGNMENT     | Two active windows cover one date
-------------|--------------------------|--------------------------------------
State        | STALE_STATE              | Edit attempted on an approved contract
             | CONTRACT_ARCHIVED        | Edit attempted on an annulled contract
             | INVALID_TRANSITION       | Edge not in APPROVAL_TRANSITIONS
-------------|--------------------------|--------------------------------------
Duplicate    | DUPLICATE_CONTRACT       | Document already has an active contract
             | DUPLICATE_PARAMETER      | Parameter type/year already active
-------------|--------------------------|--------------------------------------
Other        | CURRENCY_MISMATCH        | Mixed currencies in one sum
             | PARTIAL_FAILURE          | Second step of a two-step write failed
"""

from typing import Any


class ContractEngineError(Exception):
    """
    Base exception for all contract engine errors.

    All subclasses define a ``code`` class attribute.
    """

    code: str = "CONTRACT_ENGINE_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Render the error as a JSON-friendly payload."""
        payload: dict[str, Any] = {"code": self.code, "message": str(self)}
        for key, value in vars(self).items():
            if key.startswith("_"):
                continue
            if isinstance(value, (list, tuple)):
                value = [
                    v.to_dict() if isinstance(v, ContractEngineError) else v
                    for v in value
                ]
            payload[key] = value
        return payload


# Validation


class ValidationError(ContractEngineError):
    """A single field failed a rule.  ``field`` names the form field."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")


class InvalidPeriodError(ValidationError):
    """
    A period would break ledger continuity.

    ``invariant`` is one of ``not_a_date``, ``end_before_start``,
    ``gap_or_overlap``, ``future_period`` or ``kind_mismatch``.
    """

    code: str = "INVALID_PERIOD"

    def __init__(
        self,
        invariant: str,
        reason: str,
        sequence_number: int | None = None,
        field: str = "periods",
    ):
        self.invariant = invariant
        self.sequence_number = sequence_number
        super().__init__(field, reason)


class ApprovalBlockedError(ValidationError):
    """Approval refused; ``field_errors`` lists every failing field."""

    code: str = "APPROVAL_BLOCKED"

    def __init__(self, contract_id: Any, field_errors: tuple[ValidationError, ...]):
        self.contract_id = contract_id
        self.field_errors = tuple(field_errors)
        names = ", ".join(e.field for e in self.field_errors)
        ContractEngineError.__init__(
            self,
            f"Contract {contract_id} cannot be approved: "
            f"{len(self.field_errors)} field error(s) [{names}]",
        )
        self.field = "approval_status"
        self.reason = "incomplete"


# Not found


class NotFoundError(ContractEngineError):
    """Base class for missing records."""

    code: str = "NOT_FOUND"

    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class ContractNotFoundError(NotFoundError):
    code: str = "CONTRACT_NOT_FOUND"

    def __init__(self, contract_id: Any):
        self.contract_id = contract_id
        super().__init__("Contract", contract_id)


class CompanyNotFoundError(NotFoundError):
    code: str = "COMPANY_NOT_FOUND"

    def __init__(self, company_id: Any):
        self.company_id = company_id
        super().__init__("Company", company_id)


class AssignmentNotFoundError(NotFoundError):
    """No active benefit assignment for the given key."""

    code: str = "ASSIGNMENT_NOT_FOUND"

    def __init__(self, kind: str, employer_id: Any, location_id: Any = None):
        self.kind = kind
        self.employer_id = employer_id
        self.location_id = location_id
        NotFoundError.__init__(
            self,
            "BenefitAssignment",
            f"{kind}/{employer_id}/{location_id}",
        )


# Temporal conflicts


class TemporalConflictError(ContractEngineError):
    """Base class for validity-window conflicts."""

    code: str = "TEMPORAL_CONFLICT"


class OverlapError(TemporalConflictError):
    """The new window would start on or before the active window's start."""

    code: str = "ASSIGNMENT_OVERLAP"

    def __init__(self, effective_date: Any, active_start_date: Any, assignment_id: Any = None):
        self.effective_date = effective_date
        self.active_start_date = active_start_date
        self.assignment_id = assignment_id
        super().__init__(
            f"Effective date {effective_date} must be after the active "
            f"assignment start {active_start_date}"
        )


class AmbiguousAssignmentError(TemporalConflictError):
    """More than one active assignment covers the same date."""

    code: str = "AMBIGUOUS_ASSIGNMENT"

    def __init__(self, on_date: Any, assignment_ids: tuple[Any, ...]):
        self.on_date = on_date
        self.assignment_ids = tuple(assignment_ids)
        super().__init__(
            f"{len(self.assignment_ids)} active assignments cover {on_date}"
        )


# State


class StateError(ContractEngineError):
    """Base class for lifecycle state violations."""

    code: str = "STATE_ERROR"


class StaleStateError(StateError):
    """The contract is approved and its fields are locked."""

    code: str = "STALE_STATE"

    def __init__(self, contract_id: Any, status: str):
        self.contract_id = contract_id
        self.status = status
        super().__init__(
            f"Contract {contract_id} is {status} and cannot be edited"
        )


class ContractArchivedError(StateError):
    code: str = "CONTRACT_ARCHIVED"

    def __init__(self, contract_id: Any):
        self.contract_id = contract_id
        super().__init__(f"Contract {contract_id} is archived")


class InvalidTransitionError(StateError):
    """Requested approval transition is not a legal edge."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Transition {from_status} -> {to_status} is not allowed"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


# Duplicates


class DuplicateError(ContractEngineError):
    code: str = "DUPLICATE"


class DuplicateContractError(DuplicateError):
    """Another non-archived contract holds the same identity document."""

    code: str = "DUPLICATE_CONTRACT"

    def __init__(self, document_type: str, document_number: str, existing_id: Any):
        self.document_type = document_type
        self.document_number = document_number
        self.existing_id = existing_id
        super().__init__(
            f"Document {document_type} {document_number} already has "
            f"an active contract {existing_id}"
        )


class DuplicateParameterError(DuplicateError):
    code: str = "DUPLICATE_PARAMETER"

    def __init__(self, parameter_type: str, year: int):
        self.parameter_type = parameter_type
        self.year = year
        super().__init__(f"Parameter {parameter_type} already defined for {year}")


# Money


class CurrencyMismatchError(ContractEngineError):
    """Operation mixes currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, expected: str, received: str):
        self.expected = expected
        self.received = received
        super().__init__(f"Currency mismatch: expected {expected}, got {received}")


# Multi-step writes


class PartialFailureError(ContractEngineError):
    """
    The first step of a two-step write succeeded and the second failed.

    ``completed_step`` names what was flushed; the caller's transaction
    must be rolled back to undo it.
    """

    code: str = "PARTIAL_FAILURE"

    def __init__(self, completed_step: str, failed_step: str, record_id: Any, cause: str):
        self.completed_step = completed_step
        self.failed_step = failed_step
        self.record_id = record_id
        self.cause = cause
        super().__init__(
            f"{failed_step} failed after {completed_step} of {record_id}: {cause}"
        )
