"""
Module: contract_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for contract_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import contract_kernel (domain, exceptions) and sibling
    engine modules.  MUST NOT import contract_services or contract_config.

Invariants enforced:
    - Purity: engines never read a clock; ``as_of`` is always a parameter.
    - Decimal-only arithmetic through ``Money``.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - Typed ``ContractEngineError`` subclasses raised by individual engines.

Usage:
    from contract_engines import resolve_validity_state, summarize
    from contract_engines.period_ledger import PeriodLedger
"""

from contract_engines.annual_parameters import resolve_parameter
from contract_engines.approval import (
    APPROVAL_TRANSITIONS,
    Transition,
    check_approval,
    check_reopen,
    check_transition,
    completeness_errors,
    ensure_editable,
    validate_annulment,
    validate_unarchive,
)
from contract_engines.benefit_resolver import (
    ChangePlan,
    current_active,
    history_view,
    plan_change,
    select_active_assignment,
    validate_key,
)
from contract_engines.financial import (
    CompensationFigures,
    compensation_figures,
    total_remuneration,
    transport_subsidy,
)
from contract_engines.onboarding import (
    ONBOARDING_TRACKS,
    OnboardingTrack,
    TrackState,
    can_initiate_confirmation,
    clear_track,
    progress,
    step_progress,
    track_state,
    validate_onboarding,
)
from contract_engines.period_ledger import (
    AlertLevel,
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
from contract_engines.tracer import compute_input_fingerprint, traced_engine
from contract_engines.validity import (
    DEFAULT_THRESHOLDS,
    ValidityAssessment,
    assess_validity,
    days_until_expiry,
    resolve_validity_state,
)

__all__ = [
    "APPROVAL_TRANSITIONS",
    "AlertLevel",
    "ChangePlan",
    "CompensationFigures",
    "DEFAULT_THRESHOLDS",
    "LedgerSummary",
    "LegalAlert",
    "ONBOARDING_TRACKS",
    "OnboardingTrack",
    "PeriodLedger",
    "RenewalAssessment",
    "TrackState",
    "Transition",
    "ValidityAssessment",
    "append_historical_period",
    "assess_renewal",
    "assess_validity",
    "can_initiate_confirmation",
    "check_approval",
    "check_reopen",
    "check_transition",
    "clear_track",
    "compensation_figures",
    "completeness_errors",
    "compute_input_fingerprint",
    "current_active",
    "days_until_expiry",
    "ensure_editable",
    "history_view",
    "legal_alerts",
    "plan_change",
    "progress",
    "remove_historical_period",
    "renew",
    "replace_current_period",
    "resolve_parameter",
    "resolve_validity_state",
    "rewrite_history",
    "select_active_assignment",
    "step_progress",
    "summarize",
    "total_remuneration",
    "track_state",
    "traced_engine",
    "transport_subsidy",
    "validate_annulment",
    "validate_key",
    "validate_onboarding",
    "validate_unarchive",
]
