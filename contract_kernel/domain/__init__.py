"""
Pure domain layer.

Immutable DTOs, money values, policy types and the injectable clock.
No ORM, no database and no I/O beyond SystemClock.
"""

from contract_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from contract_kernel.domain.dtos import (
    AllowanceCategory,
    AllowanceInfo,
    ApprovalStatus,
    AssignmentState,
    BenefitKind,
    ContractInfo,
    ContractType,
    HistoryStatus,
    OnboardingSnapshot,
    ParameterSource,
    ParameterType,
    PeriodKind,
    PeriodSpan,
    ValidityState,
)
from contract_kernel.domain.policy import ParameterDefaults, TenurePolicy, ValidityThresholds
from contract_kernel.domain.values import Currency, Money

__all__ = [
    "AllowanceCategory",
    "AllowanceInfo",
    "ApprovalStatus",
    "AssignmentState",
    "BenefitKind",
    "Clock",
    "ContractInfo",
    "ContractType",
    "Currency",
    "DeterministicClock",
    "HistoryStatus",
    "Money",
    "OnboardingSnapshot",
    "ParameterDefaults",
    "ParameterSource",
    "ParameterType",
    "PeriodKind",
    "PeriodSpan",
    "SystemClock",
    "TenurePolicy",
    "ValidityState",
    "ValidityThresholds",
]
