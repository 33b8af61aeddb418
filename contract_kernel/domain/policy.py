"""
Policy value types consumed by the engines.

These are plain frozen dataclasses with documented defaults.  The
configuration layer builds them from YAML; engines and tests may also
construct them directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from contract_kernel.domain.dtos import ParameterType


@dataclass(frozen=True)
class ValidityThresholds:
    """Day windows for the expiry buckets of fixed-term contracts."""

    critical_days: int = 35
    about_to_expire_days: int = 45

    def __post_init__(self) -> None:
        if self.critical_days <= 0:
            raise ValueError("critical_days must be positive")
        if self.about_to_expire_days < self.critical_days:
            raise ValueError("about_to_expire_days must be >= critical_days")


@dataclass(frozen=True)
class TenurePolicy:
    """
    Legal limits on cumulative fixed-term tenure.

    ``max_periods`` is disabled (None) unless configured.
    """

    max_years: Decimal = Decimal("4")
    max_periods: int | None = None
    near_limit_years: Decimal = Decimal("3.5")
    min_year_renewal_from: int = 5
    min_renewal_days: int = 365

    def __post_init__(self) -> None:
        if not isinstance(self.max_years, Decimal):
            object.__setattr__(self, "max_years", Decimal(str(self.max_years)))
        if not isinstance(self.near_limit_years, Decimal):
            object.__setattr__(self, "near_limit_years", Decimal(str(self.near_limit_years)))
        if self.max_years <= 0:
            raise ValueError("max_years must be positive")
        if self.near_limit_years > self.max_years:
            raise ValueError("near_limit_years must not exceed max_years")
        if self.max_periods is not None and self.max_periods < 1:
            raise ValueError("max_periods must be >= 1 when set")


@dataclass(frozen=True)
class ParameterDefaults:
    """Fallback values used when no annual parameter row exists."""

    minimum_wage: Decimal = Decimal("1300000")
    transport_subsidy: Decimal = Decimal("162000")

    def for_type(self, parameter_type: ParameterType) -> Decimal:
        return getattr(self, ParameterType(parameter_type).value)
