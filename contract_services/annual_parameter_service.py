"""
contract_services.annual_parameter_service -- year-scoped constants with fallback.

Responsibility:
    Load the active annual parameter rows and resolve one value per
    (parameter_type, year) through the annual parameter engine.

Architecture position:
    Services -- read-only orchestration over ParameterSelector and
    ``contract_engines.annual_parameters``.

Invariants enforced:
    - Fallbacks (prior year or documented default) are logged at WARNING
      and surfaced on the result; they are never silent.

Failure modes:
    - ValidationError for a non-integer year.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from contract_engines.annual_parameters import resolve_parameter
from contract_engines.financial import transport_subsidy
from contract_kernel.domain.dtos import ParameterType, ResolvedParameter
from contract_kernel.domain.policy import ParameterDefaults
from contract_kernel.domain.values import Money
from contract_kernel.logging_config import get_logger
from contract_kernel.selectors.parameter_selector import ParameterSelector

logger = get_logger("services.annual_parameters")


class AnnualParameterService:
    """Resolve minimum wage and transport subsidy for a calendar year."""

    def __init__(self, session: Session, defaults: ParameterDefaults | None = None) -> None:
        self._session = session
        self._defaults = defaults or ParameterDefaults()
        self._selector = ParameterSelector(session)

    def resolve(self, parameter_type: ParameterType, year: int) -> ResolvedParameter:
        parameter_type = ParameterType(parameter_type)
        rows = self._selector.list_active(parameter_type, up_to_year=year)
        resolved = resolve_parameter(
            rows, parameter_type, year, self._defaults.for_type(parameter_type)
        )
        if resolved.is_fallback:
            logger.warning(
                "annual_parameter_fallback",
                extra={
                    "parameter_type": parameter_type.value,
                    "requested_year": year,
                    "source": resolved.source.value,
                    "source_year": resolved.source_year,
                    "value": str(resolved.value),
                },
            )
        return resolved

    def value(self, parameter_type: ParameterType, year: int) -> Decimal:
        return self.resolve(parameter_type, year).value

    def resolve_subsidy_inputs(self, year: int) -> tuple[ResolvedParameter, ResolvedParameter]:
        """(minimum wage, transport subsidy) lookups for ``year``, sources included."""
        return (
            self.resolve(ParameterType.MINIMUM_WAGE, year),
            self.resolve(ParameterType.TRANSPORT_SUBSIDY, year),
        )

    def subsidy_inputs(self, year: int, currency: str = "COP") -> tuple[Money, Money]:
        """(minimum wage, transport subsidy amount) for ``year``."""
        minimum_wage, subsidy = self.resolve_subsidy_inputs(year)
        return Money.of(minimum_wage.value, currency), Money.of(subsidy.value, currency)

    def transport_subsidy(self, salary: Money, year: int) -> Money:
        """Subsidy owed on ``salary`` under ``year``'s parameters."""
        minimum_wage, subsidy = self.subsidy_inputs(year, salary.currency.code)
        return transport_subsidy(salary, minimum_wage, subsidy)
