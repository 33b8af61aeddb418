"""
contract_engines.annual_parameters -- year-scoped economic constants.

Lookup order for a (parameter_type, year) pair:

    1. an active row for exactly that year
    2. the most recent active row for an earlier year
    3. the documented default from ``ParameterDefaults``

Steps 2 and 3 are fallbacks; the result says which one was taken so the
caller can log it.  Inactive rows and rows for later years are ignored.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from contract_engines.tracer import traced_engine
from contract_kernel.domain.dtos import (
    AnnualParameterInfo,
    ParameterSource,
    ParameterType,
    ResolvedParameter,
)
from contract_kernel.exceptions import ValidationError


@traced_engine("annual_parameters", "1.0", fingerprint_fields=("parameter_type", "year", "default"))
def resolve_parameter(
    rows: Iterable[AnnualParameterInfo],
    parameter_type: ParameterType | str,
    year: int,
    default: Decimal,
) -> ResolvedParameter:
    parameter_type = ParameterType(parameter_type)
    if not isinstance(year, int) or isinstance(year, bool):
        raise ValidationError("year", f"not a year: {year!r}")

    candidates = [
        row for row in rows
        if row.is_active and row.parameter_type == parameter_type and row.year <= year
    ]
    exact = [row for row in candidates if row.year == year]
    if exact:
        return ResolvedParameter(
            parameter_type=parameter_type,
            requested_year=year,
            value=exact[0].value,
            source=ParameterSource.EXACT,
            source_year=year,
        )
    if candidates:
        latest = max(candidates, key=lambda row: row.year)
        return ResolvedParameter(
            parameter_type=parameter_type,
            requested_year=year,
            value=latest.value,
            source=ParameterSource.PRIOR_YEAR,
            source_year=latest.year,
        )
    return ResolvedParameter(
        parameter_type=parameter_type,
        requested_year=year,
        value=Decimal(default),
        source=ParameterSource.DEFAULT,
    )
