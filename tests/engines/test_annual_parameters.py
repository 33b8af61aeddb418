"""Tests for the annual parameter resolver."""

from decimal import Decimal
from uuid import uuid4

import pytest

from contract_engines.annual_parameters import resolve_parameter
from contract_kernel.domain.dtos import (
    AnnualParameterInfo,
    ParameterSource,
    ParameterType,
)
from contract_kernel.exceptions import ValidationError

DEFAULT = Decimal("1300000")


def _row(year, value, parameter_type=ParameterType.MINIMUM_WAGE, is_active=True):
    return AnnualParameterInfo(
        id=uuid4(),
        parameter_type=parameter_type,
        year=year,
        value=Decimal(value),
        is_active=is_active,
    )


class TestResolveParameter:

    def test_exact_year(self):
        rows = [_row(2023, "1160000"), _row(2024, "1300000")]

        result = resolve_parameter(rows, ParameterType.MINIMUM_WAGE, 2024, DEFAULT)

        assert result.value == Decimal("1300000")
        assert result.source == ParameterSource.EXACT
        assert not result.is_fallback

    def test_most_recent_prior_year(self):
        rows = [_row(2021, "1000000"), _row(2023, "1160000")]

        result = resolve_parameter(rows, ParameterType.MINIMUM_WAGE, 2025, DEFAULT)

        assert result.value == Decimal("1160000")
        assert result.source == ParameterSource.PRIOR_YEAR
        assert result.source_year == 2023
        assert result.requested_year == 2025
        assert result.is_fallback

    def test_later_years_never_used(self):
        rows = [_row(2026, "1500000")]

        result = resolve_parameter(rows, ParameterType.MINIMUM_WAGE, 2024, DEFAULT)

        assert result.source == ParameterSource.DEFAULT
        assert result.value == DEFAULT
        assert result.source_year is None

    def test_inactive_and_other_types_ignored(self):
        rows = [
            _row(2024, "999", is_active=False),
            _row(2024, "162000", parameter_type=ParameterType.TRANSPORT_SUBSIDY),
        ]

        result = resolve_parameter(rows, "minimum_wage", 2024, DEFAULT)

        assert result.source == ParameterSource.DEFAULT

    def test_bad_year_rejected(self):
        with pytest.raises(ValidationError):
            resolve_parameter([], ParameterType.MINIMUM_WAGE, "2024", DEFAULT)
