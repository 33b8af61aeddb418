"""
contract_engines.financial -- pay figures derived from salary and allowances.

Responsibility:
    Transport subsidy eligibility and total remuneration.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Parameter values come
    from the annual parameter resolver, never from here.

Invariants enforced:
    - Decimal only; amounts are ``Money`` and never floats.
    - The transport subsidy is not part of total remuneration.
    - One currency per computation.

Failure modes:
    - CurrencyMismatchError when an allowance is in a different currency.
    - ValidationError on negative salaries or allowances.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from contract_engines.tracer import traced_engine
from contract_kernel.domain.dtos import AllowanceCategory, AllowanceInfo, ResolvedParameter
from contract_kernel.domain.values import Money
from contract_kernel.exceptions import ValidationError

SUBSIDY_WAGE_MULTIPLE = Decimal("2")


@dataclass(frozen=True)
class CompensationFigures:
    """
    Pay figures for one contract.

    ``minimum_wage_parameter`` and ``subsidy_parameter`` are set when the
    inputs came from the annual parameter lookup, so callers can see a
    prior-year or default fallback.
    """

    base_salary: Money
    transport_subsidy: Money
    salarial_allowances: Money
    non_salarial_allowances: Money
    total_remuneration: Money
    minimum_wage_parameter: ResolvedParameter | None = None
    subsidy_parameter: ResolvedParameter | None = None

    @property
    def parameter_fallbacks(self) -> tuple[ResolvedParameter, ...]:
        return tuple(
            p for p in (self.minimum_wage_parameter, self.subsidy_parameter)
            if p is not None and p.is_fallback
        )


def _money(value: Money | ResolvedParameter | Decimal | int | str, currency: str) -> Money:
    if isinstance(value, Money):
        return value
    if isinstance(value, ResolvedParameter):
        return Money.of(value.value, currency)
    return Money.of(value, currency)


def _allowance_amount(allowance: AllowanceInfo | Money) -> Money:
    return allowance.amount if isinstance(allowance, AllowanceInfo) else allowance


@traced_engine("financial.transport_subsidy", "1.0",
               fingerprint_fields=("salary", "minimum_wage", "subsidy_amount"))
def transport_subsidy(salary: Money, minimum_wage: Money, subsidy_amount: Money) -> Money:
    """
    ``subsidy_amount`` when salary is at most twice the minimum wage,
    zero otherwise.
    """
    if salary.is_negative:
        raise ValidationError("base_salary", "must not be negative")
    threshold = minimum_wage * SUBSIDY_WAGE_MULTIPLE
    if salary <= threshold:
        return subsidy_amount
    return Money.zero(subsidy_amount.currency)


def total_remuneration(salary: Money, allowances: Iterable[AllowanceInfo | Money]) -> Money:
    """Salary plus every allowance amount; order does not matter."""
    if salary.is_negative:
        raise ValidationError("base_salary", "must not be negative")
    total = salary
    for index, allowance in enumerate(allowances):
        amount = _allowance_amount(allowance)
        if amount.is_negative:
            raise ValidationError(f"allowances[{index}].amount", "must not be negative")
        total = total + amount
    return total


def compensation_figures(
    salary: Money,
    allowances: Iterable[AllowanceInfo],
    minimum_wage: Money | ResolvedParameter | Decimal,
    subsidy_amount: Money | ResolvedParameter | Decimal,
) -> CompensationFigures:
    """
    Everything the contract form shows under compensation.

    Resolved parameters passed as inputs are kept on the result.
    """
    currency = salary.currency.code
    allowances = tuple(allowances)
    salarial = Money.sum(
        (a.amount for a in allowances if a.category == AllowanceCategory.SALARIAL), currency
    )
    non_salarial = Money.sum(
        (a.amount for a in allowances if a.category == AllowanceCategory.NON_SALARIAL), currency
    )
    return CompensationFigures(
        base_salary=salary,
        transport_subsidy=transport_subsidy(
            salary, _money(minimum_wage, currency), _money(subsidy_amount, currency)
        ),
        salarial_allowances=salarial,
        non_salarial_allowances=non_salarial,
        total_remuneration=total_remuneration(salary, allowances),
        minimum_wage_parameter=minimum_wage if isinstance(minimum_wage, ResolvedParameter) else None,
        subsidy_parameter=subsidy_amount if isinstance(subsidy_amount, ResolvedParameter) else None,
    )
