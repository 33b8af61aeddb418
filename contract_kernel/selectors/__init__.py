"""Read-only query selectors."""

from contract_kernel.selectors.base import BaseSelector
from contract_kernel.selectors.benefit_selector import BenefitSelector
from contract_kernel.selectors.contract_selector import ContractSelector
from contract_kernel.selectors.parameter_selector import ParameterSelector
from contract_kernel.selectors.period_selector import PeriodSelector

__all__ = [
    "BaseSelector",
    "BenefitSelector",
    "ContractSelector",
    "ParameterSelector",
    "PeriodSelector",
]
