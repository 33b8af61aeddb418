"""ORM models for the contract kernel."""

from contract_kernel.models.annual_parameter import AnnualParameter
from contract_kernel.models.benefit import BenefitAssignment, BenefitProvider
from contract_kernel.models.company import Company
from contract_kernel.models.contract import Contract, ContractAllowance
from contract_kernel.models.contract_period import ContractPeriod

__all__ = [
    "AnnualParameter",
    "BenefitAssignment",
    "BenefitProvider",
    "Company",
    "Contract",
    "ContractAllowance",
    "ContractPeriod",
    "import_all_models",
]


def import_all_models() -> tuple[type, ...]:
    """Return every model class; importing them registers their tables."""
    return (
        Company,
        Contract,
        ContractAllowance,
        ContractPeriod,
        BenefitProvider,
        BenefitAssignment,
        AnnualParameter,
    )
