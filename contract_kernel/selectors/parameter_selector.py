"""
Module: contract_kernel.selectors.parameter_selector
Responsibility: Read active annual parameter rows.
Architecture position: Kernel > Selectors.
"""

from sqlalchemy import select

from contract_kernel.domain.dtos import AnnualParameterInfo, ParameterType
from contract_kernel.models.annual_parameter import AnnualParameter
from contract_kernel.selectors.base import BaseSelector


class ParameterSelector(BaseSelector[AnnualParameter]):

    def list_active(
        self,
        parameter_type: ParameterType,
        up_to_year: int | None = None,
    ) -> tuple[AnnualParameterInfo, ...]:
        """Active rows of one type, most recent year first."""
        stmt = select(AnnualParameter).where(
            AnnualParameter.parameter_type == ParameterType(parameter_type).value,
            AnnualParameter.is_active.is_(True),
        )
        if up_to_year is not None:
            stmt = stmt.where(AnnualParameter.year <= up_to_year)
        stmt = stmt.order_by(AnnualParameter.year.desc())
        return tuple(p.to_dto() for p in self.session.execute(stmt).scalars())
