"""
Module: contract_kernel.models.annual_parameter
Responsibility: ORM persistence for year-scoped economic constants
    (minimum wage, transport subsidy).
Architecture position: Kernel > Models.  May import from db/ and domain DTOs.

Invariants enforced (by the annual parameter service):
    - One active row per (parameter_type, year).
"""

from decimal import Decimal

from sqlalchemy import Boolean, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from contract_kernel.db.base import TrackedBase
from contract_kernel.domain.dtos import AnnualParameterInfo, ParameterType


class AnnualParameter(TrackedBase):
    """One economic constant for one calendar year."""

    __tablename__ = "annual_parameters"

    __table_args__ = (
        Index("idx_annual_parameter_type_year", "parameter_type", "year"),
    )

    parameter_type: Mapped[str] = mapped_column(String(50), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    value: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<AnnualParameter {self.parameter_type} {self.year}={self.value}>"

    def to_dto(self) -> AnnualParameterInfo:
        return AnnualParameterInfo(
            id=self.id,
            parameter_type=ParameterType(self.parameter_type),
            year=self.year,
            value=self.value,
            is_active=bool(self.is_active),
        )
