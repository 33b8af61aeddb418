"""
Module: contract_kernel.models.company
Responsibility: ORM persistence for client companies (employers).
Architecture position: Kernel > Models.  May import from db/ and domain DTOs.

Invariants enforced:
    - tax_id is unique (uq_company_tax_id).
"""

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from contract_kernel.db.base import TrackedBase
from contract_kernel.domain.dtos import CompanyInfo


class Company(TrackedBase):
    """Client company that employs contracted workers."""

    __tablename__ = "companies"

    __table_args__ = (
        UniqueConstraint("tax_id", name="uq_company_tax_id"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    tax_id: Mapped[str] = mapped_column(String(50), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Company {self.tax_id}: {self.name}>"

    def to_dto(self) -> CompanyInfo:
        return CompanyInfo(
            id=self.id,
            name=self.name,
            tax_id=self.tax_id,
            is_active=self.is_active,
        )
