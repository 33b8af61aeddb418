"""
Module: contract_kernel.models.contract_period
Responsibility: ORM persistence for the fixed-term period ledger of a contract.
Architecture position: Kernel > Models.  May import from db/ and domain DTOs.

Invariants enforced:
    - (contract_id, sequence_number) is unique (uq_contract_period_sequence).
    - Continuity, the initial-kind rule and the single current row are
      enforced by the period ledger engine before anything is written.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from contract_kernel.db.base import TrackedBase, UUIDString
from contract_kernel.domain.dtos import PeriodInfo, PeriodKind


class ContractPeriod(TrackedBase):
    """One bounded interval of a fixed-term contract's life."""

    __tablename__ = "contract_periods"

    __table_args__ = (
        UniqueConstraint("contract_id", "sequence_number", name="uq_contract_period_sequence"),
        Index("idx_contract_period_contract", "contract_id"),
    )

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id"),
        nullable=False,
    )
    sequence_number: Mapped[int] = mapped_column(Integer, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    is_current: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<ContractPeriod #{self.sequence_number} "
            f"{self.start_date}..{self.end_date} {self.kind}>"
        )

    def to_dto(self) -> PeriodInfo:
        return PeriodInfo(
            id=self.id,
            contract_id=self.contract_id,
            sequence_number=self.sequence_number,
            start_date=self.start_date,
            end_date=self.end_date,
            kind=PeriodKind(self.kind),
            is_current=bool(self.is_current),
        )
