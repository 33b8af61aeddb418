"""
Module: contract_kernel.models.benefit
Responsibility: ORM persistence for benefit providers (insurers, compensation
    funds) and the time-bounded assignments of employers to them.
Architecture position: Kernel > Models.  May import from db/ and domain DTOs.

Invariants enforced (by the benefit assignment service):
    - At most one 'active' assignment per (kind, employer_id, location_id).
    - location_id is required for compensation funds and NULL for insurers.
    - Closing sets both state='closed' and a concrete end_date.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Boolean, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from contract_kernel.db.base import TrackedBase, UUIDString
from contract_kernel.domain.dtos import (
    AssignmentState,
    BenefitAssignmentInfo,
    BenefitKind,
    BenefitProviderInfo,
)


class BenefitProvider(TrackedBase):
    """Catalogue entry for an insurer or a compensation fund."""

    __tablename__ = "benefit_providers"

    __table_args__ = (
        Index("idx_benefit_provider_kind", "kind"),
    )

    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<BenefitProvider {self.kind}: {self.name}>"

    def to_dto(self) -> BenefitProviderInfo:
        return BenefitProviderInfo(
            id=self.id,
            kind=BenefitKind(self.kind),
            name=self.name,
            is_active=bool(self.is_active),
        )


class BenefitAssignment(TrackedBase):
    """Validity window during which an employer is registered with a provider."""

    __tablename__ = "benefit_assignments"

    __table_args__ = (
        Index("idx_benefit_assignment_key", "kind", "employer_id", "location_id"),
        Index("idx_benefit_assignment_state", "state"),
    )

    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    employer_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=False,
    )
    location_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    provider_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("benefit_providers.id"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    state: Mapped[str] = mapped_column(
        String(20),
        default=AssignmentState.ACTIVE.value,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<BenefitAssignment {self.kind} employer={self.employer_id} "
            f"{self.start_date}..{self.end_date} {self.state}>"
        )

    def close(self, end_date: date) -> None:
        """Close the window on ``end_date`` (inclusive)."""
        self.end_date = end_date
        self.state = AssignmentState.CLOSED.value

    def to_dto(self) -> BenefitAssignmentInfo:
        return BenefitAssignmentInfo(
            id=self.id,
            kind=BenefitKind(self.kind),
            employer_id=self.employer_id,
            location_id=self.location_id,
            provider_id=self.provider_id,
            start_date=self.start_date,
            end_date=self.end_date,
            state=AssignmentState(self.state or AssignmentState.ACTIVE.value),
        )
