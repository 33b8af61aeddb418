"""
Module: contract_kernel.selectors.benefit_selector
Responsibility: Read benefit providers and assignment windows.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from contract_kernel.domain.dtos import (
    BenefitAssignmentInfo,
    BenefitKind,
    BenefitProviderInfo,
)
from contract_kernel.models.benefit import BenefitAssignment, BenefitProvider
from contract_kernel.selectors.base import BaseSelector


class BenefitSelector(BaseSelector[BenefitAssignment]):
    """Queries keyed by (kind, employer_id, location_id)."""

    def list_assignments(
        self,
        kind: BenefitKind,
        employer_id: UUID,
        location_id: UUID | None = None,
    ) -> tuple[BenefitAssignmentInfo, ...]:
        """Every window for the key, oldest start first."""
        stmt = select(BenefitAssignment).where(
            BenefitAssignment.kind == BenefitKind(kind).value,
            BenefitAssignment.employer_id == employer_id,
        )
        if location_id is None:
            stmt = stmt.where(BenefitAssignment.location_id.is_(None))
        else:
            stmt = stmt.where(BenefitAssignment.location_id == location_id)
        stmt = stmt.order_by(BenefitAssignment.start_date, BenefitAssignment.created_at)
        return tuple(a.to_dto() for a in self.session.execute(stmt).scalars())

    def provider_names(self, provider_ids: set[UUID]) -> dict[UUID, str]:
        if not provider_ids:
            return {}
        stmt = select(BenefitProvider).where(BenefitProvider.id.in_(provider_ids))
        return {p.id: p.name for p in self.session.execute(stmt).scalars()}

    def list_providers(self, kind: BenefitKind, active_only: bool = True) -> tuple[BenefitProviderInfo, ...]:
        stmt = select(BenefitProvider).where(BenefitProvider.kind == BenefitKind(kind).value)
        if active_only:
            stmt = stmt.where(BenefitProvider.is_active.is_(True))
        stmt = stmt.order_by(BenefitProvider.name)
        return tuple(p.to_dto() for p in self.session.execute(stmt).scalars())
