"""
Module: contract_kernel.selectors.period_selector
Responsibility: Read the stored period ledger of a contract.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from contract_kernel.domain.dtos import PeriodInfo
from contract_kernel.models.contract_period import ContractPeriod
from contract_kernel.selectors.base import BaseSelector


class PeriodSelector(BaseSelector[ContractPeriod]):

    def list_for_contract(self, contract_id: UUID) -> tuple[PeriodInfo, ...]:
        """All periods of a contract ordered by sequence number."""
        stmt = (
            select(ContractPeriod)
            .where(ContractPeriod.contract_id == contract_id)
            .order_by(ContractPeriod.sequence_number)
        )
        return tuple(p.to_dto() for p in self.session.execute(stmt).scalars())
