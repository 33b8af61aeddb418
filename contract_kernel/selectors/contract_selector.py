"""
Module: contract_kernel.selectors.contract_selector
Responsibility: Read paths for contracts and companies.
Architecture position: Kernel > Selectors.
"""

from collections.abc import Iterable
from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import select

from contract_kernel.domain.dtos import ApprovalStatus, CompanyInfo, ContractInfo
from contract_kernel.exceptions import CompanyNotFoundError, ContractNotFoundError
from contract_kernel.models.company import Company
from contract_kernel.models.contract import Contract
from contract_kernel.selectors.base import BaseSelector


class ContractSelector(BaseSelector[Contract]):
    """Contract queries returning ContractInfo snapshots."""

    def get(self, contract_id: UUID) -> ContractInfo:
        contract = self.session.get(Contract, contract_id)
        if contract is None:
            raise ContractNotFoundError(contract_id)
        return contract.to_dto()

    def find_active_by_document(
        self,
        document_type: str,
        document_number: str,
        exclude_id: UUID | None = None,
    ) -> ContractInfo | None:
        """Return the non-archived contract holding this identity document."""
        stmt = select(Contract).where(
            Contract.document_type == document_type,
            Contract.document_number == document_number,
            Contract.archived_at.is_(None),
        )
        if exclude_id is not None:
            stmt = stmt.where(Contract.id != exclude_id)
        contract = self.session.execute(stmt.limit(1)).scalars().first()
        return contract.to_dto() if contract is not None else None

    def list_active(self, company_id: UUID | None = None) -> tuple[ContractInfo, ...]:
        """Non-archived contracts, optionally for one company, by end date."""
        stmt = select(Contract).where(Contract.archived_at.is_(None))
        if company_id is not None:
            stmt = stmt.where(Contract.company_id == company_id)
        stmt = stmt.order_by(Contract.end_date.is_(None), Contract.end_date, Contract.last_name)
        return tuple(c.to_dto() for c in self.session.execute(stmt).scalars())

    def list_expiring(
        self,
        as_of: date,
        days_before: int | Iterable[int],
        company_id: UUID | None = None,
    ) -> tuple[ContractInfo, ...]:
        """
        Approved, non-archived contracts ending exactly ``days_before`` days
        after ``as_of`` (one or several offsets), soonest first.
        """
        offsets = {days_before} if isinstance(days_before, int) else set(days_before)
        if any(d < 0 for d in offsets):
            raise ValueError(f"days_before must not be negative: {sorted(offsets)}")
        targets = sorted(as_of + timedelta(days=d) for d in offsets)
        if not targets:
            return ()
        stmt = select(Contract).where(
            Contract.end_date.in_(targets),
            Contract.approval_status == ApprovalStatus.APPROVED.value,
            Contract.archived_at.is_(None),
        )
        if company_id is not None:
            stmt = stmt.where(Contract.company_id == company_id)
        stmt = stmt.order_by(Contract.end_date, Contract.last_name)
        return tuple(c.to_dto() for c in self.session.execute(stmt).scalars())

    def list_archived(self) -> tuple[ContractInfo, ...]:
        stmt = (
            select(Contract)
            .where(Contract.archived_at.is_not(None))
            .order_by(Contract.archived_at.desc())
        )
        return tuple(c.to_dto() for c in self.session.execute(stmt).scalars())

    def get_company(self, company_id: UUID) -> CompanyInfo:
        company = self.session.get(Company, company_id)
        if company is None:
            raise CompanyNotFoundError(company_id)
        return company.to_dto()
