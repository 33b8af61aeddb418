"""
Module: contract_kernel.models.contract
Responsibility: ORM persistence for employment contracts and their allowance
    lines.
Architecture position: Kernel > Models.  May import from db/ and domain DTOs.

Invariants enforced (by the contract service, not the ORM):
    - end_date is NULL only for indefinite contracts.
    - (document_type, document_number) is unique among non-archived rows.
    - approval_status is 'draft' or 'approved'; approved rows are not edited
      field by field.
    - transport_subsidy is derived on every save and never user-supplied.

Failure modes:
    - IntegrityError on a dangling company_id.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from contract_kernel.db.base import TrackedBase, UUIDString
from contract_kernel.domain.dtos import (
    ONBOARDING_FIELDS,
    AllowanceCategory,
    AllowanceInfo,
    ApprovalStatus,
    ContractInfo,
    ContractType,
    OnboardingSnapshot,
)
from contract_kernel.domain.values import Money


class Contract(TrackedBase):
    """
    One employment contract.

    The onboarding columns come in groups of three per track: an initiating
    flag, a reference (bool or text) and a confirmation date.
    """

    __tablename__ = "contracts"

    __table_args__ = (
        Index("idx_contract_document", "document_type", "document_number"),
        Index("idx_contract_company", "company_id"),
        Index("idx_contract_end_date", "end_date"),
    )

    company_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=True,
    )

    # Employee
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    document_type: Mapped[str] = mapped_column(String(10), nullable=False)
    document_number: Mapped[str] = mapped_column(String(50), nullable=False)
    position: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Temporal
    contract_type: Mapped[str] = mapped_column(String(30), nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    location_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    # Approval
    approval_status: Mapped[str] = mapped_column(
        String(20),
        default=ApprovalStatus.DRAFT.value,
        nullable=False,
    )
    contract_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    # Archival
    archived_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    archived_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    archive_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Compensation
    base_salary: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="COP")
    transport_subsidy: Mapped[Decimal] = mapped_column(
        Numeric(38, 9), nullable=False, default=Decimal("0")
    )

    # Onboarding: medical exam
    exam_scheduled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    exam_done: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    exam_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Onboarding: countersigned contract
    contract_sent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    signed_contract_received: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    contract_confirmation_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Onboarding: insurer
    insurer_requested: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    insurer_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    insurer_confirmation_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Onboarding: health plan
    health_plan_requested: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    health_plan_filing_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    health_plan_confirmation_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Onboarding: compensation fund
    compensation_fund_requested: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    compensation_fund_filing_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    compensation_fund_confirmation_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Onboarding: severance fund
    severance_requested: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    severance_fund: Mapped[str | None] = mapped_column(String(200), nullable=True)
    severance_confirmation_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Onboarding: pension fund
    pension_requested: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    pension_fund: Mapped[str | None] = mapped_column(String(200), nullable=True)
    pension_confirmation_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    allowances: Mapped[list["ContractAllowance"]] = relationship(
        "ContractAllowance",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="ContractAllowance.line_number",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Contract {self.document_type} {self.document_number} "
            f"{self.contract_type} status={self.approval_status}>"
        )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def onboarding_snapshot(self) -> OnboardingSnapshot:
        values = {}
        for name in ONBOARDING_FIELDS:
            value = getattr(self, name)
            # unflushed boolean columns have not received their default yet
            if value is None and isinstance(getattr(OnboardingSnapshot, name, None), bool):
                value = False
            values[name] = value
        return OnboardingSnapshot(**values)

    def to_dto(self) -> ContractInfo:
        """Convert ORM row to a frozen ContractInfo."""
        currency = self.currency or "COP"
        return ContractInfo(
            id=self.id,
            company_id=self.company_id,
            first_name=self.first_name,
            last_name=self.last_name or "",
            document_type=self.document_type,
            document_number=self.document_number,
            position=self.position,
            contract_type=ContractType(self.contract_type),
            start_date=self.start_date,
            end_date=self.end_date,
            location_id=self.location_id,
            approval_status=ApprovalStatus(self.approval_status or ApprovalStatus.DRAFT.value),
            contract_number=self.contract_number,
            approved_at=self.approved_at,
            approved_by_id=self.approved_by_id,
            archived_at=self.archived_at,
            archived_by_id=self.archived_by_id,
            archive_reason=self.archive_reason,
            base_salary=Money.of(self.base_salary or Decimal("0"), currency),
            transport_subsidy=Money.of(self.transport_subsidy or Decimal("0"), currency),
            allowances=tuple(a.to_dto() for a in self.allowances),
            onboarding=self.onboarding_snapshot(),
        )


class ContractAllowance(TrackedBase):
    """One allowance line (salarial or non-salarial) attached to a contract."""

    __tablename__ = "contract_allowances"

    __table_args__ = (
        Index("idx_allowance_contract", "contract_id"),
    )

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id"),
        nullable=False,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(38, 9), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    concept: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    contract: Mapped["Contract"] = relationship(
        "Contract",
        back_populates="allowances",
    )

    def to_dto(self) -> AllowanceInfo:
        return AllowanceInfo(
            category=AllowanceCategory(self.category),
            amount=Money.of(self.amount, self.currency),
            concept=self.concept or "",
        )
