"""
ReferenceDataService -- companies, benefit providers and annual parameters.

Responsibility:
    Writes the catalogue rows that contracts and benefit assignments point
    at.  No lifecycle logic lives here.

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Failure modes:
    - ValidationError: blank name or tax id, negative parameter value.
    - DuplicateParameterError: an active row already exists for the
      (parameter_type, year) pair.
    - DuplicateError: another company has the same tax id.
"""

from decimal import Decimal, InvalidOperation
from uuid import UUID

from sqlalchemy import select

from contract_kernel.domain.dtos import (
    AnnualParameterInfo,
    BenefitKind,
    BenefitProviderInfo,
    CompanyInfo,
    ParameterType,
)
from contract_kernel.exceptions import (
    DuplicateError,
    DuplicateParameterError,
    NotFoundError,
    ValidationError,
)
from contract_kernel.logging_config import get_logger
from contract_kernel.models.annual_parameter import AnnualParameter
from contract_kernel.models.benefit import BenefitProvider
from contract_kernel.models.company import Company
from contract_kernel.services.base import BaseService

logger = get_logger("services.reference_data")


class ReferenceDataService(BaseService[Company]):
    """Create and retire catalogue rows."""

    def create_company(self, name: str, tax_id: str, actor_id: UUID) -> CompanyInfo:
        name = (name or "").strip()
        tax_id = (tax_id or "").strip()
        if not name:
            raise ValidationError("name", "is required")
        if not tax_id:
            raise ValidationError("tax_id", "is required")

        existing = self.session.execute(
            select(Company.id).where(Company.tax_id == tax_id)
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateError(f"Company with tax id {tax_id} already exists")

        company = Company(name=name, tax_id=tax_id, is_active=True, created_by_id=actor_id)
        self.session.add(company)
        self.session.flush()

        logger.info("company_created", extra={"company_id": str(company.id), "tax_id": tax_id})
        return company.to_dto()

    def create_provider(self, kind: BenefitKind, name: str, actor_id: UUID) -> BenefitProviderInfo:
        name = (name or "").strip()
        if not name:
            raise ValidationError("name", "is required")

        provider = BenefitProvider(
            kind=BenefitKind(kind).value,
            name=name,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(provider)
        self.session.flush()

        logger.info(
            "benefit_provider_created",
            extra={"provider_id": str(provider.id), "kind": provider.kind},
        )
        return provider.to_dto()

    def record_parameter(
        self,
        parameter_type: ParameterType,
        year: int,
        value: Decimal | str | int,
        actor_id: UUID,
    ) -> AnnualParameterInfo:
        """Store the value of one parameter for one year."""
        parameter_type = ParameterType(parameter_type)
        if not isinstance(year, int) or year < 1900:
            raise ValidationError("year", f"invalid year {year!r}")
        try:
            amount = value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation as exc:
            raise ValidationError("value", f"not a number: {value!r}") from exc
        if amount < 0:
            raise ValidationError("value", "must not be negative")

        existing = self.session.execute(
            select(AnnualParameter.id).where(
                AnnualParameter.parameter_type == parameter_type.value,
                AnnualParameter.year == year,
                AnnualParameter.is_active.is_(True),
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateParameterError(parameter_type.value, year)

        row = AnnualParameter(
            parameter_type=parameter_type.value,
            year=year,
            value=amount,
            is_active=True,
            created_by_id=actor_id,
        )
        self.session.add(row)
        self.session.flush()

        logger.info(
            "annual_parameter_recorded",
            extra={"parameter_type": parameter_type.value, "year": year, "value": str(amount)},
        )
        return row.to_dto()

    def deactivate_parameter(self, parameter_id: UUID, actor_id: UUID) -> AnnualParameterInfo:
        row = self.session.get(AnnualParameter, parameter_id)
        if row is None:
            raise NotFoundError("AnnualParameter", parameter_id)
        row.is_active = False
        row.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "annual_parameter_deactivated",
            extra={"parameter_type": row.parameter_type, "year": row.year},
        )
        return row.to_dto()
