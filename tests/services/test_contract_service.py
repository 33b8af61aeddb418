"""
Tests for ContractService.

Covers:
- Draft creation and editing with partial data
- Derived transport subsidy on every save
- Current period kept in step with the contract dates
- Start date derived from the period history
- Approval gating, reopen, annulment and unarchive
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from contract_kernel.domain.dtos import (
    AllowanceCategory,
    ApprovalStatus,
    ContractType,
    ParameterSource,
    PeriodKind,
)
from contract_kernel.exceptions import (
    ApprovalBlockedError,
    CompanyNotFoundError,
    ContractArchivedError,
    ContractNotFoundError,
    DuplicateContractError,
    InvalidTransitionError,
    StaleStateError,
    ValidationError,
)


class TestCreateDraft:

    def test_minimal_draft(self, contract_service, test_actor_id):
        contract = contract_service.create_draft(
            test_actor_id,
            first_name="Luis",
            document_type="CC",
            document_number="77889900",
            contract_type=ContractType.INDEFINITE,
        )

        assert contract.approval_status == ApprovalStatus.DRAFT
        assert contract.start_date is None
        assert contract.base_salary.is_zero

    def test_identity_required(self, contract_service, test_actor_id):
        with pytest.raises(ValidationError) as exc_info:
            contract_service.create_draft(
                test_actor_id,
                first_name="  ",
                document_type="CC",
                document_number="1",
                contract_type=ContractType.INDEFINITE,
            )

        assert exc_info.value.field == "first_name"

    def test_transport_subsidy_is_derived(self, make_contract):
        contract = make_contract(base_salary=Decimal("1500000"))

        assert contract.transport_subsidy.amount == Decimal("162000")

    def test_transport_subsidy_cannot_be_set(self, make_contract):
        with pytest.raises(ValidationError) as exc_info:
            make_contract(transport_subsidy=Decimal("1"))

        assert exc_info.value.field == "transport_subsidy"

    def test_unknown_field_rejected(self, make_contract):
        with pytest.raises(ValidationError):
            make_contract(nickname="Anita")

    def test_float_salary_rejected(self, make_contract):
        with pytest.raises(ValidationError):
            make_contract(base_salary=1500000.0)

    def test_indefinite_with_end_date_rejected(self, make_contract):
        with pytest.raises(ValidationError) as exc_info:
            make_contract(contract_type=ContractType.INDEFINITE)

        assert exc_info.value.field == "end_date"

    def test_end_must_follow_start(self, make_contract):
        with pytest.raises(ValidationError):
            make_contract(start_date=date(2024, 5, 1), end_date=date(2024, 5, 1))

    def test_unknown_company(self, make_contract):
        with pytest.raises(CompanyNotFoundError):
            make_contract(company_id=uuid4())

    def test_duplicate_document(self, make_contract):
        make_contract(document_number="1020304050")

        with pytest.raises(DuplicateContractError):
            make_contract(document_number="1020304050")

    def test_confirmation_before_initiation_rejected(self, make_contract):
        with pytest.raises(ValidationError) as exc_info:
            make_contract(insurer_name="Sura")

        assert exc_info.value.field == "insurer_name"

    def test_allowances_stored(self, make_contract):
        contract = make_contract(allowances=[
            {"category": "salarial", "amount": Decimal("200000"), "concept": "bonus"},
            {"category": AllowanceCategory.NON_SALARIAL, "amount": "50000", "concept": "meals"},
        ])

        assert [a.category for a in contract.allowances] == [
            AllowanceCategory.SALARIAL,
            AllowanceCategory.NON_SALARIAL,
        ]
        assert contract.allowances[1].amount.amount == Decimal("50000")


class TestUpdate:

    def test_salary_change_recomputes_subsidy(self, contract_service, make_contract, test_actor_id):
        contract = make_contract()

        updated = contract_service.update(contract.id, test_actor_id, base_salary=Decimal("3000000"))

        assert updated.transport_subsidy.is_zero

    def test_subsidy_uses_start_year_parameters(
        self, contract_service, make_contract, reference_data, test_actor_id
    ):
        reference_data.record_parameter("minimum_wage", 2023, Decimal("1160000"), test_actor_id)
        reference_data.record_parameter("transport_subsidy", 2023, Decimal("140606"), test_actor_id)
        contract = make_contract(start_date=date(2023, 3, 1), end_date=date(2023, 12, 31))

        assert contract.transport_subsidy.amount == Decimal("140606")

    def test_dates_move_current_period(self, contract_service, period_service, make_contract, test_actor_id):
        contract = make_contract()

        contract_service.update(contract.id, test_actor_id, end_date=date(2025, 3, 31))

        ledger = period_service.load(contract.id)
        assert ledger.current.start_date == date(2024, 1, 1)
        assert ledger.current.end_date == date(2025, 3, 31)
        assert ledger.current.kind == PeriodKind.INITIAL

    def test_start_date_follows_period_history(
        self, contract_service, period_service, make_contract, test_actor_id
    ):
        contract = make_contract()
        period_service.append_historical(contract.id, date(2022, 1, 1), date(2022, 12, 31), test_actor_id)

        updated = contract_service.update(contract.id, test_actor_id, end_date=date(2025, 6, 30))

        assert updated.start_date == date(2023, 1, 1)
        assert period_service.load(contract.id).current.start_date == date(2023, 1, 1)

    def test_start_date_conflicting_with_history_rejected(
        self, contract_service, period_service, make_contract, test_actor_id
    ):
        contract = make_contract()
        period_service.append_historical(contract.id, date(2022, 1, 1), date(2022, 12, 31), test_actor_id)

        with pytest.raises(ValidationError) as exc_info:
            contract_service.update(contract.id, test_actor_id, start_date=date(2023, 6, 1))

        assert exc_info.value.field == "start_date"

    def test_start_date_matching_history_accepted(
        self, contract_service, period_service, make_contract, test_actor_id
    ):
        contract = make_contract()
        period_service.append_historical(contract.id, date(2022, 1, 1), date(2022, 12, 31), test_actor_id)

        updated = contract_service.update(contract.id, test_actor_id, start_date=date(2023, 1, 1))

        assert updated.start_date == date(2023, 1, 1)

    def test_end_before_derived_start_rejected_before_write(
        self, contract_service, period_service, make_contract, test_actor_id
    ):
        contract = make_contract()
        period_service.append_historical(contract.id, date(2022, 1, 1), date(2022, 12, 31), test_actor_id)

        with pytest.raises(ValidationError) as exc_info:
            contract_service.update(contract.id, test_actor_id, end_date=date(2022, 12, 31))

        assert exc_info.value.field == "end_date"

    def test_leaving_fixed_term_clears_periods(
        self, contract_service, period_service, make_contract, test_actor_id
    ):
        contract = make_contract()

        contract_service.update(
            contract.id, test_actor_id, contract_type=ContractType.INDEFINITE, end_date=None
        )

        assert period_service.load(contract.id).periods == ()

    def test_missing_contract(self, contract_service, test_actor_id):
        with pytest.raises(ContractNotFoundError):
            contract_service.update(uuid4(), test_actor_id, first_name="X")

    def test_clear_onboarding_track(self, contract_service, make_contract, test_actor_id):
        contract = make_contract(
            insurer_requested=True,
            insurer_name="Sura",
            insurer_confirmation_date=date(2024, 1, 10),
        )

        cleared = contract_service.clear_onboarding_track(contract.id, "insurer", test_actor_id)

        assert cleared.onboarding.insurer_requested is False
        assert cleared.onboarding.insurer_name is None
        assert cleared.onboarding.insurer_confirmation_date is None


class TestApproval:

    def test_approve_complete_contract(self, contract_service, make_contract, test_actor_id, captured_logs):
        contract = make_contract()

        approved = contract_service.approve(contract.id, test_actor_id, contract_number="CT-2024-01")

        assert approved.approval_status == ApprovalStatus.APPROVED
        assert approved.contract_number == "CT-2024-01"
        assert approved.approved_by_id == test_actor_id
        assert any(r["message"] == "contract_approved" for r in captured_logs())

    def test_blocked_approval_writes_nothing(self, contract_service, make_contract, test_actor_id):
        contract = make_contract(health_plan_requested=True, health_plan_filing_number="R-1")

        with pytest.raises(ApprovalBlockedError) as exc_info:
            contract_service.approve(contract.id, test_actor_id)

        fields = {e.field for e in exc_info.value.field_errors}
        assert fields == {"contract_number", "health_plan_confirmation_date"}
        reloaded = contract_service.update(contract.id, test_actor_id, contract_number="CT-9")
        assert reloaded.approval_status == ApprovalStatus.DRAFT

    def test_approved_contract_is_locked(self, contract_service, make_contract, test_actor_id):
        contract = make_contract(contract_number="CT-1")
        contract_service.approve(contract.id, test_actor_id)

        with pytest.raises(StaleStateError):
            contract_service.update(contract.id, test_actor_id, position="Driver")

    def test_reopen_is_administrative(self, contract_service, make_contract, test_actor_id):
        contract = make_contract(contract_number="CT-1")
        contract_service.approve(contract.id, test_actor_id)

        with pytest.raises(InvalidTransitionError):
            contract_service.reopen(contract.id, test_actor_id)

        reopened = contract_service.reopen(contract.id, test_actor_id, administrative=True)
        assert reopened.approval_status == ApprovalStatus.DRAFT
        assert reopened.approved_at is None


class TestArchival:

    def test_annul_and_lock(self, contract_service, make_contract, test_actor_id, clock):
        contract = make_contract()

        archived = contract_service.annul(contract.id, "  wrong employee ", test_actor_id)

        assert archived.archive_reason == "wrong employee"
        assert archived.archived_at == clock.now_utc()
        with pytest.raises(ContractArchivedError):
            contract_service.update(contract.id, test_actor_id, position="Driver")

    def test_annul_requires_reason(self, contract_service, make_contract, test_actor_id):
        contract = make_contract()

        with pytest.raises(ValidationError):
            contract_service.annul(contract.id, " ", test_actor_id)

    def test_archived_document_can_be_reused(self, contract_service, make_contract, test_actor_id):
        first = make_contract(document_number="5551234")
        contract_service.annul(first.id, "duplicate entry", test_actor_id)

        second = make_contract(document_number="5551234")

        assert second.id != first.id

    def test_unarchive_rechecks_document(self, contract_service, make_contract, test_actor_id):
        first = make_contract(document_number="5551234")
        contract_service.annul(first.id, "duplicate entry", test_actor_id)
        make_contract(document_number="5551234")

        with pytest.raises(DuplicateContractError):
            contract_service.unarchive(first.id, test_actor_id, administrative=True)

    def test_unarchive(self, contract_service, make_contract, test_actor_id):
        contract = make_contract()
        contract_service.annul(contract.id, "mistake", test_actor_id)

        restored = contract_service.unarchive(contract.id, test_actor_id, administrative=True)

        assert not restored.is_archived
        assert restored.archive_reason is None


class TestCompensation:

    def test_figures(self, contract_service, make_contract, parameters_2024):
        contract = make_contract(allowances=[
            {"category": "salarial", "amount": Decimal("100000")},
            {"category": "non_salarial", "amount": Decimal("40000")},
        ])

        figures = contract_service.compensation(contract.id)

        assert figures.transport_subsidy.amount == Decimal("162000")
        assert figures.total_remuneration.amount == Decimal("1640000")

    def test_parameter_fallback_reported(self, contract_service, make_contract):
        contract = make_contract(start_date=date(2030, 1, 1), end_date=date(2030, 12, 31))

        figures = contract_service.compensation(contract.id)

        assert figures.minimum_wage_parameter.source == ParameterSource.DEFAULT
        assert figures.subsidy_parameter.source == ParameterSource.DEFAULT
        assert figures.subsidy_parameter.requested_year == 2030
        assert len(figures.parameter_fallbacks) == 2

    def test_exact_parameters_are_not_fallbacks(self, contract_service, make_contract, parameters_2024):
        figures = contract_service.compensation(make_contract().id)

        assert figures.subsidy_parameter.source == ParameterSource.EXACT
        assert figures.parameter_fallbacks == ()
