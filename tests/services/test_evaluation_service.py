"""
Tests for ContractEvaluationService.

The evaluation is read-only: every test checks what is derived for a
contract as of a date, never what is written.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from contract_config import get_active_policy
from contract_kernel.domain.dtos import (
    BenefitKind,
    ContractType,
    ParameterSource,
    ParameterType,
    ValidityState,
)
from contract_kernel.exceptions import ContractNotFoundError
from contract_services.evaluation import ContractEvaluationService


@pytest.fixture
def evaluation_service(session, clock):
    return ContractEvaluationService(session, clock)


class TestEvaluate:

    def test_fixed_term_about_to_expire(self, evaluation_service, make_contract):
        contract = make_contract()

        evaluation = evaluation_service.evaluate(contract.id)

        assert evaluation.as_of == date(2024, 11, 20)
        assert evaluation.validity.state == ValidityState.ABOUT_TO_EXPIRE
        assert evaluation.validity.days_until_expiry == 41
        assert evaluation.ledger_summary.total_periods == 1
        assert evaluation.ledger_summary.must_be_indefinite is False
        assert evaluation.is_editable

    def test_indefinite_has_no_ledger(self, evaluation_service, make_contract):
        contract = make_contract(contract_type=ContractType.INDEFINITE, end_date=None)

        evaluation = evaluation_service.evaluate(contract.id)

        assert evaluation.validity.state == ValidityState.ACTIVE
        assert evaluation.ledger_summary is None
        assert evaluation.legal_alerts == ()

    def test_explicit_as_of(self, evaluation_service, make_contract):
        contract = make_contract()

        evaluation = evaluation_service.evaluate(contract.id, as_of=date(2025, 1, 1))

        assert evaluation.validity.state == ValidityState.TERMINATED

    def test_benefits_resolved(self, evaluation_service, benefit_service, make_contract, make_provider, company, test_actor_id):
        insurer = make_provider(BenefitKind.INSURER, "Sura")
        benefit_service.change(BenefitKind.INSURER, company.id, None, insurer.id, date(2024, 1, 1), test_actor_id)
        contract = make_contract()

        evaluation = evaluation_service.evaluate(contract.id)

        assert evaluation.insurer.provider_id == insurer.id
        assert evaluation.compensation_fund is None

    def test_compensation_and_onboarding(self, evaluation_service, make_contract, parameters_2024):
        contract = make_contract(
            allowances=[{"category": "salarial", "amount": Decimal("100000")}],
            exam_scheduled=True,
            exam_done=True,
            exam_date=date(2024, 1, 5),
        )

        evaluation = evaluation_service.evaluate(contract.id)

        assert evaluation.compensation.total_remuneration.amount == Decimal("1600000")
        assert evaluation.compensation.transport_subsidy.amount == Decimal("162000")
        assert evaluation.onboarding_progress == 14
        assert evaluation.onboarding_step_progress == 17
        assert evaluation.onboarding_errors == ()

    def test_parameter_fallbacks_surfaced(self, evaluation_service, make_contract):
        contract = make_contract(start_date=date(2030, 1, 1), end_date=date(2030, 12, 31))

        evaluation = evaluation_service.evaluate(contract.id, as_of=date(2030, 3, 1))

        assert {p.parameter_type for p in evaluation.parameter_fallbacks} == {
            ParameterType.MINIMUM_WAGE,
            ParameterType.TRANSPORT_SUBSIDY,
        }
        assert all(p.source == ParameterSource.DEFAULT for p in evaluation.parameter_fallbacks)

    def test_exact_parameters_report_no_fallback(self, evaluation_service, make_contract, parameters_2024):
        evaluation = evaluation_service.evaluate(make_contract().id)

        assert evaluation.parameter_fallbacks == ()
        assert evaluation.compensation.minimum_wage_parameter.source_year == 2024

    def test_can_approve_follows_blockers(self, evaluation_service, contract_service, make_contract, test_actor_id):
        contract = make_contract()

        assert not evaluation_service.evaluate(contract.id).can_approve

        contract_service.update(contract.id, test_actor_id, contract_number="CT-77")
        assert evaluation_service.evaluate(contract.id).can_approve

    def test_config_checksum_recorded(self, evaluation_service, make_contract):
        contract = make_contract()

        evaluation = evaluation_service.evaluate(contract.id)

        assert evaluation.config_checksum == get_active_policy(date(2024, 11, 20)).checksum
        assert len(evaluation.config_checksum) == 64

    def test_unknown_contract(self, evaluation_service):
        with pytest.raises(ContractNotFoundError):
            evaluation_service.evaluate(uuid4())
