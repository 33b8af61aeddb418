"""
Tests for BenefitAssignmentService.

Covers:
- Resolving the active provider for an employer on a date
- Provider change: close-then-open, overlap rejection, provider checks
- Closing without successor
- Partial failure surfaced when the open step fails after the close
"""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from contract_kernel.domain.dtos import AssignmentState, BenefitKind, HistoryStatus
from contract_kernel.exceptions import (
    AmbiguousAssignmentError,
    AssignmentNotFoundError,
    NotFoundError,
    OverlapError,
    PartialFailureError,
    ValidationError,
)
from contract_kernel.models.benefit import BenefitAssignment

INSURER = BenefitKind.INSURER
FUND = BenefitKind.COMPENSATION_FUND


@pytest.fixture
def insurer_a(make_provider):
    return make_provider(INSURER, "Sura")


@pytest.fixture
def insurer_b(make_provider):
    return make_provider(INSURER, "Positiva")


class TestResolveActive:

    def test_nothing_registered(self, benefit_service, company):
        assert benefit_service.resolve_active(INSURER, company.id, None, date(2024, 1, 1)) is None

    def test_open_window(self, benefit_service, company, insurer_a, test_actor_id):
        benefit_service.change(INSURER, company.id, None, insurer_a.id, date(2024, 1, 1), test_actor_id)

        active = benefit_service.resolve_active(INSURER, company.id, None, date(2025, 6, 1))

        assert active.provider_id == insurer_a.id
        assert active.end_date is None

    def test_compensation_fund_keyed_by_location(self, benefit_service, company, make_provider, test_actor_id):
        fund = make_provider(FUND, "Comfama")
        north, south = uuid4(), uuid4()
        benefit_service.change(FUND, company.id, north, fund.id, date(2024, 1, 1), test_actor_id)

        assert benefit_service.resolve_active(FUND, company.id, north, date(2024, 2, 1)) is not None
        assert benefit_service.resolve_active(FUND, company.id, south, date(2024, 2, 1)) is None

    def test_corrupt_data_is_ambiguous(self, session, benefit_service, company, insurer_a, insurer_b, test_actor_id):
        for provider, start in ((insurer_a, date(2024, 1, 1)), (insurer_b, date(2024, 3, 1))):
            session.add(BenefitAssignment(
                kind=INSURER.value,
                employer_id=company.id,
                provider_id=provider.id,
                start_date=start,
                state=AssignmentState.ACTIVE.value,
                created_by_id=test_actor_id,
            ))
        session.flush()

        with pytest.raises(AmbiguousAssignmentError):
            benefit_service.resolve_active(INSURER, company.id, None, date(2024, 4, 1))


class TestChange:

    def test_change_closes_previous_day_before(
        self, benefit_service, company, insurer_a, insurer_b, test_actor_id, captured_logs
    ):
        first = benefit_service.change(INSURER, company.id, None, insurer_a.id, date(2024, 1, 1), test_actor_id)

        second = benefit_service.change(INSURER, company.id, None, insurer_b.id, date(2024, 7, 1), test_actor_id)

        history = benefit_service.history(INSURER, company.id)
        closed = next(h.assignment for h in history if h.assignment.id == first.id)
        assert closed.start_date == date(2024, 1, 1)
        assert closed.end_date == date(2024, 6, 30)
        assert closed.state == AssignmentState.CLOSED
        assert second.start_date == date(2024, 7, 1)
        assert benefit_service.resolve_active(INSURER, company.id, None, date(2024, 6, 30)) is None
        assert benefit_service.resolve_active(INSURER, company.id, None, date(2024, 7, 1)).id == second.id
        messages = [r["message"] for r in captured_logs()]
        assert "assignment_closed" in messages
        assert "assignment_changed" in messages

    def test_same_day_change_rejected(self, benefit_service, company, insurer_a, insurer_b, test_actor_id):
        benefit_service.change(INSURER, company.id, None, insurer_a.id, date(2024, 1, 1), test_actor_id)

        with pytest.raises(OverlapError):
            benefit_service.change(INSURER, company.id, None, insurer_b.id, date(2024, 1, 1), test_actor_id)

        active = benefit_service.resolve_active(INSURER, company.id, None, date(2024, 1, 1))
        assert active.provider_id == insurer_a.id
        assert active.end_date is None

    def test_unknown_provider(self, benefit_service, company, test_actor_id):
        with pytest.raises(NotFoundError):
            benefit_service.change(INSURER, company.id, None, uuid4(), date(2024, 1, 1), test_actor_id)

    def test_provider_of_other_kind(self, benefit_service, company, make_provider, test_actor_id):
        fund = make_provider(FUND, "Comfama")

        with pytest.raises(ValidationError) as exc_info:
            benefit_service.change(INSURER, company.id, None, fund.id, date(2024, 1, 1), test_actor_id)

        assert exc_info.value.field == "provider_id"

    def test_fund_without_location(self, benefit_service, company, make_provider, test_actor_id):
        fund = make_provider(FUND, "Comfama")

        with pytest.raises(ValidationError):
            benefit_service.change(FUND, company.id, None, fund.id, date(2024, 1, 1), test_actor_id)

    def test_open_failure_after_close_is_partial(
        self, session, benefit_service, company, insurer_a, insurer_b, test_actor_id, monkeypatch
    ):
        first = benefit_service.change(INSURER, company.id, None, insurer_a.id, date(2024, 1, 1), test_actor_id)
        real_flush = session.flush

        def failing_flush(*args, **kwargs):
            if any(isinstance(obj, BenefitAssignment) for obj in session.new):
                raise OperationalError("INSERT INTO benefit_assignments", {}, Exception("disk full"))
            return real_flush(*args, **kwargs)

        monkeypatch.setattr(session, "flush", failing_flush)

        with pytest.raises(PartialFailureError) as exc_info:
            benefit_service.change(INSURER, company.id, None, insurer_b.id, date(2024, 7, 1), test_actor_id)

        assert exc_info.value.completed_step == "close"
        assert exc_info.value.failed_step == "open"
        assert exc_info.value.record_id == first.id


class TestClose:

    def test_close_without_successor(self, benefit_service, company, insurer_a, test_actor_id):
        benefit_service.change(INSURER, company.id, None, insurer_a.id, date(2024, 1, 1), test_actor_id)

        closed = benefit_service.close(INSURER, company.id, None, date(2024, 9, 30), test_actor_id)

        assert closed.state == AssignmentState.CLOSED
        assert benefit_service.resolve_active(INSURER, company.id, None, date(2024, 10, 1)) is None

    def test_close_with_nothing_active(self, benefit_service, company, test_actor_id):
        with pytest.raises(AssignmentNotFoundError):
            benefit_service.close(INSURER, company.id, None, date(2024, 9, 30), test_actor_id)

    def test_close_before_start(self, benefit_service, company, insurer_a, test_actor_id):
        benefit_service.change(INSURER, company.id, None, insurer_a.id, date(2024, 1, 1), test_actor_id)

        with pytest.raises(ValidationError):
            benefit_service.close(INSURER, company.id, None, date(2023, 12, 31), test_actor_id)


class TestHistory:

    def test_newest_first_with_names(self, benefit_service, company, insurer_a, insurer_b, test_actor_id):
        benefit_service.change(INSURER, company.id, None, insurer_a.id, date(2023, 1, 1), test_actor_id)
        benefit_service.change(INSURER, company.id, None, insurer_b.id, date(2024, 1, 1), test_actor_id)

        history = benefit_service.history(INSURER, company.id)

        assert [h.provider_name for h in history] == ["Positiva", "Sura"]
        assert [h.status for h in history] == [HistoryStatus.ACTIVE, HistoryStatus.FINISHED]
