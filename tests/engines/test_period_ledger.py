"""
Tests for the fixed-term period ledger.

Covers:
- Appending historical periods (continuity, bounds, future, kinds)
- Replacing the current period and re-anchoring it
- Removing first/last historical periods
- Tenure summary and the must-be-indefinite flag
- Renewal assessment and rollover
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from contract_engines.period_ledger import (
    PeriodLedger,
    append_historical_period,
    assess_renewal,
    legal_alerts,
    remove_historical_period,
    renew,
    replace_current_period,
    rewrite_history,
    summarize,
)
from contract_kernel.domain.dtos import PeriodKind, PeriodSpan
from contract_kernel.domain.policy import TenurePolicy
from contract_kernel.exceptions import InvalidPeriodError, ValidationError

AS_OF = date(2024, 11, 20)


def _history(*bounds):
    return rewrite_history([(start, end, None) for start, end in bounds], AS_OF)


class TestAppendHistorical:
    """Invariants checked when a finished period is added."""

    def test_first_period_defaults_to_initial(self):
        ledger = append_historical_period(PeriodLedger(), date(2020, 1, 1), date(2020, 12, 31), AS_OF)

        assert ledger.historical[0].sequence_number == 1
        assert ledger.historical[0].kind == PeriodKind.INITIAL

    def test_later_periods_default_to_automatic_renewal(self):
        ledger = _history((date(2020, 1, 1), date(2020, 12, 31)), (date(2021, 1, 1), date(2021, 6, 30)))

        assert ledger.historical[1].kind == PeriodKind.AUTOMATIC_RENEWAL
        assert ledger.historical[1].sequence_number == 2

    def test_gap_rejected(self):
        ledger = _history((date(2020, 1, 1), date(2020, 12, 31)))

        with pytest.raises(InvalidPeriodError) as exc_info:
            append_historical_period(ledger, date(2021, 1, 2), date(2021, 6, 30), AS_OF)

        assert exc_info.value.invariant == "gap_or_overlap"
        assert exc_info.value.sequence_number == 2

    def test_overlap_rejected(self):
        ledger = _history((date(2020, 1, 1), date(2020, 12, 31)))

        with pytest.raises(InvalidPeriodError) as exc_info:
            append_historical_period(ledger, date(2020, 12, 31), date(2021, 6, 30), AS_OF)

        assert exc_info.value.invariant == "gap_or_overlap"

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidPeriodError) as exc_info:
            append_historical_period(PeriodLedger(), date(2020, 5, 1), date(2020, 5, 1), AS_OF)

        assert exc_info.value.invariant == "end_before_start"

    def test_future_period_rejected(self):
        with pytest.raises(InvalidPeriodError) as exc_info:
            append_historical_period(PeriodLedger(), date(2024, 1, 1), date(2024, 12, 31), AS_OF)

        assert exc_info.value.invariant == "future_period"

    def test_not_a_date_rejected(self):
        with pytest.raises(InvalidPeriodError) as exc_info:
            append_historical_period(PeriodLedger(), "2020-01-01", date(2020, 12, 31), AS_OF)

        assert exc_info.value.invariant == "not_a_date"
        assert isinstance(exc_info.value, ValidationError)

    def test_initial_kind_only_first(self):
        ledger = _history((date(2020, 1, 1), date(2020, 12, 31)))

        with pytest.raises(InvalidPeriodError) as exc_info:
            append_historical_period(
                ledger, date(2021, 1, 1), date(2021, 6, 30), AS_OF, PeriodKind.INITIAL
            )

        assert exc_info.value.invariant == "kind_mismatch"

    def test_first_period_must_be_initial(self):
        with pytest.raises(InvalidPeriodError):
            append_historical_period(
                PeriodLedger(), date(2020, 1, 1), date(2020, 12, 31), AS_OF,
                PeriodKind.NEGOTIATED_RENEWAL,
            )

    def test_current_is_reanchored_after_append(self):
        ledger = replace_current_period(PeriodLedger(), date(2020, 1, 1), date(2025, 3, 31))
        ledger = append_historical_period(ledger, date(2020, 1, 1), date(2020, 12, 31), AS_OF)

        assert ledger.current.start_date == date(2021, 1, 1)
        assert ledger.current.sequence_number == 2
        assert ledger.current.kind == PeriodKind.AUTOMATIC_RENEWAL


class TestReplaceCurrent:

    def test_without_history_uses_given_start(self):
        ledger = replace_current_period(PeriodLedger(), date(2024, 1, 1), date(2024, 12, 31))

        assert ledger.current.start_date == date(2024, 1, 1)
        assert ledger.current.kind == PeriodKind.INITIAL
        assert ledger.current.is_current

    def test_with_history_start_is_derived(self):
        ledger = _history((date(2022, 1, 1), date(2022, 12, 31)))

        ledger = replace_current_period(ledger, date(1999, 1, 1), date(2024, 12, 31))

        assert ledger.current.start_date == date(2023, 1, 1)
        assert ledger.current.sequence_number == 2

    def test_negotiated_kind_preserved(self):
        ledger = _history((date(2022, 1, 1), date(2022, 12, 31)))
        ledger = PeriodLedger(
            historical=ledger.historical,
            current=PeriodSpan(2, date(2023, 1, 1), date(2023, 12, 31), PeriodKind.NEGOTIATED_RENEWAL, True),
        )

        ledger = replace_current_period(ledger, date(2023, 1, 1), date(2024, 6, 30))

        assert ledger.current.kind == PeriodKind.NEGOTIATED_RENEWAL
        assert ledger.current.end_date == date(2024, 6, 30)

    def test_end_not_after_derived_start_rejected(self):
        ledger = _history((date(2022, 1, 1), date(2022, 12, 31)))

        with pytest.raises(InvalidPeriodError) as exc_info:
            replace_current_period(ledger, date(2023, 1, 1), date(2023, 1, 1))

        assert exc_info.value.invariant == "end_before_start"


class TestRemoveHistorical:

    def _three(self):
        return _history(
            (date(2020, 1, 1), date(2020, 12, 31)),
            (date(2021, 1, 1), date(2021, 12, 31)),
            (date(2022, 1, 1), date(2022, 12, 31)),
        )

    def test_remove_first_resequences_and_forces_initial(self):
        ledger = remove_historical_period(self._three(), 1)

        assert [p.sequence_number for p in ledger.historical] == [1, 2]
        assert ledger.historical[0].kind == PeriodKind.INITIAL
        assert ledger.historical[0].start_date == date(2021, 1, 1)

    def test_remove_last(self):
        ledger = remove_historical_period(self._three(), 3)

        assert len(ledger.historical) == 2
        assert ledger.last_historical_end == date(2021, 12, 31)

    def test_remove_middle_rejected(self):
        with pytest.raises(InvalidPeriodError):
            remove_historical_period(self._three(), 2)

    def test_remove_unknown_rejected(self):
        with pytest.raises(InvalidPeriodError):
            remove_historical_period(self._three(), 7)

    def test_current_follows_removal(self):
        ledger = replace_current_period(self._three(), date(2023, 1, 1), date(2023, 12, 31))

        ledger = remove_historical_period(ledger, 3)

        assert ledger.current.start_date == date(2022, 1, 1)
        assert ledger.current.sequence_number == 3


class TestSummary:

    def test_total_days_includes_current(self):
        ledger = _history((date(2020, 1, 1), date(2020, 1, 31)))
        ledger = replace_current_period(ledger, date(2020, 2, 1), date(2020, 2, 29))

        summary = summarize(ledger)

        assert summary.total_periods == 2
        assert summary.total_days == 31 + 29
        assert summary.next_sequence_number == 3
        assert summary.current_sequence_number == 2

    def test_empty_ledger(self):
        summary = summarize(PeriodLedger())

        assert summary.total_periods == 0
        assert summary.total_days == 0
        assert summary.total_years == Decimal("0.00")
        assert not summary.must_be_indefinite

    def test_exactly_four_years_must_be_indefinite(self):
        # 1460 days / 365 = 4.00
        ledger = replace_current_period(
            PeriodLedger(), date(2020, 1, 1), date(2020, 1, 1) + timedelta(days=1459)
        )

        summary = summarize(ledger)

        assert summary.total_years == Decimal("4.00")
        assert summary.must_be_indefinite

    def test_just_under_four_years_is_fine(self):
        # 1456 days / 365 = 3.989 -> 3.99
        ledger = replace_current_period(
            PeriodLedger(), date(2020, 1, 1), date(2020, 1, 1) + timedelta(days=1455)
        )

        summary = summarize(ledger)

        assert summary.total_years == Decimal("3.99")
        assert not summary.must_be_indefinite

    def test_period_cap_when_configured(self):
        ledger = _history(
            (date(2022, 1, 1), date(2022, 3, 31)),
            (date(2022, 4, 1), date(2022, 6, 30)),
            (date(2022, 7, 1), date(2022, 9, 30)),
        )

        assert not summarize(ledger).must_be_indefinite
        assert summarize(ledger, TenurePolicy(max_periods=3)).must_be_indefinite

    def test_near_limit_alert(self):
        ledger = replace_current_period(
            PeriodLedger(), date(2020, 1, 1), date(2020, 1, 1) + timedelta(days=1350)
        )

        codes = [a.code for a in legal_alerts(summarize(ledger))]

        assert "near_tenure_limit" in codes


class TestRenewal:

    def _ledger(self, renewals: int = 0):
        spans = []
        start = date(2023, 1, 1)
        for _ in range(renewals):
            end = start + timedelta(days=29)
            spans.append((start, end))
            start = end + timedelta(days=1)
        ledger = _history(*spans) if spans else PeriodLedger()
        return replace_current_period(ledger, start, start + timedelta(days=29))

    def test_assessment_reports_extension(self):
        ledger = self._ledger()
        current_end = ledger.current.end_date

        assessment = assess_renewal(ledger, current_end + timedelta(days=90))

        assert assessment.renewal_number == 1
        assert assessment.extension_days == 90

    def test_new_end_must_be_after_current_end(self):
        ledger = self._ledger()

        with pytest.raises(ValidationError):
            assess_renewal(ledger, ledger.current.end_date)

    def test_fifth_renewal_needs_a_year(self):
        ledger = self._ledger(renewals=4)
        current_end = ledger.current.end_date

        with pytest.raises(ValidationError) as exc_info:
            assess_renewal(ledger, current_end + timedelta(days=200))

        assert exc_info.value.field == "end_date"
        assert assess_renewal(ledger, current_end + timedelta(days=365)).renewal_number == 5

    def test_projection_over_max_years_rejected(self):
        ledger = replace_current_period(PeriodLedger(), date(2021, 1, 1), date(2023, 12, 31))

        with pytest.raises(ValidationError):
            assess_renewal(ledger, date(2025, 6, 30))

    def test_no_current_period(self):
        with pytest.raises(ValidationError):
            assess_renewal(PeriodLedger(), date(2030, 1, 1))

    def test_renew_rolls_current_into_history(self):
        ledger = self._ledger()
        old = ledger.current

        renewed, assessment = renew(ledger, old.end_date + timedelta(days=60))

        assert renewed.historical[-1].end_date == old.end_date
        assert not renewed.historical[-1].is_current
        assert renewed.current.start_date == old.end_date + timedelta(days=1)
        assert renewed.current.sequence_number == 2
        assert renewed.current.kind == PeriodKind.AUTOMATIC_RENEWAL
        assert assessment.extension_days == 60

    def test_renew_as_initial_rejected(self):
        ledger = self._ledger()

        with pytest.raises(InvalidPeriodError):
            renew(ledger, ledger.current.end_date + timedelta(days=60), PeriodKind.INITIAL)
