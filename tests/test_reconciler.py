"""
Tests for monthly ledger reconciliation.
"""

import pytest
from datetime import date
from decimal import Decimal

from club_billing.engine.errors import (
    EmptyPeriodError,
    InvalidTimeRangeError,
    RateNotFoundError,
)
from club_billing.engine.reconciler import reconcile_month, round_money
from club_billing.models.billing import IssueKind, LineItemKind, Role, SetupMode


def _reconcile(entries, corrections, rates, **kwargs):
    return reconcile_month(entries, corrections, rates, "anna", 3, 2025, **kwargs)


class TestRoundMoney:
    def test_half_up(self):
        """Test commercial rounding."""
        assert round_money(Decimal("2.345")) == Decimal("2.35")
        assert round_money(Decimal("2.344")) == Decimal("2.34")
        assert round_money(Decimal("-2.345")) == Decimal("-2.35")


class TestBaseEntries:
    """Tests for a period without corrections."""

    def test_base_entries_summed(self, make_entry, rate_rules):
        """Test two 90 minute sessions at 20 EUR/h."""
        ledger = _reconcile([make_entry(), make_entry(entry_date=date(2025, 3, 11))], [], rate_rules)

        assert ledger.total == Decimal("60.00")
        assert [item.kind for item in ledger.line_items] == [LineItemKind.BASE, LineItemKind.BASE]
        assert ledger.issues == []

    def test_total_rounded_once(self, make_entry, rate_rules):
        """Test that only the total is rounded, not each line."""
        entries = [
            make_entry(entry_date=date(2025, 3, day), start_time="18:00", end_time="18:10")
            for day in (4, 11, 18)
        ]
        ledger = _reconcile(entries, [], rate_rules)
        assert ledger.total == Decimal("10.00")

    def test_reconciliation_is_deterministic(self, make_entry, make_cancellation, rate_rules):
        """Test that the same inputs give identical ledgers."""
        entries = [make_entry(), make_entry(entry_date=date(2025, 3, 11))]
        corrections = [make_cancellation(entries[0])]

        first = _reconcile(entries, corrections, rate_rules)
        second = _reconcile(entries, corrections, rate_rules)

        assert first == second
        assert first.model_dump_json() == second.model_dump_json()

    def test_setup_mode_passed_through(self, make_entry, rate_rules):
        """Test EXTRA_TIME pays setup as time instead of a bonus."""
        entry = make_entry(start_time="23:00", end_time="00:30", setup=True)

        as_bonus = _reconcile([entry], [], rate_rules)
        as_time = _reconcile([entry], [], rate_rules, setup_mode=SetupMode.EXTRA_TIME)

        assert as_bonus.total == Decimal("35.00")
        assert as_time.total == Decimal("40.00")


class TestCorrections:
    """Tests for addenda, cancellations and amendments."""

    def test_addendum_added(self, make_entry, make_addendum, make_session, rate_rules):
        """Test that an addendum becomes its own line item."""
        addendum = make_addendum(session=make_session(start_time="10:00", end_time="11:00"))

        ledger = _reconcile([make_entry()], [addendum], rate_rules)

        assert ledger.total == Decimal("50.00")
        line = ledger.items_of(LineItemKind.ADDENDUM)[0]
        assert line.correction_id == addendum.id
        assert line.original_entry_id is None

    def test_cancellation_nets_to_zero(self, make_entry, make_cancellation, rate_rules):
        """Test base and reversal cancel out exactly."""
        entry = make_entry(setup=True)
        cancellation = make_cancellation(entry)

        ledger = _reconcile([entry], [cancellation], rate_rules)

        base, reversal = ledger.line_items
        assert reversal.kind == LineItemKind.REVERSAL
        assert reversal.amount == -base.amount
        assert reversal.hours == -base.hours
        assert reversal.setup_bonus == -base.setup_bonus
        assert reversal.correction_id == cancellation.id
        assert reversal.original_entry_id == entry.id
        assert ledger.total == Decimal("0.00")

    def test_amendment_reverses_and_replaces(self, make_entry, make_amendment, make_session, rate_rules):
        """Test correcting a 1h session to 1.5h adds 10 EUR net."""
        entry = make_entry(end_time="19:00")
        amendment = make_amendment(entry, session=make_session(end_time="19:30"))

        ledger = _reconcile([entry], [amendment], rate_rules)

        assert [item.kind for item in ledger.line_items] == [
            LineItemKind.BASE,
            LineItemKind.REVERSAL,
            LineItemKind.AMENDMENT,
        ]
        assert [item.amount for item in ledger.line_items] == [
            Decimal("20"),
            Decimal("-20"),
            Decimal("30"),
        ]
        assert ledger.total == Decimal("30.00")

    def test_amendment_can_change_role(self, make_entry, make_amendment, make_session, rate_rules):
        """Test that the corrected session is priced with its own role."""
        entry = make_entry(end_time="19:00")
        amendment = make_amendment(
            entry, session=make_session(end_time="19:00", role=Role.ASSISTANT)
        )

        ledger = _reconcile([entry], [amendment], rate_rules)

        assert ledger.total == Decimal("12.00")

    def test_line_order(
        self, make_entry, make_addendum, make_cancellation, make_amendment, rate_rules
    ):
        """Test base, addenda, cancellations, then amendment pairs."""
        first = make_entry()
        second = make_entry(entry_date=date(2025, 3, 11))
        corrections = [
            make_amendment(second),
            make_cancellation(first),
            make_addendum(),
        ]

        ledger = _reconcile([first, second], corrections, rate_rules)

        assert [item.kind for item in ledger.line_items] == [
            LineItemKind.BASE,
            LineItemKind.BASE,
            LineItemKind.ADDENDUM,
            LineItemKind.REVERSAL,
            LineItemKind.REVERSAL,
            LineItemKind.AMENDMENT,
        ]

    def test_original_from_earlier_month(self, make_entry, make_amendment, make_session, rate_rules):
        """Test correcting a February session in the March statement."""
        february = make_entry(entry_date=date(2025, 2, 25), end_time="19:00")
        amendment = make_amendment(
            february, session=make_session(entry_date=date(2025, 2, 25), end_time="19:30")
        )

        ledger = _reconcile([], [amendment], rate_rules, reference_entries=[february])

        assert ledger.total == Decimal("10.00")
        assert ledger.issues == []


class TestIssues:
    """Tests for per-item failures."""

    def test_dangling_reference(self, make_entry, make_cancellation, rate_rules):
        """Test a correction of an unknown entry is skipped and reported."""
        entry = make_entry()
        ghost = make_entry(entry_date=date(2025, 3, 11))
        cancellation = make_cancellation(ghost)

        ledger = _reconcile([entry], [cancellation], rate_rules)

        assert ledger.total == Decimal("30.00")
        assert [issue.kind for issue in ledger.issues] == [IssueKind.DANGLING_REFERENCE]
        assert ledger.issues[0].correction_id == cancellation.id
        assert ledger.has_errors is True

    def test_other_trainers_entry_not_reversed(self, make_entry, make_cancellation, rate_rules):
        """Test a correction cannot reverse another trainer's session."""
        anna = make_entry()
        ben = make_entry(trainer_id="ben", start_time="10:00", end_time="12:00")
        cancellation = make_cancellation(ben, trainer_id="anna")

        ledger = _reconcile([anna], [cancellation], rate_rules, reference_entries=[anna, ben])

        assert ledger.items_of(LineItemKind.REVERSAL) == []
        assert ledger.total == Decimal("30.00")
        assert [issue.kind for issue in ledger.issues] == [IssueKind.DANGLING_REFERENCE]
        assert ledger.issues[0].entry_id == ben.id

    def test_other_trainers_entry_not_amended(
        self, make_entry, make_amendment, make_session, rate_rules
    ):
        """Test an amendment of another trainer's session adds neither line."""
        anna = make_entry()
        ben = make_entry(trainer_id="ben", end_time="19:00")
        amendment = make_amendment(ben, session=make_session(end_time="20:00"), trainer_id="anna")

        ledger = _reconcile([anna], [amendment], rate_rules, reference_entries=[anna, ben])

        assert [item.kind for item in ledger.line_items] == [LineItemKind.BASE]
        assert ledger.issues[0].kind == IssueKind.DANGLING_REFERENCE

    def test_second_reversal_rejected(self, make_entry, make_cancellation, rate_rules):
        """Test that an entry is never reversed twice."""
        entry = make_entry()
        corrections = [make_cancellation(entry), make_cancellation(entry)]

        ledger = _reconcile([entry], corrections, rate_rules)

        assert len(ledger.items_of(LineItemKind.REVERSAL)) == 1
        assert ledger.total == Decimal("0.00")
        assert [issue.kind for issue in ledger.issues] == [IssueKind.DUPLICATE_REVERSAL]
        assert ledger.issues[0].correction_id == corrections[1].id

    def test_amendment_after_cancellation_adds_nothing(
        self, make_entry, make_cancellation, make_amendment, rate_rules
    ):
        """Test a rejected amendment produces neither of its lines."""
        entry = make_entry()
        corrections = [make_amendment(entry), make_cancellation(entry)]

        ledger = _reconcile([entry], corrections, rate_rules)

        assert ledger.items_of(LineItemKind.AMENDMENT) == []
        assert ledger.total == Decimal("0.00")
        assert ledger.issues[0].kind == IssueKind.DUPLICATE_REVERSAL

    def test_amendment_with_unpriceable_session(
        self, make_entry, make_amendment, make_session, rate_rules
    ):
        """Test that an amendment whose new session fails adds no reversal."""
        entry = make_entry()
        amendment = make_amendment(entry, session=make_session(start_time="19:00", end_time="19:00"))

        ledger = _reconcile([entry], [amendment], rate_rules)

        assert ledger.items_of(LineItemKind.REVERSAL) == []
        assert ledger.total == Decimal("30.00")
        assert ledger.issues[0].kind == IssueKind.INVALID_TIME_RANGE

    def test_missing_rate_skips_only_that_entry(self, make_entry, rate_rules):
        """Test that one entry without a rate doesn't fail the month."""
        trainer_only = [rule for rule in rate_rules if rule.role == Role.TRAINER]
        entries = [make_entry(), make_entry(role=Role.ASSISTANT, field_id="Feld 2")]

        ledger = _reconcile(entries, [], trainer_only)

        assert ledger.total == Decimal("30.00")
        assert ledger.issues[0].kind == IssueKind.RATE_NOT_FOUND
        assert ledger.issues[0].entry_id == entries[1].id

    def test_invalid_time_range(self, make_entry, rate_rules):
        """Test that an empty session is reported, not billed as 0 or 24h."""
        entries = [make_entry(), make_entry(start_time="20:00", end_time="20:00")]

        ledger = _reconcile(entries, [], rate_rules)

        assert ledger.total == Decimal("30.00")
        assert ledger.issues[0].kind == IssueKind.INVALID_TIME_RANGE

    def test_fail_fast(self, make_entry, rate_rules):
        """Test fail_fast raises the first per-item error."""
        trainer_only = [rule for rule in rate_rules if rule.role == Role.TRAINER]
        entries = [make_entry(), make_entry(role=Role.ASSISTANT)]

        with pytest.raises(RateNotFoundError):
            _reconcile(entries, [], trainer_only, fail_fast=True)

    def test_fail_fast_invalid_time(self, make_entry, rate_rules):
        """Test fail_fast with a bad time range."""
        with pytest.raises(InvalidTimeRangeError):
            _reconcile([make_entry(end_time="18:00")], [], rate_rules, fail_fast=True)

    def test_out_of_period_records_skipped(self, make_entry, make_addendum, rate_rules):
        """Test that other trainers' or months' records are warnings."""
        entries = [
            make_entry(),
            make_entry(trainer_id="ben"),
            make_entry(entry_date=date(2025, 4, 1)),
        ]
        corrections = [make_addendum(month=4)]

        ledger = _reconcile(entries, corrections, rate_rules)

        assert ledger.total == Decimal("30.00")
        assert [issue.kind for issue in ledger.issues] == [IssueKind.OUT_OF_PERIOD] * 3
        assert all(issue.severity == "warning" for issue in ledger.issues)
        assert ledger.has_errors is False


class TestEmptyPeriod:
    def test_no_entries(self, rate_rules):
        """Test that an empty month raises EmptyPeriodError."""
        with pytest.raises(EmptyPeriodError, match="no billable entries for period"):
            _reconcile([], [], rate_rules)

    def test_nothing_priceable(self, make_entry):
        """Test that a month where every entry fails is empty too."""
        with pytest.raises(EmptyPeriodError) as exc_info:
            _reconcile([make_entry()], [], [])
        assert exc_info.value.trainer_id == "anna"
        assert exc_info.value.month == 3

    def test_fully_cancelled_month_is_not_empty(self, make_entry, make_cancellation, rate_rules):
        """Test that a zero total with lines is still a ledger."""
        entry = make_entry()
        ledger = _reconcile([entry], [make_cancellation(entry)], rate_rules)
        assert ledger.total == Decimal("0.00")
        assert len(ledger.line_items) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
