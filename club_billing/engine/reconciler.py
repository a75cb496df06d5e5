"""
Ledger Reconciler

Merges a month's base sessions with its corrections into a signed,
priced ledger:

    base entries   -> BASE line items
    addendum       -> ADDENDUM line item
    cancellation   -> REVERSAL of the original (negated)
    amendment      -> REVERSAL of the original + AMENDMENT line item

CRITICAL: Reconciliation is additive. A corrected or cancelled entry keeps
its BASE line; the reversal sits next to it, so the ledger is a complete
audit trail and cancellation lines always net to exactly zero.

The reconciler is a pure fold over its inputs. No clock, no generated
ids, no hidden state: the same inputs always produce the same ledger.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence, Union
from uuid import UUID

import structlog

from club_billing.engine.duration import DEFAULT_EXTRA_SETUP_HOURS
from club_billing.engine.errors import (
    BillingError,
    DanglingCorrectionReferenceError,
    DuplicateReversalError,
    EmptyPeriodError,
)
from club_billing.engine.wages import Quote, quote_session
from club_billing.models.billing import (
    Addendum,
    Amendment,
    Cancellation,
    Correction,
    IssueKind,
    Ledger,
    LineItem,
    LineItemKind,
    RateRule,
    ReconciliationIssue,
    SessionDetails,
    SetupMode,
    TimeEntry,
)

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    """Commercial rounding to cents."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def _line(
    kind: LineItemKind,
    entry_id: UUID,
    session: SessionDetails,
    quote: Quote,
    correction_id: Optional[UUID] = None,
    original_entry_id: Optional[UUID] = None,
) -> LineItem:
    sign = Decimal(-1) if kind == LineItemKind.REVERSAL else Decimal(1)
    return LineItem(
        kind=kind,
        entry_id=entry_id,
        correction_id=correction_id,
        original_entry_id=original_entry_id,
        session=SessionDetails.model_validate(session.model_dump(
            include=set(SessionDetails.model_fields)
        )),
        hours=sign * quote.hours,
        hourly_wage=quote.hourly_wage,
        setup_bonus=sign * quote.setup_bonus,
        amount=sign * quote.amount,
    )


class _Fold:
    """Accumulator for one reconciliation run."""

    def __init__(
        self,
        rates: Sequence[RateRule],
        setup_mode: SetupMode,
        extra_setup_hours: Decimal,
        fail_fast: bool,
    ):
        self.rates = rates
        self.setup_mode = setup_mode
        self.extra_setup_hours = extra_setup_hours
        self.fail_fast = fail_fast
        self.line_items: list[LineItem] = []
        self.issues: list[ReconciliationIssue] = []
        self.reversed_ids: set[UUID] = set()

    def quote(self, session: SessionDetails) -> Quote:
        return quote_session(session, self.rates, self.setup_mode, self.extra_setup_hours)

    def report(
        self,
        error: BillingError,
        entry_id: Optional[UUID] = None,
        correction_id: Optional[UUID] = None,
    ) -> None:
        if self.fail_fast:
            raise error
        logger.warning(
            "reconciliation_item_skipped",
            code=error.code,
            error=str(error),
            entry_id=str(entry_id) if entry_id else None,
            correction_id=str(correction_id) if correction_id else None,
        )
        self.issues.append(ReconciliationIssue(
            kind=IssueKind(error.code),
            message=str(error),
            entry_id=entry_id,
            correction_id=correction_id,
        ))

    def skip_out_of_period(
        self,
        entry_id: Optional[UUID] = None,
        correction_id: Optional[UUID] = None,
    ) -> None:
        self.issues.append(ReconciliationIssue(
            kind=IssueKind.OUT_OF_PERIOD,
            message="Record does not belong to the reconciled period",
            entry_id=entry_id,
            correction_id=correction_id,
            severity="warning",
        ))

    # -- steps ---------------------------------------------------------------

    def add_base(self, entry: TimeEntry) -> None:
        try:
            quote = self.quote(entry)
        except BillingError as e:
            self.report(e, entry_id=entry.id)
            return
        self.line_items.append(_line(LineItemKind.BASE, entry.id, entry, quote))

    def add_addendum(self, correction: Addendum) -> None:
        try:
            quote = self.quote(correction.session)
        except BillingError as e:
            self.report(e, correction_id=correction.id)
            return
        self.line_items.append(_line(
            LineItemKind.ADDENDUM,
            correction.id,
            correction.session,
            quote,
            correction_id=correction.id,
        ))

    def _reversal(
        self,
        correction: Union[Cancellation, Amendment],
        originals: dict[UUID, TimeEntry],
    ) -> LineItem:
        original = originals.get(correction.original_entry_id)
        # only the trainer's own entries can be reversed
        if original is None or original.trainer_id != correction.trainer_id:
            raise DanglingCorrectionReferenceError(correction.id, correction.original_entry_id)
        if original.id in self.reversed_ids:
            raise DuplicateReversalError(correction.id, original.id)
        return _line(
            LineItemKind.REVERSAL,
            original.id,
            original,
            self.quote(original),
            correction_id=correction.id,
            original_entry_id=original.id,
        )

    def add_cancellation(
        self,
        correction: Cancellation,
        originals: dict[UUID, TimeEntry],
    ) -> None:
        try:
            reversal = self._reversal(correction, originals)
        except BillingError as e:
            self.report(e, entry_id=correction.original_entry_id, correction_id=correction.id)
            return
        self.reversed_ids.add(correction.original_entry_id)
        self.line_items.append(reversal)

    def add_amendment(
        self,
        correction: Amendment,
        originals: dict[UUID, TimeEntry],
    ) -> None:
        # Both lines or neither
        try:
            reversal = self._reversal(correction, originals)
            replacement = self.quote(correction.session)
        except BillingError as e:
            self.report(e, entry_id=correction.original_entry_id, correction_id=correction.id)
            return
        self.reversed_ids.add(correction.original_entry_id)
        self.line_items.append(reversal)
        self.line_items.append(_line(
            LineItemKind.AMENDMENT,
            correction.id,
            correction.session,
            replacement,
            correction_id=correction.id,
            original_entry_id=correction.original_entry_id,
        ))


def reconcile_month(
    entries: Iterable[TimeEntry],
    corrections: Iterable[Correction],
    rates: Iterable[RateRule],
    trainer_id: str,
    month: int,
    year: int,
    *,
    reference_entries: Optional[Iterable[TimeEntry]] = None,
    setup_mode: SetupMode = SetupMode.BONUS,
    extra_setup_hours: Decimal = DEFAULT_EXTRA_SETUP_HOURS,
    fail_fast: bool = False,
) -> Ledger:
    """
    Build the priced ledger for one trainer and month.

    Args:
        entries: Base entries of the period. Entries of another trainer or
                 month are skipped and reported as out_of_period.
        corrections: Corrections assigned to the period (same filtering).
        rates: The full rate table.
        trainer_id, month, year: The period being billed.
        reference_entries: Where cancellations/amendments look up their
                 originals. Defaults to `entries`; pass earlier months'
                 entries to correct sessions that were already billed.
        setup_mode: BONUS (flat bonus from the rate rule) or EXTRA_TIME.
        extra_setup_hours: Setup time added in EXTRA_TIME mode.
        fail_fast: Raise the first per-item error instead of recording it
                 as an issue and continuing with the rest of the batch.

    Returns:
        Ledger with line items in step order (base, addenda, cancellation
        reversals, amendment pairs), the total rounded to cents and the
        issues found.

    Raises:
        EmptyPeriodError: If no line item could be produced
        BillingError: The first per-item error, only when fail_fast is set
    """
    base_entries = list(entries)
    all_corrections = list(corrections)
    fold = _Fold(list(rates), setup_mode, extra_setup_hours, fail_fast)

    def in_period(record) -> bool:
        return record.trainer_id == trainer_id and record.month == month and record.year == year

    originals = {
        entry.id: entry
        for entry in (base_entries if reference_entries is None else reference_entries)
    }

    # 1. base entries
    for entry in base_entries:
        if in_period(entry):
            fold.add_base(entry)
        else:
            fold.skip_out_of_period(entry_id=entry.id)

    period_corrections = []
    for correction in all_corrections:
        if in_period(correction):
            period_corrections.append(correction)
        else:
            fold.skip_out_of_period(correction_id=correction.id)

    # 2. addenda
    for correction in period_corrections:
        if isinstance(correction, Addendum):
            fold.add_addendum(correction)

    # 3. cancellations
    for correction in period_corrections:
        if isinstance(correction, Cancellation):
            fold.add_cancellation(correction, originals)

    # 4. amendments
    for correction in period_corrections:
        if isinstance(correction, Amendment):
            fold.add_amendment(correction, originals)

    if not fold.line_items:
        raise EmptyPeriodError(trainer_id, month, year)

    # 5. total - the only rounding in the engine
    total = round_money(sum((item.amount for item in fold.line_items), Decimal("0")))

    logger.info(
        "month_reconciled",
        trainer_id=trainer_id,
        month=month,
        year=year,
        line_items=len(fold.line_items),
        issues=len(fold.issues),
        total=str(total),
    )

    return Ledger(
        trainer_id=trainer_id,
        month=month,
        year=year,
        line_items=fold.line_items,
        total=total,
        issues=fold.issues,
    )
