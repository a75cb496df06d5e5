"""
Core Data Models for the Club Billing Engine

These models define the strict schemas for everything the engine consumes
and produces. They are designed to:
1. Be immutable snapshots (the engine never mutates its inputs)
2. Provide clear validation error messages
3. Be serializable for storage, logging and the statement document

DESIGN DECISION: Corrections are a closed tagged union on `kind`.
An addendum cannot carry a reference, cancellations and amendments
cannot exist without one. Pydantic enforces this at construction.
"""

from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Role(str, Enum):
    """
    Function a trainer held during a session.

    Only a TRAINER counts as lead trainer for conflict detection.
    """
    TRAINER = "trainer"
    ASSISTANT = "assistant"


class SetupMode(str, Enum):
    """
    How the setup (Aufbau) flag is compensated.

    BONUS:      flat setup bonus taken from the rate rule (default)
    EXTRA_TIME: extra billable time, no bonus
    """
    BONUS = "bonus"
    EXTRA_TIME = "extra_time"


class StatementStatus(str, Enum):
    """Lifecycle of a monthly statement."""
    DRAFT = "draft"
    ISSUED = "issued"
    APPROVED = "approved"
    PAID = "paid"
    VOIDED = "voided"


class CorrectionKind(str, Enum):
    ADDENDUM = "addendum"          # Nachtrag
    CANCELLATION = "cancellation"  # Storno
    AMENDMENT = "amendment"        # Korrektur


class LineItemKind(str, Enum):
    BASE = "base"
    ADDENDUM = "addendum"
    REVERSAL = "reversal"
    AMENDMENT = "amendment"


class IssueKind(str, Enum):
    """Per-item problems found while reconciling a month."""
    RATE_NOT_FOUND = "rate_not_found"
    INVALID_TIME_RANGE = "invalid_time_range"
    DANGLING_REFERENCE = "dangling_reference"
    DUPLICATE_REVERSAL = "duplicate_reversal"
    OUT_OF_PERIOD = "out_of_period"


class ConflictKind(str, Enum):
    DUPLICATE = "duplicate"
    DIFFERENT_SPORT = "different_sport"
    TWO_LEAD_TRAINERS = "two_lead_trainers"
    HOLIDAY = "holiday"
    SCHEDULE_DEVIATION = "schedule_deviation"


def _normalize_role(value):
    if isinstance(value, str):
        return value.strip().lower()
    return value


# =============================================================================
# SESSIONS
# =============================================================================

class PeriodKey(BaseModel):
    """(trainer, month, year) - the unit that gets billed and locked."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    trainer_id: str = Field(..., min_length=1)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)


class SessionDetails(BaseModel):
    """
    What happened in one training session.

    Times are wall-clock "HH:MM" strings without a date and are NOT
    parsed here. Malformed or empty ranges surface as
    InvalidTimeRangeError from the duration calculator and are reported
    per entry.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    entry_date: date = Field(
        ...,
        description="Calendar date the session started on"
    )
    start_time: str = Field(
        ...,
        description="Wall-clock start, HH:MM"
    )
    end_time: str = Field(
        ...,
        description="Wall-clock end, HH:MM (may be past midnight)"
    )
    sport: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Sport/category (Sparte)"
    )
    field_id: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Field/location identifier (Hallenfeld)"
    )
    role: Role = Field(
        default=Role.TRAINER,
        description="Function held during the session"
    )
    setup: bool = Field(
        default=False,
        description="Setup work (Aufbau) was done"
    )

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        """Roles are matched case-insensitively."""
        return _normalize_role(v)


class TimeEntry(SessionDetails):
    """
    One logged training shift by a trainer.

    CRITICAL: Immutable once a statement locks its (trainer, month).
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique entry ID"
    )
    trainer_id: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Trainer identifier"
    )
    trainer_name: Optional[str] = Field(
        default=None,
        max_length=200,
        description="Display name of the owning trainer"
    )

    @property
    def month(self) -> int:
        return self.entry_date.month

    @property
    def year(self) -> int:
        return self.entry_date.year

    @property
    def period(self) -> PeriodKey:
        return PeriodKey(trainer_id=self.trainer_id, month=self.month, year=self.year)


# =============================================================================
# RATES AND SCHEDULES
# =============================================================================

class RateRule(BaseModel):
    """
    Wage rule for a role, effective from a date onwards.

    Several rules per role may exist; the latest one not after the
    session date applies.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    role: Role
    hourly_wage: Decimal = Field(
        ...,
        ge=0,
        description="Wage per hour in EUR"
    )
    setup_bonus: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Flat bonus in EUR for a session with setup"
    )
    effective_from: date

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return _normalize_role(v)


class StandardScheduleRule(BaseModel):
    """
    Expected training time for a sport on a weekday.

    Only a conflict signal, never used for pricing.
    Weekday follows the club calendar: 0 = Sunday ... 6 = Saturday.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    sport: str = Field(..., min_length=1)
    weekday: int = Field(..., ge=0, le=6)
    start_time: str
    end_time: str
    valid_from: date
    valid_to: Optional[date] = Field(
        default=None,
        description="Exclusive end of validity; None means open-ended"
    )

    def covers(self, on_date: date) -> bool:
        """Is the rule valid on this date? Window is [valid_from, valid_to)."""
        if on_date < self.valid_from:
            return False
        return self.valid_to is None or on_date < self.valid_to


# =============================================================================
# CORRECTIONS - closed tagged variants
# =============================================================================

class CorrectionBase(BaseModel):
    """
    Fields shared by every correction.

    `month`/`year` is the billing period the correction is assigned to,
    which may differ from the date of the session it concerns.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="forbid")

    id: UUID = Field(default_factory=uuid4)
    trainer_id: str = Field(..., min_length=1, max_length=200)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)
    comment: Optional[str] = Field(default=None, max_length=1000)

    @property
    def period(self) -> PeriodKey:
        return PeriodKey(trainer_id=self.trainer_id, month=self.month, year=self.year)


class Addendum(CorrectionBase):
    """A session added after the fact. Never references an original."""
    kind: Literal["addendum"] = "addendum"
    session: SessionDetails


class Cancellation(CorrectionBase):
    """Reverses an original entry, no replacement."""
    kind: Literal["cancellation"] = "cancellation"
    original_entry_id: UUID


class Amendment(CorrectionBase):
    """Reverses an original entry and bills a corrected session instead."""
    kind: Literal["amendment"] = "amendment"
    original_entry_id: UUID
    session: SessionDetails


Correction = Annotated[
    Union[Addendum, Cancellation, Amendment],
    Field(discriminator="kind"),
]


# =============================================================================
# LEDGER
# =============================================================================

class LineItem(BaseModel):
    """
    One signed, priced row of a monthly ledger.

    Reversals carry negative hours and amounts. Amounts are NOT rounded;
    rounding happens once, on the ledger total.
    """
    model_config = ConfigDict(frozen=True)

    kind: LineItemKind
    entry_id: UUID = Field(
        ...,
        description="Entry (or correction, for addenda/amendments) the session came from"
    )
    correction_id: Optional[UUID] = None
    original_entry_id: Optional[UUID] = None
    session: SessionDetails
    hours: Decimal
    hourly_wage: Decimal
    setup_bonus: Decimal = Decimal("0")
    amount: Decimal

    @property
    def is_reversal(self) -> bool:
        return self.kind == LineItemKind.REVERSAL


class ReconciliationIssue(BaseModel):
    """A line that could not be billed, with the reason."""
    model_config = ConfigDict(frozen=True)

    kind: IssueKind
    message: str
    entry_id: Optional[UUID] = None
    correction_id: Optional[UUID] = None
    severity: str = Field(
        default="error",
        pattern="^(error|warning)$",
    )


class Ledger(BaseModel):
    """
    Result of reconciling one (trainer, month, year).

    Carries no timestamps or generated ids, so reconciling the same
    inputs twice yields byte-identical ledgers.
    """
    model_config = ConfigDict(frozen=True)

    trainer_id: str
    month: int = Field(..., ge=1, le=12)
    year: int
    line_items: list[LineItem]
    total: Decimal
    issues: list[ReconciliationIssue] = Field(default_factory=list)

    @property
    def period(self) -> PeriodKey:
        return PeriodKey(trainer_id=self.trainer_id, month=self.month, year=self.year)

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    def items_of(self, kind: LineItemKind) -> list[LineItem]:
        return [item for item in self.line_items if item.kind == kind]

    def to_statement_rows(self) -> list[dict]:
        """
        Flatten the ledger for a document-generation service.

        Amounts are rounded half-up to two decimals, like the total; the
        ledger itself keeps full precision.
        """
        rows = []
        for item in self.line_items:
            s = item.session
            rows.append({
                "kind": item.kind.value,
                "date": s.entry_date.isoformat(),
                "sport": s.sport,
                "time": f"{s.start_time}-{s.end_time}",
                "field": s.field_id,
                "role": s.role.value,
                "setup": s.setup,
                "hours": f"{item.hours:.2f}",
                "amount": f"{item.amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):.2f}",
            })
        return rows


# =============================================================================
# STATEMENTS AND CONFLICTS
# =============================================================================

class MonthlyStatement(BaseModel):
    """
    The issued statement for a (trainer, month).

    Any status other than VOIDED locks the period's base entries.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    trainer_id: str = Field(..., min_length=1)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=1900, le=9999)
    status: StatementStatus = StatementStatus.DRAFT
    total: Decimal = Field(..., decimal_places=2)
    document_ref: Optional[str] = Field(
        default=None,
        description="Reference returned by the document service"
    )
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def period(self) -> PeriodKey:
        return PeriodKey(trainer_id=self.trainer_id, month=self.month, year=self.year)


class Conflict(BaseModel):
    """A warning about one session, optionally pointing at the other entry."""
    model_config = ConfigDict(frozen=True)

    kind: ConflictKind
    message: str
    other_entry_id: Optional[UUID] = None
