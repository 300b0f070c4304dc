"""
Seen-state data model.

These Pydantic models define one remembered game and the outcome of the
guess made on it, with the helpers the store and the CSV codec share.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

AppId = int


class Outcome(str, Enum):
    """
    Result of the guess made on a seen game.

    UNKNOWN covers records written before outcomes were tracked and
    imported rows without an outcome column.
    """

    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNKNOWN = "unknown"

    @property
    def code(self) -> str:
        """Single-character code used in CSV exports."""
        return _CODES[self]

    @classmethod
    def from_code(cls, code: str | None) -> "Outcome":
        """Map an export code back; anything unrecognized is UNKNOWN."""
        if code is None:
            return cls.UNKNOWN
        code = code.strip()
        if code == "1":
            return cls.CORRECT
        if code == "0":
            return cls.INCORRECT
        return cls.UNKNOWN

    @classmethod
    def from_correct(cls, correct: bool | None) -> "Outcome":
        """Map a was-the-guess-correct flag (None when not known)."""
        if correct is None:
            return cls.UNKNOWN
        return cls.CORRECT if correct else cls.INCORRECT


_CODES = {
    Outcome.CORRECT: "1",
    Outcome.INCORRECT: "0",
    Outcome.UNKNOWN: "?",
}


def normalize_timestamp(value: datetime) -> datetime:
    """
    Bring a timestamp to UTC with millisecond precision.

    Naive datetimes are taken to be UTC already.

    Raises:
        ValueError: If the instant falls outside the datetime range in UTC
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        try:
            value = value.astimezone(timezone.utc)
        except OverflowError as e:
            raise ValueError(f"Timestamp out of range in UTC: {value.isoformat()}") from e
    return value.replace(microsecond=value.microsecond // 1000 * 1000)


class SeenRecord(BaseModel):
    """A game that has been shown, with the guess outcome."""

    model_config = ConfigDict(frozen=True)

    app_id: AppId = Field(..., gt=0, description="Steam application ID")
    outcome: Outcome = Field(default=Outcome.UNKNOWN, description="Guess outcome")
    seen_at: datetime | None = Field(
        default=None,
        description="When the game was shown (None for legacy or imported rows)",
    )

    @field_validator("seen_at")
    @classmethod
    def normalize_seen_at(cls, v: datetime | None) -> datetime | None:
        """Store timestamps as UTC with millisecond precision."""
        if v is None:
            return None
        return normalize_timestamp(v)


SeenState = dict[AppId, SeenRecord]


@dataclass(frozen=True)
class MergeResult:
    """Outcome of an additive merge into the store."""

    imported: int = 0
    skipped: int = 0
    conflicts: int = 0


@dataclass(frozen=True)
class SeenStats:
    """Counts per outcome over a seen-state."""

    total: int
    correct: int
    incorrect: int
    unknown: int

    @property
    def accuracy(self) -> float | None:
        """Share of correct guesses among games with a known outcome."""
        known = self.correct + self.incorrect
        if known == 0:
            return None
        return self.correct / known

    def to_dict(self) -> dict:
        """Convert to dictionary for CLI output."""
        return {
            "total": self.total,
            "correct": self.correct,
            "incorrect": self.incorrect,
            "unknown": self.unknown,
            "accuracy": round(self.accuracy, 4) if self.accuracy is not None else None,
        }


def summarize(state: Mapping[AppId, SeenRecord] | Iterable[SeenRecord]) -> SeenStats:
    """
    Count seen games per outcome.

    Args:
        state: A seen-state mapping or any iterable of records

    Returns:
        SeenStats with totals per outcome
    """
    records = state.values() if isinstance(state, Mapping) else state
    counts = {outcome: 0 for outcome in Outcome}
    for record in records:
        counts[record.outcome] += 1

    return SeenStats(
        total=sum(counts.values()),
        correct=counts[Outcome.CORRECT],
        incorrect=counts[Outcome.INCORRECT],
        unknown=counts[Outcome.UNKNOWN],
    )
