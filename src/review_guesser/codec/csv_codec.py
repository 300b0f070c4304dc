"""
Seen-games CSV codec.

Export format, one row per game in ascending app id order:

    id,outcomeCode,timestamp
    3,?,
    5,1,2024-05-01T12:00:00.000Z

outcomeCode is 1 (correct), 0 (incorrect) or ? (unknown). The
timestamp is empty when the game has none.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone

from pydantic import TypeAdapter, ValidationError

from review_guesser.exceptions import MalformedRecord
from review_guesser.logger import get_logger
from review_guesser.storage.models import (
    AppId,
    MergeResult,
    Outcome,
    SeenRecord,
    normalize_timestamp,
)
from review_guesser.storage.store import SeenStore

logger = get_logger(__name__, component="csv_codec")

HEADER_FIELDS = ("id", "outcomeCode", "timestamp")
HEADER = ",".join(HEADER_FIELDS)

# Headers of files exported by the browser extension ("appId,correct,timestamp")
# are recognized as well.
_HEADER_MARKERS = ("id", "outcomecode", "timestamp", "appid", "correct")

_DATETIME = TypeAdapter(datetime)


@dataclass(frozen=True)
class DecodeResult:
    """Records parsed from an import, plus the number of unusable lines."""

    records: list[SeenRecord] = field(default_factory=list)
    skipped: int = 0
    had_header: bool = False

    def __len__(self) -> int:
        return len(self.records)


def format_timestamp(value: datetime | None) -> str:
    """Render a timestamp as ISO-8601 UTC with milliseconds, or '' for None."""
    if value is None:
        return ""
    value = normalize_timestamp(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_timestamp(text: str | None) -> datetime | None:
    """
    Parse an exported timestamp.

    Accepts ISO-8601 date-times and Unix timestamps. Anything else
    yields None rather than an error.
    """
    if text is None:
        return None
    text = text.strip()
    if not text:
        return None
    try:
        return normalize_timestamp(_DATETIME.validate_python(text))
    except (ValidationError, ValueError):
        return None


def encode(state: Mapping[AppId, SeenRecord] | Iterable[SeenRecord]) -> str:
    """
    Serialize seen games to CSV text.

    Args:
        state: A seen-state mapping or any iterable of records

    Returns:
        CSV text with a header line and one newline-terminated row per game
    """
    records = state.values() if isinstance(state, Mapping) else state
    lines = [HEADER]
    for record in sorted(records, key=lambda r: r.app_id):
        lines.append(f"{record.app_id},{record.outcome.code},{format_timestamp(record.seen_at)}")
    return "\n".join(lines) + "\n"


def decode_line(line: str, *, line_number: int | None = None) -> SeenRecord:
    """
    Parse one data line.

    Raises:
        MalformedRecord: If the first field is not a positive integer
    """
    parts = [part.strip() for part in line.split(",")]
    app_id_text = parts[0]
    if not app_id_text.isdigit() or not app_id_text.isascii() or int(app_id_text) <= 0:
        raise MalformedRecord(
            f"Invalid app id: {app_id_text!r}",
            raw=line,
            line_number=line_number,
        )

    return SeenRecord(
        app_id=int(app_id_text),
        outcome=Outcome.from_code(parts[1] if len(parts) > 1 else None),
        seen_at=parse_timestamp(parts[2] if len(parts) > 2 else None),
    )


def has_header(line: str) -> bool:
    """Check whether a first line names columns rather than holding data."""
    lowered = line.lower()
    return any(marker in lowered for marker in _HEADER_MARKERS)


def decode(text: str) -> DecodeResult:
    """
    Parse CSV text into seen records without touching any store.

    The first line is dropped when it looks like a header, so headerless
    files work too. Lines without a usable app id are skipped and
    counted; one bad line never spoils the rest.

    Args:
        text: CSV text

    Returns:
        DecodeResult with the parsed records and the skipped-line count
    """
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]

    header = bool(lines) and has_header(lines[0])
    data_lines = lines[1:] if header else lines

    records: list[SeenRecord] = []
    skipped = 0
    first_number = 2 if header else 1
    for number, line in enumerate(data_lines, start=first_number):
        try:
            records.append(decode_line(line, line_number=number))
        except MalformedRecord as e:
            skipped += 1
            logger.debug("Skipping malformed line", line_number=e.line_number, error=str(e))

    return DecodeResult(records=records, skipped=skipped, had_header=header)


def merge_into(store: SeenStore, records: Iterable[SeenRecord]) -> MergeResult:
    """
    Add decoded records to a store without overwriting anything.

    Games already in the store keep their outcome and timestamp; the
    imported record is counted as skipped.
    """
    return store.merge(records)


def export_filename(day: date | None = None) -> str:
    """Suggested file name for an export made on ``day`` (default today in UTC)."""
    day = day or datetime.now(timezone.utc).date()
    return f"steam-review-guesser-seen-games-{day.isoformat()}.csv"
