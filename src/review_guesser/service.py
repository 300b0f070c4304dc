"""
Review guesser service.

Wires the catalog loader, seen store, selector and CSV codec together
and exposes the operations the host (browser page or CLI) calls.
"""

import random
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any

from pydantic import ValidationError

from review_guesser.catalog import (
    AppId,
    CatalogLoader,
    CatalogSource,
    FileCatalogSource,
    HttpCatalogSource,
)
from review_guesser.codec import decode, encode, export_filename, merge_into
from review_guesser.config import Settings, get_settings
from review_guesser.exceptions import ImportReadError, NothingToExport, NothingToImport
from review_guesser.logger import get_logger
from review_guesser.selection import RandomSelector, SelectionMode
from review_guesser.storage import (
    JsonFileStorage,
    KeyValueStorage,
    MergeResult,
    Outcome,
    SeenRecord,
    SeenStats,
    SeenStore,
    summarize,
)


def _coerce_app_id(value: Any) -> AppId:
    """Turn an int or numeric string into an app id without silent truncation."""
    if isinstance(value, bool):
        raise TypeError(f"Not an app id: {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Not an app id: {value!r}")
        return int(value)
    return int(value)


@dataclass(frozen=True)
class ImportSummary:
    """Merge counts plus the number of lines that could not be parsed."""

    imported: int
    skipped: int
    conflicts: int
    malformed: int

    @classmethod
    def from_merge(cls, merge: MergeResult, malformed: int) -> "ImportSummary":
        return cls(
            imported=merge.imported,
            skipped=merge.skipped,
            conflicts=merge.conflicts,
            malformed=malformed,
        )

    @property
    def total_skipped(self) -> int:
        """Games already seen plus lines that were invalid."""
        return self.skipped + self.malformed

    def to_dict(self) -> dict[str, int]:
        return {
            "imported": self.imported,
            "skipped": self.total_skipped,
            "already_seen": self.skipped,
            "invalid": self.malformed,
            "conflicts": self.conflicts,
        }


class ReviewGuesserService:
    """
    Entry point for selection, seen-marking, export and import.

    Example:
        >>> async with ReviewGuesserService.from_settings() as service:
        ...     app_id = await service.resolve_next("smart")
        ...     service.mark_seen(app_id, True)
    """

    def __init__(
        self,
        *,
        source: CatalogSource,
        storage: KeyValueStorage,
        settings: Settings | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._source = source
        self.loader = CatalogLoader(source)
        self.store = SeenStore(storage, key=self._settings.storage.seen_key)
        self.selector = RandomSelector(
            self.loader,
            self.store,
            full_catalog=self._settings.catalog.full_catalog,
            partitions=self._settings.catalog.partitions,
            fallback_app_id=self._settings.selection.fallback_app_id,
            rng=rng,
        )
        self._logger = get_logger(__name__, component="service")

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        rng: random.Random | None = None,
    ) -> "ReviewGuesserService":
        """Build the service with the sources and storage named in settings."""
        settings = settings or get_settings()
        catalog = settings.catalog

        source: CatalogSource
        if catalog.base_url:
            source = HttpCatalogSource(catalog.base_url, timeout=catalog.timeout_seconds)
        else:
            source = FileCatalogSource(catalog.data_dir)

        return cls(
            source=source,
            storage=JsonFileStorage(settings.storage.path),
            settings=settings,
            rng=rng,
        )

    async def close(self) -> None:
        """Release the catalog source."""
        close = getattr(self._source, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "ReviewGuesserService":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def resolve_next(self, mode: SelectionMode | str = SelectionMode.PURE) -> AppId:
        """Get the next game to show; falls back to a fixed id when all are seen."""
        return await self.selector.resolve_next(mode)

    def store_url(self, app_id: AppId) -> str:
        """Store page URL for a game."""
        return self._settings.selection.store_url_template.format(app_id=app_id)

    def mark_seen(
        self,
        app_id: AppId | str,
        outcome: Outcome | bool | None = None,
        *,
        seen_at: datetime | None = None,
    ) -> SeenRecord | None:
        """
        Record the outcome of a guess, replacing any earlier one.

        Args:
            app_id: Steam app id (numeric strings are accepted)
            outcome: Outcome, or True/False for a correct/incorrect guess
            seen_at: When the game was shown (default: now)

        Returns:
            The stored record, or None if app_id is not a valid id
        """
        if not isinstance(outcome, Outcome):
            outcome = Outcome.from_correct(outcome)

        try:
            record = self.store.upsert(
                _coerce_app_id(app_id),
                outcome,
                seen_at or datetime.now(timezone.utc),
            )
        except (TypeError, ValueError, ValidationError) as e:
            self._logger.warning("Ignoring invalid app id", app_id=repr(app_id), error=str(e))
            return None

        self._logger.info("Marked game as seen", app_id=record.app_id, outcome=record.outcome.value)
        return record

    def has_seen(self, app_id: AppId | str) -> bool:
        """Check if a game has been seen before."""
        try:
            return self.store.contains(_coerce_app_id(app_id))
        except (TypeError, ValueError):
            return False

    def clear_seen(self) -> None:
        """Forget every seen game."""
        self.store.clear()

    def stats(self) -> SeenStats:
        """Counts of seen games per outcome."""
        return summarize(self.store.read_all())

    def export_seen(self) -> bytes:
        """
        Serialize every seen game to UTF-8 CSV.

        Raises:
            NothingToExport: If no games have been seen yet
        """
        state = self.store.read_all()
        if not state:
            raise NothingToExport("No games have been seen yet!")

        self._logger.info("Exporting seen games", count=len(state))
        return encode(state).encode("utf-8")

    def export_filename(self, day: date | None = None) -> str:
        return export_filename(day)

    def import_seen(self, data: bytes) -> ImportSummary:
        """
        Merge an exported CSV into the seen state without overwriting.

        Args:
            data: Raw bytes of the user-supplied file

        Returns:
            ImportSummary with imported, skipped and invalid counts

        Raises:
            ImportReadError: If the bytes are not UTF-8 text
            NothingToImport: If the file is empty or holds only a header
        """
        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ImportReadError("Failed to read the file.", original_error=e) from e

        if not text.strip():
            raise NothingToImport("The CSV file is empty.")

        decoded = decode(text)
        if not decoded.records and not decoded.skipped:
            raise NothingToImport("No data found in CSV file (only header).")

        summary = ImportSummary.from_merge(merge_into(self.store, decoded.records), decoded.skipped)
        self._logger.info("Import complete", **summary.to_dict())
        return summary
