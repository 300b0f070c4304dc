"""
Seen-state store.

Keeps every shown game, with its guess outcome, as one JSON blob in a
key-value storage. The blob is decoded on every read; nothing is
cached in memory.
"""

import json
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from review_guesser.exceptions import MalformedRecord, StorageUnavailable
from review_guesser.logger import get_logger
from review_guesser.storage.backends import KeyValueStorage
from review_guesser.storage.models import (
    AppId,
    MergeResult,
    Outcome,
    SeenRecord,
    SeenState,
)

DEFAULT_SEEN_KEY = "reviewGuesser_seenGames"


def decode_entry(entry: Any) -> SeenRecord:
    """
    Decode one persisted entry.

    Accepted shapes:
    - ``{"app_id": 10, "outcome": "correct", "seen_at": "..."}`` (current)
    - ``{"appId": 10, "correct": true, "timestamp": 1700000000000}``
    - ``10`` (legacy bare id, outcome unknown)

    Raises:
        MalformedRecord: If the entry has none of these shapes
    """
    try:
        if isinstance(entry, bool):
            raise MalformedRecord("Boolean is not an app id", raw=entry)
        if isinstance(entry, int):
            return SeenRecord(app_id=entry)
        if isinstance(entry, dict):
            if "app_id" in entry:
                return SeenRecord.model_validate(entry)
            if "appId" in entry and not isinstance(entry["appId"], bool):
                correct = entry.get("correct")
                return SeenRecord(
                    app_id=entry["appId"],
                    outcome=Outcome.from_correct(correct if isinstance(correct, bool) else None),
                    seen_at=entry.get("timestamp"),
                )
    except ValidationError as e:
        raise MalformedRecord(f"Invalid seen entry: {e.error_count()} errors", raw=entry) from e

    raise MalformedRecord("Unrecognized seen entry", raw=entry)


class SeenStore:
    """
    Persistent record of which games were shown and how each guess went.

    Storage failures never reach the caller: a failed read looks like an
    empty store and a failed write is dropped after logging.

    Example:
        >>> store = SeenStore(MemoryStorage())
        >>> store.upsert(570, Outcome.CORRECT)
        >>> store.contains(570)
        True
    """

    def __init__(self, storage: KeyValueStorage, *, key: str = DEFAULT_SEEN_KEY) -> None:
        self._storage = storage
        self._key = key
        self._logger = get_logger(__name__, component="seen_store", key=key)

    @property
    def key(self) -> str:
        return self._key

    def read_all(self) -> SeenState:
        """
        Load the whole seen-state.

        Returns:
            Mapping of app id to record; empty if nothing is stored or
            the blob cannot be read
        """
        try:
            blob = self._storage.get(self._key)
        except StorageUnavailable as e:
            self._logger.warning("Failed to read seen games from storage", error=str(e))
            return {}

        if not blob:
            return {}

        try:
            data = json.loads(blob)
        except json.JSONDecodeError as e:
            self._logger.warning("Seen games blob is not valid JSON", error=str(e))
            return {}

        if not isinstance(data, list):
            self._logger.warning("Seen games blob is not a list", blob_type=type(data).__name__)
            return {}

        state: SeenState = {}
        for entry in data:
            try:
                record = decode_entry(entry)
            except MalformedRecord as e:
                self._logger.debug("Skipping malformed seen entry", entry=repr(entry), error=str(e))
                continue
            state[record.app_id] = record

        return state

    def seen_ids(self) -> set[AppId]:
        """Get the ids of every seen game."""
        return set(self.read_all())

    def contains(self, app_id: AppId) -> bool:
        """Check if a game has been seen before."""
        return app_id in self.read_all()

    def upsert(
        self,
        app_id: AppId,
        outcome: Outcome = Outcome.UNKNOWN,
        seen_at: datetime | None = None,
    ) -> SeenRecord:
        """
        Record a game as seen, replacing any earlier record for it.

        Args:
            app_id: Steam app id
            outcome: Outcome of the guess
            seen_at: When the game was shown

        Returns:
            The record as stored

        Raises:
            pydantic.ValidationError: If app_id is not a positive integer
        """
        record = SeenRecord(app_id=app_id, outcome=outcome, seen_at=seen_at)
        state = self.read_all()
        state[record.app_id] = record
        self._write(state)
        return record

    def merge(self, records: Iterable[SeenRecord]) -> MergeResult:
        """
        Add records for games not seen yet; never touch existing ones.

        A record whose id is already present, including one repeated
        earlier in ``records``, is skipped. Skipped records whose known
        outcome disagrees with the stored one are counted as conflicts.

        Args:
            records: Records to add

        Returns:
            MergeResult with imported, skipped and conflict counts
        """
        state = self.read_all()
        imported = skipped = conflicts = 0

        for record in records:
            existing = state.get(record.app_id)
            if existing is None:
                state[record.app_id] = record
                imported += 1
                continue

            skipped += 1
            if (
                existing.outcome != record.outcome
                and Outcome.UNKNOWN not in (existing.outcome, record.outcome)
            ):
                conflicts += 1

        if imported:
            self._write(state)

        result = MergeResult(imported=imported, skipped=skipped, conflicts=conflicts)
        self._logger.info(
            "Merged seen games",
            imported=result.imported,
            skipped=result.skipped,
            conflicts=result.conflicts,
        )
        return result

    def clear(self) -> None:
        """Remove every seen game."""
        try:
            self._storage.delete(self._key)
        except StorageUnavailable as e:
            self._logger.warning("Failed to clear seen games", error=str(e))
            return
        self._logger.info("Cleared seen games")

    def _write(self, state: SeenState) -> bool:
        """Persist the state; returns False if the write was dropped."""
        payload = [
            state[app_id].model_dump(mode="json")
            for app_id in sorted(state)
        ]
        try:
            self._storage.set(self._key, json.dumps(payload))
        except StorageUnavailable as e:
            self._logger.error("Failed to save seen games to storage", error=str(e))
            return False
        return True
