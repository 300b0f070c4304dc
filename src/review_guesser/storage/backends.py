"""
Durable key-value storage backends for the seen-state blob.

Backends store opaque strings under string keys and report any I/O
problem as StorageUnavailable.
"""

import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from review_guesser.exceptions import StorageUnavailable


@runtime_checkable
class KeyValueStorage(Protocol):
    """Minimal string key-value storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage, used for tests and embedding."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._data


class JsonFileStorage:
    """
    One file per key inside a directory.

    Writes go to a temporary file first and are moved into place, so a
    crash mid-write leaves the previous value intact.

    Example:
        >>> storage = JsonFileStorage(Path(".review_guesser"))
        >>> storage.set("reviewGuesser_seenGames", "[]")
    """

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        """Get the file backing a key."""
        return self._directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageUnavailable(
                f"Failed to read {path}",
                source="file",
                key=key,
                original_error=e,
            ) from e

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            raise StorageUnavailable(
                f"Failed to write {path}",
                source="file",
                key=key,
                original_error=e,
            ) from e

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageUnavailable(
                f"Failed to delete {path}",
                source="file",
                key=key,
                original_error=e,
            ) from e
