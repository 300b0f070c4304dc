"""
Catalog loader.

Loads named catalog partitions (one app id per line), parses them and
keeps the result for the lifetime of the loader. Each partition is
fetched at most once: callers asking for a partition that is still
being fetched wait on that same fetch.
"""

import asyncio
import re
from dataclasses import dataclass

from review_guesser.catalog.sources import CatalogSource
from review_guesser.exceptions import SourceUnavailable
from review_guesser.logger import get_logger

AppId = int

_DIGITS = re.compile(r"^\d+$")


@dataclass(frozen=True)
class CatalogPartition:
    """A loaded, immutable catalog partition."""

    name: str
    ids: tuple[AppId, ...]

    def __len__(self) -> int:
        return len(self.ids)


def parse_catalog_text(text: str) -> tuple[AppId, ...]:
    """
    Parse raw partition text into app ids.

    A line counts only when, once trimmed, it is nothing but decimal
    digits. Blank lines, headers and anything malformed are dropped, as
    is ``0`` since it does not name an app.

    Args:
        text: Raw partition text

    Returns:
        App ids in file order
    """
    ids = []
    for line in text.splitlines():
        line = line.strip()
        if not _DIGITS.match(line):
            continue
        app_id = int(line)
        if app_id > 0:
            ids.append(app_id)
    return tuple(ids)


class CatalogLoader:
    """
    Single-flight, process-lifetime cache of catalog partitions.

    Every name is either in flight (a task other callers can await) or
    resolved (an immutable tuple). A partition whose fetch failed
    resolves to an empty tuple and stays that way.

    Example:
        >>> loader = CatalogLoader(FileCatalogSource(Path("data")))
        >>> ids = await loader.load("Batch_1.csv")
    """

    def __init__(self, source: CatalogSource) -> None:
        self._source = source
        self._resolved: dict[str, tuple[AppId, ...]] = {}
        self._in_flight: dict[str, asyncio.Task[tuple[AppId, ...]]] = {}
        self._logger = get_logger(__name__, component="catalog_loader")

    @property
    def source(self) -> CatalogSource:
        return self._source

    @property
    def cached(self) -> list[str]:
        """Names of partitions resolved so far."""
        return list(self._resolved)

    def is_loaded(self, name: str) -> bool:
        return name in self._resolved

    async def load(self, name: str) -> tuple[AppId, ...]:
        """
        Get the app ids of a partition, fetching it on first use.

        Never raises for an unavailable partition; an empty tuple means
        the partition could not be loaded.

        Args:
            name: Partition name, e.g. "Batch_1.csv"

        Returns:
            App ids of the partition
        """
        if name in self._resolved:
            return self._resolved[name]

        task = self._in_flight.get(name)
        if task is None:
            task = asyncio.create_task(self._fetch(name), name=f"catalog:{name}")
            self._in_flight[name] = task

        # A cancelled waiter must not cancel the fetch other waiters share
        return await asyncio.shield(task)

    async def partition(self, name: str) -> CatalogPartition:
        """Load a partition and wrap it with its name."""
        return CatalogPartition(name=name, ids=await self.load(name))

    async def _fetch(self, name: str) -> tuple[AppId, ...]:
        try:
            text = await self._source.fetch_text(name)
            ids = parse_catalog_text(text)
            self._logger.info("Partition loaded", partition=name, count=len(ids))
        except SourceUnavailable as e:
            self._logger.warning(
                "Failed to load partition",
                partition=name,
                error=str(e),
                status_code=e.status_code,
            )
            ids = ()
        except Exception as e:
            self._logger.error(
                "Unexpected error loading partition",
                partition=name,
                error=str(e),
                exc_info=True,
            )
            ids = ()
        finally:
            self._in_flight.pop(name, None)

        self._resolved[name] = ids
        return ids
