"""
Random game selection.

Two policies pick a game that has not been shown yet:

- PURE:  uniform over the full released catalog.
- SMART: try the balanced partitions in random order, then fall back
         to PURE once every partition is used up.

Either policy ends in Resolved (a game id) or Exhausted (every
candidate already seen). resolve_next() turns Exhausted into a fixed
fallback id so navigation always gets somewhere to go.
"""

import random
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from review_guesser.catalog.loader import AppId, CatalogLoader
from review_guesser.logger import get_logger
from review_guesser.storage.store import SeenStore

DEFAULT_FALLBACK_APP_ID = 570  # Dota 2


class SelectionMode(str, Enum):
    """Selection policy requested by the caller."""

    PURE = "pure"
    SMART = "smart"


@dataclass(frozen=True)
class Resolved:
    """An unseen game was found."""

    app_id: AppId
    pool: str


@dataclass(frozen=True)
class Exhausted:
    """Every game in the consulted pools has been seen."""

    pools: tuple[str, ...]


SelectionResult = Resolved | Exhausted


def pick_unseen(
    ids: Iterable[AppId],
    seen: set[AppId] | frozenset[AppId],
    rng: random.Random,
) -> AppId | None:
    """
    Pick one id uniformly among those not in ``seen``.

    Ids appearing several times count once.

    Returns:
        The chosen id, or None when nothing is left
    """
    unseen = [app_id for app_id in dict.fromkeys(ids) if app_id not in seen]
    if not unseen:
        return None
    return rng.choice(unseen)


class RandomSelector:
    """
    Picks the next game to show.

    Example:
        >>> selector = RandomSelector(loader, store, full_catalog="released_appids.csv")
        >>> app_id = await selector.resolve_next(SelectionMode.SMART)
    """

    def __init__(
        self,
        loader: CatalogLoader,
        store: SeenStore,
        *,
        full_catalog: str,
        partitions: Sequence[str] = (),
        fallback_app_id: AppId = DEFAULT_FALLBACK_APP_ID,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the selector.

        Args:
            loader: Catalog loader shared with other consumers
            store: Seen-state store used to filter candidates
            full_catalog: Partition holding the whole catalog
            partitions: Partitions tried first in SMART mode
            fallback_app_id: Id returned by resolve_next() on exhaustion
            rng: Randomness source (a fresh Random when None)
        """
        self._loader = loader
        self._store = store
        self._full_catalog = full_catalog
        self._partitions = tuple(partitions)
        self._fallback_app_id = fallback_app_id
        self._rng = rng or random.Random()
        self._logger = get_logger(__name__, component="selector")

    @property
    def partitions(self) -> tuple[str, ...]:
        return self._partitions

    @property
    def fallback_app_id(self) -> AppId:
        return self._fallback_app_id

    async def _pick_from(self, name: str, seen: set[AppId]) -> SelectionResult:
        ids = await self._loader.load(name)
        app_id = pick_unseen(ids, seen, self._rng)
        if app_id is None:
            self._logger.info("All games in this list have been seen", pool=name, size=len(ids))
            return Exhausted(pools=(name,))
        return Resolved(app_id=app_id, pool=name)

    async def pure(self, seen: set[AppId] | None = None) -> SelectionResult:
        """
        Pick uniformly from the full catalog.

        Args:
            seen: Seen ids to exclude (read from the store when None)
        """
        if seen is None:
            seen = self._store.seen_ids()
        return await self._pick_from(self._full_catalog, seen)

    async def smart(self, seen: set[AppId] | None = None) -> SelectionResult:
        """
        Try each partition in random order, then the full catalog.

        Args:
            seen: Seen ids to exclude (read from the store when None)
        """
        if seen is None:
            seen = self._store.seen_ids()

        order = self._rng.sample(self._partitions, len(self._partitions))
        for name in order:
            result = await self._pick_from(name, seen)
            if isinstance(result, Resolved):
                return result

        if order:
            self._logger.info("All partitions exhausted, falling back to full catalog", partitions=order)

        result = await self.pure(seen)
        if isinstance(result, Exhausted):
            return Exhausted(pools=(*order, *result.pools))
        return result

    async def select(self, mode: SelectionMode | str) -> SelectionResult:
        """Run the policy for ``mode``."""
        mode = SelectionMode(mode)
        seen = self._store.seen_ids()
        if mode is SelectionMode.SMART:
            return await self.smart(seen)
        return await self.pure(seen)

    async def resolve_next(self, mode: SelectionMode | str) -> AppId:
        """
        Get the next game to show; never fails.

        Returns:
            An unseen app id, or the fallback id when everything is seen
        """
        result = await self.select(mode)
        if isinstance(result, Resolved):
            self._logger.debug("Resolved next game", app_id=result.app_id, pool=result.pool)
            return result.app_id

        self._logger.warning(
            "Catalog exhausted, using fallback game",
            mode=SelectionMode(mode).value,
            pools=list(result.pools),
            fallback_app_id=self._fallback_app_id,
        )
        return self._fallback_app_id
