"""Tests for random game selection."""

import random
from collections import Counter

import pytest

from review_guesser.catalog import CatalogLoader
from review_guesser.exceptions import SourceUnavailable
from review_guesser.selection import (
    Exhausted,
    RandomSelector,
    Resolved,
    SelectionMode,
    pick_unseen,
)
from review_guesser.storage import MemoryStorage, Outcome, SeenStore

FULL = "released_appids.csv"


class DictSource:
    """Catalog source serving partitions from a dict; missing names fail."""

    def __init__(self, partitions: dict[str, list[int]]) -> None:
        self._partitions = partitions
        self.fetched: list[str] = []

    async def fetch_text(self, name: str) -> str:
        self.fetched.append(name)
        if name not in self._partitions:
            raise SourceUnavailable("missing", key=name, status_code=404)
        return "\n".join(str(app_id) for app_id in self._partitions[name])


def make_selector(
    partitions: dict[str, list[int]],
    seen: list[int] = (),
    *,
    batches: list[str] | None = None,
    seed: int = 1,
) -> tuple[RandomSelector, SeenStore, DictSource]:
    source = DictSource(partitions)
    store = SeenStore(MemoryStorage())
    for app_id in seen:
        store.upsert(app_id, Outcome.CORRECT)
    selector = RandomSelector(
        CatalogLoader(source),
        store,
        full_catalog=FULL,
        partitions=batches if batches is not None else [n for n in partitions if n != FULL],
        fallback_app_id=570,
        rng=random.Random(seed),
    )
    return selector, store, source


class TestPickUnseen:
    """Tests for the unseen filter."""

    def test_excludes_seen(self) -> None:
        """Test that seen ids are never chosen."""
        rng = random.Random(0)
        for _ in range(200):
            assert pick_unseen([1, 2, 3], {2}, rng) in (1, 3)

    def test_none_when_all_seen(self) -> None:
        """Test exhaustion signal."""
        assert pick_unseen([1, 2], {1, 2, 3}, random.Random(0)) is None
        assert pick_unseen([], set(), random.Random(0)) is None

    def test_duplicates_count_once(self) -> None:
        """Test that a repeated id is not favored."""
        rng = random.Random(5)
        counts = Counter(pick_unseen([1, 1, 1, 1, 2], set(), rng) for _ in range(4000))

        assert counts[1] / 4000 == pytest.approx(0.5, abs=0.05)


class TestPureRandom:
    """Tests for uniform selection over the full catalog."""

    @pytest.mark.asyncio
    async def test_roughly_uniform_over_unseen(self) -> None:
        """Test catalog [1,2,3] with {2} seen picks 1 and 3 about equally."""
        selector, _, _ = make_selector({FULL: [1, 2, 3]}, seen=[2])

        counts: Counter[int] = Counter()
        for _ in range(2000):
            result = await selector.pure()
            assert isinstance(result, Resolved)
            counts[result.app_id] += 1

        assert set(counts) == {1, 3}
        assert counts[1] / 2000 == pytest.approx(0.5, abs=0.05)

    @pytest.mark.asyncio
    async def test_exhausted_when_all_seen(self) -> None:
        """Test that a fully seen catalog is exhausted."""
        selector, _, _ = make_selector({FULL: [1, 2, 3]}, seen=[1, 2, 3])

        assert await selector.pure() == Exhausted(pools=(FULL,))

    @pytest.mark.asyncio
    async def test_exhausted_when_catalog_unavailable(self) -> None:
        """Test that an unavailable catalog counts as exhausted."""
        selector, _, _ = make_selector({})

        assert isinstance(await selector.pure(), Exhausted)

    @pytest.mark.asyncio
    async def test_seen_read_from_store(self) -> None:
        """Test that newly marked games drop out of selection."""
        selector, store, _ = make_selector({FULL: [1, 2]})
        store.upsert(1, Outcome.INCORRECT)

        assert await selector.pure() == Resolved(app_id=2, pool=FULL)

        store.upsert(2, Outcome.CORRECT)
        assert isinstance(await selector.pure(), Exhausted)


class TestSmartRandom:
    """Tests for partition-first selection."""

    @pytest.mark.asyncio
    async def test_resolves_from_a_partition(self) -> None:
        """Test that a partition result is returned before the full catalog."""
        selector, _, source = make_selector({"a": [10], "b": [20], FULL: [99]})

        result = await selector.smart()

        assert isinstance(result, Resolved)
        assert result.app_id in (10, 20)
        assert result.pool in ("a", "b")
        assert FULL not in source.fetched

    @pytest.mark.asyncio
    async def test_skips_exhausted_partitions(self) -> None:
        """Test that exhausted partitions are passed over."""
        selector, _, _ = make_selector({"a": [1], "b": [2], "c": [3], FULL: [1, 2, 3]}, seen=[1, 3])

        for _ in range(20):
            assert await selector.smart() == Resolved(app_id=2, pool="b")

    @pytest.mark.asyncio
    async def test_falls_back_to_full_catalog(self) -> None:
        """Test fallback once every partition is exhausted."""
        selector, _, source = make_selector({"a": [1], "b": [2], FULL: [1, 2, 3]}, seen=[1, 2])

        result = await selector.smart()

        assert result == Resolved(app_id=3, pool=FULL)
        assert set(source.fetched) == {"a", "b", FULL}

    @pytest.mark.asyncio
    async def test_unavailable_partitions_fall_back(self) -> None:
        """Test that failed partitions behave like exhausted ones."""
        selector, _, _ = make_selector({FULL: [4]}, batches=["missing_1", "missing_2"])

        assert await selector.smart() == Resolved(app_id=4, pool=FULL)

    @pytest.mark.asyncio
    async def test_exhausted_everywhere(self) -> None:
        """Test exhaustion after the fallback also runs dry."""
        selector, _, _ = make_selector({"a": [1], FULL: [1]}, seen=[1])

        result = await selector.smart()

        assert isinstance(result, Exhausted)
        assert result.pools == ("a", FULL)

    @pytest.mark.asyncio
    async def test_no_partitions_is_pure(self) -> None:
        """Test that smart selection without partitions uses the full catalog."""
        selector, _, _ = make_selector({FULL: [8]}, batches=[])

        assert await selector.smart() == Resolved(app_id=8, pool=FULL)

    @pytest.mark.asyncio
    async def test_partition_order_is_shuffled(self) -> None:
        """Test that every partition is tried first at some point."""
        selector, _, _ = make_selector({"a": [1], "b": [2], "c": [3], FULL: [1, 2, 3]}, seed=7)

        pools = {(await selector.smart()).pool for _ in range(100)}

        assert pools == {"a", "b", "c"}


class TestResolveNext:
    """Tests for the total selection entry point."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", [SelectionMode.PURE, SelectionMode.SMART, "pure", "smart"])
    async def test_returns_unseen(self, mode: SelectionMode | str) -> None:
        """Test both modes return the only unseen game."""
        selector, _, _ = make_selector({"a": [1, 2], FULL: [1, 2]}, seen=[1])

        assert await selector.resolve_next(mode) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", [SelectionMode.PURE, SelectionMode.SMART])
    async def test_fallback_on_exhaustion(self, mode: SelectionMode) -> None:
        """Test that exhaustion yields the fixed fallback id."""
        selector, _, _ = make_selector({"a": [1], FULL: [1]}, seen=[1])

        assert await selector.resolve_next(mode) == 570

    @pytest.mark.asyncio
    async def test_pure_mode_ignores_partitions(self) -> None:
        """Test that pure mode only loads the full catalog."""
        selector, _, source = make_selector({"a": [1], FULL: [2]})

        assert await selector.resolve_next(SelectionMode.PURE) == 2
        assert source.fetched == [FULL]

    @pytest.mark.asyncio
    async def test_unknown_mode(self) -> None:
        """Test that an unknown mode is rejected."""
        selector, _, _ = make_selector({FULL: [1]})

        with pytest.raises(ValueError):
            await selector.resolve_next("chaotic")
