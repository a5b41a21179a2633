from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from photostore.cache.listing_cache import ListingCache
from photostore.models import PhotoReference


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _refs(*ids: str) -> List[PhotoReference]:
    return [
        PhotoReference(id=i, optimized_path=Path(f"{i}.jpg"), thumbnail_path=Path(f"{i}_thumb.jpg"), timestamp=n)
        for n, i in enumerate(ids)
    ]


class CountingLoader:
    def __init__(self, photos: List[PhotoReference]) -> None:
        self.photos = photos
        self.calls = 0

    def __call__(self) -> List[PhotoReference]:
        self.calls += 1
        return list(self.photos)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def test_cold_read_populates_snapshot(clock: FakeClock) -> None:
    cache = ListingCache(ttl=5.0, clock=clock)
    loader = CountingLoader(_refs("a", "b", "c"))

    assert [p.id for p in cache.get_window(10, 0, loader)] == ["a", "b", "c"]
    assert loader.calls == 1
    assert cache.snapshot is not None
    assert cache.snapshot.captured_at == clock.now


def test_fresh_snapshot_is_served_without_loading(clock: FakeClock) -> None:
    cache = ListingCache(ttl=5.0, clock=clock)
    loader = CountingLoader(_refs("a", "b"))
    cache.get_window(10, 0, loader)

    loader.photos = _refs("changed")
    clock.now += 4.9

    assert [p.id for p in cache.get_window(10, 0, loader)] == ["a", "b"]
    assert loader.calls == 1


def test_expired_snapshot_is_reloaded(clock: FakeClock) -> None:
    cache = ListingCache(ttl=5.0, clock=clock)
    loader = CountingLoader(_refs("a"))
    cache.get_window(10, 0, loader)

    loader.photos = _refs("b")
    clock.now += 5.0

    assert [p.id for p in cache.get_window(10, 0, loader)] == ["b"]
    assert loader.calls == 2


def test_window_slicing(clock: FakeClock) -> None:
    cache = ListingCache(ttl=5.0, clock=clock)
    loader = CountingLoader(_refs("1", "2", "3", "4", "5"))

    assert [p.id for p in cache.get_window(2, 1, loader)] == ["2", "3"]
    assert [p.id for p in cache.get_window(10, 3, loader)] == ["4", "5"]
    assert cache.get_window(2, 10, loader) == []
    assert cache.get_window(0, 0, loader) == []
    assert loader.calls == 1


def test_negative_window_is_rejected(clock: FakeClock) -> None:
    cache = ListingCache(ttl=5.0, clock=clock)
    with pytest.raises(ValueError):
        cache.get_window(-1, 0, CountingLoader([]))
    with pytest.raises(ValueError):
        cache.get_window(1, -1, CountingLoader([]))


def test_invalidate_forces_cold_read(clock: FakeClock) -> None:
    cache = ListingCache(ttl=5.0, clock=clock)
    loader = CountingLoader(_refs("a"))
    cache.get_window(10, 0, loader)

    cache.invalidate()
    assert cache.snapshot is None

    loader.photos = []
    assert cache.get_window(10, 0, loader) == []
    assert loader.calls == 2


def test_invalidation_during_cold_read_discards_result(clock: FakeClock) -> None:
    cache = ListingCache(ttl=5.0, clock=clock)

    def racing_loader() -> List[PhotoReference]:
        # A delete lands while the listing is being rebuilt.
        cache.invalidate()
        return _refs("deleted")

    assert [p.id for p in cache.get_window(10, 0, racing_loader)] == ["deleted"]
    assert cache.snapshot is None
