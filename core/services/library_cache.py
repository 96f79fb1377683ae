"""Bounded sliding-window cache of library photos.

The cache keeps fetch order. When it grows beyond its capacity the earliest
fetched records are dropped, so continuous forward pagination runs in bounded
memory at the cost of losing pages the user scrolled past.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator

from loguru import logger

from core.models import Photo

MAX_PHOTOS_IN_MEMORY = 2000


class LibraryCache:
    """Ordered, capacity-bounded sequence of `Photo` with unique ids."""

    def __init__(self, capacity: int = MAX_PHOTOS_IN_MEMORY) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive: {capacity}")
        self._capacity = capacity
        self._items: list[Photo] = []
        self._revision = 0
        self._evicted = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def evicted(self) -> int:
        """Records dropped from the head since the last replace or clear."""
        return self._evicted

    @property
    def window_end(self) -> int:
        """Position just past the last cached record in the fetched stream."""
        return self._evicted + len(self._items)

    @property
    def revision(self) -> int:
        """Counter bumped on every mutation; derived views key on it."""
        return self._revision

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Photo]:
        return iter(self._items)

    def __contains__(self, photo_id: object) -> bool:
        return any(p.id == photo_id for p in self._items)

    def snapshot(self) -> tuple[Photo, ...]:
        """Immutable view of the current contents in fetch order."""
        return tuple(self._items)

    def get(self, photo_id: int) -> Photo | None:
        for p in self._items:
            if p.id == photo_id:
                return p
        return None

    def append(self, batch: Iterable[Photo]) -> int:
        """Append `batch` at the tail and evict from the head past capacity.

        Returns the number of evicted records.
        """
        combined = _dedupe(self._items + list(batch))
        evicted = max(0, len(combined) - self._capacity)
        if evicted:
            combined = combined[evicted:]
            self._evicted += evicted
            logger.info(
                "Evicted {} photos from cache (cap: {})", evicted, self._capacity
            )
        self._items = combined
        self._touch()
        return evicted

    def replace_all(self, batch: Iterable[Photo]) -> None:
        """Replace the contents with `batch`, keeping at most `capacity` tail items."""
        items = _dedupe(list(batch))
        self._evicted = max(0, len(items) - self._capacity)
        if self._evicted:
            items = items[self._evicted :]
        self._items = items
        self._touch()

    def mutate(self, photo_id: int, updater: Callable[[Photo], None]) -> bool:
        """Apply `updater` in place to the cached record; no-op when absent."""
        photo = self.get(photo_id)
        if photo is None:
            return False
        updater(photo)
        self._touch()
        return True

    def remove_where(self, photo_ids: Iterable[int]) -> int:
        """Drop all records whose id is in `photo_ids`; return how many went."""
        ids = set(photo_ids)
        if not ids:
            return 0
        kept = [p for p in self._items if p.id not in ids]
        removed = len(self._items) - len(kept)
        if removed:
            self._items = kept
            self._touch()
        return removed

    def clear(self) -> None:
        self._items = []
        self._evicted = 0
        self._touch()

    def _touch(self) -> None:
        self._revision += 1


def _dedupe(items: list[Photo]) -> list[Photo]:
    """Keep the last occurrence of each id at its position."""
    last_index = {p.id: i for i, p in enumerate(items)}
    if len(last_index) == len(items):
        return items
    return [p for i, p in enumerate(items) if last_index[p.id] == i]
