"""Incremental forward pagination against a `PhotoRepository`.

The controller is the only writer of the library cache for paged loads. Its
`is_loading_more` flag is a cooperative guard: it relies on a single event
loop and prevents overlapping fetches without cancelling one in flight.
"""

from __future__ import annotations

from loguru import logger

from core.services.interfaces import PhotoRepository
from core.services.library_cache import LibraryCache

PAGE_SIZE = 100


class PaginationController:
    """Drives `fetch_page` calls and applies their results to the cache."""

    def __init__(
        self, repo: PhotoRepository, cache: LibraryCache, page_size: int = PAGE_SIZE
    ) -> None:
        if page_size <= 0:
            raise ValueError(f"page_size must be positive: {page_size}")
        self._repo = repo
        self._cache = cache
        self.page_size = page_size
        self.has_more = True
        self.is_loading_more = False

    @property
    def cache(self) -> LibraryCache:
        return self._cache

    def reset(self) -> None:
        """Allow paging again, e.g. after the cache was replaced externally."""
        self.has_more = True

    async def load_first_page(self) -> int:
        """Replace the cache with the first page and return its length.

        On failure the error propagates and cache and `has_more` stay as they were.
        """
        page = await self._repo.fetch_page(limit=self.page_size, offset=0)
        self._cache.replace_all(page)
        self.has_more = len(page) >= self.page_size
        logger.info("Loaded first page: {} photos, has_more={}", len(page), self.has_more)
        return len(page)

    async def load_more(self) -> int:
        """Fetch the page following the cached window and append it.

        The offset is the cache length plus the records evicted from its head,
        which equals `len(cache)` until the first eviction.
        Returns the number of fetched records, 0 when skipped by the guard.
        """
        if self.is_loading_more or not self.has_more:
            return 0
        self.is_loading_more = True
        try:
            offset = self._cache.window_end
            page = await self._repo.fetch_page(limit=self.page_size, offset=offset)
            if not page:
                self.has_more = False
                logger.info("No more photos after offset {}", offset)
                return 0
            self._cache.append(page)
            self.has_more = len(page) >= self.page_size
            logger.debug(
                "Loaded {} photos at offset {}, has_more={}", len(page), offset, self.has_more
            )
            return len(page)
        finally:
            self.is_loading_more = False
