"""Sidebar categories derived from the cached photos.

Folder visibility combines the distinct folders in the cache with the user's
hidden/pinned folder settings. Year and month lists feed the date filters.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from core.models import Photo


class FolderSettings(Protocol):
    """Subset of the persisted settings used for folder visibility."""

    hidden_folders: list[str]
    pinned_folders: list[str]
    max_visible_folders: int


class FolderService:
    """Derives folder, year and month lists; all methods are pure."""

    def folders(self, photos: Iterable[Photo]) -> list[str]:
        """Distinct non-empty relative folders, sorted."""
        return sorted({p.folder_rel for p in photos if p.folder_rel})

    def visible_folders(self, photos: Iterable[Photo], settings: FolderSettings) -> list[str]:
        """Folders not hidden, pinned first then alphabetical, capped in count."""
        hidden = set(settings.hidden_folders)
        pinned = set(settings.pinned_folders)
        visible = [f for f in self.folders(photos) if f not in hidden]
        visible.sort(key=lambda f: (f not in pinned, f))
        return visible[: max(0, settings.max_visible_folders)]

    def years(self, photos: Iterable[Photo]) -> list[int]:
        """Distinct effective-date years, newest first."""
        return sorted({p.effective_date.year for p in photos}, reverse=True)

    def months(self, photos: Iterable[Photo], year: int | None) -> list[int]:
        """Distinct 1-based months present in `year`; empty without a year."""
        if year is None:
            return []
        return sorted({p.effective_date.month for p in photos if p.effective_date.year == year})
