"""Sorting service for library photo sequences.

Sorting never mutates the input. Python's sort is stable in both directions,
so records with equal keys keep their input order, which for the library view
is fetch order.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
import locale
from typing import Any

from core.models import Photo, SortBy


def _name_key(photo: Photo) -> tuple[str, str]:
    # Case-insensitive collation first, raw name to order case variants
    return (locale.strxfrm(photo.filename.casefold()), locale.strxfrm(photo.filename))


def _date_key(photo: Photo) -> Any:
    return photo.effective_date


def _size_key(photo: Photo) -> int:
    return photo.size_bytes


# sort_by -> (key, descending)
_SORT_KEYS: dict[SortBy, tuple[Callable[[Photo], Any], bool]] = {
    SortBy.DATE_DESC: (_date_key, True),
    SortBy.DATE_ASC: (_date_key, False),
    SortBy.NAME_ASC: (_name_key, False),
    SortBy.NAME_DESC: (_name_key, True),
    SortBy.SIZE_DESC: (_size_key, True),
    SortBy.SIZE_ASC: (_size_key, False),
}


class SortService:
    """Provides sorting utilities for `Photo` sequences."""

    def sort_photos(self, photos: Iterable[Photo], sort_by: SortBy | str) -> list[Photo]:
        """Return a new list of `photos` ordered by `sort_by`.

        Args:
            photos: Photos in their current (fetch) order.
            sort_by: A `SortBy` member or its string value, e.g. "date-desc".

        Raises:
            ValueError: If `sort_by` is not a known sort order.
        """
        key, descending = _SORT_KEYS[SortBy(sort_by)]
        return sorted(photos, key=key, reverse=descending)
