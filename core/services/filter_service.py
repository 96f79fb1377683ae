"""Filter pipeline deriving the visible photo sequence.

The pipeline is a pure function of its arguments. Each stage narrows the
output of the previous one in a fixed order:

1. source (only in the `source` section, when an active source is set)
2. section (favorites, videos, recents)
3. search (case-insensitive substring on filename, path or folder)
4. media type (skipped in the `videos` section)
5. folder (exact match)
6. year
7. month (only together with a year)
8. sort

Album and tag views load an already narrowed set into the cache, so stages
4 to 7 are skipped for them; search and sort still apply.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from core.models import FilterState, MediaType, Photo, Section, SortBy, as_local
from core.services.sort_service import SortService

RECENTS_DAYS = 30

_PRE_NARROWED_SECTIONS = frozenset({Section.ALBUM, Section.TAG})


def _matches_query(photo: Photo, needle: str) -> bool:
    return (
        needle in photo.filename.casefold()
        or needle in photo.path.casefold()
        or needle in photo.folder_rel.casefold()
    )


class FilterService:
    """Computes the filtered, sorted view over a sequence of photos."""

    def __init__(self, sorter: SortService | None = None) -> None:
        self._sorter = sorter or SortService()

    # pylint: disable-next=too-many-arguments
    def apply(
        self,
        photos: Iterable[Photo],
        filters: FilterState,
        query: str = "",
        sort_by: SortBy | str = SortBy.DATE_DESC,
        section: Section | str = Section.ALL,
        active_source: str | None = None,
        now: datetime | None = None,
    ) -> list[Photo]:
        """Return the visible photos for the given view state.

        Args:
            photos: Cached photos in fetch order. Not modified.
            filters: Folder, year, month and media-type filters.
            query: Free-text search; blank disables the search stage.
            sort_by: Sort order applied last.
            section: Active sidebar section.
            active_source: Source id used by the `source` section.
            now: Reference instant for the recents window (defaults to now).
        """
        section = Section(section)
        result = list(photos)

        if section is Section.SOURCE and active_source:
            result = [p for p in result if p.source == active_source]

        if section is Section.FAVORITES:
            result = [p for p in result if p.is_favorite]
        elif section is Section.VIDEOS:
            result = [p for p in result if p.media_type is MediaType.VIDEO]
        elif section is Section.RECENTS:
            current = as_local(now) if now else datetime.now()
            cutoff = current - timedelta(days=RECENTS_DAYS)
            result = [p for p in result if cutoff <= p.effective_date <= current]

        needle = query.strip().casefold()
        if needle:
            result = [p for p in result if _matches_query(p, needle)]

        if section not in _PRE_NARROWED_SECTIONS:
            result = self._apply_filters(result, filters, section)

        return self._sorter.sort_photos(result, sort_by)

    @staticmethod
    def _apply_filters(
        photos: list[Photo], filters: FilterState, section: Section
    ) -> list[Photo]:
        result = photos
        if section is not Section.VIDEOS:
            types = filters.selected_media_types
            result = [p for p in result if p.media_type in types]

        if filters.selected_folder:
            result = [p for p in result if p.folder_rel == filters.selected_folder]

        year = filters.selected_year
        if year is not None:
            result = [p for p in result if p.effective_date.year == year]
            month = filters.selected_month
            if month is not None:
                result = [p for p in result if p.effective_date.month == month]

        return result
