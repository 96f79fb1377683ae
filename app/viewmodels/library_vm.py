"""ViewModel owning the library view state and its derived outputs.

State lives here and in the library cache; derived outputs (filtered photos,
date groups, folder lists, counts) are recomputed on read when one of their
inputs changed. Mutating operations call the repository first and touch local
state only after it succeeds. Failures are logged, reported through the
`notify` callback, and leave local state as it was.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime
import re
from typing import Any, TypeVar

from loguru import logger

from core.models import (
    Album,
    DateGroup,
    FilterState,
    Photo,
    Section,
    SortBy,
    SourceDirectory,
    Tag,
)
from core.services.filter_service import FilterService
from core.services.folder_service import FolderService
from core.services.grouping_service import GroupingService
from core.services.interfaces import LibraryError, PhotoRepository
from core.services.library_cache import MAX_PHOTOS_IN_MEMORY, LibraryCache
from core.services.pagination import PAGE_SIZE, PaginationController
from core.services.selection_service import SelectionManager
from infrastructure.debounce import DEFAULT_DELAY, Debouncer
from infrastructure.settings import SettingsStore

T = TypeVar("T")

Notifier = Callable[[str, str], None]


def _log_notify(title: str, message: str) -> None:
    logger.warning("{}: {}", title, message)


class LibraryVM:  # pylint: disable=too-many-instance-attributes,too-many-public-methods
    """Library view-model.

    Mediates between a `PhotoRepository` and the UI: owns view state, the
    sliding-window cache and selection, and exposes derived outputs.
    """

    def __init__(
        self,
        repo: PhotoRepository,
        settings: SettingsStore,
        notify: Notifier | None = None,
        page_size: int = PAGE_SIZE,
        capacity: int = MAX_PHOTOS_IN_MEMORY,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Create a LibraryVM.

        Args:
            repo: Asynchronous photo repository.
            settings: Persisted settings used for folder visibility.
            notify: Non-blocking user notification `(title, message)`;
                defaults to logging.
            page_size: Records per page fetch.
            capacity: Maximum records held in memory.
            clock: Source of the current local time for recents and grouping.
        """
        self._repo = repo
        self._settings = settings
        self._notify = notify or _log_notify
        self._clock = clock
        self.cache = LibraryCache(capacity)
        self.pager = PaginationController(repo, self.cache, page_size)
        self.selection = SelectionManager()
        self._filter_service = FilterService()
        self._grouping = GroupingService()
        self._folders = FolderService()

        self.filters = FilterState()
        self.search_query = ""
        self.sort_by = SortBy.DATE_DESC
        self.section = Section.ALL
        self.active_source: str | None = None
        self.active_resource_id: int | None = None
        self.selected_photo: Photo | None = None

        self.source_directories: list[SourceDirectory] = []
        self.total_photo_count = 0
        self.tags: list[Tag] = []
        self.albums: list[Album] = []
        self.is_loading = False

        self._state_revision = 0
        self._memo: dict[str, tuple[tuple[Any, ...], Any]] = {}
        self._search_debouncer = Debouncer(self.set_search_query, DEFAULT_DELAY)

    # ── Derived state ──

    def _invalidate(self) -> None:
        self._state_revision += 1

    def _settings_key(self) -> tuple[Any, ...]:
        s = self._settings.settings
        return (tuple(s.hidden_folders), tuple(s.pinned_folders), s.max_visible_folders)

    def _derive(self, name: str, key: tuple[Any, ...], compute: Callable[[], T]) -> T:
        cached = self._memo.get(name)
        if cached is not None and cached[0] == key:
            return cached[1]
        value = compute()
        self._memo[name] = (key, value)
        return value

    def _view_key(self) -> tuple[Any, ...]:
        # Recents is keyed to the minute, the other views to the day
        now = self._clock()
        if self.section is Section.RECENTS:
            tick: Any = now.replace(second=0, microsecond=0)
        else:
            tick = now.date()
        return (self.cache.revision, self._state_revision, tick)

    @property
    def filtered_photos(self) -> tuple[Photo, ...]:
        """Visible photos after section, search, filters and sort.

        Returned as a tuple since the value is shared between reads.
        """
        return self._derive(
            "filtered",
            self._view_key(),
            lambda: tuple(
                self._filter_service.apply(
                    self.cache,
                    self.filters,
                    self.search_query,
                    self.sort_by,
                    self.section,
                    self.active_source,
                    now=self._clock(),
                )
            ),
        )

    @property
    def grouped_photos(self) -> tuple[DateGroup, ...]:
        return self._derive(
            "grouped",
            self._view_key(),
            lambda: tuple(self._grouping.group(self.filtered_photos, now=self._clock())),
        )

    @property
    def folders(self) -> tuple[str, ...]:
        return self._derive(
            "folders", (self.cache.revision,), lambda: tuple(self._folders.folders(self.cache))
        )

    @property
    def visible_folders(self) -> tuple[str, ...]:
        return self._derive(
            "visible_folders",
            (self.cache.revision, *self._settings_key()),
            lambda: tuple(self._folders.visible_folders(self.cache, self._settings.settings)),
        )

    @property
    def years(self) -> tuple[int, ...]:
        return self._derive(
            "years", (self.cache.revision,), lambda: tuple(self._folders.years(self.cache))
        )

    @property
    def months(self) -> tuple[int, ...]:
        year = self.filters.selected_year
        return self._derive(
            "months",
            (self.cache.revision, year),
            lambda: tuple(self._folders.months(self.cache, year)),
        )

    @property
    def photo_count(self) -> int:
        return len(self.cache)

    @property
    def filtered_count(self) -> int:
        return len(self.filtered_photos)

    @property
    def favorites_count(self) -> int:
        return sum(1 for p in self.cache if p.is_favorite)

    @property
    def trash_count(self) -> int:
        return sum(1 for p in self.cache if p.is_deleted)

    @property
    def has_more(self) -> bool:
        return self.pager.has_more

    @property
    def is_loading_more(self) -> bool:
        return self.pager.is_loading_more

    # ── View state ──

    def set_filters(self, **changes: Any) -> FilterState:
        """Replace individual filter fields, e.g. `set_filters(selected_year=2024)`."""
        self.filters = replace(self.filters, **changes)
        self._invalidate()
        return self.filters

    def clear_filters(self) -> None:
        self.filters = FilterState()
        self._invalidate()

    def set_search_query(self, query: str) -> None:
        self.search_query = query
        self._invalidate()

    def search_debounced(self, query: str, delay: float | None = None) -> None:
        """Apply `query` after `delay` seconds without further keystrokes."""
        if delay is not None:
            self._search_debouncer.delay = delay
        self._search_debouncer.trigger(query)

    def set_sort(self, sort_by: SortBy | str) -> None:
        self.sort_by = SortBy(sort_by)
        self._invalidate()

    def set_section(self, section: Section | str, resource_id: int | None = None) -> None:
        self.section = Section(section)
        self.active_resource_id = resource_id
        self._invalidate()

    def set_active_source(self, source: str | None) -> None:
        self.active_source = source
        self._invalidate()

    def select_photo(self, photo: Photo | None) -> None:
        self.selected_photo = photo

    # ── Selection ──

    def toggle_selection(self, photo_id: int) -> bool:
        return self.selection.toggle(photo_id)

    def select_all(self) -> None:
        self.selection.select_all(self.filtered_photos)

    def clear_selection(self) -> None:
        self.selection.clear()

    def toggle_multi_select(self) -> bool:
        return self.selection.toggle_multi_select()

    def select_matching(self, field: str, regex: str, select: bool = True) -> int:
        """Select (or unselect) visible photos whose `field` matches `regex`."""
        try:
            return self.selection.apply_regex(self.filtered_photos, field, regex, select)
        except (re.error, ValueError) as ex:
            logger.error("Regex selection failed: {}", ex)
            self._notify("Select", str(ex))
            return 0

    # ── Error policy ──

    def _report(self, title: str, ex: LibraryError) -> None:
        logger.error("{} failed: {}", title, ex)
        self._notify(title, str(ex))

    # ── Loading ──

    async def reload(self) -> bool:
        """Load the first page, then refresh the total count and sources.

        Count and source failures are logged only; the page load decides the
        return value.
        """
        self.is_loading = True
        try:
            await self.pager.load_first_page()
        except LibraryError as ex:
            self._report("Load photos", ex)
            return False
        finally:
            self.is_loading = False

        try:
            self.total_photo_count = await self._repo.fetch_count()
        except LibraryError as ex:
            logger.warning("Photo count unavailable: {}", ex)
        try:
            self.source_directories = await self._repo.fetch_libraries()
        except LibraryError as ex:
            logger.warning("Source directories unavailable: {}", ex)
        return True

    async def load_more(self) -> int:
        """Fetch the next page; failures leave `has_more` for a later retry."""
        try:
            return await self.pager.load_more()
        except LibraryError as ex:
            self._report("Load more photos", ex)
            return 0

    # ── Favorites, trash and files ──

    def _update_selected(self, photo_id: int, **changes: Any) -> None:
        if self.selected_photo is not None and self.selected_photo.id == photo_id:
            self.selected_photo = replace(self.selected_photo, **changes)

    async def toggle_favorite(self, photo_id: int) -> bool:
        """Flip the favorite flag; return the new state (False on failure)."""
        try:
            is_fav = await self._repo.toggle_favorite(photo_id)
        except LibraryError as ex:
            self._report("Toggle favorite", ex)
            return False

        def _apply(p: Photo) -> None:
            p.is_favorite = is_fav

        self.cache.mutate(photo_id, _apply)
        self._update_selected(photo_id, is_favorite=is_fav)
        return is_fav

    def _drop_from_view(self, photo_ids: Iterable[int]) -> None:
        ids = set(photo_ids)
        self.cache.remove_where(ids)
        if self.selected_photo is not None and self.selected_photo.id in ids:
            self.selected_photo = None

    async def delete_photos(self, photo_ids: Iterable[int]) -> bool:
        """Move photos to the trash and drop them from the view."""
        ids = list(photo_ids)
        try:
            await self._repo.soft_delete(ids)
        except LibraryError as ex:
            self._report("Delete photos", ex)
            return False
        self._drop_from_view(ids)
        return True

    async def restore_photos(self, photo_ids: Iterable[int]) -> bool:
        """Restore photos from the trash, then reload the first page."""
        try:
            await self._repo.restore(list(photo_ids))
        except LibraryError as ex:
            self._report("Restore photos", ex)
            return False
        return await self.reload()

    async def hard_delete_photos(
        self, photo_ids: Iterable[int], delete_from_disk: bool = False
    ) -> int:
        """Permanently delete photos; clears the selection on success."""
        ids = list(photo_ids)
        try:
            removed = await self._repo.hard_delete(ids, delete_from_disk)
        except LibraryError as ex:
            self._report("Delete permanently", ex)
            return 0
        self._drop_from_view(ids)
        self.selection.clear()
        return removed

    async def rename_photo(self, photo_id: int, new_filename: str) -> str | None:
        """Rename a photo; return its new path or None on failure."""
        try:
            new_path = await self._repo.rename(photo_id, new_filename)
        except LibraryError as ex:
            self._report("Rename photo", ex)
            return None

        def _apply(p: Photo) -> None:
            p.filename = new_filename
            p.path = new_path

        self.cache.mutate(photo_id, _apply)
        self._update_selected(photo_id, filename=new_filename, path=new_path)
        return new_path

    # ── Tags ──

    async def load_tags(self) -> list[Tag]:
        try:
            self.tags = await self._repo.list_tags()
        except LibraryError as ex:
            self._report("Load tags", ex)
        return self.tags

    async def create_tag(self, name: str, color: str = "#0071e3") -> Tag | None:
        try:
            tag = await self._repo.create_tag(name, color)
        except LibraryError as ex:
            self._report("Create tag", ex)
            return None
        self.tags = [*self.tags, tag]
        return tag

    async def delete_tag(self, tag_id: int) -> bool:
        try:
            await self._repo.delete_tag(tag_id)
        except LibraryError as ex:
            self._report("Delete tag", ex)
            return False
        self.tags = [t for t in self.tags if t.id != tag_id]
        return True

    async def tag_photos(self, photo_ids: Iterable[int], tag_id: int) -> set[int] | None:
        try:
            return await self._repo.tag_photos(list(photo_ids), tag_id)
        except LibraryError as ex:
            self._report("Tag photos", ex)
            return None

    async def untag_photos(self, photo_ids: Iterable[int], tag_id: int) -> set[int] | None:
        try:
            return await self._repo.untag_photos(list(photo_ids), tag_id)
        except LibraryError as ex:
            self._report("Untag photos", ex)
            return None

    async def photo_tags(self, photo_id: int) -> list[Tag]:
        try:
            return await self._repo.photo_tags(photo_id)
        except LibraryError as ex:
            self._report("Load photo tags", ex)
            return []

    async def load_tag_photos(self, tag_name: str) -> list[Photo]:
        """Replace the cache with photos carrying `tag_name` and show the tag view."""
        try:
            result = await self._repo.search(f"#{tag_name}")
        except LibraryError as ex:
            self._report("Load tag photos", ex)
            return []
        self._show_pre_narrowed(result, Section.TAG, None)
        return result

    # ── Albums ──

    async def load_albums(self) -> list[Album]:
        try:
            self.albums = await self._repo.list_albums()
        except LibraryError as ex:
            self._report("Load albums", ex)
        return self.albums

    async def create_album(self, name: str) -> Album | None:
        try:
            album = await self._repo.create_album(name)
        except LibraryError as ex:
            self._report("Create album", ex)
            return None
        self.albums = [album, *self.albums]
        return album

    async def delete_album(self, album_id: int) -> bool:
        try:
            await self._repo.delete_album(album_id)
        except LibraryError as ex:
            self._report("Delete album", ex)
            return False
        self.albums = [a for a in self.albums if a.id != album_id]
        return True

    async def rename_album(self, album_id: int, new_name: str) -> Album | None:
        try:
            album = await self._repo.rename_album(album_id, new_name)
        except LibraryError as ex:
            self._report("Rename album", ex)
            return None
        self.albums = [album if a.id == album_id else a for a in self.albums]
        return album

    async def add_to_album(self, album_id: int, photo_ids: Iterable[int]) -> Album | None:
        try:
            album = await self._repo.add_to_album(album_id, list(photo_ids))
        except LibraryError as ex:
            self._report("Add to album", ex)
            return None
        await self.load_albums()
        return album

    async def remove_from_album(self, album_id: int, photo_ids: Iterable[int]) -> Album | None:
        try:
            album = await self._repo.remove_from_album(album_id, list(photo_ids))
        except LibraryError as ex:
            self._report("Remove from album", ex)
            return None
        await self.load_albums()
        return album

    async def load_album_photos(self, album_id: int) -> list[Photo]:
        """Replace the cache with the album's photos and show the album view."""
        try:
            result = await self._repo.album_photos(album_id)
        except LibraryError as ex:
            self._report("Load album photos", ex)
            return []
        self._show_pre_narrowed(result, Section.ALBUM, album_id)
        return result

    def _show_pre_narrowed(
        self, photos: list[Photo], section: Section, resource_id: int | None
    ) -> None:
        self.cache.replace_all(photos)
        # Album and tag sets arrive complete; there is nothing to page
        self.pager.has_more = False
        self.set_section(section, resource_id)
