"""Multi-select state over the visible photo sequence.

Selection holds photo ids, not records, so an id stays selected after its
record is evicted from the cache. The manager is decoupled from any UI toolkit.
"""

from __future__ import annotations

from collections.abc import Iterable
import re

from loguru import logger

from core.models import Photo

# Field names accepted by `apply_regex`, mapped to Photo attributes
REGEX_FIELDS = {
    "File Name": "filename",
    "File Path": "path",
    "Folder": "folder_rel",
    "Source": "source",
}


class SelectionManager:
    """Tracks the selected photo ids and the multi-select mode flag."""

    def __init__(self) -> None:
        self._selected: set[int] = set()
        self.is_multi_select = False

    @property
    def selected_ids(self) -> frozenset[int]:
        return frozenset(self._selected)

    @property
    def count(self) -> int:
        return len(self._selected)

    def is_selected(self, photo_id: int) -> bool:
        return photo_id in self._selected

    def toggle(self, photo_id: int) -> bool:
        """Add or remove `photo_id`; return whether it is now selected."""
        if photo_id in self._selected:
            self._selected.discard(photo_id)
            return False
        self._selected.add(photo_id)
        return True

    def select_all(self, visible: Iterable[Photo]) -> None:
        """Select exactly the ids of `visible` (the filtered view, not the cache)."""
        self._selected = {p.id for p in visible}

    def clear(self) -> None:
        """Empty the selection and leave multi-select mode."""
        self._selected = set()
        self.is_multi_select = False

    def enter_multi_select(self) -> None:
        self.is_multi_select = True

    def exit_multi_select(self) -> None:
        self.clear()

    def toggle_multi_select(self) -> bool:
        """Flip multi-select mode; leaving it clears the selection."""
        if self.is_multi_select:
            self.exit_multi_select()
        else:
            self.enter_multi_select()
        return self.is_multi_select

    def apply_regex(
        self, visible: Iterable[Photo], field: str, regex: str, select: bool
    ) -> int:
        """Select or unselect visible photos whose `field` matches `regex`.

        Args:
            visible: Photos currently shown.
            field: One of `REGEX_FIELDS` (e.g. "File Name").
            regex: Regular expression searched in the field text.
            select: If True, add matches; otherwise remove them.

        Returns:
            The number of matching photos.

        Raises:
            ValueError: If `field` is unknown.
            re.error: If `regex` does not compile.
        """
        attr = REGEX_FIELDS.get(field)
        if attr is None:
            raise ValueError(f"Unknown selection field: {field}")
        rx = re.compile(regex)

        matched = [p.id for p in visible if rx.search(getattr(p, attr) or "")]
        if select:
            self._selected.update(matched)
        else:
            self._selected.difference_update(matched)
        logger.debug("Regex selection on {} matched {} photos", field, len(matched))
        return len(matched)
