"""Persisted user settings stored as a namespaced JSON blob.

The store is constructed explicitly and injected where settings are needed.
Loading merges stored values shallowly over defaults; any read or parse
failure falls back to defaults. Every change is written back immediately.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import asdict, dataclass, field, fields
import json
from pathlib import Path
from typing import Any

from loguru import logger

DEFAULT_NAMESPACE = "library-view-settings"
GRID_ZOOM_MIN = 1
GRID_ZOOM_MAX = 5


@dataclass
class AppSettings:
    """User-facing display and sidebar options."""

    theme: str = "light"
    layout_mode: str = "default"
    filmstrip_scroll_enabled: bool = True
    grid_zoom: int = 3
    show_sidebar: bool = True
    accent_color: str = "blue"
    color_palette: str = "default"
    hidden_folders: list[str] = field(default_factory=list)
    pinned_folders: list[str] = field(default_factory=list)
    max_visible_folders: int = 8

    def __post_init__(self) -> None:
        self.grid_zoom = min(GRID_ZOOM_MAX, max(GRID_ZOOM_MIN, int(self.grid_zoom)))


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


_FIELD_NAMES = {f.name for f in fields(AppSettings)}
_CAMEL_TO_FIELD = {_camel(name): name for name in _FIELD_NAMES}


def settings_to_blob(settings: AppSettings) -> dict[str, Any]:
    """Serialize settings with camelCase keys."""
    return {_camel(k): v for k, v in asdict(settings).items()}


def settings_from_blob(blob: dict[str, Any]) -> AppSettings:
    """Shallow-merge a stored blob over defaults, ignoring unknown keys."""
    values = asdict(AppSettings())
    for key, value in blob.items():
        name = _CAMEL_TO_FIELD.get(key)
        if name is not None:
            values[name] = value
    return AppSettings(**values)


class SettingsStore:
    """Load-at-startup, save-on-change owner of `AppSettings`."""

    def __init__(self, settings_path: str | Path, namespace: str = DEFAULT_NAMESPACE) -> None:
        self._path = Path(settings_path)
        self._namespace = namespace
        self._listeners: list[Callable[[AppSettings], None]] = []
        self.settings = self.load()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AppSettings:
        """Read the namespaced blob; return defaults on any failure."""
        try:
            with self._path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            blob = data.get(self._namespace) if isinstance(data, dict) else None
            if isinstance(blob, dict):
                return settings_from_blob(blob)
        except (OSError, ValueError, TypeError) as ex:
            logger.debug("Settings load failed for {}: {}", self._path, ex)
        return AppSettings()

    def save(self) -> bool:
        """Write settings under the namespace, keeping other namespaces intact."""
        data: dict[str, Any] = {}
        try:
            with self._path.open("r", encoding="utf-8") as f:
                existing = json.load(f)
            if isinstance(existing, dict):
                data = existing
        except (OSError, ValueError):
            pass
        data[self._namespace] = settings_to_blob(self.settings)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            return True
        except OSError as ex:
            logger.warning("Settings save failed for {}: {}", self._path, ex)
            return False

    def update(self, **changes: Any) -> AppSettings:
        """Apply `changes`, persist them and notify subscribers.

        Raises:
            KeyError: If a key is not a known setting.
        """
        unknown = set(changes) - _FIELD_NAMES
        if unknown:
            raise KeyError(f"Unknown settings: {sorted(unknown)}")
        values = asdict(self.settings)
        values.update(changes)
        self.settings = AppSettings(**values)
        self.save()
        for listener in list(self._listeners):
            listener(self.settings)
        return self.settings

    def toggle_theme(self) -> AppSettings:
        return self.update(theme="dark" if self.settings.theme == "light" else "light")

    def subscribe(self, listener: Callable[[AppSettings], None]) -> Callable[[], None]:
        """Register `listener` for changes; return a callable that unsubscribes."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return value for dotted `key`, or `default` if not present."""
        parts = key.split(".")
        node: Any = asdict(self.settings)
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node
