"""Core domain models for library photos, sources, filters and groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class MediaType(str, Enum):
    """Kind of media asset."""

    PHOTO = "photo"
    VIDEO = "video"


class Section(str, Enum):
    """Top-level view selector shown in the sidebar."""

    ALL = "all"
    RECENTS = "recents"
    FAVORITES = "favorites"
    VIDEOS = "videos"
    SOURCE = "source"
    TRASH = "trash"
    ALBUM = "album"
    TAG = "tag"


class SortBy(str, Enum):
    """Sort orders offered by the library view."""

    DATE_DESC = "date-desc"
    DATE_ASC = "date-asc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    SIZE_DESC = "size-desc"
    SIZE_ASC = "size-asc"


def as_local(dt: datetime) -> datetime:
    """Return `dt` as a naive local-time datetime.

    Aware values are converted to the local zone; naive values are assumed to
    already be local time.
    """
    if dt.tzinfo is not None:
        return dt.astimezone().replace(tzinfo=None)
    return dt


@dataclass(frozen=True)
class ExifInfo:
    """EXIF metadata, present as a whole or absent as a whole."""

    camera_make: str | None = None
    camera_model: str | None = None
    lens: str | None = None
    iso: int | None = None
    shutter_speed: str | None = None
    aperture: str | None = None
    focal_length: str | None = None
    gps_lat: float | None = None
    gps_lon: float | None = None

    def __post_init__(self) -> None:
        if (self.gps_lat is None) != (self.gps_lon is None):
            raise ValueError("gps_lat and gps_lon must be both set or both absent")

    @property
    def has_gps(self) -> bool:
        return self.gps_lat is not None and self.gps_lon is not None


@dataclass
class Photo:
    """A single media asset known to the backing store."""

    id: int
    path: str
    filename: str
    folder_rel: str
    modified_at: datetime
    size_bytes: int
    media_type: MediaType = MediaType.PHOTO
    source: str = ""
    width: int | None = None
    height: int | None = None
    taken_at: datetime | None = None
    is_favorite: bool = False
    is_deleted: bool = False
    deleted_at: datetime | None = None
    exif: ExifInfo | None = None

    def __post_init__(self) -> None:
        self.media_type = MediaType(self.media_type)
        if self.size_bytes < 0:
            raise ValueError(f"size_bytes must be non-negative: {self.size_bytes}")
        for name in ("width", "height"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ValueError(f"{name} must be positive when set: {value}")
        if self.deleted_at is not None and not self.is_deleted:
            raise ValueError("deleted_at is only allowed on deleted photos")

    @property
    def effective_date(self) -> datetime:
        """`taken_at` when known, otherwise `modified_at`, in local time."""
        return as_local(self.taken_at or self.modified_at)

    @property
    def has_exif(self) -> bool:
        return self.exif is not None

    @property
    def has_gps(self) -> bool:
        return self.exif is not None and self.exif.has_gps


@dataclass
class SourceDirectory:
    """A library root registered with the backing store."""

    id: int
    name: str
    root_path: str
    # Server-reported aggregate; may lag the real count
    photo_count: int = 0


DEFAULT_MEDIA_TYPES = frozenset({MediaType.PHOTO, MediaType.VIDEO})


@dataclass(frozen=True)
class FilterState:
    """User-selected narrowing filters.

    `selected_month` is a 1-based calendar month and only applies together
    with `selected_year`.
    """

    selected_folder: str | None = None
    selected_year: int | None = None
    selected_month: int | None = None
    selected_media_types: frozenset[MediaType] = DEFAULT_MEDIA_TYPES

    def __post_init__(self) -> None:
        # Frozen dataclass: normalise through object.__setattr__
        object.__setattr__(
            self,
            "selected_media_types",
            frozenset(MediaType(t) for t in self.selected_media_types),
        )
        if not self.selected_media_types:
            raise ValueError("selected_media_types must not be empty")
        if self.selected_month is not None and not 1 <= self.selected_month <= 12:
            raise ValueError(f"selected_month out of range: {self.selected_month}")


@dataclass
class Tag:
    id: int
    name: str
    color: str = "#0071e3"


@dataclass
class Album:
    id: int
    name: str
    created_at: datetime
    photo_count: int = 0
    cover_path: str | None = None


@dataclass
class DateGroup:
    """A date-labelled bucket of photos for section headers."""

    label: str
    key: str
    photos: list[Photo] = field(default_factory=list)
