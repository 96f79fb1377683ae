"""CSV-backed photo repository.

Loads a catalog of photo rows from CSV and serves the asynchronous
`PhotoRepository` contract from memory. Tags and albums live in memory only.
File operations touch the disk only for rename and for hard deletes that
request it, where files go to the recycle bin.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
import csv
from dataclasses import replace
from datetime import datetime, timezone
import os
from pathlib import Path, PurePath

from loguru import logger
from send2trash import send2trash

from core.models import Album, ExifInfo, MediaType, Photo, SourceDirectory, Tag
from core.services.interfaces import FetchError, ValidationError
from infrastructure.utils import (
    format_timestamp,
    optional_text,
    parse_bool,
    parse_optional_float,
    parse_optional_int,
    parse_timestamp,
)

CSV_HEADERS = [
    "Id",
    "Path",
    "Filename",
    "FolderRel",
    "Source",
    "MediaType",
    "TakenAt",
    "ModifiedAt",
    "SizeBytes",
    "Width",
    "Height",
    "IsFavorite",
    "IsDeleted",
    "DeletedAt",
    "CameraMake",
    "CameraModel",
    "Lens",
    "ISO",
    "ShutterSpeed",
    "Aperture",
    "FocalLength",
    "GpsLat",
    "GpsLon",
]

REQUIRED_HEADERS = ["Id", "Path", "ModifiedAt"]

_EXIF_COLUMNS = {
    "camera_make": "CameraMake",
    "camera_model": "CameraModel",
    "lens": "Lens",
    "shutter_speed": "ShutterSpeed",
    "aperture": "Aperture",
    "focal_length": "FocalLength",
}


def _parse_exif(row: dict[str, str]) -> ExifInfo | None:
    text = {attr: optional_text(row.get(col)) for attr, col in _EXIF_COLUMNS.items()}
    iso = parse_optional_int(row.get("ISO"))
    lat = parse_optional_float(row.get("GpsLat"))
    lon = parse_optional_float(row.get("GpsLon"))
    if lat is None or lon is None:
        lat = lon = None
    if all(v is None for v in text.values()) and iso is None and lat is None:
        return None
    return ExifInfo(iso=iso, gps_lat=lat, gps_lon=lon, **text)


def _parse_row(row: dict[str, str]) -> Photo:
    path = (row.get("Path") or "").strip()
    modified_at = parse_timestamp(row.get("ModifiedAt"))
    if not path or modified_at is None:
        raise ValueError("Path and ModifiedAt are required")
    is_deleted = parse_bool(row.get("IsDeleted"))
    return Photo(
        id=int(row["Id"]),
        path=path,
        filename=(row.get("Filename") or "").strip() or PurePath(path).name,
        folder_rel=(row.get("FolderRel") or "").strip(),
        modified_at=modified_at,
        size_bytes=parse_optional_int(row.get("SizeBytes")) or 0,
        media_type=MediaType((row.get("MediaType") or "photo").strip().lower()),
        source=(row.get("Source") or "").strip(),
        width=parse_optional_int(row.get("Width")) or None,
        height=parse_optional_int(row.get("Height")) or None,
        taken_at=parse_timestamp(row.get("TakenAt")),
        is_favorite=parse_bool(row.get("IsFavorite")),
        is_deleted=is_deleted,
        deleted_at=parse_timestamp(row.get("DeletedAt")) if is_deleted else None,
        exif=_parse_exif(row),
    )


def _photo_row(photo: Photo) -> dict[str, object]:
    exif = photo.exif or ExifInfo()
    return {
        "Id": photo.id,
        "Path": photo.path,
        "Filename": photo.filename,
        "FolderRel": photo.folder_rel,
        "Source": photo.source,
        "MediaType": photo.media_type.value,
        "TakenAt": format_timestamp(photo.taken_at),
        "ModifiedAt": format_timestamp(photo.modified_at),
        "SizeBytes": photo.size_bytes,
        "Width": photo.width or "",
        "Height": photo.height or "",
        "IsFavorite": 1 if photo.is_favorite else 0,
        "IsDeleted": 1 if photo.is_deleted else 0,
        "DeletedAt": format_timestamp(photo.deleted_at),
        "CameraMake": exif.camera_make or "",
        "CameraModel": exif.camera_model or "",
        "Lens": exif.lens or "",
        "ISO": exif.iso if exif.iso is not None else "",
        "ShutterSpeed": exif.shutter_speed or "",
        "Aperture": exif.aperture or "",
        "FocalLength": exif.focal_length or "",
        "GpsLat": exif.gps_lat if exif.gps_lat is not None else "",
        "GpsLon": exif.gps_lon if exif.gps_lon is not None else "",
    }


def load_catalog(csv_path: str | Path) -> Iterator[Photo]:
    """Yield `Photo` rows from the CSV at `csv_path`, skipping malformed rows.

    Raises:
        FetchError: If the file cannot be read or lacks required headers.
    """
    path = Path(csv_path)
    try:
        with path.open("r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            missing = [h for h in REQUIRED_HEADERS if h not in (reader.fieldnames or [])]
            if missing:
                raise FetchError(f"CSV missing required headers: {missing}")
            for row in reader:
                try:
                    yield _parse_row(row)
                except (ValueError, TypeError, KeyError) as ex:
                    logger.error("CSV row error: {} | row={} ", ex, row)
                    continue
    except OSError as ex:
        raise FetchError(f"Cannot read catalog {path}: {ex}") from ex


class CsvPhotoRepository:
    """In-memory `PhotoRepository` seeded from a CSV catalog."""

    def __init__(self, photos: Iterable[Photo] = ()) -> None:
        self._photos: dict[int, Photo] = {}
        for photo in photos:
            if photo.id in self._photos:
                logger.warning("Duplicate photo id {} in catalog, keeping last", photo.id)
            self._photos[photo.id] = photo
        self._tags: dict[int, Tag] = {}
        self._photo_tags: dict[int, set[int]] = {}
        self._albums: dict[int, Album] = {}
        self._album_photos: dict[int, list[int]] = {}
        self._next_tag_id = 1
        self._next_album_id = 1

    @classmethod
    def from_csv(cls, csv_path: str | Path) -> CsvPhotoRepository:
        repo = cls(load_catalog(csv_path))
        logger.info("Loaded {} photos from {}", len(repo._photos), csv_path)
        return repo

    def save(self, csv_path: str | Path) -> None:
        """Write all records, deleted ones included, to `csv_path`."""
        path = Path(csv_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_HEADERS)
            writer.writeheader()
            for photo in self._photos.values():
                writer.writerow(_photo_row(photo))

    # ── Lookups ──

    def _require(self, photo_id: int) -> Photo:
        photo = self._photos.get(photo_id)
        if photo is None:
            raise ValidationError(f"Photo not found: {photo_id}")
        return photo

    def _require_tag(self, tag_id: int) -> Tag:
        tag = self._tags.get(tag_id)
        if tag is None:
            raise ValidationError(f"Tag not found: {tag_id}")
        return tag

    def _require_album(self, album_id: int) -> Album:
        album = self._albums.get(album_id)
        if album is None:
            raise ValidationError(f"Album not found: {album_id}")
        return album

    def _live(self) -> list[Photo]:
        live = [p for p in self._photos.values() if not p.is_deleted]
        live.sort(key=lambda p: p.path)
        live.sort(key=lambda p: p.effective_date, reverse=True)
        return live

    @staticmethod
    def _copy(photo: Photo) -> Photo:
        return replace(photo)

    # ── Paging ──

    async def fetch_page(self, limit: int, offset: int) -> list[Photo]:
        if limit < 0 or offset < 0:
            raise FetchError(f"Invalid page request: limit={limit} offset={offset}")
        return [self._copy(p) for p in self._live()[offset : offset + limit]]

    async def fetch_count(self) -> int:
        return sum(1 for p in self._photos.values() if not p.is_deleted)

    async def fetch_libraries(self) -> list[SourceDirectory]:
        counts: dict[str, int] = {}
        for photo in self._photos.values():
            if photo.source:
                counts[photo.source] = counts.get(photo.source, 0) + 1
        return [
            SourceDirectory(id=i, name=PurePath(src).name or src, root_path=src, photo_count=n)
            for i, (src, n) in enumerate(sorted(counts.items()), start=1)
        ]

    # ── Mutations ──

    async def toggle_favorite(self, photo_id: int) -> bool:
        photo = self._require(photo_id)
        photo.is_favorite = not photo.is_favorite
        return photo.is_favorite

    async def soft_delete(self, photo_ids: Iterable[int]) -> None:
        targets = [self._require(i) for i in photo_ids]
        now = datetime.now(timezone.utc)
        for photo in targets:
            photo.is_deleted = True
            photo.deleted_at = now

    async def restore(self, photo_ids: Iterable[int]) -> None:
        targets = [self._require(i) for i in photo_ids]
        for photo in targets:
            photo.is_deleted = False
            photo.deleted_at = None

    async def hard_delete(self, photo_ids: Iterable[int], delete_from_disk: bool) -> int:
        removed = 0
        for photo_id in list(photo_ids):
            photo = self._photos.pop(photo_id, None)
            if photo is None:
                continue
            removed += 1
            self._photo_tags.pop(photo_id, None)
            for album_id, members in self._album_photos.items():
                if photo_id in members:
                    members.remove(photo_id)
                    self._refresh_album(self._albums[album_id])
            if delete_from_disk and os.path.exists(photo.path):
                try:
                    send2trash(os.path.normpath(photo.path))
                except OSError as ex:
                    logger.error("Recycle failed for {}: {}", photo.path, ex)
        return removed

    async def rename(self, photo_id: int, new_filename: str) -> str:
        photo = self._require(photo_id)
        name = new_filename.strip()
        if not name or PurePath(name).name != name:
            raise ValidationError(f"Invalid filename: {new_filename!r}")
        new_path = str(Path(photo.path).with_name(name))
        if new_path != photo.path and (
            any(p.path == new_path for p in self._photos.values()) or os.path.exists(new_path)
        ):
            raise ValidationError(f"A file named {name} already exists")
        if os.path.exists(photo.path):
            try:
                os.rename(photo.path, new_path)
            except OSError as ex:
                raise FetchError(f"Rename failed for {photo.path}: {ex}") from ex
        photo.filename = name
        photo.path = new_path
        return new_path

    # ── Search ──

    async def search(self, query: str) -> list[Photo]:
        needle = query.strip().casefold()
        if needle.startswith("#"):
            tag_name = needle[1:]
            tag_ids = {t.id for t in self._tags.values() if t.name.casefold() == tag_name}
            return [
                self._copy(p)
                for p in self._live()
                if self._photo_tags.get(p.id, set()) & tag_ids
            ]
        return [self._copy(p) for p in self._live() if self._matches(p, needle)]

    def _matches(self, photo: Photo, needle: str) -> bool:
        fields = [photo.path, photo.filename, photo.folder_rel]
        if photo.exif is not None:
            fields += [photo.exif.camera_make or "", photo.exif.camera_model or ""]
        fields += [self._tags[t].name for t in self._photo_tags.get(photo.id, ())]
        return any(needle in f.casefold() for f in fields)

    # ── Tags ──

    async def list_tags(self) -> list[Tag]:
        return sorted(self._tags.values(), key=lambda t: t.name.casefold())

    async def create_tag(self, name: str, color: str) -> Tag:
        name = name.strip()
        if not name:
            raise ValidationError("Tag name must not be empty")
        if any(t.name.casefold() == name.casefold() for t in self._tags.values()):
            raise ValidationError(f"Tag already exists: {name}")
        tag = Tag(id=self._next_tag_id, name=name, color=color)
        self._next_tag_id += 1
        self._tags[tag.id] = tag
        return replace(tag)

    async def delete_tag(self, tag_id: int) -> None:
        self._require_tag(tag_id)
        del self._tags[tag_id]
        for tags in self._photo_tags.values():
            tags.discard(tag_id)

    def _tagged_with(self, tag_id: int) -> set[int]:
        return {pid for pid, tags in self._photo_tags.items() if tag_id in tags}

    async def tag_photos(self, photo_ids: Iterable[int], tag_id: int) -> set[int]:
        self._require_tag(tag_id)
        ids = [self._require(i).id for i in photo_ids]
        for photo_id in ids:
            self._photo_tags.setdefault(photo_id, set()).add(tag_id)
        return self._tagged_with(tag_id)

    async def untag_photos(self, photo_ids: Iterable[int], tag_id: int) -> set[int]:
        self._require_tag(tag_id)
        for photo_id in photo_ids:
            self._photo_tags.get(photo_id, set()).discard(tag_id)
        return self._tagged_with(tag_id)

    async def photo_tags(self, photo_id: int) -> list[Tag]:
        self._require(photo_id)
        tags = [self._tags[t] for t in self._photo_tags.get(photo_id, ())]
        return sorted((replace(t) for t in tags), key=lambda t: t.name.casefold())

    # ── Albums ──

    async def list_albums(self) -> list[Album]:
        albums = sorted(self._albums.values(), key=lambda a: a.created_at, reverse=True)
        return [replace(a) for a in albums]

    async def create_album(self, name: str) -> Album:
        name = name.strip()
        if not name:
            raise ValidationError("Album name must not be empty")
        album = Album(id=self._next_album_id, name=name, created_at=datetime.now())
        self._next_album_id += 1
        self._albums[album.id] = album
        self._album_photos[album.id] = []
        return replace(album)

    async def delete_album(self, album_id: int) -> None:
        self._require_album(album_id)
        del self._albums[album_id]
        del self._album_photos[album_id]

    async def rename_album(self, album_id: int, new_name: str) -> Album:
        album = self._require_album(album_id)
        name = new_name.strip()
        if not name:
            raise ValidationError("Album name must not be empty")
        album.name = name
        return replace(album)

    def _refresh_album(self, album: Album) -> Album:
        members = self._album_photos[album.id]
        album.photo_count = len(members)
        album.cover_path = self._photos[members[0]].path if members else None
        return replace(album)

    async def add_to_album(self, album_id: int, photo_ids: Iterable[int]) -> Album:
        album = self._require_album(album_id)
        ids = [self._require(i).id for i in photo_ids]
        members = self._album_photos[album_id]
        for photo_id in ids:
            if photo_id not in members:
                members.append(photo_id)
        return self._refresh_album(album)

    async def remove_from_album(self, album_id: int, photo_ids: Iterable[int]) -> Album:
        album = self._require_album(album_id)
        drop = set(photo_ids)
        self._album_photos[album_id] = [i for i in self._album_photos[album_id] if i not in drop]
        return self._refresh_album(album)

    async def album_photos(self, album_id: int) -> list[Photo]:
        self._require_album(album_id)
        return [
            self._copy(self._photos[i])
            for i in self._album_photos[album_id]
            if not self._photos[i].is_deleted
        ]
