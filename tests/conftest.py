"""
Shared pytest fixtures for library view tests.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
import itertools

import pytest

from core.models import Album, MediaType, Photo, SourceDirectory, Tag
from core.services.interfaces import FetchError, ValidationError
from infrastructure.settings import SettingsStore

_ids = itertools.count(1)


def make_photo(
    photo_id: int | None = None,
    *,
    filename: str | None = None,
    folder: str = "2024/trip",
    taken_at: datetime | None = None,
    modified_at: datetime | None = None,
    size: int = 1000,
    media_type: MediaType = MediaType.PHOTO,
    source: str = "/photos",
    favorite: bool = False,
) -> Photo:
    """Build a Photo with sensible defaults; ids are unique unless given."""
    pid = photo_id if photo_id is not None else next(_ids)
    name = filename or f"IMG_{pid:04d}.jpg"
    return Photo(
        id=pid,
        path=f"{source}/{folder}/{name}",
        filename=name,
        folder_rel=folder,
        modified_at=modified_at or datetime(2023, 6, 1, 12, 0),
        size_bytes=size,
        media_type=media_type,
        source=source,
        taken_at=taken_at,
        is_favorite=favorite,
    )


def make_stream(count: int, start: datetime | None = None) -> list[Photo]:
    """`count` photos with ids 0..count-1 and strictly decreasing dates."""
    base = start or datetime(2024, 1, 1)
    return [make_photo(i, taken_at=base - timedelta(minutes=i)) for i in range(count)]


class FakeRepository:
    """Scripted in-memory PhotoRepository.

    `photos` is the backing dataset served by `fetch_page`. Set `fail` to the
    name of a method to make its next calls raise `FetchError`.
    """

    def __init__(self, photos: list[Photo] | None = None) -> None:
        self.photos = list(photos or [])
        self.fail: set[str] = set()
        self.page_calls: list[tuple[int, int]] = []
        self.favorites: dict[int, bool] = {}
        self.tags = [Tag(id=1, name="beach", color="#ff0000")]
        self.tagged: dict[int, set[int]] = {1: set()}
        self.albums = [Album(id=1, name="Summer", created_at=datetime(2024, 7, 1))]
        self.album_members: dict[int, list[int]] = {1: []}
        self.deleted: set[int] = set()
        self.hard_deleted: list[tuple[list[int], bool]] = []

    def _check(self, name: str) -> None:
        if name in self.fail:
            raise FetchError(f"{name} unavailable")

    async def fetch_page(self, limit: int, offset: int) -> list[Photo]:
        self._check("fetch_page")
        # Yield to the loop like a real I/O call would
        await asyncio.sleep(0)
        self.page_calls.append((limit, offset))
        return self.photos[offset : offset + limit]

    async def fetch_count(self) -> int:
        self._check("fetch_count")
        return len(self.photos)

    async def fetch_libraries(self) -> list[SourceDirectory]:
        self._check("fetch_libraries")
        count = len(self.photos)
        return [SourceDirectory(id=1, name="photos", root_path="/photos", photo_count=count)]

    async def toggle_favorite(self, photo_id: int) -> bool:
        self._check("toggle_favorite")
        self.favorites[photo_id] = not self.favorites.get(photo_id, False)
        return self.favorites[photo_id]

    async def soft_delete(self, photo_ids) -> None:
        self._check("soft_delete")
        self.deleted.update(photo_ids)

    async def restore(self, photo_ids) -> None:
        self._check("restore")
        self.deleted.difference_update(photo_ids)

    async def hard_delete(self, photo_ids, delete_from_disk: bool) -> int:
        self._check("hard_delete")
        ids = list(photo_ids)
        self.hard_deleted.append((ids, delete_from_disk))
        return len(ids)

    async def rename(self, photo_id: int, new_filename: str) -> str:
        self._check("rename")
        if new_filename == "taken.jpg":
            raise ValidationError("A file named taken.jpg already exists")
        return f"/renamed/{new_filename}"

    async def search(self, query: str) -> list[Photo]:
        self._check("search")
        if query.startswith("#"):
            tag_ids = {t.id for t in self.tags if t.name == query[1:]}
            members = set().union(*(self.tagged[t] for t in tag_ids)) if tag_ids else set()
            return [p for p in self.photos if p.id in members]
        return [p for p in self.photos if query.lower() in p.filename.lower()]

    async def list_tags(self) -> list[Tag]:
        self._check("list_tags")
        return list(self.tags)

    async def create_tag(self, name: str, color: str) -> Tag:
        self._check("create_tag")
        tag = Tag(id=len(self.tags) + 1, name=name, color=color)
        self.tags.append(tag)
        self.tagged[tag.id] = set()
        return tag

    async def delete_tag(self, tag_id: int) -> None:
        self._check("delete_tag")
        self.tags = [t for t in self.tags if t.id != tag_id]

    async def tag_photos(self, photo_ids, tag_id: int) -> set[int]:
        self._check("tag_photos")
        self.tagged[tag_id].update(photo_ids)
        return set(self.tagged[tag_id])

    async def untag_photos(self, photo_ids, tag_id: int) -> set[int]:
        self._check("untag_photos")
        self.tagged[tag_id].difference_update(photo_ids)
        return set(self.tagged[tag_id])

    async def photo_tags(self, photo_id: int) -> list[Tag]:
        self._check("photo_tags")
        return [t for t in self.tags if photo_id in self.tagged.get(t.id, set())]

    async def list_albums(self) -> list[Album]:
        self._check("list_albums")
        for album in self.albums:
            album.photo_count = len(self.album_members[album.id])
        return list(self.albums)

    async def create_album(self, name: str) -> Album:
        self._check("create_album")
        album = Album(id=len(self.albums) + 1, name=name, created_at=datetime(2024, 8, 1))
        self.albums.append(album)
        self.album_members[album.id] = []
        return album

    async def delete_album(self, album_id: int) -> None:
        self._check("delete_album")
        self.albums = [a for a in self.albums if a.id != album_id]

    async def rename_album(self, album_id: int, new_name: str) -> Album:
        self._check("rename_album")
        album = next(a for a in self.albums if a.id == album_id)
        album.name = new_name
        return album

    async def add_to_album(self, album_id: int, photo_ids) -> Album:
        self._check("add_to_album")
        self.album_members[album_id].extend(photo_ids)
        album = next(a for a in self.albums if a.id == album_id)
        album.photo_count = len(self.album_members[album_id])
        return album

    async def remove_from_album(self, album_id: int, photo_ids) -> Album:
        self._check("remove_from_album")
        drop = set(photo_ids)
        self.album_members[album_id] = [i for i in self.album_members[album_id] if i not in drop]
        album = next(a for a in self.albums if a.id == album_id)
        album.photo_count = len(self.album_members[album_id])
        return album

    async def album_photos(self, album_id: int) -> list[Photo]:
        self._check("album_photos")
        members = self.album_members[album_id]
        return [p for p in self.photos if p.id in members]


@pytest.fixture()
def fake_repo():
    return FakeRepository(make_stream(250))


@pytest.fixture()
def settings_store(tmp_path):
    return SettingsStore(tmp_path / "settings.json")


@pytest.fixture()
def notifications():
    """Collects (title, message) pairs passed to the view-model's notifier."""
    return []
