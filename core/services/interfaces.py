"""Core service interfaces and shared error types.

This module defines the asynchronous repository contract the library view
consumes and the errors a repository may raise. Concrete repositories live in
the infrastructure layer.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from core.models import Album, Photo, SourceDirectory, Tag


class LibraryError(Exception):
    """Base class for failures surfaced to the user by the library view."""


class FetchError(LibraryError):
    """A repository call failed (I/O, connection, backend error)."""


class ValidationError(LibraryError):
    """The backend rejected a mutation (unknown id, name collision, ...)."""


class PhotoRepository(Protocol):
    """Asynchronous access to the photo backing store.

    Every method may raise `FetchError` or `ValidationError`. A failed call
    must leave the caller free to discard the attempt without partial state.
    """

    async def fetch_page(self, limit: int, offset: int) -> list[Photo]:
        """Return up to `limit` photos from `offset`; fewer only at the end."""
        raise NotImplementedError

    async def fetch_count(self) -> int:
        """Return the total photo count (may be approximate)."""
        raise NotImplementedError

    async def fetch_libraries(self) -> list[SourceDirectory]:
        raise NotImplementedError

    async def toggle_favorite(self, photo_id: int) -> bool:
        """Flip the favorite flag and return the new state."""
        raise NotImplementedError

    async def soft_delete(self, photo_ids: Iterable[int]) -> None:
        raise NotImplementedError

    async def restore(self, photo_ids: Iterable[int]) -> None:
        raise NotImplementedError

    async def hard_delete(self, photo_ids: Iterable[int], delete_from_disk: bool) -> int:
        """Remove records permanently; return the number removed."""
        raise NotImplementedError

    async def rename(self, photo_id: int, new_filename: str) -> str:
        """Rename the file and return its new path."""
        raise NotImplementedError

    async def search(self, query: str) -> list[Photo]:
        """Search the store; a `#name` query matches photos tagged `name`."""
        raise NotImplementedError

    async def list_tags(self) -> list[Tag]:
        raise NotImplementedError

    async def create_tag(self, name: str, color: str) -> Tag:
        raise NotImplementedError

    async def delete_tag(self, tag_id: int) -> None:
        raise NotImplementedError

    async def tag_photos(self, photo_ids: Iterable[int], tag_id: int) -> set[int]:
        """Associate photos with a tag; return all ids carrying the tag."""
        raise NotImplementedError

    async def untag_photos(self, photo_ids: Iterable[int], tag_id: int) -> set[int]:
        """Dissociate photos from a tag; return all ids still carrying it."""
        raise NotImplementedError

    async def photo_tags(self, photo_id: int) -> list[Tag]:
        raise NotImplementedError

    async def list_albums(self) -> list[Album]:
        raise NotImplementedError

    async def create_album(self, name: str) -> Album:
        raise NotImplementedError

    async def delete_album(self, album_id: int) -> None:
        raise NotImplementedError

    async def rename_album(self, album_id: int, new_name: str) -> Album:
        raise NotImplementedError

    async def add_to_album(self, album_id: int, photo_ids: Iterable[int]) -> Album:
        raise NotImplementedError

    async def remove_from_album(self, album_id: int, photo_ids: Iterable[int]) -> Album:
        raise NotImplementedError

    async def album_photos(self, album_id: int) -> list[Photo]:
        raise NotImplementedError
