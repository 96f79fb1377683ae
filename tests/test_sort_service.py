"""Tests for photo sort orders and tie handling."""
from datetime import datetime
import locale

from conftest import make_photo
import pytest

from core.models import SortBy
from core.services.sort_service import SortService


@pytest.fixture()
def sorter():
    return SortService()


def _ids(photos):
    return [p.id for p in photos]


@pytest.fixture()
def collation():
    saved = locale.setlocale(locale.LC_COLLATE)
    for name in ("en_US.UTF-8", "en_GB.UTF-8", "de_DE.UTF-8", "fr_FR.UTF-8"):
        try:
            locale.setlocale(locale.LC_COLLATE, name)
            break
        except locale.Error:
            continue
    else:
        pytest.skip("no UTF-8 collation locale installed")
    yield name
    locale.setlocale(locale.LC_COLLATE, saved)


def test_date_desc_and_asc_use_effective_date(sorter):
    photos = [
        make_photo(1, taken_at=datetime(2024, 1, 1)),
        make_photo(2, modified_at=datetime(2024, 3, 1)),
        make_photo(3, taken_at=datetime(2023, 1, 1), modified_at=datetime(2025, 1, 1)),
    ]
    assert _ids(sorter.sort_photos(photos, SortBy.DATE_DESC)) == [2, 1, 3]
    assert _ids(sorter.sort_photos(photos, "date-asc")) == [3, 1, 2]


def test_name_sort_is_case_insensitive(sorter):
    photos = [
        make_photo(1, filename="b.jpg"),
        make_photo(2, filename="A.jpg"),
        make_photo(3, filename="c.jpg"),
    ]
    assert _ids(sorter.sort_photos(photos, SortBy.NAME_ASC)) == [2, 1, 3]
    assert _ids(sorter.sort_photos(photos, SortBy.NAME_DESC)) == [3, 1, 2]


def test_accented_names_collate_with_locale(sorter, collation):
    photos = [
        make_photo(1, filename="zebra.jpg"),
        make_photo(2, filename="éclair.jpg"),
        make_photo(3, filename="apple.jpg"),
    ]
    assert [p.filename for p in sorter.sort_photos(photos, SortBy.NAME_ASC)] == [
        "apple.jpg",
        "éclair.jpg",
        "zebra.jpg",
    ]


def test_size_sort(sorter):
    photos = [make_photo(1, size=5), make_photo(2, size=50), make_photo(3, size=0)]
    assert _ids(sorter.sort_photos(photos, SortBy.SIZE_DESC)) == [2, 1, 3]
    assert _ids(sorter.sort_photos(photos, SortBy.SIZE_ASC)) == [3, 1, 2]


@pytest.mark.parametrize("sort_by", list(SortBy))
def test_ties_keep_input_order(sorter, sort_by):
    photos = [
        make_photo(i, filename="same.jpg", size=10, taken_at=datetime(2024, 1, 1))
        for i in (5, 3, 9, 1)
    ]
    assert _ids(sorter.sort_photos(photos, sort_by)) == [5, 3, 9, 1]


def test_returns_new_list(sorter):
    photos = [make_photo(1, size=2), make_photo(2, size=1)]
    result = sorter.sort_photos(photos, SortBy.SIZE_ASC)
    assert result is not photos
    assert _ids(photos) == [1, 2]


def test_unknown_sort_rejected(sorter):
    with pytest.raises(ValueError):
        sorter.sort_photos([], "random")
