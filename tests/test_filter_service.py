"""Tests for the filter pipeline stages and their ordering."""
from datetime import datetime, timedelta, timezone

from conftest import make_photo
import pytest

from core.models import FilterState, MediaType, Section, SortBy
from core.services.filter_service import FilterService

NOW = datetime(2024, 6, 15, 12, 0)


@pytest.fixture()
def service():
    return FilterService()


def _ids(photos):
    return [p.id for p in photos]


def _apply(service, photos, **kwargs):
    kwargs.setdefault("filters", FilterState())
    kwargs.setdefault("now", NOW)
    return service.apply(photos, **kwargs)


class TestSections:
    def test_all_passes_everything(self, service):
        photos = [make_photo(i) for i in range(1, 4)]
        assert sorted(_ids(_apply(service, photos))) == [1, 2, 3]

    def test_favorites(self, service):
        photos = [make_photo(1, favorite=True), make_photo(2)]
        assert _ids(_apply(service, photos, section=Section.FAVORITES)) == [1]

    def test_videos_override_media_type_filter(self, service):
        photos = [
            make_photo(1, media_type=MediaType.VIDEO),
            make_photo(2, media_type=MediaType.PHOTO),
            make_photo(3, media_type=MediaType.VIDEO),
        ]
        filters = FilterState(selected_media_types=frozenset({MediaType.PHOTO}))
        result = _apply(service, photos, filters=filters, section="videos")
        assert sorted(_ids(result)) == [1, 3]
        assert all(p.media_type is MediaType.VIDEO for p in result)

    def test_recents_window_is_30_days(self, service):
        photos = [
            make_photo(1, taken_at=NOW - timedelta(days=29)),
            make_photo(2, taken_at=NOW - timedelta(days=30)),
            make_photo(3, taken_at=NOW - timedelta(days=30, seconds=1)),
            make_photo(4, modified_at=NOW - timedelta(days=1)),
            make_photo(5, taken_at=NOW - timedelta(days=90), modified_at=NOW),
        ]
        result = _apply(service, photos, section=Section.RECENTS)
        assert sorted(_ids(result)) == [1, 2, 4]

    def test_recents_excludes_future_dates(self, service):
        photos = [make_photo(1, taken_at=NOW + timedelta(hours=1))]
        assert _apply(service, photos, section=Section.RECENTS) == []

    def test_source_section_matches_active_source(self, service):
        photos = [make_photo(1, source="/a"), make_photo(2, source="/b")]
        assert _ids(_apply(service, photos, section="source", active_source="/b")) == [2]

    def test_source_section_without_source_passes(self, service):
        photos = [make_photo(1, source="/a"), make_photo(2, source="/b")]
        assert len(_apply(service, photos, section="source")) == 2

    def test_active_source_ignored_outside_source_section(self, service):
        photos = [make_photo(1, source="/a"), make_photo(2, source="/b")]
        assert len(_apply(service, photos, active_source="/b")) == 2


class TestSearch:
    def test_matches_any_field_case_insensitive(self, service):
        photos = [
            make_photo(1, filename="Beach.JPG", folder="misc"),
            make_photo(2, filename="a.jpg", folder="Holidays/BEACH"),
            make_photo(3, filename="b.jpg", folder="misc", source="/beach-drive"),
            make_photo(4, filename="c.jpg", folder="misc"),
        ]
        assert sorted(_ids(_apply(service, photos, query="beach"))) == [1, 2, 3]

    def test_blank_query_disables_stage(self, service):
        photos = [make_photo(1), make_photo(2)]
        assert len(_apply(service, photos, query="   ")) == 2


class TestFilters:
    def test_media_type_filter(self, service):
        photos = [make_photo(1, media_type=MediaType.VIDEO), make_photo(2)]
        filters = FilterState(selected_media_types=frozenset({MediaType.PHOTO}))
        assert _ids(_apply(service, photos, filters=filters)) == [2]

    def test_folder_is_exact_match(self, service):
        photos = [make_photo(1, folder="2024"), make_photo(2, folder="2024/trip")]
        filters = FilterState(selected_folder="2024")
        assert _ids(_apply(service, photos, filters=filters)) == [1]

    def test_year_uses_effective_date(self, service):
        photos = [
            make_photo(1, taken_at=datetime(2024, 3, 1), modified_at=datetime(2023, 1, 1)),
            make_photo(2, modified_at=datetime(2024, 5, 1)),
            make_photo(3, taken_at=datetime(2023, 3, 1), modified_at=datetime(2024, 1, 1)),
        ]
        filters = FilterState(selected_year=2024)
        assert sorted(_ids(_apply(service, photos, filters=filters))) == [1, 2]

    def test_year_without_month_skips_month_stage(self, service):
        photos = [
            make_photo(1, taken_at=datetime(2023, 7, 1)),
            make_photo(2, taken_at=datetime(2024, 1, 9)),
            make_photo(3, taken_at=datetime(2024, 11, 2)),
        ]
        filters = FilterState(selected_year=2024, selected_month=None)
        assert sorted(_ids(_apply(service, photos, filters=filters))) == [2, 3]

    def test_month_with_year(self, service):
        photos = [
            make_photo(1, taken_at=datetime(2024, 1, 9)),
            make_photo(2, taken_at=datetime(2024, 11, 2)),
            make_photo(3, taken_at=datetime(2023, 11, 2)),
        ]
        filters = FilterState(selected_year=2024, selected_month=11)
        assert _ids(_apply(service, photos, filters=filters)) == [2]

    def test_month_without_year_is_noop(self, service):
        photos = [make_photo(1, taken_at=datetime(2024, 1, 9)), make_photo(2)]
        filters = FilterState(selected_month=1)
        assert len(_apply(service, photos, filters=filters)) == 2

    def test_album_section_skips_type_folder_and_date_filters(self, service):
        photos = [
            make_photo(1, media_type=MediaType.VIDEO, folder="x", taken_at=datetime(2020, 1, 1)),
            make_photo(2, filename="keep.jpg", folder="y"),
            make_photo(3, filename="other.png", folder="y"),
        ]
        filters = FilterState(
            selected_folder="nope",
            selected_year=1999,
            selected_media_types=frozenset({MediaType.PHOTO}),
        )
        for section in (Section.ALBUM, Section.TAG):
            assert len(_apply(service, photos, filters=filters, section=section)) == 3
            searched = _apply(service, photos, filters=filters, section=section, query="keep")
            assert _ids(searched) == [2]

    def test_aware_and_naive_timestamps_mix(self, service):
        aware = datetime(2024, 6, 14, 12, 0, tzinfo=timezone.utc)
        photos = [make_photo(1, taken_at=aware), make_photo(2, taken_at=datetime(2020, 1, 1))]
        result = _apply(service, photos, sort_by=SortBy.DATE_ASC, section=Section.RECENTS)
        assert _ids(result) == [1]
        assert _ids(_apply(service, photos, sort_by=SortBy.DATE_ASC)) == [2, 1]


class TestPurity:
    def test_same_inputs_same_output(self, service):
        photos = [
            make_photo(i, taken_at=datetime(2024, 1, 1) + timedelta(days=i % 5), size=i % 3)
            for i in range(1, 60)
        ]
        kwargs = dict(
            filters=FilterState(selected_year=2024),
            query="img",
            sort_by=SortBy.SIZE_DESC,
            section=Section.ALL,
        )
        first = _apply(service, photos, **kwargs)
        second = _apply(service, photos, **kwargs)
        assert _ids(first) == _ids(second)

    def test_input_is_not_modified(self, service):
        photos = [make_photo(i, size=i) for i in range(1, 6)]
        before = list(photos)
        _apply(service, photos, sort_by=SortBy.SIZE_DESC)
        assert photos == before

    def test_large_input(self, service):
        photos = [make_photo(i + 10_000, size=i) for i in range(2000)]
        result = _apply(service, photos, sort_by="size-desc")
        assert len(result) == 2000
        assert result[0].size_bytes == 1999
