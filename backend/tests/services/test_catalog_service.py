"""
Catalog Service Tests

Reconstruction of the catalog from flat listings.
"""
import pytest
from datetime import datetime, timedelta, timezone

from vidstream.exceptions import StorageBackendError
from vidstream.services.catalog_service import (
    CatalogService,
    StorageObject,
    build_catalog,
    classify_object,
    find_next_episode,
    subtitle_folder_identity,
)
from vidstream.services.filename_parser import AssetKind


T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def obj(key, size=10, minutes=0):
    return StorageObject(key=key, size=size, last_modified=T0 + timedelta(minutes=minutes))


class TestClassification:
    """classify_object / subtitle_folder_identity"""

    def test_video_identity_drops_upload_prefix(self):
        asset = classify_object(obj("videos/1700000000000-My_Movie.mp4"))
        assert asset.kind == AssetKind.VIDEO
        assert asset.match_key == "My_Movie"

    def test_poster_identity_drops_suffix(self):
        asset = classify_object(obj("videos/a-poster.jpg"))
        assert asset.kind == AssetKind.POSTER
        assert asset.match_key == "a"

    def test_subtitle_in_subs_folder_uses_folder(self):
        asset = classify_object(obj("videos/Subs/a/1_eng,English.srt"))
        assert asset.kind == AssetKind.SUBTITLE
        assert asset.match_key == "a"

    def test_subtitle_alongside_video_uses_own_name(self):
        asset = classify_object(obj("videos/a.srt"))
        assert asset.match_key == "a"

    def test_subs_folder_without_episode_folder(self):
        assert subtitle_folder_identity("videos/Subs/a.srt") is None

    def test_subs_folder_case_insensitive(self):
        assert subtitle_folder_identity("videos/subs/Show.S01E01/x.srt") == "Show.S01E01"


class TestBuildCatalog:
    """build_catalog"""

    def test_associates_poster_and_folder_subtitle(self):
        catalog = build_catalog([
            obj("videos/a.mp4", size=10),
            obj("videos/a-poster.jpg", size=5),
            obj("videos/Subs/a/1_eng,English.srt", size=1),
        ])

        assert catalog.count == 1
        entry = catalog.videos[0]
        assert entry.key == "videos/a.mp4"
        assert entry.poster == "videos/a-poster.jpg"
        assert len(entry.subtitles) == 1
        assert entry.subtitles[0].language == "English"
        assert entry.subtitles[0].filename == "1_eng,English.srt"

    def test_subtitle_alongside_video(self):
        catalog = build_catalog([obj("videos/a.mp4"), obj("videos/a.vtt")])
        assert [s.key for s in catalog.videos[0].subtitles] == ["videos/a.vtt"]

    def test_timestamped_upload_matches_plain_poster(self):
        catalog = build_catalog([
            obj("videos/1700000000000-My_Movie.mp4"),
            obj("videos/My_Movie-poster.png"),
        ])
        entry = catalog.videos[0]
        assert entry.display_name == "My Movie"
        assert entry.poster == "videos/My_Movie-poster.png"

    def test_zero_size_objects_ignored(self):
        catalog = build_catalog([
            obj("videos/", size=0),
            obj("videos/a.mp4", size=0),
            obj("videos/b.mp4", size=10),
            obj("videos/b-poster.jpg", size=0),
            obj("videos/b.srt", size=0),
        ])
        assert [e.key for e in catalog.videos] == ["videos/b.mp4"]
        assert catalog.videos[0].poster is None
        assert catalog.videos[0].subtitles == []

    def test_unrecognized_dropped(self):
        catalog = build_catalog([obj("videos/notes.txt"), obj("videos/a.mp4"), obj("videos/noext")])
        assert [e.key for e in catalog.videos] == ["videos/a.mp4"]

    def test_orphan_subtitles_and_posters_dropped(self):
        catalog = build_catalog([obj("videos/x-poster.jpg"), obj("videos/y.srt")])
        assert catalog.count == 0

    def test_empty_listing(self):
        assert build_catalog([]).count == 0
        assert build_catalog(None).videos == []

    def test_first_poster_by_key_wins(self):
        """Listing order does not affect which poster is chosen."""
        objects = [obj("videos/a.mp4"), obj("videos/a-poster.png"), obj("videos/a-poster.jpg")]
        forward = build_catalog(objects).videos[0].poster
        backward = build_catalog(list(reversed(objects))).videos[0].poster
        assert forward == backward == "videos/a-poster.jpg"

    def test_subtitles_in_key_order(self):
        catalog = build_catalog([
            obj("videos/Subs/a/3_fre,French.srt"),
            obj("videos/a.mp4"),
            obj("videos/Subs/a/1_eng,English.srt"),
        ])
        assert [s.language for s in catalog.videos[0].subtitles] == ["English", "French"]

    def test_entry_fields(self):
        catalog = build_catalog([obj("videos/Show.S01E02.mkv", size=2048, minutes=5)])
        entry = catalog.videos[0]
        assert entry.size_bytes == 2048
        assert entry.uploaded_at == T0 + timedelta(minutes=5)
        assert entry.content_type == "video/x-matroska"
        assert entry.episode_info.series == "Show"


class TestOrdering:
    """Flat ordering and grouping"""

    def test_newest_first_without_episode_names(self):
        catalog = build_catalog([
            obj("videos/old.mp4", minutes=0),
            obj("videos/new.mp4", minutes=10),
            obj("videos/mid.mp4", minutes=5),
        ])
        assert [e.display_name for e in catalog.videos] == ["new", "mid", "old"]

    def test_episodes_by_season_then_episode(self):
        catalog = build_catalog([
            obj("videos/Show.S02E01.mp4", minutes=3),
            obj("videos/Show.S01E10.mp4", minutes=2),
            obj("videos/Show.S01E02.mp4", minutes=1),
            obj("videos/Extras.mp4", minutes=9),
        ])
        assert [e.display_name for e in catalog.videos] == [
            "Show.S01E02",
            "Show.S01E10",
            "Show.S02E01",
            "Extras",
        ]

    def test_non_episodic_by_name(self):
        catalog = build_catalog([
            obj("videos/zebra.mp4"),
            obj("videos/Apple.mp4"),
            obj("videos/Show.S01E01.mp4"),
        ])
        assert [e.display_name for e in catalog.videos] == ["Show.S01E01", "Apple", "zebra"]

    def test_grouped_by_series_and_season(self):
        catalog = build_catalog([
            obj("videos/Boston.Legal.S01E02.mkv"),
            obj("videos/Boston.Legal.S01E01.mkv"),
            obj("videos/Boston.Legal.S02E01.mkv"),
            obj("videos/Archer.1x03.mp4"),
            obj("videos/random_clip.mp4"),
        ])

        assert list(catalog.grouped) == ["Archer", "Boston Legal"]
        assert list(catalog.grouped["Boston Legal"]) == [1, 2]
        season_one = catalog.grouped["Boston Legal"][1]
        assert [e.episode_info.episode for e in season_one] == [1, 2]
        assert [e.display_name for e in catalog.ungrouped] == ["random_clip"]

    def test_every_video_in_exactly_one_group(self):
        catalog = build_catalog([
            obj("videos/A.S01E01.mp4"),
            obj("videos/b.mp4"),
            obj("videos/A.S01E02.mp4"),
        ])
        grouped_keys = [
            e.key
            for seasons in catalog.grouped.values()
            for episodes in seasons.values()
            for e in episodes
        ]
        ungrouped_keys = [e.key for e in catalog.ungrouped]
        assert sorted(grouped_keys + ungrouped_keys) == sorted(e.key for e in catalog.videos)


class TestNextEpisode:
    """find_next_episode"""

    def test_next_in_series(self):
        catalog = build_catalog([
            obj("videos/Show.S01E01.mp4"),
            obj("videos/Show.S01E02.mp4"),
            obj("videos/Show.S02E01.mp4"),
        ])
        first, second, third = catalog.videos
        assert find_next_episode(first, catalog.videos) is second
        assert find_next_episode(second, catalog.videos) is third
        assert find_next_episode(third, catalog.videos) is None

    def test_series_match_ignores_case(self):
        catalog = build_catalog([obj("videos/show.S01E01.mp4"), obj("videos/SHOW.S01E02.mp4")])
        current = next(e for e in catalog.videos if e.key == "videos/show.S01E01.mp4")
        assert find_next_episode(current, catalog.videos).key == "videos/SHOW.S01E02.mp4"

    def test_non_episodic(self):
        catalog = build_catalog([obj("videos/movie.mp4")])
        assert find_next_episode(catalog.videos[0], catalog.videos) is None


class TestCatalogService:
    """CatalogService.list_catalog"""

    def test_lists_under_prefix(self, fake_store):
        fake_store.add("videos/a.mp4")
        fake_store.add("sync-data/ABCDEF.json")

        catalog = CatalogService(fake_store, "videos/").list_catalog()

        assert [e.key for e in catalog.videos] == ["videos/a.mp4"]

    def test_backend_failure_wrapped(self, fake_store):
        fake_store.fail_with = "timeout"

        with pytest.raises(StorageBackendError) as exc_info:
            CatalogService(fake_store).list_catalog()

        assert exc_info.value.message == "Failed to list videos"
        assert exc_info.value.details == "timeout"


class TestPosterNaming:
    """Only `-poster` images are posters"""

    def test_plain_image_not_a_poster(self):
        catalog = build_catalog([obj("videos/a.mp4", size=10), obj("videos/a.jpg", size=5)])
        assert catalog.videos[0].poster is None

    def test_plain_image_classified_unrecognized(self):
        assert classify_object(obj("videos/a.jpg")).kind == AssetKind.UNRECOGNIZED

    def test_poster_suffix_on_any_image_type(self):
        catalog = build_catalog([obj("videos/a.mp4"), obj("videos/a.jpg"), obj("videos/a-poster.webp")])
        assert catalog.videos[0].poster == "videos/a-poster.webp"


class TestOrderingWithOtherEpisodeStyles:
    """Any detected episode numbering switches off newest-first order"""

    def test_nxm_names(self):
        catalog = build_catalog([
            obj("videos/Archer.1x02.mp4", minutes=1),
            obj("videos/Archer.1x01.mp4", minutes=5),
            obj("videos/Archer.2x01.mp4", minutes=3),
        ])
        assert [e.display_name for e in catalog.videos] == ["Archer.1x01", "Archer.1x02", "Archer.2x01"]

    def test_season_episode_words(self):
        catalog = build_catalog([
            obj("videos/Show Season 1 Episode 2.mp4", minutes=1),
            obj("videos/Show Season 1 Episode 1.mp4", minutes=0),
            obj("videos/Bonus.mp4", minutes=9),
        ])
        assert [e.display_name for e in catalog.videos] == [
            "Show Season 1 Episode 1",
            "Show Season 1 Episode 2",
            "Bonus",
        ]
