"""
Filename Parser Tests

Extension classification, display names, subtitle language and episode info.
"""
import pytest

from vidstream.services.filename_parser import (
    AssetKind,
    EpisodeInfo,
    base_name,
    classify_extension,
    content_type_for,
    display_name_from_key,
    extension_of,
    extract_subtitle_language,
    parse_episode_info,
    parse_season_episode,
    sanitize_upload_filename,
    strip_timestamp_prefix,
)


class TestExtensions:
    """extension_of / classify_extension"""

    def test_extension_is_lowercased(self):
        assert extension_of("Movie.MP4") == "mp4"

    def test_extension_uses_last_dot(self):
        assert extension_of("Boston.Legal.S01E02.mkv") == "mkv"

    def test_no_extension(self):
        assert extension_of("README") == ""
        assert extension_of("") == ""

    @pytest.mark.parametrize("ext", ["mp4", "webm", "ogg", "mov", "avi", "mkv", "m4v"])
    def test_video_extensions(self, ext):
        assert classify_extension(ext) == AssetKind.VIDEO

    @pytest.mark.parametrize("ext", ["srt", "vtt", "ass", "ssa"])
    def test_subtitle_extensions(self, ext):
        assert classify_extension(ext) == AssetKind.SUBTITLE

    @pytest.mark.parametrize("ext", ["jpg", "jpeg", "png", "webp"])
    def test_image_extensions(self, ext):
        assert classify_extension(ext) == AssetKind.POSTER

    @pytest.mark.parametrize("ext", ["txt", "nfo", "", "json", "gif"])
    def test_other_extensions_unrecognized(self, ext):
        assert classify_extension(ext) == AssetKind.UNRECOGNIZED


class TestNames:
    """base_name / display_name_from_key"""

    def test_base_name_strips_extension(self):
        assert base_name("movie.mp4") == "movie"

    def test_base_name_strips_poster_suffix(self):
        assert base_name("movie-poster.jpg") == "movie"

    def test_base_name_keeps_inner_poster_text(self):
        assert base_name("poster-movie.jpg") == "poster-movie"

    def test_display_name_strips_timestamp_prefix(self):
        """Upload prefix removed, underscores become spaces, extension dropped."""
        assert display_name_from_key("1700000000000-My_Movie.mp4") == "My Movie"

    def test_display_name_without_prefix(self):
        assert display_name_from_key("Boston.Legal.S01E02.mkv") == "Boston.Legal.S01E02"

    def test_display_name_from_full_key(self):
        assert display_name_from_key("videos/shows/1700000000000-Pilot.mp4") == "Pilot"

    def test_strip_timestamp_prefix(self):
        assert strip_timestamp_prefix("1700000000000-a") == "a"
        assert strip_timestamp_prefix("a-1") == "a-1"

    def test_content_type(self):
        assert content_type_for("a.mkv") == "video/x-matroska"
        assert content_type_for("a.mov") == "video/quicktime"
        assert content_type_for("a.unknown") == "video/mp4"

    def test_sanitize_upload_filename(self):
        assert sanitize_upload_filename("My Movie (2020).mp4") == "My_Movie__2020_.mp4"


class TestSubtitleLanguage:
    """extract_subtitle_language"""

    def test_comma_full_name(self):
        assert extract_subtitle_language("1_eng,English.srt") == "English"

    def test_comma_full_name_is_title_cased(self):
        assert extract_subtitle_language("3_spa,spanish.srt") == "Spanish"

    def test_code_before_comma(self):
        assert extract_subtitle_language("Movie_fre,.srt") == "French"

    def test_dotted_code(self):
        assert extract_subtitle_language("Movie.de.vtt") == "German"

    def test_underscore_full_name(self):
        assert extract_subtitle_language("Movie_Italian.srt") == "Italian"

    def test_full_name_preferred_over_code(self):
        """Earlier patterns win when several could match."""
        assert extract_subtitle_language("2_spa,Latin American.srt") == "Latin American"

    def test_default_english(self):
        assert extract_subtitle_language("Movie.srt") == "English"
        assert extract_subtitle_language("Movie_trailer.srt") == "English"

    def test_uses_filename_only(self):
        assert extract_subtitle_language("videos/Subs/a/1_eng,English.srt") == "English"


class TestEpisodeInfo:
    """parse_episode_info / parse_season_episode"""

    def test_dotted_sxxexx(self):
        assert parse_episode_info("Boston.Legal.S01E02.mkv") == EpisodeInfo("Boston Legal", 1, 2)

    def test_season_episode_words(self):
        info = parse_episode_info("The Office Season 3 Episode 12")
        assert info == EpisodeInfo("The Office", 3, 12)

    def test_nxm(self):
        assert parse_episode_info("Breaking_Bad.2x05") == EpisodeInfo("Breaking Bad", 2, 5)

    def test_lowercase_sxxexx(self):
        assert parse_episode_info("show s2e10") == EpisodeInfo("show", 2, 10)

    def test_no_match(self):
        assert parse_episode_info("random_clip.mp4") is None
        assert parse_episode_info("") is None

    def test_sxxexx_preferred_over_nxm(self):
        """First pattern wins."""
        info = parse_episode_info("Show.S03E04.1x02")
        assert (info.season, info.episode) == (3, 4)

    def test_parse_season_episode(self):
        assert parse_season_episode("Show S02E07 Final") == (2, 7)
        assert parse_season_episode("Movie") is None
