"""
Filename Parser

Derives semantic attributes from object-storage keys: extension, asset kind,
base name, display name, subtitle language and series/season/episode.

Every function here is pure. Unparseable input degrades to a default value
("" / UNRECOGNIZED / "English" / None) and never raises.
"""
import re
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Callable, List, Optional, Tuple


class AssetKind(str, Enum):
    """Role of a storage object in the catalog"""
    VIDEO = "video"
    SUBTITLE = "subtitle"
    POSTER = "poster"
    UNRECOGNIZED = "unrecognized"


VIDEO_EXTENSIONS = {"mp4", "webm", "ogg", "mov", "avi", "mkv", "m4v"}
SUBTITLE_EXTENSIONS = {"srt", "vtt", "ass", "ssa"}
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "webp"}

CONTENT_TYPES = {
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ogg": "video/ogg",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "mkv": "video/x-matroska",
    "m4v": "video/x-m4v",
}
DEFAULT_CONTENT_TYPE = "video/mp4"
DEFAULT_SUBTITLE_LANGUAGE = "English"

POSTER_SUFFIX = "-poster"

EXTENSION_PATTERN = re.compile(r"\.[^.]+$")
TIMESTAMP_PREFIX_PATTERN = re.compile(r"^\d+-(.+)$")
UNSAFE_UPLOAD_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
SEASON_EPISODE_PATTERN = re.compile(r"[Ss](\d+)[Ee](\d+)")

# ISO 639-1 / 639-2 codes seen in subtitle filenames
LANGUAGE_CODES = {
    "en": "English", "eng": "English",
    "es": "Spanish", "spa": "Spanish",
    "fr": "French", "fre": "French", "fra": "French",
    "de": "German", "ger": "German", "deu": "German",
    "it": "Italian", "ita": "Italian",
    "pt": "Portuguese", "por": "Portuguese",
    "nl": "Dutch", "dut": "Dutch", "nld": "Dutch",
    "ru": "Russian", "rus": "Russian",
    "ja": "Japanese", "jpn": "Japanese",
    "ko": "Korean", "kor": "Korean",
    "zh": "Chinese", "chi": "Chinese", "zho": "Chinese",
    "ar": "Arabic", "ara": "Arabic",
    "hi": "Hindi", "hin": "Hindi",
    "sv": "Swedish", "swe": "Swedish",
    "pl": "Polish", "pol": "Polish",
    "tr": "Turkish", "tur": "Turkish",
}
LANGUAGE_NAMES = {name.lower() for name in LANGUAGE_CODES.values()} | {
    "danish", "finnish", "greek", "hebrew", "hungarian", "indonesian",
    "norwegian", "romanian", "thai", "ukrainian", "vietnamese", "czech",
}


@dataclass(frozen=True)
class EpisodeInfo:
    """Series/season/episode triple inferred from a filename"""
    series: str
    season: int
    episode: int

    def to_dict(self) -> dict:
        return asdict(self)


def extension_of(filename: str) -> str:
    """Lowercase substring after the last '.', or '' when there is none."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def classify_extension(ext: str) -> AssetKind:
    ext = (ext or "").lower()
    if ext in VIDEO_EXTENSIONS:
        return AssetKind.VIDEO
    if ext in SUBTITLE_EXTENSIONS:
        return AssetKind.SUBTITLE
    if ext in IMAGE_EXTENSIONS:
        return AssetKind.POSTER
    return AssetKind.UNRECOGNIZED


def filename_of(key: str) -> str:
    """Last path segment of an object key"""
    return key.rsplit("/", 1)[-1]


def strip_extension(filename: str) -> str:
    return EXTENSION_PATTERN.sub("", filename)


def is_poster_filename(filename: str) -> bool:
    """Image named `<identity>-poster.<ext>`"""
    return (
        classify_extension(extension_of(filename)) == AssetKind.POSTER
        and strip_extension(filename).endswith(POSTER_SUFFIX)
    )


def base_name(filename: str) -> str:
    """Filename without extension and without a trailing '-poster'."""
    name = strip_extension(filename)
    if name.endswith(POSTER_SUFFIX):
        name = name[: -len(POSTER_SUFFIX)]
    return name


def strip_timestamp_prefix(name: str) -> str:
    """Remove the '<epoch-millis>-' prefix added on upload."""
    match = TIMESTAMP_PREFIX_PATTERN.match(name)
    return match.group(1) if match else name


def display_name_from_key(filename: str) -> str:
    """
    Human-readable name for a video.

    Examples:
        1700000000000-My_Movie.mp4 → My Movie
        Boston.Legal.S01E02.mkv → Boston.Legal.S01E02
    """
    filename = filename_of(filename)
    match = TIMESTAMP_PREFIX_PATTERN.match(filename)
    if match:
        return strip_extension(match.group(1).replace("_", " "))
    return strip_extension(filename)


def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(extension_of(filename), DEFAULT_CONTENT_TYPE)


def sanitize_upload_filename(filename: str) -> str:
    return UNSAFE_UPLOAD_CHARS.sub("_", filename)


# ============== Subtitle language ==============

def _full_name(value: str) -> Optional[str]:
    return value.strip().title() or None


def _language_code(value: str) -> Optional[str]:
    return LANGUAGE_CODES.get(value.lower())


def _language_name(value: str) -> Optional[str]:
    if value.lower() in LANGUAGE_NAMES:
        return value.title()
    return None


# Order is the tie-break: the first pattern whose extractor accepts wins.
LANGUAGE_PATTERNS: List[Tuple[re.Pattern, Callable[[str], Optional[str]]]] = [
    # 2_eng,English.srt
    (re.compile(r",([A-Za-z][A-Za-z ]*[A-Za-z])\.[A-Za-z0-9]+$"), _full_name),
    # Movie_spa,.srt / Movie_spa,Latino.srt
    (re.compile(r"[_.\-]([A-Za-z]{2,3}),"), _language_code),
    # Movie.en.srt / Movie_eng.vtt
    (re.compile(r"[_.\-]([A-Za-z]{2,3})\.[A-Za-z0-9]+$"), _language_code),
    # Movie_Spanish.srt
    (re.compile(r"[_.\-]([A-Za-z]{4,})\.[A-Za-z0-9]+$"), _language_name),
]


def extract_subtitle_language(filename: str) -> str:
    """
    Detect the language of a subtitle file from its name.

    Defaults to English when nothing recognizable is found.
    """
    filename = filename_of(filename or "")
    for pattern, extractor in LANGUAGE_PATTERNS:
        match = pattern.search(filename)
        if not match:
            continue
        language = extractor(match.group(1))
        if language:
            return language
    return DEFAULT_SUBTITLE_LANGUAGE


# ============== Episode info ==============

# Order is the tie-break: first match wins.
EPISODE_PATTERNS = [
    # Show.Name.S01E05
    re.compile(r"^(.+?)[.\s_-]*[Ss](\d+)[Ee](\d+)"),
    # Show Name Season 1 Episode 5
    re.compile(r"^(.+?)[.\s_-]*Season\s*(\d+)\s*Episode\s*(\d+)", re.IGNORECASE),
    # Show.Name.1x05
    re.compile(r"^(.+?)[.\s_-]*(\d+)x(\d+)"),
]


def _normalize_series(raw: str) -> str:
    return re.sub(r"[._]", " ", raw).strip()


def parse_episode_info(name: str) -> Optional[EpisodeInfo]:
    """
    Infer series/season/episode from a display name.

    Returns None when no pattern matches, meaning "no episode metadata".
    """
    if not name:
        return None
    for pattern in EPISODE_PATTERNS:
        match = pattern.match(name)
        if not match:
            continue
        series = _normalize_series(match.group(1))
        if not series:
            continue
        return EpisodeInfo(
            series=series,
            season=int(match.group(2)),
            episode=int(match.group(3)),
        )
    return None


def parse_season_episode(name: str) -> Optional[Tuple[int, int]]:
    """Bare S<season>E<episode> lookup used for flat-list ordering"""
    match = SEASON_EPISODE_PATTERN.search(name or "")
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))
