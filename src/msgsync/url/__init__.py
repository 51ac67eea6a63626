"""URL pattern matching and localization."""

from .catalog import (
    build_manifest,
    compile_url,
    init_url_patterns,
    localize_default,
    pattern_from_translate,
    pattern_keys,
    pattern_to_translate,
    url_pattern_key,
)
from .matcher import URLManifestItem, URLMatch, URLMatcher, locale_from_path
from .patterns import PathPattern, PatternSyntaxError, fill

__all__ = [
    "PathPattern",
    "PatternSyntaxError",
    "URLManifestItem",
    "URLMatch",
    "URLMatcher",
    "build_manifest",
    "compile_url",
    "fill",
    "init_url_patterns",
    "locale_from_path",
    "localize_default",
    "pattern_from_translate",
    "pattern_keys",
    "pattern_to_translate",
    "url_pattern_key",
]
