"""Source extractors producing messages."""

from .base import Extractor, ExtractorError, normalize_comment
from .python import PythonCallExtractor
from .registry import ExtractorRegistry, build_extractor_registry

__all__ = [
    "Extractor",
    "ExtractorError",
    "ExtractorRegistry",
    "PythonCallExtractor",
    "build_extractor_registry",
    "normalize_comment",
]
