"""Placeholder compilation and structural equivalence."""

from .elements import (
    CompiledElement,
    Composite,
    ElementDecodeError,
    Mixed,
    PluralForms,
    Text,
    composite_from_json,
    element_from_json,
    element_to_json,
    plural_from_json,
)
from .equivalence import is_equivalent
from .placeholders import PlaceholderSyntaxError, compile_text, compile_translation, render

__all__ = [
    "CompiledElement",
    "Composite",
    "ElementDecodeError",
    "Mixed",
    "PlaceholderSyntaxError",
    "PluralForms",
    "Text",
    "compile_text",
    "compile_translation",
    "composite_from_json",
    "element_from_json",
    "element_to_json",
    "is_equivalent",
    "plural_from_json",
    "render",
]
