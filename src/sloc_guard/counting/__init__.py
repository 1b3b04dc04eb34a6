"""Per-language line classification."""

from .counter import DIRECTIVE_PREFIX, LineCounter, LineStats
from .languages import BUILTIN_LANGUAGES, LanguageDefinition, LanguageRegistry

__all__ = [
    "DIRECTIVE_PREFIX",
    "LineCounter",
    "LineStats",
    "LanguageDefinition",
    "LanguageRegistry",
    "BUILTIN_LANGUAGES",
]
