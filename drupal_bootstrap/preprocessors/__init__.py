"""Stylesheet preprocessors: LESS (default) and Sass."""

from __future__ import annotations

from pathlib import Path

from .base import NullPreprocessor, Preprocessor
from .less import LessPreprocessor
from .sass import SassPreprocessor

PREPROCESSORS: dict[str, type[Preprocessor]] = {
    LessPreprocessor.name: LessPreprocessor,
    SassPreprocessor.name: SassPreprocessor,
}

_EXTENSIONS = {
    ".less": LessPreprocessor.name,
    ".sass": SassPreprocessor.name,
    ".scss": SassPreprocessor.name,
}


def preprocessor_for_file(path: str | Path) -> str | None:
    """Name of the preprocessor that handles a file, by extension."""
    return _EXTENSIONS.get(Path(path).suffix.lower())


__all__ = [
    "PREPROCESSORS",
    "LessPreprocessor",
    "NullPreprocessor",
    "Preprocessor",
    "SassPreprocessor",
    "preprocessor_for_file",
]
