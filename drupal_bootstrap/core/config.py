"""Nested configuration store backed by the theme's package.json."""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any

from ..util import files

logger = logging.getLogger(__name__)

PACKAGE_FILE = "package.json"
PACKAGE_SECTION = "drupal-bootstrap"

DEFAULT_PREPROCESSOR = "less"
DEFAULT_VERSION = "^3.0.0"

DEFAULT_CONFIG: dict[str, Any] = {
    "bower": {"config": {}, "options": {}},
}

_MISSING = object()


def get_nested(data: dict[str, Any], key: str, default: Any = None) -> Any:
    """Look up a dotted key (``"bower.options"``) in a nested mapping."""
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict):
            return default
        node = node.get(part, _MISSING)
        if node is _MISSING:
            return default
    return node


def set_nested(data: dict[str, Any], key: str, value: Any) -> Any:
    """Assign a dotted key, creating intermediate mappings as needed."""
    parts = key.split(".")
    node = data
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            child = node[part] = {}
        node = child
    node[parts[-1]] = value
    return value


def deep_merge(base: dict[str, Any], *others: dict[str, Any] | None) -> dict[str, Any]:
    """Merge mappings recursively; later mappings win on conflicting keys."""
    merged = copy.deepcopy(base)
    for other in others:
        for key, value in (other or {}).items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = deep_merge(merged[key], value)
            else:
                merged[key] = copy.deepcopy(value)
    return merged


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (dict, list)) and not value)


def deep_clean(value: Any) -> Any:
    """Return a deep copy without None leaves or empty dicts/lists.

    Containers that only become empty after cleaning are dropped too, so
    ``deep_clean(deep_clean(x)) == deep_clean(x)``.
    """
    if isinstance(value, dict):
        cleaned_dict = {k: deep_clean(v) for k, v in value.items()}
        return {k: v for k, v in cleaned_dict.items() if not _is_empty(v)}
    if isinstance(value, list):
        cleaned_list = [deep_clean(v) for v in value]
        return [v for v in cleaned_list if not _is_empty(v)]
    return copy.deepcopy(value)


class ConfigStore:
    """Merged run configuration with dirty-tracking write-back.

    Values merge (increasing precedence) from ``DEFAULT_CONFIG``, the
    ``drupal-bootstrap`` section of ``package.json`` and call-time overrides.
    """

    def __init__(
        self,
        data: dict[str, Any],
        pkg: dict[str, Any] | None = None,
        metadata_path: Path | None = None,
    ):
        self.data = data
        self.pkg = pkg if pkg is not None else {}
        self.metadata_path = metadata_path
        self._original = deep_clean(data)

    @classmethod
    def load(
        cls, project_root: Path, overrides: dict[str, Any] | None = None
    ) -> ConfigStore:
        metadata_path = project_root / PACKAGE_FILE
        pkg = files.read_json(metadata_path)

        data = deep_merge(DEFAULT_CONFIG, pkg.get(PACKAGE_SECTION), overrides)

        # TODO: allow "package"/"version" to describe several packages once
        # multiple Bower endpoints are supported.
        if not data.get("preprocessor"):
            data["preprocessor"] = DEFAULT_PREPROCESSOR
        if not data.get("package"):
            suffix = "-sass" if data["preprocessor"] == "sass" else ""
            data["package"] = f"bootstrap{suffix}"
        if not data.get("version"):
            data["version"] = DEFAULT_VERSION

        logger.debug(f"Loaded configuration from {metadata_path}")
        return cls(data, pkg, metadata_path)

    def get(self, key: str, default: Any = None) -> Any:
        return get_nested(self.data, key, default)

    def set(self, key: str, value: Any) -> Any:
        return set_nested(self.data, key, value)

    def clean(self) -> dict[str, Any]:
        return deep_clean(self.data)

    def is_dirty(self) -> bool:
        return self.clean() != self._original

    def flush(self) -> bool:
        """Persist the cleaned configuration when it changed.

        Returns:
            True when package.json was written
        """
        config = self.clean()
        if config == self._original:
            return False
        if self.metadata_path is None:
            raise ValueError("ConfigStore has no metadata path to write to")

        self.pkg[PACKAGE_SECTION] = config
        files.write_json(self.metadata_path, self.pkg)
        self._original = config
        logger.debug(f"Saved configuration to {self.metadata_path}")
        return True
