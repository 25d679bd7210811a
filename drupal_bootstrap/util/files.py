"""Filesystem operations used by the install and compile tasks."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Literal

from ..core.errors import ConfigurationError, NotFoundError, WriteError

logger = logging.getLogger(__name__)


def _relative(path: Path) -> str:
    """Render a path relative to the process cwd for log output."""
    try:
        return f"./{path.relative_to(Path.cwd())}"
    except ValueError:
        return str(path)


def resolve(path: Path | str, root: Path | str | None = None) -> Path:
    """Resolve a path against a working root (default: process cwd)."""
    path = Path(path)
    if path.is_absolute():
        return path
    return Path(root if root is not None else Path.cwd()) / path


def exists(path: Path | str, root: Path | str | None = None) -> bool:
    """Return True when the path is an existing file or directory.

    Args:
        path: Path to check, relative to ``root``
        root: Working root (default: process cwd)

    Returns:
        False for an absent path; this never raises for a missing path.
    """
    full_path = resolve(path, root)
    try:
        full_path.lstat()
    except FileNotFoundError:
        return False
    return full_path.is_dir() or full_path.is_file()


def copy(
    src: Path | str,
    dest: Path | str,
    cwd: Path | str | Literal[False] | None = None,
) -> Path:
    """Copy a file or directory tree, like ``cp -r``.

    Args:
        src: Source file or directory
        dest: Destination file or directory; existing content is overwritten
        cwd: Base directory for ``src`` and ``dest`` (default: process cwd).
            Pass False to require absolute paths.

    Returns:
        Full destination path
    """
    if cwd is False:
        if not (Path(src).is_absolute() and Path(dest).is_absolute()):
            raise ValueError(
                f"copy with cwd=False requires absolute paths: {src!r}, {dest!r}"
            )
        src_path, dest_path = Path(src), Path(dest)
    else:
        src_path, dest_path = resolve(src, cwd), resolve(dest, cwd)

    logger.debug(f"Copying {_relative(src_path)} >> {_relative(dest_path)}")

    if src_path.is_dir():
        shutil.copytree(src_path, dest_path, dirs_exist_ok=True)
    elif src_path.is_file():
        ensure_parent(dest_path)
        shutil.copy2(src_path, dest_path)
    else:
        raise NotFoundError(_relative(src_path))

    return dest_path


def remove(path: Path | str, root: Path | str | None = None) -> Path:
    """Remove a file or directory with its contents, like ``rm -rf``.

    A path that does not exist is treated as already removed.
    """
    full_path = resolve(path, root)
    logger.debug(f"Deleting {_relative(full_path)}")

    if full_path.is_dir() and not full_path.is_symlink():
        shutil.rmtree(full_path, ignore_errors=False)
    else:
        full_path.unlink(missing_ok=True)

    return full_path


def ensure_parent(path: Path) -> None:
    """Ensure parent directories exist for the given path.

    Args:
        path: Path whose parent directories should be created
    """
    path.parent.mkdir(parents=True, exist_ok=True)


def atomic_write_text(path: Path, text: str, mode: int = 0o644) -> None:
    """Write text to a file atomically using a temporary file.

    Args:
        path: Destination file path
        text: Text content to write
        mode: File permissions (octal)
    """
    ensure_parent(path)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, path)
        os.chmod(path, mode)
    finally:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)


def write_text(path: Path | str, text: str, root: Path | str | None = None) -> Path:
    """Write a text file atomically, wrapping I/O failures in WriteError."""
    full_path = resolve(path, root)
    try:
        atomic_write_text(full_path, text)
    except OSError as exc:
        raise WriteError(_relative(full_path), exc) from exc
    return full_path


def write_json(path: Path | str, data: Any, root: Path | str | None = None) -> Path:
    """Serialize data as indented JSON and write it atomically."""
    full_path = resolve(path, root)
    logger.debug(f"Writing {_relative(full_path)}")
    return write_text(full_path, json.dumps(data, indent=2) + "\n")


def read_json(path: Path | str, root: Path | str | None = None) -> dict[str, Any]:
    """Read a JSON object from disk; a missing file yields an empty dict."""
    full_path = resolve(path, root)
    if not full_path.exists():
        return {}
    try:
        data = json.loads(full_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {_relative(full_path)}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Expected a JSON object in {_relative(full_path)}")
    return data
