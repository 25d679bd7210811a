"""CLI argument parsers and validators."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer


def parse_file_mapping(value: str) -> tuple[str, Path]:
    """Parse a file argument in format SRC=DEST."""
    if "=" not in value:
        raise typer.BadParameter(f"Must be SRC=DEST, got: {value!r}")
    src, dest = value.split("=", 1)
    if not src or not dest:
        raise typer.BadParameter(f"Must be SRC=DEST, got: {value!r}")
    return src, Path(dest)


def parse_modify_var(value: str) -> tuple[str, str]:
    """Parse a LESS variable override in format NAME=VALUE."""
    if "=" not in value:
        raise typer.BadParameter(f"Must be NAME=VALUE, got: {value!r}")
    name, var_value = value.split("=", 1)
    name = name.strip().lstrip("@")
    if not name:
        raise typer.BadParameter(f"Missing variable name in {value!r}")
    return name, var_value.strip()


def parse_json_object(value: str, option_name: str) -> dict[str, Any]:
    """Parse a JSON object passed on the command line."""
    try:
        data = json.loads(value)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"Invalid JSON for {option_name}: {e}") from e

    if not isinstance(data, dict):
        raise typer.BadParameter(f"{option_name} must be a JSON object")

    return data
