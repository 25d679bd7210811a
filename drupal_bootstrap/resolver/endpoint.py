"""Bower endpoint strings: ``name=source#target``."""

from __future__ import annotations

import re

from ..core.errors import ConfigurationError
from ..core.models import Endpoint

_ENDPOINT_PATTERN = re.compile(r"^(?:([\w\-]|(?:[\w.\-]+[\w\-])?)=)?([^|#]+)(?:#(.*))?$")
_SOURCE_PATTERN = re.compile(r"[/\\@:]")
_WILDCARDS = {"", "*", "latest", "~"}


def is_wildcard(target: str | None) -> bool:
    return (target or "").strip() in _WILDCARDS


def decompose(value: str) -> Endpoint:
    """Split ``name=source#target`` into an Endpoint."""
    match = _ENDPOINT_PATTERN.match(value.strip())
    if not match:
        raise ConfigurationError(f"Invalid endpoint: {value}")
    name, source, target = (group.strip() if group else "" for group in match.groups())
    return Endpoint(name=name, source=source, target="*" if is_wildcard(target) else target)


def compose(endpoint: Endpoint, *, include_name: bool = True) -> str:
    """Render an Endpoint back to ``name=source#target`` form.

    Wildcard targets are omitted; ``include_name=False`` drops the
    ``name=`` prefix, which is how endpoints are shown to the user.
    """
    composed = ""
    if include_name and endpoint.name.strip():
        composed += f"{endpoint.name.strip()}="
    composed += endpoint.source.strip()
    if not is_wildcard(endpoint.target):
        composed += f"#{endpoint.target.strip()}"
    return composed


def json2decomposed(key: str, value: str) -> Endpoint:
    """Build an Endpoint from a ``{"name": "version or source"}`` pair."""
    key = key.strip()
    value = value.strip()
    if not key:
        raise ConfigurationError(f"The key must be specified for {value!r}")

    split = [part.strip() for part in value.split("#")]
    if len(split) > 1:
        endpoint = f"{key}={split[0] or key}#{split[1]}"
    elif _SOURCE_PATTERN.search(value):
        endpoint = f"{key}={value}#*"
    else:
        endpoint = f"{key}={key}#{split[0]}"
    return decompose(endpoint)
