"""Bower resolver: installs package endpoints through the ``bower`` CLI."""

from __future__ import annotations

import json
import logging
import re
import shutil
from pathlib import Path
from typing import Any

from ..core.config import ConfigStore, deep_merge
from ..core.errors import ProcessExitError, ResolverError
from ..core.models import Endpoint
from ..util import files
from ..util.process import run_logged
from .endpoint import compose, json2decomposed

logger = logging.getLogger(__name__)

COMPONENTS_DIR = "bower_components"
DEFAULT_PACKAGE_DIR = "bootstrap"

DEFAULT_CONFIG: dict[str, Any] = {"ignoredDependencies": ["jquery"]}
DEFAULT_OPTIONS: dict[str, Any] = {"interactive": True, "save": False}


def _kebab(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()


def _config_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(str(item) for item in value)
    return str(value)


class BowerResolver:
    """Wraps ``bower install`` for the configured package endpoint."""

    def __init__(
        self,
        root: Path,
        endpoints: list[Endpoint],
        config: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
        verbose: bool = False,
    ):
        self.root = root
        self.endpoints = endpoints
        self.config = deep_merge(DEFAULT_CONFIG, config)
        self.options = deep_merge(DEFAULT_OPTIONS, options)
        self.verbose = verbose

    @classmethod
    def from_config(
        cls, store: ConfigStore, root: Path, verbose: bool = False
    ) -> BowerResolver:
        """Build the resolver from ``package``, ``version`` and ``bower.*``."""
        endpoint = json2decomposed(str(store.get("package")), str(store.get("version")))
        return cls(
            root,
            [endpoint],
            config=store.get("bower.config", {}),
            options=store.get("bower.options", {}),
            verbose=verbose,
        )

    @property
    def interactive(self) -> bool:
        return bool(self.options.get("interactive"))

    def endpoint_path(self, endpoint: Endpoint) -> Path:
        """Directory, relative to the project root, the package lives in."""
        return Path(endpoint.name or DEFAULT_PACKAGE_DIR)

    def components_path(self, endpoint: Endpoint) -> Path:
        """Directory, relative to the project root, Bower installs into."""
        return Path(COMPONENTS_DIR) / self.endpoint_path(endpoint)

    def is_installed(self, endpoint: Endpoint) -> bool:
        return files.exists(self.endpoint_path(endpoint), self.root)

    def remove_components(self) -> None:
        """Remove a leftover bower_components directory, if any."""
        if files.exists(COMPONENTS_DIR, self.root):
            files.remove(COMPONENTS_DIR, self.root)

    def build_command(self, endpoint: Endpoint) -> list[str]:
        cmd = ["bower", "install", compose(endpoint)]
        cmd.append(f"--config.interactive={_config_value(self.interactive)}")
        for key, value in sorted(self.options.items()):
            if key == "interactive" or not value:
                continue
            cmd.append(f"--{_kebab(key)}")
        for key, value in sorted(self.config.items()):
            if key == "interactive" or value in (None, "", [], {}):
                continue
            cmd.append(f"--config.{key}={_config_value(value)}")
        return cmd

    def install(self, endpoint: Endpoint) -> dict[str, Any]:
        """Install a single endpoint and return its resolved package metadata.

        Args:
            endpoint: Endpoint to install

        Returns:
            The ``.bower.json`` metadata Bower wrote for the package

        Raises:
            ResolverError: when bower is missing, fails or installs nothing
        """
        if shutil.which("bower") is None:
            raise ResolverError(
                "bower executable not found on PATH; install it with `npm install -g bower`."
            )

        cmd = self.build_command(endpoint)
        # Prompts need the terminal; otherwise only show output on failure.
        capture = not self.interactive and not self.verbose
        try:
            run_logged(cmd, cwd=self.root, capture_output=capture, echo="on_error")
        except ProcessExitError as exc:
            raise ResolverError(
                f'Bower failed to install "{compose(endpoint, include_name=False)}" '
                f"(exit code {exc.returncode})"
            ) from exc

        meta_path = self.root / self.components_path(endpoint) / ".bower.json"
        if not meta_path.is_file():
            raise ResolverError(
                f'Bower did not install "{compose(endpoint, include_name=False)}" '
                f"into {self.components_path(endpoint)}"
            )
        meta = json.loads(meta_path.read_text(encoding="utf-8"))
        logger.debug(f"Resolved {meta.get('name')}#{meta.get('version')}")
        return meta
