"""Base preprocessor shared by the LESS and Sass backends."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import NoReturn

import typer

from ..core.errors import CompileError, ConfigurationError, DrupalBootstrapError
from ..core.models import CompileOptions, CompileResult, Endpoint
from ..resolver.bower import BowerResolver
from ..util import files
from ..util.process import run_logged

logger = logging.getLogger(__name__)


class Preprocessor:
    """A stylesheet compiler backend.

    Subclasses name the package that provides the backend
    (``package``/``version``), the module it is imported as (``module``) and
    the Bower package directories relocated after install (``asset_dirs``).
    Backends that are not Python modules override ``detect`` and
    ``install_command``.
    """

    name: str = ""
    package: str = ""
    version: str = ""
    module: str = ""
    asset_dirs: tuple[tuple[str, str], ...] = ()

    def __init__(self, root: Path, color: bool = True):
        self.root = root
        self.color = color
        self.initialized = False
        self.installed = False
        self.backend: ModuleType | None = None
        self.init()

    def init(self) -> None:
        """Look for the backend; only the first call has any effect."""
        if self.initialized:
            return
        self.initialized = True
        self.installed = self.detect()

    def detect(self) -> bool:
        """Import the backend module, returning True when it is available."""
        if not self.module:
            return False
        try:
            self.backend = importlib.import_module(self.module)
        except ImportError:
            logger.debug(f'Backend "{self.module}" for "{self.name}" is not installed')
            self.backend = None
        return self.backend is not None

    def requirement(self) -> str:
        """pip requirement for the backend, compatible with the pinned version."""
        if not self.version:
            return self.package
        major, _, rest = self.version.lstrip("#^~").partition(".")
        minor = rest.split(".", 1)[0] or "0"
        return f"{self.package}~={major}.{minor}"

    def install(self, force: bool = False) -> None:
        """Install the backend with its package manager unless already present."""
        if self.installed and not force:
            return

        if not self.package:
            logger.debug(
                f'The "{self.name}" preprocessor did not specify a package to install.'
            )
            return

        logger.info(f'Installing "{self.name}" preprocessor')
        run_logged(self.install_command(), cwd=self.root)

        importlib.invalidate_caches()
        self.installed = self.detect()
        if not self.installed:
            raise ConfigurationError(
                f'Installed {self.requirement()} but the "{self.name}" backend is still unavailable.'
            )

    def install_command(self) -> list[str]:
        return [
            sys.executable,
            "-m",
            "pip",
            "install",
            "--disable-pip-version-check",
            "--quiet",
            self.requirement(),
        ]

    def post_install(self, endpoint: Endpoint, resolver: BowerResolver) -> Endpoint:
        """Relocate the installed package's asset directories into the theme."""
        package_dir = resolver.components_path(endpoint)
        target_dir = resolver.endpoint_path(endpoint)
        self.copy_directories(
            [(package_dir / src, target_dir / dest) for src, dest in self.asset_dirs]
        )
        return endpoint

    def copy_directories(self, dirs: list[tuple[Path, Path]]) -> None:
        for src, dest in dirs:
            if files.exists(dest, self.root):
                files.remove(dest, self.root)
            files.copy(src, dest, cwd=self.root)

    def compile(self, src: str, dest: str, options: CompileOptions) -> CompileResult:
        """Compile one source file.

        Args:
            src: Source file, relative to the project root
            dest: Destination stylesheet the output is meant for
            options: Compile options; ``banner`` is expected to be rendered

        Returns:
            Compiled CSS, with the banner prepended, and an optional map
        """
        if self.package and not self.installed:
            raise ConfigurationError(
                f'The "{self.name}" preprocessor backend ({self.package}) is not installed.'
            )

        try:
            result = self.render(src, dest, options)
        except CompileError as err:
            self.error(err, src)

        if options.banner and result.css.strip():
            separator = "" if options.banner.endswith("\n") else "\n"
            result.css = f"{options.banner}{separator}{result.css}"
        return result

    def render(self, src: str, dest: str, options: CompileOptions) -> CompileResult:
        raise NotImplementedError

    def format_error(self, err: CompileError) -> str:
        filename = err.filename or (err.file.name if err.file else "")
        head = f"{filename}:"
        if err.line is None:
            position = err.message
        else:
            position = f"[{err.line}:{err.column or 0}] {err.message}"
        if self.color:
            head = typer.style(head, fg=typer.colors.YELLOW)
            position = typer.style(position, fg=typer.colors.RED)
        return f"{head}\n{position}"

    def error(self, err: CompileError, file: str) -> NoReturn:
        logger.error(self.format_error(err))
        logger.error(f"Error compiling {file}")
        raise err

    def wrap_error(self, exc: Exception, message: str) -> DrupalBootstrapError:
        return ConfigurationError(f"{message} ({exc})")

    def call_option(self, value, src: str, message: str):
        """Evaluate an option given as a function of the source path."""
        if not callable(value):
            return value
        try:
            return value(src)
        except Exception as exc:
            raise self.wrap_error(exc, message) from exc


class NullPreprocessor(Preprocessor):
    """Placeholder used before a valid preprocessor has been selected."""

    def render(self, src: str, dest: str, options: CompileOptions) -> CompileResult:
        return CompileResult(css="")
