"""Exception types raised while installing assets or compiling stylesheets."""

from __future__ import annotations

from pathlib import Path


class DrupalBootstrapError(Exception):
    """Base exception for every fatal condition of a run."""


class NotFoundError(DrupalBootstrapError):
    """A file or directory required by an operation does not exist."""

    def __init__(self, path: Path | str):
        super().__init__(f"{path} does not exist")
        self.path = Path(path)


class WriteError(DrupalBootstrapError):
    """Writing a file failed; ``cause`` holds the underlying OS error."""

    def __init__(self, path: Path | str, cause: BaseException):
        super().__init__(f'Unable to write "{path}" file ({cause}).')
        self.path = Path(path)
        self.cause = cause


class ProcessExitError(DrupalBootstrapError):
    """An external command exited with a non-zero status."""

    def __init__(
        self,
        command: list[str],
        returncode: int,
        stdout: str | None = None,
        stderr: str | None = None,
    ):
        super().__init__(
            f"Command '{' '.join(command)}' exited with status {returncode}"
        )
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class ResolverError(DrupalBootstrapError):
    """The Bower resolver failed to install an endpoint."""


class ConfigurationError(DrupalBootstrapError):
    """The project configuration or a caller option is invalid."""


class CompileError(DrupalBootstrapError):
    """A preprocessor backend reported a syntax or evaluation error.

    ``line`` and ``column`` are None when the backend gave no position.
    """

    def __init__(
        self,
        message: str,
        file: Path | str | None = None,
        line: int | None = None,
        column: int | None = None,
        filename: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.file = Path(file) if file is not None else None
        self.line = line
        self.column = column
        self.filename = filename
