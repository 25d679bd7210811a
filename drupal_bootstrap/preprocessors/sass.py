"""Sass preprocessor backed by libsass."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from ..core.errors import CompileError, ConfigurationError
from ..core.models import CompileOptions, CompileResult
from ..util import files
from .base import Preprocessor

logger = logging.getLogger(__name__)

_POSITION_PATTERN = re.compile(r"on line (\d+):(\d+) of (.+)")


class SassPreprocessor(Preprocessor):
    name = "sass"
    package = "libsass"
    version = "0.23.0"
    module = "sass"
    asset_dirs = (
        ("assets/fonts/bootstrap", "fonts"),
        ("assets/javascripts/bootstrap", "js"),
        ("assets/stylesheets/bootstrap", "scss"),
    )

    def render(self, src: str, dest: str, options: CompileOptions) -> CompileResult:
        kwargs: dict[str, Any] = dict(options.model_extra or {})
        kwargs.update(
            filename=str(files.resolve(src, self.root)),
            output_filename_hint=str(files.resolve(dest, self.root)),
            output_style="compressed" if options.compress else "nested",
        )

        paths = self.call_option(options.paths, src, "Generating @import paths failed.")
        if paths:
            kwargs["include_paths"] = [str(files.resolve(p, self.root)) for p in paths]

        if options.source_map or options.source_map_file_inline:
            map_filename = options.source_map_filename or f"{dest}.map"
            kwargs["source_map_filename"] = str(files.resolve(map_filename, self.root))
        if options.source_map_file_inline:
            kwargs["source_map_embed"] = True
            kwargs["source_map_contents"] = True

        basepath = self.call_option(
            options.source_map_basepath, src, "Generating sourceMapBasepath failed."
        )
        if basepath:
            kwargs["source_map_root"] = basepath

        if options.custom_functions:
            kwargs["custom_functions"] = options.custom_functions

        logger.debug(f"libsass options for {src}: {sorted(kwargs)}")
        try:
            output = self.backend.compile(**kwargs)
        except self.backend.CompileError as exc:
            raise self.sass_error(exc, src) from exc
        except TypeError as exc:
            raise ConfigurationError(f"Invalid Sass option ({exc})") from exc

        if isinstance(output, tuple):
            css, source_map = output
            return CompileResult(css=css, map=source_map)
        return CompileResult(css=output)

    def sass_error(self, exc: Exception, src: str) -> CompileError:
        text = str(exc).strip()
        first_line = text.splitlines()[0] if text else exc.__class__.__name__
        message = first_line.removeprefix("Error: ").strip()
        match = _POSITION_PATTERN.search(text)
        if match:
            return CompileError(
                message,
                file=Path(match.group(3).strip()),
                line=int(match.group(1)),
                column=int(match.group(2)),
            )
        return CompileError(message, file=Path(src))
