"""LESS preprocessor backed by ``lessc`` from the npm ``less`` package."""

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Any

from jinja2 import Environment, StrictUndefined

from ..core.errors import CompileError, ConfigurationError, ProcessExitError
from ..core.models import CompileOptions, CompileResult
from ..util import files
from ..util.process import run_logged
from .base import Preprocessor

logger = logging.getLogger(__name__)

_ERROR_LINE = re.compile(r"^\w*Error: ")
_ERROR_PATTERN = re.compile(
    r"^(?:\w*Error: )?(?P<message>.*?)(?: in (?P<file>.+?))?"
    r"(?: on line (?P<line>\d+), column (?P<column>\d+):)?\s*$"
)
_FUNCTION_NAME = re.compile(r"^[A-Za-z_][\w-]*$")

# A less plugin registering caller-supplied functions for one lessc run.
_PLUGIN_TEMPLATE = Environment(undefined=StrictUndefined, autoescape=False).from_string(
    """\
module.exports = {
  install: function (less, pluginManager) {
    var registry = less.functions.functionRegistry;
    var functions = {
{%- for name, source in functions %}
      {{ name | tojson }}: ({{ source }}),
{%- endfor %}
    };
    Object.keys(functions).forEach(function (name) {
      if (typeof registry.get === "function" && registry.get(name)) {
        throw new Error('Custom function "' + name + '" would replace a built-in LESS function.');
      }
      registry.add(name, function () {
        var args = Array.prototype.slice.call(arguments);
        args.unshift(less);
        var result = functions[name].apply(this, args);
        return result !== null && typeof result === "object" ? result : new less.tree.Anonymous(result);
      });
    });
  }
};
"""
)


def find_executable(root: Path) -> str | None:
    """Locate ``lessc``, preferring the project's own node_modules."""
    local = shutil.which("lessc", path=str(root / "node_modules" / ".bin"))
    return local or shutil.which("lessc")


def _url(path: Path, start: Path) -> str:
    return Path(os.path.relpath(path, start)).as_posix()


class LessPreprocessor(Preprocessor):
    name = "less"
    package = "less"
    version = "2.5.3"
    asset_dirs = (
        ("fonts", "fonts"),
        ("js", "js"),
        ("less", "less"),
    )

    def __init__(self, root: Path, color: bool = True):
        self.executable: str | None = None
        super().__init__(root, color=color)

    def detect(self) -> bool:
        self.executable = find_executable(self.root)
        if self.executable is None:
            logger.debug(f'Backend "lessc" for "{self.name}" is not installed')
        return self.executable is not None

    def requirement(self) -> str:
        """npm install target compatible with the pinned version."""
        return f"{self.package}@^{self.version.lstrip('#^~')}"

    def install_command(self) -> list[str]:
        npm = shutil.which("npm")
        if npm is None:
            raise ConfigurationError(
                "npm executable not found on PATH; install Node.js to use the LESS preprocessor."
            )
        return [npm, "install", "--no-save", "--loglevel=error", self.requirement()]

    def render(self, src: str, dest: str, options: CompileOptions) -> CompileResult:
        src_path = files.resolve(src, self.root)
        dest_path = files.resolve(dest, self.root)

        paths = self.call_option(options.paths, src, "Generating @import paths failed.")
        include_paths = [src_path.parent]
        for path in paths or []:
            resolved = files.resolve(path, self.root)
            if resolved not in include_paths:
                include_paths.append(resolved)

        if options.source_map and not options.source_map_file_inline:
            options.source_map_filename = options.source_map_filename or f"{dest}.map"
        options.source_map_basepath = self.call_option(
            options.source_map_basepath, src, "Generating sourceMapBasepath failed."
        )

        cmd = [self.executable, "--no-color"]
        cmd.append("--include-path=" + os.pathsep.join(str(p) for p in include_paths))
        cmd.extend(f"--modify-var={key}={value}" for key, value in options.modify_vars.items())
        if options.compress:
            cmd.append("--compress")
        if options.source_map_basepath:
            cmd.append(f"--source-map-basepath={options.source_map_basepath}")

        # lessc loads the plugin by a path relative to the project root.
        with tempfile.TemporaryDirectory(prefix=".drupal-bootstrap-", dir=self.root) as tmp:
            work_dir = Path(tmp)
            output = work_dir / dest_path.name
            map_output: Path | None = None

            if options.source_map_file_inline:
                cmd.append("--source-map-map-inline")
            elif options.source_map:
                map_path = files.resolve(options.source_map_filename, self.root)
                map_output = work_dir / map_path.name
                cmd.append(f"--source-map={map_output}")
                cmd.append(f"--source-map-url={_url(map_path, dest_path.parent)}")

            if options.custom_functions:
                plugin = work_dir / "functions.js"
                plugin.write_text(self.plugin_source(options.custom_functions), encoding="utf-8")
                cmd.append(f"--plugin=./{_url(plugin, self.root)}")

            cmd.extend([str(src_path), str(output)])
            try:
                run_logged(cmd, cwd=self.root, capture_output=True, echo="never")
            except ProcessExitError as exc:
                raise self.less_error(exc.stderr or exc.stdout or str(exc), src) from exc

            css = output.read_text(encoding="utf-8")
            source_map = None
            if map_output is not None and map_output.is_file():
                source_map = map_output.read_text(encoding="utf-8")

        return CompileResult(css=css, map=source_map)

    def plugin_source(self, functions: dict[str, Any]) -> str:
        """Render the less plugin that registers ``customFunctions``.

        Each function is JavaScript source. It is called with the less API
        object followed by the LESS arguments; a non-object result becomes an
        anonymous literal.
        """
        entries = []
        for name, source in functions.items():
            if not _FUNCTION_NAME.match(name):
                raise ConfigurationError(f'Invalid LESS function name "{name}".')
            if not isinstance(source, str) or not source.strip():
                raise ConfigurationError(
                    f'LESS function "{name}" must be given as JavaScript source.'
                )
            entries.append((name.lower(), source.strip()))
        return _PLUGIN_TEMPLATE.render(functions=entries)

    def less_error(self, output: str, src: str) -> CompileError:
        lines = [line.strip() for line in output.splitlines() if line.strip()]
        errors = [line for line in lines if _ERROR_LINE.match(line)]
        first = (errors or lines or ["lessc failed"])[0]

        match = _ERROR_PATTERN.match(first)
        if not match or not match.group("message"):
            return CompileError(first, file=Path(src))
        line = match.group("line")
        column = match.group("column")
        return CompileError(
            match.group("message"),
            file=Path(match.group("file") or src),
            line=int(line) if line else None,
            column=int(column) if column else None,
        )
