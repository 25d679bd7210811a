"""Compile task: turn LESS/Sass sources into concatenated stylesheets."""

from __future__ import annotations

import glob
import logging
from pathlib import Path
from typing import Any

import yaml
from jinja2 import Environment, StrictUndefined, TemplateError

from ..core.config import deep_merge
from ..core.context import BuildContext
from ..core.errors import ConfigurationError
from ..core.models import CompileOptions, FileMapping, Tally
from ..preprocessors import preprocessor_for_file
from ..util import files

logger = logging.getLogger(__name__)

TARGETS_FILE = "drupal-bootstrap.yml"

_GLOB_CHARS = set("*?[")


def _pluralize(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def render_banner(banner: str, ctx: BuildContext) -> str:
    """Render a banner template with ``pkg`` and ``config`` in scope.

    Args:
        banner: Jinja2 template text, e.g. ``/*! {{ pkg.name }} */``
        ctx: Build context supplying package.json and configuration

    Returns:
        Rendered banner text
    """
    if not banner:
        return ""
    env = Environment(
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
    )
    try:
        template = env.from_string(banner)
        return template.render(pkg=ctx.config.pkg, config=ctx.config.clean())
    except TemplateError as exc:
        raise ConfigurationError(f"Invalid banner template: {exc}") from exc


def expand_sources(patterns: list[str], root: Path) -> list[str]:
    """Expand glob patterns relative to ``root``; literal paths are kept."""
    expanded: list[str] = []
    for pattern in patterns:
        if _GLOB_CHARS.intersection(pattern):
            matches = sorted(glob.glob(pattern, root_dir=str(root), recursive=True))
            expanded.extend(m for m in matches if m not in expanded)
        elif pattern not in expanded:
            expanded.append(pattern)
    return expanded


def existing_sources(mapping: FileMapping, root: Path) -> list[str]:
    """Drop sources that do not exist, warning about each one."""
    sources = []
    for source in expand_sources(mapping.sources, root):
        if not (root / source).is_file():
            logger.warning(f'Source file "{source}" not found.')
            continue
        sources.append(source)
    return sources


def compile_mapping(ctx: BuildContext, mapping: FileMapping, tally: Tally) -> Path | None:
    """Compile every source of a mapping and write the concatenated result.

    Args:
        ctx: Build context
        mapping: Sources, destination and options
        tally: Counters updated with written stylesheets and maps

    Returns:
        Destination path, or None when nothing was written
    """
    dest = str(mapping.dest)
    options = mapping.options

    sources = existing_sources(mapping, ctx.root)
    if not sources:
        logger.warning(
            f"Destination {dest} not written because no source files were found."
        )
        return None

    if files.exists(dest, ctx.root):
        files.remove(dest, ctx.root)

    banner = render_banner(options.banner, ctx)
    compiled: list[str] = []

    for index, source in enumerate(sources):
        name = options.preprocessor or preprocessor_for_file(source)
        if not name:
            raise ConfigurationError(
                f'Unable to determine a preprocessor for "{source}"; '
                "set the `preprocessor` option."
            )
        preprocessor = ctx.get_preprocessor(name)
        preprocessor.install()

        # Only the first source keeps the banner so it heads the combined file.
        source_options = options.model_copy(update={"banner": banner if index == 0 else ""})
        output = preprocessor.compile(source, dest, source_options)
        compiled.append(output.css)

        if output.map and options.source_map and not options.source_map_file_inline:
            map_filename = options.source_map_filename or f"{dest}.map"
            files.write_text(map_filename, output.map, ctx.root)
            logger.debug(f"File {map_filename} created.")
            tally.maps += 1

    if not any(css.strip() for css in compiled):
        logger.warning(
            f"Destination {dest} not written because compiled files were empty."
        )
        return None

    separator = "" if options.compress else "\n"
    output_path = files.write_text(dest, separator.join(compiled), ctx.root)
    logger.debug(f"File {dest} created")
    tally.sheets += 1
    return output_path


def run_compile(ctx: BuildContext, mappings: list[FileMapping]) -> Tally:
    """Compile all mappings in order and report what was written.

    Args:
        ctx: Build context
        mappings: File mappings to compile

    Returns:
        Counts of stylesheets and source maps written
    """
    tally = Tally()
    if not mappings:
        logger.debug("Destination not written because no source files were provided.")

    for mapping in mappings:
        compile_mapping(ctx, mapping, tally)

    if tally.sheets:
        logger.info(f"{_pluralize(tally.sheets, 'stylesheet', 'stylesheets')} created.")
    if tally.maps:
        logger.info(f"{_pluralize(tally.maps, 'sourcemap', 'sourcemaps')} created.")
    return tally


def _file_entries(files_config: Any) -> list[tuple[list[str], str]]:
    """Normalize ``{dest: src}`` or ``[{"src": ..., "dest": ...}]`` entries."""
    if isinstance(files_config, dict):
        items = list(files_config.items())
    elif isinstance(files_config, list):
        items = [(entry.get("dest"), entry.get("src")) for entry in files_config]
    else:
        raise ConfigurationError(f"Invalid compile files definition: {files_config!r}")

    entries = []
    for dest, src in items:
        if not dest or not src:
            raise ConfigurationError(f"Compile files need a src and a dest: {dest!r}")
        entries.append(([src] if isinstance(src, str) else list(src), str(dest)))
    return entries


def load_targets(ctx: BuildContext, targets_file: Path | None = None) -> dict[str, Any]:
    """Read compile targets from package.json and the YAML targets file.

    Targets in the YAML file override those in package.json.
    """
    targets = ctx.config.get("compile", {}) or {}

    path = targets_file or ctx.root / TARGETS_FILE
    if targets_file is not None and not path.exists():
        raise ConfigurationError(f"Targets file not found: {path}")
    if path.exists():
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path} must contain a mapping")
        targets = deep_merge(targets, data.get("compile") or {})
        logger.debug(f"Loaded compile targets from {path}")

    return targets


def target_mappings(
    targets: dict[str, Any],
    name: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> list[FileMapping]:
    """Build file mappings for one target, or every target when ``name`` is None.

    Task-level ``options`` apply to each target; target options and
    ``overrides`` take precedence, in that order.
    """
    shared = targets.get("options") or {}
    names = [n for n in targets if n != "options"] if name is None else [name]

    mappings: list[FileMapping] = []
    for target_name in names:
        target = targets.get(target_name)
        if not isinstance(target, dict):
            raise ConfigurationError(f'Compile target "{target_name}" is not defined.')
        options = CompileOptions.model_validate(
            deep_merge(shared, target.get("options") or {}, overrides)
        )
        for sources, dest in _file_entries(target.get("files")):
            mappings.append(FileMapping(sources=sources, dest=Path(dest), options=options))
    return mappings
