"""Main CLI application."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Optional

import typer
from typing_extensions import Annotated

from ..core.config import deep_merge
from ..core.context import BuildContext
from ..core.errors import DrupalBootstrapError
from ..core.models import CompileOptions, FileMapping
from ..core.settings import RunOptions
from ..tasks.compile import load_targets, run_compile, target_mappings
from ..tasks.install import run_install
from .parsers import parse_file_mapping, parse_json_object, parse_modify_var

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="drupal-bootstrap",
    help="Install Bootstrap into a Drupal theme and compile its LESS/Sass sources.",
)

RootOption = Annotated[
    Optional[Path],
    typer.Option("--root", help="Theme directory containing package.json (default: cwd).", metavar="DIR"),
]
ForceOption = Annotated[
    bool, typer.Option("--force", help="Reinstall even when already installed.")
]
DebugOption = Annotated[bool, typer.Option("--debug", help="Enable debug output.")]
VerboseOption = Annotated[
    bool, typer.Option("--verbose", "-v", help="Enable verbose logging.")
]
IsTestOption = Annotated[
    bool,
    typer.Option("--is-test", help="Do not write configuration back to package.json."),
]
NoColorOption = Annotated[
    bool, typer.Option("--no-color", help="Disable colored error output.")
]
PreprocessorOption = Annotated[
    Optional[str],
    typer.Option("--preprocessor", help="Preprocessor to use: less or sass.", metavar="NAME"),
]


def _run_options(
    root: Path | None, force: bool, debug: bool, verbose: bool, is_test: bool, no_color: bool
) -> RunOptions:
    # Flags left unset fall back to DRUPAL_BOOTSTRAP_* environment variables.
    explicit: dict[str, Any] = {
        "force": force,
        "debug": debug,
        "verbose": verbose,
        "is_test": is_test,
    }
    values = {key: value for key, value in explicit.items() if value}
    if root is not None:
        values["root"] = root.resolve()
    if no_color:
        values["color"] = False
    return RunOptions(**values)


def _configure_logging(options: RunOptions) -> None:
    logging.basicConfig(
        level=logging.DEBUG if options.verbose or options.debug else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


@contextmanager
def _fatal_errors() -> Iterator[None]:
    """Turn a failed run into a logged message and exit status 1."""
    try:
        yield
    except DrupalBootstrapError as exc:
        logger.error(f"Fatal error: {exc}")
        raise typer.Exit(code=1) from exc


@app.command()
def install(
    root: RootOption = None,
    preprocessor: PreprocessorOption = None,
    package: Annotated[
        Optional[str],
        typer.Option("--package", help="Bower package to install.", metavar="NAME"),
    ] = None,
    version: Annotated[
        Optional[str],
        typer.Option("--version", help="Version or range to install.", metavar="RANGE"),
    ] = None,
    bower_config: Annotated[
        Optional[str],
        typer.Option("--bower-config", help="Bower config overrides (JSON object).", metavar="JSON"),
    ] = None,
    bower_options: Annotated[
        Optional[str],
        typer.Option("--bower-options", help="Bower install options (JSON object).", metavar="JSON"),
    ] = None,
    force: ForceOption = False,
    debug: DebugOption = False,
    verbose: VerboseOption = False,
    is_test: IsTestOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Install the Bootstrap assets and the preprocessor backend."""
    options = _run_options(root, force, debug, verbose, is_test, no_color)
    _configure_logging(options)

    overrides: dict[str, Any] = {
        key: value
        for key, value in (
            ("preprocessor", preprocessor),
            ("package", package),
            ("version", version),
        )
        if value
    }
    if bower_config:
        overrides.setdefault("bower", {})["config"] = parse_json_object(bower_config, "--bower-config")
    if bower_options:
        overrides.setdefault("bower", {})["options"] = parse_json_object(bower_options, "--bower-options")

    logger.debug(f"Starting install in {options.root}")
    with _fatal_errors():
        with BuildContext(options, overrides) as ctx:
            run_install(ctx)


@app.command("compile")
def compile_command(
    target: Annotated[
        Optional[str],
        typer.Argument(help="Compile target to run (default: every target)."),
    ] = None,
    file_mappings: Annotated[
        list[str],
        typer.Option(
            "--file",
            help="Compile SRC into DEST (format: SRC=DEST). Repeatable; sources sharing a DEST are concatenated.",
            metavar="SRC=DEST",
        ),
    ] = [],
    banner: Annotated[
        Optional[str],
        typer.Option("--banner", help="Banner template placed atop each stylesheet.", metavar="TEXT"),
    ] = None,
    compress: Annotated[bool, typer.Option("--compress", help="Minify the output.")] = False,
    source_map: Annotated[
        bool, typer.Option("--source-map", help="Generate source maps.")
    ] = False,
    source_map_inline: Annotated[
        bool, typer.Option("--source-map-inline", help="Embed source maps in the CSS.")
    ] = False,
    source_map_filename: Annotated[
        Optional[str],
        typer.Option("--source-map-filename", help="Source map path (default: DEST.map).", metavar="PATH"),
    ] = None,
    modify_vars: Annotated[
        list[str],
        typer.Option("--modify-var", help="Override a LESS variable (format: NAME=VALUE). Repeatable.", metavar="NAME=VALUE"),
    ] = [],
    paths: Annotated[
        list[str],
        typer.Option("--path", help="Additional @import search path. Repeatable.", metavar="DIR"),
    ] = [],
    extra_options: Annotated[
        Optional[str],
        typer.Option("--options", help="Additional backend options (JSON object).", metavar="JSON"),
    ] = None,
    preprocessor: PreprocessorOption = None,
    targets_file: Annotated[
        Optional[Path],
        typer.Option("--targets-file", help="YAML file with compile targets (default: drupal-bootstrap.yml).", metavar="FILE"),
    ] = None,
    root: RootOption = None,
    debug: DebugOption = False,
    verbose: VerboseOption = False,
    is_test: IsTestOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Compile LESS/Sass sources into CSS."""
    options = _run_options(root, False, debug, verbose, is_test, no_color)
    _configure_logging(options)

    overrides: dict[str, Any] = parse_json_object(extra_options, "--options") if extra_options else {}
    flag_overrides: dict[str, Any] = {
        "banner": banner,
        "preprocessor": preprocessor,
        "compress": compress or None,
        "sourceMap": source_map or None,
        "sourceMapFileInline": source_map_inline or None,
        "sourceMapFilename": source_map_filename,
        "modifyVars": dict(map(parse_modify_var, modify_vars)) or None,
        "paths": list(paths) or None,
    }
    overrides.update({key: value for key, value in flag_overrides.items() if value is not None})
    parsed_files = [parse_file_mapping(value) for value in file_mappings]

    with _fatal_errors():
        with BuildContext(options) as ctx:
            targets = load_targets(ctx, targets_file)
            if parsed_files:
                mappings = _adhoc_mappings(parsed_files, targets.get("options") or {}, overrides)
            else:
                mappings = target_mappings(targets, target, overrides)
            logger.debug(f"Config: {len(mappings)} mapping(s)")
            run_compile(ctx, mappings)


def _adhoc_mappings(
    parsed_files: list[tuple[str, Path]],
    shared: dict[str, Any],
    overrides: dict[str, Any],
) -> list[FileMapping]:
    options = CompileOptions.model_validate(deep_merge(shared, overrides))
    by_dest: dict[Path, list[str]] = {}
    for src, dest in parsed_files:
        by_dest.setdefault(dest, []).append(src)
    return [
        FileMapping(sources=sources, dest=dest, options=options)
        for dest, sources in by_dest.items()
    ]


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
