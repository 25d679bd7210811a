"""Shared fixtures: a throwaway theme directory and fake compiler backends."""

from __future__ import annotations

import importlib
import json
import re
import subprocess
import types
from pathlib import Path

import pytest

from drupal_bootstrap.core.context import BuildContext
from drupal_bootstrap.core.errors import ProcessExitError
from drupal_bootstrap.core.settings import RunOptions
from drupal_bootstrap.preprocessors import less as less_module

_real_import_module = importlib.import_module


class FakeLessc:
    """Stands in for a ``lessc`` run, recording each command line."""

    executable = "/theme/node_modules/.bin/lessc"

    def __init__(self):
        self.calls = []

    def __call__(self, cmd, *, cwd=None, capture_output=False, echo="always"):
        cmd = list(cmd)
        flags = [arg for arg in cmd[1:] if arg.startswith("-")]
        src, out = (Path(arg) for arg in cmd[1:] if not arg.startswith("-"))
        call = {"cmd": cmd, "cwd": cwd, "flags": flags}
        self.calls.append(call)

        for flag in flags:
            if flag.startswith("--plugin="):
                call["plugin"] = (Path(cwd) / flag.removeprefix("--plugin=")).read_text(encoding="utf-8")

        source = src.read_text(encoding="utf-8")
        match = re.search(r"ERROR", source)
        if match:
            line = source[: match.start()].count("\n") + 1
            raise ProcessExitError(
                cmd,
                1,
                stdout="",
                stderr=f"ParseError: Unrecognised input in {src} on line {line}, column 1:\n{line} ERROR\n",
            )

        body = source.replace("\n", "") if "--compress" in flags else source
        for flag in flags:
            if flag.startswith("--modify-var="):
                key, _, value = flag.removeprefix("--modify-var=").partition("=")
                body += f"\n@{key.lstrip('@')}:{value};"
            elif flag.startswith("--source-map="):
                Path(flag.removeprefix("--source-map=")).write_text(
                    json.dumps({"version": 3, "file": out.name}), encoding="utf-8"
                )
            elif flag.startswith("--source-map-url="):
                body += f"\n/*# sourceMappingURL={flag.removeprefix('--source-map-url=')} */"
            elif flag == "--source-map-map-inline":
                body += "\n/*# sourceMappingURL=data:application/json;base64,e30= */"
        out.write_text(f"/* less:{src.name} */\n{body}", encoding="utf-8")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


SASS_KEYWORDS = {
    "filename",
    "output_filename_hint",
    "output_style",
    "include_paths",
    "precision",
    "source_comments",
    "source_map_filename",
    "source_map_embed",
    "source_map_contents",
    "source_map_root",
    "custom_functions",
    "importers",
}


class FakeSassCompileError(ValueError):
    pass


def make_fake_sass() -> types.ModuleType:
    module = types.ModuleType("sass")
    module.CompileError = FakeSassCompileError
    module.calls = []

    def compile(**kwargs):
        unknown = sorted(set(kwargs) - SASS_KEYWORDS)
        if unknown:
            raise TypeError(f"compile() got an unexpected keyword argument '{unknown[0]}'")
        module.calls.append(kwargs)
        source = Path(kwargs["filename"]).read_text(encoding="utf-8")
        if "ERROR" in source:
            raise FakeSassCompileError(
                'Error: Invalid CSS after "a {": expected "}", was ""\n'
                f"        on line 2:5 of {kwargs['filename']}\n"
                ">> a {\n"
            )
        css = f"/* sass:{kwargs['output_style']} */\n{source}"
        if kwargs.get("source_map_filename"):
            return css, json.dumps({"version": 3, "file": kwargs["output_filename_hint"]})
        return css

    module.compile = compile
    return module


@pytest.fixture
def fake_lessc(monkeypatch) -> FakeLessc:
    """Route LESS compiles through a fake ``lessc``."""
    lessc = FakeLessc()
    monkeypatch.setattr(less_module, "find_executable", lambda root: FakeLessc.executable)
    monkeypatch.setattr(less_module, "run_logged", lessc)
    return lessc


@pytest.fixture
def fake_sass() -> types.ModuleType:
    return make_fake_sass()


@pytest.fixture
def fake_backends(monkeypatch, fake_lessc, fake_sass):
    """Fake ``lessc`` and make ``sass`` import as the fake module."""
    backends = {"lessc": fake_lessc, "sass": fake_sass}

    def import_module(name, package=None):
        if name == "sass":
            return fake_sass
        return _real_import_module(name, package)

    monkeypatch.setattr(importlib, "import_module", import_module)
    return backends


@pytest.fixture
def project(tmp_path, monkeypatch) -> Path:
    """A theme directory with a minimal package.json."""
    for var in ("FORCE", "DEBUG", "VERBOSE", "IS_TEST", "COLOR", "ROOT"):
        monkeypatch.delenv(f"DRUPAL_BOOTSTRAP_{var}", raising=False)
    root = tmp_path / "theme"
    root.mkdir()
    (root / "package.json").write_text(
        json.dumps({"name": "my_theme", "version": "1.2.0"}, indent=2) + "\n"
    )
    return root


@pytest.fixture
def make_context(project, fake_backends):
    """Factory for build contexts rooted at the test project."""

    def _make(overrides=None, **flags) -> BuildContext:
        flags.setdefault("color", False)
        return BuildContext(RunOptions(root=project, **flags), overrides)

    return _make


@pytest.fixture
def ctx(make_context) -> BuildContext:
    return make_context()


def write(root: Path, relative: str, text: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path
