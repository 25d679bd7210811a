"""Domain models for endpoints, compile options and compile results."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Union

from pydantic import BaseModel, ConfigDict, Field


class Endpoint(BaseModel):
    """A requested or resolved Bower package reference."""

    name: str = Field(default="", description="Local package name")
    source: str = Field(..., description="Registry name, URL or path")
    target: str = Field(default="*", description="Version, range or resolved version")
    canonical_dir: Path | None = Field(
        default=None, description="Directory the resolver installed into"
    )


PathsOption = Union[list[str], Callable[[str], list[str]]]
BasepathOption = Union[str, Callable[[str], str]]


class CompileOptions(BaseModel):
    """Options for a compile target.

    Keys are accepted in their camelCase form (``sourceMap``) or by field
    name. Unknown keys are kept and handed to the Sass backend as-is.
    """

    model_config = ConfigDict(
        populate_by_name=True, extra="allow", arbitrary_types_allowed=True
    )

    banner: str = Field(default="", description="Jinja2 banner template")
    preprocessor: str | None = Field(default=None, description="Force a backend")
    compress: bool = Field(default=False, description="Minify output")
    source_map: bool = Field(default=False, alias="sourceMap")
    source_map_file_inline: bool = Field(default=False, alias="sourceMapFileInline")
    source_map_filename: str | None = Field(default=None, alias="sourceMapFilename")
    source_map_basepath: BasepathOption | None = Field(
        default=None, alias="sourceMapBasepath"
    )
    modify_vars: dict[str, Any] = Field(default_factory=dict, alias="modifyVars")
    custom_functions: dict[str, Any] = Field(
        default_factory=dict,
        alias="customFunctions",
        description="Sass callables, or JavaScript function sources for LESS",
    )
    paths: PathsOption | None = Field(default=None, description="@import search paths")


class FileMapping(BaseModel):
    """Sources (paths or globs) compiled and concatenated into one destination."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    sources: list[str] = Field(..., description="Source files or glob patterns")
    dest: Path = Field(..., description="Destination stylesheet")
    options: CompileOptions = Field(default_factory=CompileOptions)


@dataclass
class CompileResult:
    css: str
    map: str | None = None


@dataclass
class Tally:
    sheets: int = 0
    maps: int = 0
