"""Subprocess helpers for the package managers the tasks shell out to."""

from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path
from typing import Iterable, Literal

from ..core.errors import ProcessExitError

logger = logging.getLogger(__name__)


def run_logged(
    cmd: Iterable[str],
    *,
    cwd: Path | None = None,
    capture_output: bool = False,
    echo: Literal["always", "on_error", "never"] = "always",
) -> subprocess.CompletedProcess[str]:
    """
    Run a subprocess, mirroring stdout/stderr to the caller even on failure.

    stdin is always inherited so interactive prompts reach the user when
    output is not captured. Raises ProcessExitError on a non-zero exit; captured
    output travels with the error.
    """
    cmd_list = list(cmd)
    logger.debug(" ".join(cmd_list))

    result = subprocess.run(
        cmd_list,
        cwd=str(cwd) if cwd is not None else None,
        capture_output=capture_output,
        text=True,
    )
    if capture_output and (
        echo == "always" or (echo == "on_error" and result.returncode != 0)
    ):
        if result.stdout:
            sys.stdout.write(result.stdout)
        if result.stderr:
            sys.stderr.write(result.stderr)
    if result.returncode != 0:
        raise ProcessExitError(
            cmd_list, result.returncode, stdout=result.stdout, stderr=result.stderr
        )
    return result
