from __future__ import annotations

"""Running external tools (compilers, test runners, packagers) as child processes."""

import enum
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Type

from .errors import ToolError
from .logging import get_logger
from .utils import _get, root_dir


log = get_logger("shipyard.process")

OUTPUT_TAIL = 4000


class ExecutionMode(str, enum.Enum):
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"

    @classmethod
    def parse(cls, value: "str | ExecutionMode | None") -> "ExecutionMode":
        if isinstance(value, cls):
            return value
        if not value:
            return cls.DEVELOPMENT
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown mode '{value}' (expected one of: {choices})") from None


def mode_of(params: Dict) -> ExecutionMode:
    return ExecutionMode.parse(_get(params, "runtime", "mode"))


def child_env(mode: ExecutionMode, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """Environment for a child process; the parent's os.environ is never modified."""
    env = dict(os.environ)
    env["NODE_ENV"] = mode.value
    if extra:
        env.update(extra)
    return env


def run_tool(
    argv: Sequence[str],
    *,
    params: Dict,
    error: Type[ToolError] = ToolError,
    mode: Optional[ExecutionMode] = None,
    cwd: Optional[Path] = None,
    stdin_path: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    stream: bool = False,
    **error_kwargs,
) -> str:
    """Run `argv` to completion and return its combined output.

    Non-zero (or signal) exit raises `error` carrying the exit code and the
    output tail. With `stream` the child's output goes straight to our stdout.
    """
    argv = [str(a) for a in argv]
    mode = mode or mode_of(params)
    cwd = cwd or root_dir(params)
    log.info("$ %s  [mode=%s]", " ".join(argv), mode.value)

    stdin = None
    if stdin_path is not None:
        try:
            stdin = open(stdin_path, "rb")
        except OSError as e:
            raise error(f"Cannot read {stdin_path}: {e}", **error_kwargs) from e
    try:
        proc = subprocess.run(
            argv,
            cwd=str(cwd),
            env=child_env(mode, env),
            stdin=stdin,
            stdout=None if stream else subprocess.PIPE,
            stderr=None if stream else subprocess.STDOUT,
        )
    except FileNotFoundError as e:
        raise error(f"Cannot run {argv[0]}: {e}", returncode=127, **error_kwargs) from e
    finally:
        if stdin is not None:
            stdin.close()

    output = (proc.stdout or b"").decode("utf-8", errors="replace")
    for line in output.splitlines():
        log.debug("%s | %s", Path(argv[0]).name, line)
    if proc.returncode != 0:
        tail = output[-OUTPUT_TAIL:]
        raise error(
            f"{Path(argv[0]).name} exited with code {proc.returncode}"
            + (f": {tail.strip().splitlines()[-1]}" if tail.strip() else ""),
            returncode=proc.returncode,
            output=tail,
            **error_kwargs,
        )
    return output


def spawn(argv: List[str], *, params: Dict, mode: Optional[ExecutionMode] = None) -> subprocess.Popen:
    """Start a long-running child whose output the caller consumes."""
    mode = mode or mode_of(params)
    log.info("$ %s  [mode=%s]", " ".join(argv), mode.value)
    return subprocess.Popen(
        [str(a) for a in argv],
        cwd=str(root_dir(params)),
        env=child_env(mode),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
    )
