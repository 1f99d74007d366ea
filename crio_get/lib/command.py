from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from dataclasses import dataclass
from typing import Mapping, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CmdResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def _fmt_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def have_command(name: str) -> bool:
    """Capability probe: is ``name`` an executable on PATH?"""

    found = shutil.which(name)
    logger.debug("Probe %s -> %s", name, found or "missing")
    return found is not None


def run_cmd(
    argv: Sequence[str],
    *,
    env: Mapping[str, str] | None = None,
    cwd: str | None = None,
) -> CmdResult:
    """Run a command with consistent logging.

    - Always logs the command.
    - Captures stdout/stderr so callers can surface them in diagnostics.
    - Never raises on a non-zero exit or a missing executable (reported as
      127); callers map failures onto their own error type.
    """

    argv_list = list(argv)
    logger.info("CMD %s", _fmt_argv(argv_list))

    try:
        p = subprocess.run(
            argv_list,
            text=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=cwd,
            env=dict(os.environ, **(env or {})),
        )
    except FileNotFoundError:
        return CmdResult(argv=argv_list, returncode=127, stdout="", stderr=f"{argv_list[0]}: not found")

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip())
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip())

    return CmdResult(argv=argv_list, returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)


def probe_exit_ok(argv: Sequence[str]) -> bool:
    """True if the command exists and exits 0 (e.g. ``selinuxenabled``)."""

    if not have_command(argv[0]):
        return False
    return run_cmd(argv).ok
