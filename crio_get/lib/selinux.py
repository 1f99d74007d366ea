from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Sequence

from ..errors import InstallError
from .command import probe_exit_ok, run_cmd

logger = logging.getLogger(__name__)


def selinux_enabled(setting: Optional[bool] = None) -> bool:
    """Explicit setting wins; otherwise ask ``selinuxenabled``."""

    if setting is not None:
        return setting
    return probe_exit_ok(["selinuxenabled"])


class Labeler:
    """Applies SELinux file contexts to installed files; no-op when disabled."""

    def __init__(self, enabled: bool) -> None:
        self.enabled = enabled

    def label(self, paths: Sequence[Path], selinux_type: str) -> None:
        if not self.enabled or not paths:
            return
        r = run_cmd(
            ["chcon", "-u", "system_u", "-r", "object_r", "-t", selinux_type, *[str(p) for p in paths]]
        )
        if not r.ok:
            raise InstallError(
                f"Failed to apply SELinux type {selinux_type}",
                context={"paths": " ".join(str(p) for p in paths), "stderr": r.stderr.strip()},
            )
