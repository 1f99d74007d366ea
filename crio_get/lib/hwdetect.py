from __future__ import annotations

import logging
import platform
from typing import Optional

from ..errors import ResolutionError

logger = logging.getLogger(__name__)

SUPPORTED_ARCHES = ("amd64", "arm64")

_ARCH_MAP = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


def normalize_arch(machine: str) -> Optional[str]:
    return _ARCH_MAP.get(machine.lower())


def detect_arch(machine: Optional[str] = None) -> str:
    """Map the host machine type onto a bundle architecture.

    Anything other than x86_64/aarch64 is fatal: there is no bundle for it.
    """

    machine = machine if machine is not None else platform.machine()
    arch = normalize_arch(machine)
    if arch is None:
        raise ResolutionError(
            f"Unsupported architecture: {machine or 'unknown'}",
            hint=f"Pass -a with one of: {', '.join(SUPPORTED_ARCHES)}",
        )
    logger.info("Host architecture: machine=%s arch=%s", machine, arch)
    return arch
