from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import List, Sequence

from ..config import InstallPaths
from ..errors import InstallError
from .manifests import InstallEntry
from .selinux import Labeler

logger = logging.getLogger(__name__)


def _expand_sources(root: Path, entry: InstallEntry) -> List[Path]:
    found: List[Path] = []
    for pattern in entry.sources:
        matches = sorted(p for p in root.glob(pattern) if p.is_file())
        if not matches and not entry.optional:
            raise InstallError(
                f"Bundle is missing {pattern} for {entry.name}",
                context={"bundle": str(root)},
            )
        found.extend(matches)
    return found


def install_entry(root: Path, entry: InstallEntry, paths: InstallPaths) -> List[Path]:
    dest_dir = entry.destination(paths.as_template_vars(), paths.destdir)
    sources = _expand_sources(root, entry)

    installed: List[Path] = []
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        if not entry.sources:
            os.chmod(dest_dir, entry.mode)
        for src in sources:
            out = dest_dir / src.name
            shutil.copy2(src, out)
            os.chmod(out, entry.mode)
            installed.append(out)
    except OSError as e:
        raise InstallError(f"Failed to install {entry.name}: {e}", context={"dest": str(dest_dir)}) from e

    for out in installed:
        logger.info("Installed %s (%s)", out, oct(entry.mode))
    return installed


def install_bundle(
    root: Path,
    entries: Sequence[InstallEntry],
    paths: InstallPaths,
    labeler: Labeler,
) -> List[Path]:
    """Copy every manifest entry out of the extracted bundle at ``root``.

    Nothing is rolled back if an entry fails part way through.
    """

    root = Path(root)
    if not root.is_dir():
        raise InstallError(f"Extracted bundle not found: {root}")

    installed: List[Path] = []
    for entry in entries:
        files = install_entry(root, entry, paths)
        if entry.selinux_type:
            labeler.label(files, entry.selinux_type)
        installed.extend(files)
    return installed
