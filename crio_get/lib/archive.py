from __future__ import annotations

import logging
import tarfile
import zlib
from pathlib import Path, PurePosixPath
from typing import IO, Optional

from ..errors import InstallError

logger = logging.getLogger(__name__)

_ARCHIVE_ERRORS = (tarfile.TarError, EOFError, zlib.error, OSError)


def _strip(name: str, count: int) -> Optional[str]:
    parts = PurePosixPath(name).parts[count:]
    if not parts:
        return None
    return str(PurePosixPath(*parts))


def extract_stream(fileobj: IO[bytes], dest: Path, *, strip_components: int = 1) -> Path:
    """Extract a gzipped tar read sequentially from ``fileobj``.

    The first ``strip_components`` path elements of every member are dropped
    (like ``tar --strip-components``). Returns ``dest``.
    """

    dest = Path(dest)
    dest.mkdir(parents=True, exist_ok=True)
    count = 0
    try:
        with tarfile.open(fileobj=fileobj, mode="r|gz") as tar:
            for member in tar:
                name = _strip(member.name, strip_components)
                if name is None:
                    continue
                member.name = name
                if member.islnk():
                    member.linkname = _strip(member.linkname, strip_components) or ""
                tar.extract(member, dest, filter="data")
                count += 1
    except _ARCHIVE_ERRORS as e:
        raise InstallError(f"Failed to extract archive: {e}", context={"dest": str(dest)}) from e

    logger.info("Extracted %d entries into %s", count, dest)
    return dest


def top_level_dir(path: Path) -> str:
    """Name of the single top-level directory of a tarball."""

    try:
        with tarfile.open(path, mode="r:gz") as tar:
            tops = {PurePosixPath(m.name).parts[0] for m in tar.getmembers() if PurePosixPath(m.name).parts}
    except _ARCHIVE_ERRORS as e:
        raise InstallError(f"Unreadable archive: {e}", context={"archive": str(path)}) from e

    if len(tops) != 1:
        raise InstallError(
            "Archive must contain exactly one top-level directory",
            context={"archive": str(path), "found": ", ".join(sorted(tops))},
        )
    return tops.pop()


def extract_file(path: Path, dest: Path) -> Path:
    """Extract ``path`` as-is into ``dest`` and return its top-level directory."""

    top = top_level_dir(path)
    try:
        with tarfile.open(path, mode="r:gz") as tar:
            tar.extractall(dest, filter="data")
    except _ARCHIVE_ERRORS as e:
        raise InstallError(f"Failed to extract archive: {e}", context={"archive": str(path)}) from e

    root = Path(dest) / top
    if not root.is_dir():
        raise InstallError("Archive top-level entry is not a directory", context={"archive": str(path)})
    logger.info("Extracted %s into %s", path.name, root)
    return root
