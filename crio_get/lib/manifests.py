from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from ..errors import InstallError


def _package_root() -> Path:
    # crio_get/lib/manifests.py -> crio_get
    return Path(__file__).resolve().parents[1]


DEFAULT_INSTALL_MANIFEST = _package_root() / "manifests" / "install.yaml"


@dataclass(frozen=True)
class InstallEntry:
    name: str
    dest: str
    mode: int
    sources: Tuple[str, ...] = ()
    selinux_type: Optional[str] = None
    optional: bool = False

    def destination(self, layout: Dict[str, str], destdir: str = "") -> Path:
        try:
            expanded = self.dest.format(**layout)
        except KeyError as e:
            raise InstallError(f"Unknown path variable {e} in manifest entry {self.name!r}") from None
        return Path(destdir + expanded) if destdir else Path(expanded)


def _parse_mode(raw: Any, name: str) -> int:
    try:
        return int(str(raw), 8)
    except ValueError:
        raise InstallError(f"Invalid mode {raw!r} in manifest entry {name!r}") from None


def parse_manifest(data: Dict[str, Any]) -> List[InstallEntry]:
    entries = data.get("entries")
    if not isinstance(entries, list):
        raise InstallError("Install manifest must contain an 'entries' list")

    out: List[InstallEntry] = []
    for raw in entries:
        if not isinstance(raw, dict) or not raw.get("name") or not raw.get("dest"):
            raise InstallError(f"Manifest entry needs 'name' and 'dest': {raw!r}")
        name = str(raw["name"])
        out.append(
            InstallEntry(
                name=name,
                dest=str(raw["dest"]),
                mode=_parse_mode(raw.get("mode", "0644"), name),
                sources=tuple(str(s) for s in raw.get("sources") or ()),
                selinux_type=raw.get("selinux_type"),
                optional=bool(raw.get("optional", False)),
            )
        )
    return out


def load_install_manifest(path: Optional[Path] = None) -> List[InstallEntry]:
    """Load the YAML install manifest (the packaged one by default)."""

    p = Path(path) if path is not None else DEFAULT_INSTALL_MANIFEST
    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise InstallError(f"Manifest must be a mapping/dict: {p}")
    return parse_manifest(data)
