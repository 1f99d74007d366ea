from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from .errors import ArgumentError

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "cri-o"
STORAGE_URL = "https://storage.googleapis.com"
RUNS_API_URL = "https://api.github.com/repos/cri-o/cri-o/actions/runs"
DEFAULT_MAX_PAGES = 20
DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True)
class TargetSpec:
    arch: str
    version: str = ""


@dataclass(frozen=True)
class InstallPaths:
    """Destination layout. Every field can be overridden by the env var of
    the same name in upper case (``BINDIR``, ``SYSTEMDDIR``...)."""

    destdir: str = ""
    prefix: str = "/usr/local"
    etcdir: str = "/etc"
    libexecdir: str = "/usr/libexec"
    libexec_crio_dir: str = ""
    opt_cni_bin_dir: str = "/opt/cni/bin"
    containers_dir: str = ""
    containers_registries_confd_dir: str = ""
    cnidir: str = ""
    bindir: str = ""
    mandir: str = ""
    ocidir: str = ""
    bashinstalldir: str = ""
    fishinstalldir: str = ""
    zshinstalldir: str = ""
    systemddir: str = ""

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "InstallPaths":
        def get(name: str, default: str) -> str:
            return env.get(name.upper()) or default

        prefix = get("prefix", cls.prefix)
        etcdir = get("etcdir", cls.etcdir)
        libexecdir = get("libexecdir", cls.libexecdir)
        containers_dir = get("containers_dir", f"{etcdir}/containers")
        return cls(
            destdir=env.get("DESTDIR", ""),
            prefix=prefix,
            etcdir=etcdir,
            libexecdir=libexecdir,
            libexec_crio_dir=get("libexec_crio_dir", f"{libexecdir}/crio"),
            opt_cni_bin_dir=get("opt_cni_bin_dir", cls.opt_cni_bin_dir),
            containers_dir=containers_dir,
            containers_registries_confd_dir=get(
                "containers_registries_confd_dir", f"{containers_dir}/registries.conf.d"
            ),
            cnidir=get("cnidir", f"{etcdir}/cni/net.d"),
            bindir=get("bindir", f"{prefix}/bin"),
            mandir=get("mandir", f"{prefix}/share/man"),
            ocidir=get("ocidir", f"{prefix}/share/oci-umount/oci-umount.d"),
            bashinstalldir=get("bashinstalldir", f"{prefix}/share/bash-completion/completions"),
            fishinstalldir=get("fishinstalldir", f"{prefix}/share/fish/completions"),
            zshinstalldir=get("zshinstalldir", f"{prefix}/share/zsh/site-functions"),
            systemddir=get("systemddir", f"{prefix}/lib/systemd/system"),
        )

    def as_template_vars(self) -> Dict[str, str]:
        return {k: v for k, v in vars(self).items() if k != "destdir"}


@dataclass(frozen=True)
class Config:
    """Everything the pipeline needs, read from argv and env exactly once."""

    target: TargetSpec
    bucket: str = DEFAULT_BUCKET
    github_token: Optional[str] = field(default=None, repr=False)
    max_pages: int = DEFAULT_MAX_PAGES
    page_size: int = DEFAULT_PAGE_SIZE
    fetch_attempts: int = 5
    fetch_delay: float = 3.0
    runs_api_url: str = RUNS_API_URL
    paths: InstallPaths = field(default_factory=InstallPaths)
    # None: probe selinuxenabled; False: never label.
    selinux: Optional[bool] = None

    @property
    def base_url(self) -> str:
        return f"{STORAGE_URL}/{self.bucket}"


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ArgumentError(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise ArgumentError(f"{name} must be >= 1, got {value}")
    return value


def load_config(
    *,
    arch: str,
    version: Optional[str] = None,
    bucket: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Config:
    env = os.environ if env is None else env

    if bucket is not None and (not bucket.strip() or "/" in bucket):
        raise ArgumentError(f"Invalid bucket name: {bucket!r}")

    selinux_raw = env.get("SELINUX")
    selinux: Optional[bool] = None
    if selinux_raw is not None and selinux_raw != "":
        selinux = selinux_raw not in {"0", "false", "no"}

    cfg = Config(
        target=TargetSpec(arch=arch, version=version or ""),
        bucket=bucket or DEFAULT_BUCKET,
        github_token=env.get("GITHUB_TOKEN") or None,
        max_pages=_int_env(env, "CRIO_GET_MAX_PAGES", DEFAULT_MAX_PAGES),
        paths=InstallPaths.from_env(env),
        selinux=selinux,
    )
    logger.debug("Config: %s", cfg)
    return cfg
