"""Shared test fixtures: an in-memory HTTP session and bundle builders."""

from __future__ import annotations

import io
import tarfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from crio_get.config import Config, InstallPaths, TargetSpec
from crio_get.lib.http import RetryingFetcher

BUNDLE_FILES = {
    "bin/crio": b"#!/bin/sh\necho crio\n",
    "bin/pinns": b"pinns",
    "bin/crun": b"crun",
    "bin/runc": b"runc",
    "bin/conmon": b"conmon",
    "bin/crictl": b"crictl",
    "cni-plugins/bridge": b"bridge",
    "cni-plugins/loopback": b"loopback",
    "contrib/11-crio-ipv4-bridge.conflist": b"{}",
    "contrib/crio.service": b"[Unit]\n",
    "contrib/policy.json": b"{}",
    "contrib/registries.conf": b"",
    "etc/crictl.yaml": b"runtime-endpoint: unix:///var/run/crio/crio.sock\n",
    "etc/crio-umount.conf": b"",
    "etc/10-crun.conf": b"[crio.runtime]\n",
    "man/crio.8": b".TH crio 8\n",
    "man/crio.conf.5": b".TH crio.conf 5\n",
    "completions/bash/crio": b"complete crio\n",
    "completions/fish/crio.fish": b"complete -c crio\n",
    "completions/zsh/_crio": b"#compdef crio\n",
}


class FakeResponse:
    def __init__(self, status_code: int = 200, content: bytes = b"") -> None:
        self.status_code = status_code
        self.content = content
        self.raw = io.BytesIO(content)
        self.closed = False

    def iter_content(self, chunk_size: int = 1) -> Any:
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i : i + chunk_size]

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Routes GETs by exact URL. A route may be a response, an exception, or a
    list of those consumed in order (the last one repeats)."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None) -> None:
        self.routes: Dict[str, Any] = dict(routes or {})
        self.calls: List[str] = []
        self.headers: List[Dict[str, str]] = []

    def get(self, url: str, headers: Any = None, timeout: Any = None, stream: bool = False) -> FakeResponse:
        self.calls.append(url)
        self.headers.append(dict(headers or {}))
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404)
        if isinstance(route, list):
            item = route.pop(0) if len(route) > 1 else route[0]
        else:
            item = route
        if isinstance(item, Exception):
            raise item
        if isinstance(item, FakeResponse):
            return FakeResponse(item.status_code, item.content)
        return item


def make_tarball(files: Dict[str, bytes], *, top: str = "cri-o") -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for rel, data in files.items():
            info = tarfile.TarInfo(f"{top}/{rel}" if top else rel)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def fetcher(session: FakeSession) -> RetryingFetcher:
    return RetryingFetcher(attempts=5, delay=0, session=session)  # type: ignore[arg-type]


@pytest.fixture
def bundle_bytes() -> bytes:
    return make_tarball(BUNDLE_FILES)


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(
        target=TargetSpec(arch="amd64", version=""),
        paths=InstallPaths.from_env({"DESTDIR": str(tmp_path / "root")}),
        fetch_delay=0,
        selinux=False,
    )
