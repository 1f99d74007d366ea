from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

PACKAGE = "cri-o"
SBOM_SUFFIX = ".spdx"
SIG_SUFFIX = ".sig"
CERT_SUFFIX = ".cert"


@dataclass(frozen=True)
class ArtifactSet:
    base_url: str
    tarball: str
    sbom: str

    def url(self, name: str) -> str:
        return f"{self.base_url}/artifacts/{name}"

    @property
    def tarball_url(self) -> str:
        return self.url(self.tarball)

    @property
    def tarball_sig_url(self) -> str:
        return self.url(self.tarball + SIG_SUFFIX)

    @property
    def tarball_cert_url(self) -> str:
        return self.url(self.tarball + CERT_SUFFIX)

    @property
    def sbom_url(self) -> str:
        return self.url(self.sbom)

    @property
    def sbom_sig_url(self) -> str:
        return self.url(self.sbom + SIG_SUFFIX)

    @property
    def sbom_cert_url(self) -> str:
        return self.url(self.sbom + CERT_SUFFIX)

    @property
    def signed_blobs(self) -> Tuple[str, str]:
        return (self.tarball, self.sbom)

    @property
    def all_files(self) -> Tuple[str, ...]:
        files = []
        for blob in self.signed_blobs:
            files.extend([blob, blob + SIG_SUFFIX, blob + CERT_SUFFIX])
        return tuple(files)


def locate(base_url: str, arch: str, version: str) -> ArtifactSet:
    """Derive every artifact URL for one build; no network access."""

    tarball = f"{PACKAGE}.{arch}.{version}.tar.gz"
    return ArtifactSet(
        base_url=base_url.rstrip("/"),
        tarball=tarball,
        sbom=tarball + SBOM_SUFFIX,
    )
