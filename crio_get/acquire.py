"""Fetch and unpack a release bundle, with or without provenance checks.

Which variant runs is decided once by ``select_acquirer``: when ``cosign`` is
installed every bundle is signature-checked and there is no way to fall back
to an unverified install; when it is missing the bundle is streamed and
unpacked directly with no verification at all.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Protocol

from .artifacts import ArtifactSet
from .errors import VerificationError
from .lib.archive import extract_file, extract_stream
from .lib.command import have_command, run_cmd
from .lib.http import RetryingFetcher

logger = logging.getLogger(__name__)

COSIGN = "cosign"
BOM = "bom"

CERT_IDENTITY = "https://github.com/cri-o/cri-o/.github/workflows/test.yml@refs/heads/main"
CERT_OIDC_ISSUER = "https://token.actions.githubusercontent.com"
CERT_WORKFLOW_REPOSITORY = "cri-o/cri-o"
CERT_WORKFLOW_REF = "refs/heads/main"


class ArtifactAcquirer(Protocol):
    """Turns an ArtifactSet into an extracted bundle root under ``work_dir``."""

    name: str

    def acquire(self, artifacts: ArtifactSet, work_dir: Path) -> Path:
        ...


class DirectAcquirer:
    name = "direct"

    def __init__(self, fetcher: RetryingFetcher) -> None:
        self.fetcher = fetcher

    def acquire(self, artifacts: ArtifactSet, work_dir: Path) -> Path:
        dest = Path(work_dir) / "bundle"
        with self.fetcher.stream(artifacts.tarball_url) as body:
            extract_stream(body, dest, strip_components=1)
        return dest


class VerifiedAcquirer:
    name = "verified"

    def __init__(self, fetcher: RetryingFetcher, *, bom_available: Callable[[], bool] = lambda: have_command(BOM)) -> None:
        self.fetcher = fetcher
        self.bom_available = bom_available

    def _verify_blob(self, blob: Path) -> None:
        sig = blob.with_name(blob.name + ".sig")
        cert = blob.with_name(blob.name + ".cert")
        r = run_cmd(
            [
                COSIGN,
                "verify-blob",
                "--certificate-identity",
                CERT_IDENTITY,
                "--certificate-oidc-issuer",
                CERT_OIDC_ISSUER,
                "--certificate-github-workflow-repository",
                CERT_WORKFLOW_REPOSITORY,
                "--certificate-github-workflow-ref",
                CERT_WORKFLOW_REF,
                "--signature",
                str(sig),
                "--certificate",
                str(cert),
                str(blob),
            ]
        )
        if not r.ok:
            raise VerificationError(
                f"Signature verification failed for {blob.name}",
                context={"blob": str(blob), "stderr": r.stderr.strip()},
            )
        logger.info("Verified signature of %s", blob.name)

    def _validate_sbom(self, sbom: Path, root: Path) -> None:
        r = run_cmd([BOM, "validate", "-e", str(sbom), "-d", str(root)])
        if not r.ok:
            raise VerificationError(
                "SBOM does not match the extracted bundle",
                context={"sbom": str(sbom), "root": str(root), "stderr": r.stderr.strip()},
            )
        logger.info("SBOM %s matches %s", sbom.name, root)

    def acquire(self, artifacts: ArtifactSet, work_dir: Path) -> Path:
        work_dir = Path(work_dir)
        for name in artifacts.all_files:
            self.fetcher.download(artifacts.url(name), work_dir / name)

        for blob in artifacts.signed_blobs:
            self._verify_blob(work_dir / blob)

        root = extract_file(work_dir / artifacts.tarball, work_dir)

        if self.bom_available():
            self._validate_sbom(work_dir / artifacts.sbom, root)
        else:
            logger.info("%s not found, skipping SBOM validation", BOM)
        return root


def select_acquirer(
    fetcher: RetryingFetcher,
    *,
    cosign_available: Callable[[], bool] = lambda: have_command(COSIGN),
) -> ArtifactAcquirer:
    if cosign_available():
        logger.info("%s found, bundle signatures will be verified", COSIGN)
        return VerifiedAcquirer(fetcher)
    logger.warning("%s not found, installing WITHOUT signature or SBOM verification", COSIGN)
    return DirectAcquirer(fetcher)
