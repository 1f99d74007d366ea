from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import tempfile
from pathlib import Path
from typing import Iterable, NoReturn, Optional, Sequence

from .acquire import ArtifactAcquirer, select_acquirer
from .config import DEFAULT_BUCKET, Config, load_config
from .errors import CrioGetError, RequirementError
from .lib.command import have_command
from .lib.http import RetryingFetcher
from .lib.hwdetect import detect_arch
from .lib.manifests import InstallEntry, load_install_manifest
from .lib.selinux import Labeler, selinux_enabled
from .logging_utils import configure_logging
from .pipeline import RunContext, Step, run_pipeline
from .steps import (
    AcquireBundleStep,
    InstallBundleStep,
    LocateArtifactsStep,
    ResolveVersionStep,
)

logger = logging.getLogger(__name__)


def build_steps() -> list[Step]:
    return [
        ResolveVersionStep(),
        LocateArtifactsStep(),
        AcquireBundleStep(),
        InstallBundleStep(),
    ]


def preflight(*, selinux: bool) -> None:
    """Local requirements, checked before any network activity."""

    if selinux and not have_command("chcon"):
        raise RequirementError(
            "SELinux is enabled but chcon is not available",
            hint="Install coreutils or set SELINUX=0 to skip labeling",
        )


def run(
    config: Config,
    *,
    fetcher: Optional[RetryingFetcher] = None,
    acquirer: Optional[ArtifactAcquirer] = None,
    manifest: Optional[Iterable[InstallEntry]] = None,
    steps: Optional[Sequence[Step]] = None,
) -> RunContext:
    """Resolve, fetch, [verify], extract and install one bundle.

    All downloads live in one temporary directory that is removed however the
    run ends.
    """

    labeler = Labeler(selinux_enabled(config.selinux))
    preflight(selinux=labeler.enabled)

    entries = list(manifest) if manifest is not None else load_install_manifest()
    if fetcher is None:
        fetcher = RetryingFetcher(attempts=config.fetch_attempts, delay=config.fetch_delay)
    if acquirer is None:
        acquirer = select_acquirer(fetcher)

    with tempfile.TemporaryDirectory(prefix="crio-get-") as tmp:
        ctx = RunContext(
            config=config,
            work_dir=Path(tmp),
            fetcher=fetcher,
            acquirer=acquirer,
            labeler=labeler,
            manifest=entries,
        )
        result = run_pipeline(ctx=ctx, steps=steps if steps is not None else build_steps())

    target = result.ctx.target
    logger.info(
        "Installed CRI-O %s (%s): %d files",
        target.version if target else "?",
        target.arch if target else "?",
        len(result.ctx.installed),
    )
    return result.ctx


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    p = _ArgumentParser(prog="crio-get", description="Download and install a CRI-O release bundle.")
    p.add_argument("-a", dest="arch", default=None, help="Architecture to install (default: host, amd64|arm64)")
    p.add_argument("-t", dest="version", default=None, help="Version tag or commit to install (default: latest main build)")
    p.add_argument("-b", dest="bucket", default=None, help=f"Google Cloud Storage bucket (default: {DEFAULT_BUCKET})")
    return p


def _exit_on_signal(signum: int, _frame: object) -> None:
    raise SystemExit(128 + signum)


def install_signal_handlers() -> None:
    """Turn SIGTERM/SIGHUP into SystemExit so scoped cleanup still runs."""

    for name in ("SIGTERM", "SIGHUP"):
        sig = getattr(signal, name, None)
        if sig is not None:
            signal.signal(sig, _exit_on_signal)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging(
        log_path=os.environ.get("CRIO_GET_LOG") or None,
        level=logging.DEBUG if os.environ.get("CRIO_GET_DEBUG") else logging.INFO,
    )
    install_signal_handlers()

    try:
        arch = args.arch or detect_arch()
        config = load_config(arch=arch, version=args.version, bucket=args.bucket)
        run(config)
    except CrioGetError as e:
        logger.error("%s (%s)", e, e.code)
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
