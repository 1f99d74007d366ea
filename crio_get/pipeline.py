from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from .acquire import ArtifactAcquirer
from .artifacts import ArtifactSet
from .config import Config, TargetSpec
from .lib.http import RetryingFetcher
from .lib.manifests import InstallEntry
from .lib.selinux import Labeler

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """What the steps hand to each other. ``config`` never changes; each step
    fills in exactly one of the fields below it."""

    config: Config
    work_dir: Path
    fetcher: RetryingFetcher
    acquirer: ArtifactAcquirer
    labeler: Labeler
    manifest: Sequence[InstallEntry]
    target: Optional[TargetSpec] = None
    artifacts: Optional[ArtifactSet] = None
    bundle_root: Optional[Path] = None
    installed: List[Path] = field(default_factory=list)
    current_step: Optional[str] = None

    def __post_init__(self) -> None:
        if self.target is None:
            self.target = self.config.target


class Step(Protocol):
    """A single pipeline step."""

    step_id: str

    def run(self, ctx: RunContext) -> RunContext:
        ...


@dataclass(frozen=True)
class PipelineResult:
    ctx: RunContext
    ran_steps: List[str]


def run_pipeline(*, ctx: RunContext, steps: Sequence[Step]) -> PipelineResult:
    """Run steps strictly in order; the first exception aborts the run."""

    ran: List[str] = []
    for step in steps:
        ctx.current_step = step.step_id
        logger.info("Running step %s", step.step_id)
        ctx = step.run(ctx)
        ran.append(step.step_id)

    ctx.current_step = None
    return PipelineResult(ctx=ctx, ran_steps=ran)
