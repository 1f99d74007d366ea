from __future__ import annotations

import logging

from ..artifacts import locate
from ..pipeline import RunContext

logger = logging.getLogger(__name__)


class LocateArtifactsStep:
    step_id = "20_locate_artifacts"

    def run(self, ctx: RunContext) -> RunContext:
        target = ctx.target
        if target is None or not target.version:
            raise RuntimeError("target version not resolved")

        ctx.artifacts = locate(ctx.config.base_url, target.arch, target.version)
        logger.info("Bundle: %s", ctx.artifacts.tarball_url)
        return ctx
