from __future__ import annotations

import logging

from ..pipeline import RunContext

logger = logging.getLogger(__name__)


class AcquireBundleStep:
    step_id = "30_acquire_bundle"

    def run(self, ctx: RunContext) -> RunContext:
        if ctx.artifacts is None:
            raise RuntimeError("artifacts not located")

        logger.info("Acquiring bundle (%s)", ctx.acquirer.name)
        ctx.bundle_root = ctx.acquirer.acquire(ctx.artifacts, ctx.work_dir)
        logger.info("Bundle extracted to %s", ctx.bundle_root)
        return ctx
