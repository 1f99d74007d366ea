from __future__ import annotations

import logging

from ..lib.assets import install_bundle
from ..pipeline import RunContext

logger = logging.getLogger(__name__)


class InstallBundleStep:
    step_id = "40_install_bundle"

    def run(self, ctx: RunContext) -> RunContext:
        if ctx.bundle_root is None:
            raise RuntimeError("bundle not extracted")

        ctx.installed = install_bundle(ctx.bundle_root, ctx.manifest, ctx.config.paths, ctx.labeler)
        logger.info("Installed %d files", len(ctx.installed))
        return ctx
