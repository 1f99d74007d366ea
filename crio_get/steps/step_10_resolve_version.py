from __future__ import annotations

import dataclasses
import logging

from ..pipeline import RunContext
from ..resolver import VersionResolver

logger = logging.getLogger(__name__)


class ResolveVersionStep:
    step_id = "10_resolve_version"

    def run(self, ctx: RunContext) -> RunContext:
        cfg = ctx.config
        resolver = VersionResolver(
            ctx.fetcher,
            base_url=cfg.base_url,
            github_token=cfg.github_token,
            runs_api_url=cfg.runs_api_url,
            page_size=cfg.page_size,
            max_pages=cfg.max_pages,
        )
        version = resolver.resolve(cfg.target.version or None)
        ctx.target = dataclasses.replace(cfg.target, version=version)
        logger.info("Target: arch=%s version=%s", ctx.target.arch, ctx.target.version)
        return ctx
