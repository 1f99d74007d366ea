"""Pick the build to install when the caller did not pin one.

Order: explicit version, then the ``latest-main.txt`` marker in the bucket,
then the newest successful ``test`` workflow run on ``main`` according to the
GitHub Actions runs API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

from .config import DEFAULT_MAX_PAGES, DEFAULT_PAGE_SIZE, RUNS_API_URL
from .errors import ResolutionError
from .lib.http import RetryingFetcher

logger = logging.getLogger(__name__)

MARKER_NAME = "latest-main.txt"
CI_WORKFLOW = "test"
DEFAULT_BRANCH = "main"
SUCCESS = "success"


@dataclass(frozen=True)
class BuildRun:
    head_branch: str
    head_sha: str
    workflow_name: str
    conclusion: Optional[str]

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "BuildRun":
        return cls(
            head_branch=str(raw.get("head_branch") or ""),
            head_sha=str(raw.get("head_sha") or ""),
            workflow_name=str(raw.get("name") or ""),
            conclusion=raw.get("conclusion"),
        )

    def qualifies(self) -> bool:
        return (
            self.workflow_name == CI_WORKFLOW
            and self.head_branch == DEFAULT_BRANCH
            and self.conclusion == SUCCESS
            and bool(self.head_sha)
        )


class VersionResolver:
    def __init__(
        self,
        fetcher: RetryingFetcher,
        *,
        base_url: str,
        github_token: Optional[str] = None,
        runs_api_url: str = RUNS_API_URL,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> None:
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")
        self.github_token = github_token
        self.runs_api_url = runs_api_url
        self.page_size = page_size
        self.max_pages = max_pages

    @property
    def marker_url(self) -> str:
        return f"{self.base_url}/{MARKER_NAME}"

    def _api_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.github_token:
            headers["Authorization"] = f"Bearer {self.github_token}"
        return headers

    def resolve(self, explicit_version: Optional[str] = None) -> str:
        if explicit_version:
            logger.info("Using requested version %s", explicit_version)
            return explicit_version

        version = self.from_marker()
        if version:
            return version

        return self.from_build_runs()

    def from_marker(self) -> Optional[str]:
        logger.info("Checking latest marker %s", self.marker_url)
        body = self.fetcher.fetch(self.marker_url, allow_missing=True)
        version = body.decode("utf-8", errors="replace").strip()
        if not version:
            logger.info("Latest marker is empty, falling back to the runs API")
            return None
        logger.info("Latest marker names %s", version)
        return version

    def _page(self, page: int) -> List[Dict[str, Any]]:
        url = f"{self.runs_api_url}?per_page={self.page_size}&page={page}"
        logger.info("Querying workflow runs page %d", page)
        data = self.fetcher.fetch_json(url, headers=self._api_headers())
        if not isinstance(data, dict) or not isinstance(data.get("workflow_runs"), list):
            raise ResolutionError(
                "Unexpected workflow runs payload",
                context={"url": url},
            )
        return data["workflow_runs"]

    def iter_runs(self) -> Iterator[BuildRun]:
        """Yield runs newest first until an empty page or ``max_pages``."""

        for page in range(1, self.max_pages + 1):
            runs = self._page(page)
            if not runs:
                logger.info("Workflow runs exhausted at page %d", page)
                return
            for raw in runs:
                if isinstance(raw, dict):
                    yield BuildRun.from_api(raw)
        raise ResolutionError(
            f"No successful {CI_WORKFLOW!r} run on {DEFAULT_BRANCH!r} within {self.max_pages} pages",
            hint="Raise CRIO_GET_MAX_PAGES or pass -t with an explicit version",
        )

    def from_build_runs(self) -> str:
        for run in self.iter_runs():
            if run.qualifies():
                logger.info("Resolved latest successful build %s", run.head_sha)
                return run.head_sha
        raise ResolutionError(
            f"No successful {CI_WORKFLOW!r} run found on {DEFAULT_BRANCH!r}",
            hint="Pass -t with an explicit version",
        )
