"""HTTP retrieval with bounded, fixed-delay retry."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, Dict, Iterator, Mapping, Optional

import requests
import urllib3
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .. import __version__
from ..errors import NetworkError

logger = logging.getLogger(__name__)

USER_AGENT = f"crio-get/{__version__}"

DEFAULT_ATTEMPTS = 5
DEFAULT_DELAY = 3.0
DEFAULT_TIMEOUT = 60.0
CHUNK_SIZE = 1024 * 1024


class TransientFetchError(Exception):
    """A failure worth another attempt (connection trouble, 5xx, 429)."""


def _is_transient_status(code: int) -> bool:
    return code >= 500 or code == 429


class RetryingFetcher:
    """GET with up to ``attempts`` tries and a fixed ``delay`` between them.

    Only connection errors, timeouts and 5xx/429 responses are retried; any
    other HTTP error fails on the first attempt.
    """

    def __init__(
        self,
        *,
        attempts: int = DEFAULT_ATTEMPTS,
        delay: float = DEFAULT_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.attempts = attempts
        self.delay = delay
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_fixed(self.delay),
            retry=retry_if_exception_type(TransientFetchError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _headers(self, headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
        merged = {"User-Agent": USER_AGENT}
        merged.update(headers or {})
        return merged

    def _get_once(self, url: str, headers: Dict[str, str], stream: bool) -> requests.Response:
        logger.debug("HTTP request: GET %s", url)
        try:
            resp = self.session.get(url, headers=headers, timeout=self.timeout, stream=stream)
        except (requests.ConnectionError, requests.Timeout, requests.exceptions.ChunkedEncodingError) as e:
            raise TransientFetchError(f"{type(e).__name__}: {e}") from e
        if _is_transient_status(resp.status_code):
            resp.close()
            raise TransientFetchError(f"HTTP {resp.status_code}")
        return resp

    def _get(self, url: str, headers: Optional[Mapping[str, str]], *, stream: bool = False) -> requests.Response:
        try:
            return self._retrying()(self._get_once, url, self._headers(headers), stream)
        except TransientFetchError as e:
            raise NetworkError(
                f"Request failed after {self.attempts} attempts",
                context={"url": url, "cause": str(e)},
            ) from e
        except requests.RequestException as e:
            raise NetworkError(
                f"Request failed: {type(e).__name__}",
                context={"url": url, "cause": str(e)},
            ) from e

    @staticmethod
    def _raise_for_status(url: str, resp: requests.Response) -> None:
        if resp.status_code >= 400:
            resp.close()
            raise NetworkError(
                f"HTTP {resp.status_code} fetching {url}",
                context={"url": url, "status": str(resp.status_code)},
            )

    def fetch(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        *,
        allow_missing: bool = False,
    ) -> bytes:
        """Return the response body.

        With ``allow_missing`` a 404 or an empty body means "not found" and
        returns ``b""`` straight away instead of failing or retrying.
        """

        resp = self._get(url, headers)
        if allow_missing and resp.status_code == 404:
            logger.info("Not found: %s", url)
            resp.close()
            return b""
        self._raise_for_status(url, resp)
        body = resp.content
        if not body and allow_missing:
            logger.info("Empty response: %s", url)
        return body

    def fetch_json(self, url: str, headers: Optional[Mapping[str, str]] = None) -> Any:
        body = self.fetch(url, headers)
        try:
            return json.loads(body)
        except ValueError as e:
            raise NetworkError("Response is not valid JSON", context={"url": url}) from e

    def _download_once(self, url: str, path: Path, headers: Dict[str, str]) -> Path:
        resp = self._get_once(url, headers, True)
        try:
            self._raise_for_status(url, resp)
            with open(path, "wb") as fp:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    fp.write(chunk)
        except (requests.ConnectionError, requests.exceptions.ChunkedEncodingError) as e:
            raise TransientFetchError(f"{type(e).__name__}: {e}") from e
        finally:
            resp.close()
        return path

    def download(self, url: str, path: Path, headers: Optional[Mapping[str, str]] = None) -> Path:
        """Save ``url`` to ``path``; a truncated transfer is retried as a whole."""

        logger.info("Downloading %s", url)
        try:
            return self._retrying()(self._download_once, url, Path(path), self._headers(headers))
        except TransientFetchError as e:
            raise NetworkError(
                f"Download failed after {self.attempts} attempts",
                context={"url": url, "cause": str(e)},
            ) from e
        except requests.RequestException as e:
            raise NetworkError(
                f"Download failed: {type(e).__name__}",
                context={"url": url, "cause": str(e)},
            ) from e

    @contextmanager
    def stream(self, url: str, headers: Optional[Mapping[str, str]] = None) -> Iterator[IO[bytes]]:
        """Yield the raw response body as a file object.

        Only establishing the response is retried; a failure mid-stream is
        raised as NetworkError without another attempt.
        """

        logger.info("Streaming %s", url)
        resp = self._get(url, headers, stream=True)
        self._raise_for_status(url, resp)
        try:
            yield resp.raw
        except urllib3.exceptions.HTTPError as e:
            raise NetworkError("Transfer interrupted", context={"url": url, "cause": str(e)}) from e
        finally:
            resp.close()
