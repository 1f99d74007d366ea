import json

import pytest

from conftest import FakeResponse, FakeSession
from crio_get.config import RUNS_API_URL
from crio_get.errors import ResolutionError
from crio_get.lib.http import RetryingFetcher
from crio_get.resolver import BuildRun, VersionResolver

BASE = "https://storage.googleapis.com/cri-o"
MARKER = f"{BASE}/latest-main.txt"


def _page_url(page: int) -> str:
    return f"{RUNS_API_URL}?per_page=100&page={page}"


def _runs(*runs: dict) -> FakeResponse:
    return FakeResponse(200, json.dumps({"workflow_runs": list(runs)}).encode())


def _run(name: str = "test", branch: str = "main", conclusion: str = "success", sha: str = "deadbeef") -> dict:
    return {"name": name, "head_branch": branch, "conclusion": conclusion, "head_sha": sha}


def _resolver(session: FakeSession, **kwargs) -> VersionResolver:
    fetcher = RetryingFetcher(attempts=2, delay=0, session=session)  # type: ignore[arg-type]
    return VersionResolver(fetcher, base_url=BASE, **kwargs)


def test_explicit_version_skips_network() -> None:
    session = FakeSession()

    assert _resolver(session).resolve("v1.30.0") == "v1.30.0"
    assert session.calls == []


def test_marker_content_is_trimmed_and_api_not_queried() -> None:
    session = FakeSession({MARKER: FakeResponse(200, b"  0123abcd\n")})

    assert _resolver(session).resolve() == "0123abcd"
    assert session.calls == [MARKER]


@pytest.mark.parametrize("position", [0, 1, 3])
def test_first_qualifying_run_wins_at_any_position(position: int) -> None:
    others = [
        _run(name="e2e"),
        _run(branch="release-1.29"),
        _run(conclusion="failure"),
    ]
    runs = others[:position] + [_run(sha="deadbeef")] + others[position:] + [_run(sha="later")]
    session = FakeSession({_page_url(1): _runs(*runs)})

    assert _resolver(session).resolve() == "deadbeef"


def test_missing_marker_falls_back_to_later_pages() -> None:
    session = FakeSession(
        {
            MARKER: FakeResponse(404),
            _page_url(1): _runs(_run(conclusion="failure")),
            _page_url(2): _runs(_run(name="lint"), _run(sha="cafef00d")),
        }
    )

    assert _resolver(session).resolve() == "cafef00d"
    assert session.calls == [MARKER, _page_url(1), _page_url(2)]


def test_empty_page_without_match_is_resolution_error() -> None:
    session = FakeSession(
        {
            _page_url(1): _runs(_run(conclusion="failure")),
            _page_url(2): _runs(_run(branch="feature")),
            _page_url(3): _runs(),
        }
    )

    with pytest.raises(ResolutionError):
        _resolver(session).resolve()


def test_pagination_is_bounded() -> None:
    session = FakeSession({_page_url(n): _runs(_run(conclusion="cancelled")) for n in range(1, 10)})

    with pytest.raises(ResolutionError) as excinfo:
        _resolver(session, max_pages=3).resolve()

    assert "3 pages" in str(excinfo.value)
    assert _page_url(4) not in session.calls


def test_token_is_sent_as_bearer_header() -> None:
    session = FakeSession({_page_url(1): _runs(_run())})

    _resolver(session, github_token="s3cret").resolve()

    api_headers = session.headers[session.calls.index(_page_url(1))]
    assert api_headers["Authorization"] == "Bearer s3cret"
    assert session.headers[0].get("Authorization") is None


def test_malformed_payload_is_resolution_error() -> None:
    session = FakeSession({_page_url(1): FakeResponse(200, b'{"message": "Bad credentials"}')})

    with pytest.raises(ResolutionError):
        _resolver(session).resolve()


def test_build_run_from_api_ignores_unknown_fields() -> None:
    run = BuildRun.from_api({**_run(), "id": 1, "event": "push"})

    assert run == BuildRun(head_branch="main", head_sha="deadbeef", workflow_name="test", conclusion="success")
    assert run.qualifies()
    assert not BuildRun.from_api(_run(conclusion=None)).qualifies()  # type: ignore[arg-type]
