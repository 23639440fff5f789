"""
Pytest fixtures and configuration.

- The OpenLaws divisions API is faked with httpx.MockTransport so the real
  fetcher, traversal and resolver code paths run end to end
- Sleeps are recorded, never slept
- Each test builds its own fake tree and client
"""
import re
from typing import Any, Callable, Optional
from urllib.parse import unquote

import httpx
import pytest

from statute_core.api.fetcher import RetryableFetcher
from statute_core.config import ResolverConfig
from statute_core.db.store import SQLiteStatuteStore
from statute_core.registry import JurisdictionRegistry
from statute_core.resolver.pacing import Pacer
from statute_core.resolver.traversal import DivisionTraversal

BASE_URL = "https://api.test/api/v1"

_DIVISIONS_RE = re.compile(r"^/api/v1/jurisdictions/([^/]+)/laws/([^/]+)/divisions/?(.*)$")


class FakeOpenLaws:
    """
    In-memory divisions API.

    trees maps (jurisdiction_key, law_key) to {division path: payload}; the
    law root is stored under the empty path "". failures maps a division
    path to a status code returned on every request for it.
    """

    def __init__(
        self,
        trees: Optional[dict[tuple[str, str], dict[str, Any]]] = None,
        failures: Optional[dict[str, int]] = None,
        jurisdictions: Optional[list[dict[str, Any]]] = None,
        fallback: Optional[Callable[[str], Any]] = None,
    ):
        self.trees = trees or {}
        self.failures = failures or {}
        self.jurisdictions = jurisdictions or [{"key": "CA"}, {"key": "NJ"}, {"key": "US"}]
        self.fallback = fallback
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/v1/jurisdictions":
            return httpx.Response(200, json=self.jurisdictions)

        match = _DIVISIONS_RE.match(path)
        if not match:
            return httpx.Response(404, json={"error": "not found"})

        jurisdiction_key, law_key, division_path = match.groups()
        division_path = unquote(division_path)

        if division_path in self.failures:
            return httpx.Response(self.failures[division_path], json={"error": "failure"})

        tree = self.trees.get((jurisdiction_key, law_key))
        if tree is not None and division_path in tree:
            return httpx.Response(200, json=tree[division_path])
        if self.fallback is not None:
            return httpx.Response(200, json=self.fallback(division_path))
        return httpx.Response(404, json={"error": "division not found"})

    def paths_requested(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def client(self) -> httpx.Client:
        return httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(self.handler))


class SleepRecorder:
    def __init__(self):
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def node(path: str, name: str, children: Optional[list[tuple[str, str]]] = None, **content: Any) -> dict[str, Any]:
    """Division payload with display_children given as (display_name, path) pairs."""
    payload = {
        "path": path,
        "display_name": name,
        "division_type": content.pop("division_type", "section" if not children else "chapter"),
        "identifier": content.pop("identifier", path.rsplit("/", 1)[-1]),
        "display_children": [{"display_name": n, "path": p} for n, p in (children or [])],
    }
    payload.update(content)
    return payload


# =============================================================================
# SAMPLE TREES
# =============================================================================

MURDER_TEXT = "(a) Murder is the unlawful killing of a human being, or a fetus, with malice aforethought."


@pytest.fixture
def california_tree() -> dict[str, Any]:
    """California statutes with Vehicle, Penal and Health & Safety codes."""
    chapter = "pen/part_1/title_8/chapter_1"
    return {
        "": [
            {"display_name": "Vehicle Code", "path": "veh"},
            {"display_name": "Penal Code", "path": "pen"},
            {"display_name": "Health and Safety Code", "path": "hsc"},
        ],
        "veh": node("veh", "Vehicle Code", [("Division 1. Words and Phrases Defined", "veh/division_1")]),
        "veh/division_1": node("veh/division_1", "Division 1", [("Section 100", "veh/division_1/section_100")]),
        "pen": node("pen", "Penal Code", [("Part 1. Of Crimes and Punishments", "pen/part_1")]),
        "pen/part_1": node("pen/part_1", "Part 1", [("Title 8. Of Crimes Against the Person", "pen/part_1/title_8")]),
        "pen/part_1/title_8": node("pen/part_1/title_8", "Title 8", [("Chapter 1. Homicide", chapter)]),
        chapter: node(chapter, "Chapter 1. Homicide", [
            ("§ 1870", f"{chapter}/section_1870"),
            ("Section 187", f"{chapter}/section_187"),
            ("Section 188", f"{chapter}/section_188"),
        ]),
        f"{chapter}/section_187": node(
            f"{chapter}/section_187",
            "Section 187",
            plaintext_content=f"  {MURDER_TEXT}  \n\n\n\n(b) This section shall not apply...",
            url="https://leginfo.legislature.ca.gov/faces/codes_displaySection.xhtml?sectionNum=187.&lawCode=PEN",
        ),
        f"{chapter}/section_1870": node(f"{chapter}/section_1870", "§ 1870", plaintext_content="Wrong section."),
    }


@pytest.fixture
def federal_tree() -> dict[str, Any]:
    """Title 18 of the U.S. Code with one reachable section."""
    return {
        "": [
            {"display_name": "Title 17 - Copyrights", "path": "title_17"},
            {"display_name": "Title 180 - Reserved", "path": "title_180"},
            {"display_name": "Title 18 - Crimes and Criminal Procedure", "path": "title_18"},
        ],
        "title_18": node("title_18", "Title 18", [("Part I - Crimes", "title_18/part_i")]),
        "title_18/part_i": node("title_18/part_i", "Part I", [("Chapter 47 - Fraud and False Statements", "title_18/part_i/chapter_47")]),
        "title_18/part_i/chapter_47": node("title_18/part_i/chapter_47", "Chapter 47", [
            ("§ 1001. Statements or entries generally", "title_18/part_i/chapter_47/section_1001"),
        ]),
        "title_18/part_i/chapter_47/section_1001": node(
            "title_18/part_i/chapter_47/section_1001",
            "§ 1001. Statements or entries generally",
            markdown_content="## § 1001\n\n**(a)** Except as otherwise provided in this section, whoever...",
        ),
    }


@pytest.fixture
def new_jersey_tree() -> dict[str, Any]:
    return {
        "": [{"display_name": "Title 2C - The New Jersey Code of Criminal Justice", "path": "title_2c"}],
        "title_2c": node("title_2c", "Title 2C", [("Chapter 15 - Robbery", "title_2c/chapter_15")]),
        "title_2c/chapter_15": node("title_2c/chapter_15", "Chapter 15", [
            ("2C:15-1 Robbery", "title_2c/chapter_15/section_2c_15_1"),
        ]),
        "title_2c/chapter_15/section_2c_15_1": node(
            "title_2c/chapter_15/section_2c_15_1",
            "2C:15-1 Robbery",
            plaintext_content="a. Robbery defined. A person is guilty of robbery if...",
        ),
    }


@pytest.fixture
def fake_api(california_tree, federal_tree, new_jersey_tree) -> FakeOpenLaws:
    return FakeOpenLaws(trees={
        ("CA", "statutes"): california_tree,
        ("US", "usc"): federal_tree,
        ("NJ", "statutes"): new_jersey_tree,
    })


# =============================================================================
# COMPONENT FIXTURES
# =============================================================================

@pytest.fixture
def registry() -> JurisdictionRegistry:
    return JurisdictionRegistry.default()


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def make_traversal(sleeps):
    """Factory for a DivisionTraversal over a FakeOpenLaws."""
    def _make(api: FakeOpenLaws, config: Optional[ResolverConfig] = None) -> DivisionTraversal:
        config = config or ResolverConfig()
        fetcher = RetryableFetcher(api.client(), max_retries=config.MAX_RETRIES, sleep=sleeps)
        return DivisionTraversal(
            fetcher,
            config=config,
            pacer_factory=lambda: Pacer(every=config.PACE_EVERY, delay=config.PACE_DELAY, sleep=sleeps),
        )
    return _make


@pytest.fixture
def temp_store(tmp_path):
    """Temporary SQLite statute store."""
    store = SQLiteStatuteStore.open(str(tmp_path / "statutes.db"))
    yield store
    store.close()
