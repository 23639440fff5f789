"""
Divisions traversal (resolver).

The remote API has no "lookup by section" endpoint, only "list the children
of this node". A search is therefore a bounded breadth-first walk:

Phase 1 - compilation selection:
    Fetch the law root two levels deep. When a jurisdiction publishes several
    compilations (Penal Code, Vehicle Code, ...) the code hint moves matching
    compilations to the front. Only the top 2 are searched with a hint, the
    top 5 without one.

Phase 2 - level-by-level search:
    Fetch the children of every node in the frontier and test each child with
    SectionMatcher. Matching is side-effect free; each match is handed back to
    search(), which does one content fetch for it. The first match with text
    wins. Levels without a match feed all of their children into the next
    frontier.

Limits:
    - a per-search CallBudget is charged for every HTTP attempt, retries
      included; a spent budget stops a retry loop before it sends
    - a Pacer pauses after every N calls
    - max_depth bounds the number of levels per compilation
    - each division is fetched at most once per search

Failure semantics:
    - a failing branch is logged and dropped, the search continues
    - nothing found within budget/depth returns None (not an error)
    - a failing root fetch propagates as RemoteAPIError
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional
from urllib.parse import quote

from statute_core.api.fetcher import RetryableFetcher
from statute_core.citations.matcher import SectionMatcher
from statute_core.config import DEFAULT_RESOLVER_CONFIG, ResolverConfig
from statute_core.exceptions import RemoteAPIError
from statute_core.models import DivisionChild, DivisionNode, Statute
from statute_core.resolver.pacing import BudgetExhausted, CallBudget, Pacer
from statute_core.utils import chapter_from_path, clean_statute_text, contains_hint

logger = logging.getLogger(__name__)


@dataclass
class _SearchRun:
    """Per-search state. Never shared between concurrent searches."""
    jurisdiction_key: str
    law_key: str
    budget: CallBudget
    pacer: Pacer
    # Fetched nodes by path; None marks a dropped branch
    nodes: dict[str, Optional[DivisionNode]] = field(default_factory=dict)


def divisions_url(jurisdiction_key: str, law_key: str, path: Optional[str] = None) -> str:
    url = f"/jurisdictions/{quote(jurisdiction_key)}/laws/{quote(law_key)}/divisions"
    if path:
        url += "/" + quote(path.strip("/"), safe="/")
    return url


class DivisionTraversal:
    """Bounded heuristic search for one section in a remote law tree."""

    def __init__(
        self,
        fetcher: RetryableFetcher,
        matcher: Optional[SectionMatcher] = None,
        config: ResolverConfig = DEFAULT_RESOLVER_CONFIG,
        pacer_factory: Optional[Callable[[], Pacer]] = None,
    ):
        self.fetcher = fetcher
        self.matcher = matcher or SectionMatcher()
        self.config = config
        self.pacer_factory = pacer_factory or (
            lambda: Pacer(every=config.PACE_EVERY, delay=config.PACE_DELAY)
        )

    def search(
        self,
        jurisdiction_key: str,
        law_key: str,
        target_section: str,
        code_hint: Optional[str] = None,
        max_depth: Optional[int] = None,
        citation: Optional[str] = None,
        jurisdiction: Optional[str] = None,
    ) -> Optional[Statute]:
        """
        Find the division for target_section and return it as a Statute.

        Args:
            jurisdiction_key: Remote jurisdiction key (e.g. "CA", "US")
            law_key: Remote law key within the jurisdiction
            target_section: Section identifier as cited ("187", "2C:15-1")
            code_hint: Lowercase keyword used to rank compilations
            max_depth: Levels explored per compilation (default from config)
            citation: Original citation, copied onto the Statute
            jurisdiction: Registry code, copied onto the Statute

        Returns:
            Statute for the first matching division with text, None if nothing
            matched within the call budget and depth

        Raises:
            RemoteAPIError: If the law root itself cannot be fetched
        """
        depth_limit = self.config.MAX_DEPTH if max_depth is None else max_depth
        run = _SearchRun(
            jurisdiction_key=jurisdiction_key,
            law_key=law_key,
            budget=CallBudget(self.config.MAX_API_CALLS),
            pacer=self.pacer_factory(),
        )

        try:
            root = self._fetch(run, None, depth=2)
            candidates = self.rank_compilations(self._compilations(root), code_hint)
            logger.debug(
                f"Searching {len(candidates)} compilation(s) of {jurisdiction_key}/{law_key} "
                f"for section {target_section} (hint={code_hint})"
            )

            for compilation in candidates:
                for match in self._iter_matches(run, compilation.path, target_section, depth_limit):
                    node = self._fetch_node(run, match.path)
                    if node is None or not node.has_content:
                        continue
                    logger.info(
                        f"Resolved section {target_section} at {match.path} "
                        f"({run.budget.used} API calls)"
                    )
                    return self._to_statute(node, match, target_section, citation, jurisdiction or jurisdiction_key)

        except BudgetExhausted:
            logger.warning(
                f"API call budget ({run.budget.max_calls}) exhausted searching "
                f"{jurisdiction_key}/{law_key} for section {target_section}"
            )
            return None

        logger.info(
            f"Section {target_section} not found in {jurisdiction_key}/{law_key} "
            f"({run.budget.used} API calls)"
        )
        return None

    def rank_compilations(self, compilations: list[DivisionChild], code_hint: Optional[str]) -> list[DivisionChild]:
        """Hint-matching compilations first (stable), then cut to the search width."""
        if code_hint:
            hinted = [
                c for c in compilations
                if contains_hint(c.display_name, code_hint) or contains_hint(c.path, code_hint)
            ]
            others = [c for c in compilations if c not in hinted]
            return (hinted + others)[:self.config.HINTED_CANDIDATES]
        return compilations[:self.config.UNHINTED_CANDIDATES]

    # -------------------------------------------------------------------------
    # Remote calls
    # -------------------------------------------------------------------------

    def _fetch(self, run: _SearchRun, path: Optional[str], depth: int) -> Any:
        url = divisions_url(run.jurisdiction_key, run.law_key, path)
        try:
            # Every HTTP attempt, retries included, is charged to the budget
            return self.fetcher.get_json(url, params={"depth": depth}, on_attempt=run.budget.spend)
        finally:
            run.pacer.tick()

    def _fetch_node(self, run: _SearchRun, path: str) -> Optional[DivisionNode]:
        if path not in run.nodes:
            run.nodes[path] = self._load_node(run, path)
        return run.nodes[path]

    def _load_node(self, run: _SearchRun, path: str) -> Optional[DivisionNode]:
        try:
            payload = self._fetch(run, path, depth=1)
        except RemoteAPIError as e:
            logger.warning(f"Dropping branch {path}: {e}")
            return None
        if isinstance(payload, list):
            # Some nodes answer with a bare list of children
            return DivisionNode(path=path, children=self._compilations(payload))
        if not isinstance(payload, dict):
            logger.warning(f"Dropping branch {path}: unexpected payload type {type(payload).__name__}")
            return None
        node = DivisionNode.from_api(payload)
        if not node.path:
            node.path = path
        return node

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    @staticmethod
    def _compilations(root: Any) -> list[DivisionChild]:
        if isinstance(root, list):
            return [
                DivisionChild.from_api(item)
                for item in root
                if isinstance(item, dict) and item.get("path")
            ]
        if isinstance(root, dict):
            node = DivisionNode.from_api(root)
            if node.children:
                return node.children
            if node.path:
                return [DivisionChild(display_name=node.display_name, path=node.path)]
        return []

    def _iter_matches(
        self,
        run: _SearchRun,
        start_path: str,
        target_section: str,
        max_depth: int,
    ) -> Iterator[DivisionChild]:
        """Yield matching children breadth-first, level by level.

        When a node has fetchable matches only those are descended into, so a
        section container without text is searched one level deeper."""
        frontier = [start_path]
        visited = {start_path}

        for level in range(max_depth):
            next_frontier: list[str] = []
            for path in frontier:
                node = self._fetch_node(run, path)
                if node is None:
                    continue

                matched = [c for c in node.children if self.matcher.matches_child(c, target_section)]
                for child in matched:
                    yield child

                # Fall back to every child when no match could be fetched
                usable = [c for c in matched if run.nodes.get(c.path) is not None]
                descend = usable or node.children
                for child in descend:
                    if child.path not in visited:
                        visited.add(child.path)
                        next_frontier.append(child.path)

            logger.debug(f"Level {level + 1}: {len(next_frontier)} node(s) in next frontier")
            if not next_frontier:
                return
            frontier = next_frontier

    def _to_statute(
        self,
        node: DivisionNode,
        match: DivisionChild,
        target_section: str,
        citation: Optional[str],
        jurisdiction: str,
    ) -> Statute:
        path = node.path or match.path
        return Statute(
            id=path,
            citation=citation or target_section,
            jurisdiction=jurisdiction,
            title=node.display_name or match.display_name,
            content=clean_statute_text(node.plaintext_content, node.markdown_content),
            section=target_section,
            source_url=node.url,
            effective_date=node.effective_date,
            chapter=chapter_from_path(path),
        )
