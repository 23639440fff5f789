"""
Cache-first statute resolution.

Sequence for one citation:
1. Look up (citation, jurisdiction) in the persistent store. The jurisdiction
   is the parsed one, or a best guess when the citation does not parse.
2. On a miss, parse the citation and run the divisions traversal over each
   law key registered for the jurisdiction until one yields the section.
3. Optionally upsert the resolved statute so the next lookup is a cache hit.

Store failures never fail a resolution: read errors count as a miss and
write errors are logged. Without API credentials the cache is still served
but no network call is attempted.
"""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from statute_core.citations.parser import CitationParser
from statute_core.config import DEFAULT_RESOLVER_CONFIG
from statute_core.db.store import StatuteStore
from statute_core.exceptions import RemoteAPIError
from statute_core.models import LawCompilation, ParsedCitation, Statute, Unparseable
from statute_core.registry import JurisdictionRegistry
from statute_core.resolver.traversal import DivisionTraversal

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    CACHED = "cached"
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    UNPARSEABLE = "unparseable"
    NOT_CONFIGURED = "not_configured"


@dataclass
class Resolution:
    """Outcome of one resolve call.

    Attributes:
        citation: Citation as given by the caller
        outcome: What happened (cache hit, resolved remotely, ...)
        statute: Resolved statute, None unless outcome is CACHED or RESOLVED
        parsed: Parsed citation, None if the citation did not parse or was a cache hit
        message: Human-readable detail for failed outcomes
    """
    citation: str
    outcome: Outcome
    statute: Optional[Statute] = None
    parsed: Optional[ParsedCitation] = None
    message: str = ""

    @property
    def found(self) -> bool:
        return self.statute is not None


class CacheFirstResolver:
    """Store lookup first, then parse + traverse."""

    def __init__(
        self,
        parser: CitationParser,
        traversal: Optional[DivisionTraversal],
        registry: JurisdictionRegistry,
        store: Optional[StatuteStore] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.parser = parser
        self.traversal = traversal
        self.registry = registry
        self.store = store
        self._sleep = sleep

    def resolve(self, citation: str, import_if_found: bool = False) -> Optional[Statute]:
        return self.resolve_detailed(citation, import_if_found=import_if_found).statute

    def resolve_detailed(self, citation: str, import_if_found: bool = False) -> Resolution:
        """
        Args:
            citation: Free-text citation
            import_if_found: Upsert a remotely resolved statute into the store

        Returns:
            Resolution with outcome and, when found, the statute

        Raises:
            RemoteAPIError: If the root of every registered law fails after retries
        """
        parsed = self.parser.parse(citation)
        jurisdiction = (
            parsed.jurisdiction
            if isinstance(parsed, ParsedCitation)
            else self.registry.guess_jurisdiction(citation)
        )

        cached = self._read_cache(citation, jurisdiction)
        if cached is not None:
            logger.info(f"Cache hit for {citation} ({jurisdiction})")
            return Resolution(citation=citation, outcome=Outcome.CACHED, statute=cached)

        if isinstance(parsed, Unparseable):
            logger.info(f"Could not parse citation '{citation}': {parsed.reason}")
            return Resolution(citation=citation, outcome=Outcome.UNPARSEABLE, message=parsed.reason)

        if self.traversal is None:
            return Resolution(
                citation=citation,
                outcome=Outcome.NOT_CONFIGURED,
                parsed=parsed,
                message="OpenLaws API key not configured",
            )

        compilations = self.registry.law_compilations(parsed.jurisdiction)
        if not compilations:
            return Resolution(
                citation=citation,
                outcome=Outcome.NOT_FOUND,
                parsed=parsed,
                message=f"No law compilation registered for {parsed.jurisdiction}",
            )

        statute = self._search_compilations(compilations, parsed, citation)
        if statute is None:
            return Resolution(
                citation=citation,
                outcome=Outcome.NOT_FOUND,
                parsed=parsed,
                message=f"Section {parsed.section} not found in {parsed.jurisdiction}",
            )

        if import_if_found:
            self._write_cache(statute)
        return Resolution(citation=citation, outcome=Outcome.RESOLVED, statute=statute, parsed=parsed)

    def resolve_batch(
        self,
        citations: list[str],
        import_if_found: bool = False,
        delay: float = DEFAULT_RESOLVER_CONFIG.BATCH_DELAY,
    ) -> dict[str, Resolution]:
        """
        Resolve citations one after another with a fixed pause between them.

        Each citation gets its own call budget; the pause keeps the sustained
        request rate down across the batch.
        """
        results: dict[str, Resolution] = {}
        for index, citation in enumerate(citations):
            if index and delay > 0:
                self._sleep(delay)
            results[citation] = self.resolve_detailed(citation, import_if_found=import_if_found)
        return results

    def _search_compilations(
        self,
        compilations: list[LawCompilation],
        parsed: ParsedCitation,
        citation: str,
    ) -> Optional[Statute]:
        """Search each law key in turn, each with its own call budget.

        A law key whose root cannot be fetched is skipped. The last root error
        is re-raised only when no law key could be searched at all."""
        last_error: Optional[RemoteAPIError] = None
        searched = False
        for compilation in compilations:
            try:
                statute = self.traversal.search(
                    compilation.jurisdiction_key,
                    compilation.law_key,
                    parsed.section,
                    code_hint=parsed.code_hint,
                    citation=citation,
                    jurisdiction=parsed.jurisdiction,
                )
            except RemoteAPIError as e:
                logger.warning(
                    f"Skipping law {compilation.jurisdiction_key}/{compilation.law_key} "
                    f"for {citation}: {e}"
                )
                last_error = e
                continue
            searched = True
            if statute is not None:
                return statute

        if not searched and last_error is not None:
            raise last_error
        return None

    def _read_cache(self, citation: str, jurisdiction: Optional[str]) -> Optional[Statute]:
        if self.store is None or not jurisdiction:
            return None
        try:
            return self.store.get(citation, jurisdiction)
        except Exception as e:
            logger.warning(f"Statute store read failed for {citation} ({jurisdiction}), treating as miss: {e}")
            return None

    def _write_cache(self, statute: Statute) -> None:
        if self.store is None:
            return
        try:
            self.store.upsert(statute)
            logger.info(f"Imported statute: {statute.citation} ({statute.jurisdiction})")
        except Exception as e:
            logger.warning(f"Error importing statute {statute.citation}: {e}")
