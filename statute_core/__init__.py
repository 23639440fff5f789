# Statute resolution core
# Main entry point: from statute_core import OpenLawsClient

from .config import load_config, ResolverConfig
from .api import OpenLawsClient, RetryableFetcher

from .models import (
    FEDERAL,
    ParsedCitation,
    Unparseable,
    LawCompilation,
    DivisionChild,
    DivisionNode,
    Statute,
)

from .registry import JurisdictionRegistry, JurisdictionEntry
from .citations import CitationParser, SectionMatcher
from .resolver import CacheFirstResolver, DivisionTraversal, Outcome, Resolution
from .db import StatuteStore, SQLiteStatuteStore

__all__ = [
    # Main entry point
    "OpenLawsClient",
    "load_config",
    "ResolverConfig",
    # Models
    "FEDERAL",
    "ParsedCitation",
    "Unparseable",
    "LawCompilation",
    "DivisionChild",
    "DivisionNode",
    "Statute",
    # Core
    "JurisdictionRegistry",
    "JurisdictionEntry",
    "CitationParser",
    "SectionMatcher",
    "RetryableFetcher",
    "DivisionTraversal",
    "CacheFirstResolver",
    "Outcome",
    "Resolution",
    # Persistence
    "StatuteStore",
    "SQLiteStatuteStore",
]
