from .parser import CitationParser, normalize_citation, extract_code_hint
from .matcher import SectionMatcher, base_section

__all__ = [
    "CitationParser",
    "normalize_citation",
    "extract_code_hint",
    "SectionMatcher",
    "base_section",
]
