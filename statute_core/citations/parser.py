"""
Citation parser.

Turns a free-text citation into a ParsedCitation using an ordered cascade of
grammars. Order matters: several grammars are near-supersets of others, so
the most specific forms are tried first and the two-letter fallback last.

Every grammar requires its jurisdiction token to resolve in the registry.
An unknown prefix fails the grammar instead of guessing a jurisdiction; when
nothing matches the parser returns Unparseable rather than raising.

Usage:
    parser = CitationParser(JurisdictionRegistry.default())
    parsed = parser.parse("Cal. Penal Code § 187")
    # ParsedCitation(jurisdiction="CA", section="187", code_hint="penal")
"""
import logging
import re
from typing import Callable, Optional

from statute_core.models import FEDERAL, ParseResult, ParsedCitation, Unparseable
from statute_core.registry import COLON, HYPHEN, JurisdictionRegistry

logger = logging.getLogger(__name__)

# Section identifier: starts with a digit, may contain letters, dots, colons,
# hyphens, and end with parenthesized subsections ("459(a)(1)")
SECTION = r"(?P<section>\d[0-9A-Za-z.:\-]*(?:\([0-9A-Za-z]+\))*)"

_FEDERAL_RE = re.compile(
    r"^(?P<title>\d+)\s+U\.?\s*S\.?\s*C\.?(?:\s*A\.?)?\s*(?:§\s*)?" + SECTION + r"$",
    re.IGNORECASE,
)
_FEDERAL_TITLE_RE = re.compile(
    r"^Title\s+(?P<title>\d+),?\s*(?:U\.?\s*S\.?\s*C\.?\s*)?§\s*" + SECTION + r"$",
    re.IGNORECASE,
)
_PA_RE = re.compile(
    r"^(?P<title>\d+)\s+Pa\.?\s*C\.?\s*S\.?(?:\s*A\.?)?\s*(?:§\s*)?" + SECTION + r"$",
    re.IGNORECASE,
)
_ILCS_RE = re.compile(
    r"^(?P<chapter>\d+)\s+ILCS\s+(?:\d+/)?" + SECTION + r"$",
    re.IGNORECASE,
)
_COLON_RE = re.compile(
    r"^(?P<prefix>.+?)\s*(?:§\s*)?(?P<section>\d+[A-Za-z]*:\d[0-9A-Za-z.:\-]*(?:\([0-9A-Za-z]+\))*)$"
)
_HYPHEN_RE = re.compile(
    r"^(?P<prefix>[^§]+?)\s+(?P<section>\d+[A-Za-z]*(?:-\d+[A-Za-z.]*)+(?:\([0-9A-Za-z]+\))*)$"
)
_GENERIC_RE = re.compile(r"^(?P<lead>[^§]+?)\s*§\s*" + SECTION + r"$")
_CODE_WORD_RE = re.compile(r"\b(?:Code|Laws?|Stat(?:utes?|s?\.)?|Rev\.|Ann\.|ILCS)(?![A-Za-z])", re.IGNORECASE)
_TWO_LETTER_RE = re.compile(r"^(?P<code>[A-Z]{2})\s+(?:§\s*)?" + SECTION + r"$")

_TITLE_HINT_RE = re.compile(r"\btit(?:le|\.)\s*(\d+[A-Za-z\-]*)", re.IGNORECASE)
_CHAPTER_HINT_RE = re.compile(r"\bch(?:apter|\.)\s*(\d+[A-Za-z]*)", re.IGNORECASE)

# Code-type words mapped to the lowercase hint used to pick a compilation
CODE_HINTS: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"\bpen(?:al|\.)", re.I), "penal"),
    (re.compile(r"\bveh(?:icle|\.)", re.I), "vehicle"),
    (re.compile(r"\bhealth\b", re.I), "health"),
    (re.compile(r"\bwelf(?:are|\.)", re.I), "welfare"),
    (re.compile(r"\bfam(?:ily|\.)", re.I), "family"),
    (re.compile(r"\bbus(?:iness|\.)", re.I), "business"),
    (re.compile(r"\bcrim(?:inal|\.)", re.I), "criminal"),
    (re.compile(r"\bcivil\b|\bciv\.", re.I), "civil"),
    (re.compile(r"\bevid(?:ence|\.)", re.I), "evidence"),
    (re.compile(r"\beduc(?:ation|\.)", re.I), "education"),
    (re.compile(r"\bgov(?:ernment|'t|t\.)", re.I), "government"),
    (re.compile(r"\bins(?:urance|\.)", re.I), "insurance"),
    (re.compile(r"\blab(?:or|\.)", re.I), "labor"),
    (re.compile(r"\btransp(?:ortation|\.)", re.I), "transportation"),
    (re.compile(r"\bfin(?:ance|\.)", re.I), "finance"),
)


def normalize_citation(citation: str) -> str:
    """
    Normalize spacing and section symbols before grammar matching.

    "Cal. Penal Code section 187" -> "Cal. Penal Code § 187"
    "Fla. Stat. §§ 784.03" -> "Fla. Stat. § 784.03"
    """
    normalized = " ".join(citation.split())
    normalized = re.sub(r"§§+", "§", normalized)
    normalized = re.sub(r"\b(?:section|sec\.)(?=\s*\d)", "§", normalized, flags=re.IGNORECASE)
    normalized = re.sub(r"§(?=\S)", "§ ", normalized)
    return normalized.strip().rstrip(".,;")


def extract_code_hint(text: str) -> Optional[str]:
    """Lowercase code-type keyword in the text between prefix and section."""
    for pattern, hint in CODE_HINTS:
        if pattern.search(text):
            return hint
    title = _TITLE_HINT_RE.search(text)
    if title:
        return f"title_{title.group(1).lower()}"
    chapter = _CHAPTER_HINT_RE.search(text)
    if chapter:
        return f"chapter_{chapter.group(1).lower()}"
    return None


class CitationParser:
    """Ordered-cascade citation parser bound to one registry."""

    def __init__(self, registry: JurisdictionRegistry):
        self.registry = registry
        self._grammars: tuple[tuple[str, Callable[[str], Optional[ParsedCitation]]], ...] = (
            ("federal", self._parse_federal),
            ("numbered_title", self._parse_numbered_title),
            ("colon", self._parse_colon),
            ("hyphen", self._parse_hyphen),
            ("generic", self._parse_generic),
            ("two_letter", self._parse_two_letter),
        )

    def parse(self, raw: str) -> ParseResult:
        """
        Parse a citation string.

        Args:
            raw: Free-text citation, e.g. "N.J.S.A. 2C:15-1"

        Returns:
            ParsedCitation on success, Unparseable if no grammar accepts it
        """
        if not raw or not raw.strip():
            return Unparseable(citation=raw or "", reason="empty citation")

        text = normalize_citation(raw)
        for name, grammar in self._grammars:
            parsed = grammar(text)
            if parsed is not None:
                logger.debug(f"Parsed '{raw}' with {name} grammar: {parsed}")
                return parsed

        return Unparseable(citation=raw, reason="no citation grammar matched a known jurisdiction")

    def _build(self, code: str, section: str, hint: Optional[str]) -> Optional[ParsedCitation]:
        if code not in self.registry:
            return None
        section = section.strip().rstrip(".:-")
        if not section:
            return None
        return ParsedCitation(jurisdiction=code, section=section, code_hint=hint)

    def _parse_federal(self, text: str) -> Optional[ParsedCitation]:
        match = _FEDERAL_RE.match(text) or _FEDERAL_TITLE_RE.match(text)
        if not match:
            return None
        return self._build(FEDERAL, match.group("section"), f"title_{match.group('title')}")

    def _parse_numbered_title(self, text: str) -> Optional[ParsedCitation]:
        match = _PA_RE.match(text)
        if match:
            return self._build("PA", match.group("section"), f"title_{match.group('title')}")
        match = _ILCS_RE.match(text)
        if match:
            return self._build("IL", match.group("section"), f"chapter_{match.group('chapter')}")
        return None

    def _parse_colon(self, text: str) -> Optional[ParsedCitation]:
        match = _COLON_RE.match(text)
        if not match:
            return None
        resolved = self.registry.resolve_prefix(match.group("prefix"), style=COLON)
        if not resolved:
            return None
        code, remainder = resolved
        return self._build(code, match.group("section"), extract_code_hint(remainder))

    def _parse_hyphen(self, text: str) -> Optional[ParsedCitation]:
        match = _HYPHEN_RE.match(text)
        if not match:
            return None
        resolved = self.registry.resolve_prefix(match.group("prefix"), style=HYPHEN)
        if not resolved:
            return None
        code, remainder = resolved
        return self._build(code, match.group("section"), extract_code_hint(remainder))

    def _parse_generic(self, text: str) -> Optional[ParsedCitation]:
        match = _GENERIC_RE.match(text)
        if not match:
            return None
        lead = match.group("lead").strip().rstrip(",")
        resolved = self.registry.resolve_prefix(lead)
        if not resolved:
            return None
        code, remainder = resolved
        # "O.C.G.A. § 16-5-1" is all prefix; otherwise the lead must name a code
        if remainder and not _CODE_WORD_RE.search(lead):
            return None
        return self._build(code, match.group("section"), extract_code_hint(remainder))

    def _parse_two_letter(self, text: str) -> Optional[ParsedCitation]:
        match = _TWO_LETTER_RE.match(text)
        if not match:
            return None
        return self._build(match.group("code"), match.group("section"), None)
