from dataclasses import dataclass, field
from typing import Any, Optional, Union


FEDERAL: str = "FEDERAL"


# =============================================================================
# CITATION MODELS
# =============================================================================

@dataclass(frozen=True)
class ParsedCitation:
    """Structured form of a free-text citation.

    jurisdiction is always a code known to the registry that produced it.
    section keeps its original punctuation ("2C:15-1", "22.01", "459(a)").
    code_hint is a lowercase keyword ("penal", "title_18") used to pick the
    compilation to search first."""
    jurisdiction: str
    section: str
    code_hint: Optional[str] = None


@dataclass(frozen=True)
class Unparseable:
    """No citation grammar accepted the input."""
    citation: str
    reason: str = "could not parse citation"


ParseResult = Union[ParsedCitation, Unparseable]


@dataclass(frozen=True)
class LawCompilation:
    """One statutory compilation inside a remote jurisdiction."""
    jurisdiction_key: str
    law_key: str


# =============================================================================
# REMOTE TREE MODELS
# =============================================================================

@dataclass(frozen=True)
class DivisionChild:
    display_name: str
    path: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "DivisionChild":
        return cls(
            display_name=data.get("display_name") or data.get("name") or "",
            path=data.get("path", ""),
        )


@dataclass
class DivisionNode:
    """Node of the remote divisions tree.

    Content fields are only populated on leaf / content-bearing nodes."""
    path: str
    display_name: str = ""
    division_type: str = ""
    identifier: str = ""
    plaintext_content: Optional[str] = None
    markdown_content: Optional[str] = None
    children: list[DivisionChild] = field(default_factory=list)
    url: Optional[str] = None
    effective_date: Optional[str] = None

    @property
    def has_content(self) -> bool:
        return bool((self.plaintext_content or "").strip() or (self.markdown_content or "").strip())

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "DivisionNode":
        raw_children = data.get("display_children")
        if raw_children is None:
            raw_children = data.get("children", [])
        children = [
            DivisionChild.from_api(child)
            for child in raw_children or []
            if isinstance(child, dict) and child.get("path")
        ]
        return cls(
            path=data.get("path", ""),
            display_name=data.get("display_name") or data.get("name") or "",
            division_type=data.get("division_type", ""),
            identifier=str(data.get("identifier") or ""),
            plaintext_content=data.get("plaintext_content"),
            markdown_content=data.get("markdown_content"),
            children=children,
            url=data.get("url") or data.get("source_url"),
            effective_date=data.get("effective_date"),
        )


# =============================================================================
# NORMALIZED OUTPUT
# =============================================================================

@dataclass(frozen=True)
class Statute:
    """Normalized statute record. Built only from a matched division."""
    id: str                         # division path
    citation: str                   # citation as given by the caller
    jurisdiction: str
    title: str
    content: str
    section: str
    source_url: Optional[str] = None
    effective_date: Optional[str] = None
    chapter: Optional[str] = None

    @property
    def level(self) -> str:
        return "federal" if self.jurisdiction == FEDERAL else "state"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "citation": self.citation,
            "jurisdiction": self.jurisdiction,
            "level": self.level,
            "title": self.title,
            "content": self.content,
            "section": self.section,
            "source_url": self.source_url,
            "effective_date": self.effective_date,
            "chapter": self.chapter,
        }
