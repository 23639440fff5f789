"""
Section matching against remote division paths and labels.

Remote paths use underscores where citations use punctuation
("section_2c_15_1" for "2C:15-1"), labels read "Section 187" or "§ 187".
Every rule is anchored so a longer numeral never matches a shorter target:
"section_1870" does not match "187", and neither do "section_187a",
"Section 187.1" or "section_187_1". A separator may still start a lettered
subsection ("section_459_a") or close a label ("§ 1001. Statements").
"""
import re
from functools import lru_cache

from statute_core.models import DivisionChild

_SUBSECTION_SUFFIX_RE = re.compile(r"(?:\([^)]*\))+\s*$")
_PART_SPLIT_RE = re.compile(r"[.:\-]")
SEPARATOR = r"[._:\-]"


def base_section(target: str) -> str:
    """Drop parenthesized subsections: "459(a)(1)" -> "459"."""
    return _SUBSECTION_SUFFIX_RE.sub("", target.strip()).strip()


@lru_cache(maxsize=512)
def _section_patterns(target: str) -> tuple[re.Pattern, re.Pattern]:
    base = base_section(target)
    parts = [part for part in _PART_SPLIT_RE.split(base) if part]
    core = SEPARATOR.join(re.escape(part) for part in parts)
    # "section_187", "section-187", "Section 187", "Sec. 187", "§ 187"
    labelled = re.compile(
        rf"(?:^|[^a-z])(?:section|sec\.?|§)[\s_\-.]*{core}(?![0-9a-z])(?!{SEPARATOR}\d)",
        re.IGNORECASE,
    )
    # Bare slug as the node's own path segment: ".../187"
    bare_segment = re.compile(rf"^{core}$", re.IGNORECASE)
    return labelled, bare_segment


class SectionMatcher:
    """Decides whether a division path or label denotes the target section."""

    def matches(self, path_or_label: str, target_section: str) -> bool:
        if not path_or_label or not base_section(target_section or ""):
            return False
        labelled, bare_segment = _section_patterns(target_section)
        if labelled.search(path_or_label):
            return True
        last_segment = path_or_label.rstrip("/").rsplit("/", 1)[-1]
        return bool(bare_segment.match(last_segment))

    def matches_child(self, child: DivisionChild, target_section: str) -> bool:
        return self.matches(child.path, target_section) or self.matches(child.display_name, target_section)
