import re
from typing import Optional


# =============================================================================
# CONTENT CLEANING
# =============================================================================
#
# Leaf divisions carry plaintext_content and/or markdown_content. Plaintext is
# preferred; markdown is flattened when it is the only text available.
# =============================================================================

_MD_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_MD_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s*", re.MULTILINE)
_MD_EMPHASIS_RE = re.compile(r"(\*\*|__|\*)(?=\S)(.+?)(?<=\S)\1")
_MD_BLOCKQUOTE_RE = re.compile(r"^\s*>\s?", re.MULTILINE)
_HTML_TAG_RE = re.compile(r"<[^>]+>")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)
_BLANK_LINES_RE = re.compile(r"\n{3,}")


def strip_markdown(text: str) -> str:
    text = _MD_LINK_RE.sub(r"\1", text)
    text = _MD_HEADING_RE.sub("", text)
    text = _MD_BLOCKQUOTE_RE.sub("", text)
    text = _MD_EMPHASIS_RE.sub(r"\2", text)
    return text


def clean_statute_text(plaintext: Optional[str], markdown: Optional[str] = None) -> str:
    """
    Args:
        plaintext: plaintext_content from the division
        markdown: markdown_content from the division

    Returns:
        Cleaned statute text, empty string if neither field has text
    """
    if plaintext and plaintext.strip():
        text = plaintext
    elif markdown and markdown.strip():
        text = strip_markdown(markdown)
    else:
        return ""

    text = _HTML_TAG_RE.sub("", text)
    text = text.replace("\r\n", "\n").replace("\xa0", " ")
    text = _TRAILING_SPACE_RE.sub("", text)
    text = _BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()


# =============================================================================
# PATH HELPERS
# =============================================================================

def normalize_slug(text: str) -> str:
    """"Title 18 - Crimes" -> "title_18_crimes"."""
    return re.sub(r"[^0-9a-z]+", "_", text.lower()).strip("_")


def contains_hint(text: str, hint: str) -> bool:
    """Word-boundary hint test on slugs: "title_18" is not in "title_180"."""
    slug = normalize_slug(text)
    needle = normalize_slug(hint)
    if not slug or not needle:
        return False
    return re.search(rf"(?:^|_){re.escape(needle)}(?:_|$)", slug) is not None


def chapter_from_path(path: str) -> Optional[str]:
    """Closest enclosing chapter segment of a division path, if any."""
    for segment in reversed(path.strip("/").split("/")[:-1]):
        if re.match(r"^(?:chapter|ch)[_\-.]?", segment, re.IGNORECASE):
            return segment
    return None
