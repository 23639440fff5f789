"""
Jurisdiction registry.

Maps jurisdiction codes to the remote law-compilation keys, to the citation
prefixes people actually write ("Cal.", "N.J.S.A.", "K.S.A.") and to the
canonical citation format used when building a citation from a bare section.

The registry is immutable. Build one with ``JurisdictionRegistry.default()``
(optionally overriding law keys from config.yaml) and pass it to the parser
and resolver; tests can build small fake registries directly.
"""
import re
from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Optional

from statute_core.models import FEDERAL, LawCompilation


COLON: str = "colon"
HYPHEN: str = "hyphen"

DEFAULT_STATE_LAW_KEY: str = "statutes"
DEFAULT_FEDERAL_LAW_KEY: str = "usc"


@dataclass(frozen=True)
class JurisdictionEntry:
    code: str
    name: str
    jurisdiction_key: str
    law_keys: tuple[str, ...]
    aliases: tuple[str, ...]
    citation_format: str
    section_styles: frozenset[str] = frozenset()


# =============================================================================
# DEFAULT TABLES
# =============================================================================
# (code, name, citation format, prefix aliases, section styles)
#
# Citation formats follow the Bluebook forms used across the platform.
# Section styles flag jurisdictions that cite bare colon or hyphen sections
# without a "§" ("N.J.S.A. 2C:15-1", "K.S.A. 21-5413").

_JURISDICTION_TABLE: tuple[tuple[str, str, str, tuple[str, ...], tuple[str, ...]], ...] = (
    (FEDERAL, "United States", "{title} U.S.C. § {section}", ("U.S.C.", "U.S.C.A.", "USC"), ()),
    ("AL", "Alabama", "Ala. Code § {section}", ("Ala.", "Alabama"), ()),
    ("AK", "Alaska", "Alaska Stat. § {section}", ("Alaska",), ()),
    ("AZ", "Arizona", "Ariz. Rev. Stat. § {section}", ("Ariz.", "A.R.S.", "ARS", "Arizona"), (HYPHEN,)),
    ("AR", "Arkansas", "Ark. Code Ann. § {section}", ("Ark.", "Arkansas"), (HYPHEN,)),
    ("CA", "California", "Cal. Penal Code § {section}", ("Cal.", "Calif.", "California"), ()),
    ("CO", "Colorado", "Colo. Rev. Stat. § {section}", ("Colo.", "C.R.S.", "Colorado"), (HYPHEN,)),
    ("CT", "Connecticut", "Conn. Gen. Stat. § {section}", ("Conn.", "C.G.S.", "Connecticut"), (HYPHEN,)),
    ("DE", "Delaware", "Del. Code Ann. tit. 11, § {section}", ("Del.", "Delaware"), ()),
    ("FL", "Florida", "Fla. Stat. § {section}", ("Fla.", "F.S.", "Florida"), ()),
    ("GA", "Georgia", "Ga. Code Ann. § {section}", ("Ga.", "O.C.G.A.", "Georgia"), (HYPHEN,)),
    ("HI", "Hawaii", "Haw. Rev. Stat. § {section}", ("Haw.", "H.R.S.", "Hawaii"), (HYPHEN,)),
    ("ID", "Idaho", "Idaho Code § {section}", ("Idaho",), (HYPHEN,)),
    ("IL", "Illinois", "720 ILCS 5/{section}", ("Ill.", "Illinois"), ()),
    ("IN", "Indiana", "Ind. Code § {section}", ("Ind.", "Indiana"), (HYPHEN,)),
    ("IA", "Iowa", "Iowa Code § {section}", ("Iowa",), ()),
    ("KS", "Kansas", "Kan. Stat. Ann. § {section}", ("Kan.", "K.S.A.", "Kansas"), (HYPHEN,)),
    ("KY", "Kentucky", "Ky. Rev. Stat. Ann. § {section}", ("Ky.", "KRS", "Kentucky"), ()),
    ("LA", "Louisiana", "La. Rev. Stat. Ann. § {section}", ("La.", "Louisiana"), ()),
    ("ME", "Maine", "Me. Rev. Stat. Ann. tit. 17-A, § {section}", ("Me.", "Maine"), ()),
    ("MD", "Maryland", "Md. Code Ann., Crim. Law § {section}", ("Md.", "Maryland"), ()),
    ("MA", "Massachusetts", "Mass. Gen. Laws ch. {section}", ("Mass.", "M.G.L.", "Massachusetts"), ()),
    ("MI", "Michigan", "Mich. Comp. Laws § {section}", ("Mich.", "MCL", "M.C.L.", "Michigan"), ()),
    ("MN", "Minnesota", "Minn. Stat. § {section}", ("Minn.", "Minnesota"), ()),
    ("MS", "Mississippi", "Miss. Code Ann. § {section}", ("Miss.", "Mississippi"), (HYPHEN,)),
    ("MO", "Missouri", "Mo. Rev. Stat. § {section}", ("Mo.", "RSMo", "Missouri"), ()),
    ("MT", "Montana", "Mont. Code Ann. § {section}", ("Mont.", "MCA", "Montana"), (HYPHEN,)),
    ("NE", "Nebraska", "Neb. Rev. Stat. § {section}", ("Neb.", "Nebraska"), (HYPHEN,)),
    ("NV", "Nevada", "Nev. Rev. Stat. § {section}", ("Nev.", "NRS", "Nevada"), ()),
    ("NH", "New Hampshire", "N.H. Rev. Stat. Ann. § {section}", ("N.H.", "RSA", "New Hampshire"), (COLON,)),
    ("NJ", "New Jersey", "N.J. Stat. Ann. § {section}", ("N.J.S.A.", "N.J.S.", "N.J. Stat. Ann.", "N.J. Rev. Stat.", "N.J.", "New Jersey"), (COLON,)),
    ("NM", "New Mexico", "N.M. Stat. Ann. § {section}", ("N.M.", "NMSA", "New Mexico"), (HYPHEN,)),
    ("NY", "New York", "N.Y. Penal Law § {section}", ("N.Y.", "NY", "New York"), ()),
    ("NC", "North Carolina", "N.C. Gen. Stat. § {section}", ("N.C.", "N.C.G.S.", "North Carolina"), (HYPHEN,)),
    ("ND", "North Dakota", "N.D. Cent. Code § {section}", ("N.D.", "N.D.C.C.", "North Dakota"), (HYPHEN,)),
    ("OH", "Ohio", "Ohio Rev. Code Ann. § {section}", ("Ohio", "R.C.", "ORC"), ()),
    ("OK", "Oklahoma", "Okla. Stat. tit. 21, § {section}", ("Okla.", "Oklahoma"), ()),
    ("OR", "Oregon", "Or. Rev. Stat. § {section}", ("Or.", "Ore.", "ORS", "Oregon"), ()),
    ("PA", "Pennsylvania", "18 Pa.C.S. § {section}", ("Pa.", "Pennsylvania"), ()),
    ("RI", "Rhode Island", "R.I. Gen. Laws § {section}", ("R.I.", "Rhode Island"), (HYPHEN,)),
    ("SC", "South Carolina", "S.C. Code Ann. § {section}", ("S.C.", "South Carolina"), (HYPHEN,)),
    ("SD", "South Dakota", "S.D. Codified Laws § {section}", ("S.D.", "SDCL", "South Dakota"), (HYPHEN,)),
    ("TN", "Tennessee", "Tenn. Code Ann. § {section}", ("Tenn.", "T.C.A.", "Tennessee"), (HYPHEN,)),
    ("TX", "Texas", "Tex. Penal Code § {section}", ("Tex.", "Texas"), ()),
    ("UT", "Utah", "Utah Code Ann. § {section}", ("Utah",), (HYPHEN,)),
    ("VT", "Vermont", "Vt. Stat. Ann. tit. 13, § {section}", ("Vt.", "V.S.A.", "Vermont"), ()),
    ("VA", "Virginia", "Va. Code Ann. § {section}", ("Va.", "Virginia"), (HYPHEN,)),
    ("WA", "Washington", "Wash. Rev. Code § {section}", ("Wash.", "RCW", "Washington"), ()),
    ("WV", "West Virginia", "W. Va. Code § {section}", ("W. Va.", "W.Va.", "West Virginia"), (HYPHEN,)),
    ("WI", "Wisconsin", "Wis. Stat. § {section}", ("Wis.", "Wisconsin"), ()),
    ("WY", "Wyoming", "Wyo. Stat. Ann. § {section}", ("Wyo.", "W.S.", "Wyoming"), (HYPHEN,)),
    ("DC", "District of Columbia", "D.C. Code § {section}", ("D.C.", "District of Columbia"), (HYPHEN,)),
    ("PR", "Puerto Rico", "P.R. Laws Ann. tit. 33, § {section}", ("P.R.", "L.P.R.A.", "Puerto Rico"), ()),
    ("VI", "U.S. Virgin Islands", "V.I. Code Ann. tit. 14, § {section}", ("V.I.", "Virgin Islands"), ()),
    ("GU", "Guam", "Guam Code Ann. tit. 9, § {section}", ("Guam", "G.C.A."), ()),
    ("AS", "American Samoa", "Am. Samoa Code Ann. § {section}", ("Am. Samoa", "A.S.C.A.", "American Samoa"), ()),
    ("MP", "Northern Mariana Islands", "N. Mar. I. Code § {section}", ("N. Mar. I.", "CMC"), ()),
)

_TWO_LETTER_RE = re.compile(r"^([A-Z]{2})(?=\s|,|$)")


def _default_entries() -> list[JurisdictionEntry]:
    entries = []
    for code, name, citation_format, aliases, styles in _JURISDICTION_TABLE:
        federal = code == FEDERAL
        entries.append(JurisdictionEntry(
            code=code,
            name=name,
            jurisdiction_key="US" if federal else code,
            law_keys=(DEFAULT_FEDERAL_LAW_KEY if federal else DEFAULT_STATE_LAW_KEY,),
            aliases=aliases,
            citation_format=citation_format,
            section_styles=frozenset(styles),
        ))
    return entries


# =============================================================================
# REGISTRY
# =============================================================================

class JurisdictionRegistry:
    """Immutable lookup over jurisdiction entries."""

    def __init__(self, entries: Iterable[JurisdictionEntry]):
        self._entries: dict[str, JurisdictionEntry] = {e.code: e for e in entries}
        # Longest alias first so "N.J.S.A." wins over "N.J."
        alias_pairs = [
            (alias, entry.code)
            for entry in self._entries.values()
            for alias in entry.aliases
        ]
        self._aliases: tuple[tuple[str, str], ...] = tuple(
            sorted(alias_pairs, key=lambda pair: len(pair[0]), reverse=True)
        )

    @classmethod
    def default(cls, law_key_overrides: Optional[Mapping[str, object]] = None) -> "JurisdictionRegistry":
        """Registry of all US jurisdictions, optionally with law keys from config."""
        registry = cls(_default_entries())
        if law_key_overrides:
            registry = registry.with_law_keys(law_key_overrides)
        return registry

    def with_law_keys(self, overrides: Mapping[str, object]) -> "JurisdictionRegistry":
        """Return a copy whose law keys are replaced for the given codes.

        Values may be a single key or a list of keys."""
        entries = []
        for entry in self._entries.values():
            override = overrides.get(entry.code)
            if override:
                keys = (override,) if isinstance(override, str) else tuple(override)
                entry = replace(entry, law_keys=keys)
            entries.append(entry)
        return JurisdictionRegistry(entries)

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(self._entries)

    def get(self, code: str) -> Optional[JurisdictionEntry]:
        return self._entries.get(code)

    def supports(self, code: str, style: str) -> bool:
        entry = self._entries.get(code)
        return entry is not None and style in entry.section_styles

    def law_compilation(self, code: str) -> Optional[LawCompilation]:
        """Primary compilation searched for a jurisdiction."""
        entry = self._entries.get(code)
        if entry is None or not entry.law_keys:
            return None
        return LawCompilation(jurisdiction_key=entry.jurisdiction_key, law_key=entry.law_keys[0])

    def law_compilations(self, code: str) -> list[LawCompilation]:
        """Every compilation registered for a jurisdiction, in search order."""
        entry = self._entries.get(code)
        if entry is None:
            return []
        return [LawCompilation(jurisdiction_key=entry.jurisdiction_key, law_key=key) for key in entry.law_keys]

    def resolve_prefix(self, text: str, style: Optional[str] = None) -> Optional[tuple[str, str]]:
        """
        Match the start of ``text`` against known prefixes.

        Args:
            text: Citation text that should start with a jurisdiction prefix
            style: Only accept jurisdictions using this section style

        Returns:
            (code, remainder after the prefix) or None if no known prefix matches
        """
        text = text.strip()
        lowered = text.lower()
        for alias, code in self._aliases:
            if code == FEDERAL:
                continue
            if not lowered.startswith(alias.lower()):
                continue
            rest = text[len(alias):]
            # "Mo." must not match "Mont.", "Ind." must not match "Indiana"
            if rest and not alias.endswith(".") and rest[0].isalnum():
                continue
            if rest and alias.endswith(".") and rest[0].isalpha() and not rest[0].isupper():
                continue
            if style and not self.supports(code, style):
                continue
            return code, rest.strip()

        match = _TWO_LETTER_RE.match(text)
        if match and match.group(1) in self._entries:
            code = match.group(1)
            if style and not self.supports(code, style):
                return None
            return code, text[match.end():].strip()
        return None

    def guess_jurisdiction(self, citation: str) -> Optional[str]:
        """Best-effort jurisdiction for a citation no grammar accepted."""
        if re.search(r"\bU\.?\s*S\.?\s*C\.?\b", citation, re.IGNORECASE):
            return FEDERAL
        resolved = self.resolve_prefix(citation)
        return resolved[0] if resolved else None

    def format_citation(self, code: str, section: str, **parts: str) -> str:
        """
        Canonical citation for a section, e.g. ("CA", "187") -> "Cal. Penal Code § 187".

        Federal citations take a ``title`` keyword (defaults to Title 18).

        Raises:
            KeyError: If code is not in the registry
        """
        entry = self._entries[code]
        if code == FEDERAL:
            parts.setdefault("title", "18")
        return entry.citation_format.format(section=section, **parts)
