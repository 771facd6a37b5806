"""
Property name normalization and synonym expansion.

normalize_name() turns a raw property name into a comparable key.
SynonymExpander widens a name into a set of candidate spellings using
punctuation/casing variants and a synonym table.
"""

import re
import unicodedata
from typing import Mapping, Optional


# German letters transliterated before decomposition so "Höhe" == "Hoehe"
_TRANSLITERATIONS = str.maketrans({"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss"})

_SEPARATORS = re.compile(r"[_\-]+")
_WHITESPACE = re.compile(r"\s+")
_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_PARENTHESES = re.compile(r"\(.*?\)")
_BRACKETS = re.compile(r"\[.*?\]")


def normalize_name(name: Optional[str]) -> str:
    """
    Canonicalize a property name for comparison.

    Umlauts are transliterated, other diacritics dropped, underscore/hyphen
    runs and whitespace runs collapsed to one space, then trimmed and
    lower-cased. Idempotent.

    Args:
        name: Raw property name (may be None)

    Returns:
        Normalized name, "" for empty input
    """
    if not name:
        return ""

    text = unicodedata.normalize("NFC", name).lower().translate(_TRANSLITERATIONS)
    text = unicodedata.normalize("NFKD", text)
    text = "".join(c for c in text if not unicodedata.combining(c)).lower()
    text = _SEPARATORS.sub(" ", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()


def split_camel(name: str) -> str:
    """Insert a space between a lowercase letter and a following uppercase one."""
    return _CAMEL_BOUNDARY.sub(r"\1 \2", name or "")


def base_variants(name: Optional[str]) -> set[str]:
    """
    Spelling variants of a name before synonym lookup.

    Raw and camel-split forms, each with punctuation turned into spaces or
    stripped, and each of those with parenthetical/bracketed suffixes removed.
    """
    raw = name or ""
    with_spaces = split_camel(raw)
    forms = [
        raw,
        with_spaces,
        raw.replace("_", " ").replace("-", " "),
        with_spaces.replace("_", " ").replace("-", " "),
        re.sub(r"[_\-\s]", "", raw),
        re.sub(r"[_\-\s]", "", with_spaces),
    ]

    variants = set()
    for form in forms:
        variants.add(form)
        variants.add(_PARENTHESES.sub("", form).strip())
        variants.add(_BRACKETS.sub("", form).strip())

    return {v for v in variants if v}


class SynonymExpander:
    """Expands property names into candidate spellings and translations."""

    def __init__(self, synonyms: Optional[Mapping[str, frozenset]] = None):
        """
        Initialize the expander.

        Args:
            synonyms: Normalized name -> synonyms. Defaults to DEFAULT_SYNONYMS.
        """
        if synonyms is None:
            from ifc_normalizer.matching.synonyms import DEFAULT_SYNONYMS
            synonyms = DEFAULT_SYNONYMS
        self.synonyms = synonyms

    def expand(self, name: Optional[str]) -> set[str]:
        """
        Get the candidate set for a property name.

        The result is a set; iteration order is not significant.

        Args:
            name: Raw property name

        Returns:
            Candidate names (empty for empty input)
        """
        if not name:
            return set()

        candidates = set()
        for variant in base_variants(name):
            candidates.add(variant)
            candidates.update(self.synonyms.get(normalize_name(variant), ()))

        # Hyphen/space variants ("U-Wert", "U Wert", "UWert")
        for candidate in list(candidates):
            candidates.add(re.sub(r"\s*-\s*", "-", candidate))
            candidates.add(re.sub(r"\s*-\s*", " ", candidate))
            candidates.add(_WHITESPACE.sub("", candidate))

        return {c for c in candidates if c}

    def expand_normalized(self, name: Optional[str]) -> set[str]:
        """Normalized forms of expand(name)."""
        return {n for n in (normalize_name(c) for c in self.expand(name)) if n}
