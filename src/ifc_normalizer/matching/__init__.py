"""
Matching module for linking property names across naming conventions.

Provides multiple matching strategies:
- EXACT: Case-insensitive name equality
- NORMALIZED: Equality after diacritic/separator/case folding
- SYNONYM: German/English synonym table and spelling variants
- LOOSE: Prefix/containment against synonym candidates
"""

from ifc_normalizer.matching.names import (
    SynonymExpander,
    base_variants,
    normalize_name,
    split_camel,
)

from ifc_normalizer.matching.matcher import (
    PropertyMatcher,
    PropertyMatch,
    MatchMethod,
)

from ifc_normalizer.matching.synonyms import (
    DEFAULT_SYNONYMS,
    build_synonym_table,
)

__all__ = [
    # Names
    "normalize_name",
    "split_camel",
    "base_variants",
    "SynonymExpander",
    # Matcher
    "PropertyMatcher",
    "PropertyMatch",
    "MatchMethod",
    # Synonyms
    "DEFAULT_SYNONYMS",
    "build_synonym_table",
]
