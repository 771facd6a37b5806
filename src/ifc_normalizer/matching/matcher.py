"""
Matcher for linking property names to property set members and catalog hits.

Uses multiple strategies, applied in order (first hit wins):
1. EXACT: case-insensitive name equality
2. NORMALIZED: equality after normalize_name on both sides
3. SYNONYM: normalized name is in the target's synonym candidate set
4. LOOSE: prefix/containment against any synonym candidate

Within a strategy, ties go to the first name in iteration order.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import structlog

from ifc_normalizer.errors import ResolutionError, ValidationError
from ifc_normalizer.matching.names import SynonymExpander, normalize_name
from ifc_normalizer.models import Attribute, AttributeGroup, CanonicalDefinition, SearchHit

logger = structlog.get_logger(__name__)


class MatchMethod(Enum):
    """How the match was determined."""
    EXACT = "exact"
    NORMALIZED = "normalized"
    SYNONYM = "synonym"
    LOOSE = "loose"
    NONE = "none"


# Confidence per strategy, lower tiers trade precision for recall
CONFIDENCE = {
    MatchMethod.EXACT: 1.0,
    MatchMethod.NORMALIZED: 0.95,
    MatchMethod.SYNONYM: 0.8,
    MatchMethod.LOOSE: 0.5,
    MatchMethod.NONE: 0.0,
}

LOCAL_METHODS = (MatchMethod.EXACT, MatchMethod.NORMALIZED)
ALL_METHODS = (MatchMethod.EXACT, MatchMethod.NORMALIZED, MatchMethod.SYNONYM, MatchMethod.LOOSE)


@dataclass
class PropertyMatch:
    """A property found in a property set."""

    attribute: Attribute
    method: MatchMethod
    target_name: str

    @property
    def confidence(self) -> float:
        return CONFIDENCE[self.method]


def _loosely_related(name: str, candidate: str) -> bool:
    return (
        name.startswith(candidate) or candidate.startswith(name)
        or candidate in name or name in candidate
    )


class PropertyMatcher:
    """Finds properties by name in property sets and in the catalog."""

    def __init__(self, resolver=None, expander: Optional[SynonymExpander] = None):
        """
        Initialize the matcher.

        Args:
            resolver: CatalogResolver used by resolve_definition
            expander: Synonym expander (default table if not given)
        """
        self.resolver = resolver
        self.expander = expander or SynonymExpander()

    def match_name(
        self,
        names: Sequence[str],
        target_name: str,
        methods: Sequence[MatchMethod] = ALL_METHODS
    ) -> tuple[Optional[int], MatchMethod]:
        """
        Find the best matching name for a target.

        Args:
            names: Candidate names, in document order
            target_name: Name being looked up
            methods: Strategies to try, in order

        Returns:
            Tuple of (index into names, method), (None, NONE) if nothing matched
        """
        if not target_name:
            return None, MatchMethod.NONE

        normalized = [normalize_name(n) for n in names]
        candidates = None

        for method in methods:
            if method == MatchMethod.EXACT:
                wanted = target_name.lower()
                hits = [i for i, n in enumerate(names) if n and n.lower() == wanted]
            elif method == MatchMethod.NORMALIZED:
                wanted = normalize_name(target_name)
                hits = [i for i, n in enumerate(normalized) if n and n == wanted]
            else:
                if candidates is None:
                    candidates = self.expander.expand_normalized(target_name)
                if method == MatchMethod.SYNONYM:
                    hits = [i for i, n in enumerate(normalized) if n in candidates]
                else:
                    hits = [
                        i for i, n in enumerate(normalized)
                        if n and any(_loosely_related(n, c) for c in candidates)
                    ]

            if hits:
                return hits[0], method

        return None, MatchMethod.NONE

    def match_in_group(
        self,
        group: AttributeGroup,
        target_name: str,
        methods: Sequence[MatchMethod] = ALL_METHODS
    ) -> Optional[PropertyMatch]:
        """Find a property in a property set, with the strategy that found it."""
        index, method = self.match_name([a.name for a in group.attributes], target_name, methods)
        if index is None:
            return None
        return PropertyMatch(attribute=group.attributes[index], method=method, target_name=target_name)

    def find_in_group(self, group: AttributeGroup, target_name: str) -> Optional[Attribute]:
        """Find a property in a property set using all strategies."""
        match = self.match_in_group(group, target_name)
        return match.attribute if match else None

    def find_local(self, group: AttributeGroup, target_name: str) -> Optional[Attribute]:
        """Find a property by exact or normalized name only (no synonyms)."""
        match = self.match_in_group(group, target_name, LOCAL_METHODS)
        return match.attribute if match else None

    def select_hit(self, hits: Sequence[SearchHit], target_name: str) -> Optional[SearchHit]:
        """
        Pick the catalog search hit whose name matches the target best.

        The name tiers only rank the hits: when none of them matches, the
        catalog's own first hit is taken. None only for an empty search.
        """
        if not hits:
            return None
        index, method = self.match_name([h.name for h in hits], target_name)
        if index is None:
            logger.debug("catalog.hit_selected", target=target_name, hit=hits[0].name,
                         method="first")
            return hits[0]
        logger.debug("catalog.hit_selected", target=target_name, hit=hits[index].name,
                     method=method.value)
        return hits[index]

    async def resolve_definition(
        self,
        target_name: str,
        use_synonyms: bool = True
    ) -> Optional[CanonicalDefinition]:
        """
        Resolve the catalog definition of a property.

        Searches by the raw name first. If that yields nothing and
        use_synonyms is set, searches once per synonym candidate, stopping at
        the first success. Catalog failures on a single search are logged and
        treated as "not found".

        Args:
            target_name: Property name, e.g. "FireRating"
            use_synonyms: Whether to fall back to synonym candidates

        Returns:
            CanonicalDefinition, or None if no candidate resolved
        """
        if self.resolver is None:
            raise RuntimeError("PropertyMatcher has no catalog resolver")
        if not target_name:
            return None

        definition = await self._resolve_once(target_name, target_name)
        if definition is not None or not use_synonyms:
            return definition

        for candidate in sorted(self.expander.expand(target_name)):
            if candidate == target_name:
                continue
            logger.debug("catalog.trying_synonym", target=target_name, candidate=candidate)
            definition = await self._resolve_once(candidate, target_name)
            if definition is not None:
                logger.info("catalog.resolved_by_synonym", target=target_name, candidate=candidate)
                return definition

        return None

    async def _resolve_once(self, query: str, target_name: str) -> Optional[CanonicalDefinition]:
        try:
            hits = await self.resolver.search({"searchString": query, "includeDeprecated": False})
            hit = self.select_hit(hits, query)
            if hit is None:
                return None
            definition = await self.resolver.fetch_by_guid(hit.guid)
        except (ResolutionError, ValidationError) as e:
            logger.warning("catalog.resolution_failed", query=query, error=str(e))
            return None

        return definition.model_copy(update={"name": target_name})
