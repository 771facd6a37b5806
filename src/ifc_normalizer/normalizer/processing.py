"""
Document-level normalization pass.

Opens the IFC bytes, runs the ElementNormalizer over every element of the
profile's target class and returns the (possibly unmodified) document plus
the concatenated change log.
"""

import asyncio
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from ifc_normalizer.matching.matcher import PropertyMatcher
from ifc_normalizer.matching.names import SynonymExpander
from ifc_normalizer.normalizer.element import ElementNormalizer
from ifc_normalizer.parsers.ifc_document import IFCDocument
from ifc_normalizer.profiles.config import NormalizationProfile, Profile, get_profile

logger = structlog.get_logger(__name__)


@dataclass
class NormalizationResult:
    """Result of normalizing one IFC document."""

    output: bytes
    report: list  # List of ChangeLogEntry, element order then watch-list order
    target_class: str
    elements_analyzed: int = 0
    schema: str = ""

    @property
    def properties_checked(self) -> int:
        """Number of distinct properties that made it into the report."""
        return len({entry.attribute_name for entry in self.report})

    def summary(self) -> dict:
        return {
            "target_class": self.target_class,
            "elements_analyzed": self.elements_analyzed,
            "properties_checked": self.properties_checked,
            "total_changes": len(self.report),
        }


async def process_ifc(
    data: bytes,
    resolver,
    profile: Optional[NormalizationProfile] = None,
    expander: Optional[SynonymExpander] = None,
    progress: Optional[Callable[[int, int], None]] = None
) -> NormalizationResult:
    """
    Normalize every targeted element of an IFC document.

    Args:
        data: IFC file content
        resolver: CatalogResolver
        profile: Normalization profile (walls by default)
        expander: Synonym expander (default table if omitted)
        progress: Called with (elements done, elements total) after each element

    Returns:
        NormalizationResult

    Raises:
        DocumentError: If the document cannot be opened or read
    """
    profile = profile or get_profile(Profile.WALLS)
    # Parsing and serializing a large STEP file runs off the event loop
    document = await asyncio.to_thread(IFCDocument.open, data)

    try:
        matcher = PropertyMatcher(resolver, expander)
        normalizer = ElementNormalizer(document, matcher, profile)

        elements = document.get_elements_of_type(profile.target_class)
        logger.info("document.opened", schema=document.schema,
                    target_class=profile.target_class, elements=len(elements))

        report = []
        for done, element in enumerate(elements, 1):
            report.extend(await normalizer.normalize_element(element))
            if progress:
                progress(done, len(elements))

        output = await asyncio.to_thread(document.to_bytes)
        result = NormalizationResult(
            output=output,
            report=report,
            target_class=profile.target_class,
            elements_analyzed=len(elements),
            schema=document.schema,
        )
    finally:
        document.close()

    logger.info("document.normalized", **result.summary())
    return result
