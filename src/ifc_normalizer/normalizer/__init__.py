"""
Normalization of element properties against the catalog.

- ElementPropertyCollector: property sets of an element
- ElementNormalizer: change log for one element
- process_ifc: change log and output document for a whole IFC file
"""

from ifc_normalizer.normalizer.collector import ElementPropertyCollector, find_group
from ifc_normalizer.normalizer.element import ElementNormalizer, typed_value_for
from ifc_normalizer.normalizer.processing import NormalizationResult, process_ifc

__all__ = [
    "ElementPropertyCollector",
    "find_group",
    "ElementNormalizer",
    "typed_value_for",
    "NormalizationResult",
    "process_ifc",
]
