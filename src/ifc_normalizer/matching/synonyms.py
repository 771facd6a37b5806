"""
Synonym table for property names.

Maps a property name (German or English) to alternate spellings and
translations. Keys are normalized with normalize_name when the table is
built, so they can be written in their natural form here.
"""

from types import MappingProxyType
from typing import Mapping

from ifc_normalizer.matching.names import normalize_name


# =============================================================================
# GERMAN -> ENGLISH
# =============================================================================
# Property names used by German BIM authoring templates and the BIM Portal,
# with their English equivalents and common spelling variants.

SYNONYMS_DE = {
    # Manufacturer / supplier
    "hersteller": ["manufacturer", "producer", "vendor", "lieferant"],
    "lieferant": ["manufacturer", "vendor"],
    # Material
    "baustoff": ["material", "werkstoff"],
    "werkstoff": ["material"],
    # Dimensions
    "höhe": ["height", "hoehe"],
    "breite": ["width"],
    "länge": ["length", "laenge"],
    "tiefe": ["depth"],
    "dicke": ["thickness", "staerke", "stärke"],
    "stärke": ["thickness", "dicke", "staerke"],
    "gewicht": ["weight", "masse"],
    "masse": ["mass", "weight"],
    "fläche": ["area", "flaeche"],
    "volumen": ["volume"],
    # Identification
    "kennnummer": ["identifier", "id", "code", "nummer"],
    "nummer": ["number", "no", "nr"],
    "bezeichnung": ["designation", "name", "title"],
    # Thermal
    "u-wert": ["u value", "uvalue", "thermal transmittance"],
    "wärmedurchgangskoeffizient": [
        "thermal transmittance", "u value", "uvalue", "waermedurchgangskoeffizient",
    ],
    # Fire protection
    "brandschutzklasse": ["fire rating", "fire resistance", "feuerwiderstandsklasse"],
    "feuerwiderstandsklasse": ["fire rating", "fire resistance", "brandschutzklasse"],
}


# =============================================================================
# ENGLISH -> GERMAN
# =============================================================================
# IFC standard property names (Pset_*Common) mapped back to German.

SYNONYMS_EN = {
    "material": ["werkstoff", "baustoff"],
    "name": ["designation", "title"],
    "firerating": ["fire rating", "fire resistance", "brandschutzklasse"],
    "thermaltransmittance": ["thermal transmittance", "u value", "u-wert", "wärmedurchgangskoeffizient"],
    "isexternal": ["is external", "external", "außen", "aussen"],
    "reference": ["referenz", "kennung"],
    "description": ["beschreibung"],
    "mark": ["kennung", "label", "tag"],
}


def build_synonym_table(*sources: Mapping[str, list]) -> Mapping[str, frozenset]:
    """
    Build an immutable synonym table.

    Later sources extend earlier ones when they share a key.

    Args:
        sources: Mappings of property name -> list of synonyms

    Returns:
        Read-only mapping of normalized name -> frozenset of synonyms
    """
    table: dict[str, set] = {}
    for source in sources:
        for key, synonyms in source.items():
            table.setdefault(normalize_name(key), set()).update(synonyms)

    return MappingProxyType({key: frozenset(values) for key, values in table.items()})


DEFAULT_SYNONYMS = build_synonym_table(SYNONYMS_DE, SYNONYMS_EN)
