"""Tests for name normalization and synonym expansion."""

import pytest

from ifc_normalizer.matching.names import (
    SynonymExpander, base_variants, normalize_name, split_camel,
)
from ifc_normalizer.matching.synonyms import DEFAULT_SYNONYMS, build_synonym_table


class TestNormalizeName:
    """Tests for normalize_name."""

    @pytest.mark.parametrize("raw", [
        "Höhe", "HÖHE", "hoehe", "  Fire__Rating  ", "U-Wert", "Straße",
        "Wärme-durchgangs_koeffizient", "Çapa", "Is   External", "", "İnnen",
    ])
    def test_idempotent(self, raw):
        """Normalizing twice gives the same result as once."""
        once = normalize_name(raw)
        assert normalize_name(once) == once

    def test_umlauts_and_case(self):
        """Umlaut spellings and case variants compare equal."""
        assert normalize_name("Höhe") == normalize_name("hoehe") == normalize_name("HÖHE")
        assert normalize_name("Höhe") == "hoehe"

    def test_sharp_s(self):
        assert normalize_name("Straße") == "strasse"

    def test_other_diacritics_dropped(self):
        assert normalize_name("Façade") == "facade"
        assert normalize_name("Résistance") == "resistance"

    def test_separators_collapsed(self):
        """Underscore/hyphen runs and whitespace runs become one space."""
        assert normalize_name("Fire__Rating") == "fire rating"
        assert normalize_name("Fire-_-Rating") == "fire rating"
        assert normalize_name("  Fire \t  Rating ") == "fire rating"

    def test_empty_input(self):
        assert normalize_name("") == ""
        assert normalize_name(None) == ""


class TestBaseVariants:
    """Tests for split_camel and base_variants."""

    def test_split_camel(self):
        assert split_camel("ThermalTransmittance") == "Thermal Transmittance"
        assert split_camel("IsExternal") == "Is External"
        assert split_camel("FIRE") == "FIRE"

    def test_camel_and_punctuation_forms(self):
        variants = base_variants("Fire_Rating")
        assert "Fire_Rating" in variants
        assert "Fire Rating" in variants
        assert "FireRating" in variants

    def test_suffix_stripped(self):
        """Parenthetical and bracketed suffixes are removed."""
        assert "Höhe" in base_variants("Höhe (mm)")
        assert "FireRating" in base_variants("FireRating [EN]")

    def test_no_empty_variants(self):
        assert "" not in base_variants("(mm)")
        assert base_variants("") == set()


class TestSynonymExpander:
    """Tests for SynonymExpander."""

    @pytest.fixture
    def expander(self):
        return SynonymExpander()

    def test_contains_raw_name(self, expander):
        assert "FireRating" in expander.expand("FireRating")

    def test_normalized_name_reachable(self, expander):
        """normalize(name) is reachable through at least one candidate."""
        for name in ["FireRating", "Höhe (mm)", "U-Wert", "Gewerk", "is_external"]:
            assert normalize_name(name) in expander.expand_normalized(name)

    def test_german_to_english(self, expander):
        candidates = expander.expand("Hersteller")
        assert "manufacturer" in candidates
        assert "vendor" in candidates

    def test_english_to_german(self, expander):
        candidates = expander.expand("FireRating")
        assert "brandschutzklasse" in candidates
        assert "fire rating" in candidates

    def test_umlaut_key_lookup(self, expander):
        """Synonym keys are matched on the normalized form."""
        assert "height" in expander.expand("HOEHE")
        assert "height" in expander.expand("Höhe (mm)")

    def test_hyphen_space_variants(self, expander):
        candidates = expander.expand("U-Wert")
        assert {"U-Wert", "U Wert", "UWert"} <= candidates
        assert "u value" in candidates
        assert "uvalue" in candidates
        assert "thermal transmittance" in candidates

    def test_empty_input(self, expander):
        assert expander.expand("") == set()
        assert expander.expand(None) == set()
        assert expander.expand_normalized("") == set()

    def test_injected_table(self):
        """A custom table replaces the default one."""
        expander = SynonymExpander(build_synonym_table({"Gewerk": ["trade"]}))

        assert "trade" in expander.expand("Gewerk")
        assert "manufacturer" not in expander.expand("Hersteller")


class TestSynonymTable:
    """Tests for build_synonym_table."""

    def test_keys_normalized(self):
        table = build_synonym_table({"Wärme-Wert": ["heat value"]})
        assert set(table) == {"waerme wert"}

    def test_sources_merged(self):
        table = build_synonym_table({"mark": ["tag"]}, {"Mark": ["label"]})
        assert table["mark"] == frozenset({"tag", "label"})

    def test_immutable(self):
        with pytest.raises(TypeError):
            DEFAULT_SYNONYMS["new"] = frozenset()
