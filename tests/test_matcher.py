"""Tests for PropertyMatcher."""

import pytest

from ifc_normalizer.matching.matcher import MatchMethod, PropertyMatch, PropertyMatcher
from ifc_normalizer.models import Attribute, AttributeGroup, CanonicalDefinition, SearchHit


def make_group(*names, name="Pset_WallCommon"):
    return AttributeGroup(
        express_id=10,
        global_id="3vB2YO$MX4xv5uCqZZG05x",
        name=name,
        attributes=[Attribute(name=n, value=f"value of {n}", express_id=100 + i)
                    for i, n in enumerate(names)],
    )


class TestPropertyMatch:
    """Tests for PropertyMatch dataclass."""

    def test_confidence_per_method(self):
        attribute = Attribute(name="FireRating", value="T30")

        exact = PropertyMatch(attribute, MatchMethod.EXACT, "FireRating")
        loose = PropertyMatch(attribute, MatchMethod.LOOSE, "FireRating")

        assert exact.confidence == 1.0
        assert loose.confidence < exact.confidence


class TestMatchingTiers:
    """Tests for tier ordering in find_in_group / match_in_group."""

    @pytest.fixture
    def matcher(self):
        return PropertyMatcher()

    def test_exact_beats_synonym(self, matcher):
        """An exact match wins even when a synonym match comes first."""
        group = make_group("Brandschutzklasse", "firerating")

        attribute = matcher.find_in_group(group, "FireRating")

        assert attribute.name == "firerating"

    def test_normalized_beats_synonym(self, matcher):
        group = make_group("height", "Höhe")

        match = matcher.match_in_group(group, "Hoehe")

        assert match.attribute.name == "Höhe"
        assert match.method == MatchMethod.NORMALIZED

    def test_synonym_match(self, matcher):
        group = make_group("Material", "Brandschutzklasse")

        match = matcher.match_in_group(group, "FireRating")

        assert match.attribute.name == "Brandschutzklasse"
        assert match.method == MatchMethod.SYNONYM

    def test_loose_match(self, matcher):
        group = make_group("FireRatingClass")

        match = matcher.match_in_group(group, "FireRating")

        assert match.attribute.name == "FireRatingClass"
        assert match.method == MatchMethod.LOOSE

    def test_tie_goes_to_first_member(self, matcher):
        group = make_group("FIRE RATING", "fire rating")

        attribute = matcher.find_in_group(group, "Fire Rating")

        assert attribute.express_id == 100

    def test_no_match(self, matcher):
        group = make_group("Material", "LoadBearing")

        assert matcher.find_in_group(group, "FireRating") is None
        assert matcher.match_in_group(group, "") is None

    def test_find_local_ignores_synonyms(self, matcher):
        """The local lookup only uses exact and normalized names."""
        group = make_group("Brandschutzklasse", "FireRatingClass")

        assert matcher.find_local(group, "FireRating") is None
        assert matcher.find_local(make_group("FIRERATING"), "FireRating").name == "FIRERATING"

    def test_match_name_returns_index(self, matcher):
        index, method = matcher.match_name(["a", "IsExternal"], "isexternal")

        assert index == 1
        assert method == MatchMethod.EXACT


class TestSelectHit:
    """Tests for choosing a catalog search hit."""

    @pytest.fixture
    def matcher(self):
        return PropertyMatcher()

    def test_prefers_exact_name(self, matcher):
        hits = [
            SearchHit(guid="g1", name="Fire Resistance Class"),
            SearchHit(guid="g2", name="FireRating"),
        ]

        assert matcher.select_hit(hits, "FireRating").guid == "g2"

    def test_synonym_hit(self, matcher):
        hits = [SearchHit(guid="g1", name="Fire Rating")]

        assert matcher.select_hit(hits, "FireRating").guid == "g1"

    def test_unrelated_hits_fall_back_to_first(self, matcher):
        """The catalog's own ranking decides when no hit name matches."""
        hits = [SearchHit(guid="g1", name="Brandverhalten"), SearchHit(guid="g2", name="Material")]

        assert matcher.select_hit(hits, "FireRating").guid == "g1"

    def test_unnamed_hit(self, matcher):
        assert matcher.select_hit([SearchHit(guid="g1")], "FireRating").guid == "g1"

    def test_no_hits(self, matcher):
        assert matcher.select_hit([], "FireRating") is None


class OffNameCatalog:
    """Catalog whose search returns one hit regardless of the hit's name."""

    def __init__(self, hit_name):
        self.hit_name = hit_name
        self.searches = []

    async def search(self, params):
        self.searches.append(params["searchString"])
        return [SearchHit(guid="g-1", name=self.hit_name)]

    async def fetch_by_guid(self, guid):
        return CanonicalDefinition(guid=guid, versionNumber="2", dataType="Text",
                                   name=self.hit_name)


class TestResolveDefinition:
    """Tests for catalog resolution with synonym fallback."""

    async def test_direct_hit(self, fire_rating_catalog):
        matcher = PropertyMatcher(fire_rating_catalog)

        definition = await matcher.resolve_definition("FireRating")

        assert definition.guid == "a1b2c3d4-0000-4000-8000-000000000001"
        assert definition.version == "3"
        assert fire_rating_catalog.searches == ["FireRating"]

    async def test_synonym_fallback(self, make_catalog):
        """A name unknown to the catalog resolves through a synonym."""
        catalog = make_catalog([CanonicalDefinition(
            guid="de-0001", versionNumber="1", dataType="Text", name="Brandschutzklasse",
        )])
        matcher = PropertyMatcher(catalog)

        definition = await matcher.resolve_definition("FireRating")

        assert definition.guid == "de-0001"
        assert definition.name == "FireRating"
        assert catalog.searches[0] == "FireRating"
        assert len(catalog.searches) > 1
        assert catalog.fetches == ["de-0001"]

    async def test_no_synonym_fallback(self, make_catalog):
        catalog = make_catalog([])
        matcher = PropertyMatcher(catalog)

        assert await matcher.resolve_definition("FireRating", use_synonyms=False) is None
        assert catalog.searches == ["FireRating"]

    async def test_unresolvable(self, fire_rating_catalog):
        matcher = PropertyMatcher(fire_rating_catalog)

        assert await matcher.resolve_definition("Gewerk") is None
        assert await matcher.resolve_definition("") is None

    async def test_catalog_failure_is_not_found(self, make_catalog, definitions):
        """ResolutionError from the catalog is logged and treated as a miss."""
        catalog = make_catalog([definitions["FireRating"]], failing=["FireRating"])
        matcher = PropertyMatcher(catalog)

        assert await matcher.resolve_definition("FireRating") is None

    async def test_unexpected_error_propagates(self, make_catalog):
        catalog = make_catalog([], crashing=["FireRating"])
        matcher = PropertyMatcher(catalog)

        with pytest.raises(RuntimeError):
            await matcher.resolve_definition("FireRating")

    async def test_requires_resolver(self):
        with pytest.raises(RuntimeError):
            await PropertyMatcher().resolve_definition("FireRating")

    @pytest.mark.parametrize("hit_name", ["Brandverhalten", ""])
    async def test_direct_search_takes_first_hit(self, hit_name):
        """A raw-name search that returns anything resolves, whatever the hit is called."""
        catalog = OffNameCatalog(hit_name)

        definition = await PropertyMatcher(catalog).resolve_definition("FireRating")

        assert definition.guid == "g-1"
        assert definition.name == "FireRating"
        assert catalog.searches == ["FireRating"]
