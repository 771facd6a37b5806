"""Shared fixtures: in-memory IFC models and a fake property catalog."""

import asyncio
import logging

import ifcopenshell
import ifcopenshell.guid
import pytest
import structlog

from ifc_normalizer.errors import ResolutionError
from ifc_normalizer.matching.names import normalize_name
from ifc_normalizer.models import CanonicalDefinition, SearchHit


@pytest.fixture(autouse=True)
def quiet_structlog():
    """Only warnings and above, resolved against the current stdout."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


# -------------------------------------------------------------------------
# Fake catalog
# -------------------------------------------------------------------------

FIRE_RATING = CanonicalDefinition(
    guid="a1b2c3d4-0000-4000-8000-000000000001",
    versionNumber="3",
    dataType="Text",
    name="FireRating",
)

THERMAL_TRANSMITTANCE = CanonicalDefinition(
    guid="a1b2c3d4-0000-4000-8000-000000000002",
    versionNumber="1",
    dataType="Number",
    units="W/(m²·K)",
    name="ThermalTransmittance",
)

IS_EXTERNAL = CanonicalDefinition(
    guid="a1b2c3d4-0000-4000-8000-000000000003",
    versionNumber="2",
    dataType="Boolean",
    name="IsExternal",
)


class FakeCatalog:
    """
    In-memory CatalogResolver.

    A search hits when the normalized query equals the normalized name of a
    known definition. Names in `failing` raise ResolutionError, names in
    `crashing` raise RuntimeError (an unexpected fault).
    """

    def __init__(self, definitions=(), failing=(), crashing=(), delay=0.0):
        self.definitions = {normalize_name(d.name): d for d in definitions}
        self.failing = {normalize_name(n) for n in failing}
        self.crashing = {normalize_name(n) for n in crashing}
        self.delay = delay
        self.searches = []
        self.fetches = []
        self.closed = False

    async def search(self, params: dict) -> list[SearchHit]:
        query = params["searchString"]
        self.searches.append(query)
        key = normalize_name(query)

        if key in self.crashing:
            raise RuntimeError(f"catalog crashed on {query}")
        if key in self.failing:
            raise ResolutionError(f"HTTP 503 searching {query}", status_code=503)

        definition = self.definitions.get(key)
        return [SearchHit(guid=definition.guid, name=definition.name)] if definition else []

    async def fetch_by_guid(self, guid: str) -> CanonicalDefinition:
        self.fetches.append(guid)
        if self.delay:
            await asyncio.sleep(self.delay)
        for definition in self.definitions.values():
            if definition.guid == guid:
                return definition
        raise ResolutionError(f"Unknown property {guid}", status_code=404)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True


@pytest.fixture
def fire_rating_catalog():
    """Catalog that only knows FireRating."""
    return FakeCatalog([FIRE_RATING])


@pytest.fixture
def full_catalog():
    """Catalog that knows every wall target except Gewerk."""
    return FakeCatalog([FIRE_RATING, THERMAL_TRANSMITTANCE, IS_EXTERNAL])


# -------------------------------------------------------------------------
# IFC models
# -------------------------------------------------------------------------

def _nominal(model, value):
    if isinstance(value, bool):
        return model.create_entity("IfcBoolean", value)
    if isinstance(value, (int, float)):
        return model.create_entity("IfcReal", float(value))
    return model.create_entity("IfcLabel", value)


def add_pset(model, element, name, properties):
    """Attach a property set with single-value properties to an element."""
    props = [
        model.create_entity("IfcPropertySingleValue", Name=prop_name,
                            NominalValue=_nominal(model, value))
        for prop_name, value in properties.items()
    ]
    pset = model.create_entity(
        "IfcPropertySet",
        GlobalId=ifcopenshell.guid.new(),
        Name=name,
        HasProperties=props,
    )
    model.create_entity(
        "IfcRelDefinesByProperties",
        GlobalId=ifcopenshell.guid.new(),
        RelatedObjects=[element],
        RelatingPropertyDefinition=pset,
    )
    return pset


def build_model(elements, ifc_class="IfcWall", pset_name="Pset_WallCommon"):
    """
    Build an IFC4 model.

    Args:
        elements: One dict of properties per element; None for an element
            without any property set
    """
    model = ifcopenshell.file(schema="IFC4")
    for i, properties in enumerate(elements, 1):
        element = model.create_entity(
            ifc_class, GlobalId=ifcopenshell.guid.new(), Name=f"{ifc_class} {i}"
        )
        if properties is not None:
            add_pset(model, element, pset_name, properties)
    return model


def to_bytes(model) -> bytes:
    return model.to_string().encode("latin-1")


@pytest.fixture
def walls_model():
    """Three walls; the first has FireRating T30, the others no property set."""
    return build_model([{"FireRating": "T30"}, None, None])


@pytest.fixture
def walls_ifc(walls_model) -> bytes:
    return to_bytes(walls_model)


@pytest.fixture
def make_model():
    return build_model


@pytest.fixture
def make_ifc():
    """Build a model and serialize it to STEP bytes."""
    def _make(elements, **kwargs):
        return to_bytes(build_model(elements, **kwargs))
    return _make


@pytest.fixture
def make_catalog():
    return FakeCatalog


@pytest.fixture
def definitions():
    return {
        "FireRating": FIRE_RATING,
        "ThermalTransmittance": THERMAL_TRANSMITTANCE,
        "IsExternal": IS_EXTERNAL,
    }
