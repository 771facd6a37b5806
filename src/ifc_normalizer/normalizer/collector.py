"""
Collects the property sets attached to an element.

Walks IsDefinedBy -> IfcRelDefinesByProperties -> RelatingPropertyDefinition
and turns each property set into an AttributeGroup. References may be entity
instances or express ids; both are resolved through the document.
"""

from typing import Optional

from ifc_normalizer.models import Attribute, AttributeGroup, Element, ValueKind
from ifc_normalizer.parsers.ifc_document import IFCDocument


def value_kind(value) -> ValueKind:
    """Primitive kind of a wrapped nominal value."""
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.REAL
    return ValueKind.LABEL


def find_group(groups: list[AttributeGroup], name: str) -> Optional[AttributeGroup]:
    """
    Find a property set by name.

    Names are not unique within a document: the first case-insensitive match
    in document order wins.
    """
    wanted = (name or "").lower()
    for group in groups:
        if group.name.lower() == wanted:
            return group
    return None


class ElementPropertyCollector:
    """Gathers property sets and their single-value properties for elements."""

    def __init__(self, document: IFCDocument):
        self.document = document

    def resolve(self, reference):
        """Resolve an express id to its entity; entities pass through."""
        if isinstance(reference, int):
            return self.document.get_line(reference)
        return reference

    def collect(self, element: Element) -> list[AttributeGroup]:
        """
        Collect the property sets attached to an element.

        Malformed property sets (no id, GlobalId or Name) are skipped.

        Args:
            element: Element reference

        Returns:
            AttributeGroups in document order

        Raises:
            DocumentError: If a referenced line does not exist
        """
        entity = self.document.get_line(element.express_id)
        groups = []

        for rel_ref in getattr(entity, "IsDefinedBy", None) or []:
            rel = self.resolve(rel_ref)
            definition_ref = getattr(rel, "RelatingPropertyDefinition", None)
            if definition_ref is None:
                # e.g. IfcRelDefinesByType in IFC2X3
                continue

            # IFC4 allows a set of property set definitions here
            if not isinstance(definition_ref, (list, tuple)):
                definition_ref = [definition_ref]

            for pset_ref in definition_ref:
                group = self._to_group(self.resolve(pset_ref))
                if group is not None:
                    groups.append(group)

        return groups

    def _to_group(self, pset) -> Optional[AttributeGroup]:
        """Convert a property set entity, None if it is malformed."""
        express_id = pset.id() if hasattr(pset, "id") else None
        global_id = getattr(pset, "GlobalId", None)
        name = getattr(pset, "Name", None)
        if not express_id or not global_id or not name:
            return None

        attributes = []
        for prop_ref in getattr(pset, "HasProperties", None) or []:
            prop = self.resolve(prop_ref)
            if not prop.is_a("IfcPropertySingleValue"):
                continue
            value = self._get_property_value(prop)
            attributes.append(Attribute(
                name=prop.Name,
                value=value,
                kind=value_kind(value),
                express_id=prop.id(),
                group_name=name,
            ))

        return AttributeGroup(
            express_id=express_id,
            global_id=global_id,
            name=name,
            attributes=attributes,
        )

    def _get_property_value(self, prop):
        """Extract value from an IfcPropertySingleValue."""
        nominal_value = prop.NominalValue
        if nominal_value is None:
            return None

        # Handle wrapped values
        if hasattr(nominal_value, "wrappedValue"):
            return nominal_value.wrappedValue

        return nominal_value
