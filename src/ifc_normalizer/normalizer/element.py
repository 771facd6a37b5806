"""
Per-element normalization against the property catalog.

For each property on the profile's watch list, the normalizer reads the
current value from the profile's property set, resolves the catalog
definition and emits a ChangeLogEntry. Properties the catalog cannot resolve
are skipped.
"""

from typing import Any, Optional

import structlog

from ifc_normalizer.matching.matcher import PropertyMatcher
from ifc_normalizer.models import (
    Attribute, AttributeGroup, CanonicalDefinition, ChangeLogEntry, Element,
)
from ifc_normalizer.normalizer.collector import ElementPropertyCollector, find_group, value_kind
from ifc_normalizer.parsers.ifc_document import IFCDocument, Ref, TypedValue
from ifc_normalizer.profiles.config import NormalizationProfile, TargetProperty, ValuePolicy

logger = structlog.get_logger(__name__)


def typed_value_for(definition: CanonicalDefinition, value: Any) -> TypedValue:
    """Pick the IFC value type from the catalog data type."""
    data_type = (definition.data_type or "").lower()
    if "bool" in data_type:
        return TypedValue("IfcBoolean", bool(value))
    if any(t in data_type for t in ("number", "real", "float")):
        try:
            return TypedValue("IfcReal", float(value))
        except (TypeError, ValueError):
            pass
    return TypedValue("IfcLabel", str(value))


class ElementNormalizer:
    """Aligns the watched properties of one element with the catalog."""

    def __init__(
        self,
        document: IFCDocument,
        matcher: PropertyMatcher,
        profile: NormalizationProfile,
        collector: Optional[ElementPropertyCollector] = None
    ):
        self.document = document
        self.matcher = matcher
        self.profile = profile
        self.collector = collector or ElementPropertyCollector(document)

        # Definitions resolved during this run, keyed by property name
        self._definitions: dict[str, Optional[CanonicalDefinition]] = {}

    async def resolve(self, name: str) -> Optional[CanonicalDefinition]:
        """Resolve a definition once per run."""
        if name not in self._definitions:
            self._definitions[name] = await self.matcher.resolve_definition(name)
        return self._definitions[name]

    def choose_value(self, target: TargetProperty, old_value: Any) -> Any:
        """New value according to the profile's value policy."""
        if self.profile.value_policy == ValuePolicy.APPLY_DEFAULT or old_value is None:
            return target.default
        return old_value

    async def normalize_element(self, element: Element) -> list[ChangeLogEntry]:
        """
        Normalize one element.

        Args:
            element: Element of the profile's target class

        Returns:
            Change-log entries for the resolved watch-list properties

        Raises:
            DocumentError: If the element's relationships cannot be read
        """
        groups = self.collector.collect(element)
        group = find_group(groups, self.profile.pset_name)
        log = []

        for target in self.profile.targets:
            existing = self.matcher.find_local(group, target.name) if group else None
            old_value = existing.value if existing else None

            definition = await self.resolve(target.name)
            if definition is None:
                logger.info("property.unresolved", element_id=element.express_id,
                            property=target.name)
                continue

            new_value = self.choose_value(target, old_value)
            log.append(ChangeLogEntry(
                element_id=element.express_id,
                group_name=self.profile.pset_name,
                attribute_name=target.name,
                old_value=old_value,
                new_value=new_value,
                catalog_guid=definition.guid,
                version=definition.version,
                data_type=definition.data_type,
                units=definition.units,
            ))

            if self.profile.write_back and (existing is None or existing.value != new_value):
                group = self.write_property(element, group, target.name, definition,
                                            new_value, existing)

        return log

    def write_property(
        self,
        element: Element,
        group: Optional[AttributeGroup],
        name: str,
        definition: CanonicalDefinition,
        value: Any,
        existing: Optional[Attribute] = None
    ) -> AttributeGroup:
        """
        Write a property value into the document.

        Updates the existing property, or adds a new one to the property set,
        creating the property set and its relationship when missing.

        Returns:
            The (possibly new) property set
        """
        typed = typed_value_for(definition, value)

        if existing is not None and existing.express_id is not None:
            self.document.write_line({"id": existing.express_id, "NominalValue": typed})
            existing.value = typed.value
            existing.kind = value_kind(typed.value)
            return group

        prop_id = self.document.write_line({
            "type": "IfcPropertySingleValue",
            "Name": name,
            "NominalValue": typed,
        })

        if group is None:
            group = self._create_group(element, prop_id)
        else:
            pset = self.document.get_line(group.express_id)
            refs = [Ref(p.id()) for p in pset.HasProperties or []]
            self.document.write_line({"id": group.express_id, "HasProperties": refs + [Ref(prop_id)]})

        group.attributes.append(Attribute(
            name=name,
            value=typed.value,
            kind=value_kind(typed.value),
            express_id=prop_id,
            group_name=group.name,
        ))
        logger.debug("property.written", element_id=element.express_id, property=name)
        return group

    def _create_group(self, element: Element, first_prop_id: int) -> AttributeGroup:
        entity = self.document.get_line(element.express_id)
        owner = getattr(entity, "OwnerHistory", None)
        owner_ref = {"OwnerHistory": Ref(owner.id())} if owner is not None else {}

        global_id = self.document.new_global_id()
        pset_id = self.document.write_line({
            "type": "IfcPropertySet",
            "GlobalId": global_id,
            "Name": self.profile.pset_name,
            "HasProperties": [Ref(first_prop_id)],
            **owner_ref,
        })
        self.document.write_line({
            "type": "IfcRelDefinesByProperties",
            "GlobalId": self.document.new_global_id(),
            "RelatedObjects": [Ref(element.express_id)],
            "RelatingPropertyDefinition": Ref(pset_id),
            **owner_ref,
        })

        return AttributeGroup(
            express_id=pset_id,
            global_id=global_id,
            name=self.profile.pset_name,
        )
