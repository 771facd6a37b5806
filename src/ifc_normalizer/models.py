"""
Data model shared by the collector, matcher and normalizer.

Elements and property sets are read-only views of IFC entities, addressed by
their express id. Canonical definitions come from the catalog and change-log
entries are the output of the normalizer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ValueKind(Enum):
    """Primitive kind of a property's nominal value."""
    BOOLEAN = "boolean"
    REAL = "real"
    LABEL = "label"


@dataclass(frozen=True)
class Element:
    """Reference to a model element (e.g. an IfcWall) inside a document."""

    express_id: int  # STEP line number (#123)
    global_id: str  # IFC GlobalId (22 character base64)
    ifc_class: str  # e.g., IfcWall, IfcWallStandardCase
    name: str = ""


@dataclass
class Attribute:
    """A single-value property inside a property set."""

    name: str
    value: Any
    kind: ValueKind = ValueKind.LABEL
    express_id: Optional[int] = None
    group_name: Optional[str] = None


@dataclass
class AttributeGroup:
    """A property set (IfcPropertySet) attached to an element."""

    express_id: int
    global_id: str
    name: str
    attributes: list = field(default_factory=list)  # list of Attribute, document order

    def __post_init__(self):
        if self.attributes is None:
            self.attributes = []


class CanonicalDefinition(BaseModel):
    """Catalog definition of a property. Immutable once fetched."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    guid: str
    version: str = Field(default="", alias="versionNumber")
    data_type: str = Field(default="", alias="dataType")
    units: Optional[str] = None
    name: str = ""

    @field_validator("version", "data_type", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        if value is None:
            return ""
        return str(value)

    @field_validator("units", mode="before")
    @classmethod
    def _join_units(cls, value):
        # The portal returns a list of unit labels for some properties
        if isinstance(value, (list, tuple)):
            return ", ".join(str(v) for v in value) or None
        return value


class SearchHit(BaseModel):
    """One entry of a catalog property search."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    guid: str
    name: str = Field(
        default="",
        validation_alias=AliasChoices("name", "displayName", "title", "label"),
    )

    @field_validator("name", mode="before")
    @classmethod
    def _name_text(cls, value):
        return "" if value is None else str(value)


@dataclass(frozen=True)
class ChangeLogEntry:
    """One observed/proposed property value, aligned with the catalog."""

    element_id: int
    group_name: str
    attribute_name: str
    new_value: Any
    catalog_guid: str
    version: str
    data_type: str
    old_value: Any = None  # None when the property does not exist yet
    units: Optional[str] = None

    @property
    def is_new(self) -> bool:
        return self.old_value is None

    @property
    def is_changed(self) -> bool:
        return self.old_value is not None and self.old_value != self.new_value

    def to_dict(self) -> dict:
        """Flat report record; optional fields are omitted when absent."""
        record = {
            "elementId": self.element_id,
            "groupName": self.group_name,
            "attributeName": self.attribute_name,
        }
        if self.old_value is not None:
            record["oldValue"] = self.old_value
        record.update({
            "newValue": self.new_value,
            "catalogGuid": self.catalog_guid,
            "version": self.version,
            "dataType": self.data_type,
        })
        if self.units is not None:
            record["units"] = self.units
        return record
