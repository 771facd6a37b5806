"""
IFC document handle using ifcopenshell.

Wraps an in-memory IFC model and exposes the line-level operations the
normalizer needs: read a line by express id, list ids of a type, write lines
and serialize the model back to STEP text.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import ifcopenshell
import ifcopenshell.guid

from ifc_normalizer.errors import DocumentError
from ifc_normalizer.models import Element


@dataclass(frozen=True)
class Ref:
    """Reference to another line of the document by express id."""
    id: int


@dataclass(frozen=True)
class TypedValue:
    """A typed IFC value such as IfcLabel('T30') or IfcReal(0.35)."""
    ifc_type: str
    value: Any


class IFCDocument:
    """Line-oriented access to an IFC model."""

    def __init__(self, model: ifcopenshell.file, source: Optional[bytes] = None):
        self.model = model
        self.source = source
        self.modified = False

    @classmethod
    def open(cls, data: bytes) -> "IFCDocument":
        """
        Open an IFC document from its STEP bytes.

        Args:
            data: Raw content of an .ifc file

        Returns:
            IFCDocument wrapping the parsed model

        Raises:
            DocumentError: If the content cannot be parsed
        """
        if not data:
            raise DocumentError("Empty IFC document")

        try:
            # STEP physical files are 7-bit; latin-1 never fails to decode
            model = ifcopenshell.file.from_string(data.decode("latin-1"))
        except Exception as e:
            raise DocumentError(f"Error opening IFC document: {e}") from e

        return cls(model, source=data)

    @classmethod
    def open_path(cls, file_path: str | Path) -> "IFCDocument":
        """Open an IFC document from disk."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"IFC file not found: {file_path}")

        return cls.open(file_path.read_bytes())

    def close(self) -> None:
        """Release the underlying model."""
        self.model = None

    @property
    def schema(self) -> str:
        return self._require_model().schema

    def _require_model(self) -> ifcopenshell.file:
        if self.model is None:
            raise DocumentError("IFC document is closed")
        return self.model

    def get_line(self, express_id: int):
        """
        Get the entity stored at an express id.

        Raises:
            DocumentError: If no such line exists
        """
        model = self._require_model()
        try:
            return model.by_id(express_id)
        except RuntimeError as e:
            raise DocumentError(f"Line #{express_id} not found: {e}") from e

    def get_ids_of_type(self, ifc_class: str) -> list[int]:
        """Get express ids of all entities of a class (subtypes included)."""
        model = self._require_model()
        try:
            return [entity.id() for entity in model.by_type(ifc_class)]
        except RuntimeError:
            # Class not in this schema
            return []

    def get_elements_of_type(self, ifc_class: str) -> list[Element]:
        """Get element references for all entities of a class."""
        elements = []
        for express_id in self.get_ids_of_type(ifc_class):
            entity = self.get_line(express_id)
            elements.append(Element(
                express_id=express_id,
                global_id=getattr(entity, "GlobalId", None) or "",
                ifc_class=entity.is_a(),
                name=getattr(entity, "Name", None) or "",
            ))
        return elements

    def max_id(self) -> int:
        """Get the highest express id in use."""
        model = self._require_model()
        return max((entity.id() for entity in model), default=0)

    def write_line(self, record: dict) -> int:
        """
        Write a line into the document.

        A record with a "type" key creates a new entity; a record with an
        "id" key updates the attributes of an existing one. Attribute values
        may be Ref (resolved to the referenced entity), TypedValue (created
        as a typed IFC value) or lists of those.

        Args:
            record: Entity attributes plus "type" or "id"

        Returns:
            Express id of the written line
        """
        model = self._require_model()
        attributes = {
            key: self._to_ifc(value)
            for key, value in record.items()
            if key not in ("type", "id")
        }

        if "id" in record:
            entity = self.get_line(record["id"])
            try:
                for key, value in attributes.items():
                    setattr(entity, key, value)
            except (AttributeError, TypeError, ValueError) as e:
                raise DocumentError(f"Cannot update line #{record['id']}: {e}") from e
        elif "type" in record:
            try:
                entity = model.create_entity(record["type"], **attributes)
            except (RuntimeError, TypeError, ValueError) as e:
                raise DocumentError(f"Cannot create {record['type']}: {e}") from e
        else:
            raise DocumentError("Record needs either a 'type' or an 'id'")

        self.modified = True
        return entity.id()

    def _to_ifc(self, value):
        if isinstance(value, Ref):
            return self.get_line(value.id)
        if isinstance(value, TypedValue):
            return self._require_model().create_entity(value.ifc_type, value.value)
        if isinstance(value, (list, tuple)):
            return [self._to_ifc(v) for v in value]
        return value

    def new_global_id(self) -> str:
        return ifcopenshell.guid.new()

    def to_bytes(self) -> bytes:
        """
        Serialize the document.

        The original bytes are returned untouched when nothing was written.
        """
        if not self.modified and self.source is not None:
            return self.source
        return self._require_model().to_string().encode("latin-1", errors="replace")
