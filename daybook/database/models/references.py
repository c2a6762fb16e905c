"""
Child References
-----------------

Typed references stored inside ordered collections.

Classes:
    - ChildRef: Immutable (kind, id) pair naming one referenced entity
    - ReferenceList: Column type persisting a list of ChildRef as JSON text

A list of references is persisted as an ordered JSON array of single-key
maps, e.g. [{"Item": 123}, {"Link": 5}].
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

# --- Third party ---
from sqlalchemy import Text
from sqlalchemy.types import TypeDecorator

# --- Local imports ---
from .enums import EntityKind


@dataclass(frozen=True)
class ChildRef:
    """
    Reference to one child entity of a collection.

    Attributes:
        kind: Entity kind of the referenced record
        id: Primary key of the referenced record
    """

    kind: EntityKind
    id: int

    def __post_init__(self) -> None:
        if not isinstance(self.kind, EntityKind):
            object.__setattr__(self, "kind", EntityKind(self.kind))
        object.__setattr__(self, "id", int(self.id))

    def __repr__(self) -> str:
        return f"<ChildRef({self.kind.value}:{self.id})>"

    def to_dict(self) -> Dict[str, int]:
        """Serialize as a single-key map ({"Item": 12})."""
        return {self.kind.value: self.id}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChildRef":
        """
        Build a reference from its single-key map.

        Raises:
            ValueError: If the map does not have exactly one known key
        """
        if not isinstance(data, dict) or len(data) != 1:
            raise ValueError(f"Invalid child reference: {data!r}")
        ((kind, ref_id),) = data.items()
        return cls(EntityKind(kind), ref_id)

    @classmethod
    def coerce(cls, value: Union["ChildRef", Dict[str, Any], Any]) -> "ChildRef":
        """
        Accept a ChildRef, a single-key map or a referenceable model.

        Raises:
            TypeError: If the value cannot be turned into a reference
        """
        if isinstance(value, ChildRef):
            return value
        if isinstance(value, dict):
            return cls.from_dict(value)
        reference = getattr(value, "reference", None)
        if isinstance(reference, ChildRef):
            return reference
        raise TypeError(f"Cannot build a child reference from {type(value).__name__}")

    def pattern(self) -> str:
        """Serialized form as it appears inside a stored reference list."""
        return json.dumps(self.to_dict())


def dump_refs(refs: Iterable[ChildRef]) -> List[Dict[str, int]]:
    """Serialize references to their persisted map form."""
    return [ref.to_dict() for ref in refs]


def load_refs(data: Optional[Iterable[Dict[str, Any]]]) -> List[ChildRef]:
    """Parse persisted reference maps."""
    return [ChildRef.from_dict(entry) for entry in data or []]


class ReferenceList(TypeDecorator):
    """
    Text column holding an ordered list of ChildRef as a JSON array.

    The stored text is compact-but-spaced `json.dumps` output so that a
    single reference can be located with a LIKE pattern (see
    ChildRef.pattern).
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[List[ChildRef]], dialect) -> str:
        return json.dumps(dump_refs(value or []))

    def process_result_value(self, value: Optional[str], dialect) -> List[ChildRef]:
        if not value:
            return []
        return load_refs(json.loads(value))
