"""
Data model for the relationship board.

Person and Connection are immutable snapshots of remote documents. The live
query hands out tuples of them; local state never mutates them in place.
"""

import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

_WORD_START = re.compile(r"\b\w")


def normalize_name(name: Optional[str]) -> str:
    """
    Title-case a display name: trim, lower-case, then upper-case the first
    character of every word. Returns "" for blank input.
    """
    cleaned = (name or "").strip().lower()
    return _WORD_START.sub(lambda m: m.group(0).upper(), cleaned)


def _first(row: Dict[str, Any], *keys, default=None):
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return default


@dataclass(frozen=True)
class Person:
    id: str
    name: str
    x: float = 0.0
    y: float = 0.0

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Person":
        """Build from a local JSON document or a Supabase row."""
        return cls(
            id=str(_first(row, "id", "_id")),
            name=str(_first(row, "name", default="")),
            x=float(_first(row, "positionX", "position_x", default=0.0)),
            y=float(_first(row, "positionY", "position_y", default=0.0)),
        )

    def to_row(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "positionX": self.x, "positionY": self.y}


@dataclass(frozen=True)
class Connection:
    id: str
    person_a_id: str
    person_b_id: str
    connection_type: str

    def involves(self, person_id: str) -> bool:
        return person_id in (self.person_a_id, self.person_b_id)

    def links(self, first_id: str, second_id: str) -> bool:
        """True if this connection joins the two people, in either order."""
        return (
            (self.person_a_id == first_id and self.person_b_id == second_id)
            or (self.person_a_id == second_id and self.person_b_id == first_id)
        )

    def with_type(self, connection_type: str) -> "Connection":
        return replace(self, connection_type=connection_type)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Connection":
        return cls(
            id=str(_first(row, "id", "_id")),
            person_a_id=str(_first(row, "personAId", "person_a_id")),
            person_b_id=str(_first(row, "personBId", "person_b_id")),
            connection_type=str(_first(row, "connectionType", "connection_type", default="")),
        )

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "personAId": self.person_a_id,
            "personBId": self.person_b_id,
            "connectionType": self.connection_type,
        }
