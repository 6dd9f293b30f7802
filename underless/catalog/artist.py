"""
Artist model for the Under or Higher game.

An Artist is one card: a display name (also its identity), the monthly
listener count the player is guessing about, and an opaque image reference
the presentation layer resolves.
"""

from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Artist:
    """
    Immutable catalog entry.

    Attributes:
        name: Unique identifier and display name
        popularity: Monthly listeners (non-negative integer)
        image_ref: Opaque image resource identifier
    """
    name: str
    popularity: int
    image_ref: str = ""

    def to_record(self) -> Dict[str, Any]:
        """Serialize to the catalog/storage record shape."""
        return {
            "name": self.name,
            "monthly_listeners": self.popularity,
            "img": self.image_ref,
        }

    @classmethod
    def from_record(cls, record: Any) -> "Artist":
        """
        Build an Artist from a catalog/storage record.

        Args:
            record: Mapping with name, monthly_listeners and optional img

        Returns:
            Artist instance

        Raises:
            ValueError: If the record is not a mapping or has invalid fields
        """
        if not isinstance(record, dict):
            raise ValueError(f"Artist record must be an object, got {type(record).__name__}")

        name = record.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError(f"Artist record has invalid name: {name!r}")

        listeners = record.get("monthly_listeners")
        # bool is an int subclass; reject it explicitly
        if isinstance(listeners, bool) or not isinstance(listeners, int) or listeners < 0:
            raise ValueError(f"Artist {name!r} has invalid monthly_listeners: {listeners!r}")

        image_ref = record.get("img") or ""
        if not isinstance(image_ref, str):
            raise ValueError(f"Artist {name!r} has invalid img: {image_ref!r}")

        return cls(name=name, popularity=listeners, image_ref=image_ref)
