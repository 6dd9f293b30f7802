"""
Artist catalog for the Under or Higher game.

Holds the fixed set of artists for a session and answers the two pure
queries the selection logic needs: popularity tiers and availability
filtering.
"""

import json
import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Set

from underless.catalog.artist import Artist
from underless.errors import CatalogUnavailable

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).with_name("sample_artists.json")


@dataclass(frozen=True)
class ArtistTiers:
    """Three contiguous popularity bands, most popular first."""
    high: List[Artist]
    medium: List[Artist]
    low: List[Artist]


class ArtistCatalog:
    """
    Static, read-only artist list.

    Order of construction is preserved; it is the tie-breaker for tiering.
    """

    def __init__(self, artists: Optional[Iterable[Artist]] = None):
        """
        Initialize catalog.

        Args:
            artists: Artists in catalog order. Later duplicates of a name are dropped.
        """
        self._artists: List[Artist] = []
        seen: Set[str] = set()
        for artist in artists or []:
            if artist.name in seen:
                logger.warning(f"[CATALOG] Duplicate artist name ignored: {artist.name!r}")
                continue
            seen.add(artist.name)
            self._artists.append(artist)

    @classmethod
    def from_json(cls, path) -> "ArtistCatalog":
        """
        Load a catalog from a JSON array of artist records.

        Args:
            path: Path to the JSON file

        Returns:
            ArtistCatalog

        Raises:
            CatalogUnavailable: If the file is missing or malformed
        """
        path = str(path)
        if not os.path.exists(path):
            raise CatalogUnavailable(f"Catalog file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, ValueError) as e:
            raise CatalogUnavailable(f"Catalog file unreadable: {path}: {e}") from e

        if not isinstance(records, list):
            raise CatalogUnavailable(f"Catalog must be a JSON array: {path}")

        try:
            artists = [Artist.from_record(r) for r in records]
        except ValueError as e:
            raise CatalogUnavailable(f"Catalog entry invalid in {path}: {e}") from e

        catalog = cls(artists)
        logger.info(f"[CATALOG] Loaded {len(catalog)} artists from {path}")
        return catalog

    @classmethod
    def load_default(cls) -> "ArtistCatalog":
        """Load the bundled sample catalog."""
        return cls.from_json(DEFAULT_CATALOG_PATH)

    def __len__(self) -> int:
        return len(self._artists)

    def __iter__(self):
        return iter(self._artists)

    def is_empty(self) -> bool:
        return not self._artists

    def tiers(self) -> ArtistTiers:
        """
        Split the catalog into high/medium/low popularity thirds.

        Sorted descending by popularity (stable, so ties keep catalog order),
        then cut into contiguous groups of ceil(N/3). The last group takes
        whatever remains and may be shorter or empty.

        Returns:
            ArtistTiers
        """
        ranked = sorted(self._artists, key=lambda a: a.popularity, reverse=True)
        third = math.ceil(len(ranked) / 3)
        return ArtistTiers(
            high=ranked[:third],
            medium=ranked[third:third * 2],
            low=ranked[third * 2:],
        )

    def available(self, excluded: Iterable[str], exclude: Optional[Artist] = None) -> List[Artist]:
        """
        Artists not named in `excluded` and not equal to `exclude`.

        Args:
            excluded: Names to leave out
            exclude: Optional single artist to leave out as well

        Returns:
            Matching artists in catalog order
        """
        excluded_names = set(excluded)
        if exclude is not None:
            excluded_names.add(exclude.name)
        return [a for a in self._artists if a.name not in excluded_names]
