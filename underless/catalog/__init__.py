"""
Artist catalog package for the Under or Higher game.
"""

from underless.catalog.artist import Artist
from underless.catalog.artist_catalog import ArtistCatalog, ArtistTiers

__all__ = ["Artist", "ArtistCatalog", "ArtistTiers"]
