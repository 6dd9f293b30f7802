"""
Error taxonomy for the Under or Higher game core.

None of these escape a state transition: the state machine catches them and
degrades to a fresh round (or to IDLE when nothing can be dealt).
"""


class UnderlessError(Exception):
    """Base class for all game core errors."""


class CatalogUnavailable(UnderlessError):
    """The artist list is missing, empty or malformed."""


class PersistenceCorrupt(UnderlessError):
    """Stored round state could not be decoded."""


class NoCandidateAvailable(UnderlessError):
    """Every selection fallback came up empty."""
