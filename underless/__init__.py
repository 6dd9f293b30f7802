"""
Under or Higher: guess which of two artists has more monthly listeners.

Core game logic (matchup selection, difficulty pacing, the round state
machine and its persistence) with no rendering of its own.
"""

__version__ = "0.1.0"
