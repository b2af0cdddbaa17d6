"""Two-player match services: board rules, match state and the engine.

Board and match logic are pure; only the engine touches Socket.IO.
"""

from .engine import MatchEngine
from .match import DRAW, IN_PROGRESS, O, WON, X, Match

__all__ = ['MatchEngine', 'Match', 'X', 'O', 'IN_PROGRESS', 'WON', 'DRAW']
