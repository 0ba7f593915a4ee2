"""
Kaiju Clash Interface.

The Game facade plus the snapshot and intent models it speaks.
"""

from kaiju.interface.game import Game
from kaiju.interface.models import GameSnapshot, PlayerSpec, parse_intent

__all__ = ["Game", "GameSnapshot", "PlayerSpec", "parse_intent"]
