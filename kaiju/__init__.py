"""
Kaiju Clash.

Turn engine for a monster-brawl dice game: dice, Tokyo occupancy, a card
shop with a sequential effect queue, and computer opponents.
"""

__version__ = "0.1.0"
