"""
Kaiju Clash Services.

Store-driving game rules: dice resolution, Tokyo occupancy and yield,
the card shop, the effect queue and scenario presets.
"""

from kaiju.services.effects import EffectEngine
from kaiju.services.resolution import ResolutionSummary, resolve_dice

__all__ = ["EffectEngine", "ResolutionSummary", "resolve_dice"]
