"""
Kaiju Clash Configuration.

Environment variables, settings, and logging configuration.
"""

from kaiju.config.settings import (
    Settings,
    buy_window_ms,
    configure_logging,
    get_settings,
    pacing_delay_ms,
)

__all__ = ["Settings", "buy_window_ms", "configure_logging", "get_settings", "pacing_delay_ms"]
