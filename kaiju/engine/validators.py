"""
Kaiju Clash - Input Validation Utilities

Provides validation functions for game engine inputs. All validators
either return validated data or raise descriptive ValueError exceptions.
"""

from typing import Sequence

from kaiju.engine.base import MAX_PLAYERS, MIN_PLAYERS


def validate_die_index(index: int, dice_count: int) -> int:
    """
    Validate the index of a die in the tray.

    Args:
        index: Position of the die
        dice_count: Total number of dice in the tray

    Returns:
        Validated index

    Raises:
        ValueError: If the index is not an int or out of range
    """
    if not isinstance(index, int) or isinstance(index, bool):
        raise ValueError(f"Die index must be an integer, got {type(index).__name__}.")

    if not (0 <= index < dice_count):
        raise ValueError(
            f"Die index {index} is out of range. Must be between 0 and {dice_count - 1}."
        )

    return index


def validate_player_count(count: int) -> int:
    """
    Validate number of players.

    Raises:
        ValueError: If count is not 2-6
    """
    if not isinstance(count, int):
        raise ValueError(f"Player count must be an integer, got {type(count).__name__}.")

    if not (MIN_PLAYERS <= count <= MAX_PLAYERS):
        raise ValueError(f"Player count must be {MIN_PLAYERS}-{MAX_PLAYERS}, got {count}.")

    return count


def validate_amount(amount: int, label: str = "Amount") -> int:
    """Validate a non-negative resource delta."""
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise ValueError(f"{label} must be an integer, got {type(amount).__name__}.")
    if amount < 0:
        raise ValueError(f"{label} cannot be negative, got {amount}.")
    return amount


def validate_selection(
    selected_ids: Sequence[str],
    eligible_ids: Sequence[str],
    min_count: int,
    max_count: int,
) -> tuple[str, ...]:
    """
    Validate a target selection against its request bounds.

    Args:
        selected_ids: Ids chosen by the player
        eligible_ids: Ids the request allows
        min_count: Minimum number of targets
        max_count: Maximum number of targets

    Returns:
        Selection as a tuple, duplicates removed, order preserved

    Raises:
        ValueError: If the count is out of bounds or an id is not eligible
    """
    unique = tuple(dict.fromkeys(selected_ids))

    if not (min_count <= len(unique) <= max_count):
        raise ValueError(
            f"Select between {min_count} and {max_count} targets, got {len(unique)}."
        )

    eligible = set(eligible_ids)
    for target_id in unique:
        if target_id not in eligible:
            raise ValueError(f"Target {target_id!r} is not eligible.")

    return unique
