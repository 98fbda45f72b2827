"""
Board Model - Static Ludo geometry.

Position space (relative to each color):
- 0: base (off-track)
- 1-52: shared circular track
- 53-58: the color's private home stretch
- 59: goal

The same relative number means different physical squares for different
colors. to_absolute() is the only place where a color offset is applied;
both legality checks and capture resolution go through it.
"""

from __future__ import annotations

from .state import Color


BASE = 0
TRACK_LENGTH = 52
HOME_STRETCH_START = 53
HOME_STRETCH_END = 58
GOAL = 59

PAWNS_PER_COLOR = 4
ENTER_ROLL = 6
DICE_FACES = 6

# Every color leaves base onto relative 1 and turns into its home stretch
# after relative 52, a full lap later
ENTRY_POSITION = 1
HOME_ENTRY_POSITION = TRACK_LENGTH

# Absolute square where each color enters the track
START_SQUARES: dict[Color, int] = {
    Color.RED: 1,
    Color.BLUE: 14,
    Color.GREEN: 27,
    Color.YELLOW: 40,
}

# Absolute square of each color's last track square before its home stretch
HOME_ENTRY_SQUARES: dict[Color, int] = {
    Color.RED: 52,
    Color.BLUE: 13,
    Color.GREEN: 26,
    Color.YELLOW: 39,
}

# Absolute safe squares. The set repeats every 13 squares, so a relative
# track position is safe exactly when its absolute square is.
SAFE_SQUARES: frozenset[int] = frozenset({1, 9, 14, 22, 27, 35, 40, 48})


def start_square(color: Color) -> int:
    """Absolute square of to_absolute(ENTRY_POSITION, color)."""
    return START_SQUARES[color]


def home_entry_square(color: Color) -> int:
    """Absolute square of to_absolute(HOME_ENTRY_POSITION, color)."""
    return HOME_ENTRY_SQUARES[color]


def is_safe_square(position: int) -> bool:
    """Safe squares only exist on the shared track."""
    return position in SAFE_SQUARES


def is_on_track(position: int) -> bool:
    return 1 <= position <= TRACK_LENGTH


def is_in_home_stretch(position: int) -> bool:
    return HOME_STRETCH_START <= position <= HOME_STRETCH_END


def is_valid_position(position: int) -> bool:
    return position == BASE or position == GOAL or 1 <= position <= HOME_STRETCH_END


def to_absolute(position: int, color: Color) -> int | None:
    """
    Convert a color-relative track position to an absolute square.

    Returns None for base, home stretch and goal, which are never shared.
    """
    if not is_on_track(position):
        return None
    start = START_SQUARES[color]
    return ((position - 1 + start - 1) % TRACK_LENGTH) + 1
