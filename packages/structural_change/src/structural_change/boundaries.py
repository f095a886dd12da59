"""
Window boundaries for every (timescale, frame) pair.

At timescale t the half-width is w = 2**t. For frame f in a sequence of
n frames:

    left window   frames [max(f - w, 0), f)
    right window  frames [f, min(f + w, n))

Indices point into the cumulative table, whose row 0 is all zeros and
row i is the sum of the first i frames. A window sum is then
cumsum[end] - cumsum[start].

Edge flags:
    NORMAL           both windows hold w frames
    LEFT_TRUNCATED   right window full, left window cut by the sequence start
    RIGHT_TRUNCATED  left window full, right window cut by the sequence end
    BOTH_TRUNCATED   sequence too short for either full window
"""

from dataclasses import dataclass
from enum import Enum
from typing import List


class EdgeFlag(Enum):
    """Where a frame's windows sit relative to the sequence edges."""
    NORMAL = "normal"
    LEFT_TRUNCATED = "left_truncated"
    RIGHT_TRUNCATED = "right_truncated"
    BOTH_TRUNCATED = "both_truncated"


@dataclass(frozen=True)
class WindowBoundary:
    """Cumulative-table indices of one frame's left and right window."""
    left_start: int
    left_end: int
    right_start: int
    right_end: int
    edge: EdgeFlag

    @property
    def left_count(self) -> int:
        return self.left_end - self.left_start

    @property
    def right_count(self) -> int:
        return self.right_end - self.right_start


def window_width(timescale: int) -> int:
    """Half-width in frames at a timescale: 1, 2, 4, ..."""
    return 1 << timescale


def classify(frame: int, width: int, n_frames: int) -> WindowBoundary:
    """Boundary and edge flag for one frame at one half-width."""
    left_start = max(frame - width, 0)
    right_end = min(frame + width, n_frames)

    if right_end - left_start == 2 * width:
        edge = EdgeFlag.NORMAL
    elif right_end - frame == width:
        edge = EdgeFlag.LEFT_TRUNCATED
    elif frame - left_start == width:
        edge = EdgeFlag.RIGHT_TRUNCATED
    else:
        edge = EdgeFlag.BOTH_TRUNCATED

    return WindowBoundary(left_start, frame, frame, right_end, edge)


def plan_boundaries(n_frames: int, n_timescales: int) -> List[List[WindowBoundary]]:
    """
    Boundaries for all timescales and frames.

    Args:
        n_frames: Sequence length.
        n_timescales: Number of timescales (half-widths 2**0 .. 2**(T-1)).

    Returns:
        boundaries[t][f] → WindowBoundary
    """
    return [
        [classify(f, window_width(t), n_frames) for f in range(n_frames)]
        for t in range(n_timescales)
    ]
