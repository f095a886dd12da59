"""
Structural Change engine.

Structural change on multiple timescales (Mauch & Levy, ISMIR 2011):
for every frame and every timescale t, compare the mean feature vector
of the 2**t frames before the frame with the mean of the 2**t frames
starting at it.

    S[f, t] = divergence(mean(x[f-w:f]), mean(x[f:f+w])),  w = 2**t

Window sums come from one cumulative table, so each timescale costs
O(n_frames * n_values) regardless of w.

Edge frames, where a window runs off the sequence, get a placeholder
derived from the mean m of the timescale's valid values:

    left window cut     → -1 * m
    right window cut    →  3 * m
    both windows cut    →  0.0

This keeps mean/median summaries over all frames usable. The factors
live in CONFIG['correction'].

Usage:
    from structural_change import StructuralChange

    engine = StructuralChange(n_timescales=4)
    change = engine.compute(chroma)                 # (n_frames, 4) float32
    engine.calculate(out_frames, in_frames, 'euclidean')
"""

import logging
from enum import IntEnum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from structural_change.boundaries import EdgeFlag, plan_boundaries
from structural_change.config import CONFIG
from structural_change.divergence import DivergenceFn, resolve_divergence
from structural_change.frames import FrameAccess, access_for

logger = logging.getLogger(__name__)


class CellState(IntEnum):
    """What a change-matrix cell holds before and after correction."""
    VALUE = 0                    # genuine divergence
    NEEDS_LEFT_CORRECTION = 1    # left window cut by the sequence start
    NEEDS_RIGHT_CORRECTION = 2   # right window cut by the sequence end
    INVALID = 3                  # both windows cut, stays 0.0


_EDGE_STATE = {
    EdgeFlag.NORMAL: CellState.VALUE,
    EdgeFlag.LEFT_TRUNCATED: CellState.NEEDS_LEFT_CORRECTION,
    EdgeFlag.RIGHT_TRUNCATED: CellState.NEEDS_RIGHT_CORRECTION,
    EdgeFlag.BOTH_TRUNCATED: CellState.INVALID,
}


class StructuralChange:
    """
    Multi-timescale structural change.

    Args:
        n_timescales: Number of timescales T (output columns). Timescale t
            uses half-width 2**t. None → CONFIG['engine']['n_timescales'].
    """

    def __init__(self, n_timescales: Optional[int] = None):
        if n_timescales is None:
            n_timescales = CONFIG['engine']['n_timescales']
        n_timescales = int(n_timescales)
        if n_timescales < 0:
            raise ValueError(f"n_timescales must be >= 0, got {n_timescales}")
        self._n_timescales = n_timescales

    @property
    def n_timescales(self) -> int:
        return self._n_timescales

    def __repr__(self) -> str:
        return f"StructuralChange(n_timescales={self._n_timescales})"

    # =================================================================
    # Public API
    # =================================================================

    def calculate(
        self,
        output: List,
        input_frames: Sequence,
        divergence=None,
        *,
        input_access: Optional[FrameAccess] = None,
        output_access: Optional[FrameAccess] = None,
    ) -> List:
        """
        Fill output with one structural change frame per input frame.

        Args:
            output: Mutable list; its contents are replaced.
            input_frames: Sequence of frames of equal dimension.
            divergence: Callable (a, b) -> float, a registry name, or None
                for Jensen-Shannon.
            input_access: How to read input frames (picked from the first
                frame when None).
            output_access: How to build output frames (same as
                input_access when None).

        Returns:
            output, for chaining.
        """
        if len(input_frames) == 0:
            output[:] = []
            return output

        divergence = resolve_divergence(divergence)
        input_access = input_access or access_for(input_frames[0])
        output_access = output_access or input_access

        values, _ = self._change_matrix(input_frames, input_access, divergence)

        change_frames = []
        for i_frame, source in enumerate(input_frames):
            frame = output_access.create(self._n_timescales)
            output_access.values(frame)[:] = values[i_frame]
            output_access.copy_meta(frame, source)
            change_frames.append(frame)

        output[:] = change_frames
        return output

    def compute(
        self,
        input_frames: Sequence,
        divergence=None,
        *,
        input_access: Optional[FrameAccess] = None,
        return_states: bool = False,
    ):
        """
        Structural change as a (n_frames, n_timescales) float32 array.

        With return_states=True, also returns the int8 CellState matrix
        recorded before correction.
        """
        if len(input_frames) == 0:
            values = np.zeros((0, self._n_timescales), dtype=np.float32)
            states = np.zeros((0, self._n_timescales), dtype=np.int8)
            return (values, states) if return_states else values

        divergence = resolve_divergence(divergence)
        input_access = input_access or access_for(input_frames[0])

        values, states = self._change_matrix(input_frames, input_access, divergence)
        return (values, states) if return_states else values

    # =================================================================
    # Internals
    # =================================================================

    def _change_matrix(
        self,
        input_frames: Sequence,
        access: FrameAccess,
        divergence: DivergenceFn,
    ) -> Tuple[np.ndarray, np.ndarray]:
        data = _stack_frames(input_frames, access)
        n_frames, n_values = data.shape

        logger.debug(
            f"structural change: {n_frames} frames x {n_values} values, "
            f"{self._n_timescales} timescales"
        )

        # Row 0 is the empty prefix. float64 so long sequences keep window precision.
        cumulative = np.zeros((n_frames + 1, n_values), dtype=np.float64)
        np.cumsum(data, axis=0, dtype=np.float64, out=cumulative[1:])

        boundaries = plan_boundaries(n_frames, self._n_timescales)

        values = np.zeros((n_frames, self._n_timescales), dtype=np.float32)
        states = np.full((n_frames, self._n_timescales), CellState.INVALID, dtype=np.int8)

        for i_timescale, row in enumerate(boundaries):
            total = np.float32(0.0)
            n_valid = 0

            for i_frame, b in enumerate(row):
                states[i_frame, i_timescale] = _EDGE_STATE[b.edge]
                if b.edge is not EdgeFlag.NORMAL:
                    continue

                mean_left = ((cumulative[b.left_end] - cumulative[b.left_start])
                             / b.left_count).astype(np.float32)
                mean_right = ((cumulative[b.right_end] - cumulative[b.right_start])
                              / b.right_count).astype(np.float32)

                value = np.float32(divergence(mean_left, mean_right))
                values[i_frame, i_timescale] = value
                total += value
                n_valid += 1

            mean_div = total / np.float32(n_valid) if n_valid > 0 else np.float32(0.0)
            _correct_edges(values[:, i_timescale], states[:, i_timescale], mean_div)

        return values, states


def _stack_frames(input_frames: Sequence, access: FrameAccess) -> np.ndarray:
    """(n_frames, n_values) float32 copy of the frames' values."""
    n_values = len(access.values(input_frames[0]))
    data = np.empty((len(input_frames), n_values), dtype=np.float32)

    for i_frame, frame in enumerate(input_frames):
        v = access.values(frame)
        if len(v) != n_values:
            raise ValueError(
                f"frame {i_frame} has {len(v)} values, expected {n_values} (from frame 0)"
            )
        data[i_frame] = v

    return data


def _correct_edges(column: np.ndarray, states: np.ndarray, mean_div: np.float32) -> None:
    """Replace edge placeholders in one timescale column, in place."""
    left_factor = np.float32(CONFIG['correction']['left_factor'])
    right_factor = np.float32(CONFIG['correction']['right_factor'])

    column[states == CellState.NEEDS_RIGHT_CORRECTION] = right_factor * mean_div
    column[states == CellState.NEEDS_LEFT_CORRECTION] = left_factor * mean_div


def summarize(
    change,
    access: Optional[FrameAccess] = None,
) -> Dict[str, np.ndarray]:
    """
    Per-timescale mean and median over all frames.

    These are the whole-sequence summaries the edge correction is tuned
    for.

    Args:
        change: (n_frames, n_timescales) array, or a list of output frames
            (read through access, or the access picked from the first frame).

    Returns:
        {'mean': (T,) float64, 'median': (T,) float64}; NaN for no frames.
    """
    if isinstance(change, np.ndarray):
        matrix = np.asarray(change, dtype=np.float64)
    elif len(change) == 0:
        matrix = np.zeros((0, 0))
    else:
        access = access or access_for(change[0])
        matrix = _stack_frames(change, access).astype(np.float64)

    if matrix.shape[0] == 0:
        n_timescales = matrix.shape[1] if matrix.ndim == 2 else 0
        return {
            'mean': np.full(n_timescales, np.nan),
            'median': np.full(n_timescales, np.nan),
        }

    return {
        'mean': matrix.mean(axis=0),
        'median': np.median(matrix, axis=0),
    }
