"""
structural_change — Structural Change on Multiple Timescales
=============================================================

For a time-ordered sequence of feature vectors (chroma, timbre, any
frame descriptor), measures at dyadic timescales 1, 2, 4, ... frames how
much the window before each frame differs from the window after it.
The result is a (n_frames, n_timescales) matrix usable as a novelty or
complexity signal.

Entry points:

    structural_change.compute_structural_change(frames, n_timescales)
        Plain arrays in, float32 matrix out.

    structural_change.StructuralChange(n_timescales).calculate(out, frames, divergence)
        Frame-level API. Output frames inherit input metadata
        (Feature timestamps) through a FrameAccess.

    structural_change.observations.structural_change_from_observations(df)
        Long-format polars observations in, long-format result out.

Divergences: 'jensen_shannon' (default), 'correlation', 'euclidean',
'mahalanobis' (needs inv_cov), or any callable (a, b) -> float.

Usage:
    import numpy as np
    import structural_change

    chroma = np.abs(np.random.randn(1000, 12))
    change = structural_change.compute_structural_change(chroma, n_timescales=5)
    # → (1000, 5) float32

    summary = structural_change.summarize(change)
    # → {'mean': (5,), 'median': (5,)}
"""

__version__ = '0.1.0'

import numpy as np
from typing import Optional

from structural_change.boundaries import EdgeFlag, WindowBoundary, classify, plan_boundaries, window_width
from structural_change.config import CONFIG, get as get_config
from structural_change.divergence import (
    CorrelationDivergence,
    DIVERGENCES,
    EuclideanDivergence,
    JensenShannonDivergence,
    MahalanobisDivergence,
    get_divergence,
)
from structural_change.engine import CellState, StructuralChange, summarize
from structural_change.frames import ArrayAccess, Feature, FeatureAccess, FrameAccess, access_for


def compute_structural_change(
    frames,
    n_timescales: Optional[int] = None,
    divergence=None,
) -> np.ndarray:
    """
    Structural change of a frame matrix.

    Args:
        frames: (n_frames, n_values) array-like, one feature vector per row.
        n_timescales: Timescales to compute. None → config default.
        divergence: Name or callable. None → Jensen-Shannon.

    Returns:
        (n_frames, n_timescales) float32 array.
    """
    frames = np.asarray(frames, dtype=np.float32)
    if frames.ndim == 1:
        frames = frames.reshape(-1, 1)
    return StructuralChange(n_timescales).compute(frames, divergence, input_access=ArrayAccess())


__all__ = [
    'StructuralChange', 'CellState', 'summarize', 'compute_structural_change',
    'CorrelationDivergence', 'JensenShannonDivergence', 'MahalanobisDivergence',
    'EuclideanDivergence', 'DIVERGENCES', 'get_divergence',
    'FrameAccess', 'ArrayAccess', 'Feature', 'FeatureAccess', 'access_for',
    'EdgeFlag', 'WindowBoundary', 'classify', 'plan_boundaries', 'window_width',
    'CONFIG', 'get_config',
]
