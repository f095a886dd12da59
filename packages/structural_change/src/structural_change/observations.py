"""
Structural change from long-format observations.

Input is the canonical observations frame:

    cohort | signal_0 | signal_id | value

Each cohort is pivoted to one feature vector per signal_0 (one column per
signal_id), the vectors are run through StructuralChange as Feature frames
stamped with their signal_0, and the result comes back long-format:

    cohort | signal_0 | timescale | window_width | structural_change

Usage:
    from structural_change.observations import structural_change_from_observations

    df = pl.read_parquet('observations.parquet')
    sc = structural_change_from_observations(df, n_timescales=5, divergence='euclidean')
"""

from typing import List, Optional

import numpy as np
import polars as pl

from structural_change.config import CONFIG
from structural_change.divergence import resolve_divergence
from structural_change.engine import StructuralChange
from structural_change.frames import Feature, FeatureAccess


def _output_schema() -> dict:
    cols = CONFIG['observations']
    return {
        cols['cohort_column']: pl.String,
        cols['index_column']: pl.Float64,
        'timescale': pl.Int64,
        'window_width': pl.Int64,
        cols['output_column']: pl.Float64,
    }


def structural_change_from_observations(
    df: pl.DataFrame,
    n_timescales: Optional[int] = None,
    divergence=None,
    signals: Optional[List[str]] = None,
) -> pl.DataFrame:
    """
    Per-cohort structural change of the signal_id feature vector.

    Args:
        df: Long-format observations (cohort optional).
        n_timescales: Timescales to compute. None → config default.
        divergence: Name or callable. None → Jensen-Shannon.
        signals: signal_ids forming the feature vector, in this order.
            None → all signal_ids, sorted.

    Returns:
        Long-format structural change, one row per (cohort, signal_0, timescale).
    """
    cols = CONFIG['observations']
    cohort_col = cols['cohort_column']
    index_col = cols['index_column']
    signal_col = cols['signal_column']
    value_col = cols['value_column']

    missing = [c for c in (index_col, signal_col, value_col) if c not in df.columns]
    if missing:
        raise ValueError(f"observations missing required columns: {missing}")

    if cohort_col not in df.columns:
        df = df.with_columns(pl.lit("").alias(cohort_col))

    df = df.with_columns([
        pl.col(cohort_col).cast(pl.String).fill_null(""),
        pl.col(signal_col).cast(pl.String),
        pl.col(value_col).cast(pl.Float64),
    ])

    if signals is None:
        signals = sorted(df[signal_col].unique().to_list())
    else:
        signals = [str(s) for s in signals]

    engine = StructuralChange(n_timescales)
    divergence = resolve_divergence(divergence)
    access = FeatureAccess()

    parts = []
    for cohort in sorted(df[cohort_col].unique().to_list()):
        cohort_df = df.filter(
            (pl.col(cohort_col) == cohort) & pl.col(signal_col).is_in(signals)
        )
        if len(cohort_df) == 0:
            continue

        wide = (
            cohort_df
            .pivot(on=signal_col, index=index_col, values=value_col, aggregate_function='first')
            .sort(index_col)
        )
        absent = [s for s in signals if s not in wide.columns]
        if absent:
            wide = wide.with_columns([pl.lit(0.0).alias(s) for s in absent])
        wide = wide.fill_null(0.0)

        matrix = wide.select(signals).to_numpy().astype(np.float32)
        frames = [
            Feature(values=row, has_timestamp=True, timestamp=t)
            for row, t in zip(matrix, wide[index_col].to_list())
        ]

        change = engine.calculate([], frames, divergence, input_access=access)
        parts.append(_to_long(cohort, change, engine.n_timescales))

    if not parts:
        return pl.DataFrame(schema=_output_schema())

    return pl.concat(parts)


def _to_long(cohort: str, change: List[Feature], n_timescales: int) -> pl.DataFrame:
    cols = CONFIG['observations']
    n_frames = len(change)

    values = (
        np.stack([f.values for f in change])
        if n_frames else np.zeros((0, n_timescales), dtype=np.float32)
    )
    timescales = np.arange(n_timescales)

    return pl.DataFrame({
        cols['cohort_column']: [cohort] * (n_frames * n_timescales),
        cols['index_column']: np.repeat([f.timestamp for f in change], n_timescales),
        'timescale': np.tile(timescales, n_frames),
        'window_width': np.tile(1 << timescales, n_frames),
        cols['output_column']: values.ravel(),
    }).cast(_output_schema())
