"""
Structural Change Configuration
===============================
Defaults for the engine, the divergence registry and the edge correction.

Usage:
    from structural_change.config import CONFIG, get
    n = CONFIG['engine']['n_timescales']
    factor = get('correction.right_factor')
"""

CONFIG = {

    # =================================================================
    # Engine
    # =================================================================
    'engine': {
        'n_timescales': 6,          # half-widths 1, 2, 4, ..., 32 frames
    },

    # =================================================================
    # Divergence between left and right window means
    # =================================================================
    'divergence': {
        'default': 'jensen_shannon',
    },

    # =================================================================
    # Edge correction
    # Frames whose left (or right) window runs off the sequence get
    # factor * mean(valid divergences) so that mean/median summaries
    # over all frames stay comparable to those over valid frames.
    # =================================================================
    'correction': {
        'left_factor': -1.0,
        'right_factor': 3.0,
    },

    # =================================================================
    # Long-format observations (polars binding)
    # =================================================================
    'observations': {
        'cohort_column': 'cohort',
        'index_column': 'signal_0',
        'signal_column': 'signal_id',
        'value_column': 'value',
        'output_column': 'structural_change',
    },
}


def get(path: str, default=None):
    """
    Get a config value by dot-separated path.

    Usage:
        get('engine.n_timescales')       → 6
        get('correction.left_factor')    → -1.0
    """
    keys = path.split('.')
    val = CONFIG
    for key in keys:
        if isinstance(val, dict) and key in val:
            val = val[key]
        else:
            return default
    return val
