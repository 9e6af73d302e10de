"""Demultiplexing of cell-hashing (HTO) count matrices.

Assigns cell barcodes to samples from their HTO counts after removing
ambient HTO contamination, and flags doublets and confident singlets
by median/MAD outlier detection.

Pipeline Steps
--------------
- Ambient profile: supplied, or the per-HTO median across barcodes
- Zero-ambient filter: HTOs without ambient signal are discarded
- Scaling: per-barcode ambient scaling factor (third-largest ratio)
- Subtraction: ambient removal plus depth-scaled pseudo-count
- Selection: best and second-best HTO, LogFC and LogFC2
- Outliers: doublets (high LogFC2) and confident singlets (LogFC)

Example Usage
-------------
>>> from hashdemux.core.hashing import classify
>>> stats = classify(hto_counts, nmads=3.0)
>>> stats.loc[stats["Confident"], "Best"].value_counts()
"""

__version__ = "0.1.0"

from .config import HashingConfig

from .errors import (
    HashingError,
    InputShapeError,
    DegenerateAmbientError,
    InsufficientBarcodesError,
    DegenerateThresholdWarning,
)

from .ambient import (
    estimate_ambient,
    filter_zero_ambient,
)

from .scaling import (
    compute_scaling_factor,
    compute_scaling_factors,
)

from .subtraction import (
    AdjustedAbundance,
    subtract_ambient,
)

from .selection import (
    TopTwo,
    select_top_two,
)

from .outliers import (
    OutlierClassifier,
    OutlierThresholds,
    robust_center_spread,
)

from .engine import (
    BarcodeDeltas,
    DemuxResult,
    HashedDropsEngine,
    STATS_COLUMNS,
    classify,
    compute_barcode_deltas,
)

__all__ = [
    # Version
    "__version__",
    # Config
    "HashingConfig",
    # Errors
    "HashingError",
    "InputShapeError",
    "DegenerateAmbientError",
    "InsufficientBarcodesError",
    "DegenerateThresholdWarning",
    # Ambient
    "estimate_ambient",
    "filter_zero_ambient",
    # Scaling
    "compute_scaling_factor",
    "compute_scaling_factors",
    # Subtraction
    "AdjustedAbundance",
    "subtract_ambient",
    # Selection
    "TopTwo",
    "select_top_two",
    # Outliers
    "OutlierClassifier",
    "OutlierThresholds",
    "robust_center_spread",
    # Engine
    "BarcodeDeltas",
    "DemuxResult",
    "HashedDropsEngine",
    "STATS_COLUMNS",
    "classify",
    "compute_barcode_deltas",
]
