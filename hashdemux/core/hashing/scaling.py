"""Per-barcode ambient contamination scaling.

The ambient contamination of a barcode is modelled as ``s * ambient``.
``s`` is estimated DESeq-style from the ratios ``count / ambient``, but
using a fixed rank instead of the median: at most two HTOs are assumed
to carry cell-derived signal (a single doublet combination), so the
third-largest ratio is the largest one driven by ambient alone. With
only two HTOs the second ratio is the only candidate, and doublets
cannot be separated from contamination.

For many HTOs this discards most of the ratio distribution; the rank is
kept for robustness against doublets rather than efficiency.
"""

from __future__ import annotations

import numpy as np

from .errors import InputShapeError

# Rank (1-based, descending) of the ratio used as the scaling factor
SCALING_RANK = 3


def _scaling_rank(n_htos: int) -> int:
    if n_htos < 2:
        raise InputShapeError(
            f"At least 2 HTOs are required to estimate contamination, got {n_htos}"
        )
    return min(SCALING_RANK, n_htos)


def compute_scaling_factor(column: np.ndarray, ambient: np.ndarray) -> float:
    """Estimate the ambient scaling factor of one barcode.

    Parameters
    ----------
    column : np.ndarray
        HTO counts of the barcode
    ambient : np.ndarray
        Ambient profile with all entries > 0

    Returns
    -------
    float
        Third-largest count/ambient ratio (second-largest with 2 HTOs)
    """
    ratios = np.asarray(column, dtype=float) / ambient
    rank = _scaling_rank(ratios.shape[0])
    return float(np.sort(ratios)[::-1][rank - 1])


def compute_scaling_factors(counts: np.ndarray, ambient: np.ndarray) -> np.ndarray:
    """Column-wise form of :func:`compute_scaling_factor`.

    Parameters
    ----------
    counts : np.ndarray
        HTO-by-barcode count matrix (n_htos, n_barcodes)
    ambient : np.ndarray
        Ambient profile with all entries > 0

    Returns
    -------
    np.ndarray
        One scaling factor per barcode
    """
    ratios = np.asarray(counts, dtype=float) / np.asarray(ambient, dtype=float)[:, None]
    rank = _scaling_rank(ratios.shape[0])
    # k-th largest of n is the (n - k)-th smallest
    kth = ratios.shape[0] - rank
    return np.partition(ratios, kth, axis=0)[kth, :]
