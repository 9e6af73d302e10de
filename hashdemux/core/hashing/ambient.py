"""Ambient HTO profile estimation and filtering.

Ideally the ambient profile comes from empty droplets (e.g. the summed
HTO counts of barcodes rejected by an empty-droplet caller). When only
cell-containing barcodes are available, the per-HTO median across
barcodes is a rough proxy. This assumes at least 3 HTOs with similar
numbers of cells per sample, so that the median of each HTO is taken
over barcodes in which that HTO is only present as contamination.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


def estimate_ambient(counts: np.ndarray) -> np.ndarray:
    """Estimate the ambient profile as the per-HTO median count.

    Parameters
    ----------
    counts : np.ndarray
        HTO-by-barcode count matrix (n_htos, n_barcodes)

    Returns
    -------
    np.ndarray
        Median count of each HTO across barcodes
    """
    return np.median(np.asarray(counts, dtype=float), axis=1)


def filter_zero_ambient(
    counts: np.ndarray,
    ambient: np.ndarray,
    hto_names: Optional[Sequence[str]] = None,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Drop HTOs whose ambient abundance is exactly zero.

    The count/ambient ratio of such HTOs is undefined, so they cannot
    take part in the contamination estimate.

    Parameters
    ----------
    counts : np.ndarray
        HTO-by-barcode count matrix (n_htos, n_barcodes)
    ambient : np.ndarray
        Ambient profile, one entry per HTO
    hto_names : Sequence[str], optional
        HTO names, used for logging only

    Returns
    -------
    Tuple[np.ndarray, np.ndarray, np.ndarray]
        (kept counts, kept ambient, original row positions of kept HTOs)
    """
    ambient = np.asarray(ambient, dtype=float)
    keep = ambient != 0
    kept_positions = np.flatnonzero(keep)

    for pos in np.flatnonzero(~keep):
        label = hto_names[pos] if hto_names is not None else f"#{pos + 1}"
        logger.info("Discarding HTO %s with zero ambient abundance", label)

    return counts[keep, :], ambient[keep], kept_positions
