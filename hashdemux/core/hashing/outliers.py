"""Population-level doublet and confident-singlet calling.

Doublets are barcodes whose second-best HTO is far above its ambient
expectation (high LogFC2). Among the remaining barcodes, confident
singlets are those whose best HTO is not unusually close to the second
(LogFC not below the lower threshold). Both thresholds are
``median +/- nmads * MAD``, using the normal-consistent MAD.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Dict, Tuple

import numpy as np
from scipy.stats import median_abs_deviation

from .errors import DegenerateThresholdWarning, InsufficientBarcodesError

logger = logging.getLogger(__name__)


@dataclass
class OutlierThresholds:
    """Thresholds used to classify barcodes.

    Attributes
    ----------
    median_log_fc2 : float
        Median LogFC2 over all barcodes
    mad_log_fc2 : float
        MAD of LogFC2 over all barcodes
    upper_log_fc2 : float
        Barcodes with LogFC2 above this are doublets
    median_log_fc : float
        Median LogFC over non-doublet barcodes
    mad_log_fc : float
        MAD of LogFC over non-doublet barcodes
    lower_log_fc : float
        Non-doublets with LogFC above this are confident singlets
    nmads : float
        Number of MADs used
    """

    median_log_fc2: float
    mad_log_fc2: float
    upper_log_fc2: float
    median_log_fc: float
    mad_log_fc: float
    lower_log_fc: float
    nmads: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting."""
        return {
            "median_log_fc2": round(self.median_log_fc2, 6),
            "mad_log_fc2": round(self.mad_log_fc2, 6),
            "upper_log_fc2": round(self.upper_log_fc2, 6),
            "median_log_fc": round(self.median_log_fc, 6),
            "mad_log_fc": round(self.mad_log_fc, 6),
            "lower_log_fc": round(self.lower_log_fc, 6),
            "nmads": self.nmads,
        }


def robust_center_spread(values: np.ndarray, label: str) -> Tuple[float, float]:
    """Median and normal-consistent MAD of ``values``.

    Parameters
    ----------
    values : np.ndarray
        Statistic values, one per barcode
    label : str
        Statistic name for error messages and warnings

    Returns
    -------
    Tuple[float, float]
        (median, MAD)

    Raises
    ------
    InsufficientBarcodesError
        If fewer than 2 values are given
    """
    values = np.asarray(values, dtype=float)
    if values.size < 2:
        raise InsufficientBarcodesError(
            f"At least 2 barcodes are required to compute the MAD of {label}, "
            f"got {values.size}"
        )

    center = float(np.median(values))
    spread = float(median_abs_deviation(values, center=np.median, scale="normal"))
    if spread == 0:
        message = (
            f"MAD of {label} is zero; the threshold equals the median "
            f"({center:.4g}) and every deviation from it is an outlier"
        )
        logger.warning(message)
        warnings.warn(message, DegenerateThresholdWarning, stacklevel=3)
    return center, spread


class OutlierClassifier:
    """Median/MAD outlier classifier for hashing statistics.

    Parameters
    ----------
    nmads : float
        Number of MADs from the median for both thresholds

    Example
    -------
    >>> classifier = OutlierClassifier(nmads=3.0)
    >>> doublet, confident, thresholds = classifier.classify(log_fc, log_fc2)
    """

    def __init__(self, nmads: float = 3.0):
        self.nmads = float(nmads)

    def classify(
        self,
        log_fc: np.ndarray,
        log_fc2: np.ndarray,
    ) -> Tuple[np.ndarray, np.ndarray, OutlierThresholds]:
        """Flag doublets and confident singlets.

        Parameters
        ----------
        log_fc : np.ndarray
            Log2 fold change of best over second HTO, per barcode
        log_fc2 : np.ndarray
            Log2 fold change of second HTO over ambient, per barcode

        Returns
        -------
        Tuple[np.ndarray, np.ndarray, OutlierThresholds]
            (doublet mask, confident mask, thresholds)
        """
        log_fc = np.asarray(log_fc, dtype=float)
        log_fc2 = np.asarray(log_fc2, dtype=float)

        med2, mad2 = robust_center_spread(log_fc2, "LogFC2")
        upper = med2 + self.nmads * mad2
        is_doublet = log_fc2 > upper

        med1, mad1 = robust_center_spread(log_fc[~is_doublet], "LogFC of non-doublets")
        lower = med1 - self.nmads * mad1
        is_confident = (log_fc > lower) & ~is_doublet

        thresholds = OutlierThresholds(
            median_log_fc2=med2,
            mad_log_fc2=mad2,
            upper_log_fc2=upper,
            median_log_fc=med1,
            mad_log_fc=mad1,
            lower_log_fc=lower,
            nmads=self.nmads,
        )
        logger.debug(
            "Thresholds: LogFC2 > %.4f (doublet), LogFC > %.4f (confident)",
            upper,
            lower,
        )
        return is_doublet, is_confident, thresholds
