"""Ambient subtraction and depth-scaled pseudo-counts."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class AdjustedAbundance:
    """Ambient-corrected HTO abundances of one barcode.

    Attributes
    ----------
    adjusted : np.ndarray
        ``max(0, count - scaled_ambient) + pseudo`` per HTO
    scaled_ambient : np.ndarray
        Expected ambient-only count per HTO
    pseudo : float
        Pseudo-count added to every HTO
    """

    adjusted: np.ndarray
    scaled_ambient: np.ndarray
    pseudo: float


def subtract_ambient(
    column: np.ndarray,
    ambient: np.ndarray,
    scale: float,
    pseudo_scale: float = 1.0,
) -> AdjustedAbundance:
    """Remove scaled ambient contamination and add a pseudo-count.

    The pseudo-count is the mean scaled ambient count, floored at
    ``pseudo_scale``. It grows with the capture efficiency and depth of
    the barcode, so log-fold changes of shallow libraries are not
    shrunk more than those of deep ones. If the ambient profile is
    uniform, subtraction and re-addition cancel out for HTOs above the
    ambient level.

    Parameters
    ----------
    column : np.ndarray
        HTO counts of the barcode
    ambient : np.ndarray
        Ambient profile with all entries > 0
    scale : float
        Ambient scaling factor of the barcode
    pseudo_scale : float
        Minimum pseudo-count

    Returns
    -------
    AdjustedAbundance
        Adjusted abundances, scaled ambient and pseudo-count
    """
    scaled_ambient = scale * np.asarray(ambient, dtype=float)
    adjusted = np.maximum(np.asarray(column, dtype=float) - scaled_ambient, 0.0)
    pseudo = max(float(pseudo_scale), float(np.mean(scaled_ambient)))
    return AdjustedAbundance(
        adjusted=adjusted + pseudo,
        scaled_ambient=scaled_ambient,
        pseudo=pseudo,
    )
