"""Best and second-best HTO selection."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class TopTwo:
    """Top two HTOs of one barcode and their fold changes.

    Attributes
    ----------
    best : int
        0-based index of the most abundant HTO
    second : int
        0-based index of the second most abundant HTO
    fc : float
        Ratio of best to second adjusted abundance
    fc2 : float
        Ratio of second adjusted abundance to its expected ambient level
    """

    best: int
    second: int
    fc: float
    fc2: float

    @property
    def log_fc(self) -> float:
        return float(np.log2(self.fc))

    @property
    def log_fc2(self) -> float:
        return float(np.log2(self.fc2))


def select_top_two(
    adjusted: np.ndarray,
    scaled_ambient: np.ndarray,
    pseudo: float,
) -> TopTwo:
    """Pick the two most abundant HTOs after ambient correction.

    Ties are broken in favour of the lower index.

    Parameters
    ----------
    adjusted : np.ndarray
        Ambient-subtracted abundances including the pseudo-count
    scaled_ambient : np.ndarray
        Expected ambient-only count per HTO
    pseudo : float
        Pseudo-count that was added to ``adjusted``

    Returns
    -------
    TopTwo
        Best/second indices with FC and FC2
    """
    adjusted = np.asarray(adjusted, dtype=float)
    order = np.argsort(-adjusted, kind="stable")
    best, second = int(order[0]), int(order[1])

    fc = adjusted[best] / adjusted[second]
    fc2 = adjusted[second] / (scaled_ambient[second] + pseudo)
    return TopTwo(best=best, second=second, fc=float(fc), fc2=float(fc2))
