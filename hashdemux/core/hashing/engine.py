"""Hashed-droplet demultiplexing engine.

Assigns each cell barcode to the sample whose HTO is most abundant
after removal of ambient contamination, and flags doublets and
confidently assigned singlets:

1. Estimate the ambient profile (per-HTO median) unless one is given
2. Discard HTOs with zero ambient abundance
3. Per barcode: scale the ambient profile, subtract it, add a pseudo-count
   and pick the best and second-best HTOs
4. Across barcodes: median/MAD thresholds on LogFC2 (doublets) and on
   LogFC of the non-doublets (confident singlets)

Step 3 is independent per barcode and can run on several joblib workers.
The input must only contain cell-containing barcodes; empty droplets
have log-fold changes driven by ambient sampling noise and distort the
outlier thresholds.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from scipy import sparse

from ...io.logging import write_run_summary
from .ambient import estimate_ambient, filter_zero_ambient
from .config import HashingConfig
from .errors import DegenerateAmbientError, InputShapeError, InsufficientBarcodesError
from .outliers import OutlierClassifier, OutlierThresholds
from .scaling import compute_scaling_factor, compute_scaling_factors
from .selection import select_top_two
from .subtraction import subtract_ambient

logger = logging.getLogger(__name__)

# Output columns, in order
STATS_COLUMNS = ["Total", "Best", "Second", "LogFC", "LogFC2", "Doublet", "Confident"]

DOUBLET_LABEL = "Doublet"
AMBIGUOUS_LABEL = "Ambiguous"


@dataclass
class BarcodeDeltas:
    """Per-barcode statistics before population-level classification.

    Indices refer to the HTOs retained after zero-ambient filtering.
    """

    best: int
    second: int
    scale: float
    pseudo: float
    fc: float
    fc2: float


def compute_barcode_deltas(
    column: np.ndarray,
    ambient: np.ndarray,
    pseudo_scale: float = 1.0,
    scale: Optional[float] = None,
) -> BarcodeDeltas:
    """Run scaling, subtraction and top-two selection for one barcode.

    Parameters
    ----------
    column : np.ndarray
        HTO counts of the barcode (retained HTOs only)
    ambient : np.ndarray
        Ambient profile with all entries > 0
    pseudo_scale : float
        Minimum pseudo-count
    scale : float, optional
        Precomputed ambient scaling factor for this barcode

    Returns
    -------
    BarcodeDeltas
        Best/second indices, scaling factor, pseudo-count, FC and FC2
    """
    if scale is None:
        scale = compute_scaling_factor(column, ambient)
    scale = float(scale)
    abundance = subtract_ambient(column, ambient, scale, pseudo_scale)
    top = select_top_two(abundance.adjusted, abundance.scaled_ambient, abundance.pseudo)
    return BarcodeDeltas(
        best=top.best,
        second=top.second,
        scale=scale,
        pseudo=abundance.pseudo,
        fc=top.fc,
        fc2=top.fc2,
    )


def _compute_block(
    block: np.ndarray,
    ambient: np.ndarray,
    pseudo_scale: float,
) -> List[BarcodeDeltas]:
    """Worker task: deltas for a contiguous block of barcodes."""
    scales = compute_scaling_factors(block, ambient)
    return [
        compute_barcode_deltas(block[:, j], ambient, pseudo_scale, scale=scales[j])
        for j in range(block.shape[1])
    ]


def _as_count_matrix(
    matrix: Any,
) -> Tuple[np.ndarray, List[str], pd.Index]:
    """Convert a supported matrix container to a dense array.

    Returns the array together with HTO names and barcode names.
    """
    hto_names: Optional[List[str]] = None
    barcodes: Optional[pd.Index] = None

    if isinstance(matrix, pd.DataFrame):
        hto_names = [str(name) for name in matrix.index]
        barcodes = matrix.columns
        values = matrix.to_numpy()
    elif sparse.issparse(matrix):
        values = matrix.toarray()
    else:
        values = np.asarray(matrix)

    if values.ndim != 2:
        raise InputShapeError(f"Count matrix must be 2-dimensional, got {values.ndim} dimensions")
    if not np.issubdtype(values.dtype, np.number):
        raise InputShapeError(f"Count matrix must be numeric, got dtype {values.dtype}")

    n_htos, n_barcodes = values.shape
    if n_htos < 2:
        raise InputShapeError(f"Count matrix must have at least 2 HTO rows, got {n_htos}")
    if not np.all(np.isfinite(values)):
        raise InputShapeError("Count matrix contains non-finite values")
    if np.any(values < 0):
        raise InputShapeError("Count matrix contains negative counts")

    if hto_names is None:
        hto_names = [f"HTO_{i + 1}" for i in range(n_htos)]
    if barcodes is None:
        barcodes = pd.RangeIndex(n_barcodes)
    return values, hto_names, barcodes


def _as_ambient(
    ambient: Any,
    hto_names: Sequence[str],
) -> np.ndarray:
    """Validate a user-supplied ambient profile.

    A ``pd.Series`` whose index holds exactly the HTO names is aligned
    to the matrix rows by name; anything else is taken positionally.
    """
    if isinstance(ambient, pd.Series):
        index = [str(name) for name in ambient.index]
        if sorted(index) == sorted(hto_names):
            ambient = pd.Series(ambient.to_numpy(), index=index).reindex(list(hto_names))
        values = ambient.to_numpy(dtype=float)
    else:
        values = np.asarray(ambient, dtype=float).ravel()

    if values.shape[0] != len(hto_names):
        raise InputShapeError(
            f"Ambient profile has {values.shape[0]} entries, "
            f"expected one per HTO ({len(hto_names)})"
        )
    if not np.all(np.isfinite(values)):
        raise InputShapeError("Ambient profile contains non-finite values")
    if np.any(values < 0):
        raise InputShapeError("Ambient profile contains negative values")
    return values


@dataclass
class DemuxResult:
    """Result of demultiplexing one HTO count matrix.

    Attributes
    ----------
    stats : pd.DataFrame
        One row per barcode with Total, Best, Second, LogFC, LogFC2,
        Doublet and Confident. Total sums the retained HTOs only. Best
        and Second are 1-based positions in the input HTO order.
    hto_names : List[str]
        Names of all input HTOs
    used_positions : np.ndarray
        0-based positions of HTOs retained after zero-ambient filtering
    ambient : np.ndarray
        Ambient profile of all input HTOs (supplied or estimated)
    ambient_estimated : bool
        Whether the ambient profile was derived from the counts
    thresholds : OutlierThresholds
        Doublet and confident-singlet thresholds
    scaling_factors : pd.Series
        Ambient scaling factor per barcode
    pseudo_counts : pd.Series
        Pseudo-count per barcode
    """

    stats: pd.DataFrame
    hto_names: List[str]
    used_positions: np.ndarray
    ambient: np.ndarray
    ambient_estimated: bool
    thresholds: OutlierThresholds
    scaling_factors: pd.Series
    pseudo_counts: pd.Series
    timing_seconds: float = 0.0
    config: Dict[str, Any] = field(default_factory=dict)

    @property
    def discarded_htos(self) -> List[str]:
        """Names of HTOs dropped for zero ambient abundance."""
        used = set(self.used_positions.tolist())
        return [name for i, name in enumerate(self.hto_names) if i not in used]

    def assignments(self) -> pd.Series:
        """Sample label per barcode.

        Confident singlets get the name of their best HTO, doublets
        ``"Doublet"`` and everything else ``"Ambiguous"``.
        """
        best_names = np.asarray(self.hto_names, dtype=object)[self.stats["Best"].to_numpy() - 1]
        labels = np.where(
            self.stats["Doublet"].to_numpy(),
            DOUBLET_LABEL,
            np.where(self.stats["Confident"].to_numpy(), best_names, AMBIGUOUS_LABEL),
        )
        return pd.Series(labels, index=self.stats.index, name="assignment")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for reporting."""
        n_doublets = int(self.stats["Doublet"].sum())
        n_confident = int(self.stats["Confident"].sum())
        n_barcodes = len(self.stats)
        return {
            "n_barcodes": n_barcodes,
            "n_htos": len(self.hto_names),
            "n_htos_used": int(len(self.used_positions)),
            "discarded_htos": self.discarded_htos,
            "ambient_estimated": self.ambient_estimated,
            "n_doublets": n_doublets,
            "n_confident": n_confident,
            "n_ambiguous": n_barcodes - n_doublets - n_confident,
            "thresholds": self.thresholds.to_dict(),
            "timing_seconds": round(self.timing_seconds, 3),
        }


class HashedDropsEngine:
    """Demultiplex cell-hashing libraries.

    Parameters
    ----------
    config : HashingConfig, optional
        Demultiplexing configuration

    Example
    -------
    >>> from hashdemux.core.hashing import HashedDropsEngine, HashingConfig
    >>> engine = HashedDropsEngine(HashingConfig(nmads=3.0))
    >>> result = engine.run(hto_counts)
    >>> result.assignments().value_counts()
    """

    def __init__(self, config: Optional[HashingConfig] = None):
        self.config = config or HashingConfig()
        self.config.validate()

    def compute_deltas(self, counts: np.ndarray, ambient: np.ndarray) -> List[BarcodeDeltas]:
        """Per-barcode deltas for every column of ``counts``, in column order.

        Parameters
        ----------
        counts : np.ndarray
            Count matrix restricted to HTOs with non-zero ambient
        ambient : np.ndarray
            Ambient profile with all entries > 0

        Returns
        -------
        List[BarcodeDeltas]
            One entry per barcode
        """
        n_barcodes = counts.shape[1]
        pseudo_scale = self.config.pseudo_scale
        n_workers = self.config.n_workers

        if n_workers == 1 or n_barcodes <= self.config.chunk_size:
            return _compute_block(counts, ambient, pseudo_scale)

        chunk = self.config.chunk_size
        logger.info(
            "Computing deltas for %d barcodes in blocks of %d with %d workers",
            n_barcodes,
            chunk,
            n_workers,
        )
        blocks = Parallel(n_jobs=n_workers, backend="loky")(
            delayed(_compute_block)(counts[:, start:start + chunk], ambient, pseudo_scale)
            for start in range(0, n_barcodes, chunk)
        )
        return [deltas for block in blocks for deltas in block]

    def run(self, matrix: Any, ambient: Any = None) -> DemuxResult:
        """Demultiplex an HTO-by-barcode count matrix.

        Parameters
        ----------
        matrix : np.ndarray, pd.DataFrame or scipy.sparse matrix
            HTO counts with HTOs in rows and called cells in columns
        ambient : array-like or pd.Series, optional
            Relative ambient abundance of each HTO. Estimated from the
            per-HTO median when omitted.

        Returns
        -------
        DemuxResult
            Per-barcode statistics and run metadata

        Raises
        ------
        InputShapeError
            If the matrix or ambient profile is malformed
        InsufficientBarcodesError
            If fewer than 2 barcodes are given
        DegenerateAmbientError
            If fewer than 2 HTOs have non-zero ambient abundance
        """
        start_time = time.time()
        counts, hto_names, barcodes = _as_count_matrix(matrix)
        n_htos, n_barcodes = counts.shape
        if n_barcodes < 2:
            raise InsufficientBarcodesError(
                f"At least 2 barcodes are required for outlier calling, got {n_barcodes}"
            )

        estimated = ambient is None
        if estimated:
            if n_htos < self.config.min_hto_warning:
                logger.warning(
                    "Estimating ambient profile from only %d HTOs; the per-HTO median "
                    "is unreliable with fewer than %d HTOs",
                    n_htos,
                    self.config.min_hto_warning,
                )
            ambient_values = estimate_ambient(counts)
        else:
            ambient_values = _as_ambient(ambient, hto_names)

        kept_counts, kept_ambient, used_positions = filter_zero_ambient(
            counts, ambient_values, hto_names
        )
        if len(used_positions) < 2:
            raise DegenerateAmbientError(
                f"Only {len(used_positions)} HTO(s) have non-zero ambient abundance; "
                "at least 2 are required"
            )
        if len(used_positions) == 2:
            logger.warning(
                "Only 2 HTOs in use; the second-best HTO defines the ambient level, "
                "so doublets cannot be detected reliably"
            )
        totals = kept_counts.sum(axis=0)

        logger.info(
            "Demultiplexing %d barcodes across %d HTOs (%d used)",
            n_barcodes,
            n_htos,
            len(used_positions),
        )
        deltas = self.compute_deltas(kept_counts.astype(float), kept_ambient)

        best = used_positions[[d.best for d in deltas]] + 1
        second = used_positions[[d.second for d in deltas]] + 1
        log_fc = np.log2([d.fc for d in deltas])
        log_fc2 = np.log2([d.fc2 for d in deltas])

        classifier = OutlierClassifier(nmads=self.config.nmads)
        is_doublet, is_confident, thresholds = classifier.classify(log_fc, log_fc2)

        stats = pd.DataFrame(
            {
                "Total": totals,
                "Best": best.astype(int),
                "Second": second.astype(int),
                "LogFC": log_fc,
                "LogFC2": log_fc2,
                "Doublet": is_doublet,
                "Confident": is_confident,
            },
            index=barcodes,
            columns=STATS_COLUMNS,
        )

        result = DemuxResult(
            stats=stats,
            hto_names=hto_names,
            used_positions=used_positions,
            ambient=ambient_values,
            ambient_estimated=estimated,
            thresholds=thresholds,
            scaling_factors=pd.Series([d.scale for d in deltas], index=barcodes, name="scale"),
            pseudo_counts=pd.Series([d.pseudo for d in deltas], index=barcodes, name="pseudo"),
            timing_seconds=time.time() - start_time,
            config=self.config.to_dict(),
        )

        summary = result.to_dict()
        logger.info(
            "Called %d doublets, %d confident singlets, %d ambiguous",
            summary["n_doublets"],
            summary["n_confident"],
            summary["n_ambiguous"],
        )
        if self.config.log_path:
            actual_path = write_run_summary(
                self.config.log_path, {"config": result.config, "summary": summary}
            )
            logger.info("Run summary written to %s", actual_path)

        return result


def classify(
    matrix: Any,
    ambient: Any = None,
    pseudo_scale: float = 1.0,
    nmads: float = 3.0,
    n_workers: int = 1,
) -> pd.DataFrame:
    """Demultiplex an HTO count matrix and return per-barcode statistics.

    Shortcut for ``HashedDropsEngine(HashingConfig(...)).run(...).stats``.

    Parameters
    ----------
    matrix : np.ndarray, pd.DataFrame or scipy.sparse matrix
        HTO counts with HTOs in rows and called cells in columns
    ambient : array-like or pd.Series, optional
        Relative ambient abundance of each HTO
    pseudo_scale : float
        Minimum pseudo-count
    nmads : float
        Number of MADs for outlier thresholds
    n_workers : int
        Number of joblib workers

    Returns
    -------
    pd.DataFrame
        One row per barcode, in input column order
    """
    config = HashingConfig(pseudo_scale=pseudo_scale, nmads=nmads, n_workers=n_workers)
    return HashedDropsEngine(config).run(matrix, ambient=ambient).stats
