"""Mock HTO count generators for testing.

Provides functions to create HTO-by-barcode count matrices with known
sample assignments and doublets, without requiring real data.
"""

from typing import Tuple

import numpy as np
import pandas as pd


def create_hashing_counts(
    n_cells: int = 1000,
    n_htos: int = 10,
    doublet_fraction: float = 0.1,
    ambient_mean: float = 50.0,
    singlet_count: int = 1000,
    doublet_count: int = 500,
    seed: int = 42,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Create a mock cell-hashing experiment.

    Every barcode gets Poisson ambient counts for all HTOs. Its true
    sample's HTO is set to ``singlet_count``; the first
    ``doublet_fraction`` of barcodes also get ``doublet_count`` for the
    next HTO.

    Parameters
    ----------
    n_cells : int
        Number of cell barcodes
    n_htos : int
        Number of HTOs
    doublet_fraction : float
        Fraction of barcodes that are doublets
    ambient_mean : float
        Poisson mean of ambient counts
    singlet_count : int
        Count of the true sample's HTO
    doublet_count : int
        Count of the second sample's HTO in doublets
    seed : int
        Random seed for reproducibility

    Returns
    -------
    Tuple[pd.DataFrame, pd.DataFrame]
        (HTO-by-barcode counts, truth table indexed by barcode with
        1-based ``sample`` and boolean ``doublet`` columns)
    """
    np.random.seed(seed)

    counts = np.random.poisson(ambient_mean, size=(n_htos, n_cells))
    true_sample = np.random.randint(0, n_htos, size=n_cells)
    counts[true_sample, np.arange(n_cells)] = singlet_count

    n_doublets = int(n_cells * doublet_fraction)
    next_sample = (true_sample[:n_doublets] + 1) % n_htos
    counts[next_sample, np.arange(n_doublets)] = doublet_count

    barcodes = pd.Index([f"BC{i:05d}-1" for i in range(n_cells)], name="barcode")
    htos = [f"HTO_{i + 1}" for i in range(n_htos)]
    matrix = pd.DataFrame(counts, index=htos, columns=barcodes)

    truth = pd.DataFrame(
        {
            "sample": true_sample + 1,
            "doublet": np.arange(n_cells) < n_doublets,
        },
        index=barcodes,
    )
    return matrix, truth


def create_singlet_doublet_panel() -> np.ndarray:
    """Create a 3-HTO panel of 32 singlets followed by one doublet.

    Singlets have a dominant first HTO and small, varying ambient counts
    on the other two; the last barcode is ``[1000, 600, 5]``.
    """
    noise_pairs = [(4, 5), (5, 5), (5, 6), (4, 6), (6, 6), (5, 4), (6, 5), (4, 4)]
    columns = []
    for i in range(32):
        low, high = noise_pairs[i % len(noise_pairs)]
        columns.append([900 + 7 * i, low, high])
    columns.append([1000, 600, 5])
    return np.array(columns, dtype=int).T
