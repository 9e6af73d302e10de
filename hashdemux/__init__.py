"""hashdemux: Demultiplexing of cell-hashing (HTO) libraries.

This package provides tools for:
- Ambient-profile estimation from HTO count matrices
- Per-barcode removal of ambient HTO contamination
- Best/second-best sample assignment with log-fold changes
- Doublet and confident-singlet calling via median/MAD outliers

Example usage:
    >>> from hashdemux.core.hashing import HashedDropsEngine, HashingConfig
    >>>
    >>> engine = HashedDropsEngine(HashingConfig(nmads=3.0))
    >>> result = engine.run(hto_counts)
    >>> result.stats[["Best", "Doublet", "Confident"]]
"""

__version__ = "0.1.0"
