"""Configuration for HTO demultiplexing.

All tunable parameters can be loaded from YAML so that the same settings
can be shared between runs.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass
class HashingConfig:
    """Configuration for hashed-droplet demultiplexing.

    Attributes
    ----------
    pseudo_scale : float
        Minimum pseudo-count added to ambient-subtracted abundances.
        The effective pseudo-count is the larger of this value and the
        mean scaled ambient count of the barcode.
    nmads : float
        Number of MADs used for the doublet and confident-singlet
        thresholds. Larger values relax both calls.
    n_workers : int
        Number of joblib workers for the per-barcode computations
        (1 = sequential)
    chunk_size : int
        Barcodes per worker task when n_workers > 1
    min_hto_warning : int
        Warn if the ambient profile is derived from fewer HTOs than this
    log_path : str, optional
        If set, a timestamped log with the run summary is written here
    """

    pseudo_scale: float = 1.0
    nmads: float = 3.0
    n_workers: int = 1
    chunk_size: int = 1000
    min_hto_warning: int = 3
    log_path: Optional[str] = None

    def validate(self) -> None:
        """Raise ValueError for parameters outside their valid range."""
        if not self.pseudo_scale > 0:
            raise ValueError(f"pseudo_scale must be positive, got {self.pseudo_scale}")
        if not self.nmads >= 0:
            raise ValueError(f"nmads must be non-negative, got {self.nmads}")
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be at least 1, got {self.n_workers}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {self.chunk_size}")

    @classmethod
    def from_yaml(cls, path: Path) -> "HashingConfig":
        """Load configuration from YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        # Handle nested hashing section
        if "hashing" in data:
            data = data["hashing"] or {}

        config = cls(**data)
        config.validate()
        return config

    @classmethod
    def default(cls) -> "HashingConfig":
        """Create default configuration."""
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "pseudo_scale": self.pseudo_scale,
            "nmads": self.nmads,
            "n_workers": self.n_workers,
            "chunk_size": self.chunk_size,
            "min_hto_warning": self.min_hto_warning,
            "log_path": self.log_path,
        }
