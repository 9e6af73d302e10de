"""Pytest configuration and shared fixtures for hashdemux tests."""

import sys
from pathlib import Path

import pytest
import numpy as np

# Add package to path
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Import mock data generators
from tests.fixtures import (
    create_hashing_counts,
    create_singlet_doublet_panel,
)


# ============================================================================
# Count Matrix Fixtures
# ============================================================================


@pytest.fixture
def hashing_experiment():
    """Mock experiment with 1000 cells, 10 HTOs and 10% doublets."""
    return create_hashing_counts(n_cells=1000, n_htos=10, doublet_fraction=0.1)


@pytest.fixture
def small_experiment():
    """Small mock experiment for quick tests."""
    return create_hashing_counts(n_cells=200, n_htos=5, doublet_fraction=0.1, seed=7)


@pytest.fixture
def singlet_doublet_panel() -> np.ndarray:
    """3-HTO panel of 32 singlets and one doublet in the last column."""
    return create_singlet_doublet_panel()


@pytest.fixture
def uniform_ambient() -> np.ndarray:
    """Uniform 3-HTO ambient profile."""
    return np.array([10.0, 10.0, 10.0])


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def sample_hashing_config(tmp_path) -> Path:
    """Create sample hashing configuration file."""
    import yaml

    config = {
        "hashing": {
            "pseudo_scale": 2.0,
            "nmads": 4.0,
            "n_workers": 1,
        },
    }

    path = tmp_path / "hashing.yaml"
    with open(path, "w") as f:
        yaml.dump(config, f)

    return path
