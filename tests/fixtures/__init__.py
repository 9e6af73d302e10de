"""Test fixtures for hashdemux.

Provides mock HTO count generators and test utilities.
"""

from .mock_counts import (
    create_hashing_counts,
    create_singlet_doublet_panel,
)

__all__ = [
    "create_hashing_counts",
    "create_singlet_doublet_panel",
]
