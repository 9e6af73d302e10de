"""I/O utilities for hashdemux.

Provides run summary logging for demultiplexing runs.
"""

from .logging import get_timestamped_log_path, log_yaml, write_run_summary

__all__ = [
    "get_timestamped_log_path",
    "log_yaml",
    "write_run_summary",
]
