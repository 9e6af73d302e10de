"""Run summary logging for hashdemux.

Each demultiplexing run can leave a YAML summary (configuration,
call counts, thresholds) in its own log file.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Union

import yaml

PathLike = Union[str, Path]

RUN_LOGGER_NAME = "hashdemux.run"

_FORMATTER = logging.Formatter(
    fmt="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def get_timestamped_log_path(log_path: PathLike) -> Path:
    """Insert a run timestamp before the suffix of ``log_path``.

    ``hashing.log`` becomes ``hashing_20251209_080530.log``; a missing
    suffix defaults to ``.log``.
    """
    log_path = Path(log_path)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return log_path.with_name(f"{log_path.stem}_{timestamp}{log_path.suffix or '.log'}")


def log_yaml(logger: logging.Logger, record: Dict[str, Any]) -> None:
    """Log a dictionary as one YAML document terminated by ``---``."""
    yaml_text = yaml.safe_dump(record, sort_keys=False).rstrip("\n")
    logger.info("%s\n---", yaml_text)


def write_run_summary(
    log_path: PathLike,
    record: Dict[str, Any],
    timestamped: bool = True,
) -> Path:
    """Write a run summary to its own log file.

    The file handler only lives for the duration of the call, so
    consecutive runs never write into each other's files.

    Parameters
    ----------
    log_path : PathLike
        Base path of the log file
    record : dict
        Summary to serialize as YAML
    timestamped : bool
        Add a run timestamp to the file name; otherwise ``log_path`` is
        overwritten

    Returns
    -------
    Path
        File the summary was written to
    """
    path = get_timestamped_log_path(log_path) if timestamped else Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    run_logger = logging.getLogger(RUN_LOGGER_NAME)
    run_logger.setLevel(logging.INFO)
    run_logger.propagate = False
    handler = logging.FileHandler(path, mode="w", encoding="utf-8")
    handler.setFormatter(_FORMATTER)
    run_logger.addHandler(handler)
    try:
        log_yaml(run_logger, record)
    finally:
        run_logger.removeHandler(handler)
        handler.close()
    return path
