"""
Retention sweep for generated artifacts.
Single responsibility: purge report files older than the retention window.
"""

import time
from pathlib import Path
from typing import Union

from .logger import get_logger


logger = get_logger()


def cleanup_old_artifacts(directory: Union[str, Path], max_age_hours: float = 24) -> int:
    """
    Remove files older than the retention window.

    Args:
        directory: Directory holding report artifacts
        max_age_hours: Files whose mtime is older than this are removed

    Returns:
        Number of files removed
    """
    directory = Path(directory)
    if not directory.exists():
        return 0

    cutoff_time = time.time() - (max_age_hours * 60 * 60)

    removed = 0
    for candidate in directory.iterdir():
        if not candidate.is_file():
            continue
        try:
            if candidate.stat().st_mtime < cutoff_time:
                candidate.unlink()
                removed += 1
        except FileNotFoundError:
            # Removed concurrently by another sweep
            continue

    if removed > 0:
        logger.info("housekeeping.cleanup.removed",
                   directory=str(directory),
                   removed=removed,
                   max_age_hours=max_age_hours)

    return removed
