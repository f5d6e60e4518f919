"""
Directory walking for scans.

Walks are deterministic (directory and file names sorted) so progress
events follow the same visitation order on every run. Cancellation is
polled at every walk entry; unreadable directories are logged and skipped.
"""

import logging
import os
from pathlib import Path
from typing import Callable, Iterator, Optional

from ..exceptions import PathAccessError, ScanCancelledError
from .constants import is_scannable

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]


def _check_cancelled(should_cancel: Optional[CancelCheck]) -> None:
    if should_cancel is not None and should_cancel():
        raise ScanCancelledError()


def _log_walk_error(error: OSError) -> None:
    err = PathAccessError(
        f"Cannot read directory: {error.strerror or error}",
        path=error.filename,
    )
    logger.warning(str(err))


def iter_scannable_files(
    root: str | Path,
    should_cancel: Optional[CancelCheck] = None,
) -> Iterator[Path]:
    """
    Yield every supported file under root, in sorted visitation order.

    A root that is itself a file is yielded directly when its extension is
    supported.

    Raises:
        ScanCancelledError: should_cancel returned True at a walk entry
    """
    root = Path(root)
    _check_cancelled(should_cancel)

    if root.is_file():
        if is_scannable(root):
            yield root
        return

    for dirpath, dirnames, filenames in os.walk(root, onerror=_log_walk_error):
        _check_cancelled(should_cancel)
        dirnames.sort()
        for name in sorted(filenames):
            _check_cancelled(should_cancel)
            if is_scannable(name):
                yield Path(dirpath) / name


def count_scannable_files(
    root: str | Path,
    should_cancel: Optional[CancelCheck] = None,
) -> int:
    """
    Count supported files under root.

    A missing root counts as zero (logged), matching how the analysis phase
    treats it.
    """
    root = Path(root)
    if not root.exists():
        logger.warning(f"Scan path does not exist: {root}")
        return 0
    return sum(1 for _ in iter_scannable_files(root, should_cancel))
