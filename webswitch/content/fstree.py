# webswitch/content/fstree.py
from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

__all__ = ["copyTree", "clearDirectory"]



def copyTree(src: Path | str, dst: Path | str) -> int:
    """
    Copies the whole tree under `src` into `dst` and returns the number of files copied.

    - `dst` is created if missing and may already hold files; same-named files are overwritten.
    - Every subdirectory of `src` is recreated first, so empty directories survive the copy.
    - Any single failure propagates immediately; there is no partial-success bookkeeping.
    """
    source = Path(src)
    target = Path(dst)
    if not source.is_dir():
        raise NotADirectoryError(f"Copy source '{source}' is not a directory")

    target.mkdir(parents=True, exist_ok=True)

    walked = list(os.walk(source))
    for dirPath, dirNames, _fileNames in walked:
        rel = Path(dirPath).relative_to(source)
        for name in dirNames:
            (target / rel / name).mkdir(parents=True, exist_ok=True)

    copied = 0
    for dirPath, _dirNames, fileNames in walked:
        rel = Path(dirPath).relative_to(source)
        for name in fileNames:
            destination = target / rel / name
            # Parent may be missing if the destination tree changed under us
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(Path(dirPath) / name, destination)
            copied += 1

    logger.debug("Copied %d file(s) from '%s' to '%s'", copied, source, target)
    return copied



def clearDirectory(dirPath: Path | str) -> int:
    """
    Deletes every child of `dirPath` (recursively), leaving the directory itself empty.
    No-op when `dirPath` does not exist. Returns the number of removed top-level entries.

    Destructive: callers are expected to have taken a backup first.
    """
    root = Path(dirPath)
    if not root.is_dir():
        return 0

    removed = 0
    for child in list(root.iterdir()):
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
        removed += 1

    logger.debug("Cleared %d entr(ies) from '%s'", removed, root)
    return removed
