# webswitch/core/hashing.py
from __future__ import annotations

import hashlib
from collections.abc import Iterable
from pathlib import Path

__all__ = ["MISSING_FINGERPRINT", "fingerprintTree", "isMissing", "listTreeFiles", "sha256sumFile"]

# Returned instead of a digest when the directory does not exist
MISSING_FINGERPRINT = "(missing)"

_CHUNK_SIZE = 64 * 1024



def sha256sumFile(path: str | Path) -> str:
    """Returns a SHA-256 hex digest of the file content."""
    sha = hashlib.sha256()
    with Path(path).open("rb") as file:
        for chunk in iter(lambda: file.read(_CHUNK_SIZE), b""):
            sha.update(chunk)
    return sha.hexdigest()



def _relativeKey(relPath: str) -> tuple[str, str]:
    # Case-insensitive ordinal order, ties broken by the exact path so the order stays total
    return (relPath.upper(), relPath)



def listTreeFiles(root: Path) -> list[tuple[str, Path]]:
    """
    Returns every regular file under `root` as (relativePosixPath, absolutePath),
    sorted by relative path using a case-insensitive ordinal comparison.
    """
    out: list[tuple[str, Path]] = []
    for path in root.rglob("*"):
        if path.is_file():
            out.append((path.relative_to(root).as_posix(), path))
    out.sort(key=lambda entry: _relativeKey(entry[0]))
    return out



def fingerprintTree(path: str | Path, *, exclude: Iterable[str] = ()) -> str:
    """
    Returns a SHA-256 hex digest of a directory tree built from relative paths + file bytes.

    For every file (sorted, see listTreeFiles) the hash is fed the UTF-8 relative path
    with '/' separators, then the raw file content. Empty directories do not contribute.
    Entries in `exclude` are relative paths ('/' separators) compared case-insensitively.

    A missing directory yields MISSING_FINGERPRINT instead of raising.
    """
    root = Path(path)
    if not root.is_dir():
        return MISSING_FINGERPRINT

    excluded = {str(entry).replace("\\", "/").strip("/").upper() for entry in exclude}
    sha = hashlib.sha256()

    for relPath, filePath in listTreeFiles(root):
        if relPath.upper() in excluded:
            continue
        sha.update(relPath.encode("utf-8"))
        with filePath.open("rb") as file:
            for chunk in iter(lambda: file.read(_CHUNK_SIZE), b""):
                sha.update(chunk)

    return sha.hexdigest()



def isMissing(fingerprint: str | None) -> bool:
    return fingerprint is None or fingerprint == MISSING_FINGERPRINT
