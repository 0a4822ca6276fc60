# webswitch/content/environments.py
from __future__ import annotations

import fnmatch
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from webswitch.core.naming import safeName

logger = logging.getLogger(__name__)

__all__ = [
    "Environment",
    "DEFAULT_LAYOUTS",
    "DEFAULT_EXCLUDED_NAMES",
    "ExcludePredicate",
    "excludeByNames",
    "discoverEnvironments",
]



# Content path relative to an installation folder, most specific first
DEFAULT_LAYOUTS: tuple[tuple[str, ...], ...] = (
    ("PTC-1", "webserver", "srm2", "EN"),
    ("webserver", "srm2", "EN"),
)

# System folders that are never installations
DEFAULT_EXCLUDED_NAMES: frozenset[str] = frozenset({
    "windows", "program files", "program files (x86)", "programdata", "users",
    "$recycle.bin", "system volume information", "recovery", "perflogs",
})

ExcludePredicate = Callable[[Path], bool]



@dataclass(frozen=True)
class Environment:
    """
    A discovered installation and the directory its web content must live in.

    `contentPath` is derived and may not exist yet. It is always inside `basePath`.
    """
    basePath: Path
    contentPath: Path

    def __post_init__(self) -> None:
        if self.contentPath == self.basePath or not self.contentPath.is_relative_to(self.basePath):
            raise ValueError(f"Content path '{self.contentPath}' is not inside '{self.basePath}'")

    @property
    def relativeContentPath(self) -> Path:
        return self.contentPath.relative_to(self.basePath)

    @property
    def displayName(self) -> str:
        return f"{self.basePath}  ->  {self.relativeContentPath}"

    @property
    def backupKey(self) -> str:
        """Directory-safe identity used to group this environment's backups."""
        return safeName(self.displayName)



def excludeByNames(names: Iterable[str]) -> ExcludePredicate:
    """Exclusion predicate matching the folder name case-insensitively and exactly."""
    denied = {name.casefold() for name in names}

    def exclude(path: Path) -> bool:
        return path.name.casefold() in denied

    return exclude



def _safeIsDir(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False



def _matchLayout(basePath: Path, layouts: Sequence[Sequence[str]]) -> Path | None:
    """
    First layout whose content path exists, or whose parent (the installation
    scaffold one level up) exists so content can be deployed into it.
    """
    for layout in layouts:
        candidate = basePath.joinpath(*layout)
        if _safeIsDir(candidate) or _safeIsDir(candidate.parent):
            return candidate
    return None



def discoverEnvironments(
    rootPath: Path | str,
    *,
    exclude: ExcludePredicate | None = None,
    layouts: Sequence[Sequence[str]] = DEFAULT_LAYOUTS,
    namePattern: str | None = None,
) -> list[Environment]:
    """
    Scans the immediate subdirectories of `rootPath` for installations.

    - `exclude` drops candidates (defaults to the system-folder denylist).
    - `namePattern` (glob, case-insensitive) keeps only matching folder names.
    - A candidate becomes an Environment if one of `layouts` fits it.

    Results are sorted by basePath, case-insensitively. Failure to list
    `rootPath` itself (missing, permission denied) gives an empty list.
    """
    root = Path(rootPath)
    isExcluded = exclude or excludeByNames(DEFAULT_EXCLUDED_NAMES)
    pattern = namePattern.casefold() if namePattern else None

    try:
        children = list(root.iterdir())
    except OSError as err:
        logger.warning("Cannot scan '%s' for environments: %s", root, err)
        return []

    found: list[Environment] = []
    for child in children:
        if not _safeIsDir(child) or isExcluded(child):
            continue
        if pattern is not None and not fnmatch.fnmatchcase(child.name.casefold(), pattern):
            continue
        contentPath = _matchLayout(child, layouts)
        if contentPath is None:
            continue
        found.append(Environment(basePath=child, contentPath=contentPath))

    found.sort(key=lambda env: (str(env.basePath).upper(), str(env.basePath)))
    logger.info("Found %d environment(s) under '%s'.", len(found), root)
    return found
