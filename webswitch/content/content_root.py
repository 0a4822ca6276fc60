# webswitch/content/content_root.py
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

__all__ = [
    "ContentRootRule",
    "ContentRootLocator",
    "CANONICAL_NESTING",
    "SHORT_NESTING",
    "MARKER_DIRS",
    "MARKER_FILES",
    "IGNORED_ENTRIES",
    "nestedSuffixRule",
    "markerRule",
    "singleWrapperRule",
    "hasContentMarkers",
    "locateContentRoot",
]



# Fully qualified deployment shape inside an archive
CANONICAL_NESTING: tuple[str, ...] = ("webserver", "srm2", "EN")
# Shallower, still recognizable shape
SHORT_NESTING: tuple[str, ...] = ("srm2", "EN")

# A directory "looks like" content when it directly holds one of these
MARKER_DIRS: frozenset[str] = frozenset({"frames", "editor"})
MARKER_FILES: frozenset[str] = frozenset({"index.html", "browser_detect.js"})

# Archive-tool junk that never counts as content or as a wrapper folder
IGNORED_ENTRIES: frozenset[str] = frozenset({"__macosx", ".ds_store", "thumbs.db", "desktop.ini"})



# ------------------------------------------------------------------ #
# Rules
# ------------------------------------------------------------------ #

@dataclass(frozen=True)
class ContentRootRule:
    """
    One heuristic: `extract(root)` returns the content root it recognizes, or None.
    """
    name: str
    extract: Callable[[Path], Path | None]



def _isIgnored(path: Path) -> bool:
    return path.name.lower() in IGNORED_ENTRIES



def _topLevel(dirPath: Path) -> tuple[list[Path], list[Path]]:
    """(directories, files) directly under `dirPath`, junk entries dropped."""
    dirs: list[Path] = []
    files: list[Path] = []
    for child in dirPath.iterdir():
        if _isIgnored(child):
            continue
        if child.is_dir():
            dirs.append(child)
        else:
            files.append(child)
    return dirs, files



def hasContentMarkers(dirPath: Path) -> bool:
    """True if `dirPath` directly contains a marker directory or marker file (case-insensitive)."""
    dirs, files = _topLevel(dirPath)
    dirNames = {path.name.lower() for path in dirs}
    fileNames = {path.name.lower() for path in files}
    return bool(dirNames & MARKER_DIRS) or bool(fileNames & MARKER_FILES)



def _endsWithParts(path: Path, suffix: Sequence[str]) -> bool:
    parts = path.parts
    if len(parts) < len(suffix):
        return False
    tail = parts[len(parts) - len(suffix):]
    return all(left.lower() == right.lower() for left, right in zip(tail, suffix))



def _walkDirs(root: Path) -> Iterable[Path]:
    """Every directory under `root` (not `root` itself), skipping junk subtrees."""
    stack = [root]
    while stack:
        current = stack.pop()
        for child in current.iterdir():
            if _isIgnored(child) or not child.is_dir() or child.is_symlink():
                continue
            yield child
            stack.append(child)



def nestedSuffixRule(suffix: Sequence[str]) -> ContentRootRule:
    """
    Matches any directory in the subtree whose path ends with `suffix`.
    Several matches: the shallowest wins, then case-insensitive path order.
    """
    suffixParts = tuple(suffix)

    def extract(root: Path) -> Path | None:
        matches = [path for path in _walkDirs(root) if _endsWithParts(path.relative_to(root), suffixParts)]
        if not matches:
            return None
        matches.sort(key=lambda path: (len(path.relative_to(root).parts), path.relative_to(root).as_posix().upper()))
        return matches[0]

    return ContentRootRule(name="nested:" + "/".join(suffixParts), extract=extract)



def markerRule() -> ContentRootRule:
    """The archive root itself is the content root."""
    def extract(root: Path) -> Path | None:
        return root if hasContentMarkers(root) else None

    return ContentRootRule(name="markers", extract=extract)



def singleWrapperRule() -> ContentRootRule:
    """The archive root holds exactly one folder and nothing else; that folder is the content root."""
    def extract(root: Path) -> Path | None:
        dirs, files = _topLevel(root)
        if len(dirs) != 1 or files:
            return None
        wrapped = dirs[0]
        return wrapped if hasContentMarkers(wrapped) else None

    return ContentRootRule(name="singleWrapper", extract=extract)



def _defaultRules() -> list[ContentRootRule]:
    return [
        nestedSuffixRule(CANONICAL_NESTING),
        nestedSuffixRule(SHORT_NESTING),
        markerRule(),
        singleWrapperRule(),
    ]



# ------------------------------------------------------------------ #
# Locator
# ------------------------------------------------------------------ #

@dataclass
class ContentRootLocator:
    """
    Finds the deployable subtree inside an extracted archive.

    Rules are evaluated in order and the first one that recognizes something wins.
    Deep, specific nestings come before marker sniffing, because an archive built
    with the full layout may also carry marker files higher up.
    """
    rules: list[ContentRootRule] = field(default_factory=_defaultRules)

    def locate(self, extractedRoot: Path | str) -> Path | None:
        root = Path(extractedRoot)
        if not root.is_dir():
            return None
        for rule in self.rules:
            found = rule.extract(root)
            if found is not None:
                logger.debug("Content root for '%s' found by rule '%s': %s", root, rule.name, found)
                return found
        logger.debug("No content root rule matched '%s'", root)
        return None

    def withRule(self, rule: ContentRootRule, *, index: int | None = None) -> ContentRootLocator:
        """Returns a new locator with `rule` inserted at `index` (appended by default)."""
        rules = list(self.rules)
        if index is None:
            rules.append(rule)
        else:
            rules.insert(index, rule)
        return ContentRootLocator(rules=rules)



def locateContentRoot(extractedRoot: Path | str) -> Path | None:
    """Default heuristics, see ContentRootLocator."""
    return ContentRootLocator().locate(extractedRoot)
