# webswitch/app/status.py
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from webswitch.content.environments import Environment
from webswitch.content.packages import DEPLOYED_MARKER_NAME, Package, PackageRegistry, contentFingerprint
from webswitch.core.hashing import isMissing

__all__ = [
    "EnvironmentStatus",
    "packageLabel",
    "sortPackagesForDisplay",
    "environmentStatus",
    "packageStatusText",
]

BUILT_IN_SUFFIX = "  (built-in)"



def packageLabel(package: Package) -> str:
    return package.name + (BUILT_IN_SUFFIX if package.isBuiltIn else "")



def sortPackagesForDisplay(packages: Iterable[Package]) -> list[Package]:
    """Built-ins first, then by name (case-insensitive)."""
    return sorted(packages, key=lambda pkg: (not pkg.isBuiltIn, pkg.name.casefold(), pkg.name))



@dataclass(frozen=True)
class EnvironmentStatus:
    environment: Environment
    # Fingerprint of the live content path, MISSING_FINGERPRINT when there is none
    fingerprint: str
    match: Package | None = None

    @property
    def present(self) -> bool:
        return not isMissing(self.fingerprint)

    @property
    def text(self) -> str:
        if not self.present:
            return "Active fingerprint: (missing content folder)"
        text = f"Active fingerprint: {self.fingerprint}"
        if self.match is not None:
            text += f"   (matches: {self.match.name})"
        return text



def environmentStatus(
    environment: Environment,
    packages: Iterable[Package],
    *,
    markerName: str = DEPLOYED_MARKER_NAME,
) -> EnvironmentStatus:
    """
    Fingerprints the live content path and looks for the package it came from.
    Uses the same exclusions as package ingestion, so a freshly activated
    environment matches its package.
    """
    fingerprint = contentFingerprint(environment.contentPath, markerName=markerName)
    match = None if isMissing(fingerprint) else PackageRegistry.findByFingerprint(list(packages), fingerprint)
    return EnvironmentStatus(environment=environment, fingerprint=fingerprint, match=match)



def packageStatusText(package: Package | None) -> str:
    if package is None:
        return "Package fingerprint: (select package)"
    return f"Package fingerprint: {package.fingerprint}"
