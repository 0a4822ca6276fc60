# webswitch/core/errors.py
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from webswitch.content.activation_lifecycle import ActivationStep

__all__ = [
    "WebSwitchError",
    "ContentRootNotFoundError",
    "UnsafeArchiveError",
    "ActivationError",
    "ActivationPreconditionError",
    "ReactorScramError",
    "EXPECTED_LAYOUT_GUIDANCE",
]



EXPECTED_LAYOUT_GUIDANCE = (
    "Expected either: webserver/srm2/EN, srm2/EN, "
    "or an archive whose root already is the EN content."
)



class WebSwitchError(Exception):
    """Base class for every error WebSwitch raises on purpose."""
    pass



class ContentRootNotFoundError(WebSwitchError):
    """Raised when an ingested archive has no recognizable content root."""
    def __init__(self, archivePath: Path | str, guidance: str = EXPECTED_LAYOUT_GUIDANCE):
        self.archivePath = Path(archivePath)
        self.guidance = guidance
        super().__init__(f"Couldn't find a content root inside '{self.archivePath.name}'. {guidance}")



class UnsafeArchiveError(WebSwitchError):
    """Raised when an archive member would be extracted outside the extraction directory."""
    def __init__(self, archivePath: Path | str, member: str):
        self.archivePath = Path(archivePath)
        self.member = member
        super().__init__(f"Archive '{self.archivePath.name}' contains unsafe member path {member!r}")



class ActivationError(WebSwitchError):
    """
    A named activation step failed.

    The environment is left exactly as the failed step left it. If the failure
    happened after the wipe, the content path is empty and `backupDir` holds the
    previous content.
    """
    def __init__(self, step: ActivationStep, message: str, *, backupDir: Path | None = None):
        self.step = step
        self.backupDir = backupDir
        super().__init__(f"Activation failed at step '{step.value}': {message}")



class ActivationPreconditionError(ActivationError):
    """The workflow did not start; nothing on disk was touched."""
    pass



class ReactorScramError(Exception):
    """Raised when WebSwitch violates a core wiring invariant and hits the shutdown button."""
    pass
