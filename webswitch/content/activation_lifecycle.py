# webswitch/content/activation_lifecycle.py
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from webswitch.content.activation import ActivationReport
    from webswitch.content.environments import Environment
    from webswitch.content.packages import Package

__all__ = [
    "ActivationStep",
    "ActivationListener",
]



class ActivationStep(str, Enum):
    """
    Named steps of one activation, in execution order.

    Failures are reported against the step that was running, so callers know
    how far the environment got (see ActivationError).
    """
    PRECONDITION = "precondition"       # Inputs checked, nothing touched yet
    ENSURE_TARGET = "ensureTarget"      # Content path created if missing
    BACKUP = "backup"                   # Current content copied to a timestamped backup
    WIPE = "wipe"                       # Content path emptied
    DEPLOY = "deploy"                   # Package content copied in
    STAMP = "stamp"                     # Source archive dropped in as the deployed marker



class ActivationListener:
    """
    Optional hook interface for observers of an activation.

    Implementations may override any subset of methods. All methods have
    safe no-op defaults. Exceptions raised by a listener are logged and
    never abort the activation.
    """

    def onStepStarted(self, step: ActivationStep, environment: Environment, package: Package) -> None:
        # Default: no-op
        return

    def onStepCompleted(self, step: ActivationStep, environment: Environment, package: Package) -> None:
        # Default: no-op
        return

    def onStepFailed(
        self,
        step: ActivationStep,
        environment: Environment,
        package: Package,
        error: BaseException,
    ) -> None:
        """
        Called once, for the step that failed, before ActivationError propagates.
        """
        # Default: no-op
        return

    def onActivated(self, report: ActivationReport) -> None:
        """
        Called after every step succeeded.
        """
        # Default: no-op
        return
