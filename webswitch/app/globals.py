# webswitch/app/globals.py
from __future__ import annotations
from typing import cast, TYPE_CHECKING

from webswitch.app.context import PROCESS_REGISTRY
from webswitch.core.errors import ReactorScramError

if TYPE_CHECKING:
    from webswitch.app.paths import DataPaths
    from webswitch.content.activation import ActivationWorkflow
    from webswitch.content.packages import PackageRegistry

__all__ = ["getDataPaths", "getPackageRegistry", "getActivationWorkflow"]



def getDataPaths() -> DataPaths:
    paths = PROCESS_REGISTRY.get("paths")
    if paths is None:
        raise ReactorScramError(
            "DataPaths is None.\n"
            "⚠️ DATA ROOT MISSING ⚠️\n"
            "WebSwitch has nowhere to keep packages or backups.\n"
            "Call createApp() before touching anything on disk."
        )
    return cast("DataPaths", paths)



def getPackageRegistry() -> PackageRegistry:
    registry = PROCESS_REGISTRY.get("packages.registry")
    if registry is None:
        raise ReactorScramError(
            "PackageRegistry is None.\n"
            "⚠️ PACKAGE REGISTRY MISSING ⚠️\n"
            "The shelf is there. The packages are not. Neither is the shelf."
        )
    return cast("PackageRegistry", registry)



def getActivationWorkflow() -> ActivationWorkflow:
    workflow = PROCESS_REGISTRY.get("activation.workflow")
    if workflow is None:
        raise ReactorScramError(
            "ActivationWorkflow is None.\n"
            "⚠️ ACTIVATION WORKFLOW MISSING ⚠️\n"
            "Nobody is holding the switch. Refusing to deploy anything."
        )
    return cast("ActivationWorkflow", workflow)
