# tests/webswitch/app/test_globals.py
from __future__ import annotations

import pytest

from webswitch.app.context import PROCESS_REGISTRY
from webswitch.app.factory import registerServices
from webswitch.app.globals import getActivationWorkflow, getDataPaths, getPackageRegistry
from webswitch.app.paths import resolveDataPaths
from webswitch.app.settings import reloadSettings
from webswitch.core.errors import ReactorScramError


@pytest.mark.parametrize("getter", [getDataPaths, getPackageRegistry, getActivationWorkflow])
def test_gettersScramBeforeWiring(getter) -> None:
    PROCESS_REGISTRY.clear()
    with pytest.raises(ReactorScramError):
        getter()


def test_registerServices_usesSettings(tmp_path, isolatedSettings) -> None:
    isolatedSettings.write_text('{ activation: { markerFileName: "deployed.zip", backupTimestampFormat: "%Y-%m-%d" } }', encoding="utf-8")
    reloadSettings()
    paths = resolveDataPaths(dataRoot=tmp_path / "data", scanRoot=tmp_path)

    registerServices(paths)

    assert getDataPaths() is paths
    assert getPackageRegistry().root == paths.packagesRoot
    assert getPackageRegistry().markerName == "deployed.zip"
    assert getActivationWorkflow().backupsRoot == paths.backupsRoot
    assert getActivationWorkflow().timestampFormat == "%Y-%m-%d"


def test_processRegistry_refusesSilentOverwrite() -> None:
    PROCESS_REGISTRY.register("thing", 1)
    with pytest.raises(ValueError):
        PROCESS_REGISTRY.register("thing", 2)
    PROCESS_REGISTRY.register("thing", 3, overwrite=True)
    assert PROCESS_REGISTRY.get("thing") == 3
