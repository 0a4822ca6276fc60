import sys
import zipfile
from collections.abc import Callable, Mapping
from pathlib import Path

import pytest

from webswitch.app.context import PROCESS_REGISTRY
from webswitch.app.settings import SETTINGS_ENV_VAR, loadSettings

TreeSpec = Mapping[str, "bytes | str | None"]



def pytest_configure(config: pytest.Config) -> None:
    if sys.flags.optimize:
        raise RuntimeError("Assertions are disabled (optimize > 0)")



@pytest.fixture(autouse=True)
def isolatedSettings(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory):
    """Every test reads shipped defaults plus an empty user file, never ~/.webswitch."""
    settingsFile = tmp_path_factory.mktemp("settings") / "webswitch.json5"
    settingsFile.write_text("{}", encoding="utf-8")
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(settingsFile))
    loadSettings.cache_clear()
    yield settingsFile
    loadSettings.cache_clear()
    PROCESS_REGISTRY.clear()



def _writeTree(root: Path, files: TreeSpec) -> Path:
    """
    Materializes {relativePath: content} under `root`.
    A None value or a key ending in '/' creates an empty directory.
    """
    root.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        target = root / rel
        if content is None or rel.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            content = content.encode("utf-8")
        target.write_bytes(content)
    return root



def _buildZip(zipPath: Path, files: TreeSpec) -> Path:
    zipPath.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(zipPath, "w") as zf:
        for rel, content in files.items():
            if content is None or rel.endswith("/"):
                zf.writestr(rel.rstrip("/") + "/", b"")
            else:
                zf.writestr(rel, content)
    return zipPath



@pytest.fixture()
def writeTree() -> Callable[[Path, TreeSpec], Path]:
    return _writeTree



@pytest.fixture()
def buildZip() -> Callable[[Path, TreeSpec], Path]:
    return _buildZip



@pytest.fixture()
def webContent() -> dict[str, bytes | str | None]:
    """A small but realistic EN content tree."""
    return {
        "index.html": "<html><body>EN</body></html>",
        "browser_detect.js": "detect();",
        "frames/top.html": "<frame/>",
        "editor/editor.js": "edit();",
        "img/logo.png": bytes(range(64)),
    }
