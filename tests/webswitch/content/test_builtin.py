# tests/webswitch/content/test_builtin.py
from __future__ import annotations

import pytest

from webswitch.content.builtin import BuiltInEntry, ensureBuiltInPackages, parseBuiltInEntries
from webswitch.content.packages import PackageRegistry


@pytest.fixture()
def archivesDir(tmp_path, buildZip, webContent):
    base = tmp_path / "builtin"
    buildZip(base / "MCA_Webpages_20260224.zip", {f"webserver/srm2/EN/{rel}": data for rel, data in webContent.items()})
    buildZip(base / "Broken.zip", {"docs/a.txt": "x", "more/b.txt": "y"})
    return base


def test_parseBuiltInEntries_dropsMalformed() -> None:
    entries = parseBuiltInEntries([
        {"archive": "MCA_Webpages_20260224.zip", "name": "MCA Webpages (2026-02-24)"},
        {"archive": "Plain.zip"},
        {"name": "no archive"},
        "not an object",
    ])
    assert entries == [
        BuiltInEntry(archive="MCA_Webpages_20260224.zip", name="MCA Webpages (2026-02-24)"),
        BuiltInEntry(archive="Plain.zip", name="Plain"),
    ]


def test_ensureBuiltInPackages_ingestsOnceAndSkipsProblems(tmp_path, archivesDir) -> None:
    registry = PackageRegistry(tmp_path / "Packages")
    entries = [
        BuiltInEntry(archive="Missing.zip", name="Missing"),
        BuiltInEntry(archive="Broken.zip", name="Broken"),
        BuiltInEntry(archive="MCA_Webpages_20260224.zip", name="MCA Webpages (2026-02-24)"),
    ]

    first = ensureBuiltInPackages(registry, entries, archivesDir)

    assert [pkg.name for pkg in first] == ["MCA Webpages (2026-02-24)"]
    assert first[0].isBuiltIn is True
    assert [pkg.name for pkg in registry.loadAll()] == ["MCA Webpages (2026-02-24)"]

    second = ensureBuiltInPackages(registry, entries, archivesDir)
    assert second == []


def test_ensureBuiltInPackages_forceReingests(tmp_path, archivesDir) -> None:
    registry = PackageRegistry(tmp_path / "Packages")
    entries = [BuiltInEntry(archive="MCA_Webpages_20260224.zip", name="MCA")]
    ensureBuiltInPackages(registry, entries, archivesDir)

    again = ensureBuiltInPackages(registry, entries, archivesDir, force=True)

    assert [pkg.name for pkg in again] == ["MCA"]
    assert len(registry.loadAll()) == 1
