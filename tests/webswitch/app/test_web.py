# tests/webswitch/app/test_web.py
from __future__ import annotations
import json

import pytest
from fastapi.testclient import TestClient

from webswitch.app import web
from webswitch.app.factory import createApp
from webswitch.app.settings import reloadSettings
from webswitch.content.packages import PackageRegistry

# ----------------------------------------
# Fixtures
# ----------------------------------------

@pytest.fixture()
def layout(tmp_path, writeTree, buildZip, webContent):
    archives = tmp_path / "shipped"
    buildZip(archives / "MCA_Webpages_20260224.zip", {f"webserver/srm2/EN/{rel}": data for rel, data in webContent.items()})
    scan = tmp_path / "scan"
    writeTree(scan, {
        "PeekVri_UK_1/PTC-1/webserver/srm2/EN/index.html": "factory page",
        "PeekVri_UK_2/webserver/srm2/": None,
        "SomethingElse/webserver/srm2/EN/index.html": "ignored by name pattern",
    })
    operatorZip = buildZip(tmp_path / "downloads" / "custom.zip", {"site/index.html": "custom", "site/frames/a.html": "a"})
    return {"archives": archives, "scan": scan, "data": tmp_path / "data", "operatorZip": operatorZip}


@pytest.fixture()
def client(layout, isolatedSettings):
    isolatedSettings.write_text(json.dumps({
        "paths": {"builtInArchivesDir": str(layout["archives"])},
        "debug": {"logToFile": False},
    }), encoding="utf-8")
    reloadSettings()
    app = createApp(dataRoot=layout["data"], scanRoot=layout["scan"])
    with TestClient(app) as testClient:
        yield testClient


def _envPath(layout, name: str) -> str:
    return str(layout["scan"] / name)

# ----------------------------------------
# Basics
# ----------------------------------------

def test_health(client) -> None:
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["ok"] is True


def test_settings_exposesMergedSettings(client, layout) -> None:
    body = client.get("/settings").json()
    assert body["paths"]["builtInArchivesDir"] == str(layout["archives"])
    assert body["activation"]["markerFileName"] == "loadweb.zip"

# ----------------------------------------
# Environments
# ----------------------------------------

def test_environments_listsMatchingInstallations(client, layout) -> None:
    body = client.get("/environments").json()

    assert [env["basePath"] for env in body["environments"]] == [_envPath(layout, "PeekVri_UK_1"), _envPath(layout, "PeekVri_UK_2")]
    assert [env["contentExists"] for env in body["environments"]] == [True, False]
    assert body["environments"][0]["label"].endswith("EN")


def test_environmentStatus_unknownAndMissing(client, layout) -> None:
    live = client.get("/environments/status", params={"basePath": _envPath(layout, "PeekVri_UK_1")}).json()
    assert live["present"] is True
    assert live["match"] is None

    fresh = client.get("/environments/status", params={"basePath": _envPath(layout, "PeekVri_UK_2")}).json()
    assert fresh["present"] is False
    assert fresh["text"] == "Active fingerprint: (missing content folder)"

    assert client.get("/environments/status", params={"basePath": "/nowhere"}).status_code == 404


def test_openEnvironment(client, layout, monkeypatch) -> None:
    opened = []
    monkeypatch.setattr(web, "openFolder", lambda path: opened.append(path) or True)

    res = client.post("/environments/open", json={"basePath": _envPath(layout, "PeekVri_UK_1")})

    assert res.status_code == 200
    assert opened == [layout["scan"] / "PeekVri_UK_1"]
    assert client.post("/environments/open", json={"basePath": "/nowhere"}).status_code == 404

# ----------------------------------------
# Packages
# ----------------------------------------

def test_startupSeedsBuiltIns(client) -> None:
    packages = client.get("/packages").json()["packages"]
    assert [(pkg["name"], pkg["label"], pkg["isBuiltIn"]) for pkg in packages] == [
        ("MCA Webpages (2026-02-24)", "MCA Webpages (2026-02-24)  (built-in)", True),
    ]


def test_addPackage_defaultsNameAndRejectsDuplicates(client, layout) -> None:
    res = client.post("/packages", json={"archivePath": str(layout["operatorZip"])})
    assert res.status_code == 200
    name = res.json()["package"]["name"]
    assert name.startswith("custom (")

    again = client.post("/packages", json={"archivePath": str(layout["operatorZip"]), "name": name})
    assert again.status_code == 409

    names = [pkg["name"] for pkg in client.get("/packages").json()["packages"]]
    assert names == ["MCA Webpages (2026-02-24)", name]


def test_addPackage_errors(client, tmp_path, buildZip) -> None:
    missing = client.post("/packages", json={"archivePath": str(tmp_path / "absent.zip"), "name": "A"})
    assert missing.status_code == 404

    noRoot = buildZip(tmp_path / "docs.zip", {"a/readme.txt": "x", "b/readme.txt": "y"})
    res = client.post("/packages", json={"archivePath": str(noRoot), "name": "Docs"})
    assert res.status_code == 422
    assert "webserver/srm2/EN" in res.json()["guidance"]

    assert client.post("/packages", json={"name": "no archive"}).status_code == 422


def test_addPackage_nameCheckAndIngestHoldIngestLock(client, layout, monkeypatch) -> None:
    seen: list[tuple[str, bool]] = []
    originalTaken = PackageRegistry.isNameTaken
    originalIngest = PackageRegistry.ingest

    def recordingTaken(self, name):
        seen.append(("isNameTaken", web._ingestLock.locked()))
        return originalTaken(self, name)

    def recordingIngest(self, name, archivePath, **kwargs):
        seen.append(("ingest", web._ingestLock.locked()))
        return originalIngest(self, name, archivePath, **kwargs)

    monkeypatch.setattr(PackageRegistry, "isNameTaken", recordingTaken)
    monkeypatch.setattr(PackageRegistry, "ingest", recordingIngest)

    res = client.post("/packages", json={"archivePath": str(layout["operatorZip"]), "name": "Locked"})

    assert res.status_code == 200
    assert seen == [("isNameTaken", True), ("ingest", True)]
    assert web._ingestLock.locked() is False


def test_verifyPackage(client) -> None:
    body = client.post("/packages/verify", json={"name": "MCA Webpages (2026-02-24)"}).json()
    assert body["ok"] is True
    assert body["expected"] == body["actual"]
    assert client.post("/packages/verify", json={"name": "nope"}).status_code == 404

# ----------------------------------------
# Activation
# ----------------------------------------

def test_activate_thenStatusMatches(client, layout) -> None:
    basePath = _envPath(layout, "PeekVri_UK_1")

    res = client.post("/activate", json={"basePath": basePath, "packageName": "MCA Webpages (2026-02-24)"})

    assert res.status_code == 200
    body = res.json()
    assert body["completedSteps"] == ["ensureTarget", "backup", "wipe", "deploy", "stamp"]
    assert body["backupDir"].startswith(str(layout["data"].resolve() / "Backups"))

    status = client.get("/environments/status", params={"basePath": basePath}).json()
    assert status["match"] == "MCA Webpages (2026-02-24)"
    assert status["text"].endswith("(matches: MCA Webpages (2026-02-24))")


def test_activate_unknownSelections(client, layout) -> None:
    assert client.post("/activate", json={"basePath": "/nowhere", "packageName": "MCA Webpages (2026-02-24)"}).status_code == 404
    assert client.post("/activate", json={"basePath": _envPath(layout, "PeekVri_UK_1"), "packageName": "nope"}).status_code == 404


def test_activate_failureReportsStep(client, layout, monkeypatch) -> None:
    def failingCopy(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("webswitch.content.fstree.copyTree", failingCopy)

    res = client.post("/activate", json={"basePath": _envPath(layout, "PeekVri_UK_2"), "packageName": "MCA Webpages (2026-02-24)"})

    assert res.status_code == 500
    assert res.json()["step"] == "deploy"
    assert res.json()["backupDir"] is None


def test_activate_whileBusyIsConflict(client, layout, monkeypatch) -> None:
    class BusyLock:
        def locked(self) -> bool:
            return True

    monkeypatch.setattr(web, "_activationLock", BusyLock())

    res = client.post("/activate", json={"basePath": _envPath(layout, "PeekVri_UK_1"), "packageName": "MCA Webpages (2026-02-24)"})

    assert res.status_code == 409
