"""Tests for foundry_api.main: app factory, lifespan wiring, end-to-end flows.

The app runs its real lifespan against a temp SQLite file; only the build
shell is swapped for a fake.
"""

from __future__ import annotations

import base64

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from foundry.cicd.pipeline import DeploymentPipeline
from foundry.models import ApplicationMetadata
from foundry.plugins.lifecycle import PluginLifecycleController
from foundry_api.config import Settings
from foundry_api.database import init_db, make_engine, make_session_factory
from foundry_api.main import create_app
from foundry_api.stores import DatabasePluginRegistry
from tests.fakes import SUCCESS_LOG, FakeRunner, run

PREFIX = "/foundry/admin"
ADMIN = {"Authorization": "Basic " + base64.b64encode(b"root:toor").decode()}


@pytest.fixture
def cfg(tmp_path):
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'foundry.db'}",
        users={"root": "toor", "bob": "bobpw"},
        admin_users=["root"],
        workspace_root=tmp_path / "cicd",
    )


def _seed(cfg: Settings, *keys: str) -> None:
    async def _main():
        engine = make_engine(cfg.database_url)
        await init_db(engine)
        registry = DatabasePluginRegistry(make_session_factory(engine))
        for key in keys:
            await registry.register(ApplicationMetadata(id=key))
        await engine.dispose()
    run(_main())


@pytest.mark.unit
class TestAppCreation:

    def test_app_is_fastapi_instance(self, cfg):
        app = create_app(cfg)
        assert isinstance(app, FastAPI)
        assert app.title == "Plugin Foundry"

    def test_admin_routes_under_prefix(self, cfg):
        paths = [r.path for r in create_app(cfg).routes if hasattr(r, "path")]
        assert f"{PREFIX}/plugins" in paths
        assert f"{PREFIX}/cicd" in paths

    def test_custom_prefix(self, cfg):
        cfg.admin_prefix = "/ops"
        paths = [r.path for r in create_app(cfg).routes if hasattr(r, "path")]
        assert "/ops/plugins" in paths

    def test_lifespan_wires_services(self, cfg):
        app = create_app(cfg)
        with TestClient(app):
            assert isinstance(app.state.controller, PluginLifecycleController)
            assert isinstance(app.state.pipeline, DeploymentPipeline)
            assert app.state.pipeline.workspace_root == cfg.workspace_root


@pytest.mark.unit
class TestEndToEnd:

    def test_health(self, cfg):
        with TestClient(create_app(cfg)) as client:
            resp = client.get("/health")
            assert resp.status_code == 200
            assert resp.json()["status"] == "operational"

    def test_bundled_index(self, cfg):
        with TestClient(create_app(cfg)) as client:
            resp = client.get(PREFIX + "/")
            assert resp.status_code == 200
            assert "Plugin Foundry Admin" in resp.text

    def test_bundled_index_without_trailing_slash(self, cfg):
        with TestClient(create_app(cfg)) as client:
            resp = client.get(PREFIX, follow_redirects=False)
            assert resp.status_code == 200
            assert "Plugin Foundry Admin" in resp.text

    def test_custom_verb_is_400(self, cfg):
        with TestClient(create_app(cfg)) as client:
            resp = client.request("PROPFIND", PREFIX + "/plugins", headers=ADMIN)
            assert resp.status_code == 400
            assert resp.json()["detail"] == "Unsupported method: PROPFIND"

    def test_plugin_lifecycle(self, cfg):
        _seed(cfg, "billing-1-1.0", "billing-1-10.0", "billing-1-2.0", "reports-2-1.0")
        with TestClient(create_app(cfg)) as client:
            listing = client.get(PREFIX + "/plugins", headers=ADMIN).json()
            assert [p["pluginInfo"]["version"] for p in listing[:3]] == ["1.0", "10.0", "2.0"]

            resp = client.patch(PREFIX + "/plugins/1/10.0", headers=ADMIN, json={"enabled": False})
            assert resp.status_code == 200
            assert resp.json()["metaData"]["enabled"] is False
            assert resp.json()["metaData"]["lastUpdatedBy"] == "root"

            again = client.patch(PREFIX + "/plugins/1/10.0", headers=ADMIN, json={"enabled": False})
            assert again.status_code == 204

            assert client.delete(PREFIX + "/plugins/2/1.0", headers=ADMIN).status_code == 204
            assert client.delete(PREFIX + "/plugins/2/1.0", headers=ADMIN).status_code == 404

    def test_history_before_and_after_deploy(self, cfg):
        app = create_app(cfg)
        with TestClient(app) as client:
            resp = client.get(PREFIX + "/cicd/result")
            assert resp.status_code == 400
            assert resp.json()["detail"].startswith("Failed to fetch the deployment history")

            app.state.pipeline.runner = FakeRunner(SUCCESS_LOG)
            deploy = client.post(
                PREFIX + "/cicd", headers=ADMIN,
                json={"repoUrl": "https://git.example/p.git", "pluginId": "7"},
            )
            assert deploy.status_code == 201

            history = client.get(PREFIX + "/cicd/result").json()
            assert len(history) == 1
            assert history[0]["name"] == "myplugin"
            assert history[0]["pluginId"] == "7"
            assert not (cfg.workspace_root / "7").exists()

    def test_non_admin_cannot_deploy(self, cfg):
        bob = {"Authorization": "Basic " + base64.b64encode(b"bob:bobpw").decode()}
        with TestClient(create_app(cfg)) as client:
            resp = client.post(PREFIX + "/cicd", headers=bob, json={"repoUrl": "r", "pluginId": "7"})
            assert resp.status_code == 401
