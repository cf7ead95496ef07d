import os

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("DATABASE_WRITE_URL", "sqlite+pysqlite:///:memory:")

from squirrel import main  # noqa: E402


class _FakeResult:
    def __init__(self, versions):
        self._versions = versions

    def fetchall(self):
        return [(v,) for v in self._versions]


class _FakeSession:
    def __init__(self, versions):
        self._versions = versions

    def execute(self, _query):
        return _FakeResult(self._versions)

    def close(self):
        pass


class _FakeScript:
    def __init__(self, heads):
        self._heads = heads

    def get_heads(self):
        return self._heads


def test_schema_preflight_noop_when_not_strict(monkeypatch):
    monkeypatch.setenv("SCHEMA_STRICT", "0")
    main._enforce_schema_head_sync_if_configured()


def test_schema_preflight_raises_on_mismatch(monkeypatch):
    monkeypatch.setenv("SCHEMA_STRICT", "1")
    monkeypatch.setattr(main, "WriteSessionLocal", lambda: _FakeSession(["a0_old"]))
    monkeypatch.setattr(main.ScriptDirectory, "from_config", lambda _cfg: _FakeScript(["a1f3c5e7b9d2"]))

    with pytest.raises(RuntimeError):
        main._enforce_schema_head_sync_if_configured()


def test_schema_preflight_passes_on_match(monkeypatch):
    monkeypatch.setenv("SCHEMA_STRICT", "true")
    monkeypatch.setattr(main, "WriteSessionLocal", lambda: _FakeSession(["a1f3c5e7b9d2"]))
    monkeypatch.setattr(main.ScriptDirectory, "from_config", lambda _cfg: _FakeScript(["a1f3c5e7b9d2"]))

    main._enforce_schema_head_sync_if_configured()


def test_real_migration_head_is_known():
    from alembic.config import Config
    from alembic.script import ScriptDirectory

    cfg = Config(str(main._ALEMBIC_INI))
    cfg.set_main_option("script_location", str(main._ALEMBIC_INI.parent / "alembic"))
    assert ScriptDirectory.from_config(cfg).get_heads() == ["a1f3c5e7b9d2"]


def test_app_mounts_inventory_routes():
    paths = {getattr(route, "path", None) for route in main.app.routes}
    assert {"/", "/health", "/items", "/issues/{item_id}"} <= paths
