"""Tests for storage/ and config.py."""

import pytest
import yaml

from config import DEFAULT_CONFIG, ConfigManager
from storage.file_store import YAMLFileStore
from storage.kv_store import MemoryKeyValueStore, YAMLKeyValueStore


@pytest.fixture(params=["memory", "yaml"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryKeyValueStore()
    return YAMLKeyValueStore(str(tmp_path / "data" / "store.yaml"))


class TestKeyValueStore:
    async def test_get_default(self, store):
        assert await store.get("missing") is None
        assert await store.get("missing", 5) == 5

    async def test_set_get_delete(self, store):
        await store.set("greeting", {"text": "hi"})
        assert await store.get("greeting") == {"text": "hi"}
        assert await store.delete("greeting") is True
        assert await store.delete("greeting") is False

    async def test_delete_key_holding_none(self, store):
        await store.set("empty", None)
        assert await store.delete("empty") is True

    async def test_incr(self, store):
        assert await store.incr("count") == 1
        assert await store.incr("count", 4) == 5

    async def test_yaml_store_survives_restart(self, tmp_path):
        path = str(tmp_path / "store.yaml")
        await YAMLKeyValueStore(path).incr("tips", 3)
        assert await YAMLKeyValueStore(path).get("tips") == 3


class TestYAMLFileStore:
    def test_missing_file_reads_empty(self, tmp_path):
        assert YAMLFileStore(str(tmp_path / "nope.yaml")).read() == {}

    def test_write_is_atomic_rename(self, tmp_path):
        path = tmp_path / "out.yaml"
        YAMLFileStore(str(path)).write({"a": 1})
        assert yaml.safe_load(path.read_text(encoding="utf-8")) == {"a": 1}
        assert not (tmp_path / "out.yaml.tmp").exists()

    def test_failed_write_leaves_no_temp_file(self, tmp_path):
        path = tmp_path / "out.yaml"
        with pytest.raises(yaml.representer.RepresenterError):
            YAMLFileStore(str(path)).write({"bad": object()})
        assert not path.exists()
        assert not (tmp_path / "out.yaml.tmp").exists()

    def test_broken_yaml_reads_empty(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("a: [unclosed", encoding="utf-8")
        assert YAMLFileStore(str(path)).read() == {}


class TestConfigManager:
    def test_creates_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        config = ConfigManager(str(path)).load()
        assert config == DEFAULT_CONFIG
        assert path.exists()

    def test_defaults_not_shared(self, tmp_path):
        config = ConfigManager(str(tmp_path / "config.yaml")).load()
        config["keyword_responder"]["enabled"] = False
        assert DEFAULT_CONFIG["keyword_responder"]["enabled"] is True

    def test_file_values_override_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("bot:\n  id: bot-9\n", encoding="utf-8")
        mgr = ConfigManager(str(path))
        config = mgr.load()
        assert config["bot"] == {"id": "bot-9"}
        assert mgr.section("welcome")["enabled"] is True

    def test_malformed_resets_to_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n", encoding="utf-8")
        assert ConfigManager(str(path)).load() == DEFAULT_CONFIG

    def test_missing_section(self, config_mgr):
        assert config_mgr.section("nope") == {}
