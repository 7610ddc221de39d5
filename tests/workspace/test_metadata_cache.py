"""
Tests for cfgpropsls/workspace/metadata_cache.py

Metadata JSON files are written under tmp_path in a META-INF directory, the
way build tools lay them out.
"""
from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import Mock

import pytest
import pytest_asyncio

from cfgpropsls.utils.find_files import METADATA_FILE_NAMES
from cfgpropsls.workspace import WorkspaceCache
from cfgpropsls.workspace.metadata_cache import DeprecationLevel, ValueHint, ValueProvider

METADATA = {
    "groups": [{"name": "server", "type": "org.example.ServerProperties"}],
    "properties": [
        {
            "name": "server.port",
            "type": "java.lang.Integer",
            "description": "Server HTTP port.",
            "defaultValue": 8080,
            "sourceType": "org.example.ServerProperties",
        },
        {"name": "server.ssl.enabled", "type": "java.lang.Boolean"},
        {
            "name": "server.legacy-port",
            "type": "java.lang.Integer",
            "deprecated": True,
        },
        {
            "name": "server.removed-port",
            "type": "java.lang.Integer",
            "deprecation": {
                "level": "error",
                "reason": "Gone",
                "replacement": "server.port",
            },
        },
        {
            "name": "logging.level",
            "type": "java.util.Map<java.lang.String,org.springframework.boot.logging.LogLevel>",
        },
    ],
    "hints": [
        {
            "name": "logging.level.keys",
            "values": [{"value": "root", "description": "Root logger"}],
            "providers": [{"name": "logger-name"}],
        },
        {
            "name": "server.port",
            "values": [{"value": 8080}, {"value": 8443}],
            "providers": [{"name": "any", "parameters": {"x": 1}}],
        },
        {"name": "unknown.property", "values": [{"value": "ignored"}]},
    ],
}

ADDITIONAL = {
    "properties": [
        {"name": "app.mode", "type": "com.example.Mode"},
        {"name": "server.port", "type": "java.lang.Long"},
    ],
    "hints": [{"name": "app.mode.values", "values": [{"value": "custom"}]}],
}


def write_metadata(root: Path, data: dict, name: str = "spring-configuration-metadata.json") -> Path:
    path = root / "target" / "classes" / "META-INF" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    write_metadata(tmp_path, METADATA)
    write_metadata(tmp_path, ADDITIONAL, "additional-spring-configuration-metadata.json")
    return tmp_path


@pytest_asyncio.fixture
async def metadata(project):
    cache = WorkspaceCache(project)
    cache.enable_disk_cache = False
    await cache.initialize()
    return cache.caches["metadata"]


class TestParsing:
    @pytest.mark.asyncio
    async def test_properties_loaded_in_catalog_order(self, metadata):
        assert list(metadata.get_all()) == [
            "app.mode",
            "server.port",
            "server.ssl.enabled",
            "server.legacy-port",
            "server.removed-port",
            "logging.level",
        ]

    @pytest.mark.asyncio
    async def test_first_declaration_wins(self, metadata):
        """additional-... sorts first, so its server.port type is kept."""
        assert metadata.get("server.port").type == "java.lang.Long"

    @pytest.mark.asyncio
    async def test_property_fields(self, project):
        write_metadata(project, {"properties": []}, "additional-spring-configuration-metadata.json")
        cache = WorkspaceCache(project)
        cache.enable_disk_cache = False
        await cache.initialize()

        prop = cache.caches["metadata"].get("server.port")

        assert prop.type == "java.lang.Integer"
        assert prop.description == "Server HTTP port."
        assert prop.default_value == 8080
        assert prop.source_type == "org.example.ServerProperties"
        assert not prop.is_deprecated

    @pytest.mark.asyncio
    async def test_deprecation_levels(self, metadata):
        legacy = metadata.get("server.legacy-port")
        removed = metadata.get("server.removed-port")

        assert legacy.deprecation_level is DeprecationLevel.WARNING
        assert legacy.is_deprecated and not legacy.is_error_deprecated
        assert removed.is_error_deprecated
        assert removed.deprecation_reason == "Gone"
        assert removed.deprecation_replacement == "server.port"

    @pytest.mark.asyncio
    async def test_key_and_value_hints(self, metadata):
        level = metadata.get("logging.level")
        port = metadata.get("server.port")
        mode = metadata.get("app.mode")

        assert level.hints.key_hints == (ValueHint("root"),)
        assert level.hints.key_hints[0].description == "Root logger"
        assert level.hints.key_providers == (ValueProvider("logger-name"),)
        assert [h.value for h in port.hints.value_hints] == ["8080", "8443"]
        assert port.hints.value_providers == (ValueProvider("any", {"x": 1}),)
        assert [h.value for h in mode.hints.value_hints] == ["custom"]

    @pytest.mark.asyncio
    async def test_malformed_file_skipped(self, project):
        bad = project / "lib" / "META-INF" / "spring-configuration-metadata.json"
        bad.parent.mkdir(parents=True)
        bad.write_text("{ not json")
        server = Mock()
        cache = WorkspaceCache(project, server=server)
        cache.enable_disk_cache = False
        await cache.initialize()

        assert cache.caches["metadata"].get("server.port") is not None
        server.window_log_message.assert_called()

    @pytest.mark.asyncio
    async def test_files_outside_meta_inf_ignored(self, tmp_path):
        (tmp_path / "spring-configuration-metadata.json").write_text(json.dumps(METADATA))
        cache = WorkspaceCache(tmp_path)
        cache.enable_disk_cache = False
        await cache.initialize()

        assert cache.caches["metadata"].get_all() == {}


class TestQueries:
    @pytest.mark.asyncio
    async def test_query_by_name_prefix_is_case_insensitive_containment(self, metadata):
        names = [p.name for p in metadata.query_by_name_prefix("PORT")]

        assert names == ["server.port", "server.legacy-port", "server.removed-port"]

    @pytest.mark.asyncio
    async def test_query_without_filter_returns_all(self, metadata):
        assert len(metadata.query_by_name_prefix(None)) == 6
        assert len(metadata.query_by_name_prefix("")) == 6

    @pytest.mark.asyncio
    async def test_lookup_by_name(self, metadata):
        assert metadata.lookup_by_name("app.mode").type == "com.example.Mode"
        assert metadata.lookup_by_name("app.missing") is None
        assert metadata.lookup_by_name(None) is None

    @pytest.mark.asyncio
    async def test_map_property_names(self, metadata):
        assert metadata.list_map_property_names() == ["logging.level"]

    @pytest.mark.asyncio
    async def test_search_prefers_prefix_matches(self, metadata):
        names = [p.name for p in metadata.search("server.p")]

        assert names == ["server.port"]


class TestPersistenceAndInvalidation:
    @pytest.mark.asyncio
    async def test_disk_cache_round_trip(self, project):
        first = WorkspaceCache(project)
        await first.initialize()
        assert (project / ".cfgpropsls" / "cache" / "metadata.json").exists()

        second = WorkspaceCache(project)
        loaded = await second.caches["metadata"].load_from_disk()

        assert loaded
        assert list(second.caches["metadata"].get_all()) == list(first.caches["metadata"].get_all())

    @pytest.mark.asyncio
    async def test_disk_cache_rejected_after_change(self, project):
        await WorkspaceCache(project).initialize()
        write_metadata(project, {"properties": [{"name": "new.prop", "type": "java.lang.String"}]})

        cache = WorkspaceCache(project)

        assert not await cache.caches["metadata"].load_from_disk()

    @pytest.mark.asyncio
    async def test_invalidate_changed_file(self, project, metadata):
        path = write_metadata(project, {"properties": [{"name": "new.prop", "type": "java.lang.String"}]})

        metadata.invalidate_file(path)

        assert metadata.get("new.prop") is not None
        assert metadata.get("logging.level") is None

    @pytest.mark.asyncio
    async def test_invalidate_deleted_file(self, project, metadata):
        path = project / "target" / "classes" / "META-INF" / "additional-spring-configuration-metadata.json"
        path.unlink()

        metadata.invalidate_file(path)

        assert metadata.get("app.mode") is None
        assert metadata.get("server.port").type == "java.lang.Integer"

    @pytest.mark.asyncio
    async def test_save_hook_reparses(self, project):
        server = Mock()
        server.text_sync_manager = Mock()
        cache = WorkspaceCache(project, server=server)
        cache.enable_disk_cache = False
        await cache.initialize()
        metadata = cache.caches["metadata"]
        path = write_metadata(project, {"properties": [{"name": "saved.prop"}]})

        params = Mock()
        params.text_document.uri = path.as_uri()
        await metadata._on_metadata_file_saved(params)

        assert metadata.get("saved.prop") is not None
        server.text_sync_manager.add_on_save_hook.assert_any_call(
            metadata._on_metadata_file_saved, suffixes=METADATA_FILE_NAMES
        )
