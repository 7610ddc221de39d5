"""
Shared fixtures for the completion core tests.

The catalog and type loader here are in-memory stand-ins for the
workspace caches, so resolver behaviour is tested without touching disk.
"""
from __future__ import annotations

import pytest

from cfgpropsls.completion.engine import CompletionEngine
from cfgpropsls.completion.errors import TypeUnavailable
from cfgpropsls.workspace.metadata_cache import (
    DeprecationLevel,
    Hints,
    PropertyMetadata,
    ValueHint,
    ValueProvider,
)


def make_property(
    name: str,
    type: str = "java.lang.String",
    level: DeprecationLevel = DeprecationLevel.NONE,
    hints: Hints | None = None,
    description: str = "",
) -> PropertyMetadata:
    return PropertyMetadata(
        id=name,
        description=description,
        file_path=None,
        line_number=0,
        type=type,
        deprecation_level=level,
        hints=hints or Hints(),
    )


class FakeCatalog:
    """Catalog with case-insensitive containment matching, like MetadataCache."""

    def __init__(self, properties: list[PropertyMetadata]) -> None:
        self.properties = {p.name: p for p in properties}

    def query_by_name_prefix(self, filter):
        if not filter:
            return list(self.properties.values())
        return [p for n, p in self.properties.items() if filter.lower() in n.lower()]

    def lookup_by_name(self, name):
        return self.properties.get(name) if name is not None else None

    def list_map_property_names(self):
        return [n for n, p in self.properties.items() if p.is_map]


class FakeTypeLoader:
    def __init__(self, enums: dict[str, list[str]]) -> None:
        self.enums = enums
        self.requested: list[str] = []

    def load_enum_constants(self, type_name: str) -> list[str]:
        self.requested.append(type_name)
        if type_name not in self.enums:
            raise TypeUnavailable(type_name)
        return list(self.enums[type_name])


LOG_LEVEL = "org.springframework.boot.logging.LogLevel"


@pytest.fixture
def properties() -> list[PropertyMetadata]:
    return [
        make_property("server.port", "java.lang.Integer"),
        make_property("server.ssl.enabled", "java.lang.Boolean"),
        make_property("server.shutdown", "org.springframework.boot.web.server.Shutdown"),
        make_property("server.legacy-port", "java.lang.Integer", DeprecationLevel.WARNING),
        make_property("server.removed-port", "java.lang.Integer", DeprecationLevel.ERROR),
        make_property("server.address", "java.net.InetAddress"),
        make_property(
            "logging.level",
            f"java.util.Map<java.lang.String,{LOG_LEVEL}>",
            hints=Hints(
                key_hints=(ValueHint("root", "Root logger"),),
                key_providers=(ValueProvider("logger-name", {"group": True}),),
            ),
        ),
        make_property(
            "app.servers",
            "java.util.Map<java.lang.String,java.lang.String>",
            hints=Hints(
                key_hints=(ValueHint("prod"), ValueHint("preprod"), ValueHint("production")),
            ),
        ),
        make_property("app.regions", "java.util.Map<com.example.Region,java.lang.String>"),
        make_property("app.flags", "java.util.Map<java.lang.String,java.lang.Boolean>"),
        make_property(
            "app.modes",
            "java.util.Map<java.lang.String,java.util.List<com.example.Mode>>",
        ),
        make_property(
            "app.mode",
            "com.example.Mode",
            hints=Hints(
                value_hints=(ValueHint("alpha-custom", "Custom alpha"), ValueHint("gamma")),
                value_providers=(ValueProvider("any"),),
            ),
        ),
    ]


@pytest.fixture
def catalog(properties) -> FakeCatalog:
    return FakeCatalog(properties)


@pytest.fixture
def type_loader() -> FakeTypeLoader:
    return FakeTypeLoader(
        {
            "com.example.Mode": ["ALPHA", "BETA"],
            "com.example.Region": ["EU_WEST", "US_EAST"],
            "org.springframework.boot.web.server.Shutdown": ["GRACEFUL", "IMMEDIATE"],
            LOG_LEVEL: ["OFF", "ERROR", "WARN", "INFO", "DEBUG", "TRACE"],
        }
    )


@pytest.fixture
def engine(catalog, type_loader) -> CompletionEngine:
    return CompletionEngine(catalog, type_loader)


@pytest.fixture
def property_factory():
    return make_property


@pytest.fixture
def catalog_factory():
    return FakeCatalog
