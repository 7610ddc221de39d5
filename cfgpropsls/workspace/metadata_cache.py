"""
Configuration metadata catalog.

Loads Spring Boot style configuration metadata from
`META-INF/spring-configuration-metadata.json` and
`META-INF/additional-spring-configuration-metadata.json` files found in the
project, and answers the queries the completion engine needs.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from lsprotocol.types import MessageType

from cfgpropsls.completion.type_descriptor import TypeDescriptor
from cfgpropsls.utils.find_files import METADATA_FILE_NAMES, find_metadata_files
from cfgpropsls.workspace.cache import (
    CachedDataBase,
    CachedWorkspace,
    FileInfo,
    WorkspaceCache,
)
from cfgpropsls.workspace.utils import calculate_file_hash, uri_to_path

CACHE_VERSION = 1
MAP_TYPE_PREFIX = "java.util.Map<"
KEYS_HINT_SUFFIX = ".keys"
VALUES_HINT_SUFFIX = ".values"


class DeprecationLevel(Enum):
    NONE = "none"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ValueHint:
    """A literal suggestion for a key or value. Equal by value only."""

    value: str
    description: str | None = field(default=None, compare=False)


@dataclass(frozen=True)
class ValueProvider:
    """A dynamic suggestion source. Surfaced, never executed."""

    name: str
    parameters: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Hints:
    key_hints: tuple[ValueHint, ...] = ()
    value_hints: tuple[ValueHint, ...] = ()
    key_providers: tuple[ValueProvider, ...] = ()
    value_providers: tuple[ValueProvider, ...] = ()


@dataclass(frozen=True)
class PropertyMetadata(CachedDataBase):
    """Represents a configuration property declared in the metadata."""

    type: str = ""
    deprecation_level: DeprecationLevel = DeprecationLevel.NONE
    deprecation_reason: str | None = None
    deprecation_replacement: str | None = None
    default_value: Any = None
    source_type: str | None = None
    hints: Hints = field(default_factory=Hints)

    @property
    def name(self) -> str:
        return self.id

    @property
    def is_deprecated(self) -> bool:
        return self.deprecation_level is not DeprecationLevel.NONE

    @property
    def is_error_deprecated(self) -> bool:
        return self.deprecation_level is DeprecationLevel.ERROR

    @property
    def is_map(self) -> bool:
        return self.type.startswith(MAP_TYPE_PREFIX)

    @property
    def type_descriptor(self) -> TypeDescriptor:
        return TypeDescriptor.parse(self.type)


def _parse_deprecation(prop: dict) -> tuple[DeprecationLevel, str | None, str | None]:
    deprecation = prop.get("deprecation")
    if isinstance(deprecation, dict):
        level = str(deprecation.get("level") or "warning").lower()
        try:
            parsed = DeprecationLevel(level)
        except ValueError:
            parsed = DeprecationLevel.WARNING
        return parsed, deprecation.get("reason"), deprecation.get("replacement")

    if prop.get("deprecated"):
        return DeprecationLevel.WARNING, None, None

    return DeprecationLevel.NONE, None, None


def _parse_value_hints(raw: list | None) -> list[ValueHint]:
    hints = []
    for value in raw or []:
        if not isinstance(value, dict) or value.get("value") is None:
            continue
        hints.append(ValueHint(str(value["value"]), value.get("description")))
    return hints


def _parse_providers(raw: list | None) -> list[ValueProvider]:
    providers = []
    for provider in raw or []:
        if not isinstance(provider, dict) or not provider.get("name"):
            continue
        providers.append(
            ValueProvider(provider["name"], dict(provider.get("parameters") or {}))
        )
    return providers


class MetadataCache(CachedWorkspace):
    """
    Metadata catalog for configuration properties.

    Catalog order is metadata file order (sorted paths) followed by
    declaration order within each file.
    """

    def __init__(self, workspace_cache: WorkspaceCache) -> None:
        super().__init__(workspace_cache)
        self._properties: dict[str, PropertyMetadata] = {}
        # Raw JSON documents by file, kept so the catalog can be rebuilt
        # when a single file changes
        self._documents: dict[Path, dict] = {}

    async def scan(self):
        """Scan the project for metadata files and build the catalog."""
        self._documents.clear()
        for metadata_file in find_metadata_files(self.project_root):
            self.parse_metadata_file(metadata_file)
        self._rebuild()

    def parse_metadata_file(self, file_path: Path) -> bool:
        """Parse a single metadata JSON file. Returns False on failure."""
        try:
            file_hash = calculate_file_hash(file_path)
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)

            if not isinstance(data, dict):
                raise ValueError("top-level JSON value is not an object")

            self._documents[file_path] = data
            self.file_info[file_path] = FileInfo(
                path=file_path,
                hash=file_hash,
                last_modified=datetime.fromtimestamp(file_path.stat().st_mtime),
            )
            return True

        except (OSError, ValueError) as e:
            # Log error but don't fail
            self._documents.pop(file_path, None)
            self.log(f"Error parsing metadata {file_path}: {e}", MessageType.Warning)
            return False

    def _rebuild(self) -> None:
        """Rebuild the property index from the raw documents."""
        properties: dict[str, PropertyMetadata] = {}
        hints: dict[str, dict[str, list]] = {}

        for file_path in sorted(self._documents):
            data = self._documents[file_path]

            for prop in data.get("properties") or []:
                if not isinstance(prop, dict) or not prop.get("name"):
                    continue
                name = prop["name"]
                if name in properties:
                    continue

                level, reason, replacement = _parse_deprecation(prop)
                properties[name] = PropertyMetadata(
                    id=name,
                    description=prop.get("description") or "",
                    file_path=file_path,
                    line_number=0,
                    type=prop.get("type") or "",
                    deprecation_level=level,
                    deprecation_reason=reason,
                    deprecation_replacement=replacement,
                    default_value=prop.get("defaultValue"),
                    source_type=prop.get("sourceType"),
                )

            for hint in data.get("hints") or []:
                if not isinstance(hint, dict) or not hint.get("name"):
                    continue
                name = hint["name"]
                if name.endswith(KEYS_HINT_SUFFIX):
                    target, role = name[: -len(KEYS_HINT_SUFFIX)], "key"
                elif name.endswith(VALUES_HINT_SUFFIX):
                    target, role = name[: -len(VALUES_HINT_SUFFIX)], "value"
                else:
                    target, role = name, "value"

                entry = hints.setdefault(
                    target,
                    {"key_hints": [], "value_hints": [], "key_providers": [], "value_providers": []},
                )
                entry[f"{role}_hints"].extend(_parse_value_hints(hint.get("values")))
                entry[f"{role}_providers"].extend(_parse_providers(hint.get("providers")))

        for target, entry in hints.items():
            prop = properties.get(target)
            if prop is None:
                continue
            properties[target] = replace(
                prop,
                hints=Hints(
                    key_hints=tuple(entry["key_hints"]),
                    value_hints=tuple(entry["value_hints"]),
                    key_providers=tuple(entry["key_providers"]),
                    value_providers=tuple(entry["value_providers"]),
                ),
            )

        self._properties = properties
        TypeDescriptor.clear_cache()

    # ===== Public API =====

    def get(self, id: str) -> PropertyMetadata | None:
        return self._properties.get(id)

    def get_all(self) -> dict[str, PropertyMetadata]:
        return self._properties

    def search(self, query: str, limit: int = 50) -> list[PropertyMetadata]:
        """Search properties by name, names starting with the query first."""
        query_lower = query.lower()
        results = [
            prop for name, prop in self._properties.items()
            if query_lower in name.lower()
        ]
        results.sort(key=lambda p: not p.id.lower().startswith(query_lower))
        return results[:limit]

    def query_by_name_prefix(self, filter: str | None) -> list[PropertyMetadata]:
        """
        All properties matching `filter`, in catalog order.

        Matching is case-insensitive containment; None or empty matches all.
        """
        if not filter:
            return list(self._properties.values())

        filter_lower = filter.lower()
        return [
            prop for name, prop in self._properties.items()
            if filter_lower in name.lower()
        ]

    def lookup_by_name(self, name: str | None) -> PropertyMetadata | None:
        if name is None:
            return None
        return self._properties.get(name)

    def list_map_property_names(self) -> list[str]:
        return [name for name, prop in self._properties.items() if prop.is_map]

    # ===== Cache Persistence =====

    async def load_from_disk(self) -> bool:
        """
        Load the raw metadata documents from the disk cache.

        The cache is only used when every cached file still exists with the
        same content hash, and no new metadata file has appeared.
        """
        cache_file = self.workspace_cache.cache_dir / "metadata.json"
        if not cache_file.exists():
            return False

        try:
            with open(cache_file, "r", encoding="utf-8") as f:
                data = json.load(f)

            if data.get("version", 0) != CACHE_VERSION:
                return False

            files = data.get("files", {})
            current = find_metadata_files(self.project_root)
            if {str(p) for p in current} != set(files):
                return False

            documents = {}
            for path_str, entry in files.items():
                path = Path(path_str)
                if calculate_file_hash(path) != entry["hash"]:
                    return False
                documents[path] = entry["document"]
                self.file_info[path] = FileInfo(
                    path=path,
                    hash=entry["hash"],
                    last_modified=datetime.fromtimestamp(path.stat().st_mtime),
                )

            self._documents = documents
            self._rebuild()
            return True

        except (OSError, ValueError, KeyError, TypeError) as e:
            self.log(f"Error loading metadata cache from disk: {e}", MessageType.Warning)
            return False

    async def save_to_disk(self):
        """Save the raw metadata documents to the disk cache."""
        try:
            self.workspace_cache.cache_dir.mkdir(parents=True, exist_ok=True)
            cache_file = self.workspace_cache.cache_dir / "metadata.json"
            data = {
                "version": CACHE_VERSION,
                "timestamp": datetime.now().isoformat(),
                "files": {
                    str(path): {
                        "hash": self.file_info[path].hash,
                        "document": document,
                    }
                    for path, document in self._documents.items()
                },
            }

            with open(cache_file, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)

        except OSError as e:
            self.log(f"Error saving metadata cache to disk: {e}", MessageType.Error)

    def invalidate_file(self, file_path: Path):
        """Re-parse a metadata file when its content changed."""
        if not file_path.name.endswith("spring-configuration-metadata.json"):
            return

        if not file_path.exists():
            self.file_info.pop(file_path, None)
            if self._documents.pop(file_path, None) is not None:
                self._rebuild()
            return

        old_info = self.file_info.get(file_path)
        if old_info and old_info.hash == calculate_file_hash(file_path):
            return

        self.parse_metadata_file(file_path)
        self._rebuild()

    def register_text_sync_hooks(self) -> None:
        if not self.server or not getattr(self.server, "text_sync_manager", None):
            return
        self.server.text_sync_manager.add_on_save_hook(
            self._on_metadata_file_saved, suffixes=METADATA_FILE_NAMES
        )

    async def _on_metadata_file_saved(self, params):
        file_path = uri_to_path(params.text_document.uri)
        if file_path is None:
            return

        self.invalidate_file(file_path)
        self.log(f"Updated metadata catalog: {file_path.name} ({len(self._properties)} properties)")
