"""
Project caches for cfgpropsls.

Everything the completion engine reads from a project lives here: the
configuration metadata catalog ("metadata") and the enum type registry
("enums"). Each is a CachedWorkspace plugin owned by WorkspaceCache.

Caches are built once when the workspace opens, optionally restored from
`.cfgpropsls/cache`, and refreshed per file on save. Completion requests
only read them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from lsprotocol.types import LogMessageParams, MessageType

if TYPE_CHECKING:
    from cfgpropsls.lsp.cfgprops_language_server import CfgPropsLanguageServer


@dataclass
class FileInfo:
    """Content hash of a parsed file, used to skip unchanged files."""

    path: Path
    hash: str
    last_modified: datetime


@dataclass(frozen=True)
class CachedDataBase:
    """Common fields of every cached entry: its key and where it was declared."""

    id: str
    description: str
    file_path: Path | None
    line_number: int


class CachedWorkspace(ABC):
    """
    One kind of project data, kept in memory.

    Subclasses implement `scan` (full build) and `invalidate_file` (refresh a
    single file) plus the lookup methods. Disk persistence is opt-in by
    overriding `load_from_disk` and `save_to_disk`.
    """

    def __init__(self, workspace_cache: WorkspaceCache) -> None:
        self.workspace_cache = workspace_cache
        self.server = workspace_cache.server
        self.project_root = workspace_cache.project_root
        self.file_info = workspace_cache.file_info

    def register_text_sync_hooks(self) -> None:
        """Subscribe to save notifications; no-op unless overridden."""

    def log(self, message: str, type: MessageType = MessageType.Info) -> None:
        """Report to the client; silent when running without a server."""
        if self.server:
            self.server.window_log_message(
                LogMessageParams(type=type, message=message)
            )

    async def initialize(self):
        await self.scan()

    @abstractmethod
    async def scan(self):
        pass

    @abstractmethod
    def invalidate_file(self, file_path: Path):
        """Re-read `file_path` after it was saved, or drop it if it is gone."""

    @abstractmethod
    def get(self, id: str) -> CachedDataBase | None:
        pass

    @abstractmethod
    def get_all(self) -> Mapping[str, CachedDataBase]:
        pass

    @abstractmethod
    def search(self, query: str, limit: int = 50) -> Sequence[CachedDataBase]:
        pass

    async def load_from_disk(self) -> bool:
        """Restore from the disk cache; False means a scan is needed."""
        return False

    async def save_to_disk(self):
        pass


class WorkspaceCache:
    """
    Owner of the project caches.

    Usage:
        cache = WorkspaceCache(project_root, server=server)
        await cache.initialize()

        metadata = cache.caches["metadata"]
        prop = metadata.lookup_by_name("server.port")
        enums = cache.caches["enums"]
        enums.load_enum_constants("java.util.concurrent.TimeUnit")
    """

    def __init__(
        self,
        project_root: Path,
        caches: dict[str, CachedWorkspace] | None = None,
        server: CfgPropsLanguageServer | None = None,
    ):
        from cfgpropsls.workspace.enums_cache import EnumsCache
        from cfgpropsls.workspace.metadata_cache import MetadataCache

        self.project_root = project_root
        self.server = server
        self.file_info: dict[Path, FileInfo] = {}
        self.cache_dir = project_root / ".cfgpropsls" / "cache"
        self.enable_disk_cache = True

        self.caches = caches or {
            "metadata": MetadataCache(self),
            "enums": EnumsCache(self),
        }

        self._initialized = False
        self.last_scan: datetime | None = None

    async def initialize(self):
        """Build every cache, preferring a valid disk copy over a rescan."""
        if self._initialized:
            return

        for cache in self.caches.values():
            cache.register_text_sync_hooks()

        for cache in self.caches.values():
            if self.enable_disk_cache and await cache.load_from_disk():
                continue

            await cache.initialize()

            if self.enable_disk_cache:
                await cache.save_to_disk()

        self._initialized = True
        self.last_scan = datetime.now()

    def invalidate_file(self, file_path: Path):
        for cache in self.caches.values():
            cache.invalidate_file(file_path)
