"""
Capability plugins for the configuration properties server.

A capability answers one kind of LSP request (completion or hover) for the
documents it recognizes. The CapabilityManager owns the installed plugins,
fans each request out to those that accept it and keeps a faulty plugin
from failing the whole request.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Awaitable, Callable, TypeVar

from lsprotocol.types import (
    CompletionItem,
    CompletionList,
    CompletionParams,
    Hover,
    HoverParams,
    LogMessageParams,
    MessageType,
)

if TYPE_CHECKING:
    from cfgpropsls.completion.engine import CompletionEngine
    from cfgpropsls.lsp.cfgprops_language_server import CfgPropsLanguageServer

R = TypeVar("R")


class Capability(ABC):
    """
    Base class of every capability plugin.

    Subclasses set `document_pattern` to the URIs they serve; `can_handle`
    then only has to add request specific checks.
    """

    document_pattern: re.Pattern[str] | None = None

    def __init__(self, server: CfgPropsLanguageServer) -> None:
        self.server = server
        self.workspace_cache = server.workspace_cache

    @property
    def engine(self) -> CompletionEngine | None:
        # Replaced on re-initialization, so always read through the server
        return self.server.completion_engine

    def handles_document(self, uri: str) -> bool:
        if self.document_pattern is None:
            return True
        return bool(self.document_pattern.search(uri))

    def register(self) -> None:
        """Hook for plugins that need extra `@server.feature` handlers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Key of the plugin in the manager."""

    @property
    @abstractmethod
    def description(self) -> str:
        """One line shown in logs."""

    @abstractmethod
    async def can_handle(self, params) -> bool:
        pass


class CompletionCapability(Capability):
    @abstractmethod
    async def can_handle(self, params: CompletionParams) -> bool:
        pass

    @abstractmethod
    async def complete(self, params: CompletionParams) -> CompletionList:
        """Items for the request; only called after `can_handle` accepted it."""


class HoverCapability(Capability):
    @abstractmethod
    async def can_handle(self, params: HoverParams) -> bool:
        pass

    @abstractmethod
    async def hover(self, params: HoverParams) -> Hover | None:
        pass


class CapabilityManager:
    """
    Routes completion and hover requests to the installed capabilities.

    Usage:
        manager = CapabilityManager(server)
        manager.register_all()
        items = await manager.handle_completion(params)
    """

    def __init__(
        self,
        server: CfgPropsLanguageServer,
        capabilities: dict[str, Capability] | None = None,
    ):
        self.server = server

        if capabilities is None:
            from cfgpropsls.lsp.capabilities.cfgprops_capabilities import (
                CfgPropsCompletionCapability,
                CfgPropsHoverCapability,
            )

            capabilities = {
                cap.name: cap
                for cap in (
                    CfgPropsCompletionCapability(server),
                    CfgPropsHoverCapability(server),
                )
            }

        self.capabilities = capabilities
        self._registered = False

    def register_all(self) -> None:
        if self._registered:
            return

        for capability in self.capabilities.values():
            capability.register()

        self._registered = True

    def get_capability(self, name: str) -> Capability | None:
        return self.capabilities.get(name)

    def get_capabilities_by_type(self, capability_type: type) -> list[Capability]:
        return [
            cap for cap in self.capabilities.values()
            if isinstance(cap, capability_type)
        ]

    def _log_error(self, capability: Capability, e: Exception) -> None:
        self.server.window_log_message(
            LogMessageParams(
                type=MessageType.Error,
                message=f"Error in {capability.name}: {type(e).__name__}: {e}"
            )
        )

    async def _ask(
        self,
        capability: Capability,
        params,
        call: Callable[[], Awaitable[R]],
    ) -> R | None:
        """Run `call` if the capability accepts the request; faults become None."""
        try:
            if await capability.can_handle(params):
                return await call()
        except Exception as e:
            self._log_error(capability, e)
        return None

    async def handle_completion(self, params: CompletionParams) -> CompletionList:
        """Concatenate the items of every accepting completion capability."""
        items: list[CompletionItem] = []

        for capability in self.get_capabilities_by_type(CompletionCapability):
            result = await self._ask(
                capability, params, lambda cap=capability: cap.complete(params)  # pyright: ignore
            )
            if result is not None:
                items.extend(result.items)

        return CompletionList(is_incomplete=False, items=items)

    async def handle_hover(self, params: HoverParams) -> Hover | None:
        """First hover any capability produces wins."""
        for capability in self.get_capabilities_by_type(HoverCapability):
            result = await self._ask(
                capability, params, lambda cap=capability: cap.hover(params)  # pyright: ignore
            )
            if result:
                return result

        return None
