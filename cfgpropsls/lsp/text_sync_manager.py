"""
Save notifications for the workspace caches.

Document contents are tracked by pygls itself. This manager only relays
`textDocument/didSave` to the caches, so a rebuilt metadata file, an edited
enum or a changed registry is picked up without restarting the server.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_SAVE,
    DidSaveTextDocumentParams,
    LogMessageParams,
    MessageType,
)

if TYPE_CHECKING:
    from cfgpropsls.lsp.cfgprops_language_server import CfgPropsLanguageServer


OnSaveHook = Callable[[DidSaveTextDocumentParams], Awaitable[None]]


@dataclass(frozen=True)
class _Subscription:
    hook: OnSaveHook
    suffixes: tuple[str, ...]

    def wants(self, uri: str) -> bool:
        return not self.suffixes or uri.endswith(self.suffixes)


class TextSyncManager:
    """
    Relays save events to the hooks the caches register.

    Usage:
        text_sync = TextSyncManager(server)
        text_sync.register_handlers()

        class EnumsCache(CachedWorkspace):
            def register_text_sync_hooks(self):
                self.server.text_sync_manager.add_on_save_hook(
                    self._on_file_saved, suffixes=(".java",)
                )

    A failing hook is reported to the client and the remaining hooks still run.
    """

    def __init__(self, server: CfgPropsLanguageServer) -> None:
        self.server = server
        self._subscriptions: list[_Subscription] = []

    def add_on_save_hook(self, hook: OnSaveHook, suffixes: tuple[str, ...] = ()) -> None:
        """
        Call `hook` after a document is saved.

        Args:
            hook: Coroutine function receiving the didSave params
            suffixes: Only relay saves of URIs ending with one of these;
                empty relays every save
        """
        self._subscriptions.append(_Subscription(hook, tuple(suffixes)))

    async def _broadcast_on_save(self, params: DidSaveTextDocumentParams) -> None:
        uri = params.text_document.uri
        for subscription in self._subscriptions:
            if not subscription.wants(uri):
                continue
            try:
                await subscription.hook(params)
            except Exception as e:
                self.server.window_log_message(
                    LogMessageParams(
                        type=MessageType.Error,
                        message=f"Error in on_save hook {subscription.hook.__name__} "
                                f"for {uri}: {type(e).__name__}: {e}"
                    )
                )

    def register_handlers(self) -> None:
        """Install the didSave handler; call before the caches add their hooks."""

        @self.server.feature(TEXT_DOCUMENT_DID_SAVE)
        async def did_save(
            ls: CfgPropsLanguageServer,
            params: DidSaveTextDocumentParams,
        ) -> None:
            ls.window_log_message(
                LogMessageParams(
                    type=MessageType.Log,
                    message=f"Document saved: {params.text_document.uri}"
                )
            )
            await self._broadcast_on_save(params)
