from lsprotocol.types import (
    INITIALIZE,
    TEXT_DOCUMENT_COMPLETION,
    TEXT_DOCUMENT_HOVER,
    WORKSPACE_DID_CHANGE_CONFIGURATION,
    CompletionList,
    CompletionOptions,
    CompletionParams,
    DidChangeConfigurationParams,
    HoverParams,
    InitializeParams,
    LogMessageParams,
    MessageType,
)

from cfgpropsls.completion.engine import CompletionEngine
from cfgpropsls.completion.preferences import CompletionPreferences
from cfgpropsls.lsp.capabilities.capabilities import CapabilityManager
from cfgpropsls.lsp.cfgprops_language_server import CfgPropsLanguageServer
from cfgpropsls.lsp.text_sync_manager import TextSyncManager
from cfgpropsls.utils.find_files import find_project_root
from cfgpropsls.workspace.cache import WorkspaceCache
from cfgpropsls.workspace.utils import uri_to_path

SERVER_NAME = "cfgpropsls"
SERVER_VERSION = "0.1.0"


def create_server() -> CfgPropsLanguageServer:
    """
    Creates and returns a configured Language Server instance.

    The LanguageServer class from pygls handles:
    - JSON-RPC communication with clients (editors)
    - Request/response lifecycle
    - Notifications and event handling
    """
    server = CfgPropsLanguageServer(SERVER_NAME, SERVER_VERSION)

    @server.feature(INITIALIZE)
    async def initialize(ls: CfgPropsLanguageServer, params: InitializeParams):
        """
        Load the metadata catalog and enum registry, then wire capabilities.
        """
        ls.preferences = CompletionPreferences.from_settings(params.initialization_options)

        workspace_root = uri_to_path(params.root_uri) if params.root_uri else None
        if workspace_root is None:
            ls.window_log_message(
                LogMessageParams(MessageType.Info, "No workspace root, completion disabled")
            )
            return

        project_root = find_project_root(workspace_root)
        ls.window_log_message(
            LogMessageParams(MessageType.Info, f"Project root detected: {project_root}")
        )

        # TextSyncManager BEFORE caches so they can register save hooks
        ls.text_sync_manager = TextSyncManager(ls)
        ls.text_sync_manager.register_handlers()

        ls.workspace_cache = WorkspaceCache(project_root, server=ls)
        await ls.workspace_cache.initialize()

        metadata = ls.workspace_cache.caches["metadata"]
        enums = ls.workspace_cache.caches["enums"]
        ls.completion_engine = CompletionEngine(metadata, enums, ls.preferences)  # pyright: ignore

        count = len(metadata.get_all())
        ls.window_log_message(
            LogMessageParams(MessageType.Info, f"Loaded {count} configuration properties")
        )

        ls.capability_manager = CapabilityManager(ls)
        ls.capability_manager.register_all()

    @server.feature(WORKSPACE_DID_CHANGE_CONFIGURATION)
    async def did_change_configuration(
        ls: CfgPropsLanguageServer, params: DidChangeConfigurationParams
    ):
        ls.preferences = CompletionPreferences.from_settings(params.settings, ls.preferences)
        ls.window_log_message(
            LogMessageParams(MessageType.Log, f"Completion preferences: {ls.preferences}")
        )

    @server.feature(
        TEXT_DOCUMENT_COMPLETION,
        CompletionOptions(trigger_characters=[".", "="]),
    )
    async def completion(ls: CfgPropsLanguageServer, params: CompletionParams):
        if ls.capability_manager:
            return await ls.capability_manager.handle_completion(params)
        return CompletionList(is_incomplete=False, items=[])

    @server.feature(TEXT_DOCUMENT_HOVER)
    async def hover(ls: CfgPropsLanguageServer, params: HoverParams):
        if ls.capability_manager:
            return await ls.capability_manager.handle_hover(params)
        return None

    return server
