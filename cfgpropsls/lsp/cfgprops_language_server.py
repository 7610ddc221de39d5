from pygls.lsp.server import LanguageServer

from cfgpropsls.completion.engine import CompletionEngine
from cfgpropsls.completion.preferences import CompletionPreferences
from cfgpropsls.lsp.capabilities.capabilities import CapabilityManager
from cfgpropsls.lsp.text_sync_manager import TextSyncManager
from cfgpropsls.workspace.cache import WorkspaceCache


class CfgPropsLanguageServer(LanguageServer):
    """
    Custom Language Server for configuration property files.

    Attributes:
        workspace_cache: Metadata catalog and enum registry of the project
        completion_engine: Engine answering completion requests
        preferences: Current completion preferences, replaced on config change
    """

    def __init__(self, name: str, version: str):
        super().__init__(name, version)

        self.workspace_cache: WorkspaceCache | None = None
        self.completion_engine: CompletionEngine | None = None
        self.capability_manager: CapabilityManager | None = None
        self.text_sync_manager: TextSyncManager | None = None
        self.preferences = CompletionPreferences()
