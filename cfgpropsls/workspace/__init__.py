"""Workspace management for cfgpropsls."""
from .cache import WorkspaceCache
from .metadata_cache import PropertyMetadata
from .enums_cache import EnumDefinition

__all__ = ['WorkspaceCache', 'PropertyMetadata', 'EnumDefinition']
