"""
Configuration properties LSP capabilities.

Provides completion and hover for `*.properties` configuration files.
"""

import re

from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    CompletionItemTag,
    CompletionList,
    CompletionParams,
    Hover,
    HoverParams,
    LogMessageParams,
    MarkupContent,
    MarkupKind,
    MessageType,
    Range,
    TextEdit,
)

from cfgpropsls.completion import items as engine_items
from cfgpropsls.completion.context import PROPERTY_NAME_PATTERN
from cfgpropsls.completion.document import DocumentSnapshot
from cfgpropsls.completion.errors import OffsetOutOfRange
from cfgpropsls.lsp.capabilities.capabilities import (
    CompletionCapability,
    HoverCapability,
)
from cfgpropsls.workspace.metadata_cache import PropertyMetadata

PROPERTIES_FILE_PATTERN = re.compile(r"\.properties$")

ITEM_KINDS = {
    engine_items.ItemKind.PROPERTY: CompletionItemKind.Property,
    engine_items.ItemKind.KEY: CompletionItemKind.Field,
    engine_items.ItemKind.VALUE: CompletionItemKind.Value,
}


def to_lsp_item(
    item: engine_items.CompletionItem, index: int, snapshot: DocumentSnapshot
) -> CompletionItem:
    """Convert an engine item into an LSP item replacing its span."""
    edit_range = Range(
        start=snapshot.position_at(item.start),
        end=snapshot.position_at(item.end),
    )
    return CompletionItem(
        label=item.label,
        kind=ITEM_KINDS[item.kind],
        detail=item.detail,
        documentation=item.documentation,
        tags=[CompletionItemTag.Deprecated] if item.deprecated else None,
        # weight first, then engine order
        sort_text=f"{item.sort_weight}{index:05d}",
        filter_text=item.label,
        text_edit=TextEdit(range=edit_range, new_text=item.insert_text),
    )


class CfgPropsCompletionCapability(CompletionCapability):
    """Provides completion for property names, map keys and values."""

    document_pattern = PROPERTIES_FILE_PATTERN

    @property
    def name(self) -> str:
        return "cfgprops_completion"

    @property
    def description(self) -> str:
        return "Autocomplete configuration property names, map keys and values"

    async def can_handle(self, params: CompletionParams) -> bool:
        return (
            self.handles_document(params.text_document.uri)
            and self.engine is not None
        )

    async def complete(self, params: CompletionParams) -> CompletionList:
        engine = self.engine
        if engine is None:
            return CompletionList(is_incomplete=False, items=[])

        # Snapshot once; the engine never reads the live document
        doc = self.server.workspace.get_text_document(params.text_document.uri)
        snapshot = DocumentSnapshot(doc.source, doc.uri)

        try:
            caret_offset = snapshot.offset_at(params.position)
        except OffsetOutOfRange as e:
            self.server.window_log_message(
                LogMessageParams(
                    type=MessageType.Warning,
                    message=f"Completion position out of range in {doc.uri}: {e}"
                )
            )
            return CompletionList(is_incomplete=False, items=[])

        result = await engine.resolve_async(snapshot, caret_offset, self.server.preferences)

        for diagnostic in result.diagnostics:
            self.server.window_log_message(
                LogMessageParams(
                    type=MessageType.Log,
                    message=(
                        f"{diagnostic.role.capitalize()} provider for {diagnostic.property_name}: "
                        f"{diagnostic.provider} - params: {diagnostic.parameters}"
                    ),
                )
            )

        items = [
            to_lsp_item(item, index, snapshot)
            for index, item in enumerate(result.items)
        ]
        return CompletionList(is_incomplete=False, items=items)


class CfgPropsHoverCapability(HoverCapability):
    """Shows type, default value and deprecation of a property on hover."""

    document_pattern = PROPERTIES_FILE_PATTERN

    @property
    def name(self) -> str:
        return "cfgprops_hover"

    @property
    def description(self) -> str:
        return "Show configuration property metadata on hover"

    async def can_handle(self, params: HoverParams) -> bool:
        return (
            self.handles_document(params.text_document.uri)
            and self.engine is not None
        )

    async def hover(self, params: HoverParams) -> Hover | None:
        engine = self.engine
        if engine is None:
            return None

        doc = self.server.workspace.get_text_document(params.text_document.uri)
        try:
            line = doc.lines[params.position.line].rstrip("\r\n")
        except IndexError:
            return None

        name_region = line.split("=", 1)[0]
        if params.position.character > len(name_region) or line.lstrip().startswith(("#", "!")):
            return None

        property_name = None
        for match in PROPERTY_NAME_PATTERN.finditer(name_region):
            if match.start() <= params.position.character <= match.end():
                property_name = match.group()
        if property_name is None:
            return None

        meta = engine.catalog.lookup_by_name(property_name)
        if meta is None:
            meta = engine.map_resolver.owning_map_property(property_name)
        if meta is None:
            return None

        return Hover(
            contents=MarkupContent(kind=MarkupKind.Markdown, value=self._format(meta))
        )

    @staticmethod
    def _format(meta: PropertyMetadata) -> str:
        parts = [f"**Property:** `{meta.name}`"]
        if meta.type:
            parts.append(f"**Type:** `{meta.type}`")
        if meta.default_value is not None:
            parts.append(f"**Default:** `{meta.default_value}`")
        if meta.is_deprecated:
            notice = f"**Deprecated** ({meta.deprecation_level.value})"
            if meta.deprecation_reason:
                notice += f": {meta.deprecation_reason}"
            parts.append(notice)
            if meta.deprecation_replacement:
                parts.append(f"**Replaced by:** `{meta.deprecation_replacement}`")
        if meta.description:
            parts.append(meta.description)
        return "\n\n".join(parts)
