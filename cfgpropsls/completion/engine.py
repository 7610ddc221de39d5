"""
Completion engine.

Orchestrates one completion request: reads the line to the caret from a
document snapshot, classifies it, dispatches to the name or value resolver
and delivers the ordered candidates to a result sink.

Usage:
    engine = CompletionEngine(metadata_cache, enums_cache)
    result = engine.resolve(DocumentSnapshot(text), caret_offset, preferences)
    for item in result.items:
        ...

No exception escapes `resolve`: faults are logged and produce an empty,
finished result.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field

from cfgpropsls.completion.context import CompletionContext, CompletionKind, LineContextParser
from cfgpropsls.completion.document import DocumentSnapshot
from cfgpropsls.completion.enum_introspector import EnumIntrospector, TypeLoader
from cfgpropsls.completion.errors import OffsetOutOfRange
from cfgpropsls.completion.hints import HintAggregator, ProviderDiagnostic
from cfgpropsls.completion.items import CompletionItem
from cfgpropsls.completion.preferences import CompletionPreferences
from cfgpropsls.completion.resolvers import (
    MapKeyValueResolver,
    MetadataCatalog,
    PropertyNameResolver,
    PropertyValueResolver,
)

logger = logging.getLogger(__name__)


class ResultSink:
    """Collects items for one request. Closed by `finish()`."""

    def __init__(self) -> None:
        self._items: list[CompletionItem] = []
        self._finished = False

    @property
    def items(self) -> list[CompletionItem]:
        return list(self._items)

    @property
    def is_finished(self) -> bool:
        return self._finished

    def add_item(self, item: CompletionItem) -> None:
        if self._finished:
            raise RuntimeError("Result sink already finished")
        self._items.append(item)

    def add_all(self, items: list[CompletionItem]) -> None:
        for item in items:
            self.add_item(item)

    def finish(self) -> None:
        self._finished = True


@dataclass(frozen=True)
class CompletionResult:
    items: tuple[CompletionItem, ...]
    context: CompletionContext | None
    elapsed_ms: float
    diagnostics: tuple[ProviderDiagnostic, ...] = field(default_factory=tuple)


class CompletionEngine:
    def __init__(
        self,
        catalog: MetadataCatalog,
        type_loader: TypeLoader | None = None,
        preferences: CompletionPreferences | None = None,
    ) -> None:
        self.catalog = catalog
        self.preferences = preferences or CompletionPreferences()
        self.parser = LineContextParser()

        introspector = EnumIntrospector(type_loader)
        hints = HintAggregator()
        self.map_resolver = MapKeyValueResolver(catalog, introspector, hints)
        self.name_resolver = PropertyNameResolver(catalog, self.map_resolver)
        self.value_resolver = PropertyValueResolver(catalog, introspector, hints, self.map_resolver)

    def resolve(
        self,
        snapshot: DocumentSnapshot,
        caret_offset: int,
        preferences: CompletionPreferences | None = None,
    ) -> CompletionResult:
        return self.resolve_into(snapshot, caret_offset, ResultSink(), preferences)

    async def resolve_async(
        self,
        snapshot: DocumentSnapshot,
        caret_offset: int,
        preferences: CompletionPreferences | None = None,
    ) -> CompletionResult:
        """Resolve in a worker thread, keeping the event loop responsive."""
        return await asyncio.to_thread(self.resolve, snapshot, caret_offset, preferences)

    def resolve_into(
        self,
        snapshot: DocumentSnapshot,
        caret_offset: int,
        sink: ResultSink,
        preferences: CompletionPreferences | None = None,
    ) -> CompletionResult:
        preferences = preferences or self.preferences
        mark = time.perf_counter()
        diagnostics: list[ProviderDiagnostic] = []
        context = None

        try:
            line_to_caret, _ = snapshot.text_of_current_line(caret_offset)
            context = self.parser.parse(line_to_caret, caret_offset)
            if context is not None:
                context = self.classify(context)
                items = self._dispatch(context, preferences, diagnostics.append)
                # stable: catalog order is kept inside each weight group
                sink.add_all(sorted(items, key=lambda item: item.sort_weight))
        except OffsetOutOfRange as e:
            logger.error("Completion aborted for %s: %s", snapshot.uri or "<document>", e)
        except Exception:
            logger.exception("Completion failed at offset %d", caret_offset)
        finally:
            sink.finish()

        elapsed_ms = (time.perf_counter() - mark) * 1000
        if context is not None:
            logger.debug(
                "%s completion of '%s' took: %.2f msecs",
                context.kind.value,
                context.value_filter if context.value_filter is not None else context.name_prefix,
                elapsed_ms,
            )

        return CompletionResult(
            items=tuple(sink.items),
            context=context,
            elapsed_ms=elapsed_ms,
            diagnostics=tuple(diagnostics),
        )

    def classify(self, context: CompletionContext) -> CompletionContext:
        """Refine NAME/VALUE into their map variants using catalog knowledge."""
        if context.kind is CompletionKind.NAME:
            if self.map_resolver.matching_map_properties(context.name_prefix):
                return context.with_kind(CompletionKind.MAP_KEY_NAME)
        elif context.kind is CompletionKind.VALUE:
            if (
                self.catalog.lookup_by_name(context.name_prefix) is None
                and self.map_resolver.owning_map_property(context.name_prefix) is not None
            ):
                return context.with_kind(CompletionKind.MAP_KEY_VALUE)
        return context

    def _dispatch(self, context: CompletionContext, preferences, diagnostics) -> list[CompletionItem]:
        if context.kind in (CompletionKind.NAME, CompletionKind.MAP_KEY_NAME):
            return self.name_resolver.resolve(
                context.name_prefix,
                context.replacement_start,
                context.caret_offset,
                preferences,
                diagnostics,
            )

        return self.value_resolver.resolve(
            context.name_prefix,
            context.value_filter,
            context.replacement_start,
            context.caret_offset,
            diagnostics,
        )
