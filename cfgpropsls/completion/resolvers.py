"""
Candidate resolution for property names, values and map keys.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from cfgpropsls.completion.enum_introspector import EnumIntrospector
from cfgpropsls.completion.hints import DiagnosticsSink, HintAggregator
from cfgpropsls.completion.items import CompletionItem, ItemKind
from cfgpropsls.completion.preferences import CompletionPreferences
from cfgpropsls.completion.type_descriptor import TypeDescriptor, is_introspectable
from cfgpropsls.workspace.metadata_cache import PropertyMetadata, ValueHint

logger = logging.getLogger(__name__)

MAP_KEY_SEPARATOR = "."


class MetadataCatalog(Protocol):
    def query_by_name_prefix(self, filter: str | None) -> Sequence[PropertyMetadata]: ...

    def lookup_by_name(self, name: str | None) -> PropertyMetadata | None: ...

    def list_map_property_names(self) -> Sequence[str]: ...


def _value_item(hint: ValueHint, start: int, caret_offset: int, detail: str | None = None) -> CompletionItem:
    return CompletionItem(
        label=hint.value,
        insert_text=hint.value,
        start=start,
        end=caret_offset,
        kind=ItemKind.VALUE,
        detail=detail,
        documentation=hint.description,
    )


class MapKeyValueResolver:
    """Map-aware completion: keys of map properties and values of map entries."""

    def __init__(
        self,
        catalog: MetadataCatalog,
        introspector: EnumIntrospector,
        hints: HintAggregator,
    ) -> None:
        self.catalog = catalog
        self.introspector = introspector
        self.hints = hints

    def matching_map_properties(self, filter: str | None) -> list[str]:
        """Map properties whose key position `filter` reaches into."""
        if filter is None:
            return []
        return [
            map_prop for map_prop in self.catalog.list_map_property_names()
            if filter.startswith(map_prop + MAP_KEY_SEPARATOR)
            and len(filter) > len(map_prop)
        ]

    def owning_map_property(self, name: str | None) -> PropertyMetadata | None:
        """The map property a `<map>.<key>` name belongs to, longest match first."""
        if name is None:
            return None
        owners = [
            map_prop for map_prop in self.catalog.list_map_property_names()
            if name.startswith(map_prop + MAP_KEY_SEPARATOR)
            and len(name) > len(map_prop)
        ]
        if not owners:
            return None
        return self.catalog.lookup_by_name(max(owners, key=len))

    @staticmethod
    def key_filter(full_filter: str, map_property: str) -> str:
        return full_filter[len(map_property) + 1:]

    def complete_keys(
        self,
        filter: str,
        start: int,
        caret_offset: int,
        diagnostics: DiagnosticsSink | None = None,
    ) -> list[CompletionItem]:
        items: list[CompletionItem] = []

        for map_prop in self.matching_map_properties(filter):
            meta = self.catalog.lookup_by_name(map_prop)
            if meta is None:
                continue

            key = self.key_filter(filter, map_prop)
            key_start = start + len(map_prop) + 1
            logger.debug("Completing key for map property %s from: %s", map_prop, key)

            def add_key(hint: ValueHint) -> None:
                items.append(
                    CompletionItem(
                        label=hint.value,
                        insert_text=hint.value,
                        start=key_start,
                        end=caret_offset,
                        kind=ItemKind.KEY,
                        detail=meta.type,
                        documentation=hint.description,
                    )
                )

            key_type = meta.type_descriptor.key_type
            if is_introspectable(key_type):
                self.introspector.complete(key_type, key, add_key)

            for hint in self.hints.key_hints(meta.hints, key):
                add_key(hint)

            self.hints.log_providers(map_prop, "key", meta.hints.key_providers, diagnostics)

        return items


class PropertyNameResolver:
    def __init__(self, catalog: MetadataCatalog, map_resolver: MapKeyValueResolver) -> None:
        self.catalog = catalog
        self.map_resolver = map_resolver

    def resolve(
        self,
        filter: str | None,
        start: int,
        caret_offset: int,
        preferences: CompletionPreferences,
        diagnostics: DiagnosticsSink | None = None,
    ) -> list[CompletionItem]:
        """
        Property name candidates for `filter`.

        When the filter reaches into the key position of a map property,
        only key candidates are produced.
        """
        logger.debug("Completing property name from: %s", filter)

        if filter is not None and self.map_resolver.matching_map_properties(filter):
            return self.map_resolver.complete_keys(filter, start, caret_offset, diagnostics)

        items: list[CompletionItem] = []
        seen: set[str] = set()
        for meta in self.catalog.query_by_name_prefix(filter):
            if meta.name in seen:
                continue
            # show error level deprecated props based on pref
            if meta.is_error_deprecated and not preferences.show_error_deprecated:
                continue

            seen.add(meta.name)
            items.append(self._property_item(meta, start, caret_offset, preferences))

        return items

    @staticmethod
    def _property_item(
        meta: PropertyMetadata,
        start: int,
        caret_offset: int,
        preferences: CompletionPreferences,
    ) -> CompletionItem:
        weight = 1 if meta.is_deprecated and preferences.sort_deprecated_last else 0
        return CompletionItem(
            label=meta.name,
            insert_text=meta.name,
            start=start,
            end=caret_offset,
            kind=ItemKind.PROPERTY,
            sort_weight=weight,
            detail=meta.type or None,
            documentation=meta.description or None,
            deprecated=meta.is_deprecated,
        )


class PropertyValueResolver:
    def __init__(
        self,
        catalog: MetadataCatalog,
        introspector: EnumIntrospector,
        hints: HintAggregator,
        map_resolver: MapKeyValueResolver,
    ) -> None:
        self.catalog = catalog
        self.introspector = introspector
        self.hints = hints
        self.map_resolver = map_resolver

    def resolve(
        self,
        property_name: str | None,
        filter: str | None,
        start: int,
        caret_offset: int,
        diagnostics: DiagnosticsSink | None = None,
    ) -> list[CompletionItem]:
        """
        Value candidates for a property, in group order: booleans, enum
        constants of the declared type, enum constants of the map value type,
        declared value hints. Groups are not deduplicated against each other.
        """
        logger.debug("Completing property value from: %s", filter)

        meta = self.catalog.lookup_by_name(property_name)
        if meta is None:
            # `<map>.<key>=` completes the value of a map entry
            meta = self.map_resolver.owning_map_property(property_name)
        if meta is None:
            return []

        items: list[CompletionItem] = []

        def add_value(hint: ValueHint) -> None:
            items.append(_value_item(hint, start, caret_offset, meta.type))

        descriptor: TypeDescriptor = meta.type_descriptor
        if descriptor.is_boolean:
            add_value(ValueHint("true"))
            add_value(ValueHint("false"))

        if is_introspectable(meta.type):
            self.introspector.complete(meta.type, filter, add_value)

        # not for collections
        if descriptor.is_map and is_introspectable(descriptor.value_type):
            self.introspector.complete(descriptor.value_type, filter, add_value)

        for hint in self.hints.value_hints(meta.hints, filter):
            add_value(hint)

        self.hints.log_providers(meta.name, "value", meta.hints.value_providers, diagnostics)

        return items
