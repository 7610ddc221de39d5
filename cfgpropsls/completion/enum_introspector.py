"""
Enum constant enumeration through an injected type loader.

Absence of enum data is a normal outcome: any loader failure produces zero
candidates and is never propagated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from cfgpropsls.workspace.metadata_cache import ValueHint

logger = logging.getLogger(__name__)

HintSink = Callable[[ValueHint], None]


class TypeLoader(Protocol):
    """Environment capability that knows the constants of enum types."""

    def load_enum_constants(self, type_name: str) -> Sequence[str]:
        """
        Return the enum constants of a type, in declaration order.

        Raises:
            TypeUnavailable: if the type is unknown or not an enum
        """
        ...


class EnumIntrospector:
    def __init__(self, type_loader: TypeLoader | None = None) -> None:
        self.type_loader = type_loader

    def complete(self, type_name: str, filter: str | None, sink: HintSink) -> int:
        """
        Emit lowercased enum constants of `type_name` containing `filter`.

        Returns the number of candidates emitted.
        """
        if self.type_loader is None or not type_name:
            return 0

        try:
            constants = list(self.type_loader.load_enum_constants(type_name))
        except Exception as e:
            # enum not available to the loader, no completion possible
            logger.debug("No enum constants for %s: %s", type_name, e)
            return 0

        needle = filter.lower() if filter is not None else None
        count = 0
        for constant in constants:
            name = str(constant).lower()
            if needle is None or needle in name:
                sink(ValueHint(value=name))
                count += 1

        return count
