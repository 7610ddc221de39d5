"""
Textual parsing of metadata type signatures.

Only the two-parameter map container is recognised. Nested generics in the
value position are passed through as an opaque string.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

logger = logging.getLogger(__name__)

# Key ends at the first comma; the value keeps any nested generics
MAP_TYPE_PATTERN = re.compile(r"java\.util\.Map<([^,]+),(.*)>")

BOOLEAN_TYPES = frozenset({"java.lang.Boolean", "boolean"})


class ContainerKind(Enum):
    SCALAR = "scalar"
    MAP = "map"


@dataclass(frozen=True)
class TypeDescriptor:
    """Structured view of a property type signature."""

    signature: str
    container: ContainerKind
    key_type: str = ""
    value_type: str = ""

    @property
    def is_map(self) -> bool:
        return self.container is ContainerKind.MAP

    @property
    def is_boolean(self) -> bool:
        return self.signature in BOOLEAN_TYPES or self.value_type in BOOLEAN_TYPES

    @staticmethod
    def parse(signature: str | None) -> TypeDescriptor:
        return _parse_signature(signature or "")

    @staticmethod
    def clear_cache() -> None:
        """Drop cached parses; call whenever the metadata catalog reloads."""
        _parse_signature.cache_clear()


def is_introspectable(type_name: str) -> bool:
    """True for a plain type name that may be loaded as an enum."""
    return bool(type_name) and "<" not in type_name


@lru_cache(maxsize=1024)
def _parse_signature(signature: str) -> TypeDescriptor:
    match = MAP_TYPE_PATTERN.fullmatch(signature)
    if not match:
        return TypeDescriptor(signature=signature, container=ContainerKind.SCALAR)

    key_type = match.group(1).strip()
    value_type = match.group(2).strip()
    logger.debug("Map key data type: %s", key_type)
    logger.debug("Map value data type: %s", value_type)
    return TypeDescriptor(
        signature=signature,
        container=ContainerKind.MAP,
        key_type=key_type,
        value_type=value_type,
    )
