"""
Line context parsing for `key=value` configuration files.

Classifies what the user is completing from the text between the start of
the caret's line and the caret itself.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, replace
from enum import Enum

logger = logging.getLogger(__name__)

PROPERTY_NAME_PATTERN = re.compile(r"[^=\s]+")
COMMENT_MARKER = "#"
BANG_COMMENT_MARKER = "!"


class CompletionKind(Enum):
    """Kind of completion requested at the caret."""

    NAME = "name"                   # property name
    VALUE = "value"                 # value of a property
    MAP_KEY_NAME = "map_key_name"   # key of a map property (left of '=')
    MAP_KEY_VALUE = "map_key_value" # value of a map property entry


@dataclass(frozen=True)
class CompletionContext:
    """Per-request description of the text around the caret."""

    line_to_caret: str
    caret_offset: int
    line_start_offset: int
    kind: CompletionKind
    name_prefix: str | None
    value_filter: str | None
    replacement_start: int
    name_start: int

    def with_kind(self, kind: CompletionKind) -> CompletionContext:
        return replace(self, kind=kind)


class LineContextParser:
    """Tokenizes the current line up to the caret."""

    def parse(self, line_to_caret: str, caret_offset: int) -> CompletionContext | None:
        """
        Classify the completion request.

        Args:
            line_to_caret: Text from the start of the line to the caret
            caret_offset: Absolute offset of the caret in the document

        Returns:
            A CompletionContext, or None when no completion applies
            (the line is a comment).
        """
        logger.debug("Completion on: %s", line_to_caret)
        if self._is_comment(line_to_caret):
            return None

        line_start = caret_offset - len(line_to_caret)
        name_region, equal_sign, value_region = line_to_caret.partition("=")

        # Last token wins: indentation or stray tokens may precede the key
        name_prefix = None
        name_prefix_offset = len(name_region)
        for match in PROPERTY_NAME_PATTERN.finditer(name_region):
            name_prefix = match.group()
            name_prefix_offset = match.start()
        name_start = line_start + name_prefix_offset

        if not equal_sign:
            return CompletionContext(
                line_to_caret=line_to_caret,
                caret_offset=caret_offset,
                line_start_offset=line_start,
                kind=CompletionKind.NAME,
                name_prefix=name_prefix,
                value_filter=None,
                replacement_start=name_start,
                name_start=name_start,
            )

        equal_sign_offset = len(name_region)
        value_filter = value_region.strip() or None
        if value_filter is None:
            replacement_start = line_start + equal_sign_offset + 1
        else:
            # First occurrence after '=': may mis-anchor if the filter recurs
            replacement_start = line_start + line_to_caret.index(
                value_filter, equal_sign_offset
            )

        return CompletionContext(
            line_to_caret=line_to_caret,
            caret_offset=caret_offset,
            line_start_offset=line_start,
            kind=CompletionKind.VALUE,
            name_prefix=name_prefix,
            value_filter=value_filter,
            replacement_start=replacement_start,
            name_start=name_start,
        )

    @staticmethod
    def _is_comment(line_to_caret: str) -> bool:
        if COMMENT_MARKER in line_to_caret:
            return True
        return line_to_caret.lstrip().startswith(BANG_COMMENT_MARKER)
