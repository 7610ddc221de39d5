from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ItemKind(Enum):
    PROPERTY = "property"
    KEY = "key"
    VALUE = "value"


@dataclass(frozen=True)
class CompletionItem:
    """
    A single completion candidate.

    Carries everything a client needs to render and apply it: the text to
    show, the text to insert and the absolute span `[start, end)` it replaces.
    """

    label: str
    insert_text: str
    start: int
    end: int
    kind: ItemKind
    sort_weight: int = 0
    detail: str | None = None
    documentation: str | None = None
    deprecated: bool = False
