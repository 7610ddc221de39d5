"""Exceptions raised by the completion core."""


class CompletionError(Exception):
    """Base class for completion core errors."""


class OffsetOutOfRange(CompletionError, IndexError):
    """The caret offset does not address a position in the document."""

    def __init__(self, offset: int, length: int) -> None:
        super().__init__(f"Offset {offset} outside document of length {length}")
        self.offset = offset
        self.length = length


class TypeUnavailable(CompletionError, LookupError):
    """A type could not be loaded by the type loader."""

    def __init__(self, type_name: str) -> None:
        super().__init__(f"Type unavailable: {type_name}")
        self.type_name = type_name
