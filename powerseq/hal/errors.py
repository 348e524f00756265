"""Power sequence error kinds.

Implementations raise their own exception types. Generic code classifies them
with `error_kind`, which asks the error for its `kind()` and falls back to
`ErrorKind.OTHER`.
"""
from __future__ import annotations

import enum
from typing import Protocol, runtime_checkable


class ErrorKind(enum.Enum):
    """Common set of power sequence errors.

    New kinds may be added; generic code should treat kinds it does not know
    as `OTHER`.
    """

    OTHER = "other"

    def kind(self) -> ErrorKind:
        return self

    def __str__(self) -> str:
        if self is ErrorKind.OTHER:
            return "A different error occurred. The original error may contain more information"
        return self.value  # pragma: no cover


@runtime_checkable
class Error(Protocol):
    """Anything that can map itself onto a common `ErrorKind`."""

    def kind(self) -> ErrorKind: ...


def error_kind(err: object) -> ErrorKind:
    kind = getattr(err, "kind", None)
    if callable(kind):
        result = kind()
        if isinstance(result, ErrorKind):
            return result
    return ErrorKind.OTHER
