from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PowerSeqError(Exception):
    """Base error envelope. Transformation problems are raised, never partially applied."""

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<source>"
        return f"{loc}: {self.code}: {self.message}"


class DeclarationLoadError(PowerSeqError):
    pass


class ExpansionError(PowerSeqError):
    pass


class DeclarationLintError(PowerSeqError):
    pass
