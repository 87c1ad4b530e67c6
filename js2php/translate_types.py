"""Translation configuration types (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TranslateOptions:
    """Groups the options that shape the emitted PHP."""

    concise_arrays: bool = True
    namespace: Optional[str] = None
    watermark: Optional[str] = None

    @property
    def array_open(self) -> str:
        return "[" if self.concise_arrays else "array("

    @property
    def array_close(self) -> str:
        return "]" if self.concise_arrays else ")"
