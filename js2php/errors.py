"""Translation errors."""

from __future__ import annotations

import json
from typing import Optional


class TranslationError(Exception):
    """Base class for errors raised while translating a program."""


class SourceSyntaxError(TranslationError):
    """Raised when the JavaScript source does not parse cleanly."""

    def __init__(self, location, snippet: str = ""):
        self.location = location
        self.snippet = snippet
        detail = f" near {snippet!r}" if snippet else ""
        super().__init__(f"Syntax error at {location}{detail}")


class UnsupportedConstructError(TranslationError):
    """Raised when the dispatcher meets a node kind it has no rule for.

    Carries the offending ``kind``, its source ``location`` and a structural
    dump of the node so the caller can see exactly what was rejected.
    """

    def __init__(self, node, reason: Optional[str] = None):
        self.kind = node.type
        self.location = node.location
        self.reason = reason
        self.structure = node.to_dict()
        because = f" ({reason})" if reason else ""
        super().__init__(
            f"'{self.kind}' not implemented at {self.location}{because}: "
            f"{json.dumps(self.structure, default=str)}"
        )
