from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Optional


@dataclass(frozen=True)
class MapError(Exception):
    """Error envelope shared by loading, validation, lint and session misuse.

    ``path`` points into the map document (``nodes[2].status``,
    ``links[0]``) or names the CLI argument at fault.
    """

    source: ClassVar[str] = "map"

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    @property
    def location(self) -> str:
        loc = ":".join(p for p in (self.file, self.path) if p)
        return loc or "<map>"

    def __str__(self) -> str:
        return f"{self.location}: {self.code}: {self.message}"

    def to_item(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "file": self.file,
            "path": self.path,
            "severity": "error",
            "source": self.source,
        }


class MapLoadError(MapError):
    source = "load"


class MapValidationError(MapError):
    source = "validate"


class MapLintError(MapValidationError):
    source = "lint"


class MapStateError(MapError):
    """Raised when a caller breaks the single-owner rule for positions."""

    source = "session"
