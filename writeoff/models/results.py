"""Result type returned by every service operation."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Failure categories, mapped to HTTP status codes by the web layer."""

    MISSING_CREDENTIAL = "missing_credential"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"
    UPSTREAM = "upstream"


@dataclass
class Result:
    """Outcome of a single best-effort operation."""

    success: bool
    data: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, **data) -> "Result":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> "Result":
        return cls(success=False, error=error, error_kind=kind)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        """Convert to the JSON body returned by the API."""
        if self.success:
            return {"success": True, **self.data}
        return {"success": False, "error": self.error}
