"""Plain success and error bodies returned by the proxy's own endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class SuccessResponse:
    """A success body with an optional numeric code."""

    message: str
    code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        code = {} if self.code is None else {"code": self.code}
        return {**code, "message": self.message}


@dataclass
class ErrorResponse:
    """An error body with an optional numeric code."""

    error: str
    code: int | None = None

    def to_dict(self) -> dict[str, Any]:
        code = {} if self.code is None else {"code": self.code}
        return {**code, "error": self.error}