"""Type definitions and result dataclasses for consistent API responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class EvalResult:
    """Result of evaluating a single line."""

    ok: bool
    kind: str | None = None  # render node type: "mathResult", "combined", ...
    result: str | None = None
    value_type: str | None = None
    variable: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result_dict: dict[str, Any] = {"ok": self.ok}
        if self.kind is not None:
            result_dict["kind"] = self.kind
        if self.result is not None:
            result_dict["result"] = self.result
        if self.value_type is not None:
            result_dict["type"] = self.value_type
        if self.variable is not None:
            result_dict["variable"] = self.variable
        if self.error is not None:
            result_dict["error"] = self.error
        return result_dict

    def __repr__(self) -> str:
        """Return string representation of the result."""
        if not self.ok:
            return f"EvalResult(ok=False, error={self.error!r})"
        parts = [f"ok={self.ok}"]
        if self.kind is not None:
            parts.append(f"kind={self.kind!r}")
        if self.result is not None:
            parts.append(f"result={self.result!r}")
        if self.variable is not None:
            parts.append(f"variable={self.variable!r}")
        return f"EvalResult({', '.join(parts)})"


@dataclass
class DocumentResult:
    """Result of evaluating a whole notepad document, one entry per line."""

    lines: list[dict[str, Any]] = field(default_factory=list)
    variables: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(line.get("type") != "error" for line in self.lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"ok": self.ok, "lines": self.lines, "variables": self.variables}

    def __repr__(self) -> str:
        return f"DocumentResult(ok={self.ok}, lines={len(self.lines)})"


class ValidationError(Exception):
    """Raised when input validation fails."""

    def __init__(self, message: str, code: str = "VALIDATION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class ParseError(Exception):
    """Raised when tokenizing or parsing an expression fails."""

    def __init__(self, message: str, code: str = "PARSE_ERROR", position: int | None = None):
        self.message = message
        self.code = code
        self.position = position
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class UnitError(Exception):
    """Raised by the units layer for unknown units or impossible conversions."""

    def __init__(self, message: str, code: str = "UNIT_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


class SolverError(Exception):
    """Raised when an equation cannot be parsed for solving."""

    def __init__(self, message: str, code: str = "SOLVER_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message
