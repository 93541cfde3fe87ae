"""Variable and equation stores shared across the lines of one document."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Iterator

from .types import ValidationError
from .units import Quantity
from .values import SemanticValue

NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9_ ]*$")


def normalize_variable_name(name: str) -> str:
    """Collapse runs of whitespace so "tax  rate" and "tax rate" are one name."""
    return re.sub(r"\s+", " ", name).strip()


@dataclass(frozen=True)
class Variable:
    name: str
    value: SemanticValue
    raw_value: str = ""
    quantity: Quantity | None = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


class VariableStore:
    """Insertion-ordered map of normalized name -> Variable.

    Setters never raise; they report ``{"success": bool, "error": str}`` so a
    failing line cannot stop evaluation of the rest of the document.
    """

    def __init__(self):
        self._variables: dict[str, Variable] = {}

    def _validate(self, name: str) -> str:
        normalized = normalize_variable_name(name)
        if not normalized or not NAME_RE.match(normalized):
            raise ValidationError(f"Invalid variable name: {name!r}", "INVALID_VARIABLE_NAME")
        return normalized

    def set_variable_with_semantic_value(
        self, name: str, value: SemanticValue, raw_value: str = ""
    ) -> dict[str, Any]:
        try:
            normalized = self._validate(name)
        except ValidationError as exc:
            return {"success": False, "error": exc.message}
        existing = self._variables.get(normalized)
        now = datetime.now()
        quantity = getattr(value, "quantity", None) if value.kind == "unit" else None
        self._variables[normalized] = Variable(
            name=normalized,
            value=value,
            raw_value=raw_value,
            quantity=quantity,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )
        return {"success": True}

    def set_variable_with_metadata(self, variable: Variable) -> dict[str, Any]:
        try:
            normalized = self._validate(variable.name)
        except ValidationError as exc:
            return {"success": False, "error": exc.message}
        self._variables[normalized] = replace(variable, name=normalized)
        return {"success": True}

    def get(self, name: str) -> Variable | None:
        return self._variables.get(normalize_variable_name(name))

    def get_value(self, name: str) -> SemanticValue | None:
        variable = self.get(name)
        return variable.value if variable else None

    def has(self, name: str) -> bool:
        return normalize_variable_name(name) in self._variables

    def delete(self, name: str) -> bool:
        return self._variables.pop(normalize_variable_name(name), None) is not None

    def clear(self) -> None:
        self._variables.clear()

    def context(self) -> dict[str, Variable]:
        """Read-only snapshot in insertion order."""
        return dict(self._variables)

    def names(self) -> list[str]:
        return list(self._variables)

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __iter__(self) -> Iterator[Variable]:
        return iter(list(self._variables.values()))

    def __len__(self) -> int:
        return len(self._variables)


@dataclass(frozen=True)
class EquationEntry:
    variable_name: str
    expression: str
    source_line: int


class EquationStore:
    """Append-only log of ``name = expression`` lines, scanned backward by the solver."""

    def __init__(self):
        self._entries: list[EquationEntry] = []

    def record(self, variable_name: str, expression: str, source_line: int) -> None:
        expression = expression.strip()
        if not expression:
            return
        self._entries.append(
            EquationEntry(normalize_variable_name(variable_name), expression, source_line)
        )

    def entries(self) -> list[EquationEntry]:
        return list(self._entries)

    def before(self, line: int) -> list[EquationEntry]:
        """Entries recorded on earlier lines, most recent first."""
        return [entry for entry in reversed(self._entries) if entry.source_line < line]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
