"""Notecalc package: a notepad calculator with units, currencies, dates, percentages and solving."""

__all__ = [
    "config",
    "logging_config",
    "types",
    "values",
    "units",
    "temporal",
    "literals",
    "parser",
    "lines",
    "stores",
    "function_manager",
    "expression",
    "solver",
    "datemath",
    "render",
    "evaluators",
    "pipeline",
    "api",
    "cli",
]

# Public API exports

__api_exports__ = [
    "Notepad",
    "evaluate",
    "evaluate_document",
]
