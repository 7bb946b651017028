"""Aljabar package: expression model, function registry, equation classifier and solver dispatch."""

__all__ = [
    "config",
    "types",
    "expression",
    "formatter",
    "bridge",
    "parser",
    "registry",
    "functions",
    "classifier",
    "explanation",
    "numeric",
    "solver",
    "systems",
    "matrix_solver",
    "differential",
    "cache_manager",
    "dispatcher",
    "api",
    "cli",
    "logging_config",
]

# Public API exports

__api_exports__ = [
    "solve_equation",
    "solve_system",
    "classify_equation",
    "evaluate_function",
    "SolverDispatcher",
    "default_registry",
    "classify",
]
