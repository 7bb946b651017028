"""Centralized configuration for Aljabar.

This module defines:
- Numeric tolerances used by the solvers and the function registry
- Numeric root-search configuration (guesses, steps, search interval)
- Input validation limits for the text parser (length, depth, node count)
- Cache sizes for the explicit solve cache
- SymPy parse transformations and regex patterns for parsing

Configuration can be overridden via:
- CLI flags (see cli.py)
- Environment variables (prefixed with ALJABAR_)
"""

import importlib.metadata
import os
import re

from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    standard_transformations,
)

# Version is defined in pyproject.toml [project] section
try:
    VERSION = importlib.metadata.version("aljabar")
except importlib.metadata.PackageNotFoundError:
    VERSION = "0.1.0"

# Solver configuration
NUMERIC_FALLBACK_ENABLED = (
    os.getenv("ALJABAR_NUMERIC_FALLBACK_ENABLED", "true").lower() == "true"
)
OUTPUT_PRECISION = int(os.getenv("ALJABAR_OUTPUT_PRECISION", "6"))

# Input validation limits
MAX_INPUT_LENGTH = int(os.getenv("ALJABAR_MAX_INPUT_LENGTH", "10000"))  # characters
MAX_EXPRESSION_DEPTH = int(
    os.getenv("ALJABAR_MAX_EXPRESSION_DEPTH", "100")
)  # tree depth
MAX_EXPRESSION_NODES = int(
    os.getenv("ALJABAR_MAX_EXPRESSION_NODES", "5000")
)  # total nodes

# Cache configuration
CACHE_SIZE_SOLVE = int(os.getenv("ALJABAR_CACHE_SIZE_SOLVE", "256"))

# Numeric solver configuration
MAX_NSOLVE_GUESSES = int(os.getenv("ALJABAR_MAX_NSOLVE_GUESSES", "50"))
MAX_NSOLVE_STEPS = int(
    os.getenv("ALJABAR_MAX_NSOLVE_STEPS", "80")
)  # Maximum steps for nsolve
COARSE_GRID_MIN_SIZE = int(
    os.getenv("ALJABAR_COARSE_GRID_MIN_SIZE", "12")
)  # Maximum number of bracketed guesses refined by nsolve
NUMERIC_SEARCH_RADIUS = float(
    os.getenv("ALJABAR_NUMERIC_SEARCH_RADIUS", "12.566370614359172")
)  # Root scan covers [-radius, radius] (default 4*pi)

# Numeric tolerance constants
NUMERIC_TOLERANCE = float(
    os.getenv("ALJABAR_NUMERIC_TOLERANCE", "1e-8")
)  # For imaginary part filtering and residual checks
ROOT_SEARCH_TOLERANCE = float(
    os.getenv("ALJABAR_ROOT_SEARCH_TOLERANCE", "1e-12")
)  # For root finding precision
ROOT_DEDUP_TOLERANCE = float(
    os.getenv("ALJABAR_ROOT_DEDUP_TOLERANCE", "1e-6")
)  # For deduplicating roots

# Logging defaults (CLI flags take precedence)
LOG_LEVEL = os.getenv("ALJABAR_LOG_LEVEL", "WARNING")
LOG_FILE = os.getenv("ALJABAR_LOG_FILE") or None

TRANSFORMATIONS = standard_transformations + (
    implicit_multiplication_application,
    convert_xor,
)

VAR_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

PRIME_REGEX = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)('+)")
FORBIDDEN_TOKENS = ("__", "import", "lambda", "exec", "eval", "open", "getattr")
