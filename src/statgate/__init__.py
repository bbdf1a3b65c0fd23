"""
statgate: normality-gated statistical test selection.

This package provides:
- Input normalization for vectors, paired vectors, group lists and tables
- Shapiro-Wilk normality gate choosing parametric or nonparametric tests
- One-sample, two-sample, paired and multi-group tests with post-hoc comparisons
- Immutable results with descriptive statistics and a plain-language recommendation
- CLI tools
"""

__version__ = "0.1.0"

from statgate.config import AnalysisConfig, Alternative, TestShape
from statgate.errors import (
    StatgateError,
    InsufficientDataError,
    InvalidShapeError,
    InvalidParameterError,
    DegenerateInputError,
)
from statgate.stats import run_test, run_test_from_config, run_test_table, AnalysisResult, Procedure

__all__ = [
    "__version__",
    "run_test",
    "run_test_from_config",
    "run_test_table",
    "AnalysisResult",
    "AnalysisConfig",
    "Alternative",
    "TestShape",
    "Procedure",
    "StatgateError",
    "InsufficientDataError",
    "InvalidShapeError",
    "InvalidParameterError",
    "DegenerateInputError",
]
