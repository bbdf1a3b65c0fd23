"""Public API for automatic test selection."""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import pandas as pd

from statgate.config import AnalysisConfig, TestShape
from statgate.errors import InvalidShapeError
from statgate.stats.preprocess import (
    normalize_input,
    groups_from_table,
    parse_formula,
    paired_differences,
)
from statgate.stats.normality import assess_normality, aggregate_normality
from statgate.stats.selection import describe_selection
from statgate.stats.tests import execute, run_posthoc
from statgate.stats.reports import AnalysisResult, assemble_result

logger = logging.getLogger(__name__)


def run_test(
    x: Any,
    y: Any = None,
    *,
    mu: float = 0.0,
    alternative: str = "two-sided",
    alpha: float = 0.05,
    conf_level: float = 0.95,
    paired: bool = False,
    group_names: Optional[Sequence[str]] = None,
    shape: Optional[str] = None,
) -> AnalysisResult:
    """Check normality, pick the matching test and run it.

    Args:
        x: Primary data: a vector, a mapping of name -> vector, or a list of vectors
        y: Optional second vector, or a list of further vectors
        mu: Hypothesized mean for one-sample tests (default: 0)
        alternative: "two-sided", "less" or "greater" (t-tests and Wilcoxon only)
        alpha: Significance threshold for normality, omnibus and post-hoc (default: 0.05)
        conf_level: Confidence level for t-test intervals (default: 0.95)
        paired: Treat two samples as paired observations
        group_names: Optional names, in group order
        shape: Optional explicit shape ("one_sample", "two_sample", "paired",
            "multi_group"); otherwise derived from the input form

    Returns:
        AnalysisResult

    Raises:
        InvalidParameterError: alpha/conf_level outside (0, 1) or unknown alternative
        InvalidShapeError: Malformed input or group count not matching the shape
        InsufficientDataError: A group has fewer than 3 observations
        DegenerateInputError: Zero-variance data make the test undefined

    Example:
        >>> from statgate import run_test
        >>> result = run_test([85, 87, 82, 90], [88, 90, 85, 92], paired=True)
        >>> print(result.recommendation)
    """
    config = AnalysisConfig(
        mu=mu,
        alternative=alternative,
        alpha=alpha,
        conf_level=conf_level,
        paired=paired,
        shape=shape,
    )
    return run_test_from_config(x, y, config, group_names=group_names)


def run_test_from_config(
    x: Any,
    y: Any,
    config: AnalysisConfig,
    group_names: Optional[Sequence[str]] = None,
) -> AnalysisResult:
    """Run an analysis from an AnalysisConfig object.

    Notes:
        - Paired designs test normality of the x - y differences.
        - One non-normal group sends the whole analysis to the
          non-parametric branch.
        - Post-hoc comparisons run only for multi-group analyses whose
          omnibus p-value is <= alpha.
    """
    groups, shape = normalize_input(
        x, y, paired=config.paired, group_names=group_names, shape=config.shape
    )
    logger.info(
        "Analysis shape: %s, groups: %s",
        shape.value,
        ", ".join(f"{g.name} (n={g.n})" for g in groups),
    )

    # ──────────────────────────────────────────────────────────────
    # 1. Normality gate
    # ──────────────────────────────────────────────────────────────
    tested = [paired_differences(groups)] if shape == TestShape.PAIRED else groups
    normality = assess_normality(tested, config.alpha)
    all_normal = aggregate_normality(normality)

    # ──────────────────────────────────────────────────────────────
    # 2. Selection
    # ──────────────────────────────────────────────────────────────
    selection = describe_selection(shape, all_normal, normality)
    logger.info(selection.rationale)

    # ──────────────────────────────────────────────────────────────
    # 3. Execution (+ post-hoc)
    # ──────────────────────────────────────────────────────────────
    outcome = execute(selection.procedure, groups, config)

    posthoc = None
    if shape == TestShape.MULTI_GROUP:
        if outcome.p_value <= config.alpha:
            posthoc = run_posthoc(selection.procedure, groups, config.alpha)
        else:
            logger.debug("Omnibus p = %.4g > alpha; skipping post-hoc", outcome.p_value)

    # ──────────────────────────────────────────────────────────────
    # 4. Assembly
    # ──────────────────────────────────────────────────────────────
    return assemble_result(groups, shape, normality, selection, outcome, posthoc, config)


def run_test_table(
    data: pd.DataFrame,
    value_col: Optional[str] = None,
    group_col: Optional[str] = None,
    *,
    formula: Optional[str] = None,
    groups: Optional[Sequence[str]] = None,
    mu: float = 0.0,
    alternative: str = "two-sided",
    alpha: float = 0.05,
    conf_level: float = 0.95,
    paired: bool = False,
    shape: Optional[str] = None,
) -> AnalysisResult:
    """Run an analysis on a value column split by a grouping column.

    Args:
        data: Input dataframe
        value_col: Numeric column with the observations
        group_col: Column with group labels
        formula: Alternative to value_col/group_col, e.g. ``"sbp ~ arm"``
        groups: Optional subset/order of group labels
        mu, alternative, alpha, conf_level, paired, shape: As in run_test

    Returns:
        AnalysisResult

    Notes:
        Tables are multi-group by default and need three or more groups.
        For two groups pass ``paired=True`` (rows matched by position within
        each group) or ``shape="two_sample"``.
    """
    if formula is not None:
        if value_col is not None or group_col is not None:
            raise InvalidShapeError("Pass either formula or value_col/group_col, not both")
        value_col, group_col = parse_formula(formula)
    if value_col is None or group_col is None:
        raise InvalidShapeError("value_col and group_col (or formula) are required")

    values, names = groups_from_table(data, value_col, group_col, groups)
    return run_test(
        values,
        mu=mu,
        alternative=alternative,
        alpha=alpha,
        conf_level=conf_level,
        paired=paired,
        group_names=names,
        shape=shape,
    )


