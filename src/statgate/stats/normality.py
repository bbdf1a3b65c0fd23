"""Normality testing with Shapiro-Wilk."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats

from statgate.stats.preprocess import Group, MIN_GROUP_SIZE

logger = logging.getLogger(__name__)

SHAPIRO_MAX_N = 5000


@dataclass(frozen=True)
class NormalityVerdict:
    """Shapiro-Wilk result for one sample."""

    group: str
    n: int
    statistic: float
    p_value: float
    is_normal: bool
    test: str = "Shapiro-Wilk"


def shapiro_safe(x: np.ndarray) -> Tuple[float, float, int]:
    """Perform Shapiro-Wilk test with safe handling.

    Args:
        x: Array of values

    Returns:
        Tuple of (W_statistic, p_value, n_valid)

    Notes:
        - Returns (nan, nan, n) if n < 3 or constant values
        - Samples above 5000 are tested in full; SciPy's p-value is less
          accurate there and a warning is logged
    """
    x = np.asarray(x, dtype=float)
    x = x[np.isfinite(x)]
    n = len(x)

    if n < MIN_GROUP_SIZE:
        return np.nan, np.nan, n

    if np.ptp(x) == 0.0:
        return np.nan, np.nan, n

    if n > SHAPIRO_MAX_N:
        logger.warning(
            "Shapiro-Wilk on n=%d (> %d); p-value may be inaccurate", n, SHAPIRO_MAX_N
        )

    W, p = stats.shapiro(x)
    return float(W), float(p), int(n)


def assess_normality(groups: Sequence[Group], alpha: float) -> Tuple[NormalityVerdict, ...]:
    """Test normality of each group independently.

    Args:
        groups: Groups to test
        alpha: Significance level; a group is normal when p > alpha

    Returns:
        Tuple of NormalityVerdict in group order. A group whose test is
        undefined (constant values) gets NaN statistics and is not normal.
    """
    verdicts = []
    for g in groups:
        W, p, n = shapiro_safe(g.array)
        is_normal = bool(np.isfinite(p) and p > alpha)
        verdicts.append(
            NormalityVerdict(group=g.name, n=n, statistic=W, p_value=p, is_normal=is_normal)
        )
        logger.debug("Shapiro-Wilk %s: W=%.4f p=%.4g normal=%s", g.name, W, p, is_normal)
    return tuple(verdicts)


def aggregate_normality(verdicts: Sequence[NormalityVerdict]) -> bool:
    """Return True iff there is at least one verdict and all of them are normal."""
    return len(verdicts) > 0 and all(v.is_normal for v in verdicts)


def normality_table(verdicts: Sequence[NormalityVerdict]) -> pd.DataFrame:
    """Normality verdicts as a DataFrame.

    Returns:
        DataFrame with columns: group, n, test, W, p_value, normal
    """
    rows = [
        {
            "group": v.group,
            "n": v.n,
            "test": v.test,
            "W": v.statistic,
            "p_value": v.p_value,
            "normal": v.is_normal,
        }
        for v in verdicts
    ]
    return pd.DataFrame(rows, columns=["group", "n", "test", "W", "p_value", "normal"])
