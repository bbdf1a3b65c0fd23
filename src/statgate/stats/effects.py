"""Effect size calculations attached to test outcomes."""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy import stats as sp_stats


def cohen_d(x: np.ndarray, y: np.ndarray) -> float:
    """Calculate Cohen's d effect size.

    Args:
        x: First group values
        y: Second group values

    Returns:
        Cohen's d (pooled standard deviation)

    Notes:
        Returns NaN if insufficient data or zero variance
    """
    x, y = np.asarray(x, dtype=float), np.asarray(y, dtype=float)
    nx, ny = len(x), len(y)

    if nx < 2 or ny < 2:
        return np.nan

    sx, sy = np.var(x, ddof=1), np.var(y, ddof=1)
    sp2 = ((nx - 1) * sx + (ny - 1) * sy) / (nx + ny - 2)

    if not np.isfinite(sp2) or sp2 <= 0:
        return np.nan

    return float((np.mean(x) - np.mean(y)) / np.sqrt(sp2))


def one_sample_d(x: np.ndarray, mu: float = 0.0) -> float:
    """Standardized mean difference of one sample from ``mu``.

    Used for paired designs on the vector of differences (d_z).
    """
    x = np.asarray(x, dtype=float)
    if len(x) < 2:
        return np.nan
    sd = np.std(x, ddof=1)
    if not np.isfinite(sd) or sd <= 0:
        return np.nan
    return float((np.mean(x) - mu) / sd)


def rank_biserial(x: np.ndarray, y: np.ndarray) -> float:
    """Calculate rank-biserial correlation from Mann-Whitney U.

    Args:
        x: First group values
        y: Second group values

    Returns:
        Rank-biserial correlation in range [-1, 1]; positive when x tends
        to exceed y

    Notes:
        Computed as: r = 2*U_x / (nx * ny) - 1
    """
    x, y = np.asarray(x, dtype=float), np.asarray(y, dtype=float)
    nx, ny = len(x), len(y)

    if nx == 0 or ny == 0:
        return np.nan

    U, _ = sp_stats.mannwhitneyu(x, y, alternative="two-sided")
    return float(2.0 * U / (nx * ny) - 1.0)


def signed_rank_biserial(d: np.ndarray) -> float:
    """Matched-pairs rank-biserial correlation for a vector of differences.

    r = (R+ - R-) / (R+ + R-), with zero differences dropped.
    """
    d = np.asarray(d, dtype=float)
    d = d[d != 0]
    if len(d) == 0:
        return np.nan
    ranks = sp_stats.rankdata(np.abs(d))
    r_plus = ranks[d > 0].sum()
    r_minus = ranks[d < 0].sum()
    return float((r_plus - r_minus) / (r_plus + r_minus))


def eta_squared(groups: Sequence[np.ndarray]) -> float:
    """Proportion of total variance explained by group membership (ANOVA)."""
    arrays = [np.asarray(g, dtype=float) for g in groups]
    pooled = np.concatenate(arrays)
    ss_total = np.sum((pooled - pooled.mean()) ** 2)
    if ss_total <= 0:
        return np.nan
    ss_between = sum(len(g) * (g.mean() - pooled.mean()) ** 2 for g in arrays)
    return float(ss_between / ss_total)


def epsilon_squared(H: float, n_total: int) -> float:
    """Epsilon-squared effect size for a Kruskal-Wallis H statistic."""
    if n_total <= 1 or not np.isfinite(H):
        return np.nan
    return float(H / (n_total - 1))
