"""Pytest configuration and fixtures."""

import pytest
import numpy as np
import pandas as pd


@pytest.fixture
def rng():
    """Seeded generator; tests build their data from it, never from a global seed."""
    return np.random.default_rng(20240611)


@pytest.fixture
def before_after():
    """Blood-pressure style paired measurements."""
    before = [85, 87, 82, 90, 88, 86, 84, 89]
    after = [88, 90, 85, 92, 91, 89, 87, 91]
    return before, after


@pytest.fixture
def normal_groups():
    """Three equally spaced, exactly normal-looking groups with means 10/12/14, sd ~2."""
    from scipy import stats

    quantiles = stats.norm.ppf((np.arange(1, 21) - 0.5) / 20)
    base = 2.0 * quantiles / np.std(quantiles, ddof=1)
    return {
        "low": list(10.0 + base),
        "mid": list(12.0 + base[::-1]),
        "high": list(14.0 + np.roll(base, 7)),
    }


@pytest.fixture
def skewed_sample():
    """Strongly right-skewed sample that fails Shapiro-Wilk."""
    return [1.0, 1.1, 1.2, 1.3, 1.4, 1.5, 1.6, 1.8, 2.0, 2.5, 3.5, 6.0, 12.0, 30.0, 80.0]


@pytest.fixture
def long_table(normal_groups):
    """Long-format table with a value column and a group column."""
    rows = []
    for name, values in normal_groups.items():
        rows.extend({"arm": name, "sbp": v} for v in values)
    return pd.DataFrame(rows)
