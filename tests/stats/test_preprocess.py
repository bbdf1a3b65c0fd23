"""Tests for input normalization."""

import pytest
import pandas as pd
import numpy as np

from statgate.config import TestShape
from statgate.errors import InsufficientDataError, InvalidShapeError
from statgate.stats.preprocess import (
    Group,
    normalize_input,
    groups_from_table,
    parse_formula,
    compute_group_stats,
    paired_differences,
)


def test_single_vector_is_one_sample():
    """A single vector becomes one group named x."""
    groups, shape = normalize_input([1.0, 2.0, 3.0, 4.0])

    assert shape == TestShape.ONE_SAMPLE
    assert len(groups) == 1
    assert groups[0].name == "x"
    assert groups[0].values == (1.0, 2.0, 3.0, 4.0)


def test_two_vectors_two_sample_and_paired():
    """Two vectors are two-sample unless paired is set."""
    _, shape = normalize_input([1, 2, 3], [4, 5, 6])
    assert shape == TestShape.TWO_SAMPLE

    groups, shape = normalize_input([1, 2, 3], [4, 5, 7], paired=True)
    assert shape == TestShape.PAIRED
    assert [g.name for g in groups] == ["x", "y"]


def test_mapping_preserves_insertion_order():
    """Mapping keys become names, in insertion order."""
    data = {"zeta": [1, 2, 3], "alpha": [4, 5, 6], "mid": [7, 8, 9]}

    groups, shape = normalize_input(data)

    assert shape == TestShape.MULTI_GROUP
    assert [g.name for g in groups] == ["zeta", "alpha", "mid"]


def test_x_plus_group_list():
    """x plus a list of further vectors forms a multi-group analysis."""
    groups, shape = normalize_input([1, 2, 3], [[4, 5, 6], [7, 8, 9]])

    assert shape == TestShape.MULTI_GROUP
    assert [g.name for g in groups] == ["group_1", "group_2", "group_3"]


def test_series_names_used():
    """pandas Series names become group names."""
    a = pd.Series([1.0, 2.0, 3.0], name="baseline")
    b = pd.Series([2.0, 3.0, 5.0], name="followup")

    groups, _ = normalize_input(a, b)

    assert [g.name for g in groups] == ["baseline", "followup"]


def test_group_names_override():
    """Explicit group_names win over defaults."""
    groups, _ = normalize_input([1, 2, 3], [4, 5, 6], group_names=["control", "treatment"])

    assert [g.name for g in groups] == ["control", "treatment"]


def test_group_names_length_mismatch():
    """A wrong number of names is a shape error."""
    with pytest.raises(InvalidShapeError, match="group_names"):
        normalize_input([1, 2, 3], [4, 5, 6], group_names=["only_one"])


def test_duplicate_names_rejected():
    """Duplicate group names are a shape error."""
    with pytest.raises(InvalidShapeError, match="Duplicate"):
        normalize_input([[1, 2, 3], [4, 5, 6], [7, 8, 9]], group_names=["a", "a", "b"])


def test_missing_values_dropped_and_logged(caplog):
    """Missing entries are dropped with a warning, not an error."""
    with caplog.at_level("WARNING"):
        groups, _ = normalize_input([1.0, np.nan, 2.0, None, 3.0])

    assert groups[0].values == (1.0, 2.0, 3.0)
    assert "Dropped 2 missing value(s)" in caplog.text


def test_paired_drops_incomplete_pairs():
    """Incomplete pairs are dropped from both samples."""
    groups, _ = normalize_input([1, 2, np.nan, 4, 5], [2, 3, 4, np.nan, 7], paired=True)

    assert groups[0].values == (1.0, 2.0, 5.0)
    assert groups[1].values == (2.0, 3.0, 7.0)


def test_paired_unequal_length():
    """Paired samples of unequal length are a shape error."""
    with pytest.raises(InvalidShapeError, match="equal length"):
        normalize_input([1, 2, 3, 4], [1, 2, 3], paired=True)


def test_two_observations_insufficient():
    """A group with exactly 2 observations is rejected."""
    with pytest.raises(InsufficientDataError, match="at least 3"):
        normalize_input([1.0, 2.0])


def test_three_observations_accepted():
    """A group with exactly 3 observations is accepted."""
    groups, _ = normalize_input([1.0, 2.0, 4.0])
    assert groups[0].n == 3


def test_insufficient_after_missing_removed():
    """Size is checked after missing values are removed."""
    with pytest.raises(InsufficientDataError):
        normalize_input([1.0, np.nan, 2.0, np.nan])


def test_non_numeric_rejected():
    """Non-numeric entries are a shape error."""
    with pytest.raises(InvalidShapeError, match="non-numeric"):
        normalize_input([1.0, "abc", 3.0, 4.0])


def test_infinite_rejected():
    """Infinite values are a shape error."""
    with pytest.raises(InvalidShapeError, match="infinite"):
        normalize_input([1.0, np.inf, 3.0, 4.0])


def test_multi_group_requires_three_groups():
    """A group list of two is not silently turned into a two-sample test."""
    with pytest.raises(InvalidShapeError, match="at least 3 groups"):
        normalize_input([[1, 2, 3], [4, 5, 6]])


def test_explicit_shape_two_groups():
    """An explicit two_sample shape accepts a two-group list."""
    _, shape = normalize_input([[1, 2, 3], [4, 5, 6]], shape="two_sample")
    assert shape == TestShape.TWO_SAMPLE


def test_explicit_shape_count_mismatch():
    """An explicit shape must match the number of groups."""
    with pytest.raises(InvalidShapeError, match="requires 1 group"):
        normalize_input([1, 2, 3], [4, 5, 6], shape="one_sample")


def test_unsupported_input_type():
    """Scalars are not valid input."""
    with pytest.raises(InvalidShapeError, match="Unsupported"):
        normalize_input(42)


def test_group_is_immutable():
    """Groups cannot be mutated after construction."""
    groups, _ = normalize_input([1.0, 2.0, 3.0])
    g = groups[0]

    with pytest.raises(AttributeError):
        g.name = "other"

    arr = g.array
    arr[0] = 100.0
    assert g.values[0] == 1.0


def test_parse_formula():
    """Formulas split into value and group columns."""
    assert parse_formula("sbp ~ arm") == ("sbp", "arm")
    assert parse_formula("  y~g ") == ("y", "g")

    with pytest.raises(InvalidShapeError):
        parse_formula("sbp + arm")


def test_groups_from_table_order_of_appearance():
    """Group order follows first appearance in the table."""
    df = pd.DataFrame(
        {
            "arm": ["B", "A", "B", "C", "A", "C", None],
            "sbp": [1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0],
        }
    )

    values, names = groups_from_table(df, "sbp", "arm")

    assert names == ["B", "A", "C"]
    assert [list(v) for v in values] == [[1.0, 3.0], [2.0, 5.0], [4.0, 6.0]]


def test_groups_from_table_subset():
    """An explicit group list selects and orders groups."""
    df = pd.DataFrame({"arm": ["A", "B", "C"] * 3, "sbp": range(9)})

    _, names = groups_from_table(df, "sbp", "arm", groups=["C", "A"])
    assert names == ["C", "A"]

    with pytest.raises(InvalidShapeError, match="not found"):
        groups_from_table(df, "sbp", "arm", groups=["D"])


def test_groups_from_table_missing_column():
    """Missing columns are reported."""
    df = pd.DataFrame({"arm": ["A"], "sbp": [1.0]})

    with pytest.raises(InvalidShapeError, match="not found"):
        groups_from_table(df, "dbp", "arm")


def test_compute_group_stats():
    """Descriptive statistics per group."""
    groups = [
        Group(name="A", values=(1.0, 2.0, 3.0)),
        Group(name="B", values=(10.0, 20.0, 30.0, 40.0)),
    ]

    stats = compute_group_stats(groups)

    assert [s.group for s in stats] == ["A", "B"]
    assert stats[0].n == 3
    assert stats[0].mean == pytest.approx(2.0)
    assert stats[0].sd == pytest.approx(1.0)
    assert stats[1].median == pytest.approx(25.0)
    assert stats[1].min == 10.0
    assert stats[1].max == 40.0


def test_paired_differences():
    """Differences are x - y and named after both groups."""
    diff = paired_differences(
        [Group(name="before", values=(1.0, 2.0, 3.0)), Group(name="after", values=(2.0, 2.0, 5.0))]
    )

    assert diff.name == "before - after"
    assert diff.values == (-1.0, 0.0, -2.0)
