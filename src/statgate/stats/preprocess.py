"""Input normalization: turn raw vectors, group lists and tables into groups."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from statgate.config import TestShape
from statgate.errors import InsufficientDataError, InvalidShapeError

logger = logging.getLogger(__name__)

MIN_GROUP_SIZE = 3

_FORMULA_RE = re.compile(r"^\s*([^~\s]+)\s*~\s*([^~\s]+)\s*$")


@dataclass(frozen=True)
class Group:
    """A named, validated sample of finite observations."""

    name: str
    values: Tuple[float, ...]

    @property
    def n(self) -> int:
        return len(self.values)

    @property
    def array(self) -> np.ndarray:
        """Fresh float array of the observations."""
        return np.array(self.values, dtype=float)


@dataclass(frozen=True)
class GroupStats:
    """Descriptive statistics for one group."""

    group: str
    n: int
    mean: float
    sd: float
    median: float
    min: float
    max: float
    q25: float
    q75: float


def _is_vector(obj: Any) -> bool:
    if isinstance(obj, (str, bytes, Mapping)):
        return False
    if isinstance(obj, (np.ndarray, pd.Series, pd.Index)):
        return np.ndim(obj) == 1
    return isinstance(obj, Sequence)


def _is_group_list(obj: Any) -> bool:
    """True for a list/tuple whose items are themselves vectors."""
    if isinstance(obj, Mapping):
        return True
    if isinstance(obj, (list, tuple)) and len(obj) > 0:
        return all(_is_vector(item) for item in obj)
    return False


def _to_float_array(values: Any, name: str) -> np.ndarray:
    """Convert values to a float array, keeping NaN for missing entries."""
    series = pd.Series(list(values) if not isinstance(values, pd.Series) else values, dtype=object)
    numeric = pd.to_numeric(series.where(series.notna(), np.nan), errors="coerce")
    bad = numeric.isna() & series.notna()
    if bad.any():
        examples = list(series[bad].head(3))
        raise InvalidShapeError(f"Group '{name}' contains non-numeric values: {examples}")
    arr = numeric.to_numpy(dtype=float)
    if np.isinf(arr).any():
        raise InvalidShapeError(f"Group '{name}' contains infinite values")
    return arr


def _drop_missing(arr: np.ndarray, name: str) -> np.ndarray:
    mask = np.isnan(arr)
    if mask.any():
        logger.warning("Dropped %d missing value(s) from group '%s'", int(mask.sum()), name)
    return arr[~mask]


def _make_group(name: str, arr: np.ndarray) -> Group:
    if len(arr) < MIN_GROUP_SIZE:
        raise InsufficientDataError(
            f"Group '{name}' has {len(arr)} observation(s); at least {MIN_GROUP_SIZE} required"
        )
    return Group(name=str(name), values=tuple(float(v) for v in arr))


def _resolve_names(
    raw_names: List[Optional[str]], group_names: Optional[Sequence[str]], defaults: List[str]
) -> List[str]:
    if group_names is not None:
        names = [str(n) for n in group_names]
        if len(names) != len(raw_names):
            raise InvalidShapeError(
                f"group_names has {len(names)} entries but {len(raw_names)} groups were supplied"
            )
    else:
        names = [str(raw) if raw is not None else default for raw, default in zip(raw_names, defaults)]

    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise InvalidShapeError(f"Duplicate group names: {duplicates}")
    return names


def _series_name(obj: Any) -> Optional[str]:
    if isinstance(obj, pd.Series) and obj.name is not None:
        return str(obj.name)
    return None


def _default_names(k: int) -> List[str]:
    if k == 1:
        return ["x"]
    if k == 2:
        return ["x", "y"]
    return [f"group_{i + 1}" for i in range(k)]


def _resolve_shape(form_shape: TestShape, shape: Optional[TestShape], paired: bool, k: int) -> TestShape:
    """Pick the test shape from the input form, the paired flag and an explicit override."""
    if shape is not None:
        resolved = TestShape.parse(shape)
    elif paired:
        resolved = TestShape.PAIRED
    else:
        resolved = form_shape

    expected = resolved.n_groups
    if expected is None:
        if k < 3:
            raise InvalidShapeError(
                f"multi_group analysis requires at least 3 groups, got {k}; "
                "pass shape='two_sample' or paired=True to compare two groups"
            )
    elif k != expected:
        raise InvalidShapeError(f"{resolved.value} analysis requires {expected} group(s), got {k}")
    return resolved


def _build_groups(
    raw: List[Any], raw_names: List[Optional[str]], group_names: Optional[Sequence[str]], resolved: TestShape
) -> List[Group]:
    names = _resolve_names(raw_names, group_names, _default_names(len(raw)))
    arrays = [_to_float_array(values, name) for values, name in zip(raw, names)]

    if resolved == TestShape.PAIRED:
        a, b = arrays
        if len(a) != len(b):
            raise InvalidShapeError(
                f"Paired samples must have equal length, got {len(a)} and {len(b)}"
            )
        incomplete = np.isnan(a) | np.isnan(b)
        if incomplete.any():
            logger.warning("Dropped %d incomplete pair(s)", int(incomplete.sum()))
        arrays = [a[~incomplete], b[~incomplete]]
    else:
        arrays = [_drop_missing(arr, name) for arr, name in zip(arrays, names)]

    return [_make_group(name, arr) for name, arr in zip(names, arrays)]


def normalize_input(
    x: Any,
    y: Any = None,
    *,
    paired: bool = False,
    group_names: Optional[Sequence[str]] = None,
    shape: Optional[TestShape] = None,
) -> Tuple[List[Group], TestShape]:
    """Normalize raw input into an ordered list of groups plus a test shape.

    Args:
        x: A vector, a mapping of name -> vector, or a list of vectors
        y: Optional second vector, or a list of further vectors
        paired: Treat two vectors as paired observations
        group_names: Optional names, in group order
        shape: Optional explicit shape; otherwise derived from the input form

    Returns:
        Tuple of (groups, shape)

    Raises:
        InvalidShapeError: Malformed input or group count not matching the shape
        InsufficientDataError: A group has fewer than 3 observations after
            removing missing values

    Notes:
        Shape follows the form of the input, never the number of groups alone:
        a single vector is one-sample, two vectors are two-sample (or paired),
        a mapping or list of vectors is multi-group (or paired with
        ``paired=True``).
    """
    if _is_group_list(x):
        if y is not None:
            raise InvalidShapeError("y must be None when x is already a list of groups")
        if isinstance(x, Mapping):
            raw = list(x.values())
            raw_names: List[Optional[str]] = [str(k) for k in x.keys()]
        else:
            raw = list(x)
            raw_names = [_series_name(v) for v in raw]
        form_shape = TestShape.MULTI_GROUP
    elif _is_vector(x):
        if y is None:
            raw, form_shape = [x], TestShape.ONE_SAMPLE
        elif _is_group_list(y) and not isinstance(y, Mapping):
            raw, form_shape = [x, *y], TestShape.MULTI_GROUP
        elif _is_vector(y):
            raw, form_shape = [x, y], TestShape.TWO_SAMPLE
        else:
            raise InvalidShapeError(f"Unsupported type for y: {type(y).__name__}")
        raw_names = [_series_name(v) for v in raw]
    else:
        raise InvalidShapeError(f"Unsupported type for x: {type(x).__name__}")

    if len(raw) == 0:
        raise InvalidShapeError("No groups supplied")

    resolved = _resolve_shape(form_shape, shape, paired, len(raw))
    groups = _build_groups(raw, raw_names, group_names, resolved)
    logger.debug("Normalized %d group(s) for %s analysis", len(groups), resolved.value)
    return groups, resolved


def parse_formula(formula: str) -> Tuple[str, str]:
    """Parse a ``"value ~ group"`` formula into (value_col, group_col)."""
    match = _FORMULA_RE.match(formula or "")
    if match is None:
        raise InvalidShapeError(f"Formula must look like 'value ~ group', got {formula!r}")
    return match.group(1), match.group(2)


def groups_from_table(
    df: pd.DataFrame,
    value_col: str,
    group_col: str,
    groups: Optional[Sequence[str]] = None,
) -> Tuple[List[Any], List[str]]:
    """Split a value column by a grouping column.

    Args:
        df: Input dataframe
        value_col: Numeric column holding the observations
        group_col: Column holding group labels
        groups: Optional subset/order of group labels to include

    Returns:
        Tuple of (list of value arrays, list of group names). Group order is
        the order of first appearance unless ``groups`` is given.

    Raises:
        InvalidShapeError: If a column is missing or a requested group is absent
    """
    missing = [c for c in (value_col, group_col) if c not in df.columns]
    if missing:
        raise InvalidShapeError(f"Column(s) {missing} not found. Available: {list(df.columns)[:10]}")

    sub = df[[group_col, value_col]].dropna(subset=[group_col])
    dropped = len(df) - len(sub)
    if dropped:
        logger.warning("Dropped %d row(s) with missing '%s'", dropped, group_col)
    labels = sub[group_col].astype(str)

    if groups is not None:
        order = [str(g) for g in groups]
        absent = [g for g in order if g not in set(labels)]
        if absent:
            raise InvalidShapeError(f"Group(s) {absent} not found in column '{group_col}'")
    else:
        order = list(pd.unique(labels))

    values = [sub.loc[labels == g, value_col].to_numpy(dtype=object) for g in order]
    return values, order


def compute_group_stats(groups: Sequence[Group]) -> Tuple[GroupStats, ...]:
    """Compute descriptive statistics for every group.

    Returns:
        Tuple of GroupStats in group order
    """
    rows = []
    for g in groups:
        x = g.array
        n = len(x)
        rows.append(
            GroupStats(
                group=g.name,
                n=n,
                mean=float(np.mean(x)),
                sd=float(np.std(x, ddof=1)) if n > 1 else np.nan,
                median=float(np.median(x)),
                min=float(np.min(x)),
                max=float(np.max(x)),
                q25=float(np.percentile(x, 25)),
                q75=float(np.percentile(x, 75)),
            )
        )
    return tuple(rows)


def paired_differences(groups: Sequence[Group]) -> Group:
    """Return the ``x - y`` differences of a paired analysis as a group."""
    a, b = groups
    diff = a.array - b.array
    return Group(name=f"{a.name} - {b.name}", values=tuple(float(v) for v in diff))
