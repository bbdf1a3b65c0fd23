"""Assemble the analysis result and build text and table views of it."""

from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from statgate import __version__
from statgate.config import AnalysisConfig, TestShape
from statgate.stats.normality import NormalityVerdict, normality_table
from statgate.stats.preprocess import Group, GroupStats, compute_group_stats, paired_differences
from statgate.stats.selection import Procedure, SelectedProcedure
from statgate.stats.tests import PostHocResult, TestOutcome


@dataclass(frozen=True)
class AnalysisResult:
    """Immutable result of one analysis call.

    Presentation code reads these fields and never recomputes statistics.
    """

    groups: Tuple[Group, ...]
    shape: TestShape
    normality: Tuple[NormalityVerdict, ...]
    all_normal: bool
    selection: SelectedProcedure
    outcome: TestOutcome
    posthoc: Optional[PostHocResult]
    descriptives: Tuple[GroupStats, ...]
    recommendation: str
    parameters: AnalysisConfig

    @property
    def procedure(self) -> Procedure:
        return self.selection.procedure

    @property
    def significant(self) -> bool:
        return self.outcome.p_value <= self.parameters.alpha

    @property
    def difference(self) -> Optional[Group]:
        """Paired ``x - y`` differences (paired analyses only)."""
        if self.shape != TestShape.PAIRED:
            return None
        return paired_differences(self.groups)

    def __str__(self) -> str:
        return format_summary(self)


def format_p(p: float) -> str:
    """Format a p-value for display: ``p = 0.0023`` or ``p < 0.0001``."""
    if not np.isfinite(p):
        return "p = NA"
    if p < 1e-4:
        return "p < 0.0001"
    return f"p = {p:.4f}"


def _direction(outcome: TestOutcome) -> Optional[str]:
    if outcome.estimate is None:
        return None
    delta = outcome.estimate - outcome.null_value
    if delta > 0:
        return "higher"
    if delta < 0:
        return "lower"
    return "equal"


# (shape, significant, direction) -> template
RECOMMENDATION_TEMPLATES: Dict[Tuple[TestShape, bool, Optional[str]], str] = {
    (TestShape.ONE_SAMPLE, True, "higher"): (
        "The {center} of {a} ({estimate:.4g}) is significantly greater than {mu:g} ({p})."
    ),
    (TestShape.ONE_SAMPLE, True, "lower"): (
        "The {center} of {a} ({estimate:.4g}) is significantly lower than {mu:g} ({p})."
    ),
    (TestShape.ONE_SAMPLE, True, "equal"): (
        "The test is significant ({p}) although the {center} of {a} equals {mu:g}; "
        "inspect the distribution."
    ),
    (TestShape.TWO_SAMPLE, True, "higher"): (
        "Groups differ significantly ({p}); {a} {center} is higher than {b}."
    ),
    (TestShape.TWO_SAMPLE, True, "lower"): (
        "Groups differ significantly ({p}); {a} {center} is lower than {b}."
    ),
    (TestShape.TWO_SAMPLE, True, "equal"): (
        "Groups differ significantly ({p}) although their {center}s are equal; "
        "the distributions differ in spread or shape."
    ),
    (TestShape.PAIRED, True, "higher"): (
        "Paired measurements differ significantly ({p}); {a} is higher than {b} "
        "({center} difference {estimate:.4g})."
    ),
    (TestShape.PAIRED, True, "lower"): (
        "Paired measurements differ significantly ({p}); {b} is higher than {a} "
        "({center} difference {estimate:.4g})."
    ),
    (TestShape.PAIRED, True, "equal"): (
        "Paired measurements differ significantly ({p}) although the {center} difference is zero."
    ),
    (TestShape.MULTI_GROUP, True, None): (
        "At least one group differs significantly ({p}); highest {center} in {top}, "
        "lowest in {bottom}."
    ),
    (TestShape.ONE_SAMPLE, False, None): (
        "No significant difference between the {center} of {a} and {mu:g} ({p})."
    ),
    (TestShape.TWO_SAMPLE, False, None): (
        "No significant difference between {a} and {b} ({p})."
    ),
    (TestShape.PAIRED, False, None): (
        "No significant difference between paired {a} and {b} measurements ({p})."
    ),
    (TestShape.MULTI_GROUP, False, None): (
        "No significant difference among the {k} groups ({p}); post-hoc comparisons were not run."
    ),
}


def build_recommendation(
    selection: SelectedProcedure,
    outcome: TestOutcome,
    groups: Sequence[Group],
    config: AnalysisConfig,
    posthoc: Optional[PostHocResult] = None,
) -> str:
    """Build the plain-language recommendation from the template table."""
    procedure = selection.procedure
    significant = outcome.p_value <= config.alpha
    direction = _direction(outcome) if significant else None

    fields: Dict[str, Any] = {
        "p": format_p(outcome.p_value),
        "center": procedure.center,
        "estimate": outcome.estimate if outcome.estimate is not None else float("nan"),
        "mu": config.mu,
        "a": groups[0].name,
        "b": groups[1].name if len(groups) > 1 else "",
        "k": len(groups),
        "top": "",
        "bottom": "",
    }
    if outcome.group_estimates:
        ordered = sorted(outcome.group_estimates, key=lambda kv: kv[1])
        fields["bottom"] = f"{ordered[0][0]} ({ordered[0][1]:.4g})"
        fields["top"] = f"{ordered[-1][0]} ({ordered[-1][1]:.4g})"

    sentence = RECOMMENDATION_TEMPLATES[(procedure.shape, significant, direction)].format(**fields)
    parts = [f"{procedure.label}: {sentence}"]

    if posthoc is not None:
        rejected = [f"{c.group1} vs {c.group2}" for c in posthoc.comparisons if c.reject]
        if rejected:
            parts.append(
                f"Significant pairs after Bonferroni correction: {', '.join(rejected)}."
            )
        else:
            parts.append("No pair remains significant after Bonferroni correction.")

    return " ".join(parts)


def assemble_result(
    groups: Sequence[Group],
    shape: TestShape,
    normality: Sequence[NormalityVerdict],
    selection: SelectedProcedure,
    outcome: TestOutcome,
    posthoc: Optional[PostHocResult],
    config: AnalysisConfig,
) -> AnalysisResult:
    """Package every stage's output into one AnalysisResult."""
    return AnalysisResult(
        groups=tuple(groups),
        shape=shape,
        normality=tuple(normality),
        all_normal=selection.all_normal,
        selection=selection,
        outcome=outcome,
        posthoc=posthoc,
        descriptives=compute_group_stats(groups),
        recommendation=build_recommendation(selection, outcome, groups, config, posthoc),
        parameters=config,
    )


# ──────────────────────────────────────────────────────────────
# Text summary
# ──────────────────────────────────────────────────────────────


def _fmt(value: Optional[float], spec: str = ".4g") -> str:
    if value is None or not np.isfinite(value):
        return "NA"
    return format(value, spec)


def _headline_location(result: AnalysisResult) -> List[str]:
    o = result.outcome
    df = f", df = {_fmt(o.df)}" if o.df is not None else ""
    lines = [f"  {o.statistic_name} = {_fmt(o.statistic)}{df}, {format_p(o.p_value)}"]
    lines.append(f"  alternative: {o.alternative} (null value {_fmt(o.null_value)})")
    if o.conf_int is not None:
        lines.append(
            f"  {o.conf_level:.0%} confidence interval: [{_fmt(o.conf_int[0])}, {_fmt(o.conf_int[1])}]"
        )
    lines.append(f"  {o.estimate_label}: {_fmt(o.estimate)}")
    return lines


def _headline_omnibus(result: AnalysisResult) -> List[str]:
    o = result.outcome
    if o.df_resid is not None:
        df = f"df = ({_fmt(o.df)}, {_fmt(o.df_resid)})"
    else:
        df = f"df = {_fmt(o.df)}"
    lines = [f"  {o.statistic_name} = {_fmt(o.statistic)}, {df}, {format_p(o.p_value)}"]
    center = result.procedure.center
    for name, value in o.group_estimates or ():
        lines.append(f"  {center} of {name}: {_fmt(value)}")
    return lines


_HEADLINE_FORMATTERS: Dict[TestShape, Callable[[AnalysisResult], List[str]]] = {
    TestShape.ONE_SAMPLE: _headline_location,
    TestShape.TWO_SAMPLE: _headline_location,
    TestShape.PAIRED: _headline_location,
    TestShape.MULTI_GROUP: _headline_omnibus,
}


def format_summary(result: AnalysisResult) -> str:
    """Multi-line text summary of a result."""
    o = result.outcome
    lines = [
        f"{o.method}",
        f"Groups: {', '.join(f'{g.name} (n={g.n})' for g in result.groups)}",
        "",
        "Normality (Shapiro-Wilk):",
    ]
    for v in result.normality:
        verdict = "normal" if v.is_normal else "not normal"
        lines.append(f"  {v.group}: W = {_fmt(v.statistic)}, {format_p(v.p_value)} -> {verdict}")
    lines.append(f"  {result.selection.rationale}")
    lines.append("")
    lines.append("Result:")
    lines.extend(_HEADLINE_FORMATTERS[result.shape](result))
    if o.effect_size_name is not None:
        lines.append(f"  {o.effect_size_name}: {_fmt(o.effect_size)}")

    if result.posthoc is not None:
        lines.append("")
        lines.append(f"Post-hoc: {result.posthoc.method} ({result.posthoc.correction})")
        for c in result.posthoc.comparisons:
            flag = "*" if c.reject else ""
            lines.append(
                f"  {c.group1} vs {c.group2}: p = {_fmt(c.p_value)}, p_adj = {_fmt(c.p_adj)} {flag}".rstrip()
            )

    lines.append("")
    lines.append("Descriptive statistics:")
    for s in result.descriptives:
        lines.append(
            f"  {s.group}: n = {s.n}, mean = {_fmt(s.mean)}, sd = {_fmt(s.sd)}, "
            f"median = {_fmt(s.median)}, range = [{_fmt(s.min)}, {_fmt(s.max)}]"
        )
    lines.append("")
    lines.append(result.recommendation)
    return "\n".join(lines)


# ──────────────────────────────────────────────────────────────
# Tables
# ──────────────────────────────────────────────────────────────


def results_table(result: AnalysisResult) -> pd.DataFrame:
    """One-row table with the headline fields of a result."""
    o = result.outcome
    row = {
        "shape": result.shape.value,
        "groups": ", ".join(g.name for g in result.groups),
        "all_normal": result.all_normal,
        "procedure": result.procedure.value,
        "method": o.method,
        "statistic_name": o.statistic_name,
        "statistic": o.statistic,
        "df": o.df,
        "df_resid": o.df_resid,
        "p_value": o.p_value,
        "alternative": o.alternative,
        "conf_level": o.conf_level,
        "ci_low": o.conf_int[0] if o.conf_int else np.nan,
        "ci_high": o.conf_int[1] if o.conf_int else np.nan,
        "estimate": o.estimate,
        "estimate_label": o.estimate_label,
        "effect_size": o.effect_size,
        "effect_size_name": o.effect_size_name,
        "alpha": result.parameters.alpha,
        "significant": result.significant,
        "recommendation": result.recommendation,
    }
    return pd.DataFrame([row])


def descriptives_table(result: AnalysisResult) -> pd.DataFrame:
    """Descriptive statistics per group.

    Returns:
        DataFrame with columns: group, n, mean, sd, median, min, max, q25, q75
    """
    return pd.DataFrame(
        [asdict(s) for s in result.descriptives],
        columns=["group", "n", "mean", "sd", "median", "min", "max", "q25", "q75"],
    )


def posthoc_table(result: AnalysisResult) -> Optional[pd.DataFrame]:
    """Post-hoc comparisons as a DataFrame, or None if post-hoc was not run."""
    if result.posthoc is None:
        return None
    rows = [
        {"posthoc": result.posthoc.method, "correction": result.posthoc.correction, **asdict(c)}
        for c in result.posthoc.comparisons
    ]
    return pd.DataFrame(
        rows, columns=["posthoc", "correction", "group1", "group2", "p_value", "p_adj", "reject"]
    )


def result_tables(result: AnalysisResult) -> Dict[str, pd.DataFrame]:
    """All tables of a result keyed by name; ``posthoc`` only when present."""
    tables = {
        "results": results_table(result),
        "descriptives": descriptives_table(result),
        "normality": normality_table(result.normality),
    }
    posthoc = posthoc_table(result)
    if posthoc is not None:
        tables["posthoc"] = posthoc
    return tables


def _clean(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, dict):
        return {k: _clean(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_clean(v) for v in value]
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        return value.value
    return value


def result_to_dict(result: AnalysisResult) -> Dict[str, Any]:
    """JSON-serialisable dict of a result (non-finite floats become None)."""
    o = result.outcome
    d = {
        "package_version": __version__,
        "shape": result.shape.value,
        "parameters": result.parameters.to_dict(),
        "groups": {g.name: list(g.values) for g in result.groups},
        "normality": [asdict(v) for v in result.normality],
        "all_normal": result.all_normal,
        "selection": {
            "procedure": result.procedure.value,
            "label": result.procedure.label,
            "parametric": result.procedure.parametric,
            "rationale": result.selection.rationale,
        },
        "outcome": {
            **asdict(o),
            "procedure": o.procedure.value,
            "group_estimates": dict(o.group_estimates) if o.group_estimates else None,
        },
        "posthoc": asdict(result.posthoc) if result.posthoc is not None else None,
        "descriptives": [asdict(s) for s in result.descriptives],
        "recommendation": result.recommendation,
    }
    return _clean(d)
