"""Statistical tests (parametric and nonparametric) and post-hoc comparisons."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import scikit_posthocs as sp
from scipy import stats
from statsmodels.stats.multitest import multipletests

from statgate.config import AnalysisConfig, TestShape
from statgate.errors import DegenerateInputError, InvalidShapeError
from statgate.stats.effects import (
    cohen_d,
    one_sample_d,
    rank_biserial,
    signed_rank_biserial,
    eta_squared,
    epsilon_squared,
)
from statgate.stats.preprocess import Group
from statgate.stats.selection import Procedure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TestOutcome:
    """Raw output of the selected procedure."""

    __test__ = False  # not a pytest class

    procedure: Procedure
    method: str
    statistic_name: str
    statistic: float
    p_value: float
    alternative: str
    null_value: float = 0.0
    df: Optional[float] = None
    df_resid: Optional[float] = None
    conf_int: Optional[Tuple[float, float]] = None
    conf_level: Optional[float] = None
    estimate: Optional[float] = None
    estimate_label: Optional[str] = None
    group_estimates: Optional[Tuple[Tuple[str, float], ...]] = None
    effect_size: Optional[float] = None
    effect_size_name: Optional[str] = None


@dataclass(frozen=True)
class PairwiseComparison:
    """One post-hoc pair with raw and Bonferroni-adjusted p-values."""

    group1: str
    group2: str
    p_value: float
    p_adj: float
    reject: bool


@dataclass(frozen=True)
class PostHocResult:
    """Pairwise comparisons following a significant omnibus test."""

    method: str
    correction: str
    comparisons: Tuple[PairwiseComparison, ...]


def check_degenerate(procedure: Procedure, groups: Sequence[Group]) -> None:
    """Reject inputs that make the test statistic undefined.

    Raises:
        DegenerateInputError: If a group has zero variance, the paired series
            are identical, or a paired t-test meets a constant shift
    """
    if procedure.shape == TestShape.PAIRED:
        a, b = groups
        diff = a.array - b.array
        if np.all(diff == 0.0):
            raise DegenerateInputError(
                f"Paired samples '{a.name}' and '{b.name}' are identical; "
                "all differences are zero"
            )
        # Signed ranks stay defined for a constant shift; the t statistic does not
        if procedure == Procedure.PAIRED_T and np.ptp(diff) == 0.0:
            raise DegenerateInputError(
                f"Paired differences '{a.name} - {b.name}' are constant; test statistic is undefined"
            )
        return

    for g in groups:
        if np.ptp(g.array) == 0.0:
            raise DegenerateInputError(f"Group '{g.name}' has zero variance")


def _finite_or_raise(statistic: float, p_value: float, method: str) -> Tuple[float, float]:
    statistic, p_value = float(statistic), float(p_value)
    if not (np.isfinite(statistic) and np.isfinite(p_value)):
        raise DegenerateInputError(f"{method} produced an undefined statistic for this input")
    return statistic, p_value


def _ci(res, conf_level: float) -> Tuple[float, float]:
    ci = res.confidence_interval(confidence_level=conf_level)
    return float(ci.low), float(ci.high)


def _one_sample_t(groups: Sequence[Group], config: AnalysisConfig) -> TestOutcome:
    g = groups[0]
    x = g.array
    res = stats.ttest_1samp(x, popmean=config.mu, alternative=config.alternative.value)
    t, p = _finite_or_raise(res.statistic, res.pvalue, Procedure.ONE_SAMPLE_T.label)
    return TestOutcome(
        procedure=Procedure.ONE_SAMPLE_T,
        method=Procedure.ONE_SAMPLE_T.label,
        statistic_name="t",
        statistic=t,
        p_value=p,
        alternative=config.alternative.value,
        null_value=config.mu,
        df=float(res.df),
        conf_int=_ci(res, config.conf_level),
        conf_level=config.conf_level,
        estimate=float(np.mean(x)),
        estimate_label=f"mean of {g.name}",
        effect_size=one_sample_d(x, config.mu),
        effect_size_name="Cohen's d",
    )


def _one_sample_wilcoxon(groups: Sequence[Group], config: AnalysisConfig) -> TestOutcome:
    g = groups[0]
    x = g.array
    shifted = x - config.mu
    if np.all(shifted == 0.0):
        raise DegenerateInputError(f"All values of '{g.name}' equal mu={config.mu}")
    res = stats.wilcoxon(shifted, alternative=config.alternative.value)
    T, p = _finite_or_raise(res.statistic, res.pvalue, Procedure.ONE_SAMPLE_WILCOXON.label)
    return TestOutcome(
        procedure=Procedure.ONE_SAMPLE_WILCOXON,
        method=Procedure.ONE_SAMPLE_WILCOXON.label,
        statistic_name="T",
        statistic=T,
        p_value=p,
        alternative=config.alternative.value,
        null_value=config.mu,
        estimate=float(np.median(x)),
        estimate_label=f"median of {g.name}",
        effect_size=signed_rank_biserial(shifted),
        effect_size_name="rank-biserial r",
    )


def _two_sample_t(groups: Sequence[Group], config: AnalysisConfig) -> TestOutcome:
    a, b = groups
    x, y = a.array, b.array
    res = stats.ttest_ind(x, y, equal_var=False, alternative=config.alternative.value)
    t, p = _finite_or_raise(res.statistic, res.pvalue, Procedure.TWO_SAMPLE_T.label)
    return TestOutcome(
        procedure=Procedure.TWO_SAMPLE_T,
        method=Procedure.TWO_SAMPLE_T.label,
        statistic_name="t",
        statistic=t,
        p_value=p,
        alternative=config.alternative.value,
        df=float(res.df),
        conf_int=_ci(res, config.conf_level),
        conf_level=config.conf_level,
        estimate=float(np.mean(x) - np.mean(y)),
        estimate_label=f"difference in means ({a.name} - {b.name})",
        effect_size=cohen_d(x, y),
        effect_size_name="Cohen's d",
    )


def _rank_sum(groups: Sequence[Group], config: AnalysisConfig) -> TestOutcome:
    a, b = groups
    x, y = a.array, b.array
    res = stats.mannwhitneyu(x, y, alternative=config.alternative.value)
    U, p = _finite_or_raise(res.statistic, res.pvalue, Procedure.RANK_SUM.label)
    return TestOutcome(
        procedure=Procedure.RANK_SUM,
        method=Procedure.RANK_SUM.label,
        statistic_name="U",
        statistic=U,
        p_value=p,
        alternative=config.alternative.value,
        estimate=float(np.median(x) - np.median(y)),
        estimate_label=f"difference in medians ({a.name} - {b.name})",
        effect_size=rank_biserial(x, y),
        effect_size_name="rank-biserial r",
    )


def _paired_t(groups: Sequence[Group], config: AnalysisConfig) -> TestOutcome:
    a, b = groups
    x, y = a.array, b.array
    res = stats.ttest_rel(x, y, alternative=config.alternative.value)
    t, p = _finite_or_raise(res.statistic, res.pvalue, Procedure.PAIRED_T.label)
    return TestOutcome(
        procedure=Procedure.PAIRED_T,
        method=Procedure.PAIRED_T.label,
        statistic_name="t",
        statistic=t,
        p_value=p,
        alternative=config.alternative.value,
        df=float(res.df),
        conf_int=_ci(res, config.conf_level),
        conf_level=config.conf_level,
        estimate=float(np.mean(x - y)),
        estimate_label=f"mean difference ({a.name} - {b.name})",
        effect_size=one_sample_d(x - y),
        effect_size_name="Cohen's d_z",
    )


def _paired_wilcoxon(groups: Sequence[Group], config: AnalysisConfig) -> TestOutcome:
    a, b = groups
    x, y = a.array, b.array
    res = stats.wilcoxon(x, y, alternative=config.alternative.value)
    T, p = _finite_or_raise(res.statistic, res.pvalue, Procedure.PAIRED_WILCOXON.label)
    return TestOutcome(
        procedure=Procedure.PAIRED_WILCOXON,
        method=Procedure.PAIRED_WILCOXON.label,
        statistic_name="T",
        statistic=T,
        p_value=p,
        alternative=config.alternative.value,
        estimate=float(np.median(x - y)),
        estimate_label=f"median difference ({a.name} - {b.name})",
        effect_size=signed_rank_biserial(x - y),
        effect_size_name="rank-biserial r",
    )


def _anova(groups: Sequence[Group], config: AnalysisConfig) -> TestOutcome:
    arrays = [g.array for g in groups]
    res = stats.f_oneway(*arrays)
    F, p = _finite_or_raise(res.statistic, res.pvalue, Procedure.ANOVA.label)
    k = len(arrays)
    N = sum(len(a) for a in arrays)
    return TestOutcome(
        procedure=Procedure.ANOVA,
        method=Procedure.ANOVA.label,
        statistic_name="F",
        statistic=F,
        p_value=p,
        alternative="two-sided",
        df=float(k - 1),
        df_resid=float(N - k),
        group_estimates=tuple((g.name, float(np.mean(g.array))) for g in groups),
        effect_size=eta_squared(arrays),
        effect_size_name="eta squared",
    )


def _kruskal_wallis(groups: Sequence[Group], config: AnalysisConfig) -> TestOutcome:
    arrays = [g.array for g in groups]
    res = stats.kruskal(*arrays)
    H, p = _finite_or_raise(res.statistic, res.pvalue, Procedure.KRUSKAL_WALLIS.label)
    N = sum(len(a) for a in arrays)
    return TestOutcome(
        procedure=Procedure.KRUSKAL_WALLIS,
        method=Procedure.KRUSKAL_WALLIS.label,
        statistic_name="H",
        statistic=H,
        p_value=p,
        alternative="two-sided",
        df=float(len(arrays) - 1),
        group_estimates=tuple((g.name, float(np.median(g.array))) for g in groups),
        effect_size=epsilon_squared(H, N),
        effect_size_name="epsilon squared",
    )


_RUNNERS: Dict[Procedure, Callable[[Sequence[Group], AnalysisConfig], TestOutcome]] = {
    Procedure.ONE_SAMPLE_T: _one_sample_t,
    Procedure.ONE_SAMPLE_WILCOXON: _one_sample_wilcoxon,
    Procedure.TWO_SAMPLE_T: _two_sample_t,
    Procedure.RANK_SUM: _rank_sum,
    Procedure.PAIRED_T: _paired_t,
    Procedure.PAIRED_WILCOXON: _paired_wilcoxon,
    Procedure.ANOVA: _anova,
    Procedure.KRUSKAL_WALLIS: _kruskal_wallis,
}


def execute(procedure: Procedure, groups: Sequence[Group], config: AnalysisConfig) -> TestOutcome:
    """Run the selected procedure on the groups.

    Args:
        procedure: Procedure chosen by the selector
        groups: Validated groups, in order
        config: Analysis parameters; ``alternative`` and ``conf_level`` are
            used by the one- and two-group procedures only

    Returns:
        TestOutcome

    Raises:
        InvalidShapeError: If the group count does not fit the procedure
        DegenerateInputError: If the test statistic is undefined for the data
    """
    expected = procedure.shape.n_groups
    if (expected is None and len(groups) < 3) or (expected is not None and len(groups) != expected):
        raise InvalidShapeError(
            f"{procedure.label} cannot run on {len(groups)} group(s)"
        )

    check_degenerate(procedure, groups)
    outcome = _RUNNERS[procedure](groups, config)
    logger.info(
        "%s: %s = %.4g, p = %.4g", outcome.method, outcome.statistic_name, outcome.statistic, outcome.p_value
    )
    return outcome


def _pairwise_pvalues(procedure: Procedure, groups: Sequence[Group]) -> pd.DataFrame:
    """Matrix of raw pairwise p-values, indexed by group name."""
    frame = pd.DataFrame(
        {
            "value": np.concatenate([g.array for g in groups]),
            "group": list(itertools.chain.from_iterable([g.name] * g.n for g in groups)),
        }
    )
    if procedure == Procedure.ANOVA:
        return sp.posthoc_ttest(frame, val_col="value", group_col="group", pool_sd=True, sort=True)
    return sp.posthoc_mannwhitney(frame, val_col="value", group_col="group", sort=True)


def run_posthoc(procedure: Procedure, groups: Sequence[Group], alpha: float) -> PostHocResult:
    """Run Bonferroni-corrected pairwise comparisons for a multi-group analysis.

    Args:
        procedure: The omnibus procedure (ANOVA or Kruskal-Wallis)
        groups: Groups, in order; pairs follow this order
        alpha: Significance level for the reject flag

    Returns:
        PostHocResult with k*(k-1)/2 comparisons

    Notes:
        - ANOVA: pairwise t-tests with pooled SD
        - Kruskal-Wallis: pairwise Wilcoxon rank-sum (Mann-Whitney U)
        - Adjusted p-value = min(raw * n_pairs, 1)
    """
    if procedure not in (Procedure.ANOVA, Procedure.KRUSKAL_WALLIS):
        raise InvalidShapeError(f"Post-hoc comparisons are not defined for {procedure.label}")

    method = "Pairwise t-test (pooled SD)" if procedure == Procedure.ANOVA else "Pairwise Wilcoxon rank-sum"
    matrix = _pairwise_pvalues(procedure, groups)

    pairs: List[Tuple[str, str]] = list(itertools.combinations([g.name for g in groups], 2))
    raw = np.array([float(matrix.loc[g1, g2]) for g1, g2 in pairs], dtype=float)
    _, p_adj, _, _ = multipletests(raw, alpha=alpha, method="bonferroni")

    comparisons = tuple(
        PairwiseComparison(
            group1=g1,
            group2=g2,
            p_value=float(p),
            p_adj=float(pa),
            reject=bool(pa <= alpha),
        )
        for (g1, g2), p, pa in zip(pairs, raw, p_adj)
    )
    return PostHocResult(method=method, correction="bonferroni", comparisons=comparisons)
