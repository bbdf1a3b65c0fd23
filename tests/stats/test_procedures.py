"""Tests for procedure execution and post-hoc comparisons."""

import pytest
import numpy as np
from scipy import stats

from statgate.config import AnalysisConfig
from statgate.errors import DegenerateInputError, InvalidShapeError
from statgate.stats.preprocess import Group
from statgate.stats.selection import Procedure
from statgate.stats.tests import execute, run_posthoc, check_degenerate


def _g(name, values):
    return Group(name=name, values=tuple(float(v) for v in values))


@pytest.fixture
def two_groups():
    return [_g("control", [4.1, 5.2, 6.3, 5.0, 4.8, 5.5]), _g("treated", [6.0, 7.1, 6.8, 7.4, 6.5, 8.0])]


def test_one_sample_t_matches_scipy():
    """One-sample t-test forwards mu, alternative and conf_level."""
    x = [4.2, 5.1, 5.8, 4.9, 5.5, 6.1, 4.7]
    config = AnalysisConfig(mu=5.0, alternative="greater", conf_level=0.9)

    outcome = execute(Procedure.ONE_SAMPLE_T, [_g("x", x)], config)
    ref = stats.ttest_1samp(x, popmean=5.0, alternative="greater")

    assert outcome.statistic == pytest.approx(ref.statistic)
    assert outcome.p_value == pytest.approx(ref.pvalue)
    assert outcome.df == pytest.approx(6.0)
    assert outcome.conf_level == 0.9
    assert outcome.conf_int[1] == np.inf
    assert outcome.estimate == pytest.approx(np.mean(x))
    assert outcome.null_value == 5.0


def test_two_sample_t_is_welch(two_groups):
    """Two-sample t-test uses unequal variances and reports a CI for the difference."""
    outcome = execute(Procedure.TWO_SAMPLE_T, two_groups, AnalysisConfig())
    x, y = two_groups[0].array, two_groups[1].array
    ref = stats.ttest_ind(x, y, equal_var=False)

    assert outcome.p_value == pytest.approx(ref.pvalue)
    assert outcome.estimate == pytest.approx(x.mean() - y.mean())
    lo, hi = outcome.conf_int
    assert lo < outcome.estimate < hi
    assert outcome.effect_size_name == "Cohen's d"
    assert outcome.effect_size < 0


def test_rank_sum_has_no_ci(two_groups):
    """Rank-based procedures carry no confidence interval."""
    outcome = execute(Procedure.RANK_SUM, two_groups, AnalysisConfig(alternative="less"))
    ref = stats.mannwhitneyu(two_groups[0].array, two_groups[1].array, alternative="less")

    assert outcome.conf_int is None
    assert outcome.statistic_name == "U"
    assert outcome.p_value == pytest.approx(ref.pvalue)
    assert outcome.alternative == "less"


def test_paired_t_matches_scipy(before_after):
    """Paired t-test works on x - y."""
    before, after = before_after
    outcome = execute(Procedure.PAIRED_T, [_g("before", before), _g("after", after)], AnalysisConfig())
    ref = stats.ttest_rel(before, after)

    assert outcome.statistic == pytest.approx(ref.statistic)
    assert outcome.p_value == pytest.approx(ref.pvalue)
    assert outcome.estimate == pytest.approx(np.mean(np.subtract(before, after)))
    assert outcome.estimate < 0


def test_paired_wilcoxon(before_after):
    """Paired Wilcoxon reports the median difference."""
    before, after = before_after
    outcome = execute(
        Procedure.PAIRED_WILCOXON, [_g("before", before), _g("after", after)], AnalysisConfig()
    )

    assert outcome.conf_int is None
    assert outcome.estimate == pytest.approx(-3.0)
    assert outcome.effect_size == pytest.approx(-1.0)
    assert 0.0 < outcome.p_value < 0.05


def test_one_sample_wilcoxon_shifts_by_mu():
    """One-sample Wilcoxon tests x - mu."""
    x = [1.0, 2.0, 3.0, 5.0, 8.0, 13.0, 21.0]
    outcome = execute(Procedure.ONE_SAMPLE_WILCOXON, [_g("x", x)], AnalysisConfig(mu=4.0))
    ref = stats.wilcoxon(np.array(x) - 4.0)

    assert outcome.p_value == pytest.approx(ref.pvalue)
    assert outcome.estimate == pytest.approx(5.0)


def test_anova_ignores_alternative(normal_groups):
    """ANOVA reports F with both degrees of freedom and no CI."""
    groups = [_g(k, v) for k, v in normal_groups.items()]
    outcome = execute(Procedure.ANOVA, groups, AnalysisConfig(alternative="less"))
    ref = stats.f_oneway(*[g.array for g in groups])

    assert outcome.statistic == pytest.approx(ref.statistic)
    assert outcome.df == 2.0
    assert outcome.df_resid == 57.0
    assert outcome.conf_int is None
    assert outcome.alternative == "two-sided"
    assert dict(outcome.group_estimates) == pytest.approx({"low": 10.0, "mid": 12.0, "high": 14.0})


def test_kruskal_wallis_reports_medians(normal_groups):
    """Kruskal-Wallis reports group medians."""
    groups = [_g(k, v) for k, v in normal_groups.items()]
    outcome = execute(Procedure.KRUSKAL_WALLIS, groups, AnalysisConfig())

    assert outcome.statistic_name == "H"
    assert outcome.df == 2.0
    assert [name for name, _ in outcome.group_estimates] == ["low", "mid", "high"]


def test_zero_variance_group_is_degenerate():
    """A constant group fails instead of producing NaN."""
    groups = [_g("flat", [5, 5, 5, 5]), _g("other", [1, 2, 3, 4])]

    for procedure in (Procedure.TWO_SAMPLE_T, Procedure.RANK_SUM):
        with pytest.raises(DegenerateInputError, match="zero variance"):
            execute(procedure, groups, AnalysisConfig())


def test_identical_paired_series_is_degenerate():
    """Identical paired series have all-zero differences."""
    x = [1.0, 2.0, 3.0, 4.0]

    for procedure in (Procedure.PAIRED_T, Procedure.PAIRED_WILCOXON):
        with pytest.raises(DegenerateInputError, match="identical"):
            execute(procedure, [_g("a", x), _g("b", x)], AnalysisConfig())


def test_constant_paired_shift_is_degenerate():
    """A constant non-zero shift leaves the paired t statistic undefined."""
    with pytest.raises(DegenerateInputError, match="constant"):
        check_degenerate(Procedure.PAIRED_T, [_g("a", [1, 2, 3]), _g("b", [3, 4, 5])])


def test_wrong_group_count_for_procedure():
    """Running a procedure on the wrong number of groups is a shape error."""
    with pytest.raises(InvalidShapeError):
        execute(Procedure.ANOVA, [_g("a", [1, 2, 3]), _g("b", [4, 5, 7])], AnalysisConfig())


def test_posthoc_pairs_and_bonferroni(normal_groups):
    """k groups give k(k-1)/2 pairs with p_adj = min(3p, 1)."""
    groups = [_g(k, v) for k, v in normal_groups.items()]

    posthoc = run_posthoc(Procedure.ANOVA, groups, alpha=0.05)

    pairs = [(c.group1, c.group2) for c in posthoc.comparisons]
    assert pairs == [("low", "mid"), ("low", "high"), ("mid", "high")]
    assert posthoc.correction == "bonferroni"
    for c in posthoc.comparisons:
        assert c.p_adj >= c.p_value
        assert c.p_adj <= 1.0
        assert c.p_adj == pytest.approx(min(c.p_value * 3, 1.0))


def test_posthoc_pooled_t_matches_manual(normal_groups):
    """Parametric post-hoc uses t-tests with SD pooled over all groups."""
    groups = [_g(k, v) for k, v in normal_groups.items()]
    arrays = [g.array for g in groups]
    df = sum(len(a) for a in arrays) - len(arrays)
    pooled_sd = np.sqrt(sum((len(a) - 1) * a.var(ddof=1) for a in arrays) / df)
    se = pooled_sd * np.sqrt(1 / 20 + 1 / 20)
    expected = 2 * stats.t.sf(abs(10.0 - 12.0) / se, df)

    posthoc = run_posthoc(Procedure.ANOVA, groups, alpha=0.05)

    assert posthoc.comparisons[0].p_value == pytest.approx(expected, rel=1e-6)


def test_posthoc_nonparametric_uses_rank_sum(skewed_sample):
    """Nonparametric post-hoc uses pairwise Mann-Whitney U."""
    groups = [
        _g("a", skewed_sample),
        _g("b", [v + 200 for v in skewed_sample]),
        _g("c", [v + 400 for v in skewed_sample]),
    ]

    posthoc = run_posthoc(Procedure.KRUSKAL_WALLIS, groups, alpha=0.05)
    ref = stats.mannwhitneyu(groups[0].array, groups[1].array, alternative="two-sided")

    assert posthoc.method == "Pairwise Wilcoxon rank-sum"
    assert len(posthoc.comparisons) == 3
    assert posthoc.comparisons[0].p_value == pytest.approx(ref.pvalue, rel=1e-6)
    assert all(c.reject for c in posthoc.comparisons)


def test_posthoc_rejected_for_two_group_procedures(two_groups):
    """Post-hoc is only defined for omnibus procedures."""
    with pytest.raises(InvalidShapeError):
        run_posthoc(Procedure.TWO_SAMPLE_T, two_groups, alpha=0.05)
