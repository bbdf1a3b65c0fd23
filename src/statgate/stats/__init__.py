"""Statistics subsystem: normality-gated selection and execution of hypothesis tests.

This module chooses between parametric and nonparametric procedures from a
Shapiro-Wilk pre-check, with support for:

- One-sample tests (t-test / Wilcoxon signed-rank)
- Two-sample tests (Welch t-test / Wilcoxon rank-sum)
- Paired tests (paired t-test / paired Wilcoxon signed-rank)
- Multi-group tests (one-way ANOVA / Kruskal-Wallis) with Bonferroni-corrected
  pairwise post-hoc comparisons
- Effect sizes, descriptive statistics and a plain-language recommendation

Public API:
-----------
from statgate.stats import run_test, run_test_table

result = run_test(before, after, paired=True)
print(result)

result = run_test_table(df, formula="sbp ~ arm")
"""

from statgate.stats.api import run_test, run_test_from_config, run_test_table
from statgate.stats.reports import (
    AnalysisResult,
    format_summary,
    results_table,
    descriptives_table,
    posthoc_table,
    result_tables,
    result_to_dict,
)
from statgate.stats.selection import Procedure, SelectedProcedure, select_procedure

__all__ = [
    "run_test",
    "run_test_from_config",
    "run_test_table",
    "AnalysisResult",
    "Procedure",
    "SelectedProcedure",
    "select_procedure",
    "format_summary",
    "results_table",
    "descriptives_table",
    "posthoc_table",
    "result_tables",
    "result_to_dict",
]
