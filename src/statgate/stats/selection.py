"""Map a test shape and normality verdict to a statistical procedure."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Sequence, Tuple

from statgate.config import TestShape
from statgate.errors import InvalidShapeError
from statgate.stats.normality import NormalityVerdict


class Procedure(str, Enum):
    """Closed set of procedures the engine can run."""

    ONE_SAMPLE_T = "one_sample_t"
    ONE_SAMPLE_WILCOXON = "one_sample_wilcoxon"
    TWO_SAMPLE_T = "two_sample_t"
    RANK_SUM = "rank_sum"
    PAIRED_T = "paired_t"
    PAIRED_WILCOXON = "paired_wilcoxon"
    ANOVA = "anova"
    KRUSKAL_WALLIS = "kruskal_wallis"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def shape(self) -> TestShape:
        return _SHAPES[self]

    @property
    def parametric(self) -> bool:
        return self in _PARAMETRIC

    @property
    def center(self) -> str:
        """Location measure the procedure compares."""
        return "mean" if self.parametric else "median"


_LABELS = {
    Procedure.ONE_SAMPLE_T: "One-sample t-test",
    Procedure.ONE_SAMPLE_WILCOXON: "Wilcoxon signed-rank test",
    Procedure.TWO_SAMPLE_T: "Welch two-sample t-test",
    Procedure.RANK_SUM: "Wilcoxon rank-sum test",
    Procedure.PAIRED_T: "Paired t-test",
    Procedure.PAIRED_WILCOXON: "Paired Wilcoxon signed-rank test",
    Procedure.ANOVA: "One-way ANOVA",
    Procedure.KRUSKAL_WALLIS: "Kruskal-Wallis test",
}

_SHAPES = {
    Procedure.ONE_SAMPLE_T: TestShape.ONE_SAMPLE,
    Procedure.ONE_SAMPLE_WILCOXON: TestShape.ONE_SAMPLE,
    Procedure.TWO_SAMPLE_T: TestShape.TWO_SAMPLE,
    Procedure.RANK_SUM: TestShape.TWO_SAMPLE,
    Procedure.PAIRED_T: TestShape.PAIRED,
    Procedure.PAIRED_WILCOXON: TestShape.PAIRED,
    Procedure.ANOVA: TestShape.MULTI_GROUP,
    Procedure.KRUSKAL_WALLIS: TestShape.MULTI_GROUP,
}

_PARAMETRIC = frozenset(
    {Procedure.ONE_SAMPLE_T, Procedure.TWO_SAMPLE_T, Procedure.PAIRED_T, Procedure.ANOVA}
)

SELECTION_TABLE: Dict[Tuple[TestShape, bool], Procedure] = {
    (TestShape.ONE_SAMPLE, True): Procedure.ONE_SAMPLE_T,
    (TestShape.ONE_SAMPLE, False): Procedure.ONE_SAMPLE_WILCOXON,
    (TestShape.TWO_SAMPLE, True): Procedure.TWO_SAMPLE_T,
    (TestShape.TWO_SAMPLE, False): Procedure.RANK_SUM,
    (TestShape.PAIRED, True): Procedure.PAIRED_T,
    (TestShape.PAIRED, False): Procedure.PAIRED_WILCOXON,
    (TestShape.MULTI_GROUP, True): Procedure.ANOVA,
    (TestShape.MULTI_GROUP, False): Procedure.KRUSKAL_WALLIS,
}


@dataclass(frozen=True)
class SelectedProcedure:
    """The chosen procedure and the normality verdict that produced it."""

    procedure: Procedure
    all_normal: bool
    rationale: str


def select_procedure(shape: TestShape, all_normal: bool) -> Procedure:
    """Look up the procedure for a test shape and aggregate normality verdict.

    Raises:
        InvalidShapeError: If the combination is not in the selection table
    """
    try:
        return SELECTION_TABLE[(shape, all_normal)]
    except (KeyError, TypeError):
        raise InvalidShapeError(
            f"No procedure for shape={shape!r}, all_normal={all_normal!r}"
        ) from None


def describe_selection(
    shape: TestShape, all_normal: bool, verdicts: Sequence[NormalityVerdict]
) -> SelectedProcedure:
    """Select the procedure and explain why it was chosen."""
    procedure = select_procedure(shape, all_normal)

    if all_normal:
        rationale = (
            f"All samples passed the Shapiro-Wilk normality check; "
            f"using the parametric {procedure.label}."
        )
    else:
        failed = [v.group for v in verdicts if not v.is_normal]
        rationale = (
            f"Normality rejected for {', '.join(failed)}; "
            f"using the non-parametric {procedure.label}."
        )
    return SelectedProcedure(procedure=procedure, all_normal=all_normal, rationale=rationale)
