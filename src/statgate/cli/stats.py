"""CLI commands for automatic test selection."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, List

import pandas as pd
import typer

logger = logging.getLogger(__name__)

stats_app = typer.Typer(
    name="stats",
    help="Normality-gated hypothesis testing.",
    add_completion=False,
)


def _run_on_table(
    df: pd.DataFrame,
    value_col: Optional[str],
    group_col: Optional[str],
    formula: Optional[str],
    x_col: Optional[str],
    y_col: Optional[str],
    groups: Optional[List[str]],
    **params,
):
    """Dispatch to the column-pair or grouped-table entry point."""
    from statgate.errors import InvalidShapeError
    from statgate.stats import run_test, run_test_table

    if x_col is not None:
        if value_col or group_col or formula:
            raise InvalidShapeError("Use either --x-col/--y-col or --value-col/--group-col/--formula")
        for col in (x_col, y_col):
            if col is not None and col not in df.columns:
                raise InvalidShapeError(f"Column '{col}' not found. Available: {list(df.columns)[:10]}")
        y = df[y_col] if y_col is not None else None
        return run_test(df[x_col], y, **params)

    return run_test_table(
        df, value_col, group_col, formula=formula, groups=groups, **params
    )


@stats_app.command("run")
def run_cmd(
    data: Path = typer.Option(..., "--data", help="Path to data file (.csv, .parquet) or parquet dataset directory."),
    value_col: Optional[str] = typer.Option(None, "--value-col", help="Numeric column with observations"),
    group_col: Optional[str] = typer.Option(None, "--group-col", help="Column with group labels"),
    formula: Optional[str] = typer.Option(None, "--formula", help="Formula 'value ~ group'"),
    x_col: Optional[str] = typer.Option(None, "--x-col", help="Column with the first sample"),
    y_col: Optional[str] = typer.Option(None, "--y-col", help="Column with the second sample"),
    groups: Optional[List[str]] = typer.Option(None, "--groups", help="Subset/order of groups"),
    mu: float = typer.Option(0.0, "--mu", help="Hypothesized mean for one-sample tests"),
    alternative: str = typer.Option("two-sided", "--alternative", help="two-sided, less or greater"),
    alpha: float = typer.Option(0.05, "--alpha", help="Significance threshold"),
    conf_level: float = typer.Option(0.95, "--conf-level", help="Confidence level for t-test intervals"),
    paired: bool = typer.Option(False, "--paired", help="Treat two samples as paired"),
    shape: Optional[str] = typer.Option(
        None, "--shape", help="Explicit shape: one_sample, two_sample, paired, multi_group"
    ),
    outdir: Optional[Path] = typer.Option(None, "--outdir", help="Write result tables as CSV here"),
    json_out: Optional[Path] = typer.Option(None, "--json", help="Write the result as JSON"),
):
    """
    Check normality, select the matching test and run it.

    Every sample passing Shapiro-Wilk leads to a t-test or one-way ANOVA;
    otherwise the Wilcoxon or Kruskal-Wallis counterpart is used. Significant
    multi-group results get Bonferroni-corrected pairwise comparisons.

    Examples:
        # Paired columns
        statgate stats run --data bp.csv --x-col baseline_sbp --y-col post_treatment_sbp --paired

        # One sample against a hypothesized mean
        statgate stats run --data data.csv --x-col score --mu 5

        # Three or more groups in long format
        statgate stats run --data trial.parquet --formula "sbp ~ arm" --outdir derived/stats
    """
    from statgate.data import load_table
    from statgate.stats import result_tables, result_to_dict

    if x_col is None and formula is None and (value_col is None or group_col is None):
        typer.secho(
            "Error: provide --x-col [--y-col], --formula, or --value-col with --group-col",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1)

    try:
        df = load_table(data)
        result = _run_on_table(
            df,
            value_col,
            group_col,
            formula,
            x_col,
            y_col,
            groups,
            mu=mu,
            alternative=alternative,
            alpha=alpha,
            conf_level=conf_level,
            paired=paired,
            shape=shape,
        )
    except (ValueError, FileNotFoundError, ImportError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(str(result))

    if outdir is not None:
        outdir.mkdir(parents=True, exist_ok=True)
        for name, table in result_tables(result).items():
            path = outdir / f"{name}.csv"
            table.to_csv(path, index=False)
            typer.echo(f"  • {path}")

    if json_out is not None:
        json_out.parent.mkdir(parents=True, exist_ok=True)
        json_out.write_text(json.dumps(result_to_dict(result), indent=2), encoding="utf-8")
        typer.echo(f"  • {json_out}")

    fg = typer.colors.GREEN if result.significant else typer.colors.YELLOW
    typer.secho(f"\n✓ {result.procedure.label} complete.", fg=fg)


@stats_app.command("normality")
def normality_cmd(
    data: Path = typer.Option(..., "--data", help="Path to data file (.csv, .parquet)"),
    value_col: str = typer.Option(..., "--value-col", help="Numeric column with observations"),
    group_col: Optional[str] = typer.Option(None, "--group-col", help="Column with group labels"),
    alpha: float = typer.Option(0.05, "--alpha", help="Significance threshold"),
):
    """
    Run only the Shapiro-Wilk normality gate and report the verdicts.

    Examples:
        statgate stats normality --data trial.csv --value-col sbp --group-col arm
    """
    from statgate.config import AnalysisConfig
    from statgate.data import load_table
    from statgate.stats.normality import assess_normality, aggregate_normality, normality_table
    from statgate.stats.preprocess import groups_from_table, normalize_input

    try:
        config = AnalysisConfig(alpha=alpha)
        df = load_table(data)
        if group_col is None:
            if value_col not in df.columns:
                raise ValueError(f"Column '{value_col}' not found")
            groups, _ = normalize_input(df[value_col])
        else:
            values, names = groups_from_table(df, value_col, group_col)
            shape = {1: "one_sample", 2: "two_sample"}.get(len(values), "multi_group")
            groups, _ = normalize_input(values, group_names=names, shape=shape)
        verdicts = assess_normality(groups, config.alpha)
    except (ValueError, FileNotFoundError, ImportError) as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    typer.echo(normality_table(verdicts).to_string(index=False))
    if aggregate_normality(verdicts):
        typer.secho("\nAll groups normal: parametric branch.", fg=typer.colors.GREEN)
    else:
        typer.secho("\nAt least one group not normal: nonparametric branch.", fg=typer.colors.YELLOW)
