"""
Report assembly and artifact writing.

build_report() is pure and returns an in-memory Report; render_report()
turns it into text; write_artifacts() is the single write phase that
persists the report, the tables and the model.
"""

import io
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import pandas as pd
from rich import box
from rich.console import Console
from rich.table import Table

from closefit.evaluation.evaluator import EvaluationResult
from closefit.evaluation.metrics import compute_residual_stats
from closefit.modeling.diagnostics import DiagnosticTest
from closefit.modeling.inference import Prediction
from closefit.modeling.ols import COEFFICIENT_COLUMNS, FittedModel
from closefit.modeling.persistence import ModelArtifact, save_model
from closefit.preparation.cleaning import CleaningResult
from closefit.utils.logging import get_logger

log = get_logger(__name__)

REPORT_WIDTH = 100


@dataclass(frozen=True)
class Report:
    """
    Snapshot of one pipeline run, ready to be rendered.

    Attributes:
        created_at: Run timestamp.
        project: Project identifier.
        input_path: Source table.
        cleaning: Cleaning outcome.
        statistics: Descriptive statistics table.
        correlations: Correlation matrix, or None for narrow tables.
        n_train: Training rows.
        n_test: Test rows.
        seed: Split seed.
        train_proportion: Requested training share.
        model: Fitted model.
        evaluation: Test-set evaluation.
        example: Prediction for the feature-mean record, if computed.
        alpha: Significance level used to annotate diagnostic tests.
    """

    created_at: datetime
    project: str
    input_path: Path
    cleaning: CleaningResult
    statistics: pd.DataFrame
    correlations: pd.DataFrame | None
    n_train: int
    n_test: int
    seed: int
    train_proportion: float
    model: FittedModel
    evaluation: EvaluationResult
    example: Prediction | None = None
    alpha: float = 0.05

    @property
    def normality_p_value(self) -> float | None:
        """Shapiro-Wilk p-value of the training residuals."""
        return self.model.diagnostics.normality.p_value

    @property
    def heteroscedasticity_p_value(self) -> float | None:
        """Non-constant variance test p-value of the training residuals."""
        return self.model.diagnostics.heteroscedasticity.p_value


@dataclass(frozen=True)
class ArtifactPaths:
    """Locations of everything written by write_artifacts()."""

    predictions: Path
    statistics: Path
    model: Path
    model_metadata: Path
    report: Path

    def as_list(self) -> list[Path]:
        """All paths, in write order."""
        return [
            self.predictions,
            self.statistics,
            self.model,
            self.model_metadata,
            self.report,
        ]


def build_report(
    *,
    project: str,
    input_path: Path,
    cleaning: CleaningResult,
    statistics: pd.DataFrame,
    correlations: pd.DataFrame | None,
    n_train: int,
    n_test: int,
    seed: int,
    train_proportion: float,
    model: FittedModel,
    evaluation: EvaluationResult,
    example: Prediction | None = None,
    alpha: float = 0.05,
    created_at: datetime | None = None,
) -> Report:
    """
    Assemble a Report from computed pipeline results.

    Pure: no I/O. The timestamp defaults to now.
    """
    return Report(
        created_at=created_at or datetime.now(),
        project=project,
        input_path=input_path,
        cleaning=cleaning,
        statistics=statistics,
        correlations=correlations,
        n_train=n_train,
        n_test=n_test,
        seed=seed,
        train_proportion=train_proportion,
        model=model,
        evaluation=evaluation,
        example=example,
        alpha=alpha,
    )


def _fmt(value: float | None, spec: str = ".4f") -> str:
    if value is None:
        return "NA"
    return format(value, spec)


def _fmt_p(value: float | None) -> str:
    if value is None:
        return "NA"
    return f"{value:.4g}" if value >= 1e-4 else f"{value:.2e}"


def _statistics_table(stats: pd.DataFrame) -> Table:
    table = Table(box=box.SIMPLE_HEAD, show_edge=False)
    table.add_column("Variable")
    for col in stats.columns.drop("variable"):
        table.add_column(col, justify="right")
    for _, row in stats.iterrows():
        table.add_row(
            str(row["variable"]),
            *[
                str(int(row[col])) if col == "missing" else _fmt(row[col])
                for col in stats.columns.drop("variable")
            ],
        )
    return table


def _matrix_table(matrix: pd.DataFrame) -> Table:
    table = Table(box=box.SIMPLE_HEAD, show_edge=False)
    table.add_column("")
    for col in matrix.columns:
        table.add_column(str(col), justify="right")
    for name, row in matrix.iterrows():
        table.add_row(str(name), *[_fmt(v, ".3f") for v in row])
    return table


def _coefficient_table(model: FittedModel) -> Table:
    table = Table(box=box.SIMPLE_HEAD, show_edge=False)
    table.add_column("Term")
    for header in ["Estimate", "Std. Error", "t value", "Pr(>|t|)"]:
        table.add_column(header, justify="right")
    for term, row in model.coefficient_table[COEFFICIENT_COLUMNS].iterrows():
        table.add_row(
            str(term),
            _fmt(row["estimate"], ".6f"),
            _fmt(row["std_error"], ".6f"),
            _fmt(row["t_value"], ".3f"),
            _fmt_p(row["p_value"]),
        )
    return table


def _diagnostic_line(test: DiagnosticTest, alpha: float) -> str:
    if not test.computed:
        return f"{test.name}: p-value = NA (not computed: {test.error})"
    verdict = "reject H0" if test.rejects(alpha) else "no evidence against H0"
    return (
        f"{test.name}: statistic = {_fmt(test.statistic)}, "
        f"p-value = {_fmt_p(test.p_value)} ({verdict} at alpha={alpha})"
    )


def _heading(console: Console, title: str) -> None:
    console.print()
    console.print(title)
    console.print("-" * len(title))


def render_report(report: Report) -> str:
    """
    Render a Report as plain text.

    Args:
        report: Report to render.

    Returns:
        The report text.
    """
    buffer = io.StringIO()
    console = Console(
        file=buffer,
        width=REPORT_WIDTH,
        color_system=None,
        force_terminal=False,
        highlight=False,
        markup=False,
        emoji=False,
        soft_wrap=True,
    )
    model = report.model
    cleaning = report.cleaning

    title = "Linear Regression Analysis Report"
    console.print(title)
    console.print("=" * len(title))
    console.print()
    console.print(f"Run timestamp: {report.created_at.isoformat(timespec='seconds')}")
    console.print(f"Project: {report.project}")
    console.print(f"Input: {report.input_path}")
    console.print(f"Target: {model.target}")
    console.print(f"Features: {', '.join(model.features)}")

    _heading(console, "0. Data cleaning")
    console.print(f"Rows before cleaning: {cleaning.n_input}")
    console.print(f"Rows after cleaning: {cleaning.n_output}")
    console.print(f"Rows with missing values removed: {cleaning.n_missing_dropped}")
    console.print(f"Duplicate rows removed: {cleaning.n_duplicates_dropped}")
    console.print(f"Retention: {cleaning.retention_ratio:.1%}")
    if cleaning.excessive_loss:
        console.print(
            f"WARNING: more than {1 - cleaning.min_retention_ratio:.0%} of the rows "
            "were removed during cleaning. Check data quality."
        )

    _heading(console, "1. Descriptive statistics")
    console.print(_statistics_table(report.statistics))
    if report.correlations is not None:
        console.print("Correlation matrix (Pearson):")
        console.print(_matrix_table(report.correlations))

    _heading(console, "2. Model performance (test set)")
    console.print(
        f"Split: {report.n_train} training / {report.n_test} test rows "
        f"(train proportion {report.train_proportion}, seed {report.seed})"
    )
    metrics = report.evaluation.metrics
    original = report.evaluation.original_metrics
    console.print(f"R²: {_fmt(metrics.r2)}")
    console.print(f"RMSE: {_fmt(metrics.rmse)}")
    console.print(f"MAE: {_fmt(metrics.mae)}")
    console.print(
        f"In original units: RMSE = {_fmt(original.rmse)}, MAE = {_fmt(original.mae)}"
    )

    _heading(console, "3. Model coefficients")
    console.print(_coefficient_table(model))
    residual_stats = compute_residual_stats(model.residuals)
    console.print(
        "Residuals (training): "
        + ", ".join(f"{k} = {_fmt(v)}" for k, v in residual_stats.items())
    )
    console.print(
        f"Residual standard error: {_fmt(model.residual_std_error)} "
        f"on {model.df_residual} degrees of freedom"
    )
    console.print(
        f"Multiple R²: {_fmt(model.r2)}, Adjusted R²: {_fmt(model.adj_r2)}"
    )
    console.print(
        f"F-statistic: {_fmt(model.f_statistic, '.2f')} on {model.df_model} and "
        f"{model.df_residual} DF, p-value: {_fmt_p(model.f_pvalue)}"
    )

    _heading(console, "4. Diagnostic tests")
    console.print(_diagnostic_line(model.diagnostics.normality, report.alpha))
    console.print(_diagnostic_line(model.diagnostics.heteroscedasticity, report.alpha))

    if report.example is not None:
        _heading(console, "5. Example prediction (feature means)")
        for name, value in report.example.inputs.items():
            console.print(f"{name} = {_fmt(value)}")
        console.print(f"Prediction (normalized scale): {_fmt(report.example.normalized)}")
        console.print(f"Prediction (original scale): {_fmt(report.example.value)}")

    return buffer.getvalue()


def write_artifacts(
    report: Report,
    artifact: ModelArtifact,
    *,
    predictions_path: Path,
    statistics_path: Path,
    model_path: Path,
    report_path: Path,
) -> ArtifactPaths:
    """
    Persist predictions, statistics, model and text report.

    Args:
        report: Completed report.
        artifact: Model artifact to serialize.
        predictions_path: CSV target for the predictions table.
        statistics_path: CSV target for the descriptive statistics.
        model_path: joblib target for the model artifact.
        report_path: Text target for the rendered report.

    Returns:
        ArtifactPaths of the written files.
    """
    text = render_report(report)

    for path in (predictions_path, statistics_path, report_path):
        path.parent.mkdir(parents=True, exist_ok=True)

    report.evaluation.predictions.to_csv(predictions_path, index_label="row")
    report.statistics.to_csv(statistics_path, index=False)
    model_file, metadata_file = save_model(artifact, model_path)
    report_path.write_text(text, encoding="utf-8")

    paths = ArtifactPaths(
        predictions=predictions_path,
        statistics=statistics_path,
        model=model_file,
        model_metadata=metadata_file,
        report=report_path,
    )
    log.info("Wrote artifacts", paths=[str(p) for p in paths.as_list()])
    return paths
