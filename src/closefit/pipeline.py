"""
End-to-end regression pipeline.

Runs load -> clean -> describe -> normalize -> split -> fit -> evaluate
-> report as one sequential pass. Computation happens first; every file
is written in a single phase at the end, so a failed run leaves no
partial artifacts.
"""

from dataclasses import dataclass
from datetime import datetime

import pandas as pd

from closefit.config.settings import PipelineConfig
from closefit.evaluation.evaluator import EvaluationResult, evaluate_model
from closefit.evaluation.report import (
    ArtifactPaths,
    Report,
    build_report,
    write_artifacts,
)
from closefit.ingestion.table import TabularFileLoader
from closefit.modeling.inference import Prediction
from closefit.modeling.ols import FittedModel, fit_ols, resolve_feature_columns
from closefit.modeling.persistence import ModelArtifact, create_artifact
from closefit.modeling.split import Split, split_table
from closefit.normalization.standardize import NormalizationResult, normalize_table
from closefit.preparation.cleaning import CleaningResult, clean_table
from closefit.preparation.statistics import correlation_matrix, describe_table
from closefit.utils.logging import get_logger, log_context

log = get_logger(__name__)


@dataclass(frozen=True)
class PreparedData:
    """
    Cleaned input with its descriptive statistics.

    Attributes:
        raw: Table as loaded, all columns included.
        cleaning: Cleaning outcome over the full records.
        table: Cleaned table narrowed to numeric model columns.
        statistics: Descriptive statistics of the model columns.
        correlations: Correlation matrix, or None for narrow tables.
    """

    raw: pd.DataFrame
    cleaning: CleaningResult
    table: pd.DataFrame
    statistics: pd.DataFrame
    correlations: pd.DataFrame | None


@dataclass(frozen=True)
class PipelineResult:
    """
    Everything produced by one pipeline run.

    Attributes:
        run_id: Identifier of the run (timestamp based).
        prepared: Loaded and cleaned data with statistics.
        features: Predictor columns used.
        normalization: Normalized table and parameters.
        split: Train/test partition.
        model: Fitted model.
        evaluation: Test-set evaluation.
        example: Prediction for the feature-mean record.
        artifact: Persistable model bundle.
        report: In-memory report.
        paths: Written artifact locations, None if nothing was written.
        mlflow_run_id: MLflow run ID when tracking was enabled.
    """

    run_id: str
    prepared: PreparedData
    features: list[str]
    normalization: NormalizationResult
    split: Split
    model: FittedModel
    evaluation: EvaluationResult
    example: Prediction
    artifact: ModelArtifact
    report: Report
    paths: ArtifactPaths | None = None
    mlflow_run_id: str | None = None


def prepare_data(config: PipelineConfig) -> PreparedData:
    """
    Load, clean and describe the configured input table.

    Missing values and duplicates are judged on whole records, so rows
    that differ only in a text column such as Date are kept apart.

    Args:
        config: Pipeline configuration.

    Returns:
        PreparedData for the cleaned table.
    """
    loader = TabularFileLoader(
        config.data.input_path,
        config.target_column,
        config.data.feature_columns,
        sheet_name=config.data.sheet_name,
    )
    raw = loader.load()
    cleaning = clean_table(raw, min_retention_ratio=config.cleaning.min_retention_ratio)
    table = loader.select_model_columns(cleaning.table)
    return PreparedData(
        raw=raw,
        cleaning=cleaning,
        table=table,
        statistics=describe_table(table),
        correlations=correlation_matrix(table),
    )


def run_pipeline(config: PipelineConfig, *, write: bool = True) -> PipelineResult:
    """
    Run the full regression analysis.

    Args:
        config: Pipeline configuration.
        write: Persist predictions, statistics, model and report.

    Returns:
        PipelineResult with all stage outputs.

    Raises:
        ClosefitError: On any structural failure (missing input, schema
            mismatch, constant column, insufficient data, collinearity).
    """
    started = datetime.now()
    run_id = started.strftime("%Y%m%d-%H%M%S")

    with log_context(run_id=run_id, project=config.project):
        log.info("Starting pipeline", input=str(config.data.input_path))

        prepared = prepare_data(config)
        table = prepared.table

        features = resolve_feature_columns(
            table.columns, config.target_column, config.data.feature_columns
        )
        normalization = normalize_table(table[[*features, config.target_column]])

        split = split_table(
            normalization.table,
            config.target_column,
            train_proportion=config.split.train_proportion,
            seed=config.split.seed,
            n_strata=config.split.n_strata,
        )
        model = fit_ols(split.train, config.target_column, features)
        evaluation = evaluate_model(model, split.test, normalization.params)

        artifact = create_artifact(model, normalization.params, created_at=started)
        example = artifact.predictor().baseline()

        report = build_report(
            created_at=started,
            project=config.project,
            input_path=config.data.input_path,
            cleaning=prepared.cleaning,
            statistics=prepared.statistics,
            correlations=prepared.correlations,
            n_train=len(split.train),
            n_test=len(split.test),
            seed=split.seed,
            train_proportion=split.train_proportion,
            model=model,
            evaluation=evaluation,
            example=example,
            alpha=config.diagnostics.alpha,
        )

        paths = None
        if write:
            paths = write_artifacts(
                report,
                artifact,
                predictions_path=config.predictions_path,
                statistics_path=config.statistics_path,
                model_path=config.model_path,
                report_path=config.report_path,
            )

        mlflow_run_id = None
        if config.mlflow.enabled:
            mlflow_run_id = _track_run(config, run_id, features, evaluation, paths)

        log.info(
            "Pipeline complete",
            r2=f"{evaluation.metrics.r2:.4f}",
            rmse=f"{evaluation.metrics.rmse:.4f}",
            mae=f"{evaluation.metrics.mae:.4f}",
        )

    return PipelineResult(
        run_id=run_id,
        prepared=prepared,
        features=features,
        normalization=normalization,
        split=split,
        model=model,
        evaluation=evaluation,
        example=example,
        artifact=artifact,
        report=report,
        paths=paths,
        mlflow_run_id=mlflow_run_id,
    )


def _track_run(
    config: PipelineConfig,
    run_name: str,
    features: list[str],
    evaluation: EvaluationResult,
    paths: ArtifactPaths | None,
) -> str:
    from closefit.evaluation.tracking import RunTracker, run_params

    tracker = RunTracker(config)
    run_id = tracker.start_run(run_name=f"{config.project}-{run_name}")
    try:
        tracker.log_params(run_params(config, features))
        tracker.log_metrics(evaluation.metrics)
        tracker.log_metrics(evaluation.original_metrics, prefix="original_")
        if paths is not None:
            tracker.log_artifacts(paths.as_list())
    finally:
        tracker.end_run()
    return run_id

