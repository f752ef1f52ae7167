"""
MLflow run tracking.

Optional: only used when the configuration enables MLflow. Logs the
run parameters, test metrics and written artifacts.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import mlflow

from closefit.config.settings import PipelineConfig
from closefit.evaluation.metrics import RegressionMetrics
from closefit.utils.logging import get_logger

log = get_logger(__name__)


def run_params(config: PipelineConfig, features: Iterable[str]) -> dict[str, Any]:
    """Flat parameter dictionary describing one pipeline run."""
    return {
        "input_path": str(config.data.input_path),
        "target_column": config.target_column,
        "features": ",".join(features),
        "train_proportion": config.split.train_proportion,
        "seed": config.split.seed,
        "n_strata": config.split.n_strata,
        "alpha": config.diagnostics.alpha,
    }


class RunTracker:
    """
    Thin wrapper around an MLflow run.
    """

    def __init__(self, config: PipelineConfig) -> None:
        """
        Initialize tracker.

        Args:
            config: Pipeline configuration (tracking URI, experiment name).
        """
        self.config = config
        self._run_id: str | None = None

    @property
    def run_id(self) -> str | None:
        """ID of the active run, if started."""
        return self._run_id

    def start_run(self, run_name: str | None = None) -> str:
        """
        Start an MLflow run in the configured experiment.

        Args:
            run_name: Optional run name.

        Returns:
            Run ID.
        """
        mlflow.set_tracking_uri(self.config.mlflow.tracking_uri)
        mlflow.set_experiment(self.config.experiment_name)

        from closefit import __version__

        run = mlflow.start_run(
            run_name=run_name,
            tags={"project": self.config.project, "closefit_version": __version__},
        )
        self._run_id = run.info.run_id
        log.info(
            "Started MLflow run",
            run_id=self._run_id,
            experiment=self.config.experiment_name,
            tracking_uri=self.config.mlflow.tracking_uri,
        )
        return self._run_id

    def end_run(self) -> None:
        """End the current MLflow run."""
        mlflow.end_run()
        log.info("Ended MLflow run", run_id=self._run_id)

    def log_params(self, params: dict[str, Any]) -> None:
        """Log parameters."""
        mlflow.log_params(params)

    def log_metrics(
        self, metrics: RegressionMetrics | dict[str, float], prefix: str = ""
    ) -> None:
        """Log metrics, optionally prefixing every key."""
        if isinstance(metrics, RegressionMetrics):
            metrics = metrics.to_dict()
        mlflow.log_metrics({f"{prefix}{k}": float(v) for k, v in metrics.items()})

    def log_artifacts(self, paths: Iterable[Path]) -> None:
        """Log written files as run artifacts."""
        for path in paths:
            mlflow.log_artifact(str(path))

