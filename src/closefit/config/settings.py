"""
Typed configuration models using Pydantic.

All configuration is defined here with explicit typing and validation.
Processing code never reads files or environment on its own.
"""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DataConfig(BaseModel):
    """Input table and column selection."""

    model_config = ConfigDict(frozen=True)

    input_path: Path = Field(description="Path to the input table (CSV, Excel, Parquet)")
    target_column: str = Field(default="Close", description="Column to predict")
    feature_columns: list[str] | None = Field(
        default=None,
        description="Explicit predictor list. Defaults to all numeric non-target columns.",
    )
    sheet_name: str | int = Field(
        default=0, description="Spreadsheet sheet (name or index) for Excel input"
    )

    @field_validator("target_column")
    @classmethod
    def validate_target(cls, v: str) -> str:
        """Ensure the target column name is not blank."""
        if not v.strip():
            msg = "target_column must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("feature_columns")
    @classmethod
    def validate_features(cls, v: list[str] | None, info: Any) -> list[str] | None:
        """Reject duplicate features and features equal to the target."""
        if v is None:
            return v
        if len(set(v)) != len(v):
            msg = f"feature_columns contains duplicates: {v}"
            raise ValueError(msg)
        target = info.data.get("target_column")
        if target is not None and target in v:
            msg = f"Target column {target!r} cannot also be a feature"
            raise ValueError(msg)
        return v


class CleaningConfig(BaseModel):
    """Data cleaning policy."""

    model_config = ConfigDict(frozen=True)

    min_retention_ratio: float = Field(
        default=0.7,
        gt=0.0,
        le=1.0,
        description="Warn when fewer than this share of rows survive cleaning",
    )


class SplitConfig(BaseModel):
    """Train/test partitioning."""

    model_config = ConfigDict(frozen=True)

    train_proportion: float = Field(default=0.8, gt=0.0, lt=1.0)
    seed: int = Field(default=123)
    n_strata: int = Field(
        default=4,
        ge=1,
        le=20,
        description="Number of target quantile buckets (1 disables stratification)",
    )


class DiagnosticsConfig(BaseModel):
    """Residual diagnostic test settings."""

    model_config = ConfigDict(frozen=True)

    alpha: float = Field(default=0.05, gt=0.0, lt=1.0)


class OutputConfig(BaseModel):
    """Output paths configuration.

    File names are resolved against output_root / project unless absolute.
    """

    model_config = ConfigDict(frozen=True)

    output_root: Path = Field(
        default=Path("./output"), description="Root directory for all outputs"
    )
    predictions: Path = Field(default=Path("predictions.csv"))
    statistics: Path = Field(default=Path("descriptive_statistics.csv"))
    model: Path = Field(default=Path("model.joblib"))
    report: Path = Field(default=Path("report.txt"))


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_output: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Accept standard level names only."""
        levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in levels:
            msg = f"Unknown log level {v!r}, expected one of {sorted(levels)}"
            raise ValueError(msg)
        return v.upper()


class MLflowConfig(BaseModel):
    """MLflow experiment tracking configuration."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = Field(default=False)
    tracking_uri: str = Field(default="http://127.0.0.1:5000")
    # experiment_name is optional; derived from project if not set
    experiment_name: str | None = Field(
        default=None, description="MLflow experiment name (defaults to project name)"
    )


class PipelineConfig(BaseModel):
    """Complete pipeline configuration.

    The project name drives:
    - MLflow experiment name (if not explicitly set)
    - Output directory structure: ./output/{project}/
    """

    model_config = ConfigDict(frozen=True)

    project: str = Field(default="closefit", description="Project identifier")

    data: DataConfig
    cleaning: CleaningConfig = Field(default_factory=CleaningConfig)
    split: SplitConfig = Field(default_factory=SplitConfig)
    diagnostics: DiagnosticsConfig = Field(default_factory=DiagnosticsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    mlflow: MLflowConfig = Field(default_factory=MLflowConfig)

    @property
    def target_column(self) -> str:
        """Convenience accessor for the target column."""
        return self.data.target_column

    @property
    def experiment_name(self) -> str:
        """MLflow experiment name (derived from project if not set)."""
        return self.mlflow.experiment_name or self.project

    @property
    def output_dir(self) -> Path:
        """Directory holding this project's artifacts."""
        return self.output.output_root / self.project

    def _resolve(self, path: Path) -> Path:
        return path if path.is_absolute() else self.output_dir / path

    @property
    def predictions_path(self) -> Path:
        """Path to the predictions table."""
        return self._resolve(self.output.predictions)

    @property
    def statistics_path(self) -> Path:
        """Path to the descriptive statistics table."""
        return self._resolve(self.output.statistics)

    @property
    def model_path(self) -> Path:
        """Path to the serialized model artifact."""
        return self._resolve(self.output.model)

    @property
    def report_path(self) -> Path:
        """Path to the text report."""
        return self._resolve(self.output.report)

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """
        Return a copy with dotted-key overrides applied.

        None values are skipped, so CLI options left unset keep the
        configured value.

        Example:
            config.with_overrides(**{"split.seed": 7, "data.target_column": "Rate"})
        """
        data = self.model_dump()
        changed = False
        for dotted_key, value in overrides.items():
            if value is None:
                continue
            section, _, key = dotted_key.rpartition(".")
            node = data
            for part in filter(None, section.split(".")):
                node = node[part]
            if key not in node:
                msg = f"Unknown configuration key: {dotted_key}"
                raise KeyError(msg)
            node[key] = value
            changed = True
        return PipelineConfig.model_validate(data) if changed else self
