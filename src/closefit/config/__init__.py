"""
Configuration management with typed Pydantic models.

Provides YAML loading with environment interpolation and
explicit defaults for every pipeline option.
"""

from closefit.config.loader import build_config, load_config
from closefit.config.settings import (
    CleaningConfig,
    DataConfig,
    DiagnosticsConfig,
    LoggingConfig,
    MLflowConfig,
    OutputConfig,
    PipelineConfig,
    SplitConfig,
)

__all__ = [
    "CleaningConfig",
    "DataConfig",
    "DiagnosticsConfig",
    "LoggingConfig",
    "MLflowConfig",
    "OutputConfig",
    "PipelineConfig",
    "SplitConfig",
    "build_config",
    "load_config",
]
