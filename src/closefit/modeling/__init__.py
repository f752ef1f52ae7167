"""
Modeling layer: splitting, OLS fitting, diagnostics and inference.
"""

from closefit.modeling.diagnostics import (
    DiagnosticTest,
    ResidualDiagnostics,
    run_diagnostics,
)
from closefit.modeling.inference import Prediction, Predictor
from closefit.modeling.ols import (
    INTERCEPT,
    FittedModel,
    check_full_rank,
    fit_ols,
    resolve_feature_columns,
)
from closefit.modeling.persistence import (
    ModelArtifact,
    create_artifact,
    load_model,
    save_model,
)
from closefit.modeling.split import Split, split_table

__all__ = [
    "INTERCEPT",
    "DiagnosticTest",
    "FittedModel",
    "ModelArtifact",
    "Prediction",
    "Predictor",
    "ResidualDiagnostics",
    "Split",
    "check_full_rank",
    "create_artifact",
    "fit_ols",
    "load_model",
    "resolve_feature_columns",
    "run_diagnostics",
    "save_model",
    "split_table",
]
