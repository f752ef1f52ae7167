"""
Evaluation: test-set metrics, reporting and run tracking.
"""

from closefit.evaluation.evaluator import EvaluationResult, evaluate_model
from closefit.evaluation.metrics import (
    RegressionMetrics,
    compute_metrics,
    compute_residual_stats,
)
from closefit.evaluation.report import (
    ArtifactPaths,
    Report,
    build_report,
    render_report,
    write_artifacts,
)

__all__ = [
    "ArtifactPaths",
    "EvaluationResult",
    "RegressionMetrics",
    "Report",
    "build_report",
    "compute_metrics",
    "compute_residual_stats",
    "evaluate_model",
    "render_report",
    "write_artifacts",
]
