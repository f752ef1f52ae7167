"""
Model artifact persistence (save/load).

The artifact bundles the fitted coefficients with the normalization
parameters, which is everything needed to predict without refitting.
"""

import json
import pickle
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import joblib

from closefit.errors import InputNotFoundError, UnreadableInputError
from closefit.modeling.inference import Predictor
from closefit.modeling.ols import FittedModel
from closefit.normalization.standardize import NormalizationParams
from closefit.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class ModelArtifact:
    """
    Persistable model bundle.

    Attributes:
        model: Fitted linear model (standardized scale).
        params: Normalization parameters for every model column.
        created_at: ISO timestamp of the pipeline run.
        version: Package version that produced the artifact.
    """

    model: FittedModel
    params: NormalizationParams
    created_at: str
    version: str

    def predictor(self) -> Predictor:
        """Build a Predictor from the stored model and parameters."""
        return Predictor(self.model, self.params)

    def metadata(self) -> dict[str, Any]:
        """Human-readable description for the JSON sidecar."""
        return {
            "created_at": self.created_at,
            "version": self.version,
            "model": self.model.to_dict(),
            "normalization": self.params.to_dict(),
        }


def create_artifact(
    model: FittedModel,
    params: NormalizationParams,
    created_at: datetime | None = None,
) -> ModelArtifact:
    """Bundle a model with its normalization parameters."""
    from closefit import __version__

    timestamp = (created_at or datetime.now()).isoformat(timespec="seconds")
    return ModelArtifact(
        model=model, params=params, created_at=timestamp, version=__version__
    )


def save_model(artifact: ModelArtifact, output_path: Path) -> tuple[Path, Path]:
    """
    Save model artifact and metadata to disk.

    Creates two files:
        - output_path: joblib dump of the ModelArtifact
        - output_path with .json suffix: human-readable metadata

    Args:
        artifact: Artifact to save.
        output_path: Target path of the joblib file.

    Returns:
        Tuple of (model_path, metadata_path).
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    metadata_path = output_path.with_suffix(".json")

    joblib.dump(artifact, output_path)
    log.info("Saved model", path=str(output_path))

    with open(metadata_path, "w", encoding="utf-8") as f:
        json.dump(artifact.metadata(), f, indent=2)
    log.info("Saved model metadata", path=str(metadata_path))

    return output_path, metadata_path


def load_model(path: Path) -> ModelArtifact:
    """
    Load a model artifact from disk.

    Args:
        path: Path to the joblib file.

    Returns:
        The stored ModelArtifact.

    Raises:
        InputNotFoundError: If the file does not exist.
        UnreadableInputError: If the file does not hold a ModelArtifact.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Model file not found: {path}"
        raise InputNotFoundError(msg)

    try:
        artifact = joblib.load(path)
    except (
        pickle.UnpicklingError,
        EOFError,
        ValueError,
        KeyError,
        AttributeError,
        ImportError,
        IndexError,
        TypeError,
    ) as e:
        msg = f"Could not read model file {path}: {e}"
        raise UnreadableInputError(msg) from e
    if not isinstance(artifact, ModelArtifact):
        msg = f"{path} does not contain a closefit model artifact"
        raise UnreadableInputError(msg)

    log.info("Loaded model", path=str(path), created_at=artifact.created_at)
    return artifact
