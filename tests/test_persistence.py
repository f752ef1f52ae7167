"""Tests for model artifact persistence."""

import json
from datetime import datetime
from pathlib import Path

import joblib
import pandas as pd
import pytest

from closefit.errors import InputNotFoundError, UnreadableInputError
from closefit.modeling import (
    ModelArtifact,
    create_artifact,
    fit_ols,
    load_model,
    save_model,
)
from closefit.normalization import normalize_table


@pytest.fixture
def artifact(price_table: pd.DataFrame) -> ModelArtifact:
    """Artifact for a model fitted on the full normalized table."""
    normalization = normalize_table(price_table)
    model = fit_ols(normalization.table, "Close", ["Feature1", "Feature2"])
    return create_artifact(model, normalization.params, created_at=datetime(2024, 1, 2, 3, 4, 5))


class TestSaveLoad:
    """Tests for save_model and load_model."""

    def test_writes_model_and_sidecar(self, tmp_path: Path, artifact: ModelArtifact) -> None:
        """Test that a joblib file and a JSON sidecar are written."""
        model_path, metadata_path = save_model(artifact, tmp_path / "nested" / "model.joblib")
        assert model_path.exists()
        assert metadata_path == tmp_path / "nested" / "model.json"

        metadata = json.loads(metadata_path.read_text())
        assert metadata["created_at"] == "2024-01-02T03:04:05"
        assert metadata["model"]["target"] == "Close"
        assert metadata["model"]["features"] == ["Feature1", "Feature2"]
        assert set(metadata["normalization"]) == {"Feature1", "Feature2", "Close"}
        assert "(Intercept)" in metadata["model"]["coefficients"]

    def test_loaded_model_predicts_identically(
        self, tmp_path: Path, artifact: ModelArtifact
    ) -> None:
        """Test that a reloaded artifact reproduces predictions without refitting."""
        model_path, _ = save_model(artifact, tmp_path / "model.joblib")
        loaded = load_model(model_path)

        record = {"Feature1": 105.0, "Feature2": 48.0}
        assert (
            loaded.predictor().predict(record).value
            == artifact.predictor().predict(record).value
        )
        assert loaded.params == artifact.params
        assert loaded.version == artifact.version

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test that a missing model file raises InputNotFoundError."""
        with pytest.raises(InputNotFoundError):
            load_model(tmp_path / "missing.joblib")

    def test_not_an_artifact(self, tmp_path: Path) -> None:
        """Test that foreign joblib content raises UnreadableInputError."""
        path = tmp_path / "other.joblib"
        joblib.dump({"coefficients": [1, 2]}, path)
        with pytest.raises(UnreadableInputError):
            load_model(path)

    def test_not_a_joblib_file(self, tmp_path: Path) -> None:
        """Test that a text file in place of a model raises UnreadableInputError."""
        path = tmp_path / "prices.joblib"
        path.write_text("Feature1,Close\n1.0,2.0\n")
        with pytest.raises(UnreadableInputError, match="Could not read model file"):
            load_model(path)

