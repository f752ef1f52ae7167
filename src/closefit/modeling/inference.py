"""
Prediction on new records in original units.

New inputs are standardized with the parameters learned during
training, passed through the fitted model, and the result is mapped
back to the target's original scale.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np
import pandas as pd

from closefit.errors import MissingFeatureError, SchemaError, UnknownColumnError
from closefit.modeling.ols import FittedModel
from closefit.normalization.standardize import NormalizationParams, Normalizer
from closefit.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class Prediction:
    """
    Prediction for a single record.

    Attributes:
        value: Prediction in the target's original units.
        normalized: Prediction on the standardized scale.
        inputs: Feature values used, in original units.
    """

    value: float
    normalized: float
    inputs: dict[str, float]


class Predictor:
    """
    Apply a fitted model to records given in original units.

    The record must hold exactly the model features: a missing feature
    raises MissingFeatureError and any extra key raises UnknownColumnError.
    """

    def __init__(self, model: FittedModel, params: NormalizationParams) -> None:
        """
        Initialize predictor.

        Args:
            model: Model fitted on standardized data.
            params: Normalization parameters used to standardize that data.
        """
        needed = [*model.features, model.target]
        missing = [c for c in needed if c not in params]
        if missing:
            msg = f"Normalization parameters lack model columns: {missing}"
            raise SchemaError(msg)
        self.model = model
        self.params = params
        self._normalizer = Normalizer.from_params(params)

    @property
    def features(self) -> list[str]:
        """Features the record must provide."""
        return list(self.model.features)

    @property
    def target(self) -> str:
        """Target column name."""
        return self.model.target

    def _check_columns(self, columns: list[str], *, allow_target: bool = False) -> None:
        missing = [f for f in self.model.features if f not in columns]
        if missing:
            msg = f"Record is missing required feature(s): {missing}"
            raise MissingFeatureError(msg)
        allowed = set(self.model.features)
        if allow_target:
            allowed.add(self.model.target)
        unknown = [c for c in columns if c not in allowed]
        if unknown:
            msg = f"Record has column(s) not used by the model: {unknown}"
            raise UnknownColumnError(msg)

    def predict(self, record: Mapping[str, float]) -> Prediction:
        """
        Predict one record.

        Args:
            record: Mapping feature -> value in original units.

        Returns:
            Prediction in original and standardized units.

        Raises:
            MissingFeatureError: If a feature is absent or has no value.
            UnknownColumnError: If the record holds other keys.
        """
        self._check_columns([str(k) for k in record])
        inputs: dict[str, float] = {}
        for feature in self.model.features:
            value = record[feature]
            if value is None or (isinstance(value, float) and math.isnan(value)):
                msg = f"Record has no value for feature {feature!r}"
                raise MissingFeatureError(msg)
            inputs[feature] = float(value)

        frame = pd.DataFrame([inputs], columns=list(self.model.features))
        normalized = float(self.model.predict(self._normalizer.transform(frame))[0])
        value = float(self._normalizer.inverse_transform_values(normalized, self.target))

        log.debug("Predicted record", prediction=value, normalized=normalized)
        return Prediction(value=value, normalized=normalized, inputs=inputs)

    def predict_frame(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Predict every row of a table given in original units.

        The target column may be present; it is then reported as Actual
        with the corresponding Residual.

        Args:
            df: Table with the model features (and optionally the target).

        Returns:
            DataFrame with Predicted (and Actual, Residual when available),
            indexed like df.

        Raises:
            MissingFeatureError: If a feature column is absent or holds
                missing values.
            UnknownColumnError: If df holds other columns.
        """
        self._check_columns([str(c) for c in df.columns], allow_target=True)
        features = df[list(self.model.features)].astype(float)
        incomplete = features.columns[features.isna().any()].tolist()
        if incomplete:
            msg = f"Missing values in feature column(s): {incomplete}"
            raise MissingFeatureError(msg)

        normalized = self.model.predict(self._normalizer.transform(features))
        predicted = self._normalizer.inverse_transform_values(normalized, self.target)

        result = pd.DataFrame({"Predicted": predicted}, index=df.index)
        if self.target in df.columns:
            actual = df[self.target].astype(float).to_numpy()
            result.insert(0, "Actual", actual)
            result["Residual"] = actual - np.asarray(predicted)
        log.info("Predicted table", rows=len(result))
        return result

    def baseline(self) -> Prediction:
        """Prediction for the record holding every feature's mean."""
        return self.predict({f: self.params[f].mean for f in self.model.features})
