"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import structlog

from closefit.config import PipelineConfig, build_config


@pytest.fixture
def price_table() -> pd.DataFrame:
    """1000 rows of Feature1, Feature2 and a noisy linear Close."""
    rng = np.random.default_rng(42)
    n = 1000
    feature1 = rng.normal(100.0, 15.0, n)
    feature2 = rng.normal(50.0, 5.0, n)
    close = 1.5 * feature1 - 0.8 * feature2 + 10.0 + rng.normal(0.0, 4.0, n)
    return pd.DataFrame({"Feature1": feature1, "Feature2": feature2, "Close": close})


@pytest.fixture
def linear_table() -> pd.DataFrame:
    """Noise-free data following Close = 2*x1 - 3*x2 + 5."""
    rng = np.random.default_rng(0)
    x1 = rng.uniform(-10.0, 10.0, 200)
    x2 = rng.uniform(0.0, 20.0, 200)
    return pd.DataFrame({"x1": x1, "x2": x2, "Close": 2 * x1 - 3 * x2 + 5})


@pytest.fixture
def price_csv(tmp_path: Path, price_table: pd.DataFrame) -> Path:
    """Write price_table (plus a Date column) to a CSV file."""
    table = price_table.copy()
    table.insert(0, "Date", pd.date_range("2020-01-01", periods=len(table)).strftime("%Y-%m-%d"))
    path = tmp_path / "prices.csv"
    table.to_csv(path, index=False)
    return path


@pytest.fixture
def pipeline_config(tmp_path: Path, price_csv: Path) -> PipelineConfig:
    """Configuration pointing at price_csv with outputs under tmp_path."""
    return build_config(
        {
            "project": "test",
            "data": {"input_path": str(price_csv)},
            "output": {"output_root": str(tmp_path / "output")},
        }
    )


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Drop logging configuration made by CLI invocations between tests."""
    yield
    structlog.reset_defaults()
