"""
Reproducible train/test partitioning.

Rows are bucketed by target quantile and sampled per bucket with an
explicit seed, so the target distribution is balanced across the two
subsets and the same seed always yields the same membership.
"""

import math
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from closefit.errors import InsufficientDataError, SchemaError
from closefit.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_TRAIN_PROPORTION = 0.8
DEFAULT_SEED = 123
DEFAULT_N_STRATA = 4

# Absorbs float error in p * N (0.57 * 100 == 56.99999999999999)
_FLOOR_TOLERANCE = 1e-9


@dataclass(frozen=True)
class Split:
    """
    Disjoint, exhaustive partition of a table.

    Attributes:
        train: Training rows (original index labels preserved).
        test: Held-out rows (original index labels preserved).
        seed: Seed used for sampling.
        train_proportion: Requested training share.
        n_strata: Number of target buckets actually used (1 = unstratified).
    """

    train: pd.DataFrame
    test: pd.DataFrame
    seed: int
    train_proportion: float
    n_strata: int

    @property
    def train_index(self) -> list[int]:
        """Sorted row labels of the training subset."""
        return sorted(self.train.index.tolist())

    @property
    def test_index(self) -> list[int]:
        """Sorted row labels of the test subset."""
        return sorted(self.test.index.tolist())


def _target_strata(
    y: pd.Series, n_strata: int, n_train: int, n_test: int
) -> pd.Series | None:
    """
    Bucket the target into quantile groups for stratified sampling.

    Returns None when stratification is not feasible: a single bucket,
    a bucket with fewer than two rows, or a subset smaller than the
    number of buckets.
    """
    if n_strata <= 1:
        return None
    buckets = pd.qcut(y, q=n_strata, labels=False, duplicates="drop")
    counts = buckets.value_counts()
    if (
        len(counts) <= 1
        or counts.min() < 2
        or min(n_train, n_test) < len(counts)
    ):
        log.warning(
            "Stratified split not feasible, using simple random split",
            n_buckets=len(counts),
            smallest_bucket=int(counts.min()) if len(counts) else 0,
            n_train=n_train,
            n_test=n_test,
        )
        return None
    return buckets


def split_table(
    df: pd.DataFrame,
    target_column: str,
    *,
    train_proportion: float = DEFAULT_TRAIN_PROPORTION,
    seed: int = DEFAULT_SEED,
    n_strata: int = DEFAULT_N_STRATA,
) -> Split:
    """
    Partition rows into training and test subsets.

    The training subset holds floor(train_proportion * N) rows.

    Args:
        df: Normalized table.
        target_column: Column used for stratification.
        train_proportion: Share of rows for training, in (0, 1).
        seed: Random seed; identical inputs and seed give identical splits.
        n_strata: Number of target quantile buckets (1 disables stratification).

    Returns:
        Split with disjoint train and test tables.

    Raises:
        SchemaError: If the target column is missing.
        InsufficientDataError: If either subset would be empty.
    """
    if target_column not in df.columns:
        msg = f"Target column {target_column!r} not in table"
        raise SchemaError(msg)
    if not 0.0 < train_proportion < 1.0:
        msg = f"train_proportion must be in (0, 1), got {train_proportion}"
        raise ValueError(msg)

    n_rows = len(df)
    n_train = math.floor(train_proportion * n_rows + _FLOOR_TOLERANCE)
    n_test = n_rows - n_train
    if n_train == 0 or n_test == 0:
        msg = (
            f"Cannot split {n_rows} rows with train_proportion={train_proportion}: "
            f"train={n_train}, test={n_test}"
        )
        raise InsufficientDataError(msg)

    strata = _target_strata(df[target_column], n_strata, n_train, n_test)

    train_idx, test_idx = train_test_split(
        np.asarray(df.index),
        train_size=n_train,
        test_size=n_test,
        random_state=seed,
        shuffle=True,
        stratify=None if strata is None else strata.to_numpy(),
    )

    split = Split(
        train=df.loc[np.sort(train_idx)],
        test=df.loc[np.sort(test_idx)],
        seed=seed,
        train_proportion=train_proportion,
        n_strata=1 if strata is None else int(strata.nunique()),
    )

    log.info(
        "Split table",
        n_train=len(split.train),
        n_test=len(split.test),
        seed=seed,
        n_strata=split.n_strata,
    )
    return split
