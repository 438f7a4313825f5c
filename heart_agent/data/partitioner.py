"""Reproducible stratified train/test partitioning."""

import math

import numpy as np
import pandas as pd

from heart_agent.errors import ConfigError
from heart_agent.utils import get_logger

log = get_logger(__name__)


def stratified_split(df: pd.DataFrame, column: str, train_fraction: float = 0.8,
                     seed: int = 42) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split a table into disjoint (train, test) tables stratified on `column`.

    Each stratum of size n contributes ceil(train_fraction * n) rows to
    train and the rest to test. Missing labels form a stratum of their own.
    Both outputs keep the input's row order and index.
    """
    if not 0.0 < train_fraction < 1.0:
        raise ConfigError(f"train_fraction must be in (0, 1), got {train_fraction}")
    if column not in df.columns:
        raise ConfigError(f"Stratification column '{column}' not in table")

    rng = np.random.default_rng(seed)
    train_positions = []

    # Labels as text so missing values get a stratum; sorted so the random
    # stream is consumed in a fixed order
    strata = df[column].astype(str)
    groups = strata.groupby(strata, sort=True).indices
    for label, positions in groups.items():
        n_train = math.ceil(train_fraction * len(positions))
        chosen = rng.permutation(positions)[:n_train]
        train_positions.extend(chosen.tolist())
        log.debug("Stratum %r: %d train / %d test", label, n_train,
                  len(positions) - n_train)

    mask = np.zeros(len(df), dtype=bool)
    mask[train_positions] = True
    train, test = df.iloc[mask].copy(), df.iloc[~mask].copy()

    log.info(
        "Split: %d train / %d test (%.0f%% train, stratified on '%s')",
        len(train), len(test), train_fraction * 100, column,
    )
    return train, test
