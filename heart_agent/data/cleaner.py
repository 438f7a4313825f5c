"""Rule-based cleaning of a heart disease table."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from heart_agent.config import (
    BASELINE_LEVEL,
    CATEGORICAL_COLUMNS,
    MISSING_THRESHOLD,
    OUTCOME_COLUMN,
    SENTINELS,
)
from heart_agent.errors import ConfigError
from heart_agent.utils import get_logger

log = get_logger(__name__)

BINARY_CLASSES = [0, 1]


@dataclass(frozen=True)
class CleaningRules:
    """Fixed rule set applied identically to every partition."""

    outcome_column: str = OUTCOME_COLUMN
    baseline_level: object = BASELINE_LEVEL
    sentinels: dict = field(default_factory=lambda: dict(SENTINELS))
    missing_threshold: float = MISSING_THRESHOLD
    categorical_columns: tuple[str, ...] = CATEGORICAL_COLUMNS

    def __post_init__(self):
        if not 0.0 <= self.missing_threshold <= 1.0:
            raise ConfigError(
                f"missing_threshold must be in [0, 1], got {self.missing_threshold}"
            )


@dataclass
class CleaningResult:
    df: pd.DataFrame
    recoded: dict[str, int]
    missing_fractions: dict[str, float]
    dropped_columns: list[str]
    rows_dropped: int

    @property
    def kept_columns(self) -> list[str]:
        return list(self.df.columns)

    def summary(self) -> dict:
        return {
            "rows": len(self.df),
            "columns": self.kept_columns,
            "sentinels_recoded": self.recoded,
            "missing_fractions": self.missing_fractions,
            "dropped_columns": self.dropped_columns,
            "rows_dropped": self.rows_dropped,
        }


def is_binarized(series: pd.Series) -> bool:
    """True for an outcome column already collapsed by a previous clean."""
    return (
        isinstance(series.dtype, pd.CategoricalDtype)
        and list(series.cat.categories) == BINARY_CLASSES
    )


def matches_level(series: pd.Series, level) -> pd.Series:
    if pd.api.types.is_numeric_dtype(series):
        try:
            return series == float(level)
        except (TypeError, ValueError):
            pass
    return series.astype(str) == str(level)


class Cleaner:
    """
    Turns a raw table into a cleaned table.

    Steps, in order:
        1. recode sentinel values to missing
        2. collapse the outcome to 0 (baseline level) / 1 (any other level)
        3. drop columns whose missing fraction exceeds the threshold
        4. drop rows that still hold a missing value
        5. type categorical columns and the outcome as `category`

    The input table is never modified.
    """

    def __init__(self, rules: CleaningRules | None = None):
        self.rules = rules or CleaningRules()

    def clean(self, df: pd.DataFrame,
              keep_columns: list[str] | None = None) -> CleaningResult:
        """
        Apply the rules to `df`.

        When `keep_columns` is given, step 3 keeps exactly those columns
        instead of judging this table's own missingness.
        """
        rules = self.rules
        outcome = rules.outcome_column
        if outcome not in df.columns:
            raise ConfigError(f"Outcome column '{outcome}' not in table")

        out = df.copy()

        # Step 1: sentinel values
        recoded = {}
        for col, value in rules.sentinels.items():
            if col not in out.columns:
                log.warning("Sentinel column '%s' not in table, skipping", col)
                continue
            hits = matches_level(out[col], value) & out[col].notna()
            recoded[col] = int(hits.sum())
            if recoded[col]:
                out[col] = out[col].mask(hits)
            log.info("Recoded %d '%s' values of %r to missing", recoded[col], col, value)

        # Step 2: binary outcome
        out[outcome] = self._binarize(out[outcome])

        # Step 3: column pruning
        fractions = {
            col: float(frac) if not np.isnan(frac) else 0.0
            for col, frac in out.isna().mean().items()
        }
        if keep_columns is None:
            dropped = [c for c, f in fractions.items() if f > rules.missing_threshold]
        else:
            absent = [c for c in keep_columns if c not in out.columns]
            if absent:
                raise ConfigError(f"Columns to keep are not in table: {absent}")
            dropped = [c for c in out.columns if c not in keep_columns]

        if outcome in dropped:
            raise ConfigError(
                f"Cleaning would drop the outcome column '{outcome}' "
                f"({fractions[outcome]:.1%} missing)"
            )
        if dropped:
            log.info(
                "Dropping %d columns: %s",
                len(dropped),
                ", ".join(f"{c} ({fractions[c]:.1%} missing)" for c in dropped),
            )
        out = out.drop(columns=dropped)

        # Step 4: row pruning
        n_before = len(out)
        out = out.dropna(how="any")
        rows_dropped = n_before - len(out)
        log.info("Dropped %d rows with missing values, %d remain", rows_dropped, len(out))
        if out.empty:
            log.warning("Cleaning removed every row")

        # Step 5: categorical typing
        for col in rules.categorical_columns:
            if col in out.columns:
                out[col] = out[col].astype("category")
        out[outcome] = pd.Categorical(
            out[outcome].astype(int), categories=BINARY_CLASSES
        )

        return CleaningResult(
            df=out,
            recoded=recoded,
            missing_fractions=fractions,
            dropped_columns=dropped,
            rows_dropped=rows_dropped,
        )

    def _binarize(self, series: pd.Series) -> pd.Series:
        if is_binarized(series):
            return series.astype(float)

        baseline = matches_level(series, self.rules.baseline_level)
        if series.notna().any() and not baseline.any():
            log.warning(
                "No '%s' values equal the baseline level %r; every row is class 1",
                series.name, self.rules.baseline_level,
            )
        binary = pd.Series(np.where(baseline, 0.0, 1.0), index=series.index)
        return binary.mask(series.isna())
