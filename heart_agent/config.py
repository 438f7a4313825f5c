"""Configuration constants and run settings for the heart disease agent."""

from __future__ import annotations

from dataclasses import dataclass, field

from heart_agent.errors import ConfigError

# Column layout of the UCI heart disease collection (four collection sites)
OUTCOME_COLUMN = "num"
BASELINE_LEVEL = 0  # "no disease"; grades 1-4 are disease severities
CATEGORICAL_COLUMNS = (
    "sex", "dataset", "cp", "fbs", "restecg", "exang", "slope", "thal",
)
IGNORED_COLUMNS = ("id",)

# A zero cholesterol reading means the value was not collected
SENTINELS = {"chol": 0}

# Tokens read as missing in addition to pandas' defaults
NA_VALUES = ("?", "")

# Run defaults
RANDOM_SEED = 42
TRAIN_FRACTION = 0.80
MISSING_THRESHOLD = 0.30
CP_GRID = (0.0, 1e-4, 1e-3, 1e-2, 1e-1, 1.0)
CV_FOLDS = 5
POSITIVE_CLASS = 0

OBJECTIVES = ("accuracy", "specificity")
TEST_COLUMN_POLICIES = ("inherit", "independent")


@dataclass(frozen=True)
class PipelineConfig:
    """Static settings for one analysis run."""

    outcome_column: str = OUTCOME_COLUMN
    baseline_level: object = BASELINE_LEVEL
    categorical_columns: tuple[str, ...] = CATEGORICAL_COLUMNS
    ignored_columns: tuple[str, ...] = IGNORED_COLUMNS
    sentinels: dict = field(default_factory=lambda: dict(SENTINELS))
    na_values: tuple[str, ...] = NA_VALUES
    seed: int = RANDOM_SEED
    train_fraction: float = TRAIN_FRACTION
    missing_threshold: float = MISSING_THRESHOLD
    cp_grid: tuple[float, ...] = CP_GRID
    cv_folds: int = CV_FOLDS
    positive_class: int = POSITIVE_CLASS
    objectives: tuple[str, ...] = OBJECTIVES
    test_column_policy: str = "inherit"
    n_jobs: int | None = None

    def validate(self) -> "PipelineConfig":
        """Raise ConfigError on the first invalid setting; return self."""
        if not 0.0 < self.train_fraction < 1.0:
            raise ConfigError(
                f"train_fraction must be in (0, 1), got {self.train_fraction}"
            )
        if not 0.0 <= self.missing_threshold <= 1.0:
            raise ConfigError(
                f"missing_threshold must be in [0, 1], got {self.missing_threshold}"
            )
        if not self.cp_grid:
            raise ConfigError("cp_grid must contain at least one value")
        if any(cp < 0 for cp in self.cp_grid):
            raise ConfigError(f"cp_grid values must be non-negative: {self.cp_grid}")
        if self.cv_folds < 2:
            raise ConfigError(f"cv_folds must be at least 2, got {self.cv_folds}")
        if self.positive_class not in (0, 1):
            raise ConfigError(f"positive_class must be 0 or 1, got {self.positive_class}")
        unknown = set(self.objectives) - set(OBJECTIVES)
        if unknown or not self.objectives:
            raise ConfigError(
                f"Unknown objectives: {sorted(unknown)}. Available: {list(OBJECTIVES)}"
            )
        if self.test_column_policy not in TEST_COLUMN_POLICIES:
            raise ConfigError(
                f"Unknown test_column_policy '{self.test_column_policy}'. "
                f"Available: {list(TEST_COLUMN_POLICIES)}"
            )
        if self.outcome_column in self.categorical_columns:
            raise ConfigError(
                f"Outcome column '{self.outcome_column}' cannot also be a feature"
            )
        return self
