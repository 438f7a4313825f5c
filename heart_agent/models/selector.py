"""Decision-tree model selection with the one-standard-error rule."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.metrics import make_scorer, recall_score
from sklearn.model_selection import StratifiedKFold, cross_validate
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder
from sklearn.tree import DecisionTreeClassifier, export_text

from heart_agent.config import CP_GRID, CV_FOLDS, OBJECTIVES, POSITIVE_CLASS, RANDOM_SEED
from heart_agent.errors import ConfigError, EmptyDataError, ModelSelectionError
from heart_agent.utils import get_logger

log = get_logger(__name__)


def build_pipeline(numeric: list[str], categorical: list[str],
                   ccp_alpha: float, seed: int = RANDOM_SEED) -> Pipeline:
    """One-hot encode categoricals, pass numerics through, fit a pruned tree."""
    encoder = ColumnTransformer(
        [
            ("cat", OneHotEncoder(handle_unknown="ignore", sparse_output=False),
             categorical),
            ("num", "passthrough", numeric),
        ],
        verbose_feature_names_out=False,
    )
    tree = DecisionTreeClassifier(ccp_alpha=ccp_alpha, random_state=seed)
    return Pipeline([("encode", encoder), ("tree", tree)])


def split_features(df: pd.DataFrame, target: str) -> tuple[list[str], list[str]]:
    """Return (numeric, categorical) feature columns of a cleaned table."""
    features = [c for c in df.columns if c != target]
    numeric = [c for c in features if pd.api.types.is_numeric_dtype(df[c])]
    categorical = [c for c in features if c not in numeric]
    return numeric, categorical


@dataclass(frozen=True)
class FittedModel:
    """A decision tree refit on the full training table."""

    pipeline: Pipeline
    ccp_alpha: float
    objective: str
    target: str
    numeric: tuple[str, ...]
    categorical: tuple[str, ...]

    @property
    def features(self) -> list[str]:
        return list(self.numeric) + list(self.categorical)

    @property
    def tree(self) -> DecisionTreeClassifier:
        return self.pipeline.named_steps["tree"]

    @property
    def n_leaves(self) -> int:
        return int(self.tree.get_n_leaves())

    @property
    def depth(self) -> int:
        return int(self.tree.get_depth())

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        missing = [c for c in self.features if c not in df.columns]
        if missing:
            raise ConfigError(
                f"Table lacks columns the model was trained on: {missing}"
            )
        return self.pipeline.predict(df[self.features])

    def describe(self) -> str:
        """Text rendering of the tree's decision rules."""
        names = self.pipeline.named_steps["encode"].get_feature_names_out()
        return export_text(self.tree, feature_names=[str(n) for n in names])


@dataclass(frozen=True)
class CandidateScore:
    ccp_alpha: float
    scores: tuple[float, ...]

    @property
    def mean(self) -> float:
        return float(np.mean(self.scores))

    @property
    def se(self) -> float:
        if len(self.scores) < 2:
            return 0.0
        return float(np.std(self.scores, ddof=1) / math.sqrt(len(self.scores)))

    def to_dict(self) -> dict:
        return {
            "ccp_alpha": self.ccp_alpha,
            "mean": round(self.mean, 4),
            "se": round(self.se, 4),
            "fold_scores": [round(s, 4) for s in self.scores],
        }


@dataclass
class SelectionResult:
    objective: str
    candidates: list[CandidateScore]
    best: CandidateScore
    selected: CandidateScore
    threshold: float
    model: FittedModel
    cv_time_seconds: float = 0.0

    def to_dict(self) -> dict:
        return {
            "objective": self.objective,
            "candidates": [c.to_dict() for c in self.candidates],
            "best_ccp_alpha": self.best.ccp_alpha,
            "selected_ccp_alpha": self.selected.ccp_alpha,
            "one_se_threshold": round(self.threshold, 4),
            "n_leaves": self.model.n_leaves,
            "depth": self.model.depth,
            "tree": self.model.describe(),
            "cv_time_seconds": round(self.cv_time_seconds, 3),
        }


def one_se_select(candidates: list[CandidateScore]) -> tuple[CandidateScore, CandidateScore, float]:
    """
    Pick the most heavily pruned candidate within one standard error of the best.

    Returns (selected, best, threshold). The best candidate is the first one
    in grid order with the highest mean; the threshold is its mean minus its
    standard error.
    """
    if not candidates:
        raise ConfigError("No candidates to select from")
    means = [c.mean for c in candidates]
    best = candidates[int(np.argmax(means))]
    threshold = best.mean - best.se

    eligible = [c for c in candidates if c.mean >= threshold - 1e-12]
    selected = max(eligible, key=lambda c: c.ccp_alpha)
    return selected, best, threshold


class ModelSelector:
    """Cross-validates a grid of complexity penalties and keeps the simplest good tree."""

    def __init__(self, grid: tuple[float, ...] = CP_GRID, cv_folds: int = CV_FOLDS,
                 objective: str = "accuracy", positive_class: int = POSITIVE_CLASS,
                 seed: int = RANDOM_SEED, n_jobs: int | None = None, cv=None):
        """
        Args:
            grid: complexity penalties (ccp_alpha) to try.
            cv_folds: number of stratified folds; ignored when `cv` is given.
            objective: "accuracy" or "specificity".
            positive_class: class treated as positive; specificity is the
                recall of the other class.
            seed: seeds fold assignment and tree tie-breaking.
            n_jobs: folds scored in parallel by scikit-learn when set.
            cv: optional scikit-learn splitter used instead of StratifiedKFold.
        """
        if objective not in OBJECTIVES:
            raise ConfigError(f"Unknown objective '{objective}'. Available: {list(OBJECTIVES)}")
        if not grid:
            raise ConfigError("Complexity grid is empty")
        if any(cp < 0 for cp in grid):
            raise ConfigError(f"Complexity penalties must be non-negative: {grid}")
        if cv is None and cv_folds < 2:
            raise ConfigError(f"cv_folds must be at least 2, got {cv_folds}")

        self.grid = tuple(float(cp) for cp in grid)
        self.cv_folds = cv_folds
        self.objective = objective
        self.positive_class = positive_class
        self.negative_class = 1 - positive_class
        self.seed = seed
        self.n_jobs = n_jobs
        self.cv = cv

    def _scorer(self):
        if self.objective == "accuracy":
            return "accuracy"
        return make_scorer(recall_score, pos_label=self.negative_class, zero_division=0)

    def _folds(self, X: pd.DataFrame, y: np.ndarray) -> list[tuple[np.ndarray, np.ndarray]]:
        splitter = self.cv
        if splitter is None:
            splitter = StratifiedKFold(
                n_splits=self.cv_folds, shuffle=True, random_state=self.seed,
            )
        try:
            folds = list(splitter.split(X, y))
        except ValueError as e:
            raise ModelSelectionError(
                f"No cross-validation fold could be formed for candidate "
                f"cp={self.grid[0]}: {e}",
                candidate=self.grid[0],
            ) from e

        for i, (train_idx, val_idx) in enumerate(folds, start=1):
            for part, idx in (("held-out", val_idx), ("training", train_idx)):
                classes = np.unique(y[idx])
                if len(classes) < 2:
                    raise ModelSelectionError(
                        f"Fold {i} of {len(folds)}: {part} part contains only "
                        f"class {classes.tolist()}; cannot score candidate "
                        f"cp={self.grid[0]}",
                        fold=i,
                        candidate=self.grid[0],
                    )
        return folds

    def run(self, train_df: pd.DataFrame, target: str) -> SelectionResult:
        """Score every candidate, apply the one-SE rule and refit the winner."""
        if train_df.empty:
            raise EmptyDataError("Training table is empty; nothing to cross-validate")
        if target not in train_df.columns:
            raise ConfigError(f"Target column '{target}' not in training table")

        numeric, categorical = split_features(train_df, target)
        if not numeric and not categorical:
            raise ModelSelectionError("Training table has no feature columns")

        X = train_df[numeric + categorical]
        y = train_df[target].astype(int).to_numpy()
        if len(np.unique(y)) < 2:
            raise ModelSelectionError(
                f"Training table holds a single class {np.unique(y).tolist()}"
            )

        folds = self._folds(X, y)
        scorer = self._scorer()

        log.info(
            "Selecting by %s: %d candidates x %d folds on %d samples",
            self.objective, len(self.grid), len(folds), len(X),
        )

        t0 = time.time()
        candidates = []
        for cp in self.grid:
            pipeline = build_pipeline(numeric, categorical, cp, self.seed)
            try:
                cv = cross_validate(
                    pipeline, X, y, cv=folds, scoring=scorer,
                    n_jobs=self.n_jobs, error_score="raise",
                )
            except ValueError as e:
                raise ModelSelectionError(
                    f"Cross-validation failed for candidate cp={cp}: {e}",
                    candidate=cp,
                ) from e
            cand = CandidateScore(cp, tuple(float(s) for s in cv["test_score"]))
            candidates.append(cand)
            log.info("  cp=%g: %s=%.4f (SE %.4f)", cp, self.objective, cand.mean, cand.se)
        cv_time = time.time() - t0

        selected, best, threshold = one_se_select(candidates)
        log.info(
            "Best cp=%g (%.4f); one-SE threshold %.4f selects cp=%g (%.4f)",
            best.ccp_alpha, best.mean, threshold, selected.ccp_alpha, selected.mean,
        )

        pipeline = build_pipeline(numeric, categorical, selected.ccp_alpha, self.seed)
        pipeline.fit(X, y)
        model = FittedModel(
            pipeline=pipeline,
            ccp_alpha=selected.ccp_alpha,
            objective=self.objective,
            target=target,
            numeric=tuple(numeric),
            categorical=tuple(categorical),
        )
        log.info("Refit tree: %d leaves, depth %d", model.n_leaves, model.depth)

        return SelectionResult(
            objective=self.objective,
            candidates=candidates,
            best=best,
            selected=selected,
            threshold=threshold,
            model=model,
            cv_time_seconds=cv_time,
        )
