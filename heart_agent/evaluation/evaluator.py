"""Test-set evaluation of a selected decision tree."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy.stats import binomtest
from sklearn.metrics import cohen_kappa_score, confusion_matrix

from heart_agent.config import POSITIVE_CLASS
from heart_agent.errors import EmptyDataError
from heart_agent.models.selector import FittedModel
from heart_agent.utils import get_logger

log = get_logger(__name__)


def _ratio(num: int, den: int) -> float:
    return num / den if den else float("nan")


@dataclass(frozen=True)
class Evaluation:
    """Confusion-matrix counts and the metrics derived from them."""

    tp: int
    fn: int
    fp: int
    tn: int
    positive_class: int
    kappa: float

    @property
    def n(self) -> int:
        return self.tp + self.fn + self.fp + self.tn

    @property
    def accuracy(self) -> float:
        return _ratio(self.tp + self.tn, self.n)

    @property
    def sensitivity(self) -> float:
        return _ratio(self.tp, self.tp + self.fn)

    @property
    def specificity(self) -> float:
        return _ratio(self.tn, self.tn + self.fp)

    @property
    def no_information_rate(self) -> float:
        """Accuracy of always predicting the majority class of this set."""
        return _ratio(max(self.tp + self.fn, self.tn + self.fp), self.n)

    def accuracy_ci(self, level: float = 0.95) -> tuple[float, float]:
        """Exact (Clopper-Pearson) confidence interval for accuracy."""
        ci = binomtest(self.tp + self.tn, self.n).proportion_ci(
            confidence_level=level, method="exact",
        )
        return float(ci.low), float(ci.high)

    @property
    def p_value_acc_gt_nir(self) -> float:
        """One-sided binomial p-value for accuracy exceeding the NIR."""
        return float(binomtest(
            self.tp + self.tn, self.n, self.no_information_rate,
            alternative="greater",
        ).pvalue)

    def matrix(self) -> list[list[int]]:
        """Rows are predicted (positive, negative), columns are actual."""
        return [[self.tp, self.fp], [self.fn, self.tn]]

    def to_dict(self) -> dict:
        low, high = self.accuracy_ci()
        return {
            "n": self.n,
            "positive_class": self.positive_class,
            "confusion_matrix": {
                "tp": self.tp, "fn": self.fn, "fp": self.fp, "tn": self.tn,
            },
            "accuracy": round(self.accuracy, 4),
            "accuracy_95ci": [round(low, 4), round(high, 4)],
            "specificity": round(self.specificity, 4),
            "sensitivity": round(self.sensitivity, 4),
            "no_information_rate": round(self.no_information_rate, 4),
            "p_value_acc_gt_nir": round(self.p_value_acc_gt_nir, 4),
            "kappa": round(self.kappa, 4),
        }


class ModelEvaluator:
    """Scores a fitted model on a cleaned held-out table."""

    def __init__(self, positive_class: int = POSITIVE_CLASS):
        self.positive_class = positive_class
        self.negative_class = 1 - positive_class

    def from_predictions(self, y_true, y_pred) -> Evaluation:
        y_true = np.asarray(y_true, dtype=int)
        y_pred = np.asarray(y_pred, dtype=int)
        if y_true.size == 0:
            raise EmptyDataError("Nothing to evaluate: test table is empty")

        labels = [self.positive_class, self.negative_class]
        # sklearn layout: rows actual, columns predicted
        (tp, fn), (fp, tn) = confusion_matrix(y_true, y_pred, labels=labels)

        # kappa is undefined when both vectors hold one identical class
        if len(np.union1d(y_true, y_pred)) < 2:
            kappa = float("nan")
        else:
            kappa = float(cohen_kappa_score(y_true, y_pred, labels=labels))

        return Evaluation(
            tp=int(tp), fn=int(fn), fp=int(fp), tn=int(tn),
            positive_class=self.positive_class,
            kappa=kappa,
        )

    def evaluate(self, model: FittedModel, test_df: pd.DataFrame) -> Evaluation:
        """Predict the test table and summarise the confusion matrix."""
        if test_df.empty:
            raise EmptyDataError("Nothing to evaluate: test table is empty")

        y_pred = model.predict(test_df)
        y_true = test_df[model.target].astype(int).to_numpy()
        result = self.from_predictions(y_true, y_pred)

        log.info(
            "  cp=%g (%s): acc=%.4f, spec=%.4f, NIR=%.4f on %d samples",
            model.ccp_alpha,
            model.objective,
            result.accuracy,
            result.specificity,
            result.no_information_rate,
            result.n,
        )
        if np.isnan(result.specificity):
            log.warning("Specificity undefined: no class-%d rows in test set",
                        self.negative_class)
        return result
