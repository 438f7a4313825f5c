"""Exploratory data analysis for heart disease tables."""

import numpy as np
import pandas as pd
from scipy import stats

from heart_agent.config import BASELINE_LEVEL, SENTINELS
from heart_agent.data.cleaner import matches_level
from heart_agent.data.schema import Role
from heart_agent.utils import get_logger

log = get_logger(__name__)


class DataExplorer:
    """Summarises a raw table before it is split and cleaned."""

    def __init__(self, baseline_level=BASELINE_LEVEL, sentinels: dict | None = None):
        self.baseline_level = baseline_level
        self.sentinels = dict(SENTINELS) if sentinels is None else sentinels
        self.report = {}

    def run(self, dataset: dict) -> dict:
        """
        Run exploratory analysis on a loaded dataset dict.

        Returns an EDA report dict.
        """
        df = dataset["df"]
        schema = dataset["schema"]
        target = dataset["target_name"]
        numeric = schema.by_role(Role.numeric)
        categorical = schema.by_role(Role.categorical)

        log.info("Running exploratory data analysis on %d samples", len(df))

        disease = (
            (~matches_level(df[target], self.baseline_level))
            .astype(float)
            .where(df[target].notna())
        )

        self.report = {
            "shape": list(df.shape),
            "missing_fractions": self._missingness(df),
            "sentinel_counts": self._sentinels(df),
            "outcome_levels": self._outcome_levels(df, target),
            "class_balance": self._class_balance(disease),
            "numeric_summary": self._numeric_summary(df, numeric),
            "categorical_association": self._associations(df, categorical, disease),
            "outlier_summary": self._outlier_analysis(df, numeric),
        }

        log.info("EDA complete: %d analysis sections generated", len(self.report))
        return self.report

    def _missingness(self, df: pd.DataFrame) -> dict:
        fractions = df.isna().mean().round(4)
        worst = fractions.sort_values(ascending=False)
        worst = worst[worst > 0]
        if len(worst):
            log.info(
                "Missing values in %d columns; worst: %s",
                len(worst),
                ", ".join(f"{c} {f:.1%}" for c, f in worst.head(3).items()),
            )
        return fractions.to_dict()

    def _sentinels(self, df: pd.DataFrame) -> dict:
        counts = {}
        for col, value in self.sentinels.items():
            if col in df.columns:
                counts[col] = int((matches_level(df[col], value) & df[col].notna()).sum())
                log.info("'%s' holds %d sentinel values (%r)", col, counts[col], value)
        return counts

    def _outcome_levels(self, df: pd.DataFrame, target: str) -> dict:
        return {str(k): int(v) for k, v in
                df[target].value_counts(dropna=False).sort_index().items()}

    def _class_balance(self, disease: pd.Series) -> dict:
        """Balance of the binary disease indicator."""
        counts = disease.dropna().astype(int).value_counts()
        if counts.empty:
            return {"counts": {}, "status": "empty"}

        imbalance_ratio = (
            counts.max() / counts.min() if len(counts) == 2 and counts.min() > 0
            else float("inf")
        )
        balance_status = "balanced" if imbalance_ratio < 1.5 else (
            "moderate_imbalance" if imbalance_ratio < 3.0 else "severe_imbalance"
        )
        log.info("Class balance: %s (ratio=%.2f)", balance_status, imbalance_ratio)

        return {
            "counts": counts.to_dict(),
            "proportions": (counts / counts.sum()).round(4).to_dict(),
            "imbalance_ratio": imbalance_ratio,
            "status": balance_status,
        }

    def _numeric_summary(self, df: pd.DataFrame, features: list[str]) -> dict:
        if not features:
            return {}
        return df[features].describe().round(4).to_dict()

    def _associations(self, df: pd.DataFrame, features: list[str],
                      disease: pd.Series) -> list[dict]:
        """Chi-square test of each categorical column against disease status."""
        results = []
        for feat in features:
            table = pd.crosstab(df[feat], disease)
            if table.shape[0] < 2 or table.shape[1] < 2:
                continue
            chi2, p_val, dof, _ = stats.chi2_contingency(table)
            n = table.to_numpy().sum()
            cramers_v = np.sqrt(chi2 / (n * (min(table.shape) - 1)))
            results.append({
                "feature": feat,
                "chi2": round(float(chi2), 4),
                "dof": int(dof),
                "p_value": float(p_val),
                "cramers_v": round(float(cramers_v), 4),
            })

        results.sort(key=lambda x: x["cramers_v"], reverse=True)
        for r in results[:3]:
            log.info("  %s: V=%.2f, p=%.2e", r["feature"], r["cramers_v"], r["p_value"])
        return results

    def _outlier_analysis(self, df: pd.DataFrame, features: list[str]) -> dict:
        """Count values outside 1.5 IQR of each numeric column."""
        outlier_counts = {}
        for feat in features:
            q1 = df[feat].quantile(0.25)
            q3 = df[feat].quantile(0.75)
            iqr = q3 - q1
            n_outliers = int(((df[feat] < q1 - 1.5 * iqr) | (df[feat] > q3 + 1.5 * iqr)).sum())
            if n_outliers > 0:
                outlier_counts[feat] = n_outliers

        log.info(
            "Outlier analysis: %d total outliers across %d features",
            sum(outlier_counts.values()), len(outlier_counts),
        )
        return {
            "features_with_outliers": outlier_counts,
            "total_outlier_values": sum(outlier_counts.values()),
        }
