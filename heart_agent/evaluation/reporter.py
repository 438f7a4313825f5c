"""Report assembly, text rendering and JSON export."""

import json
import math
from datetime import datetime, timezone

import numpy as np
import pandas as pd

from heart_agent import __version__
from heart_agent.utils import get_logger

log = get_logger(__name__)

RULE = "=" * 64
THIN = "-" * 64


def _fmt(value) -> str:
    return "NA" if value is None else f"{value:.4f}"


class Reporter:
    """Compiles stage outputs into a single report."""

    def generate(self, dataset_metadata: dict, eda_report: dict,
                 cleaning_info: dict, selection_results: dict,
                 evaluation_results: dict, config: dict | None = None) -> dict:
        """
        Build the report dict.

        selection_results and evaluation_results map an objective name to a
        SelectionResult / Evaluation.
        """
        report = {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "config": config or {},
            "dataset": dataset_metadata,
            "eda": eda_report,
            "cleaning": cleaning_info,
            "models": {
                objective: {
                    "selection": sel.to_dict(),
                    "test": evaluation_results[objective].to_dict(),
                }
                for objective, sel in selection_results.items()
            },
        }
        return self._make_serializable(report)

    def print_summary(self, report: dict) -> str:
        """Render the human-readable report."""
        lines = [
            RULE,
            "HEART DISEASE DECISION-TREE ANALYSIS",
            RULE,
            f"Dataset: {report['dataset'].get('name')}  "
            f"({report['dataset'].get('n_samples')} rows, "
            f"{report['dataset'].get('n_features')} features)",
        ]

        cleaning = report.get("cleaning", {})
        for part in ("train", "test"):
            info = cleaning.get(part)
            if not info:
                continue
            dropped = ", ".join(info["dropped_columns"]) or "none"
            lines.append(
                f"Cleaned {part}: {info['rows']} rows "
                f"({info['rows_dropped']} dropped), columns dropped: {dropped}"
            )

        for objective, entry in report["models"].items():
            sel, test = entry["selection"], entry["test"]
            lines += ["", THIN, f"MODEL SELECTED BY {objective.upper()}", THIN]
            lines.append(f"{'cp':>10}  {'mean':>8}  {'SE':>8}")
            for cand in sel["candidates"]:
                marker = ""
                if cand["ccp_alpha"] == sel["selected_ccp_alpha"]:
                    marker = "  <- selected"
                elif cand["ccp_alpha"] == sel["best_ccp_alpha"]:
                    marker = "  (best)"
                lines.append(
                    f"{cand['ccp_alpha']:>10g}  {cand['mean']:>8.4f}  "
                    f"{cand['se']:>8.4f}{marker}"
                )
            lines.append(f"One-SE threshold: {sel['one_se_threshold']:.4f}")
            lines.append("")
            lines.append(
                f"Tree (cp={sel['selected_ccp_alpha']:g}, "
                f"{sel['n_leaves']} leaves, depth {sel['depth']}):"
            )
            lines += ["  " + row for row in sel["tree"].rstrip().splitlines()]
            lines.append("")
            lines += self._confusion_lines(test)

        lines += ["", RULE]
        return "\n".join(lines)

    def _confusion_lines(self, test: dict) -> list[str]:
        cm = test["confusion_matrix"]
        pos = test["positive_class"]
        neg = 1 - pos
        low, high = test["accuracy_95ci"]
        return [
            "Confusion matrix (rows predicted, columns actual):",
            f"{'':>12}{pos:>8}{neg:>8}",
            f"{pos:>12}{cm['tp']:>8}{cm['fp']:>8}",
            f"{neg:>12}{cm['fn']:>8}{cm['tn']:>8}",
            f"Accuracy:     {_fmt(test['accuracy'])}  (95% CI {_fmt(low)} - {_fmt(high)})",
            f"No info rate: {_fmt(test['no_information_rate'])}  "
            f"(P [Acc > NIR] = {_fmt(test['p_value_acc_gt_nir'])})",
            f"Specificity:  {_fmt(test['specificity'])}",
            f"Sensitivity:  {_fmt(test['sensitivity'])}",
            f"Kappa:        {_fmt(test['kappa'])}",
        ]

    def save_json(self, report: dict, path: str):
        with open(path, "w") as f:
            json.dump(self._make_serializable(report), f, indent=2)
        log.info("Report written to %s", path)

    def _make_serializable(self, obj):
        """Convert numpy/pandas values into plain JSON types."""
        if isinstance(obj, dict):
            return {str(k): self._make_serializable(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [self._make_serializable(v) for v in obj]
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, (float, np.floating)):
            value = float(obj)
            return None if math.isnan(value) else value
        if isinstance(obj, np.bool_):
            return bool(obj)
        if isinstance(obj, np.ndarray):
            return self._make_serializable(obj.tolist())
        if isinstance(obj, (pd.Series, pd.Index)):
            return self._make_serializable(obj.tolist())
        return obj
