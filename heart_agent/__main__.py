"""CLI entry point: python -m heart_agent"""

import argparse
import sys

from heart_agent import config
from heart_agent.agent import HeartDiseaseAgent
from heart_agent.config import PipelineConfig
from heart_agent.errors import HeartAgentError


def _scalar(text: str):
    """Read a command-line value as int, float or string, in that order."""
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            pass
    return text


def _sentinel(text: str) -> tuple[str, object]:
    col, sep, value = text.partition("=")
    if not sep or not col:
        raise argparse.ArgumentTypeError(f"expected COLUMN=VALUE, got '{text}'")
    return col, _scalar(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Heart Disease Decision-Tree Agent - "
            "cleans a heart disease table, selects a pruned tree by "
            "cross-validation and reports test-set diagnostics."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m heart_agent --data heart_disease_uci.csv\n"
            "  python -m heart_agent --data heart.csv --seed 7 --cv-folds 10\n"
            "  python -m heart_agent --data heart.csv --grid 0 0.001 0.01 --sentinel chol=0\n"
            "  python -m heart_agent --data heart.csv --test-columns independent\n"
        ),
    )

    parser.add_argument("--data", required=True,
                        help="Path to the CSV file (header row required)")
    parser.add_argument("--outcome", default=config.OUTCOME_COLUMN,
                        help=f"Outcome column (default: {config.OUTCOME_COLUMN})")
    parser.add_argument("--baseline", type=_scalar, default=config.BASELINE_LEVEL,
                        help=f"Outcome level meaning no disease (default: {config.BASELINE_LEVEL})")
    parser.add_argument("--categorical", nargs="*", default=list(config.CATEGORICAL_COLUMNS),
                        help="Columns typed as categorical")
    parser.add_argument("--ignore", nargs="*", default=list(config.IGNORED_COLUMNS),
                        help="Columns dropped at load time")
    parser.add_argument("--sentinel", type=_sentinel, action="append", default=None,
                        metavar="COLUMN=VALUE",
                        help="Value recoded to missing (repeatable, default: chol=0)")
    parser.add_argument("--seed", type=int, default=config.RANDOM_SEED,
                        help=f"Random seed (default: {config.RANDOM_SEED})")
    parser.add_argument("--train-fraction", type=float, default=config.TRAIN_FRACTION,
                        help=f"Fraction of rows used for training (default: {config.TRAIN_FRACTION})")
    parser.add_argument("--missing-threshold", type=float, default=config.MISSING_THRESHOLD,
                        help="Drop columns with a larger missing fraction "
                             f"(default: {config.MISSING_THRESHOLD})")
    parser.add_argument("--grid", type=float, nargs="+", default=list(config.CP_GRID),
                        help="Complexity penalties to cross-validate")
    parser.add_argument("--cv-folds", type=int, default=config.CV_FOLDS,
                        help=f"Number of cross-validation folds (default: {config.CV_FOLDS})")
    parser.add_argument("--objectives", nargs="+", default=list(config.OBJECTIVES),
                        choices=list(config.OBJECTIVES),
                        help="Selection objectives (default: accuracy specificity)")
    parser.add_argument("--test-columns", default="inherit",
                        choices=list(config.TEST_COLUMN_POLICIES),
                        help="Keep the training columns in test, or prune test "
                             "by its own missingness (default: inherit)")
    parser.add_argument("--n-jobs", type=int, default=None,
                        help="Parallel jobs for cross-validation folds")
    parser.add_argument("--output-dir", default="heart_agent_output",
                        help="Directory for report.json (default: heart_agent_output)")
    parser.add_argument("--no-json", action="store_true",
                        help="Do not write report.json")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    sentinels = dict(args.sentinel) if args.sentinel else dict(config.SENTINELS)

    try:
        cfg = PipelineConfig(
            outcome_column=args.outcome,
            baseline_level=args.baseline,
            categorical_columns=tuple(args.categorical),
            ignored_columns=tuple(args.ignore),
            sentinels=sentinels,
            seed=args.seed,
            train_fraction=args.train_fraction,
            missing_threshold=args.missing_threshold,
            cp_grid=tuple(args.grid),
            cv_folds=args.cv_folds,
            objectives=tuple(args.objectives),
            test_column_policy=args.test_columns,
            n_jobs=args.n_jobs,
        )
        agent = HeartDiseaseAgent(
            data_path=args.data,
            config=cfg,
            output_dir=None if args.no_json else args.output_dir,
        )
        agent.run()
    except HeartAgentError as e:
        print(f"\nAgent failed: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
