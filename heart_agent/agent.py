"""
Heart Disease Decision-Tree Analysis Agent.

Orchestrates the full pipeline: data loading -> EDA -> partitioning ->
cleaning -> model selection -> evaluation -> reporting. Each stage takes
the previous stage's outputs and returns new tables; nothing is modified
in place.
"""

import dataclasses
import os
import traceback

from heart_agent import __version__
from heart_agent.analysis import DataExplorer
from heart_agent.config import PipelineConfig
from heart_agent.data import Cleaner, CleaningRules, DatasetLoader, Role, stratified_split
from heart_agent.evaluation import ModelEvaluator, Reporter
from heart_agent.models import ModelSelector
from heart_agent.utils import get_logger

log = get_logger("heart_agent")

DISCLAIMER = (
    "DISCLAIMER: This agent is an exploratory analysis tool for publicly "
    "available heart disease datasets. It does NOT provide medical diagnoses "
    "or replace professional medical advice."
)


class HeartDiseaseAgent:
    """
    Runs a complete decision-tree analysis of a heart disease table.

    Stages:
        1. Data Loading     - read and schema-check the CSV
        2. EDA              - missingness, sentinels, class balance
        3. Partitioning     - stratified train/test split
        4. Cleaning         - same rule set on each partition
        5. Model Selection  - CV over the complexity grid, one-SE rule
        6. Evaluation       - test-set confusion matrix per objective
        7. Reporting        - print report, optionally save JSON
    """

    def __init__(self, data_path: str, config: PipelineConfig | None = None,
                 output_dir: str | None = "heart_agent_output"):
        self.data_path = data_path
        self.config = (config or PipelineConfig()).validate()
        self.output_dir = output_dir

        # Pipeline state
        self._raw_data = None
        self._eda_report = None
        self._train = None
        self._test = None
        self._cleaned = {}
        self._selections = {}
        self._evaluations = {}
        self._report = None
        self.summary = None

    def run(self) -> dict:
        """
        Execute the full pipeline.

        Returns the final report dict.
        """
        log.info("=" * 60)
        log.info("HEART DISEASE DECISION-TREE AGENT v%s", __version__)
        log.info("=" * 60)
        log.info(DISCLAIMER)

        stages = [
            ("1/7 Data Loading", self._stage_load),
            ("2/7 Exploratory Analysis", self._stage_eda),
            ("3/7 Partitioning", self._stage_partition),
            ("4/7 Cleaning", self._stage_clean),
            ("5/7 Model Selection", self._stage_select),
            ("6/7 Evaluation", self._stage_evaluate),
            ("7/7 Report Generation", self._stage_report),
        ]

        for stage_name, stage_fn in stages:
            log.info("-" * 60)
            log.info("STAGE: %s", stage_name)
            log.info("-" * 60)
            try:
                stage_fn()
            except Exception:
                log.error("Stage '%s' failed:\n%s", stage_name, traceback.format_exc())
                raise

        return self._report

    def _stage_load(self):
        cfg = self.config
        loader = DatasetLoader(na_values=cfg.na_values)
        self._raw_data = loader.load_csv(
            self.data_path,
            target_column=cfg.outcome_column,
            categorical_columns=cfg.categorical_columns,
            ignored_columns=cfg.ignored_columns,
        )

    def _stage_eda(self):
        explorer = DataExplorer(
            baseline_level=self.config.baseline_level,
            sentinels=self.config.sentinels,
        )
        self._eda_report = explorer.run(self._raw_data)

    def _stage_partition(self):
        self._train, self._test = stratified_split(
            self._raw_data["df"],
            self.config.outcome_column,
            train_fraction=self.config.train_fraction,
            seed=self.config.seed,
        )

    def _stage_clean(self):
        cfg = self.config
        schema = self._raw_data["schema"]
        cleaner = Cleaner(CleaningRules(
            outcome_column=cfg.outcome_column,
            baseline_level=cfg.baseline_level,
            sentinels=cfg.sentinels,
            missing_threshold=cfg.missing_threshold,
            categorical_columns=tuple(schema.by_role(Role.categorical)),
        ))

        log.info("Cleaning training partition")
        train = cleaner.clean(self._train)

        log.info("Cleaning test partition")
        independent = cleaner.clean(self._test)
        if cfg.test_column_policy == "inherit":
            test = cleaner.clean(self._test, keep_columns=train.kept_columns)
        else:
            test = independent

        if set(independent.kept_columns) != set(train.kept_columns):
            log.warning(
                "Test missingness alone would keep %s but training kept %s; "
                "using the '%s' policy",
                independent.kept_columns, train.kept_columns, cfg.test_column_policy,
            )

        self._cleaned = {"train": train, "test": test}

    def _stage_select(self):
        cfg = self.config
        train = self._cleaned["train"].df
        for objective in cfg.objectives:
            selector = ModelSelector(
                grid=cfg.cp_grid,
                cv_folds=cfg.cv_folds,
                objective=objective,
                positive_class=cfg.positive_class,
                seed=cfg.seed,
                n_jobs=cfg.n_jobs,
            )
            self._selections[objective] = selector.run(train, cfg.outcome_column)

    def _stage_evaluate(self):
        evaluator = ModelEvaluator(positive_class=self.config.positive_class)
        test = self._cleaned["test"].df
        log.info("Evaluating %d models on %d test samples",
                 len(self._selections), len(test))
        for objective, selection in self._selections.items():
            self._evaluations[objective] = evaluator.evaluate(selection.model, test)

    def _stage_report(self):
        reporter = Reporter()
        self._report = reporter.generate(
            dataset_metadata=self._raw_data["metadata"],
            eda_report=self._eda_report,
            cleaning_info={k: v.summary() for k, v in self._cleaned.items()},
            selection_results=self._selections,
            evaluation_results=self._evaluations,
            config=dataclasses.asdict(self.config),
        )

        self.summary = reporter.print_summary(self._report)
        print("\n" + self.summary)

        if self.output_dir:
            os.makedirs(self.output_dir, exist_ok=True)
            json_path = os.path.join(self.output_dir, "report.json")
            reporter.save_json(self._report, json_path)
            log.info("Full JSON report saved to: %s", json_path)
