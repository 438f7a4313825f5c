import numpy as np
import pandas as pd
import pytest

from heart_agent.config import PipelineConfig
from heart_agent.data import Cleaner, CleaningRules, stratified_split

CATEGORICAL = ("c1", "c2", "c3", "c4", "c5", "c6")


def make_table(n: int = 100, seed: int = 0) -> pd.DataFrame:
    """
    Synthetic 8-column table: outcome `num` with levels a,b,b,c,d, a numeric
    `chol` with 5% zeros and six categorical columns with 3% missing each.
    `c1` tracks disease status so trees have something to find.
    """
    rng = np.random.default_rng(seed)
    num = np.array(["a", "b", "b", "c", "d"] * (n // 5), dtype=object)
    rng.shuffle(num)
    disease = num != "a"

    chol = rng.normal(220, 30, n).round()
    chol[rng.choice(n, size=n // 20, replace=False)] = 0

    df = pd.DataFrame({"num": num, "chol": chol})
    flips = rng.random(n) < 0.1
    df["c1"] = np.where(disease ^ flips, "x", "y").astype(object)
    for col in CATEGORICAL[1:]:
        df[col] = rng.choice(["p", "q", "r"], size=n).astype(object)
    for col in CATEGORICAL:
        df.loc[rng.choice(n, size=3, replace=False), col] = np.nan
    return df


@pytest.fixture
def table():
    return make_table()


@pytest.fixture
def rules():
    return CleaningRules(
        outcome_column="num",
        baseline_level="a",
        sentinels={"chol": 0},
        missing_threshold=0.3,
        categorical_columns=CATEGORICAL,
    )


@pytest.fixture
def synthetic_config():
    return PipelineConfig(
        outcome_column="num",
        baseline_level="a",
        categorical_columns=CATEGORICAL,
        ignored_columns=(),
        sentinels={"chol": 0},
    )


@pytest.fixture
def cleaned_split(table, rules):
    train, test = stratified_split(table, "num", train_fraction=0.8, seed=42)
    cleaner = Cleaner(rules)
    cleaned_train = cleaner.clean(train)
    cleaned_test = cleaner.clean(test, keep_columns=cleaned_train.kept_columns)
    return cleaned_train.df, cleaned_test.df


@pytest.fixture
def table_csv(tmp_path, table):
    path = tmp_path / "heart.csv"
    table.to_csv(path, index=False)
    return path
