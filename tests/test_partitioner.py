import math

import numpy as np
import pandas as pd
import pytest

from heart_agent.data import stratified_split
from heart_agent.errors import ConfigError


def test_end_to_end_split_sizes(table):
    train, test = stratified_split(table, "num", train_fraction=0.8, seed=42)
    assert len(train) == 80
    assert len(test) == 20

    for label, count in table["num"].value_counts().items():
        n_train = (train["num"] == label).sum()
        assert abs(n_train - 0.8 * count) <= 1
        assert abs((test["num"] == label).sum() - 0.2 * count) <= 1


@pytest.mark.parametrize("p", [0.1, 0.33, 0.5, 0.8, 0.95])
def test_partition_properties(table, p):
    train, test = stratified_split(table, "num", train_fraction=p, seed=3)
    assert len(train) + len(test) == len(table)
    assert set(train.index).isdisjoint(test.index)
    assert set(train.index) | set(test.index) == set(table.index)
    for label, count in table["num"].value_counts().items():
        assert (train["num"] == label).sum() == math.ceil(p * count)


def test_same_seed_same_partition(table):
    a_train, a_test = stratified_split(table, "num", seed=42)
    b_train, b_test = stratified_split(table, "num", seed=42)
    pd.testing.assert_frame_equal(a_train, b_train)
    pd.testing.assert_frame_equal(a_test, b_test)


def test_different_seed_changes_partition(table):
    a_train, _ = stratified_split(table, "num", seed=1)
    b_train, _ = stratified_split(table, "num", seed=2)
    assert list(a_train.index) != list(b_train.index)


def test_row_order_preserved(table):
    train, test = stratified_split(table, "num", seed=42)
    assert list(train.index) == sorted(train.index)
    assert list(test.index) == sorted(test.index)


def test_input_not_modified(table):
    before = table.copy()
    stratified_split(table, "num", seed=42)
    pd.testing.assert_frame_equal(table, before)


def test_missing_labels_form_a_stratum():
    df = pd.DataFrame({"y": [0, 0, 1, 1, np.nan, np.nan, np.nan, np.nan, np.nan, np.nan]})
    train, test = stratified_split(df, "y", train_fraction=0.5, seed=0)
    assert train["y"].isna().sum() == 3
    assert test["y"].isna().sum() == 3


@pytest.mark.parametrize("p", [0.0, 1.0, -0.2, 1.5])
def test_invalid_fraction_raises(table, p):
    with pytest.raises(ConfigError):
        stratified_split(table, "num", train_fraction=p)


def test_unknown_column_raises(table):
    with pytest.raises(ConfigError):
        stratified_split(table, "missing")
