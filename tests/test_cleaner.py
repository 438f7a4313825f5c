import numpy as np
import pandas as pd
import pytest

from heart_agent.data import Cleaner, CleaningRules
from heart_agent.errors import ConfigError


def _rules(**kwargs):
    base = dict(outcome_column="num", baseline_level=0, sentinels={"chol": 0},
                missing_threshold=0.3, categorical_columns=("sex",))
    base.update(kwargs)
    return CleaningRules(**base)


def _ten_rows(**columns):
    df = pd.DataFrame({
        "num": [0, 1, 2, 3, 4, 0, 1, 0, 2, 0],
        "sex": ["M", "F"] * 5,
        "chol": [200.0, 210, 220, 230, 240, 250, 260, 270, 280, 290],
    })
    for name, values in columns.items():
        df[name] = values
    return df


def test_outcome_binarized(table, rules):
    out = Cleaner(rules).clean(table).df
    original = table.loc[out.index, "num"]
    expected = (original != "a").astype(int)
    assert list(out["num"].astype(int)) == list(expected)
    assert list(out["num"].cat.categories) == [0, 1]


def test_numeric_outcome_matches_text_baseline():
    out = Cleaner(_rules(baseline_level="0")).clean(_ten_rows()).df
    assert list(out["num"].astype(int)) == [0, 1, 1, 1, 1, 0, 1, 0, 1, 0]


def test_sentinel_recoded_before_column_pruning():
    df = _ten_rows(chol=[0, 0, 0, 0, 200, 210, 220, 230, 240, 250])
    result = Cleaner(_rules()).clean(df)
    assert result.recoded == {"chol": 4}
    assert result.missing_fractions["chol"] == pytest.approx(0.4)
    assert "chol" in result.dropped_columns
    assert "chol" not in result.df.columns
    assert len(result.df) == 10


def test_threshold_is_exclusive():
    at_threshold = [np.nan] * 3 + [1.0] * 7
    above_threshold = [np.nan] * 4 + [1.0] * 6
    df = _ten_rows(kept=at_threshold, gone=above_threshold)
    result = Cleaner(_rules()).clean(df)
    assert "kept" in result.df.columns
    assert "gone" not in result.df.columns
    # rows missing `kept` are pruned afterwards
    assert len(result.df) == 7
    assert result.rows_dropped == 3


def test_column_pruning_matches_missing_fraction(table, rules):
    result = Cleaner(rules).clean(table)
    for col, frac in result.missing_fractions.items():
        if frac > rules.missing_threshold:
            assert col not in result.df.columns
        else:
            assert col in result.df.columns


def test_categorical_typing(table, rules):
    out = Cleaner(rules).clean(table).df
    for col in rules.categorical_columns:
        assert isinstance(out[col].dtype, pd.CategoricalDtype)
    assert pd.api.types.is_numeric_dtype(out["chol"])
    assert not out.isna().any().any()


def test_clean_is_idempotent(table, rules):
    cleaner = Cleaner(rules)
    once = cleaner.clean(table)
    twice = cleaner.clean(once.df)
    pd.testing.assert_frame_equal(once.df, twice.df)
    assert twice.dropped_columns == []
    assert twice.rows_dropped == 0


def test_clean_is_deterministic(table, rules):
    a = Cleaner(rules).clean(table).df
    b = Cleaner(rules).clean(table).df
    pd.testing.assert_frame_equal(a, b)
    assert a.to_csv() == b.to_csv()


def test_input_not_modified(table, rules):
    before = table.copy()
    Cleaner(rules).clean(table)
    pd.testing.assert_frame_equal(table, before)


def test_dropping_outcome_is_config_error():
    df = _ten_rows()
    df["num"] = df["num"].astype(float)
    df.loc[:4, "num"] = np.nan
    with pytest.raises(ConfigError, match="outcome"):
        Cleaner(_rules()).clean(df)


def test_missing_outcome_column_is_config_error():
    with pytest.raises(ConfigError):
        Cleaner(_rules(outcome_column="target")).clean(_ten_rows())


def test_all_rows_dropped_returns_empty_table():
    # every row misses one of two columns, each under the threshold
    a = [np.nan, 1.0] * 5
    b = [1.0, np.nan] * 5
    result = Cleaner(_rules(missing_threshold=0.5)).clean(_ten_rows(a=a, b=b))
    assert result.df.empty
    assert result.rows_dropped == 10
    assert list(result.df["num"].cat.categories) == [0, 1]


def test_keep_columns_overrides_own_missingness():
    df = _ten_rows(extra=[np.nan] * 5 + [1.0] * 5)
    result = Cleaner(_rules()).clean(df, keep_columns=["num", "sex", "chol", "extra"])
    assert "extra" in result.df.columns
    assert len(result.df) == 5

    result = Cleaner(_rules()).clean(_ten_rows(extra=[1.0] * 10),
                                     keep_columns=["num", "sex"])
    assert list(result.df.columns) == ["num", "sex"]
    assert result.dropped_columns == ["chol", "extra"]


def test_keep_columns_must_exist():
    with pytest.raises(ConfigError):
        Cleaner(_rules()).clean(_ten_rows(), keep_columns=["num", "thal"])


def test_invalid_threshold():
    with pytest.raises(ConfigError):
        _rules(missing_threshold=1.5)
