import pandas as pd
import pytest

from heart_agent.data import ColumnSpec, DatasetLoader, Role, Schema
from heart_agent.errors import LoadError


def _write(tmp_path, text, name="data.csv"):
    path = tmp_path / name
    path.write_text(text)
    return path


def test_load_matches_file(table_csv, table):
    data = DatasetLoader().load_csv(table_csv, "num",
                                    categorical_columns=("c1", "c2"))
    df = data["df"]
    assert len(df) == len(table)
    assert list(df.columns) == list(table.columns)
    assert data["target_name"] == "num"
    assert pd.api.types.is_numeric_dtype(df["chol"])
    schema = data["schema"]
    assert schema.outcome == "num"
    assert schema.by_role(Role.numeric) == ["chol"]
    # text columns not named explicitly are still categorical
    assert set(schema.by_role(Role.categorical)) == {"c1", "c2", "c3", "c4", "c5", "c6"}
    assert data["metadata"]["n_features"] == 7


def test_missing_file_raises(tmp_path):
    with pytest.raises(LoadError):
        DatasetLoader().load_csv(tmp_path / "nope.csv", "num")


def test_empty_file_raises(tmp_path):
    path = _write(tmp_path, "")
    with pytest.raises(LoadError):
        DatasetLoader().load_csv(path, "num")


def test_inconsistent_row_width_raises(tmp_path):
    path = _write(tmp_path, "num,chol,sex\n0,200,M\n1,210\n")
    with pytest.raises(LoadError, match="line 3"):
        DatasetLoader().load_csv(path, "num")


def test_extra_field_raises(tmp_path):
    path = _write(tmp_path, "num,chol\n0,200\n1,210,9\n")
    with pytest.raises(LoadError, match="expected 2 fields, found 3"):
        DatasetLoader().load_csv(path, "num")


def test_question_mark_is_missing(tmp_path):
    path = _write(tmp_path, "num,chol,ca\n0,200,?\n1,0,2\n")
    df = DatasetLoader().load_csv(path, "num")["df"]
    assert df["ca"].isna().sum() == 1
    assert pd.api.types.is_numeric_dtype(df["ca"])


def test_ignored_columns_removed(tmp_path):
    path = _write(tmp_path, "id,num,chol\n1,0,200\n2,1,210\n")
    data = DatasetLoader().load_csv(path, "num", ignored_columns=("id",))
    assert "id" not in data["df"].columns
    assert data["feature_names"] == ["chol"]


def test_missing_outcome_column_raises(tmp_path):
    path = _write(tmp_path, "target,chol\n0,200\n")
    with pytest.raises(LoadError, match="num"):
        DatasetLoader().load_csv(path, "num")


def test_configured_categorical_must_exist(tmp_path):
    path = _write(tmp_path, "num,chol\n0,200\n")
    with pytest.raises(LoadError, match="sex"):
        DatasetLoader().load_csv(path, "num", categorical_columns=("sex",))


def test_explicit_schema_rejects_text_in_numeric_column(tmp_path):
    path = _write(tmp_path, "num,chol\n0,200\n1,high\n")
    schema = Schema((ColumnSpec("num", Role.outcome), ColumnSpec("chol", Role.numeric)))
    with pytest.raises(LoadError, match="chol"):
        DatasetLoader().load_csv(path, "num", schema=schema)


def test_explicit_schema_drops_unlisted_columns(tmp_path):
    path = _write(tmp_path, "num,chol,note\n0,200,ok\n1,220,ok\n")
    schema = Schema((ColumnSpec("num", Role.outcome), ColumnSpec("chol", Role.numeric)))
    df = DatasetLoader().load_csv(path, "num", schema=schema)["df"]
    assert list(df.columns) == ["num", "chol"]


def test_schema_requires_single_outcome():
    with pytest.raises(LoadError):
        Schema((ColumnSpec("a", Role.outcome), ColumnSpec("b", Role.outcome)))
