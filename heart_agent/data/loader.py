"""Dataset loading module for heart disease tables."""

import csv
from pathlib import Path

import pandas as pd

from heart_agent.config import NA_VALUES
from heart_agent.data.schema import Role, Schema
from heart_agent.errors import LoadError
from heart_agent.utils import get_logger

log = get_logger(__name__)


class DatasetLoader:
    """Loads a delimited text file into a schema-checked table."""

    def __init__(self, na_values: tuple[str, ...] = NA_VALUES, sep: str = ","):
        self.na_values = list(na_values)
        self.sep = sep

    def load_csv(self, path: str, target_column: str,
                 schema: Schema | None = None,
                 categorical_columns: tuple[str, ...] = (),
                 ignored_columns: tuple[str, ...] = ()) -> dict:
        """
        Load a CSV file with a header row.

        Returns a dict with keys:
            - df: pd.DataFrame restricted to schema columns
            - schema: the Schema the table was checked against
            - feature_names: list of feature column names
            - target_name: name of the outcome column
            - metadata: extra info about the dataset
        """
        path = Path(path)
        log.info("Loading CSV from: %s", path)

        self._check_row_widths(path)

        try:
            df = pd.read_csv(path, sep=self.sep, na_values=self.na_values,
                             keep_default_na=True)
        except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
            raise LoadError(f"Cannot read {path}: {e}") from e

        if schema is None:
            schema = Schema.infer(
                df, target_column,
                categorical=tuple(categorical_columns),
                ignored=tuple(ignored_columns),
            )
        elif schema.outcome != target_column:
            raise LoadError(
                f"Schema outcome '{schema.outcome}' does not match "
                f"target column '{target_column}'"
            )
        df = schema.validate(df)
        df.index = pd.RangeIndex(len(df))

        metadata = {
            "name": path.name,
            "n_samples": len(df),
            "n_features": len(schema.features),
            "task": "binary_classification",
            "numeric_columns": schema.by_role(Role.numeric),
            "categorical_columns": schema.by_role(Role.categorical),
            "class_distribution": df[target_column].value_counts(dropna=False).to_dict(),
        }

        log.info(
            "Loaded %d samples with %d features",
            metadata["n_samples"],
            metadata["n_features"],
        )

        return {
            "df": df,
            "schema": schema,
            "feature_names": schema.features,
            "target_name": target_column,
            "metadata": metadata,
        }

    def _check_row_widths(self, path: Path):
        """Fail when any data row has a different field count than the header."""
        try:
            with open(path, newline="", encoding="utf-8") as fh:
                reader = csv.reader(fh, delimiter=self.sep)
                header = next(reader, None)
                if not header:
                    raise LoadError(f"{path} is empty or has no header row")
                for row in reader:
                    if not row:
                        continue
                    if len(row) != len(header):
                        raise LoadError(
                            f"{path}, line {reader.line_num}: expected "
                            f"{len(header)} fields, found {len(row)}"
                        )
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            raise LoadError(f"Cannot read {path}: {e}") from e
