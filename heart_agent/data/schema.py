"""Explicit column schema, checked once when a table is loaded."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import pandas as pd

from heart_agent.errors import LoadError
from heart_agent.utils import get_logger

log = get_logger(__name__)


class Role(str, Enum):
    numeric = "numeric"
    categorical = "categorical"
    outcome = "outcome"
    ignored = "ignored"


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    role: Role


@dataclass(frozen=True)
class Schema:
    """Ordered (name, role) pairs describing a table."""

    columns: tuple[ColumnSpec, ...]

    def __post_init__(self):
        outcomes = [c.name for c in self.columns if c.role is Role.outcome]
        if len(outcomes) != 1:
            raise LoadError(f"Schema needs exactly one outcome column, found {outcomes}")
        names = [c.name for c in self.columns]
        if len(set(names)) != len(names):
            raise LoadError(f"Schema has duplicate column names: {names}")

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def outcome(self) -> str:
        return next(c.name for c in self.columns if c.role is Role.outcome)

    def by_role(self, role: Role) -> list[str]:
        return [c.name for c in self.columns if c.role is role]

    @property
    def features(self) -> list[str]:
        return self.by_role(Role.numeric) + self.by_role(Role.categorical)

    @classmethod
    def infer(cls, df: pd.DataFrame, outcome: str,
              categorical: tuple[str, ...] = (),
              ignored: tuple[str, ...] = ()) -> "Schema":
        """
        Build a schema from a loaded table.

        Named columns take the role they are given; remaining columns are
        numeric when pandas parsed them as numbers and categorical otherwise.
        """
        missing = [c for c in (outcome, *categorical) if c not in df.columns]
        if missing:
            raise LoadError(f"Columns not found in input: {missing}")

        specs = []
        for name in df.columns:
            if name == outcome:
                role = Role.outcome
            elif name in ignored:
                role = Role.ignored
            elif name in categorical:
                role = Role.categorical
            elif pd.api.types.is_numeric_dtype(df[name]):
                role = Role.numeric
            else:
                log.info("Column '%s' is not numeric, treating as categorical", name)
                role = Role.categorical
            specs.append(ColumnSpec(name, role))
        return cls(tuple(specs))

    def validate(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Check a table against the schema.

        Returns the table restricted to the schema's columns, in schema
        order, with ignored columns removed. Raises LoadError on mismatch.
        """
        absent = [n for n in self.names if n not in df.columns]
        if absent:
            raise LoadError(f"Columns missing from input: {absent}")

        extra = [n for n in df.columns if n not in self.names]
        if extra:
            log.warning("Dropping columns not in schema: %s", extra)

        for name in self.by_role(Role.numeric):
            if not pd.api.types.is_numeric_dtype(df[name]):
                bad = pd.to_numeric(df[name], errors="coerce").isna() & df[name].notna()
                sample = df.loc[bad, name].unique()[:3].tolist()
                raise LoadError(
                    f"Column '{name}' must be numeric, found values like {sample}"
                )

        kept = [n for n in self.names if n not in self.by_role(Role.ignored)]
        return df[kept].copy()
