from __future__ import annotations
from typing import Iterable
import pandas as pd


class SchemaError(ValueError):
    """A referenced column does not exist in the dataset (fatal, raised before any work)."""

    def __init__(self, missing: Iterable[str], found: Iterable[str], what: str = "dataset"):
        self.missing = sorted(set(missing))
        self.found = list(found)
        self.what = what
        super().__init__(f"{what} is missing required columns: {self.missing}. Found: {self.found}")


def require_columns(df: pd.DataFrame, columns: Iterable[str], what: str = "dataset") -> None:
    miss = set(columns) - set(df.columns)
    if miss:
        raise SchemaError(miss, df.columns, what=what)
