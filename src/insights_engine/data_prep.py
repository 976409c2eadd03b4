from __future__ import annotations
import logging
import re
from typing import Mapping
import numpy as np
import pandas as pd

from insights_engine.errors import SchemaError

logger = logging.getLogger(__name__)

# column semantic types
STRING = "string"
INTEGER = "integer"
FLOAT = "float"
MULTI = "multi"   # delimiter-separated tag list, kept as text until flattened

COLUMN_TYPES = (STRING, INTEGER, FLOAT, MULTI)

Schema = Mapping[str, str]


def normalize_text(s: str) -> str:
    s = (s or "").strip()
    s = re.sub(r"\s+", " ", s)
    return s


def _check_schema(schema: Schema) -> None:
    bad = {c: t for c, t in schema.items() if t not in COLUMN_TYPES}
    if bad:
        raise ValueError(f"Unknown column types {bad}; expected one of {COLUMN_TYPES}")


def load_dataset(path: str, schema: Schema, **read_csv_kwargs) -> pd.DataFrame:
    """
    Load a CSV and validate it against `schema` before anything else happens.

    Header matching is case-insensitive and whitespace-tolerant; matched headers are
    renamed to the schema's canonical names. Columns outside the schema are kept.
    Raises SchemaError naming every missing column.
    """
    _check_schema(schema)
    df = pd.read_csv(path, **read_csv_kwargs)
    cols = {str(c).strip().lower(): c for c in df.columns}
    missing = [name for name in schema if name.lower() not in cols]
    if missing:
        raise SchemaError(missing, df.columns, what=f"CSV {path!r}")
    df = df.rename(columns={cols[name.lower()]: name for name in schema})
    logger.info("Loaded %d rows x %d columns from %s", len(df), len(df.columns), path)
    return coerce_types(df, schema)


def _as_text(s: pd.Series) -> pd.Series:
    txt = pd.Series(
        [pd.NA if pd.isna(v) else normalize_text(str(v)) for v in s.astype("string").tolist()],
        index=s.index, name=s.name, dtype="string",
    )
    return txt.mask((txt == "").fillna(False).astype(bool))


def _as_number(s: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(s):
        return s.astype("Float64")
    raw = _as_text(s).to_numpy(dtype=object, na_value=np.nan)
    return pd.Series(pd.to_numeric(raw, errors="coerce"), index=s.index, name=s.name).astype("Float64")


def coerce_types(df: pd.DataFrame, schema: Schema) -> pd.DataFrame:
    """
    Return a copy with every schema column cast to a nullable dtype:
      string/multi -> trimmed `string` (blank -> <NA>)
      integer      -> Int64   (unparseable or non-integral -> <NA>)
      float        -> Float64 (unparseable -> <NA>)
    Bad cells become missing; they are counted and logged, never raised.
    """
    _check_schema(schema)
    missing = [c for c in schema if c not in df.columns]
    if missing:
        raise SchemaError(missing, df.columns)

    out = df.copy()
    for col, kind in schema.items():
        before = int(out[col].isna().sum())
        if kind in (STRING, MULTI):
            out[col] = _as_text(out[col])
        elif kind == FLOAT:
            out[col] = _as_number(out[col])
        else:
            num = _as_number(out[col])
            integral = (num % 1 == 0).fillna(False).astype(bool)
            out[col] = num.where(integral).astype("Int64")
        lost = int(out[col].isna().sum()) - before
        if lost > 0:
            logger.warning("Column %r: %d value(s) not parseable as %s, treated as missing", col, lost, kind)
    return out

