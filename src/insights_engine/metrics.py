from __future__ import annotations
import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union
import pandas as pd

from insights_engine.errors import require_columns

logger = logging.getLogger(__name__)

Columns = Union[str, Sequence[str]]


def _as_list(cols: Columns) -> List[str]:
    return [cols] if isinstance(cols, str) else list(cols)


def _numeric(s: pd.Series) -> pd.Series:
    # malformed cells count as missing, never as zero
    if pd.api.types.is_numeric_dtype(s):
        return s.astype("Float64")
    return pd.to_numeric(s.astype(object).where(s.notna()), errors="coerce").astype("Float64")


# ----------------------------
# filter
# ----------------------------
def filter_rows(df: pd.DataFrame, predicate: Callable[[pd.DataFrame], Any]) -> pd.DataFrame:
    """
    Keep the rows where `predicate(df)` is True. Missing mask entries count as False.
    Order and index are preserved; an empty result is fine.
    """
    mask = pd.Series(predicate(df), index=df.index)
    mask = mask.fillna(False).astype(bool)
    out = df.loc[mask].copy()
    logger.debug("filter_rows kept %d of %d rows", len(out), len(df))
    return out


# ----------------------------
# aggregations
# ----------------------------
@dataclass(frozen=True)
class Aggregation:
    """One summary column: op is count|mean|max|ratio."""

    name: str
    op: str
    field: Optional[str] = None
    other: Optional[str] = None

    def fields(self) -> List[str]:
        return [f for f in (self.field, self.other) if f is not None]


def count(field: Optional[str] = None, name: Optional[str] = None) -> Aggregation:
    """Partition size, or the number of values of `field` that `mean(field)` averages over."""
    return Aggregation(name or (f"n_{field}" if field else "count"), "count", field)


def mean(field: str, name: Optional[str] = None) -> Aggregation:
    return Aggregation(name or f"mean_{field}", "mean", field)


def max_(field: str, name: Optional[str] = None) -> Aggregation:
    return Aggregation(name or f"max_{field}", "max", field)


def ratio(field: str, other: str, name: Optional[str] = None) -> Aggregation:
    """mean(field) / mean(other), taken from the partition means, not per record."""
    return Aggregation(name or f"{field}_per_{other}", "ratio", field, other)


def _mean(values: pd.Series):
    vals = values.dropna()
    if vals.empty:
        return pd.NA
    return float(vals.sum()) / len(vals)


def _max(values: pd.Series):
    vals = values.dropna()
    return pd.NA if vals.empty else float(vals.max())


def _divide(a, b):
    if a is pd.NA or b is pd.NA or b == 0:
        return pd.NA
    return a / b


def _summarize(part: pd.DataFrame, aggregations: Sequence[Aggregation], numeric: Dict[str, pd.Series]) -> Dict[str, Any]:
    row: Dict[str, Any] = {}
    means: Dict[str, Any] = {}

    def mean_of(field: str):
        if field not in means:
            means[field] = _mean(numeric[field].loc[part.index])
        return means[field]

    for agg in aggregations:
        if agg.op == "count":
            row[agg.name] = len(part) if agg.field is None else int(numeric[agg.field].loc[part.index].notna().sum())
        elif agg.op == "mean":
            row[agg.name] = mean_of(agg.field)
        elif agg.op == "max":
            row[agg.name] = _max(numeric[agg.field].loc[part.index])
        else:
            row[agg.name] = _divide(mean_of(agg.field), mean_of(agg.other))
    return row


def group_summarize(
    df: pd.DataFrame,
    by: Columns,
    aggregations: Sequence[Aggregation],
    *,
    sort_by: Optional[Columns] = None,
    descending: bool = False,
) -> pd.DataFrame:
    """
    One row per distinct key in `by`, with one column per aggregation.

    Keys compare by exact value; a missing key is a group of its own. Rows come out in
    first-seen key order unless `sort_by` is given. Every referenced column is checked
    up front (SchemaError), so a bad config never yields a partial table.
    Numeric aggregates skip missing cells; a group with none left gets <NA>, not 0.
    """
    keys = _as_list(by)
    names = [a.name for a in aggregations]
    if len(set(names)) != len(names) or set(names) & set(keys):
        raise ValueError(f"Aggregation names must be unique and differ from the keys: {names}")
    for agg in aggregations:
        if agg.op not in ("count", "mean", "max", "ratio"):
            raise ValueError(f"Unknown aggregation op: {agg.op!r}")
        if agg.op != "count" and agg.field is None:
            raise ValueError(f"Aggregation {agg.name!r} needs a field")
        if agg.op == "ratio" and agg.other is None:
            raise ValueError(f"Ratio {agg.name!r} needs a denominator field")
    needed = keys + [f for a in aggregations for f in a.fields()]
    require_columns(df, needed, what="group_summarize input")
    if sort_by is not None:
        unknown = set(_as_list(sort_by)) - set(keys + names)
        if unknown:
            raise ValueError(f"sort_by refers to unknown output columns: {sorted(unknown)}")

    frame = df.reset_index(drop=True)
    numeric = {f: _numeric(frame[f]) for a in aggregations for f in a.fields()}

    rows = []
    for key, part in frame.groupby(keys, sort=False, dropna=False, observed=True):
        key = key if isinstance(key, tuple) else (key,)
        row = dict(zip(keys, key))
        row.update(_summarize(part, aggregations, numeric))
        rows.append(row)

    out = pd.DataFrame(rows, columns=keys + names)
    for k in keys:
        out[k] = out[k].astype(frame[k].dtype)
    for agg in aggregations:
        out[agg.name] = out[agg.name].astype("Int64" if agg.op == "count" else "Float64")
    logger.debug("group_summarize: %d rows -> %d groups by %s", len(df), len(out), keys)
    if sort_by is not None:
        out = _stable_sort(out, _as_list(sort_by), descending)
    return out


# ----------------------------
# classify
# ----------------------------
@dataclass(frozen=True)
class Bands:
    """
    Ordered half-open bands: value < thresholds[i][0] -> thresholds[i][1], first match
    wins; anything at or above the last boundary -> `otherwise`.
    """

    thresholds: Tuple[Tuple[float, str], ...]
    otherwise: str

    def __post_init__(self):
        object.__setattr__(self, "thresholds", tuple((float(t), str(lbl)) for t, lbl in self.thresholds))
        bounds = [t for t, _ in self.thresholds]
        if any(lo >= hi for lo, hi in zip(bounds, bounds[1:])):
            raise ValueError(f"Band thresholds must be strictly ascending: {bounds}")

    @property
    def labels(self) -> List[str]:
        return [lbl for _, lbl in self.thresholds] + [self.otherwise]


def classify(value, bands: Bands) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    value = pd.to_numeric(value, errors="coerce")
    if pd.isna(value):
        return None
    for bound, label in bands.thresholds:
        if value < bound:
            return label
    return bands.otherwise


def classify_column(df: pd.DataFrame, field: str, bands: Bands, *, into: str = "band") -> pd.DataFrame:
    """Copy of df with a label column from `classify` applied to every value of `field`."""
    require_columns(df, [field], what="classify_column input")
    out = df.copy()
    labels = [classify(v, bands) for v in _numeric(df[field])]
    out[into] = pd.Categorical(labels, categories=bands.labels, ordered=True)
    return out


# ----------------------------
# rank / sort
# ----------------------------
def _stable_sort(df: pd.DataFrame, keys: List[str], descending: bool) -> pd.DataFrame:
    out = df.sort_values(keys, ascending=not descending, kind="stable", na_position="last")
    return out.reset_index(drop=True)


def sort_by(df: pd.DataFrame, key: Columns, descending: bool = False) -> pd.DataFrame:
    """Stable sort: ties keep their prior relative order; missing values go last."""
    keys = _as_list(key)
    require_columns(df, keys, what="sort_by input")
    return _stable_sort(df, keys, descending)


def rank(df: pd.DataFrame, metric: str, direction: str = "descending", *, into: str = "rank") -> pd.DataFrame:
    """
    Dense rank (1 = best): equal metric values share a rank and the next distinct
    value gets the next integer. Rows come back ordered by rank, ties in input order.
    """
    if direction not in ("ascending", "descending"):
        raise ValueError(f"direction must be 'ascending' or 'descending', got {direction!r}")
    require_columns(df, [metric], what="rank input")
    out = df.copy()
    out[into] = _numeric(df[metric]).rank(method="dense", ascending=direction == "ascending").astype("Int64")
    return _stable_sort(out, [into], descending=False)


# ----------------------------
# flatten
# ----------------------------
def _split_tags(cell, delimiter: str) -> List[Any]:
    if cell is None or cell is pd.NA or (isinstance(cell, float) and pd.isna(cell)):
        return []
    return [t.strip() for t in str(cell).split(delimiter) if t.strip()]


def flatten(df: pd.DataFrame, field: str, delimiter: str = ",") -> pd.DataFrame:
    """
    One row per tag in a delimited multi-value column. A row with N tags becomes N rows
    (other columns copied); a row with no tags stays as a single row with <NA>.
    """
    require_columns(df, [field], what="flatten input")
    out = df.copy()
    out[field] = pd.Series([_split_tags(c, delimiter) for c in df[field].tolist()], index=df.index, dtype=object)
    out = out.explode(field, ignore_index=True)
    for col in out.columns:
        if col != field and out[col].dtype == object:
            out[col] = pd.Series([copy.deepcopy(v) for v in out[col]], index=out.index, dtype=object)
    out[field] = out[field].astype("string")
    logger.debug("flatten %r: %d rows -> %d rows", field, len(df), len(out))
    return out
