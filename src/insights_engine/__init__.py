"""Grouped summaries, banding, ranking and tag flattening over pandas DataFrames."""
from insights_engine.errors import SchemaError, require_columns
from insights_engine.data_prep import load_dataset, coerce_types
from insights_engine.metrics import (
    Aggregation,
    Bands,
    classify,
    classify_column,
    count,
    filter_rows,
    flatten,
    group_summarize,
    max_,
    mean,
    rank,
    ratio,
    sort_by,
)

__all__ = [
    "Aggregation",
    "Bands",
    "SchemaError",
    "classify",
    "classify_column",
    "coerce_types",
    "count",
    "filter_rows",
    "flatten",
    "group_summarize",
    "load_dataset",
    "max_",
    "mean",
    "rank",
    "ratio",
    "require_columns",
    "sort_by",
]
