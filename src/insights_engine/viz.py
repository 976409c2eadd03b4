from __future__ import annotations
import logging
import os, textwrap
from typing import List, Optional, Tuple
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

from insights_engine.errors import require_columns

logger = logging.getLogger(__name__)

PlotResult = Tuple[plt.Figure, plt.Axes, Optional[str]]


def _ensure_dir(p: Optional[str]) -> None:
    if p:
        d = os.path.dirname(p)
        if d and not os.path.exists(d):
            os.makedirs(d, exist_ok=True)

def _wrap(s: str, width: int) -> str:
    s = (s or "").strip()
    return "\n".join(textwrap.wrap(s, width=width)) if s else ""

def _floats(s: pd.Series) -> np.ndarray:
    # <NA> -> nan so matplotlib just leaves a gap
    return pd.to_numeric(s, errors="coerce").astype("Float64").to_numpy(dtype=float, na_value=np.nan)

def _labels(s: pd.Series, width: int) -> List[str]:
    return [_wrap("" if pd.isna(v) else str(v), width) or "(missing)" for v in s]

def _finish(fig: plt.Figure, out_path: Optional[str], show: bool) -> Optional[str]:
    fig.tight_layout()
    saved = None
    if out_path:
        _ensure_dir(out_path)
        fig.savefig(out_path, dpi=150, bbox_inches="tight")
        saved = out_path
        logger.info("Saved chart %s", out_path)
    if show:
        plt.show()
    else:
        plt.close(fig)
    return saved


def plot_bar(
    table: pd.DataFrame,
    x: str,
    y: str,
    out_path: Optional[str] = None,
    show: bool = False,
    *,
    title: Optional[str] = None,
    ylabel: Optional[str] = None,
    top_n: Optional[int] = None,
    wrap_labels: int = 12,
) -> PlotResult:
    """
    Vertical bars of `y` per `x`, in table order (sort the table first).
    """
    require_columns(table, [x, y], what="bar chart table")
    data = table.head(top_n) if top_n else table
    fig, ax = plt.subplots(figsize=(max(6.0, 0.6 * len(data) + 2), 4.5))
    pos = np.arange(len(data))
    ax.bar(pos, _floats(data[y]))
    ax.set_xticks(pos)
    ax.set_xticklabels(_labels(data[x], wrap_labels), fontsize=9)
    ax.set_title(title or f"{y} by {x}")
    ax.set_xlabel(x)
    ax.set_ylabel(ylabel or y)
    return fig, ax, _finish(fig, out_path, show)


def plot_barh(
    table: pd.DataFrame,
    label: str,
    value: str,
    out_path: Optional[str] = None,
    show: bool = False,
    *,
    title: Optional[str] = None,
    top_n: Optional[int] = 20,
    wrap_labels: int = 30,
) -> PlotResult:
    """
    Horizontal bars for ranked tables (first row on top); long labels get wrapped.
    """
    require_columns(table, [label, value], what="bar chart table")
    data = table.head(top_n) if top_n else table
    fig, ax = plt.subplots(figsize=(8, max(3.0, 0.35 * len(data) + 1)))
    pos = np.arange(len(data))
    ax.barh(pos, _floats(data[value]))
    ax.set_yticks(pos)
    ax.set_yticklabels(_labels(data[label], wrap_labels), fontsize=9)
    ax.invert_yaxis()
    ax.set_title(title or f"{value} by {label}")
    ax.set_xlabel(value)
    return fig, ax, _finish(fig, out_path, show)


def plot_box(
    df: pd.DataFrame,
    column: str,
    by: str,
    out_path: Optional[str] = None,
    show: bool = False,
    *,
    title: Optional[str] = None,
    wrap_labels: int = 12,
) -> PlotResult:
    """
    Distribution of `column` per `by` group (groups in first-seen order, missing values dropped).
    """
    require_columns(df, [column, by], what="box plot data")
    groups, names = [], []
    for key, sub in df.groupby(by, sort=False, observed=True):
        vals = _floats(sub[column])
        vals = vals[~np.isnan(vals)]
        if len(vals):
            groups.append(vals)
            names.append(key)
    fig, ax = plt.subplots(figsize=(max(6.0, 0.8 * len(groups) + 2), 4.5))
    if groups:
        ax.boxplot(groups)
        ax.set_xticks(np.arange(1, len(groups) + 1))
        ax.set_xticklabels(_labels(pd.Series(names, dtype=object), wrap_labels), fontsize=9)
    ax.set_title(title or f"{column} by {by}")
    ax.set_xlabel(by)
    ax.set_ylabel(column)
    return fig, ax, _finish(fig, out_path, show)


def plot_line(
    table: pd.DataFrame,
    x: str,
    y: str,
    out_path: Optional[str] = None,
    show: bool = False,
    *,
    hue: Optional[str] = None,
    title: Optional[str] = None,
) -> PlotResult:
    """
    One line of `y` over `x` per `hue` value (or a single line). Points are drawn in x order.
    """
    require_columns(table, [x, y] + ([hue] if hue else []), what="line chart table")
    fig, ax = plt.subplots(figsize=(10, 4.5))
    parts = table.groupby(hue, sort=False, observed=True) if hue else [(None, table)]
    for key, sub in parts:
        sub = sub.sort_values(x, kind="stable")
        ax.plot(_floats(sub[x]), _floats(sub[y]), linewidth=1.6, label=None if key is None else str(key))
    if hue:
        ax.legend(title=hue, fontsize=9)
    ax.set_title(title or f"{y} over {x}")
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    return fig, ax, _finish(fig, out_path, show)


def plot_scatter(
    df: pd.DataFrame,
    x: str,
    y: str,
    out_path: Optional[str] = None,
    show: bool = False,
    *,
    hue: Optional[str] = None,
    title: Optional[str] = None,
    alpha: float = 0.6,
) -> PlotResult:
    require_columns(df, [x, y] + ([hue] if hue else []), what="scatter data")
    fig, ax = plt.subplots(figsize=(7, 5))
    parts = df.groupby(hue, sort=False, observed=True) if hue else [(None, df)]
    for key, sub in parts:
        ax.scatter(_floats(sub[x]), _floats(sub[y]), s=14, alpha=alpha, label=None if key is None else str(key))
    if hue:
        ax.legend(title=hue, fontsize=8)
    ax.set_title(title or f"{y} vs {x}")
    ax.set_xlabel(x)
    ax.set_ylabel(y)
    return fig, ax, _finish(fig, out_path, show)
