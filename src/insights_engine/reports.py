"""
Report pipelines for the two datasets: load -> derive tables -> write CSVs -> draw charts.

Each `*_tables` function is pure and returns an ordered dict of named summary tables;
the `run_*` functions add the I/O around them.
"""
from __future__ import annotations
import logging
import os
from typing import Dict, List, Optional
import pandas as pd

from insights_engine import datasets as ds
from insights_engine import viz
from insights_engine.data_prep import load_dataset
from insights_engine.errors import require_columns
from insights_engine.metrics import (
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

logger = logging.getLogger(__name__)

Tables = Dict[str, pd.DataFrame]


# ----------------------------
# fast-food nutrition
# ----------------------------
def nutrition_tables(
    df: pd.DataFrame,
    *,
    bands=ds.CALORIE_BANDS,
    high_calorie: float = ds.HIGH_CALORIE_THRESHOLD,
) -> Tables:
    require_columns(df, ds.NUTRITION_SCHEMA, what="nutrition dataset")

    by_restaurant = group_summarize(
        df, "restaurant",
        [
            count(name="items"),
            mean("calories", name="avg_calories"),
            max_("calories", name="max_calories"),
            mean("sugar", name="avg_sugar"),
            mean("sodium", name="avg_sodium"),
            ratio("cal_fat", "calories", name="fat_share"),
        ],
        sort_by="avg_calories", descending=True,
    )

    banded = classify_column(df, "calories", bands, into="calorie_band")
    calorie_bands = group_summarize(banded, ["restaurant", "calorie_band"], [count(name="items")])
    calorie_bands = sort_by(calorie_bands, ["restaurant", "calorie_band"])

    heavy = filter_rows(df, lambda d: d["calories"] > high_calorie)
    high_cal = group_summarize(
        heavy, "restaurant",
        [count(name="items"), mean("calories", name="avg_calories")],
        sort_by="items", descending=True,
    )

    restaurant_rank = rank(by_restaurant[["restaurant", "avg_calories"]], "avg_calories", "descending")

    protein = group_summarize(df, "restaurant", [ratio("protein", "calories", name="protein_per_calorie")])
    protein = rank(protein, "protein_per_calorie", "descending")

    return {
        "by_restaurant": by_restaurant,
        "calorie_bands": calorie_bands,
        "high_calorie": high_cal,
        "restaurant_rank": restaurant_rank,
        "protein_per_calorie": protein,
    }


def render_nutrition(df: pd.DataFrame, tables: Tables, out_dir: Optional[str] = None, show: bool = False) -> List[str]:
    """Draw the nutrition charts; returns the saved paths (none if out_dir is None)."""
    def path(name: str) -> Optional[str]:
        return os.path.join(out_dir, f"{name}.png") if out_dir else None

    results = [
        viz.plot_bar(tables["by_restaurant"], "restaurant", "avg_calories", path("avg_calories"), show,
                     title="Average calories per item", ylabel="kcal"),
        viz.plot_box(df, "calories", "restaurant", path("calories_box"), show,
                     title="Calorie distribution by restaurant"),
        viz.plot_scatter(df, "calories", "sodium", path("calories_vs_sodium"), show,
                         hue="restaurant", title="Sodium vs calories"),
        viz.plot_barh(tables["protein_per_calorie"], "restaurant", "protein_per_calorie", path("protein_per_calorie"),
                      show, title="Protein per calorie"),
    ]
    return [saved for _, _, saved in results if saved]


# ----------------------------
# Netflix catalog
# ----------------------------
def catalog_tables(df: pd.DataFrame, *, delimiter: str = ds.TAG_DELIMITER, top_n: int = ds.TOP_N) -> Tables:
    require_columns(df, ds.CATALOG_SCHEMA, what="catalog dataset")

    by_type = group_summarize(df, "type", [count(name="titles")], sort_by="titles", descending=True)

    by_year = group_summarize(df, ["release_year", "type"], [count(name="titles")])
    by_year = sort_by(by_year, ["release_year", "type"])

    genres = flatten(df, "listed_in", delimiter)
    genres = filter_rows(genres, lambda d: d["listed_in"].notna())
    top_genres = group_summarize(genres, "listed_in", [count(name="titles")])
    top_genres = rank(top_genres.rename(columns={"listed_in": "genre"}), "titles", "descending")

    genres_by_type = group_summarize(genres, ["type", "listed_in"], [count(name="titles")])
    genres_by_type = sort_by(genres_by_type.rename(columns={"listed_in": "genre"}), "titles", descending=True)

    countries = flatten(df, "country", delimiter)
    countries = filter_rows(countries, lambda d: d["country"].notna())
    top_countries = group_summarize(countries, "country", [count(name="titles")])
    top_countries = rank(top_countries, "titles", "descending").head(top_n)

    by_rating = group_summarize(df, "rating", [count(name="titles")], sort_by="titles", descending=True)

    return {
        "by_type": by_type,
        "by_year": by_year,
        "top_genres": top_genres,
        "genres_by_type": genres_by_type,
        "top_countries": top_countries,
        "by_rating": by_rating,
    }


def render_catalog(tables: Tables, out_dir: Optional[str] = None, show: bool = False, *, top_n: int = ds.TOP_N) -> List[str]:
    def path(name: str) -> Optional[str]:
        return os.path.join(out_dir, f"{name}.png") if out_dir else None

    results = [
        viz.plot_bar(tables["by_type"], "type", "titles", path("titles_by_type"), show, title="Titles by type"),
        viz.plot_line(tables["by_year"], "release_year", "titles", path("titles_by_year"), show,
                      hue="type", title="Titles by release year"),
        viz.plot_barh(tables["top_genres"], "genre", "titles", path("top_genres"), show,
                      top_n=top_n, title=f"Top {top_n} genres"),
        viz.plot_barh(tables["top_countries"], "country", "titles", path("top_countries"), show,
                      top_n=top_n, title=f"Top {top_n} countries"),
    ]
    return [saved for _, _, saved in results if saved]


# ----------------------------
# I/O
# ----------------------------
def write_tables(tables: Tables, out_dir: str) -> List[str]:
    """One CSV per table; same tables in -> byte-identical files out."""
    os.makedirs(out_dir, exist_ok=True)
    paths = []
    for name, table in tables.items():
        p = os.path.join(out_dir, f"{name}.csv")
        table.to_csv(p, index=False, float_format="%.6f", lineterminator="\n")
        paths.append(p)
    logger.info("Wrote %d tables to %s", len(paths), out_dir)
    return paths


def run_nutrition_report(csv_path: str, out_dir: str, *, show: bool = False) -> Tables:
    df = load_dataset(csv_path, ds.NUTRITION_SCHEMA)
    tables = nutrition_tables(df)
    write_tables(tables, out_dir)
    render_nutrition(df, tables, out_dir, show)
    return tables


def run_catalog_report(csv_path: str, out_dir: str, *, show: bool = False) -> Tables:
    df = load_dataset(csv_path, ds.CATALOG_SCHEMA)
    tables = catalog_tables(df)
    write_tables(tables, out_dir)
    render_catalog(tables, out_dir, show)
    return tables
