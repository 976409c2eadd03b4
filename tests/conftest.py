"""Shared pytest fixtures for insights_engine tests."""

import matplotlib

matplotlib.use("Agg")

import pytest  # noqa: E402

from insights_engine.data_prep import load_dataset  # noqa: E402
from insights_engine.datasets import CATALOG_SCHEMA, NUTRITION_SCHEMA  # noqa: E402

NUTRITION_CSV = """\
Restaurant,Item,Calories,Cal_Fat,Total_Fat,Sat_Fat,Sodium,Total_Carb,Sugar,Protein
Mcdonalds,Big Mac,540,250,28,10,950,46,9,25
Mcdonalds,Fries,320,140,15,2,260,43,0,5
Mcdonalds,Side Salad,20,0,0,0,10,4,2,1
Subway,Footlong,900,300,33,12,2000,100,12,50
Subway,Mystery Cookie,n/a,,,,,,,
Taco Bell,Taco,170,80,9,3.5,310,13,1,8
"""

CATALOG_CSV = """\
show_id,type,title,director,country,release_year,rating,listed_in
s1,Movie,Alpha,X,"United States, India",2019,PG-13,"Dramas, International Movies"
s2,TV Show,Beta,,United States,2020,TV-MA,"International TV Shows, TV Dramas"
s3,Movie,Gamma,Y,,2019,R,Dramas
s4,Movie,Delta,,India,2021,PG-13,"Comedies, Dramas"
"""


@pytest.fixture
def nutrition_csv(tmp_path):
    """Small fast-food nutrition file with mixed-case headers and one unparseable row."""
    path = tmp_path / "fastfood.csv"
    path.write_text(NUTRITION_CSV)
    return str(path)


@pytest.fixture
def catalog_csv(tmp_path):
    """Small Netflix catalog file with multi-value country/genre fields."""
    path = tmp_path / "netflix_titles.csv"
    path.write_text(CATALOG_CSV)
    return str(path)


@pytest.fixture
def nutrition_df(nutrition_csv):
    return load_dataset(nutrition_csv, NUTRITION_SCHEMA)


@pytest.fixture
def catalog_df(catalog_csv):
    return load_dataset(catalog_csv, CATALOG_SCHEMA)
