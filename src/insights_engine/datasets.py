# Expected inputs for the two reports, plus the thresholds the reports classify by.
from insights_engine.data_prep import FLOAT, INTEGER, MULTI, STRING
from insights_engine.metrics import Bands

# fast-food nutrition facts: one row per menu item
NUTRITION_SCHEMA = {
    "restaurant": STRING,
    "item": STRING,
    "calories": FLOAT,
    "cal_fat": FLOAT,
    "total_fat": FLOAT,
    "sat_fat": FLOAT,
    "sodium": FLOAT,
    "total_carb": FLOAT,
    "sugar": FLOAT,
    "protein": FLOAT,
}

# Netflix title catalog: one row per title; country / listed_in are comma lists
CATALOG_SCHEMA = {
    "show_id": STRING,
    "type": STRING,
    "title": STRING,
    "country": MULTI,
    "release_year": INTEGER,
    "rating": STRING,
    "listed_in": MULTI,
}

TAG_DELIMITER = ","

CALORIE_BANDS = Bands(thresholds=((300, "Low"), (600, "Medium")), otherwise="High")

HIGH_CALORIE_THRESHOLD = 500

TOP_N = 10
