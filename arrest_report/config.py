#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Shared settings for the arrest report scripts.

Each runnable module reads these defaults and lets argparse override
paths, sample size and seeds.
"""

# -----------------------------
# FILE PATHS
# -----------------------------
RAW_CSV_PATH = "Chicago Crime Data.csv"
DATA_PATH = "chicago_crime_sample_prepped.csv"
OUTPUT_DIR = "outputs"
FIGURE_DIR = "figures"

# -----------------------------
# Sampling / split
# -----------------------------
SAMPLE_SIZE = 300000
RANDOM_STATE = 42
TEST_SIZE = 0.2

TARGET = "Arrest"

CATEGORICAL_FEATURES = [
    "Primary Type",
    "Description",
    "Location Description",
    "Beat",
    "Block",
    "District",
    "Ward",
    "Community Area",
    "Season",
]

NUMERIC_FEATURES = [
    "Domestic",
    "BlockFreq",
    "Year",
    "Month",
    "DayOfWeek",
    "Hour",
    "IsWeekend",
]

SEASONS = {
    12: "Winter", 1: "Winter", 2: "Winter",
    3: "Spring", 4: "Spring", 5: "Spring",
    6: "Summer", 7: "Summer", 8: "Summer",
    9: "Fall", 10: "Fall", 11: "Fall",
}
SEASON_ORDER = ["Winter", "Spring", "Summer", "Fall"]

# -----------------------------
# Model hyper-parameters
# -----------------------------
LR_PARAMS = dict(
    C=1.0,
    max_iter=1000,
    solver="liblinear",
    class_weight="balanced",
)

RF_PARAMS = dict(
    n_estimators=400,
    max_depth=20,
    min_samples_leaf=2,
    max_features="sqrt",
    class_weight="balanced",
    n_jobs=-1,
    random_state=RANDOM_STATE,
)

XGB_PARAMS = dict(
    n_estimators=400,
    max_depth=9,
    learning_rate=0.03,
    subsample=0.8,
    colsample_bytree=0.8,
    eval_metric="logloss",
    tree_method="hist",
)

# Precision floor used when searching for a recall-oriented threshold
MIN_PRECISION = 0.60
