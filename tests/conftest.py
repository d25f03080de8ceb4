"""Shared fixtures: a small synthetic slice of the Chicago crimes export."""
import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from arrest_report.prepare import add_block_frequency, add_time_features, clean, select_model_columns

PRIMARY_TYPES = {
    # type: arrest probability
    "NARCOTICS": 0.9,
    "WEAPONS VIOLATION": 0.7,
    "THEFT": 0.1,
    "BATTERY": 0.25,
    "CRIMINAL DAMAGE": 0.05,
}
LOCATIONS = ["STREET", "RESIDENCE", "APARTMENT", "SIDEWALK", "ALLEY"]
BLOCKS = ["001XX N STATE ST", "002XX W MADISON ST", "047XX S COTTAGE GROVE AVE",
          "012XX W 63RD ST", "079XX S HALSTED ST", "034XX W NORTH AVE"]


def make_raw_crimes(n=600, seed=7):
    rng = np.random.default_rng(seed)
    types = rng.choice(list(PRIMARY_TYPES), size=n)
    p_arrest = np.array([PRIMARY_TYPES[t] for t in types])
    arrest = rng.random(n) < p_arrest

    start = pd.Timestamp("2019-01-01")
    stamps = start + pd.to_timedelta(rng.integers(0, 3 * 365 * 24 * 60, size=n), unit="min")

    district = rng.integers(1, 6, size=n)
    return pd.DataFrame({
        "ID": np.arange(n),
        "Date": stamps.strftime("%m/%d/%Y %I:%M:%S %p"),
        "Block": rng.choice(BLOCKS, size=n),
        "Primary Type": types,
        "Description": rng.choice(["SIMPLE", "AGGRAVATED", "OVER $500", "POSS: CANNABIS"], size=n),
        "Location Description": rng.choice(LOCATIONS, size=n),
        "Arrest": arrest,
        "Domestic": rng.random(n) < 0.15,
        "Beat": district * 100 + rng.integers(1, 4, size=n),
        "District": district,
        "Ward": rng.integers(1, 10, size=n),
        "Community Area": rng.integers(1, 8, size=n),
    })


@pytest.fixture
def raw_crimes():
    return make_raw_crimes()


@pytest.fixture
def prepped(raw_crimes):
    df = add_block_frequency(add_time_features(clean(raw_crimes)))
    return select_model_columns(df).reset_index(drop=True)
