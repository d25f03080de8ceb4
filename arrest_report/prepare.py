#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Prep Chicago crime data:
- Load full CSV
- Clean + engineer features
- Take stratified sample
- Save modeling-ready CSV

Run:
    python -m arrest_report.prepare --csv "Chicago Crime Data.csv" --sample-size 300000
"""

import argparse
from pathlib import Path

import numpy as np
import pandas as pd

from arrest_report import config

TRUE_VALUES = {"true", "t", "1", "y", "yes"}
FALSE_VALUES = {"false", "f", "0", "n", "no"}


def parse_args():
    p = argparse.ArgumentParser(description="Clean and sample the Chicago crime CSV.")
    p.add_argument("--csv", dest="csv_path", default=config.RAW_CSV_PATH,
                   help="Raw crimes CSV exported from the city data portal.")
    p.add_argument("--out", dest="output_path", default=config.DATA_PATH,
                   help="Where to write the modeling-ready sample.")
    p.add_argument("--sample-size", type=int, default=config.SAMPLE_SIZE,
                   help="Approximate number of rows to keep (0 keeps everything).")
    p.add_argument("--random-state", type=int, default=config.RANDOM_STATE)
    return p.parse_args()


def load_raw(csv_path):
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Crime CSV not found at {csv_path}")
    return pd.read_csv(csv_path, low_memory=False)


def to_binary(series):
    """Map bools / 'true' / 'False' / 1 style flags to 0/1, unknowns to NaN."""
    if series.dtype == bool:
        return series.astype(int)
    # 0/1 columns with blanks load as float64
    if pd.api.types.is_numeric_dtype(series):
        return series.where(series.isin([0, 1]))
    norm = series.astype(str).str.strip().str.lower()
    out = pd.Series(np.nan, index=series.index)
    out[norm.isin(TRUE_VALUES)] = 1
    out[norm.isin(FALSE_VALUES)] = 0
    return out


def clean(df):
    if config.TARGET not in df.columns:
        raise ValueError(f"'{config.TARGET}' column not found; got {list(df.columns)}")

    df = df.copy()

    # Drop rows with missing Arrest
    df[config.TARGET] = to_binary(df[config.TARGET])
    df = df.dropna(subset=[config.TARGET])
    df[config.TARGET] = df[config.TARGET].astype(int)

    if "Domestic" in df.columns:
        df["Domestic"] = to_binary(df["Domestic"]).fillna(0).astype(int)

    if "Date" in df.columns:
        df["DateTime"] = pd.to_datetime(df["Date"], errors="coerce")
        df = df.dropna(subset=["DateTime"])

    return df


def add_time_features(df):
    if "DateTime" not in df.columns:
        print("No parsed DateTime column; skipping time features.")
        return df

    df = df.copy()
    df["Year"] = df["DateTime"].dt.year
    df["Month"] = df["DateTime"].dt.month
    df["DayOfWeek"] = df["DateTime"].dt.dayofweek
    df["Hour"] = df["DateTime"].dt.hour
    df["IsWeekend"] = df["DayOfWeek"].isin([5, 6]).astype(int)
    # --- Seasonality feature ---
    df["Season"] = df["Month"].map(config.SEASONS)
    return df


def add_block_frequency(df):
    """BlockFreq: how "busy" a block is across the whole cleaned dataset."""
    if "Block" not in df.columns:
        return df
    df = df.copy()
    block_counts = df["Block"].value_counts()
    df["BlockFreq"] = df["Block"].map(block_counts).fillna(0).astype(int)
    return df


def stratified_sample(df, sample_size, random_state=config.RANDOM_STATE):
    if not sample_size or sample_size >= len(df):
        print("Sample size >= total rows; using full dataset.")
        return df

    frac = sample_size / len(df)
    print(f"Taking stratified sample of approx {sample_size} rows "
          f"(fraction={frac:.4f})...")

    return (
        df.groupby(config.TARGET, group_keys=False)
          .sample(frac=frac, random_state=random_state)
    )


def select_model_columns(df):
    cols_to_keep = [config.TARGET] + config.CATEGORICAL_FEATURES + config.NUMERIC_FEATURES
    cols_to_keep = [c for c in cols_to_keep if c in df.columns]
    return df[cols_to_keep].copy()


def prepare(csv_path=config.RAW_CSV_PATH,
            output_path=config.DATA_PATH,
            sample_size=config.SAMPLE_SIZE,
            random_state=config.RANDOM_STATE):
    print("Loading raw CSV...")
    df = load_raw(csv_path)

    print("Parsing dates and creating time features...")
    df = add_time_features(clean(df))

    # Frequencies come from the full data, before sampling
    print("Computing block frequencies...")
    df = add_block_frequency(df)

    df_sample = select_model_columns(stratified_sample(df, sample_size, random_state))

    print(f"Final sample shape: {df_sample.shape}")
    print(f"Arrest rate: {df_sample[config.TARGET].mean():.3f}")

    if output_path:
        print(f"Saving prepped sample to {output_path} ...")
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        df_sample.to_csv(output_path, index=False)
        print("Done.")
    return df_sample


def load_prepped(path=config.DATA_PATH):
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Prepped data not found at {path}. "
            f"Create it first: python -m arrest_report.prepare"
        )
    df = pd.read_csv(path)
    if config.TARGET not in df.columns:
        raise ValueError(f"'{config.TARGET}' column missing from {path}")
    df[config.TARGET] = df[config.TARGET].astype(int)
    return df


def main():
    args = parse_args()
    prepare(args.csv_path, args.output_path, args.sample_size, args.random_state)


if __name__ == "__main__":
    main()
