#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Convert the full crimes CSV (~8M rows) to Parquet for the Spark
logistic-regression job, keeping only the columns it uses.

Run:
    python -m arrest_report.spark_convert "Chicago Crime Data.csv" crimes_parquet/
"""

import argparse

from pyspark.sql import SparkSession

from arrest_report import config

DEFAULT_OUTPUT = "crimes_parquet/"

USECOLS = [
    "id", "case number", "date", "block", "iucr", "primary type",
    "description", "location description", "arrest", "domestic",
    "beat", "district", "ward", "community area", "fbi code"
]


def norm(s: str) -> str:
    return (s or "").strip().lower()


def select_columns(df, usecols=USECOLS):
    """Case-insensitive column pick; keeps everything if nothing matches."""
    norm_map = {norm(c): c for c in df.columns}
    selected_actual = [norm_map[c] for c in usecols if c in norm_map]

    if not selected_actual:
        print("No case-insensitive matches found for USECOLS; writing all columns instead.")
        print(f"Available columns: {df.columns}")
        return df

    print(f"Selecting {len(selected_actual)} columns by case-insensitive match.")
    return df.select(*selected_actual)


def build_session(app_name="csv-to-parquet-case-insensitive", partitions=200):
    return (
        SparkSession.builder
        .appName(app_name)
        .config("spark.sql.execution.arrow.pyspark.enabled", "true")
        .config("spark.sql.shuffle.partitions", str(partitions))
        .getOrCreate()
    )


def convert(spark, input_csv, output_parquet):
    print(f"\nReading CSV from: {input_csv}")
    df = (
        spark.read
        .option("header", True)
        .option("inferSchema", False)   # faster; we're just converting
        .csv(input_csv)
    )
    df = select_columns(df)

    count = df.count()
    print(f"Loaded {count:,} rows.")
    print(f"Writing Parquet to: {output_parquet}")

    (df.write
       .mode("overwrite")
       .parquet(output_parquet))

    print("Done.")
    return count


def parse_args():
    p = argparse.ArgumentParser(description="Crimes CSV -> Parquet.")
    p.add_argument("input_csv", nargs="?", default=config.RAW_CSV_PATH)
    p.add_argument("output_parquet", nargs="?", default=DEFAULT_OUTPUT)
    return p.parse_args()


def main():
    args = parse_args()
    spark = build_session()
    try:
        convert(spark, args.input_csv, args.output_parquet)
    finally:
        spark.stop()


if __name__ == "__main__":
    main()
