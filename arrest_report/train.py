#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Fit the baseline arrest classifiers on the prepped sample and print
metrics, error breakdowns and a comparison table.

Run (default: all three models)
-------------------------------
python -m arrest_report.train

Run (custom)
------------
python -m arrest_report.train --data chicago_crime_sample_prepped.csv --models rf xgb --out-dir outputs
"""

import argparse
import time
from pathlib import Path

import pandas as pd

from arrest_report import config
from arrest_report.prepare import load_prepped
from arrest_report.models import (
    MODEL_LABELS,
    build_data,
    build_pipeline,
    basic_evaluation,
    top_coefficients,
)
from arrest_report.benchmark import benchmark_model, summary_frame
from arrest_report import error_analysis as ea

PARAMS_BY_MODEL = {
    "logreg": config.LR_PARAMS,
    "rf": config.RF_PARAMS,
    "xgb": config.XGB_PARAMS,
}

CATEGORY_BREAKDOWNS = [
    ("Primary Type", 15),
    ("Beat", 20),
    ("Season", 10),
    ("Domestic", 5),
]

NUMERIC_BREAKDOWNS = [
    ("Hour", 24),
    ("Year", 10),
]

GROUP_METRICS = ["District", "Community Area"]


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Train baseline arrest classifiers.")
    p.add_argument("--data", default=config.DATA_PATH, help="Prepped sample CSV.")
    p.add_argument("--models", nargs="+", default=list(MODEL_LABELS),
                   choices=list(MODEL_LABELS))
    p.add_argument("--out-dir", default=config.OUTPUT_DIR)
    p.add_argument("--test-size", type=float, default=config.TEST_SIZE)
    p.add_argument("--random-state", type=int, default=config.RANDOM_STATE)
    p.add_argument("--min-support", type=int, default=50,
                   help="Smallest group kept in the per-district/community metrics.")
    p.add_argument("--no-error-analysis", action="store_true",
                   help="Only fit and benchmark; skip FP/FN breakdowns.")
    return p.parse_args(argv)


def run_error_analysis(results, prefix, label, out_dir, min_support=50):
    FP, FN, _, _ = ea.summarize_error_sets(results, label=label)
    fig_dir = out_dir / "figures"

    # Categorical error breakdowns
    for col, top_n in CATEGORY_BREAKDOWNS:
        df_err = ea.error_rates_by_category(results, col, top_n=top_n, label=label)
        if df_err is not None and not df_err.empty:
            ea.plot_category_error_rates(df_err, col, prefix, fig_dir, top_n=top_n)

    # Numeric: Hour and Year
    for col, bins in NUMERIC_BREAKDOWNS:
        df_err = ea.error_rates_by_numeric(results, col, bins=bins, label=label)
        if df_err is not None and not df_err.empty:
            ea.plot_numeric_error_rates(df_err, col, prefix, fig_dir)

    # Save FP/FN for manual inspection
    FP.to_csv(out_dir / f"{prefix}_false_positives_details.csv", index=False)
    FN.to_csv(out_dir / f"{prefix}_false_negatives_details.csv", index=False)
    print(f"\nSaved {label} FP/FN details to CSV.")

    # Per-area scorecards feed the choropleth maps
    for col in GROUP_METRICS:
        by_group = ea.metrics_by_group(results, col, min_support=min_support)
        if by_group is None:
            continue
        slug = col.lower().replace(" ", "_")
        path = out_dir / f"{prefix}_metrics_by_{slug}.csv"
        by_group.to_csv(path, index=False)
        print(f"Saved: {path}")


def fit_and_report(name, data, out_dir, error_analysis=True, min_support=50,
                   random_state=config.RANDOM_STATE):
    X_train, X_test, y_train, y_test, cat_feats, num_feats = data
    label = MODEL_LABELS[name]

    pipe = build_pipeline(name, cat_feats, num_feats, y_train, random_state=random_state)

    print(f"\nTraining {label}...")
    t0 = time.perf_counter()
    pipe.fit(X_train, y_train)
    t_fit = time.perf_counter() - t0
    print(f"Fit time: {t_fit:.1f}s")

    y_proba = pipe.predict_proba(X_test)[:, 1]
    y_pred = (y_proba >= 0.5).astype(int)

    basic_evaluation(y_test, y_pred, y_proba, label=label)

    print(f"\n=== STRONGEST PREDICTORS ({label}) ===")
    print(top_coefficients(pipe).to_string(index=False))

    if error_analysis:
        results = ea.build_results_df(X_test, y_test, y_pred, y_proba)
        run_error_analysis(results, name, label, out_dir, min_support=min_support)

    return benchmark_model(label, pipe, X_test, y_test, t_fit=t_fit,
                           note=str(PARAMS_BY_MODEL[name]))


def run(df, models=tuple(MODEL_LABELS), out_dir=config.OUTPUT_DIR,
        test_size=config.TEST_SIZE, random_state=config.RANDOM_STATE,
        error_analysis=True, min_support=50):
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    data = build_data(df, test_size=test_size, random_state=random_state)
    X_train, X_test = data[0], data[1]
    print(f"split sizes -> train: {len(X_train):,} | test: {len(X_test):,}")

    rows = [
        fit_and_report(name, data, out_dir, error_analysis=error_analysis,
                       min_support=min_support, random_state=random_state)
        for name in models
    ]

    summary = summary_frame(rows)
    print("\n=== BENCHMARK SUMMARY ===")
    with pd.option_context("display.width", 200):
        print(summary.drop(columns="note").to_string(index=False))

    summary.to_csv(out_dir / "benchmark_summary.csv", index=False)
    print(f"\nSaved benchmark summary to {out_dir / 'benchmark_summary.csv'}.")
    return summary


def main(argv=None):
    args = parse_args(argv)
    print("Loading data...")
    df = load_prepped(args.data)
    return run(
        df,
        models=args.models,
        out_dir=args.out_dir,
        test_size=args.test_size,
        random_state=args.random_state,
        error_analysis=not args.no_error_analysis,
        min_support=args.min_support,
    )


if __name__ == "__main__":
    main()
