#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Error analysis for a fitted arrest classifier: where do the false
positives and false negatives concentrate?
"""

from pathlib import Path

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns

from sklearn.metrics import roc_auc_score


def build_results_df(X_test, y_test, y_pred, y_proba):
    """Combine test labels, predictions, probabilities, and features."""
    results = pd.DataFrame({
        "y_true": np.asarray(y_test),
        "y_pred": np.asarray(y_pred),
        "proba": np.asarray(y_proba),
    })

    features = X_test.reset_index(drop=True)
    return pd.concat([results, features], axis=1)


def split_error_sets(results):
    FP = results[(results.y_pred == 1) & (results.y_true == 0)]
    FN = results[(results.y_pred == 0) & (results.y_true == 1)]
    TP = results[(results.y_pred == 1) & (results.y_true == 1)]
    TN = results[(results.y_pred == 0) & (results.y_true == 0)]
    return FP, FN, TP, TN


def summarize_error_sets(results, label="model"):
    FP, FN, TP, TN = split_error_sets(results)

    print(f"\n=== ERROR SET SIZES ({label}) ===")
    print(f"False Positives (FP): {len(FP)}")
    print(f"False Negatives (FN): {len(FN)}")
    print(f"True Positives (TP):  {len(TP)}")
    print(f"True Negatives (TN):  {len(TN)}")

    return FP, FN, TP, TN


def _error_table(results, key):
    FP, FN, _, _ = split_error_sets(results)

    counts = results.groupby(key, observed=True).size().rename("total")
    fp_counts = FP.groupby(key, observed=True).size().rename("FP")
    fn_counts = FN.groupby(key, observed=True).size().rename("FN")

    df_err = pd.concat([counts, fp_counts, fn_counts], axis=1).fillna(0)
    df_err[["FP", "FN"]] = df_err[["FP", "FN"]].astype(int)
    df_err["FP_rate"] = df_err["FP"] / df_err["total"]
    df_err["FN_rate"] = df_err["FN"] / df_err["total"]
    return df_err


def error_rates_by_category(results, column, top_n=15, label="model", verbose=True):
    if column not in results.columns:
        print(f"\nColumn '{column}' not in results; skipping.")
        return None

    df_err = _error_table(results, results[column])
    df_err.index.name = column

    if verbose:
        print(f"\n=== ERROR RATES BY {column.upper()} ({label}) ===")
        print("\nTop categories by FN_rate:")
        print(df_err.sort_values("FN_rate", ascending=False).head(top_n))
        print("\nTop categories by FP_rate:")
        print(df_err.sort_values("FP_rate", ascending=False).head(top_n))

    return df_err


def error_rates_by_numeric(results, column, bins=10, label="model", verbose=True):
    """Error rates across bins of a numeric feature; Hour keeps its raw values."""
    if column not in results.columns:
        print(f"\nColumn '{column}' not in results; skipping.")
        return None

    if column == "Hour":
        bin_key = results["Hour"]
    else:
        try:
            bin_key = pd.qcut(results[column], q=bins, duplicates="drop")
        except ValueError as e:
            print(f"Could not bin {column}: {e}")
            return None

    df_err = _error_table(results, bin_key.rename(column))

    if verbose:
        print(f"\n=== ERROR RATES ACROSS {column} BINS ({label}) ===")
        print(df_err)

    return df_err


def metrics_by_group(results, column, min_support=1):
    """
    Per-group scorecard used for the district / community-area maps.

    AUC is NaN for groups where the true label has a single class.
    """
    if column not in results.columns:
        print(f"\nColumn '{column}' not in results; skipping.")
        return None

    rows = []
    for key, grp in results.groupby(column):
        n = len(grp)
        if n < min_support:
            continue
        fp = int(((grp.y_pred == 1) & (grp.y_true == 0)).sum())
        fn = int(((grp.y_pred == 0) & (grp.y_true == 1)).sum())
        if grp.y_true.nunique() == 2:
            auc = roc_auc_score(grp.y_true, grp.proba)
        else:
            auc = float("nan")
        rows.append({
            column: key,
            "n": n,
            "ArrestRate_true": grp.y_true.mean(),
            "ArrestRate_pred": grp.y_pred.mean(),
            "Accuracy": (grp.y_true == grp.y_pred).mean(),
            "AUC": auc,
            "FP_rate": fp / n,
            "FN_rate": fn / n,
        })

    return pd.DataFrame(rows, columns=[
        column, "n", "ArrestRate_true", "ArrestRate_pred",
        "Accuracy", "AUC", "FP_rate", "FN_rate",
    ])


def plot_category_error_rates(df_err, column, label, out_dir, top_n=15):
    """Bar charts of the top FN and FP rates for a categorical breakdown."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    saved = []
    slug = column.lower().replace(" ", "_")

    for rate, name in [("FN_rate", "False Negative"), ("FP_rate", "False Positive")]:
        top = df_err.sort_values(rate, ascending=False).head(top_n).reset_index()
        top[column] = top[column].astype(str)

        plt.figure(figsize=(10, 6))
        sns.barplot(data=top, x=rate, y=column)
        plt.title(f"{name} Rate by {column} ({label})")
        plt.xlabel(rate.replace("_", " "))
        plt.ylabel(column)
        plt.tight_layout()
        path = out_dir / f"{label.lower()}_{rate.lower()}_by_{slug}.png"
        plt.savefig(path, dpi=200)
        plt.close()
        saved.append(path)
    return saved


def plot_numeric_error_rates(df_err, column, label, out_dir):
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    df_plot = df_err.reset_index()
    x = df_plot[column].astype(str)

    plt.figure(figsize=(10, 5))
    plt.plot(x, df_plot["FN_rate"], marker="o", label="FN_rate")
    plt.plot(x, df_plot["FP_rate"], marker="o", label="FP_rate")
    plt.xticks(rotation=45)
    plt.title(f"FP/FN Rates Across {column} Bins ({label})")
    plt.xlabel(column)
    plt.ylabel("Error Rate")
    plt.legend()
    plt.tight_layout()
    path = out_dir / f"{label.lower()}_error_rates_by_{column.lower().replace(' ', '_')}.png"
    plt.savefig(path, dpi=200)
    plt.close()
    return path
