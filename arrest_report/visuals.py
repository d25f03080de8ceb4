#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Visualizations for Chicago crime arrest analysis using prepped sample data.

Assumes you have already created "chicago_crime_sample_prepped.csv"
(python -m arrest_report.prepare) with columns like:
- Arrest, Primary Type, Description, Location Description
- Domestic, Beat, Block, BlockFreq, District, Ward, Community Area
- Year, Month, DayOfWeek, Hour, IsWeekend, (optional) Season

Every plot_* function returns the saved PNG path, or None when the
columns it needs are not in the frame.
"""

import argparse
from pathlib import Path

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from matplotlib.lines import Line2D
import seaborn as sns

from arrest_report import config
from arrest_report.prepare import load_prepped

sns.set(style="whitegrid")

SEASON_COLORS = ["#66b2ff", "#99ff99", "#ffcc66", "#ff9999"]


def _has(df, *columns):
    missing = [c for c in columns if c not in df.columns]
    if missing:
        print(f"Columns {missing} not in data; skipping plot.")
        return False
    return True


def _save(out_dir, filename, show=False, fig=None):
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / filename
    plt.tight_layout()
    plt.savefig(path, dpi=200)
    if show:
        plt.show()
    plt.close(fig if fig is not None else plt.gcf())
    print(f"Saved: {path}")
    return path


def arrest_rate_by(df, column):
    """Mean arrest rate (in %) for each value of `column`."""
    rate = df.groupby(column)[config.TARGET].mean().reset_index()
    rate[config.TARGET] *= 100
    return rate


# ==============================
# 1. Arrest percentage by BEAT
# ==============================
def plot_arrest_rate_by_beat(df, out_dir=config.FIGURE_DIR, show=False):
    if not _has(df, "Beat"):
        return None
    beat_rate_sorted = arrest_rate_by(df, "Beat").sort_values(config.TARGET, ascending=False)

    plt.figure(figsize=(16, 6))
    sns.barplot(data=beat_rate_sorted, x="Beat", y=config.TARGET,
                order=beat_rate_sorted["Beat"])
    plt.xticks(rotation=90)
    plt.title("Arrest Percentage by Beat")
    plt.ylabel("Arrest Rate (%)")
    plt.xlabel("Beat")
    return _save(out_dir, "arrest_rate_by_beat.png", show)


# ======================================
# 2. Top busiest Blocks by arrest %
# ======================================
def block_stats(df, min_count=200, top_n=20):
    stats = (
        df.groupby("Block")
          .agg(
              arrest_rate=(config.TARGET, "mean"),
              count=(config.TARGET, "size")
          )
          .sort_values("count", ascending=False)
    )
    # Only consider blocks with enough observations
    top_blocks = stats[stats["count"] > min_count].head(top_n).copy()
    top_blocks["arrest_rate"] *= 100
    return top_blocks


def plot_top_blocks(df, out_dir=config.FIGURE_DIR, show=False, min_count=200, top_n=20):
    if not _has(df, "Block"):
        return None
    top_blocks = block_stats(df, min_count=min_count, top_n=top_n)
    if top_blocks.empty:
        print(f"No block has more than {min_count} incidents; skipping plot.")
        return None

    plt.figure(figsize=(10, 6))
    sns.barplot(y=top_blocks.index, x=top_blocks["arrest_rate"])
    plt.title(f"Top {len(top_blocks)} Busiest Blocks: Arrest Percentage")
    plt.xlabel("Arrest Rate (%)")
    plt.ylabel("Block")
    return _save(out_dir, "top_blocks_arrest_rate.png", show)


# ===============================================
# 3. Heatmap: Arrest probability by Hour x DOW
# ===============================================
def plot_hour_dow_heatmap(df, out_dir=config.FIGURE_DIR, show=False):
    if not _has(df, "Hour", "DayOfWeek"):
        return None
    pivot = df.pivot_table(
        index="DayOfWeek",
        columns="Hour",
        values=config.TARGET,
        aggfunc="mean"
    )

    plt.figure(figsize=(14, 6))
    sns.heatmap(pivot, cmap="rocket", annot=False)
    plt.title("Arrest Probability by Hour and Day of Week")
    plt.xlabel("Hour of Day")
    plt.ylabel("Day of Week (0 = Monday)")
    return _save(out_dir, "heatmap_hour_dayofweek_arrest.png", show)


# ====================================
# 4. Arrest rate by Primary Crime Type
# ====================================
def plot_arrest_rate_by_primary_type(df, out_dir=config.FIGURE_DIR, show=False):
    if not _has(df, "Primary Type"):
        return None
    crime_rate = arrest_rate_by(df, "Primary Type").sort_values(config.TARGET, ascending=False)

    plt.figure(figsize=(12, 10))
    sns.barplot(data=crime_rate, y="Primary Type", x=config.TARGET)
    plt.title("Arrest Rate by Primary Crime Type")
    plt.xlabel("Arrest Rate (%)")
    plt.ylabel("Primary Crime Type")
    return _save(out_dir, "arrest_rate_by_primary_type.png", show)


# =====================================================
# 5. Relationship between Block Frequency & Arrest Rate
#    (binned BlockFreq -> average arrest rate by bin)
# =====================================================
def plot_arrest_rate_vs_blockfreq(df, out_dir=config.FIGURE_DIR, show=False, q=20):
    if not _has(df, "BlockFreq"):
        return None
    df2 = df[[config.TARGET, "BlockFreq"]].copy()
    df2["BlockFreqLog"] = np.log1p(df2["BlockFreq"])

    try:
        freq_bins = pd.qcut(df2["BlockFreqLog"], q=q, duplicates="drop")
    except ValueError:
        freq_bins = None
    if freq_bins is None or freq_bins.cat.categories.size < 2:
        print("Not enough variation in BlockFreq to create quantile bins.")
        return None
    freq_rate = df2.groupby(freq_bins, observed=True)[config.TARGET].mean().reset_index()
    freq_rate[config.TARGET] *= 100
    freq_rate["bin"] = freq_rate["BlockFreqLog"].astype(str)

    plt.figure(figsize=(12, 6))
    sns.lineplot(x="bin", y=config.TARGET, data=freq_rate, marker="o", sort=False)
    plt.xticks(rotation=90)
    plt.title("Arrest Rate vs Block Crime Frequency (Log-Binned)")
    plt.xlabel("Block Frequency Bin (log-scaled, quantiles)")
    plt.ylabel("Arrest Rate (%)")
    return _save(out_dir, "arrest_rate_vs_blockfreq.png", show)


def _line_by(df, column, title, xlabel, filename, out_dir, show, xticks=None):
    if not _has(df, column):
        return None
    rate = arrest_rate_by(df, column)

    plt.figure(figsize=(10, 5))
    sns.lineplot(data=rate, x=column, y=config.TARGET, marker="o")
    if xticks is not None:
        plt.xticks(xticks)
    plt.title(title)
    plt.xlabel(xlabel)
    plt.ylabel("Arrest Rate (%)")
    return _save(out_dir, filename, show)


# =========================================
# 6. Arrests by Time of Day (overall Hour)
# =========================================
def plot_arrest_rate_by_hour(df, out_dir=config.FIGURE_DIR, show=False):
    return _line_by(df, "Hour", "Arrest Rate by Hour of Day", "Hour of Day (0-23)",
                    "arrest_rate_by_hour.png", out_dir, show, xticks=range(0, 24))


# =========================================
# 7. Arrest patterns through the years
# =========================================
def plot_arrest_rate_by_year(df, out_dir=config.FIGURE_DIR, show=False):
    return _line_by(df, "Year", "Arrest Rate Over the Years", "Year",
                    "arrest_rate_by_year.png", out_dir, show)


# ==========================================================
# 8. "Map" of Beats: Beat vs Arrest Percentage (scatter-style)
#    (Not geographic, just beat-level variation.)
# ==========================================================
def plot_beat_scatter(df, out_dir=config.FIGURE_DIR, show=False):
    if not _has(df, "Beat"):
        return None
    beat_rate = arrest_rate_by(df, "Beat")

    beat_num = pd.to_numeric(beat_rate["Beat"], errors="coerce")
    if beat_num.notna().all():
        beat_rate_sorted = beat_rate.assign(BeatNum=beat_num).sort_values("BeatNum")
    else:
        beat_rate_sorted = beat_rate.sort_values("Beat", key=lambda s: s.astype(str))

    plt.figure(figsize=(14, 6))
    plt.scatter(
        x=beat_rate_sorted["Beat"].astype(str),
        y=beat_rate_sorted[config.TARGET]
    )
    plt.xticks(rotation=90)
    plt.title("Beat vs Arrest Percentage")
    plt.xlabel("Beat")
    plt.ylabel("Arrest Rate (%)")
    return _save(out_dir, "beat_vs_arrest_percentage_scatter.png", show)


# =============================================
# 9. Arrest Rate by Season
# =============================================
def plot_arrest_rate_by_season(df, out_dir=config.FIGURE_DIR, show=False):
    if not _has(df, "Season"):
        return None
    season_rate = arrest_rate_by(df, "Season")

    # Logical order for whichever seasons are present
    present = [s for s in config.SEASON_ORDER if s in set(season_rate["Season"])]
    season_rate = season_rate.set_index("Season").reindex(present).reset_index()

    plt.figure(figsize=(8, 5))
    sns.barplot(
        data=season_rate,
        x="Season",
        y=config.TARGET,
        hue="Season",
        palette=SEASON_COLORS[: len(season_rate)],
        legend=False,
    )
    plt.title("Arrest Rate by Season")
    plt.xlabel("Season")
    plt.ylabel("Arrest Rate (%)")
    return _save(out_dir, "arrest_rate_by_season.png", show)


# =============================================
# 10. Arrest Rate by Month (Seasonality Cycle)
# =============================================
def plot_arrest_rate_by_month(df, out_dir=config.FIGURE_DIR, show=False):
    return _line_by(df, "Month", "Arrest Rate by Month", "Month",
                    "arrest_rate_by_month.png", out_dir, show, xticks=range(1, 13))


# ===================================================
# 11. Time-of-day intensity: counts + arrest rate
# ===================================================
def hour_intensity(df):
    hour_stats = (
        df.groupby("Hour")[config.TARGET]
          .agg(count="size", arrests="sum")
          .reset_index()
    )
    hour_stats["arrest_rate"] = 100 * hour_stats["arrests"] / hour_stats["count"]
    return hour_stats


def plot_intensity_by_hour(df, out_dir=config.FIGURE_DIR, show=False):
    if not _has(df, "Hour"):
        return None
    hour_stats = hour_intensity(df)
    avg_rate_percent = 100 * df[config.TARGET].mean()

    fig, ax1 = plt.subplots(figsize=(10, 5))

    bar_color = "#4A90E2"
    line_color = "#D0021B"

    # Bars: seaborn draws a categorical axis, so the line goes on positions too
    sns.barplot(data=hour_stats, x="Hour", y="count", ax=ax1,
                color=bar_color, alpha=0.75)
    ax1.set_xlabel("Hour of Day (0-23)")
    ax1.set_ylabel("Number of Incidents", color=bar_color)
    ax1.tick_params(axis="y", labelcolor=bar_color)

    ax2 = ax1.twinx()
    ax2.plot(range(len(hour_stats)), hour_stats["arrest_rate"], marker="o",
             linewidth=2, markersize=7, color=line_color)
    ax2.set_ylabel("Arrest Rate (%)", color=line_color)
    ax2.tick_params(axis="y", labelcolor=line_color)
    ax2.axhline(avg_rate_percent, color="gray", linestyle="--", linewidth=1.5)

    legend_elements = [
        Line2D([0], [0], color=bar_color, lw=10, label="Incident Count (bars)"),
        Line2D([0], [0], color=line_color, lw=2, marker="o", label="Arrest Rate (line)"),
        Line2D([0], [0], color="gray", linestyle="--", lw=2,
               label=f"Overall Avg Arrest Rate ({avg_rate_percent:.1f}%)"),
    ]
    ax1.legend(handles=legend_elements, loc="lower right")

    plt.title("Crime Intensity and Arrest Rate by Hour of Day")
    return _save(out_dir, "intensity_and_arrest_rate_by_hour.png", show, fig=fig)


# ===================================================
# 12. Arrest Rate by Day of Week
# ===================================================
def plot_arrest_rate_by_dayofweek(df, out_dir=config.FIGURE_DIR, show=False):
    if not _has(df, "DayOfWeek"):
        return None
    dow_rate = arrest_rate_by(df, "DayOfWeek")

    plt.figure(figsize=(8, 5))
    sns.barplot(data=dow_rate, x="DayOfWeek", y=config.TARGET)
    plt.title("Arrest Rate by Day of Week (0 = Monday)")
    plt.xlabel("Day of Week")
    plt.ylabel("Arrest Rate (%)")
    return _save(out_dir, "arrest_rate_by_dayofweek.png", show)


# ===================================================
# 13. Hour-of-day patterns: Weekend vs Weekday
# ===================================================
def plot_hour_weekend_split(df, out_dir=config.FIGURE_DIR, show=False):
    if not _has(df, "Hour", "IsWeekend"):
        return None
    hour_weekend = (
        df.groupby(["Hour", "IsWeekend"])[config.TARGET]
          .mean()
          .reset_index()
    )
    hour_weekend[config.TARGET] *= 100
    hour_weekend["DayType"] = hour_weekend["IsWeekend"].map({0: "Weekday", 1: "Weekend"})

    plt.figure(figsize=(10, 5))
    sns.lineplot(data=hour_weekend, x="Hour", y=config.TARGET,
                 hue="DayType", marker="o")
    plt.xticks(range(0, 24))
    plt.title("Arrest Rate by Hour: Weekday vs Weekend")
    plt.xlabel("Hour of Day (0-23)")
    plt.ylabel("Arrest Rate (%)")
    plt.legend(title="")
    return _save(out_dir, "arrest_rate_by_hour_weekend_split.png", show)


ALL_PLOTS = [
    plot_arrest_rate_by_beat,
    plot_top_blocks,
    plot_hour_dow_heatmap,
    plot_arrest_rate_by_primary_type,
    plot_arrest_rate_vs_blockfreq,
    plot_arrest_rate_by_hour,
    plot_arrest_rate_by_year,
    plot_beat_scatter,
    plot_arrest_rate_by_season,
    plot_arrest_rate_by_month,
    plot_intensity_by_hour,
    plot_arrest_rate_by_dayofweek,
    plot_hour_weekend_split,
]


def generate_all(df, out_dir=config.FIGURE_DIR, show=False):
    saved = []
    for plot in ALL_PLOTS:
        path = plot(df, out_dir=out_dir, show=show)
        if path is not None:
            saved.append(path)
    return saved


def parse_args():
    p = argparse.ArgumentParser(description="EDA charts for the arrest report.")
    p.add_argument("--data", default=config.DATA_PATH, help="Prepped sample CSV.")
    p.add_argument("--out-dir", default=config.FIGURE_DIR)
    p.add_argument("--show", action="store_true", help="Also display each figure.")
    return p.parse_args()


def main():
    args = parse_args()
    print("Loading data...")
    df = load_prepped(args.data)
    saved = generate_all(df, args.out_dir, show=args.show)
    print(f"\nWrote {len(saved)} figures to {args.out_dir}")


if __name__ == "__main__":
    main()
