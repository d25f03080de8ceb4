#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Load per-area model metrics (written by arrest_report.train) and plot
district + community-area choropleth maps, plus an interactive folium
accuracy map for community areas.
"""

import argparse
import copy
import json
import math
from pathlib import Path

import pandas as pd
import geopandas as gpd
import matplotlib.pyplot as plt
import folium
from folium.features import GeoJson, GeoJsonTooltip

from arrest_report import config

gpd.options.io_engine = "pyogrio"

# Column names in the city boundary files
DISTRICT_ID_COL = "DIST_NUM"
COMMUNITY_ID_COL = "AREA_NUMBE"

COMMUNITY_KEY_CANDIDATES = ["area_numbe", "area_num_1", "area_num",
                            "AREA_NUMBE", "AREA_NUM_1", "AREA_NUM"]

CHICAGO_CENTER = [41.8781, -87.6298]

# (metric column, title piece, colormap)
DISTRICT_PANELS = [
    ("ArrestRate_true", "True Arrest Rate", "OrRd"),
    ("AUC", "AUC", "viridis"),
    ("FP_rate", "False Positive Rate", "Purples"),
    ("FN_rate", "False Negative Rate", "Blues"),
]
COMMUNITY_PANELS = [p for p in DISTRICT_PANELS if p[0] != "AUC"]


# -----------------------------
# Static maps (geopandas)
# -----------------------------

def join_metrics(gdf, metrics, shape_key, metrics_key):
    """Inner-join a boundary frame with a metrics-by-group frame on integer ids."""
    gdf = gdf.copy()
    metrics = metrics.copy()
    gdf["_join"] = pd.to_numeric(gdf[shape_key], errors="coerce")
    metrics["_join"] = pd.to_numeric(metrics[metrics_key], errors="coerce")
    merged = gdf.merge(metrics.dropna(subset=["_join"]), on="_join", how="inner")
    return merged.drop(columns="_join")


def plot_choropleth(gdf, column, title, cmap="OrRd", out_path=None,
                    vmin=None, vmax=None, show=False):
    fig, ax = plt.subplots(1, 1, figsize=(8, 8))
    gdf.plot(
        column=column,
        cmap=cmap,
        legend=True,
        linewidth=0.5,
        edgecolor="black",
        ax=ax,
        vmin=vmin,
        vmax=vmax,
    )
    ax.set_title(title)
    ax.axis("off")
    plt.tight_layout()
    if out_path is not None:
        Path(out_path).parent.mkdir(parents=True, exist_ok=True)
        plt.savefig(out_path, dpi=200)
        print(f"Saved: {out_path}")
    if show:
        plt.show()
    plt.close(fig)
    return out_path


def plot_metric_maps(gdf, metrics, shape_key, metrics_key, prefix, panels, out_dir):
    merged = join_metrics(gdf, metrics, shape_key, metrics_key)
    if merged.empty:
        print(f"No {metrics_key} ids matched the boundary file; skipping maps.")
        return []

    slug = metrics_key.lower().replace(" ", "_")
    saved = []
    for column, title, cmap in panels:
        if column not in merged.columns:
            continue
        out_path = Path(out_dir) / f"{prefix}_{column.lower()}_by_{slug}.png"
        plot_choropleth(merged, column, f"{prefix.upper()}: {title} by {metrics_key}",
                        cmap=cmap, out_path=out_path)
        saved.append(out_path)
    return saved


# -----------------------------
# Interactive map (folium)
# -----------------------------

def accuracy_color(acc, lo=0.4, hi=0.9):
    """Blue (low) to red (high) hex ramp; grey for missing values."""
    if acc is None or (isinstance(acc, float) and math.isnan(acc)):
        return "#dddddd"
    t = (max(lo, min(hi, float(acc))) - lo) / (hi - lo + 1e-9)
    c0, c1 = (33, 113, 181), (215, 25, 28)
    r = int(c0[0] + t * (c1[0] - c0[0]))
    g = int(c0[1] + t * (c1[1] - c0[1]))
    b = int(c0[2] + t * (c1[2] - c0[2]))
    return f"#{r:02x}{g:02x}{b:02x}"


def find_area_key(geojson):
    for feat in geojson.get("features", []):
        props = feat.get("properties") or {}
        key = next((k for k in COMMUNITY_KEY_CANDIDATES if k in props), None)
        if key:
            return key
    sample = (geojson.get("features") or [{}])[0].get("properties") or {}
    raise ValueError(
        f"no community-area id key found in GeoJSON; saw keys like: {list(sample)[:12]}"
    )


def annotate_geojson(geojson, acc_by_area, min_support=200):
    """
    Copy of `geojson` with accuracy / n / acc_plot on every feature.

    acc_by_area maps community area number -> (accuracy, n). Areas with
    fewer than min_support test rows keep acc_plot=None so they render grey.
    """
    gj = copy.deepcopy(geojson)
    key = find_area_key(gj)

    for feat in gj.get("features", []):
        props = feat.setdefault("properties", {})
        raw = props.get(key)
        try:
            ca = int(float(raw))
        except (TypeError, ValueError):
            ca = None

        if ca is not None and ca in acc_by_area:
            acc, n = acc_by_area[ca]
            props["accuracy"] = acc
            props["n"] = n
            props["acc_plot"] = acc if n >= min_support else None
        else:
            props["accuracy"] = None
            props["n"] = 0
            props["acc_plot"] = None

    return gj, key


def acc_lookup(metrics, area_col="Community Area"):
    """(accuracy, n) per community area from a metrics_by_group frame."""
    table = metrics.assign(_area=pd.to_numeric(metrics[area_col], errors="coerce"))
    table = table.dropna(subset=["_area"])
    return {
        int(a): (float(acc), int(n))
        for a, acc, n in zip(table["_area"], table["Accuracy"], table["n"])
    }


def accuracy_map(geojson, acc_by_area, out_html, min_support=200):
    gj, key = annotate_geojson(geojson, acc_by_area, min_support=min_support)

    m = folium.Map(location=CHICAGO_CENTER, zoom_start=10, tiles="cartodbpositron")

    def _style_fn(feat):
        acc = feat["properties"].get("acc_plot")
        return {
            "fillColor": accuracy_color(acc),
            "color": "#202020",
            "weight": 0.5,
            "fillOpacity": 0.75 if acc is not None else 0.3,
        }

    sample_props = gj["features"][0].get("properties", {}) if gj.get("features") else {}
    tooltip_fields = [key, "accuracy", "n"]
    aliases = ["Area #", "Accuracy", "Test N"]
    if "community" in sample_props:
        tooltip_fields = [key, "community", "accuracy", "n"]
        aliases = ["Area #", "Community", "Accuracy", "Test N"]
    tooltip = GeoJsonTooltip(fields=tooltip_fields, aliases=aliases, localize=True, sticky=False)

    GeoJson(gj, style_function=_style_fn, tooltip=tooltip, name="Model accuracy (test)").add_to(m)
    folium.LayerControl(collapsed=True).add_to(m)

    Path(out_html).parent.mkdir(parents=True, exist_ok=True)
    m.save(str(out_html))
    print(f"saved map -> {out_html}")
    print(f"areas with fewer than {min_support} test rows are left gray")
    return out_html


def parse_args():
    p = argparse.ArgumentParser(description="Choropleth maps of per-area model metrics.")
    p.add_argument("--metrics-dir", default=config.OUTPUT_DIR,
                   help="Folder holding <model>_metrics_by_*.csv files.")
    p.add_argument("--models", nargs="+", default=["rf", "xgb"])
    p.add_argument("--districts", default="Boundaries-Police-Districts.shp")
    p.add_argument("--communities", default="Boundaries-Community-Areas.shp")
    p.add_argument("--geojson", default="",
                   help="Community-area GeoJSON for the interactive accuracy map.")
    p.add_argument("--min-support", type=int, default=200)
    p.add_argument("--out-dir", default=str(Path(config.OUTPUT_DIR) / "maps"))
    return p.parse_args()


def main():
    args = parse_args()
    metrics_dir = Path(args.metrics_dir)

    districts_gdf = gpd.read_file(args.districts)
    community_gdf = gpd.read_file(args.communities)

    for prefix in args.models:
        dist_csv = metrics_dir / f"{prefix}_metrics_by_district.csv"
        ca_csv = metrics_dir / f"{prefix}_metrics_by_community_area.csv"
        if not dist_csv.exists() or not ca_csv.exists():
            raise FileNotFoundError(
                f"Missing metrics for '{prefix}' in {metrics_dir}. "
                f"Run python -m arrest_report.train first."
            )
        dist = pd.read_csv(dist_csv)
        ca = pd.read_csv(ca_csv)

        plot_metric_maps(districts_gdf, dist, DISTRICT_ID_COL, "District",
                         prefix, DISTRICT_PANELS, args.out_dir)
        plot_metric_maps(community_gdf, ca, COMMUNITY_ID_COL, "Community Area",
                         prefix, COMMUNITY_PANELS, args.out_dir)

        if args.geojson:
            geojson = json.loads(Path(args.geojson).read_text())
            accuracy_map(geojson, acc_lookup(ca),
                         Path(args.out_dir) / f"{prefix}_accuracy_map.html",
                         min_support=args.min_support)


if __name__ == "__main__":
    main()
