import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from arrest_report import maps


def _geojson():
    def feature(area, name):
        return {
            "type": "Feature",
            "properties": {"area_numbe": str(area), "community": name},
            "geometry": {
                "type": "Polygon",
                "coordinates": [[[-87.7 + area * 0.01, 41.8], [-87.69 + area * 0.01, 41.8],
                                 [-87.69 + area * 0.01, 41.81], [-87.7 + area * 0.01, 41.8]]],
            },
        }
    return {"type": "FeatureCollection",
            "features": [feature(1, "ROGERS PARK"), feature(2, "WEST RIDGE"), feature(3, "UPTOWN")]}


def test_accuracy_color_ramp():
    assert maps.accuracy_color(None) == "#dddddd"
    assert maps.accuracy_color(float("nan")) == "#dddddd"
    assert maps.accuracy_color(0.4) == "#2171b5"
    # values are clamped to the ramp
    assert maps.accuracy_color(0.1) == maps.accuracy_color(0.4)
    assert maps.accuracy_color(1.0) == maps.accuracy_color(0.9)


def test_annotate_geojson_respects_support():
    gj, key = maps.annotate_geojson(_geojson(), {1: (0.8, 500), 2: (0.6, 10)}, min_support=200)
    assert key == "area_numbe"
    props = [f["properties"] for f in gj["features"]]
    assert props[0]["acc_plot"] == 0.8
    assert props[1]["accuracy"] == 0.6 and props[1]["acc_plot"] is None
    assert props[2]["n"] == 0 and props[2]["accuracy"] is None


def test_annotate_geojson_does_not_touch_input():
    src = _geojson()
    maps.annotate_geojson(src, {1: (0.8, 500)})
    assert "accuracy" not in src["features"][0]["properties"]


def test_find_area_key_missing():
    gj = {"features": [{"properties": {"name": "x"}}]}
    with pytest.raises(ValueError):
        maps.find_area_key(gj)


def test_acc_lookup_skips_non_numeric_areas():
    metrics = pd.DataFrame({
        "Community Area": ["1", "2.0", "nan"],
        "n": [300, 40, 5],
        "Accuracy": [0.8, 0.7, 0.5],
    })
    assert maps.acc_lookup(metrics) == {1: (0.8, 300), 2: (0.7, 40)}


def test_accuracy_map_writes_html(tmp_path):
    out = maps.accuracy_map(_geojson(), {1: (0.8, 500)}, tmp_path / "map.html")
    html = (tmp_path / "map.html").read_text()
    assert out == tmp_path / "map.html"
    assert "ROGERS PARK" in html


@pytest.fixture
def districts():
    return gpd.GeoDataFrame(
        {"DIST_NUM": ["1", "2", "3"]},
        geometry=[box(0, 0, 1, 1), box(1, 0, 2, 1), box(2, 0, 3, 1)],
    )


def test_join_metrics_on_numeric_ids(districts):
    metrics = pd.DataFrame({"District": [1.0, 2.0, 9.0], "FP_rate": [0.1, 0.2, 0.3]})
    merged = maps.join_metrics(districts, metrics, "DIST_NUM", "District")
    assert len(merged) == 2
    assert sorted(merged["FP_rate"]) == [0.1, 0.2]
    assert isinstance(merged, gpd.GeoDataFrame)


def test_plot_metric_maps(districts, tmp_path):
    metrics = pd.DataFrame({
        "District": [1, 2, 3],
        "ArrestRate_true": [0.2, 0.3, 0.25],
        "AUC": [0.7, 0.8, 0.75],
        "FP_rate": [0.1, 0.2, 0.15],
        "FN_rate": [0.05, 0.1, 0.2],
    })
    saved = maps.plot_metric_maps(districts, metrics, "DIST_NUM", "District", "rf",
                                  maps.DISTRICT_PANELS, tmp_path)
    assert len(saved) == 4
    assert all(p.exists() for p in saved)
    assert (tmp_path / "rf_auc_by_district.png").exists()
