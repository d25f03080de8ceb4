import math

import pandas as pd
import pytest

from arrest_report import error_analysis as ea


@pytest.fixture
def results():
    return pd.DataFrame({
        "y_true": [1, 0, 1, 0, 0],
        "y_pred": [1, 1, 0, 0, 1],
        "proba": [0.9, 0.6, 0.3, 0.1, 0.7],
        "District": ["A", "A", "A", "B", "B"],
        "Hour": [1, 1, 2, 2, 2],
        "Year": [2019, 2020, 2021, 2022, 2023],
    })


def test_build_results_df_aligns_features():
    X = pd.DataFrame({"Hour": [5, 6]}, index=[10, 20])
    out = ea.build_results_df(X, [1, 0], [0, 0], [0.4, 0.2])
    assert out.columns.tolist() == ["y_true", "y_pred", "proba", "Hour"]
    assert out["Hour"].tolist() == [5, 6]


def test_split_error_sets(results):
    FP, FN, TP, TN = ea.split_error_sets(results)
    assert (len(FP), len(FN), len(TP), len(TN)) == (2, 1, 1, 1)


def test_error_rates_by_category(results):
    df_err = ea.error_rates_by_category(results, "District")
    assert df_err.loc["A", "total"] == 3
    assert df_err.loc["A", "FP_rate"] == pytest.approx(1 / 3)
    assert df_err.loc["A", "FN_rate"] == pytest.approx(1 / 3)
    assert df_err.loc["B", "FN"] == 0
    assert df_err.loc["B", "FP_rate"] == pytest.approx(0.5)


def test_missing_column_returns_none(results):
    assert ea.error_rates_by_category(results, "Ward") is None
    assert ea.error_rates_by_numeric(results, "Ward") is None
    assert ea.metrics_by_group(results, "Ward") is None


def test_error_rates_by_hour_uses_raw_values(results):
    before = results.columns.tolist()
    df_err = ea.error_rates_by_numeric(results, "Hour")
    assert list(df_err.index) == [1, 2]
    assert df_err.loc[2, "total"] == 3
    assert results.columns.tolist() == before


def test_error_rates_by_numeric_bins(results):
    df_err = ea.error_rates_by_numeric(results, "Year", bins=2)
    assert len(df_err) == 2
    assert df_err["total"].sum() == len(results)


def test_metrics_by_group(results):
    m = ea.metrics_by_group(results, "District").set_index("District")
    assert m.loc["A", "n"] == 3
    assert m.loc["A", "ArrestRate_true"] == pytest.approx(2 / 3)
    assert m.loc["A", "Accuracy"] == pytest.approx(1 / 3)
    assert m.loc["A", "AUC"] == pytest.approx(0.5)
    assert math.isnan(m.loc["B", "AUC"])
    assert m.loc["B", "FP_rate"] == pytest.approx(0.5)

    assert ea.metrics_by_group(results, "District", min_support=3)["District"].tolist() == ["A"]


def test_error_plots_written(results, tmp_path):
    df_err = ea.error_rates_by_category(results, "District", verbose=False)
    paths = ea.plot_category_error_rates(df_err, "District", "rf", tmp_path)
    assert len(paths) == 2 and all(p.exists() for p in paths)

    df_num = ea.error_rates_by_numeric(results, "Hour", verbose=False)
    assert ea.plot_numeric_error_rates(df_num, "Hour", "rf", tmp_path).exists()
