import json
import shutil

import pandas as pd
import pytest

pyspark = pytest.importorskip("pyspark")

if shutil.which("java") is None:
    pytest.skip("Spark tests need a Java runtime", allow_module_level=True)

from pyspark.sql import SparkSession

from arrest_report import spark_convert, spark_lr


@pytest.fixture(scope="module")
def spark():
    session = (
        SparkSession.builder
        .master("local[1]")
        .appName("arrest-report-tests")
        .config("spark.sql.shuffle.partitions", "2")
        .config("spark.ui.enabled", "false")
        .config("spark.sql.ansi.enabled", "false")
        .config("spark.sql.legacy.timeParserPolicy", "CORRECTED")
        .getOrCreate()
    )
    yield session
    session.stop()


@pytest.fixture
def crimes_sdf(spark):
    rows = [
        ("01/02/2021 10:30:00 PM", "NARCOTICS", "STREET", "true", "false", "8"),
        ("2021-07-14 08:00:00", "THEFT", "RESIDENCE", "false", "TRUE", "8"),
        ("07/15/2021 09:00", "THEFT", "STREET", "maybe", "false", "9"),
        ("garbage", "BATTERY", "ALLEY", "true", "false", "9"),
        ("07/16/2021 11:00:00 AM", "BATTERY", "ALLEY", "0", "n", None),
    ]
    return spark.createDataFrame(
        rows, ["Date", "Primary Type", "Location Description", "Arrest", "Domestic", "Community Area"]
    )


def test_select_columns_case_insensitive(crimes_sdf):
    out = spark_convert.select_columns(crimes_sdf)
    assert out.columns == ["Date", "Primary Type", "Location Description", "Arrest",
                           "Domestic", "Community Area"]

    only = spark_convert.select_columns(crimes_sdf, usecols=["arrest"])
    assert only.columns == ["Arrest"]


def test_normalize_columns_renames(crimes_sdf):
    df = spark_lr.normalize_columns(crimes_sdf)
    assert set(df.columns) == {"date", "primary_type", "location_description",
                               "arrest", "domestic", "community_area"}


def test_normalize_columns_requires_known_columns(spark):
    df = spark.createDataFrame([(1,)], ["foo"])
    with pytest.raises(RuntimeError):
        spark_lr.normalize_columns(df)


def test_label_and_time_features(crimes_sdf):
    df = spark_lr.add_label_and_features(spark_lr.normalize_columns(crimes_sdf))
    rows = {r.primary_type + r.date[:2]: r for r in df.collect()}

    # unknown label and unparseable date are dropped
    assert len(rows) == 3
    first = rows["NARCOTICS01"]
    assert first.label == 1.0
    assert first.DomesticNum == 0.0
    assert first.Hour == 22.0
    assert first.IsWeekend == 1.0      # Saturday
    assert rows["THEFT20"].DomesticNum == 1.0
    assert rows["BATTERY07"].label == 0.0


def test_basic_evaluation_spark(spark):
    pred = spark.createDataFrame(
        [(1.0, 1.0), (1.0, 0.0), (0.0, 0.0), (0.0, 0.0)], ["label", "prediction"]
    )
    out = spark_lr.basic_evaluation_spark(pred)
    assert (out["tp"], out["fn"], out["tn"], out["fp"]) == (1, 1, 2, 0)
    assert out["accuracy"] == pytest.approx(0.75)
    assert out["precision"] == pytest.approx(1.0)


def test_curves_need_both_classes(spark):
    pred = spark.createDataFrame([(0.2, 1.0), (0.9, 1.0)], ["score", "label"])
    assert spark_lr.score_curves(pred) == (None, None)


def test_curves_are_cumulative(spark, tmp_path):
    pred = spark.createDataFrame(
        [(0.9, 1.0), (0.7, 0.0), (0.2, 1.0), (0.1, 0.0)], ["score", "label"]
    )
    roc, pr = spark_lr.score_curves(pred, steps=10, out_dir=str(tmp_path / "curves"))

    assert roc["tpr"].tolist() == [0.5, 0.5, 1.0, 1.0]
    assert roc["fpr"].tolist() == [0.0, 0.5, 0.5, 1.0]
    assert pr["precision"].iloc[0] == pytest.approx(1.0)
    assert (tmp_path / "curves" / "roc_curve.csv").exists()
    assert (tmp_path / "curves" / "pr_curve.csv").exists()


def test_community_area_hashes_as_text(spark):
    df = spark.createDataFrame(
        [("01/02/2021 10:30:00 PM", "true", "8"), ("01/03/2021 10:30:00 PM", "false", "8.0"),
         ("01/04/2021 10:30:00 PM", "false", None)],
        ["date", "arrest", "community_area"],
    )
    out = spark_lr.add_label_and_features(df)
    assert dict(out.dtypes)["community_area"] == "string"
    assert [r.community_area for r in out.collect()] == ["8", "8", None]


def test_downsample_negatives_keeps_all_positives(spark):
    df = spark.createDataFrame([(float(i % 2),) for i in range(200)], ["label"])
    assert spark_lr.downsample_negatives(df, 1.0, 2) is df

    out = spark_lr.downsample_negatives(df, 0.2, 2)
    assert out.filter("label=1").count() == 100
    assert out.filter("label=0").count() < 60


def test_accuracy_by_area_drops_non_numeric_codes(spark):
    pred = spark.createDataFrame(
        [(1.0, 1.0, "3"), (0.0, 1.0, "3"), (1.0, 1.0, "5"), (0.0, 0.0, "__NA__")],
        ["label", "prediction", "community_area"],
    )
    acc = spark_lr.accuracy_by_area(pred)
    assert acc["community_area"].tolist() == [3, 5]
    assert acc["accuracy"].tolist() == [0.5, 1.0]
    assert acc["n"].tolist() == [2, 1]


def _crime_rows(n=240):
    types = ["NARCOTICS", "THEFT", "BATTERY", "WEAPONS VIOLATION"]
    rows = []
    for i in range(n):
        ptype = types[i % 4]
        # narcotics / weapons mostly end in arrest, the rest mostly do not
        arrest = (ptype in ("NARCOTICS", "WEAPONS VIOLATION")) != (i % 10 == 0)
        day = 1 + i % 28
        rows.append((
            f"03/{day:02d}/2021 {1 + i % 12:02d}:15:00 {'AM' if i % 3 else 'PM'}",
            ptype,
            ["STREET", "RESIDENCE", "ALLEY"][i % 3],
            "true" if arrest else "false",
            "true" if i % 7 == 0 else "false",
            str(1 + i % 6) if i % 17 else None,
            f"0{i % 5}XX W MADISON ST",
        ))
    return rows


def test_run_writes_model_metrics_and_area_accuracy(spark, tmp_path):
    in_path = str(tmp_path / "crimes_parquet")
    spark.createDataFrame(
        _crime_rows(),
        ["date", "primary_type", "location_description", "arrest", "domestic",
         "community_area", "block"],
    ).write.parquet(in_path)
    out_dir = tmp_path / "lr_out"

    args = spark_lr.parse_args([
        "--in", in_path,
        "--out", str(out_dir),
        "--partitions", "2",
        "--numFeatures", "256",
        "--maxIter", "20",
    ])
    metrics = spark_lr.run(spark, args)

    saved = json.loads((out_dir / "metrics.json").read_text())
    for key in ["tn", "fp", "fn", "tp", "n", "accuracy", "f1", "roc_auc", "pr_auc", "runtime_min"]:
        assert key in saved
    assert saved["n"] == metrics["n"] > 0
    assert saved["roc_auc"] > 0.5

    acc = pd.read_csv(out_dir / "maps" / "accuracy_by_community.csv")
    assert set(acc["community_area"]) <= set(range(1, 7))
    assert acc["n"].sum() <= saved["n"]
    assert (out_dir / "curves" / "roc_curve.csv").exists()
    assert (out_dir / "model_fast").is_dir()
