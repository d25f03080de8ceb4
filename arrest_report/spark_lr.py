#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Full-dataset logistic regression on Spark (hashed categoricals, no grid).

Reads the Parquet written by arrest_report.spark_convert, fits the model,
prints a quick evaluation and writes curves, accuracy by community area,
the fitted model and a metrics JSON under --out.
"""

import argparse
import json
import os
import time
from pathlib import Path

import numpy as np
import pandas as pd

from pyspark.sql import SparkSession, functions as F
from pyspark.ml import Pipeline
from pyspark.ml.feature import Imputer, FeatureHasher, VectorAssembler
from pyspark.ml.classification import LogisticRegression, LogisticRegressionModel
from pyspark.ml.evaluation import BinaryClassificationEvaluator
from pyspark.ml.functions import vector_to_array

from arrest_report import config

DESIRED_LOWER = [
    "date", "primary_type", "location_description", "beat", "district", "ward",
    "community_area", "arrest", "domestic", "fbi_code", "iucr", "block"
]

CAT_COLS = ["primary_type", "location_description", "beat", "district", "ward",
            "community_area", "fbi_code", "iucr", "block"]
NUM_COLS = ["DomesticNum", "Year", "Month", "DayOfWeek", "Hour", "IsWeekend"]

TRUE_TOKENS = ("true", "t", "1", "y", "yes")
FALSE_TOKENS = ("false", "f", "0", "n", "no")

TIMESTAMP_PATTERNS = [
    "MM/dd/yyyy hh:mm:ss a", "MM/dd/yyyy HH:mm:ss", "MM/dd/yyyy HH:mm",
    "yyyy-MM-dd HH:mm:ss", "yyyy-MM-dd'T'HH:mm:ss"
]


def parse_args(argv=None):
    p = argparse.ArgumentParser("Fast Spark LR (hashing, no grid)")
    p.add_argument("--in", dest="in_path", default="crimes_parquet/",
                   help="Input Parquet directory.")
    ts_default = time.strftime("lr_fast_%Y%m%d_%H%M%S")
    p.add_argument("--out", dest="out_dir",
                   default=os.path.join(config.OUTPUT_DIR, ts_default),
                   help="Output directory.")
    p.add_argument("--partitions", type=int, default=256, help="spark.sql.shuffle.partitions.")
    p.add_argument("--numFeatures", type=int, default=1 << 18,
                   help="FeatureHasher size (power of 2 works best).")
    p.add_argument("--neg_downsample", type=float, default=1.0,
                   help="Keep this fraction of negatives (0 < f <= 1). Example: 0.2 keeps 20%%.")
    p.add_argument("--maxIter", type=int, default=50)
    p.add_argument("--regParam", type=float, default=0.1)
    p.add_argument("--elasticNetParam", type=float, default=0.0)
    p.add_argument("--map_geojson_path", default="",
                   help="Community Areas GeoJSON; when set, an accuracy map is written.")
    p.add_argument("--map_min_support", type=int, default=200,
                   help="Only color areas with at least this many test rows; others stay gray.")
    return p.parse_args(argv)


def robust_timestamp(col):
    ts = F.to_timestamp(col)
    for pat in TIMESTAMP_PATTERNS:
        ts = F.coalesce(ts, F.to_timestamp(col, pat))
    return ts


def flag_to_double(col_name):
    norm = F.lower(F.trim(F.col(col_name).cast("string")))
    return (F.when(norm.isin(*TRUE_TOKENS), 1.0)
             .when(norm.isin(*FALSE_TOKENS), 0.0))


def normalize_columns(df):
    """Lower-case / underscore the expected columns and drop the rest."""
    idx = {c.lower().replace(" ", "_"): c for c in df.columns}
    keep = [idx[c] for c in DESIRED_LOWER if c in idx]
    if not keep:
        raise RuntimeError(f"No expected columns found. Got: {df.columns}")
    df = df.select(*keep)
    for low in DESIRED_LOWER:
        if low in idx and idx[low] != low:
            df = df.withColumnRenamed(idx[low], low)
    return df


def add_label_and_features(df):
    df = df.na.drop(subset=["date", "arrest"])
    df = df.withColumn("label", flag_to_double("arrest")).filter(F.col("label").isNotNull())

    if "domestic" in df.columns:
        df = df.withColumn("DomesticNum", flag_to_double("domestic"))
    else:
        df = df.withColumn("DomesticNum", F.lit(None).cast("double"))

    if "community_area" in df.columns:
        # "8", "8.0" and 8 all hash as the same category "8"
        df = df.withColumn("community_area",
                           F.col("community_area").cast("int").cast("string"))

    # Spark dayofweek: 1 = Sunday ... 7 = Saturday
    df = df.withColumn("ts", robust_timestamp(F.col("date"))).filter(F.col("ts").isNotNull())
    return (df.withColumn("Year", F.year("ts").cast("double"))
              .withColumn("Month", F.month("ts").cast("double"))
              .withColumn("DayOfWeek", F.dayofweek("ts").cast("double"))
              .withColumn("Hour", F.hour("ts").cast("double"))
              .withColumn("IsWeekend", F.when(F.col("DayOfWeek").isin(1, 7), 1.0).otherwise(0.0))
              .drop("ts"))


def downsample_negatives(df, fraction, partitions, seed=config.RANDOM_STATE):
    if fraction >= 1.0:
        return df
    pos = df.filter("label=1")
    neg = df.filter("label=0").sample(False, fraction, seed=seed)
    return pos.unionByName(neg).repartition(partitions)


def build_pipeline(cat_cols, num_cols, num_features, max_iter, reg_param, elastic_net):
    stages = []
    inputs = []

    if num_cols:
        num_imp = [f"{c}_imp" for c in num_cols]
        stages.append(Imputer(strategy="median", inputCols=num_cols, outputCols=num_imp))
        stages.append(VectorAssembler(inputCols=num_imp, outputCol="num_vec", handleInvalid="skip"))
    if cat_cols:
        stages.append(FeatureHasher(inputCols=cat_cols, outputCol="cat_hashed",
                                    numFeatures=num_features))
        inputs.append("cat_hashed")
    if num_cols:
        inputs.append("num_vec")

    stages.append(VectorAssembler(inputCols=inputs, outputCol="features", handleInvalid="skip"))
    stages.append(LogisticRegression(
        labelCol="label",
        featuresCol="features",
        maxIter=max_iter,
        regParam=reg_param,
        elasticNetParam=elastic_net,
        standardization=True,
        aggregationDepth=2
    ))
    return Pipeline(stages=stages)


def basic_evaluation_spark(pred_df):
    """Confusion counts from one groupBy, then the usual threshold metrics."""
    counts = {
        (int(r["label"]), int(r["prediction"])): int(r["count"])
        for r in pred_df.groupBy("label", "prediction").count().collect()
    }
    tn, fp = counts.get((0, 0), 0), counts.get((0, 1), 0)
    fn, tp = counts.get((1, 0), 0), counts.get((1, 1), 0)
    n = tn + fp + fn + tp

    summary = {
        "tn": tn, "fp": fp, "fn": fn, "tp": tp, "n": n,
        "accuracy": (tp + tn) / n if n else 0.0,
        "precision": tp / (tp + fp) if (tp + fp) else 0.0,
        "recall": tp / (tp + fn) if (tp + fn) else 0.0,
    }
    p, r = summary["precision"], summary["recall"]
    summary["f1"] = 2 * p * r / (p + r) if (p + r) else 0.0

    print("\n=== QUICK EVAL (Spark LogisticRegression) ===")
    for key in ("accuracy", "precision", "recall", "f1"):
        print(f"{key:<10} {summary[key]:.3f}")
    print("\nConfusion Matrix (rows=true, cols=pred):")
    print(np.array([[tn, fp], [fn, tp]]))
    print(f"TN={tn}, FP={fp}, FN={fn}, TP={tp}")
    return summary


def score_curves(pred_df, score_col="score", label_col="label", steps=200, out_dir=None):
    """
    ROC and PR points from scores rounded down to 1/steps.

    Only the per-bucket label counts leave Spark; the cumulative sums are
    done in pandas. Returns (roc, pr) DataFrames, or (None, None) when the
    test split lacks one of the classes. With out_dir set, writes
    roc_curve.csv and pr_curve.csv there.
    """
    buckets = (
        pred_df
        .withColumn("bucket", F.floor(F.col(score_col) * steps) / steps)
        .groupBy("bucket")
        .agg(F.sum(F.col(label_col).cast("int")).alias("pos"),
             F.count("*").alias("total"))
        .toPandas()
        .sort_values("bucket", ascending=False)
    )
    P = buckets["pos"].sum()
    N = buckets["total"].sum() - P
    if P == 0 or N == 0:
        print("[curves] skipped: test split has a single class")
        return None, None

    cum_tp = buckets["pos"].cumsum()
    cum_fp = (buckets["total"] - buckets["pos"]).cumsum()
    roc = pd.DataFrame({"threshold": buckets["bucket"], "fpr": cum_fp / N, "tpr": cum_tp / P})
    pr = pd.DataFrame({"threshold": buckets["bucket"], "recall": cum_tp / P,
                       "precision": cum_tp / (cum_tp + cum_fp)})
    roc = roc.reset_index(drop=True)
    pr = pr.reset_index(drop=True)

    if out_dir:
        Path(out_dir).mkdir(parents=True, exist_ok=True)
        roc.to_csv(Path(out_dir, "roc_curve.csv"), index=False)
        pr.to_csv(Path(out_dir, "pr_curve.csv"), index=False)
        print(f"[curves] wrote roc_curve.csv and pr_curve.csv to {out_dir}")

    return roc, pr


def accuracy_by_area(pred_df):
    """Accuracy and test-row count per community area, as pandas."""
    if "community_area" not in pred_df.columns:
        return None
    # hashed as text; "__NA__" and other non-numeric codes drop out here
    area = F.col("community_area").cast("int")
    acc = (
        pred_df.withColumn("community_area", area)
               .filter(F.col("community_area").isNotNull())
               .groupBy("community_area")
               .agg(F.mean((F.col("label") == F.col("prediction")).cast("double")).alias("accuracy"),
                    F.count("*").alias("n"))
               .withColumn("accuracy", F.round(F.col("accuracy"), 4))
               .orderBy("community_area")
    )
    return acc.toPandas()


def numeric_coefficients(model, num_cols, num_features, has_hasher=True):
    """Coefficients of the numeric block; hashed columns have no names to show."""
    lr_model = next((s for s in model.stages if isinstance(s, LogisticRegressionModel)), None)
    if lr_model is None or not num_cols:
        return None
    coef_vec = np.array(lr_model.coefficients)
    start = num_features if has_hasher else 0
    names = [f"{c}_imp" for c in num_cols]
    num_slice = coef_vec[start:start + len(names)]
    return pd.DataFrame({"feature": names, "coef": num_slice}).sort_values("coef", ascending=False)


def build_session(partitions):
    return (
        SparkSession.builder
        .appName("ChicagoCrime-LR-Fast")
        .config("spark.sql.shuffle.partitions", str(partitions))
        .config("spark.sql.adaptive.enabled", "true")
        .config("spark.sql.adaptive.skewJoin.enabled", "true")
        # unparseable dates / casts become null instead of failing the job
        .config("spark.sql.ansi.enabled", "false")
        .config("spark.sql.legacy.timeParserPolicy", "CORRECTED")
        .getOrCreate()
    )


def run(spark, args):
    start_time = time.time()
    out_dir = args.out_dir.rstrip("/")
    print(f"paths -> in: {args.in_path} | out: {out_dir} | partitions: {args.partitions}")

    # 1) Read + normalize
    df = normalize_columns(spark.read.parquet(args.in_path))
    print("after normalization cols:", df.columns)
    df = add_label_and_features(df)
    df = downsample_negatives(df, args.neg_downsample, args.partitions)

    cat_cols = [c for c in CAT_COLS if c in df.columns]
    num_cols = [c for c in NUM_COLS if c in df.columns]
    if cat_cols:
        df = df.fillna({c: "__NA__" for c in cat_cols if dict(df.dtypes)[c] == "string"})

    pipeline = build_pipeline(cat_cols, num_cols, args.numFeatures,
                              args.maxIter, args.regParam, args.elasticNetParam)

    # 2) train-test split
    train, test = df.randomSplit([0.8, 0.2], seed=config.RANDOM_STATE)
    print(f"split sizes -> train: {train.count():,} | test: {test.count():,}")
    model = pipeline.fit(train)

    keep_for_pred = ["label"] + [c for c in ["primary_type", "fbi_code", "iucr", "block", "community_area"]
                                 if c in df.columns]
    pred = model.transform(test).select(*keep_for_pred, "rawPrediction", "probability", "prediction")
    pred = (pred
            .withColumn("prob_arr", vector_to_array(F.col("probability")))
            .withColumn("score", F.col("prob_arr")[1].cast("double"))
            .drop("prob_arr"))

    eval_summary = basic_evaluation_spark(pred)

    coef_df = numeric_coefficients(model, num_cols, args.numFeatures, has_hasher=bool(cat_cols))
    if coef_df is not None:
        print("\nnumeric predictors (hashed categoricals can't be mapped back to names):")
        print(coef_df.to_string(index=False))

    # 3) AUCs + curves
    auc_roc = BinaryClassificationEvaluator(
        labelCol="label", rawPredictionCol="rawPrediction", metricName="areaUnderROC"
    ).evaluate(pred)
    auc_pr = BinaryClassificationEvaluator(
        labelCol="label", rawPredictionCol="rawPrediction", metricName="areaUnderPR"
    ).evaluate(pred)
    print(f"AUCs -> ROC: {auc_roc:.4f} | PR: {auc_pr:.4f}")

    score_curves(pred, out_dir=out_dir + "/curves")

    # 4) accuracy by community area (+ optional map)
    acc_pdf = accuracy_by_area(pred)
    if acc_pdf is not None and not acc_pdf.empty:
        Path(out_dir, "maps").mkdir(parents=True, exist_ok=True)
        acc_csv = Path(out_dir, "maps", "accuracy_by_community.csv")
        acc_pdf.to_csv(acc_csv, index=False)
        print(f"wrote accuracy-by-community CSV -> {acc_csv}")

        if args.map_geojson_path:
            from arrest_report.maps import accuracy_map

            geojson = json.loads(Path(args.map_geojson_path).read_text())
            acc_map = {int(r.community_area): (float(r.accuracy), int(r.n))
                       for r in acc_pdf.itertuples()}
            accuracy_map(geojson, acc_map, Path(out_dir, "maps", "chicago_accuracy_map.html"),
                         min_support=args.map_min_support)
    else:
        print("skipping map: community_area unavailable")

    model.write().overwrite().save(out_dir + "/model_fast")

    metrics = dict(eval_summary)
    metrics.update({
        "roc_auc": float(auc_roc),
        "pr_auc": float(auc_pr),
        "input_path": args.in_path,
        "output_dir": out_dir,
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        "runtime_min": (time.time() - start_time) / 60.0,
    })
    Path(out_dir).mkdir(parents=True, exist_ok=True)
    Path(out_dir, "metrics.json").write_text(json.dumps(metrics, indent=2))
    return metrics


def main(argv=None):
    args = parse_args(argv)
    spark = build_session(args.partitions)
    try:
        run(spark, args)
    finally:
        spark.stop()


if __name__ == "__main__":
    main()
