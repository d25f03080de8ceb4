#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Benchmark helper structures: one summary row per fitted model so the
three classifiers can be compared side by side.
"""

import time
from dataclasses import dataclass, asdict

import numpy as np
import pandas as pd

from sklearn.metrics import (
    roc_auc_score,
    confusion_matrix,
    accuracy_score,
    f1_score,
    precision_recall_curve,
)

from arrest_report import config


@dataclass
class BenchRow:
    model: str
    auc: float
    acc_05: float; f1_05: float; tpr_05: float; tnr_05: float
    thr_rec: float; acc_rec: float; f1_rec: float; tpr_rec: float; tnr_rec: float
    t_fit: float; t_pred: float
    n_features: int
    note: str


def rates(y_true, y_pred):
    """(tpr, tnr) from the confusion matrix; nan when a class is absent."""
    tn, fp, fn, tp = confusion_matrix(y_true, y_pred, labels=[0, 1]).ravel()
    tpr = tp / (tp + fn) if (tp + fn) else float("nan")
    tnr = tn / (tn + fp) if (tn + fp) else float("nan")
    return tpr, tnr


def best_threshold_for_recall(y_true, proba, min_precision=config.MIN_PRECISION):
    """Threshold with the highest recall whose precision stays >= min_precision."""
    y_true = np.asarray(y_true)
    proba = np.asarray(proba)
    if not (y_true == 1).any():
        return 0.5

    # thresholds ascend; the last precision/recall pair has no threshold
    prec, rec, thresholds = precision_recall_curve(y_true, proba)
    ok = prec[:-1] >= min_precision
    if not ok.any():
        return 0.5

    # argmax takes the first (lowest) threshold among recall ties
    best = np.argmax(np.where(ok, rec[:-1], -1.0))
    return float(thresholds[best])


def benchmark_model(model_name, pipe, X_test, y_test, t_fit=0.0, note="",
                    min_precision=config.MIN_PRECISION):
    # Prediction timing
    t0 = time.perf_counter()
    proba = pipe.predict_proba(X_test)[:, 1]
    t_pred = time.perf_counter() - t0

    auc = roc_auc_score(y_test, proba)

    # Default threshold 0.5
    y_pred_05 = (proba >= 0.5).astype(int)
    tpr05, tnr05 = rates(y_test, y_pred_05)

    # Recall-optimized threshold with precision floor
    thr_rec = best_threshold_for_recall(y_test, proba, min_precision=min_precision)
    y_pred_rec = (proba >= thr_rec).astype(int)
    tprrec, tnrrec = rates(y_test, y_pred_rec)

    n_features = pipe.named_steps["preprocess"].transform(X_test.iloc[:1]).shape[1]

    return BenchRow(
        model=model_name,
        auc=auc,
        acc_05=accuracy_score(y_test, y_pred_05),
        f1_05=f1_score(y_test, y_pred_05, zero_division=0),
        tpr_05=tpr05, tnr_05=tnr05,
        thr_rec=thr_rec,
        acc_rec=accuracy_score(y_test, y_pred_rec),
        f1_rec=f1_score(y_test, y_pred_rec, zero_division=0),
        tpr_rec=tprrec, tnr_rec=tnrrec,
        t_fit=t_fit, t_pred=t_pred,
        n_features=int(n_features),
        note=note,
    )


def summary_frame(rows):
    summary = pd.DataFrame([asdict(r) for r in rows])
    if summary.empty:
        return summary
    return summary.sort_values("auc", ascending=False).reset_index(drop=True)
