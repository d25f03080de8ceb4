#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Feature encoding, train/test split and the three baseline classifiers
(logistic regression, random forest, XGBoost) used by the report.
"""

import numpy as np
import pandas as pd

from sklearn.model_selection import train_test_split
from sklearn.compose import ColumnTransformer
from sklearn.impute import SimpleImputer
from sklearn.preprocessing import OneHotEncoder, StandardScaler
from sklearn.pipeline import Pipeline
from sklearn.linear_model import LogisticRegression
from sklearn.ensemble import RandomForestClassifier
from sklearn.metrics import (
    classification_report,
    roc_auc_score,
    confusion_matrix,
)

from xgboost import XGBClassifier

from arrest_report import config

MODEL_LABELS = {
    "logreg": "LogisticRegression",
    "rf": "RandomForest",
    "xgb": "XGBoost",
}


def feature_columns(df):
    categorical_features = [c for c in config.CATEGORICAL_FEATURES if c in df.columns]
    numeric_features = [c for c in config.NUMERIC_FEATURES if c in df.columns]
    return categorical_features, numeric_features


def build_data(df, test_size=config.TEST_SIZE, random_state=config.RANDOM_STATE):
    """Select features and split into X/y train/test, stratified on Arrest."""
    if config.TARGET not in df.columns:
        raise ValueError(f"'{config.TARGET}' column not found")

    y = df[config.TARGET].astype(int).values
    classes = set(np.unique(y).tolist())
    if classes != {0, 1}:
        raise ValueError(f"Arrest must contain both 0 and 1; found {sorted(classes)}")

    categorical_features, numeric_features = feature_columns(df)
    if not categorical_features and not numeric_features:
        raise ValueError("No known feature columns in data")

    X = df[categorical_features + numeric_features].copy()
    # Codes like Beat/Ward load as numbers; encode every category as text
    for c in categorical_features:
        X[c] = X[c].astype(str)

    X_train, X_test, y_train, y_test = train_test_split(
        X, y,
        test_size=test_size,
        random_state=random_state,
        stratify=y
    )

    return X_train, X_test, y_train, y_test, categorical_features, numeric_features


def build_preprocessor(categorical_features, numeric_features, scale_numeric=False):
    num_steps = [("impute", SimpleImputer(strategy="median"))]
    if scale_numeric:
        num_steps.append(("scale", StandardScaler()))

    transformers = []
    if categorical_features:
        transformers.append(
            ("cat", OneHotEncoder(handle_unknown="ignore"), categorical_features)
        )
    if numeric_features:
        transformers.append(("num", Pipeline(num_steps), numeric_features))

    return ColumnTransformer(transformers=transformers)


def scale_pos_weight(y_train):
    """neg/pos ratio for XGBoost class balancing."""
    pos = int((y_train == 1).sum())
    neg = int((y_train == 0).sum())
    if pos == 0:
        raise ValueError("Training labels contain no arrests")
    return neg / pos


def build_pipeline(name, categorical_features, numeric_features, y_train=None,
                   random_state=config.RANDOM_STATE):
    if name == "logreg":
        preprocessor = build_preprocessor(categorical_features, numeric_features,
                                          scale_numeric=True)
        model = LogisticRegression(random_state=random_state, **config.LR_PARAMS)
    elif name == "rf":
        preprocessor = build_preprocessor(categorical_features, numeric_features)
        params = dict(config.RF_PARAMS, random_state=random_state)
        model = RandomForestClassifier(**params)
    elif name == "xgb":
        if y_train is None:
            raise ValueError("XGBoost needs y_train to set scale_pos_weight")
        preprocessor = build_preprocessor(categorical_features, numeric_features)
        model = XGBClassifier(
            scale_pos_weight=scale_pos_weight(np.asarray(y_train)),
            random_state=random_state,
            **config.XGB_PARAMS
        )
    else:
        raise ValueError(f"Unknown model '{name}'; choose from {sorted(MODEL_LABELS)}")

    return Pipeline(
        steps=[
            ("preprocess", preprocessor),
            (name, model),
        ]
    )


def basic_evaluation(y_test, y_pred, y_proba, label="model"):
    print(f"\n=== BASIC EVALUATION ({label}) ===")
    print("Classification report:")
    print(classification_report(y_test, y_pred, digits=3, zero_division=0))

    auc = roc_auc_score(y_test, y_proba)
    print(f"ROC-AUC: {auc:.3f}")

    cm = confusion_matrix(y_test, y_pred, labels=[0, 1])
    tn, fp, fn, tp = cm.ravel()
    print("\nConfusion Matrix (rows=true, cols=pred):")
    print(cm)
    print(f"TN={tn}, FP={fp}, FN={fn}, TP={tp}")
    return {"tn": int(tn), "fp": int(fp), "fn": int(fn), "tp": int(tp), "auc": float(auc)}


def top_coefficients(pipe, n=10):
    """
    Strongest predictors by name after one-hot encoding.

    Logistic regression gives signed coefficients (sorted high to low);
    tree models give feature importances.
    """
    names = pipe.named_steps["preprocess"].get_feature_names_out()
    model = pipe.steps[-1][1]

    if hasattr(model, "coef_"):
        weights = np.ravel(model.coef_)
        coef_df = pd.DataFrame({"feature": names, "coef": weights})
        coef_df = coef_df.sort_values("coef", ascending=False)
        top = pd.concat([coef_df.head(n), coef_df.tail(n)]).drop_duplicates("feature")
        return top.reset_index(drop=True)

    imp_df = pd.DataFrame({"feature": names, "importance": model.feature_importances_})
    return imp_df.sort_values("importance", ascending=False).head(n).reset_index(drop=True)
