"""
Prediction helper for persisted experiment workflows.

Provides `predict_one(name, record)` that:
- Loads the persisted workflow and metadata for experiment `name`.
- Aligns the input record to the training features, filling missing values
  with NaN (the recipe imputes them).
- Returns the predicted class with its event probability, or the predicted
  value for regression.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Tuple

import numpy as np
import pandas as pd
import joblib

from discrim_knn.config import MODELS_DIR
from discrim_knn.models.workflow import Workflow


def load_workflow(name: str, models_dir: str = MODELS_DIR) -> Tuple[Workflow, Dict[str, Any]]:
    """Load the fitted workflow and metadata saved by `save_experiment`."""
    model_file = os.path.join(models_dir, f"{name}.joblib")
    if not os.path.exists(model_file):
        raise FileNotFoundError(
            f"Model file not found at {model_file}. Run `python -m discrim_knn.models.train {name}` first."
        )
    workflow = joblib.load(model_file)

    metadata_file = os.path.join(models_dir, f"{name}.metadata.json")
    metadata = {}
    if os.path.exists(metadata_file):
        with open(metadata_file, encoding="utf-8") as fh:
            metadata = json.load(fh)
    return workflow, metadata


def _align_and_clean(record: Dict[str, Any], workflow: Workflow) -> pd.DataFrame:
    """
    Build a one-row frame with every training feature, missing ones as NaN,
    numeric features coerced to float and nominal ones kept as strings.
    """
    recipe = workflow.recipe
    row = {}
    for f in recipe.predictors:
        value = record.get(f)
        missing = value is None or (isinstance(value, float) and np.isnan(value))
        if f in recipe.numeric:
            row[f] = np.nan if missing else pd.to_numeric(value, errors="coerce")
        else:
            row[f] = np.nan if missing else str(value)
    df = pd.DataFrame([row], columns=recipe.predictors)
    for f in recipe.numeric:
        df[f] = df[f].astype(float)
    for f in recipe.nominal:
        df[f] = df[f].astype(object)
    return df


def predict_one(name: str, record: Dict[str, Any], models_dir: str = MODELS_DIR) -> Dict[str, Any]:
    """
    Predict a single record with the persisted workflow of experiment `name`.

    Returns
    -------
    dict
        Classification: {'pred_class': str, 'probability': float} where the
        probability is that of the event level. Regression: {'pred': float}.
    """
    workflow, metadata = load_workflow(name, models_dir)
    preds = workflow.predict(_align_and_clean(record, workflow))

    if workflow.mode == "regression":
        return {"pred": float(preds["pred"].iloc[0])}

    event = metadata.get("event")
    prob_col = f"pred_{event}" if event and f"pred_{event}" in preds.columns else preds.columns[-1]
    return {"pred_class": str(preds["pred_class"].iloc[0]), "probability": float(preds[prob_col].iloc[0])}


if __name__ == "__main__":
    example = {
        "months_with_company": 12,
        "monthly_charges": 85.0,
        "late_payments": 2,
        "contract": "month_to_month",
        "internet_service": "fiber_optic",
    }
    print("Prediction:", predict_one("lda", example))
