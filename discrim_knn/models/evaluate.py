"""
Evaluation metrics, confusion matrices and ROC curves over prediction frames.

Prediction frames follow the convention produced by `Workflow.predict`:
classification frames carry `pred_class` and one `pred_<level>` probability
column per outcome level, regression frames carry `pred`. The truth column is
named after the outcome.

Usage
-----
from discrim_knn.models.evaluate import metric_set
churn_metrics = metric_set("roc_auc", "accuracy", "f_meas")
churn_metrics(predictions, truth="canceled_service", event="yes")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numpy as np
import pandas as pd
from sklearn import metrics as skm

from discrim_knn.config import CHURN_EVENT

logger = logging.getLogger(__name__)


def accuracy(truth, estimate, event=None) -> float:
    return float(skm.accuracy_score(truth, estimate))


def sensitivity(truth, estimate, event=CHURN_EVENT) -> float:
    """Proportion of true events predicted as the event."""
    truth = np.asarray(truth) == event
    estimate = np.asarray(estimate) == event
    return float(skm.recall_score(truth, estimate, zero_division=0))


def specificity(truth, estimate, event=CHURN_EVENT) -> float:
    """Proportion of true non-events predicted as non-events."""
    truth = np.asarray(truth) != event
    estimate = np.asarray(estimate) != event
    return float(skm.recall_score(truth, estimate, zero_division=0))


def f_meas(truth, estimate, event=CHURN_EVENT) -> float:
    truth = np.asarray(truth) == event
    estimate = np.asarray(estimate) == event
    return float(skm.f1_score(truth, estimate, zero_division=0))


def roc_auc(truth, prob, event=CHURN_EVENT) -> float:
    truth = np.asarray(truth) == event
    if truth.all() or not truth.any():
        logger.warning("roc_auc is undefined when only one class is present; returning NaN")
        return float("nan")
    return float(skm.roc_auc_score(truth, prob))


def rmse(truth, estimate) -> float:
    return float(np.sqrt(skm.mean_squared_error(truth, estimate)))


def mae(truth, estimate) -> float:
    return float(skm.mean_absolute_error(truth, estimate))


def rsq(truth, estimate) -> float:
    """Squared Pearson correlation between truth and estimate."""
    truth = np.asarray(truth, dtype=float)
    estimate = np.asarray(estimate, dtype=float)
    if np.std(truth) == 0 or np.std(estimate) == 0:
        logger.warning("rsq: a zero variance vector was found; returning NaN")
        return float("nan")
    return float(np.corrcoef(truth, estimate)[0, 1] ** 2)


@dataclass(frozen=True)
class Metric:
    name: str
    mode: str
    kind: str  # "class", "prob" or "numeric"
    fn: Callable
    minimize: bool = False


METRICS: Dict[str, Metric] = {
    "accuracy": Metric("accuracy", "classification", "class", accuracy),
    "sensitivity": Metric("sensitivity", "classification", "class", sensitivity),
    "specificity": Metric("specificity", "classification", "class", specificity),
    "f_meas": Metric("f_meas", "classification", "class", f_meas),
    "roc_auc": Metric("roc_auc", "classification", "prob", roc_auc),
    "rmse": Metric("rmse", "regression", "numeric", rmse, minimize=True),
    "mae": Metric("mae", "regression", "numeric", mae, minimize=True),
    "rsq": Metric("rsq", "regression", "numeric", rsq),
}


def get_metric(name: str) -> Metric:
    try:
        return METRICS[name]
    except KeyError:
        raise KeyError(f"Unknown metric '{name}'. Available: {sorted(METRICS)}") from None


def compute_metric(metric: Metric, truth, estimate=None, prob=None, event=CHURN_EVENT) -> float:
    """Evaluate one metric from raw vectors."""
    if metric.kind == "numeric":
        return metric.fn(truth, estimate)
    if metric.kind == "prob":
        return metric.fn(truth, prob, event=event)
    return metric.fn(truth, estimate, event=event)


class MetricSet:
    """Callable bundle of metrics sharing one mode."""

    def __init__(self, *names: str):
        if not names:
            raise ValueError("metric_set requires at least one metric")
        self.metrics = [get_metric(n) for n in names]
        modes = {m.mode for m in self.metrics}
        if len(modes) > 1:
            raise ValueError(f"Cannot mix classification and regression metrics: {list(names)}")
        self.mode = modes.pop()

    @property
    def names(self) -> list:
        return [m.name for m in self.metrics]

    def __call__(self, predictions: pd.DataFrame, truth: str, event: Optional[str] = CHURN_EVENT) -> pd.DataFrame:
        y = predictions[truth]
        rows = []
        for m in self.metrics:
            if m.kind == "numeric":
                value = compute_metric(m, y, estimate=predictions["pred"])
            elif m.kind == "prob":
                value = compute_metric(m, y, prob=predictions[f"pred_{event}"], event=event)
            else:
                value = compute_metric(m, y, estimate=predictions["pred_class"], event=event)
            rows.append({"metric": m.name, "estimator": "binary" if m.mode == "classification" else "standard",
                         "estimate": value})
        return pd.DataFrame(rows)

    def __repr__(self) -> str:
        return f"MetricSet({', '.join(self.names)})"


def metric_set(*names: str) -> MetricSet:
    return MetricSet(*names)


def conf_mat(predictions: pd.DataFrame, truth: str) -> pd.DataFrame:
    """Confusion matrix with predictions as rows and truth as columns."""
    levels = _levels(predictions[truth])
    table = pd.crosstab(
        predictions["pred_class"].astype(str).to_numpy(),
        predictions[truth].astype(str).to_numpy(),
    )
    table = table.reindex(index=levels, columns=levels, fill_value=0)
    table.index.name = "Prediction"
    table.columns.name = "Truth"
    return table


def roc_curve(predictions: pd.DataFrame, truth: str, event: str = CHURN_EVENT) -> pd.DataFrame:
    """ROC curve points for the event probability column."""
    fpr, tpr, thresholds = skm.roc_curve(predictions[truth] == event, predictions[f"pred_{event}"])
    return pd.DataFrame({"threshold": thresholds, "specificity": 1 - fpr, "sensitivity": tpr})


def _levels(ser: pd.Series) -> list:
    if isinstance(ser.dtype, pd.CategoricalDtype):
        return [str(c) for c in ser.cat.categories]
    return sorted(ser.astype(str).unique().tolist())
