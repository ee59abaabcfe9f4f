"""
Hyperparameter grid search over predefined cross-validation folds.

`tune_grid` hands the folds to scikit-learn's `GridSearchCV` (no refit) and
reshapes its `cv_results_` into a tidy frame: one row per parameter
combination and metric with the mean across folds, the number of folds and
the standard error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import GridSearchCV

from discrim_knn.config import CHURN_EVENT
from discrim_knn.data.splits import VFoldCV
from discrim_knn.models.evaluate import MetricSet, compute_metric, get_metric
from discrim_knn.models.specs import ENGINE_PARAM_NAMES
from discrim_knn.models.workflow import Workflow, default_metrics

logger = logging.getLogger(__name__)


def grid_regular(ranges: Dict[str, Tuple[float, float]], levels: int = 5, integer: Sequence[str] = ("neighbors",)) -> Dict[str, list]:
    """
    Evenly spaced candidate values for each parameter.

    Parameters listed in `integer` are rounded and de-duplicated.
    """
    if levels < 1:
        raise ValueError("levels must be at least 1")
    grid = {}
    for name, (low, high) in ranges.items():
        if low > high:
            raise ValueError(f"Invalid range for {name}: ({low}, {high})")
        values = np.linspace(low, high, levels)
        if name in integer:
            grid[name] = sorted({int(round(v)) for v in values})
        else:
            grid[name] = [float(v) for v in values]
    return grid


def _make_scorer(metric_name: str, event: str):
    metric = get_metric(metric_name)

    def scorer(estimator, X, y):
        if metric.kind == "numeric":
            return compute_metric(metric, y, estimate=estimator.predict(X))
        if metric.kind == "prob":
            classes = [str(c) for c in estimator.classes_]
            prob = estimator.predict_proba(X)[:, classes.index(event)]
            return compute_metric(metric, y, prob=prob, event=event)
        return compute_metric(metric, y, estimate=estimator.predict(X), event=event)

    scorer.__name__ = f"{metric_name}_scorer"
    return scorer


@dataclass
class TuneResults:
    params: List[str]
    metrics: pd.DataFrame

    def collect_metrics(self) -> pd.DataFrame:
        return self.metrics.copy()

    def show_best(self, metric: str, n: int = 5) -> pd.DataFrame:
        """Top `n` candidates for `metric`, best first."""
        m = get_metric(metric)
        sub = self.metrics[self.metrics["metric"] == metric]
        if sub.empty:
            raise KeyError(f"Metric '{metric}' was not computed during tuning")
        sub = sub.dropna(subset=["mean"]).sort_values("mean", ascending=m.minimize, kind="mergesort")
        return sub.head(n).reset_index(drop=True)

    def select_best(self, metric: str) -> Dict[str, object]:
        best = self.show_best(metric, n=1)
        if best.empty:
            raise ValueError(f"Every candidate failed to produce a '{metric}' estimate")
        row = best.iloc[0]
        return {p: _native(row[p]) for p in self.params}


def _native(value):
    return value.item() if hasattr(value, "item") else value


def tune_grid(
    workflow: Workflow,
    resamples: VFoldCV,
    grid: Dict[str, list],
    metrics: Optional[MetricSet] = None,
    event: str = CHURN_EVENT,
    n_jobs: Optional[int] = None,
) -> TuneResults:
    """
    Evaluate every combination in `grid` on every fold of `resamples`.

    Parameters
    ----------
    workflow : Workflow
        Workflow whose model spec marks parameters with `tune()`.
    resamples : VFoldCV
        Folds created over the training set.
    grid : dict
        Parameter name -> candidate values.
    metrics : MetricSet or None
        Defaults to the mode's standard metric set.
    """
    tunable = workflow.tunable()
    if not tunable:
        raise ValueError("Workflow has no parameters marked for tuning")
    unknown = [p for p in grid if p not in tunable]
    missing = [p for p in tunable if p not in grid]
    if unknown:
        raise ValueError(f"Grid parameters {unknown} are not tunable in this workflow")
    if missing:
        raise ValueError(f"No candidate values supplied for {missing}")

    metrics = metrics or default_metrics(workflow.mode)
    if metrics.mode != workflow.mode:
        raise ValueError(f"{metrics.mode} metrics cannot evaluate a {workflow.mode} workflow")

    # placeholder values are only needed to build the base estimator
    start = workflow.model.update(**{p: grid[p][0] for p in tunable})
    pipeline = workflow.to_pipeline(model=start)
    param_grid = {f"model__{ENGINE_PARAM_NAMES[p]}": list(grid[p]) for p in tunable}
    scoring = {name: _make_scorer(name, event) for name in metrics.names}

    search = GridSearchCV(
        estimator=pipeline,
        param_grid=param_grid,
        scoring=scoring,
        cv=list(resamples),
        refit=False,
        n_jobs=n_jobs,
        error_score=np.nan,
    )
    X, y = workflow.xy(resamples.data)
    n_candidates = int(np.prod([len(v) for v in grid.values()]))
    logger.info("Tuning %s over %d candidates x %d folds", tunable, n_candidates, len(resamples))
    search.fit(X, y)

    results = _tidy_cv_results(search.cv_results_, tunable, metrics.names, len(resamples))
    return TuneResults(params=tunable, metrics=results)


def _tidy_cv_results(cv_results: dict, params: List[str], metric_names: List[str], n_folds: int) -> pd.DataFrame:
    rows = []
    for i, candidate in enumerate(cv_results["params"]):
        values = {p: candidate[f"model__{ENGINE_PARAM_NAMES[p]}"] for p in params}
        for name in metric_names:
            scores = np.array([cv_results[f"split{k}_test_{name}"][i] for k in range(n_folds)], dtype=float)
            scores = scores[~np.isnan(scores)]
            n = len(scores)
            mean = float(scores.mean()) if n else np.nan
            std_err = float(scores.std(ddof=1) / np.sqrt(n)) if n > 1 else np.nan
            rows.append({**values, "metric": name, "mean": mean, "n": n, "std_err": std_err,
                         "config": f"Preprocessor1_Model{i + 1:02d}"})
    return pd.DataFrame(rows)

