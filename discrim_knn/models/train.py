"""
Experiment runners for the tutorial workflows.

Usage (from project root)
-------------------------
# Run every experiment and save models/*:
python -m discrim_knn.models.train

# Or a subset:
python -m discrim_knn.models.train lda knn_regression

# Or import functions:
from discrim_knn.models.train import run_discriminant_analysis
run_discriminant_analysis(churn_df, kind="qda")
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import platform
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import joblib
import matplotlib
import numpy as np
import pandas as pd
import sklearn

from discrim_knn.config import (
    CHURN_EVENT,
    CHURN_OUTCOME,
    CLASSIFICATION_METRICS,
    CLASSIFICATION_TUNE_METRIC,
    HOME_SALES_OUTCOME,
    KNN_NEIGHBORS_GRID,
    MODELS_DIR,
    N_FOLDS,
    RANDOM_SEED,
    REGRESSION_METRICS,
    REGRESSION_TUNE_METRIC,
)
from discrim_knn.data.load_data import load_churn, load_home_sales
from discrim_knn.data.splits import initial_split, vfold_cv
from discrim_knn.features.recipes import Recipe
from discrim_knn.models.evaluate import conf_mat, metric_set, roc_curve
from discrim_knn.models.specs import discrim_linear, discrim_quad, nearest_neighbor, tune
from discrim_knn.models.tune import TuneResults, tune_grid
from discrim_knn.models.workflow import Workflow, finalize_workflow, last_fit
from discrim_knn.visualization.plots import plot_conf_mat, plot_r2, plot_roc_curve, plot_tuning, save_figure

logger = logging.getLogger(__name__)


@dataclass
class ExperimentResult:
    name: str
    workflow: Workflow
    metrics: pd.DataFrame
    predictions: pd.DataFrame
    tuning: Optional[TuneResults] = None
    best_params: Dict[str, object] = field(default_factory=dict)
    figures: Dict[str, object] = field(default_factory=dict)

    def metric(self, name: str) -> float:
        return float(self.metrics.loc[self.metrics["metric"] == name, "estimate"].iloc[0])


def build_recipe(outcome: str, training: pd.DataFrame) -> Recipe:
    """Yeo-Johnson, normalize and dummy-encode every predictor of `outcome ~ .`."""
    return (
        Recipe(outcome, training)
        .step_impute()
        .step_yeojohnson()
        .step_normalize()
        .step_dummy()
    )


def _classification_figures(name: str, predictions: pd.DataFrame, metrics: pd.DataFrame) -> dict:
    auc = metrics.loc[metrics["metric"] == "roc_auc", "estimate"]
    roc = roc_curve(predictions, CHURN_OUTCOME, CHURN_EVENT)
    return {
        "roc_curve": plot_roc_curve(roc, title=f"ROC Curve: {name}", auc=float(auc.iloc[0]) if len(auc) else None),
        "conf_mat": plot_conf_mat(conf_mat(predictions, CHURN_OUTCOME), title=f"Confusion Matrix: {name}"),
    }


def run_discriminant_analysis(df: pd.DataFrame, kind: str = "lda", seed: int = RANDOM_SEED) -> ExperimentResult:
    """
    Fit LDA or QDA to the churn data and evaluate on the held-out test set.

    Parameters
    ----------
    df : pd.DataFrame
        Churn data with outcome `canceled_service`.
    kind : str
        'lda' or 'qda'.
    seed : int
    """
    specs = {"lda": discrim_linear, "qda": discrim_quad}
    if kind not in specs:
        raise ValueError(f"kind must be one of {sorted(specs)}, got {kind!r}")

    split = initial_split(df, strata=CHURN_OUTCOME, seed=seed)
    workflow = Workflow(build_recipe(CHURN_OUTCOME, split.training()), specs[kind]())
    fit = last_fit(workflow, split, metrics=metric_set(*CLASSIFICATION_METRICS), event=CHURN_EVENT)

    predictions = fit.collect_predictions()
    metrics = fit.collect_metrics()
    return ExperimentResult(
        name=kind,
        workflow=fit.workflow,
        metrics=metrics,
        predictions=predictions,
        figures=_classification_figures(kind.upper(), predictions, metrics),
    )


def run_knn_classification(
    df: pd.DataFrame,
    grid: Optional[List[int]] = None,
    v: int = N_FOLDS,
    seed: int = RANDOM_SEED,
) -> ExperimentResult:
    """Tune K for a KNN churn classifier by ROC AUC, then fit and evaluate the best K."""
    grid = grid or KNN_NEIGHBORS_GRID
    metrics = metric_set(*CLASSIFICATION_METRICS)

    split = initial_split(df, strata=CHURN_OUTCOME, seed=seed)
    folds = vfold_cv(split.training(), v=v, strata=CHURN_OUTCOME, seed=seed)
    workflow = Workflow(
        build_recipe(CHURN_OUTCOME, split.training()),
        nearest_neighbor("classification", neighbors=tune()),
    )

    tuning = tune_grid(workflow, folds, {"neighbors": grid}, metrics=metrics, event=CHURN_EVENT)
    best = tuning.select_best(CLASSIFICATION_TUNE_METRIC)
    logger.info("Best KNN classification parameters: %s", best)

    fit = last_fit(finalize_workflow(workflow, best), split, metrics=metrics, event=CHURN_EVENT)
    predictions = fit.collect_predictions()
    results = fit.collect_metrics()
    figures = _classification_figures(f"KNN (K={best['neighbors']})", predictions, results)
    figures["tuning"] = plot_tuning(tuning.collect_metrics(), "neighbors", CLASSIFICATION_TUNE_METRIC)
    return ExperimentResult("knn_classification", fit.workflow, results, predictions, tuning, best, figures)


def run_knn_regression(
    df: pd.DataFrame,
    grid: Optional[List[int]] = None,
    v: int = N_FOLDS,
    seed: int = RANDOM_SEED,
) -> ExperimentResult:
    """Tune K for a KNN regression of selling price by RMSE, then fit and evaluate the best K."""
    grid = grid or KNN_NEIGHBORS_GRID
    metrics = metric_set(*REGRESSION_METRICS)

    split = initial_split(df, strata=HOME_SALES_OUTCOME, seed=seed)
    folds = vfold_cv(split.training(), v=v, strata=HOME_SALES_OUTCOME, seed=seed)
    workflow = Workflow(
        build_recipe(HOME_SALES_OUTCOME, split.training()),
        nearest_neighbor("regression", neighbors=tune()),
    )

    tuning = tune_grid(workflow, folds, {"neighbors": grid}, metrics=metrics)
    best = tuning.select_best(REGRESSION_TUNE_METRIC)
    logger.info("Best KNN regression parameters: %s", best)

    fit = last_fit(finalize_workflow(workflow, best), split, metrics=metrics)
    predictions = fit.collect_predictions()
    figures = {
        "tuning": plot_tuning(tuning.collect_metrics(), "neighbors", REGRESSION_TUNE_METRIC),
        "r2": plot_r2(predictions, HOME_SALES_OUTCOME, title=f"KNN (K={best['neighbors']})"),
    }
    return ExperimentResult("knn_regression", fit.workflow, fit.collect_metrics(), predictions, tuning, best, figures)


EXPERIMENTS = {
    "lda": (load_churn, lambda df: run_discriminant_analysis(df, kind="lda")),
    "qda": (load_churn, lambda df: run_discriminant_analysis(df, kind="qda")),
    "knn_classification": (load_churn, run_knn_classification),
    "knn_regression": (load_home_sales, run_knn_regression),
}


def save_experiment(result: ExperimentResult, models_dir: str = MODELS_DIR) -> dict:
    """
    Persist the fitted workflow, its metadata and figures.

    Saves `<name>.joblib`, `<name>.metadata.json` and `figures/<name>_<figure>.png`
    under `models_dir`.
    """
    os.makedirs(models_dir, exist_ok=True)
    model_file = os.path.join(models_dir, f"{result.name}.joblib")
    metadata_file = os.path.join(models_dir, f"{result.name}.metadata.json")
    joblib.dump(result.workflow, model_file)

    figure_files = {}
    for fig_name, fig in result.figures.items():
        path = os.path.join(models_dir, "figures", f"{result.name}_{fig_name}.png")
        figure_files[fig_name] = os.path.relpath(save_figure(fig, path), models_dir)

    workflow = result.workflow
    metadata = {
        "model_name": result.name,
        "model_type": workflow.model.model_type,
        "mode": workflow.mode,
        "outcome": workflow.outcome,
        "event": CHURN_EVENT if workflow.mode == "classification" else None,
        "trained_on": pd.Timestamp.today().strftime("%Y-%m-%d"),
        "features": list(workflow.recipe.predictors),
        "numeric_features": list(workflow.recipe.numeric),
        "nominal_features": list(workflow.recipe.nominal),
        "metrics": {row.metric: round(float(row.estimate), 4) for row in result.metrics.itertuples()},
        "best_params": result.best_params,
        "model_file": os.path.basename(model_file),
        "figures": figure_files,
        "python": platform.python_version(),
        "numpy": np.__version__,
        "pandas": pd.__version__,
        "sklearn": sklearn.__version__,
        "matplotlib": matplotlib.__version__,
    }
    with open(metadata_file, "w") as fh:
        json.dump(metadata, fh, indent=4)

    logger.info("Saved %s and %s", model_file, metadata_file)
    return metadata


def run_experiments(names: Optional[List[str]] = None, use_cache: bool = True, save: bool = True) -> Dict[str, ExperimentResult]:
    names = names or list(EXPERIMENTS)
    unknown = [n for n in names if n not in EXPERIMENTS]
    if unknown:
        raise KeyError(f"Unknown experiments {unknown}. Available: {list(EXPERIMENTS)}")

    data_cache = {}
    results = {}
    for name in names:
        loader, runner = EXPERIMENTS[name]
        if loader not in data_cache:
            data_cache[loader] = loader(use_cache=use_cache)
        result = runner(data_cache[loader])
        if save:
            save_experiment(result)
        results[name] = result
    return results


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the discriminant analysis and KNN tutorial workflows.")
    parser.add_argument("experiments", nargs="*", help=f"experiments to run, any of {list(EXPERIMENTS)} (default: all)")
    parser.add_argument("--no-cache", action="store_true", help="re-download the data sets")
    parser.add_argument("--no-save", action="store_true", help="do not write models/*")
    args = parser.parse_args(argv)
    unknown = [n for n in args.experiments if n not in EXPERIMENTS]
    if unknown:
        parser.error(f"unknown experiments: {unknown}")

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    results = run_experiments(args.experiments or None, use_cache=not args.no_cache, save=not args.no_save)
    for name, result in results.items():
        print(f"\n== {name} ==")
        if result.best_params:
            print(f"Best parameters: {result.best_params}")
        print(result.metrics.to_string(index=False))
    return results


if __name__ == "__main__":
    main()
