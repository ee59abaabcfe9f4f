"""
Workflows: a recipe and a model spec fit jointly as one scikit-learn Pipeline.

Typical entrypoints are:

- Workflow(recipe, spec).fit(training).predict(testing)
- finalize_workflow(workflow, best_params)  : substitute tuned values
- last_fit(workflow, split)                 : fit on training, evaluate on testing
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
from sklearn.pipeline import Pipeline

from discrim_knn.config import CHURN_EVENT
from discrim_knn.data.splits import Split
from discrim_knn.features.recipes import Recipe
from discrim_knn.models.evaluate import MetricSet, metric_set
from discrim_knn.models.specs import ModelSpec

logger = logging.getLogger(__name__)


class Workflow:
    """Bundle of a preprocessing `Recipe` and a `ModelSpec`."""

    def __init__(self, recipe: Recipe, model: ModelSpec):
        self.recipe = recipe
        self.model = model
        self.pipeline_: Optional[Pipeline] = None

    @property
    def outcome(self) -> str:
        return self.recipe.outcome

    @property
    def mode(self) -> str:
        return self.model.mode

    def tunable(self) -> list:
        return self.model.tunable()

    def to_pipeline(self, model: Optional[ModelSpec] = None) -> Pipeline:
        """Unfitted Pipeline with steps `recipe` and `model`."""
        model = model or self.model
        return Pipeline([("recipe", self.recipe.to_transformer()), ("model", model.build())])

    def xy(self, data: pd.DataFrame):
        """Split `data` into the predictor frame and outcome vector."""
        y = data[self.outcome]
        if self.mode == "classification":
            y = y.astype(str)
        return data[self.recipe.predictors], y

    def fit(self, training: pd.DataFrame) -> "Workflow":
        X, y = self.xy(training)
        self.pipeline_ = self.to_pipeline().fit(X, y)
        logger.info("Fitted %s on %d rows", self.model.model_type, len(training))
        return self

    def _check_fitted(self):
        if self.pipeline_ is None:
            raise RuntimeError("Workflow has not been fitted; call fit() first")

    def predict(self, new_data: pd.DataFrame) -> pd.DataFrame:
        """
        Predict `new_data`.

        Returns
        -------
        pd.DataFrame
            Regression: `pred`. Classification: `pred_class` plus one
            `pred_<level>` probability column per outcome level.
        """
        self._check_fitted()
        X = new_data[self.recipe.predictors]
        if self.mode == "regression":
            return pd.DataFrame({"pred": self.pipeline_.predict(X)}, index=new_data.index)

        proba = self.pipeline_.predict_proba(X)
        classes = [str(c) for c in self.pipeline_.classes_]
        out = pd.DataFrame({"pred_class": np.asarray(classes)[proba.argmax(axis=1)]}, index=new_data.index)
        for i, level in enumerate(classes):
            out[f"pred_{level}"] = proba[:, i]
        return out

    def augment(self, new_data: pd.DataFrame) -> pd.DataFrame:
        """Predictions joined to the truth column when present."""
        preds = self.predict(new_data)
        if self.outcome in new_data.columns:
            truth = new_data[self.outcome]
            preds.insert(0, self.outcome, truth.astype(str) if self.mode == "classification" else truth)
        return preds

    def extract_fit_engine(self):
        self._check_fitted()
        return self.pipeline_.named_steps["model"]

    def extract_preprocessor(self):
        self._check_fitted()
        return self.pipeline_.named_steps["recipe"]

    def feature_names(self) -> list:
        return list(self.extract_preprocessor().get_feature_names_out())

    def __repr__(self) -> str:
        return f"Workflow(preprocessor={self.recipe!r}, model={self.model.model_type} [{self.mode}])"


def finalize_workflow(workflow: Workflow, params: Dict[str, Any]) -> Workflow:
    """Return a new unfitted workflow with tuned parameter values substituted."""
    return Workflow(workflow.recipe, workflow.model.update(**params))


def default_metrics(mode: str) -> MetricSet:
    if mode == "classification":
        return metric_set("roc_auc", "accuracy", "f_meas", "sensitivity", "specificity")
    return metric_set("rmse", "rsq", "mae")


@dataclass
class LastFit:
    workflow: Workflow
    split: Split
    predictions: pd.DataFrame
    metrics: pd.DataFrame

    def collect_metrics(self) -> pd.DataFrame:
        return self.metrics.copy()

    def collect_predictions(self) -> pd.DataFrame:
        return self.predictions.copy()


def last_fit(
    workflow: Workflow,
    split: Split,
    metrics: Optional[MetricSet] = None,
    event: str = CHURN_EVENT,
) -> LastFit:
    """Fit `workflow` on the training set and evaluate it on the test set."""
    if workflow.tunable():
        raise ValueError(f"Workflow still has tuning parameters {workflow.tunable()}; finalize it first")
    metrics = metrics or default_metrics(workflow.mode)
    if metrics.mode != workflow.mode:
        raise ValueError(f"{metrics.mode} metrics cannot evaluate a {workflow.mode} workflow")

    workflow.fit(split.training())
    predictions = workflow.augment(split.testing())
    results = metrics(predictions, truth=workflow.outcome, event=event)
    logger.info("Test set metrics:\n%s", results.to_string(index=False))
    return LastFit(workflow, split, predictions, results)
