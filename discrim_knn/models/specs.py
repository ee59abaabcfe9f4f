"""
Model specifications: a model type bound to a scikit-learn engine.

A spec is a light description (mode + parameters) that can hold `tune()`
placeholders; `build()` turns it into a fresh, unfitted estimator.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict

from sklearn.discriminant_analysis import LinearDiscriminantAnalysis, QuadraticDiscriminantAnalysis
from sklearn.neighbors import KNeighborsClassifier, KNeighborsRegressor

from discrim_knn.config import QDA_REG_PARAM

MODES = ("classification", "regression")


class _Tune:
    """Placeholder for a hyperparameter chosen by grid search."""

    def __repr__(self) -> str:
        return "tune()"


_TUNE = _Tune()


def tune() -> _Tune:
    return _TUNE


def is_tune(value: Any) -> bool:
    return isinstance(value, _Tune)


@dataclass(frozen=True)
class ModelSpec:
    model_type: str
    mode: str
    engine: str
    params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.mode not in MODES:
            raise ValueError(f"mode must be one of {MODES}, got {self.mode!r}")
        if self.model_type not in _BUILDERS:
            raise ValueError(f"Unknown model type {self.model_type!r}")
        if self.mode not in _BUILDERS[self.model_type]:
            raise ValueError(f"{self.model_type} does not support mode {self.mode!r}")

    def tunable(self) -> list:
        return [k for k, v in self.params.items() if is_tune(v)]

    def update(self, **params) -> "ModelSpec":
        unknown = [k for k in params if k not in self.params]
        if unknown:
            raise ValueError(f"Unknown parameters for {self.model_type}: {unknown}")
        return replace(self, params={**self.params, **params})

    def build(self):
        pending = self.tunable()
        if pending:
            raise ValueError(f"Parameters {pending} are marked for tuning; finalize before building")
        return _BUILDERS[self.model_type][self.mode](**self.params)


def _knn_classifier(neighbors, weight_func):
    return KNeighborsClassifier(n_neighbors=neighbors, weights=weight_func)


def _knn_regressor(neighbors, weight_func):
    return KNeighborsRegressor(n_neighbors=neighbors, weights=weight_func)


_BUILDERS = {
    "discrim_linear": {"classification": lambda: LinearDiscriminantAnalysis()},
    "discrim_quad": {"classification": lambda reg_param: QuadraticDiscriminantAnalysis(reg_param=reg_param)},
    "nearest_neighbor": {"classification": _knn_classifier, "regression": _knn_regressor},
}

# spec parameter -> estimator parameter, used to address the model step in a search grid
ENGINE_PARAM_NAMES = {
    "neighbors": "n_neighbors",
    "weight_func": "weights",
    "reg_param": "reg_param",
}


def discrim_linear() -> ModelSpec:
    """Linear discriminant analysis (shared covariance)."""
    return ModelSpec("discrim_linear", "classification", "sklearn")


def discrim_quad(reg_param: float = QDA_REG_PARAM) -> ModelSpec:
    """Quadratic discriminant analysis (per-class covariance)."""
    return ModelSpec("discrim_quad", "classification", "sklearn", {"reg_param": reg_param})


def nearest_neighbor(mode: str = "classification", neighbors: Any = 5, weight_func: str = "uniform") -> ModelSpec:
    """K-nearest-neighbor; pass `neighbors=tune()` to search K."""
    if weight_func not in ("uniform", "distance"):
        raise ValueError(f"weight_func must be 'uniform' or 'distance', got {weight_func!r}")
    if not is_tune(neighbors):
        if int(neighbors) != neighbors or neighbors < 1:
            raise ValueError(f"neighbors must be a positive integer, got {neighbors!r}")
        neighbors = int(neighbors)
    return ModelSpec("nearest_neighbor", mode, "sklearn", {"neighbors": neighbors, "weight_func": weight_func})
