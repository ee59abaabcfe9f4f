"""
Declarative preprocessing recipes.

A `Recipe` records an outcome, the predictor roles found in a template frame and
an ordered set of steps. It compiles to a scikit-learn `ColumnTransformer`, so
the same object can be fit on its own (`prep`/`bake`) or inside a pipeline.

Example
-------
recipe = (
    Recipe("canceled_service", churn_training)
    .step_yeojohnson()
    .step_normalize()
    .step_dummy()
)
recipe.prep(churn_training).bake(churn_test)
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import pandas as pd
from sklearn.compose import ColumnTransformer
from sklearn.impute import SimpleImputer
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder, PowerTransformer, StandardScaler

STEP_ORDER = ("impute", "yeojohnson", "normalize", "dummy")


class Recipe:
    """
    Preprocessing specification for `outcome ~ .` over a template frame.

    Parameters
    ----------
    outcome : str
        Outcome column; every other column of `data` is a predictor.
    data : pd.DataFrame
        Template used only to determine predictor names and roles.
    """

    def __init__(self, outcome: str, data: pd.DataFrame):
        if outcome not in data.columns:
            raise KeyError(f"Outcome '{outcome}' not found in data")
        self.outcome = outcome
        self.predictors: List[str] = [c for c in data.columns if c != outcome]
        self.numeric: List[str] = [
            c for c in self.predictors
            if pd.api.types.is_numeric_dtype(data[c]) and not pd.api.types.is_bool_dtype(data[c])
        ]
        self.nominal: List[str] = [c for c in self.predictors if c not in self.numeric]
        self.steps: Dict[str, List[str]] = {}
        self.transformer_: Optional[ColumnTransformer] = None

    def _add_step(self, name: str, columns: Optional[Sequence[str]], default: List[str]) -> "Recipe":
        if name in self.steps:
            raise ValueError(f"Step '{name}' already added to recipe")
        cols = list(default if columns is None else columns)
        unknown = [c for c in cols if c not in self.predictors]
        if unknown:
            raise KeyError(f"Step '{name}' references unknown predictors {unknown}")
        if name in ("yeojohnson", "normalize"):
            nominal = [c for c in cols if c not in self.numeric]
            if nominal:
                raise ValueError(f"Step '{name}' requires numeric predictors; got {nominal}")
        elif name == "dummy":
            numeric = [c for c in cols if c in self.numeric]
            if numeric:
                raise ValueError(f"Step 'dummy' requires nominal predictors; got {numeric}")
        self.steps[name] = cols
        return self

    def step_impute(self, columns: Optional[Sequence[str]] = None) -> "Recipe":
        """Median-impute numeric and mode-impute nominal predictors."""
        return self._add_step("impute", columns, self.predictors)

    def step_yeojohnson(self, columns: Optional[Sequence[str]] = None) -> "Recipe":
        """Yeo-Johnson power transform of numeric predictors."""
        return self._add_step("yeojohnson", columns, self.numeric)

    def step_normalize(self, columns: Optional[Sequence[str]] = None) -> "Recipe":
        """Center to mean zero and scale to unit variance."""
        return self._add_step("normalize", columns, self.numeric)

    def step_dummy(self, columns: Optional[Sequence[str]] = None) -> "Recipe":
        """Dummy-encode nominal predictors, dropping the reference level."""
        return self._add_step("dummy", columns, self.nominal)

    def summary(self) -> pd.DataFrame:
        rows = [{"variable": c, "type": "numeric" if c in self.numeric else "nominal", "role": "predictor"}
                for c in self.predictors]
        rows.append({"variable": self.outcome, "type": None, "role": "outcome"})
        return pd.DataFrame(rows)

    def _column_steps(self, col: str) -> tuple:
        return tuple(s for s in STEP_ORDER if col in self.steps.get(s, ()))

    def _numeric_pipeline(self, steps: tuple) -> Pipeline:
        parts = []
        if "impute" in steps:
            parts.append(("impute", SimpleImputer(strategy="median")))
        if "yeojohnson" in steps:
            parts.append(("yeojohnson", PowerTransformer(method="yeo-johnson", standardize=False)))
        if "normalize" in steps:
            parts.append(("normalize", StandardScaler()))
        return Pipeline(parts)

    def _nominal_pipeline(self, steps: tuple) -> Pipeline:
        parts = []
        if "impute" in steps:
            parts.append(("impute", SimpleImputer(strategy="most_frequent")))
        if "dummy" in steps:
            parts.append(("dummy", OneHotEncoder(drop="first", handle_unknown="ignore", sparse_output=False)))
        return Pipeline(parts)

    def to_transformer(self) -> ColumnTransformer:
        """
        Compile the steps into an unfitted ColumnTransformer.

        Predictors sharing the same set of steps are grouped in one branch;
        predictors no step touches pass through unchanged.
        """
        groups: Dict[tuple, List[str]] = {}
        for col in self.predictors:
            groups.setdefault((col in self.numeric, self._column_steps(col)), []).append(col)

        transformers = []
        for (is_numeric, steps), cols in groups.items():
            if not steps:
                transformers.append(("passthrough_" + ("num" if is_numeric else "nom"), "passthrough", cols))
                continue
            label = ("num_" if is_numeric else "nom_") + "_".join(steps)
            pipe = self._numeric_pipeline(steps) if is_numeric else self._nominal_pipeline(steps)
            transformers.append((label, pipe, cols))

        transformer = ColumnTransformer(transformers, remainder="drop", verbose_feature_names_out=False)
        return transformer.set_output(transform="pandas")

    def prep(self, training: pd.DataFrame) -> "Recipe":
        """Estimate every step on `training`."""
        self.transformer_ = self.to_transformer().fit(training[self.predictors])
        return self

    def bake(self, new_data: pd.DataFrame) -> pd.DataFrame:
        """Apply the prepped steps; the outcome column is kept when present."""
        if self.transformer_ is None:
            raise RuntimeError("Recipe has not been prepped; call prep() first")
        baked = self.transformer_.transform(new_data[self.predictors])
        baked.index = new_data.index
        if self.outcome in new_data.columns:
            baked[self.outcome] = new_data[self.outcome]
        return baked

    def __repr__(self) -> str:
        steps = ", ".join(s for s in STEP_ORDER if s in self.steps) or "none"
        return (f"Recipe(outcome={self.outcome!r}, numeric={len(self.numeric)}, "
                f"nominal={len(self.nominal)}, steps=[{steps}])")
