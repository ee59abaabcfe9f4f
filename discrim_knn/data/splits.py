"""
Train/test splitting and V-fold cross-validation.

Both helpers stratify on a nominal column directly and on a numeric column via
its quartile bins, so the tail of a skewed outcome (e.g. selling price) is
represented in every partition.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import KFold, StratifiedKFold, train_test_split

from discrim_knn.config import N_FOLDS, RANDOM_SEED, TRAIN_PROP

logger = logging.getLogger(__name__)

NUMERIC_STRATA_BINS = 4


def _strata_labels(df: pd.DataFrame, strata: Optional[str]) -> Optional[np.ndarray]:
    if strata is None:
        return None
    if strata not in df.columns:
        raise KeyError(f"Strata column '{strata}' not found")
    ser = df[strata]
    if pd.api.types.is_numeric_dtype(ser):
        ser = pd.qcut(ser, q=NUMERIC_STRATA_BINS, labels=False, duplicates="drop")
    return ser.astype(str).to_numpy()


@dataclass
class Split:
    """Positional train/test partition of `data`."""

    data: pd.DataFrame
    train_idx: np.ndarray
    test_idx: np.ndarray

    def training(self) -> pd.DataFrame:
        return self.data.iloc[self.train_idx].copy()

    def testing(self) -> pd.DataFrame:
        return self.data.iloc[self.test_idx].copy()

    def __repr__(self) -> str:
        return f"<Training/Testing/Total> <{len(self.train_idx)}/{len(self.test_idx)}/{len(self.data)}>"


def initial_split(
    df: pd.DataFrame,
    prop: float = TRAIN_PROP,
    strata: Optional[str] = None,
    seed: int = RANDOM_SEED,
) -> Split:
    """
    Randomly split `df` into training and testing sets.

    Parameters
    ----------
    df : pd.DataFrame
    prop : float
        Proportion of rows assigned to training, strictly between 0 and 1.
    strata : str or None
        Column to stratify on.
    seed : int
    """
    if not 0 < prop < 1:
        raise ValueError(f"prop must be in (0, 1), got {prop}")
    positions = np.arange(len(df))
    train_idx, test_idx = train_test_split(
        positions,
        train_size=prop,
        random_state=seed,
        stratify=_strata_labels(df, strata),
    )
    split = Split(df, np.sort(train_idx), np.sort(test_idx))
    logger.info("Initial split %r (strata=%s)", split, strata)
    return split


@dataclass
class VFoldCV:
    """V-fold resamples; iterating yields positional (analysis, assessment) index pairs."""

    data: pd.DataFrame
    folds: List[Tuple[np.ndarray, np.ndarray]] = field(default_factory=list)

    def __iter__(self) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        return iter(self.folds)

    def __len__(self) -> int:
        return len(self.folds)

    def analysis(self, i: int) -> pd.DataFrame:
        return self.data.iloc[self.folds[i][0]].copy()

    def assessment(self, i: int) -> pd.DataFrame:
        return self.data.iloc[self.folds[i][1]].copy()


def vfold_cv(
    df: pd.DataFrame,
    v: int = N_FOLDS,
    strata: Optional[str] = None,
    seed: int = RANDOM_SEED,
) -> VFoldCV:
    """
    Create `v` cross-validation folds over `df`.

    Every row appears in exactly one assessment set.
    """
    if v < 2:
        raise ValueError(f"v must be at least 2, got {v}")
    if v > len(df):
        raise ValueError(f"Cannot create {v} folds from {len(df)} rows")

    labels = _strata_labels(df, strata)
    if labels is None:
        splitter = KFold(n_splits=v, shuffle=True, random_state=seed)
        folds = list(splitter.split(df))
    else:
        splitter = StratifiedKFold(n_splits=v, shuffle=True, random_state=seed)
        folds = list(splitter.split(df, labels))

    logger.info("Created %d folds (strata=%s)", v, strata)
    return VFoldCV(df, folds)
