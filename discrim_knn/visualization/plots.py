"""
Matplotlib figures for the tutorial: ROC curves, R² scatter plots,
tuning profiles and confusion matrices.

Every function returns the Figure so callers (CLI, Streamlit, tests) decide
whether to show, save or embed it.
"""

from __future__ import annotations

import os
from typing import Optional

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from discrim_knn.models.evaluate import get_metric, rsq


def plot_roc_curve(roc_df: pd.DataFrame, title: str = "ROC Curve", auc: Optional[float] = None, figsize=(6, 6)):
    """Sensitivity vs 1 - specificity with the chance diagonal."""
    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    label = f"AUC = {auc:.3f}" if auc is not None else None
    ax.plot(1 - roc_df["specificity"], roc_df["sensitivity"], lw=2, label=label)
    ax.plot([0, 1], [0, 1], linestyle="--", color="grey", lw=1)
    ax.set_xlim(0, 1)
    ax.set_ylim(0, 1)
    ax.set_aspect("equal")
    ax.set_xlabel("1 - Specificity")
    ax.set_ylabel("Sensitivity")
    ax.set_title(title)
    if label:
        ax.legend(loc="lower right")
    return fig


def plot_r2(predictions: pd.DataFrame, truth: str, title: str = "R² Plot", figsize=(7, 6)):
    """Predicted vs actual values with the identity line y = x."""
    y = predictions[truth].to_numpy(dtype=float)
    y_hat = predictions["pred"].to_numpy(dtype=float)

    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    ax.scatter(y, y_hat, alpha=0.4, color="#006EA1", edgecolors="none")
    lo = float(np.nanmin([y.min(), y_hat.min()]))
    hi = float(np.nanmax([y.max(), y_hat.max()]))
    ax.plot([lo, hi], [lo, hi], color="orange", lw=1.5)
    ax.set_xlabel(f"Actual {truth}")
    ax.set_ylabel(f"Predicted {truth}")
    ax.set_title(f"{title} (R² = {rsq(y, y_hat):.3f})")
    return fig


def plot_tuning(tune_metrics: pd.DataFrame, param: str, metric: str, figsize=(7, 4)):
    """Mean cross-validated `metric` with a one standard error band across `param`."""
    sub = tune_metrics[tune_metrics["metric"] == metric].sort_values(param)
    if sub.empty:
        raise KeyError(f"No tuning results for metric '{metric}'")

    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    ax.errorbar(sub[param], sub["mean"], yerr=sub["std_err"].fillna(0), marker="o", capsize=3)
    best = sub.loc[sub["mean"].idxmin() if get_metric(metric).minimize else sub["mean"].idxmax()]
    ax.axvline(best[param], color="grey", linestyle=":", lw=1)
    ax.set_xlabel(param)
    ax.set_ylabel(f"mean {metric}")
    ax.set_title(f"Grid search: {metric} by {param}")
    return fig


def plot_conf_mat(table: pd.DataFrame, title: str = "Confusion Matrix", figsize=(5, 4)):
    """Annotated heatmap of a `conf_mat` table (rows prediction, columns truth)."""
    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    values = table.to_numpy()
    im = ax.imshow(values, cmap="Blues")
    fig.colorbar(im, ax=ax)
    ax.set_xticks(range(len(table.columns)))
    ax.set_xticklabels(table.columns)
    ax.set_yticks(range(len(table.index)))
    ax.set_yticklabels(table.index)
    ax.set_xlabel(table.columns.name or "Truth")
    ax.set_ylabel(table.index.name or "Prediction")
    threshold = values.max() / 2.0 if values.size else 0
    for i in range(values.shape[0]):
        for j in range(values.shape[1]):
            ax.text(j, i, f"{values[i, j]:d}", ha="center", va="center",
                    color="white" if values[i, j] > threshold else "black")
    ax.set_title(title)
    return fig


def save_figure(fig, path: str, dpi: int = 150) -> str:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
    return path
