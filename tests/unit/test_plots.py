"""Unit tests for plotting helpers."""

import matplotlib.pyplot as plt
import pandas as pd
import pytest
from matplotlib.figure import Figure

from discrim_knn.visualization.plots import plot_conf_mat, plot_r2, plot_roc_curve, plot_tuning, save_figure


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


@pytest.fixture
def tuning_metrics():
    return pd.DataFrame({
        "neighbors": [5, 10, 15, 5, 10, 15],
        "metric": ["rmse"] * 3 + ["rsq"] * 3,
        "mean": [3.0, 2.0, 2.5, 0.6, 0.8, 0.7],
        "n": [5] * 6,
        "std_err": [0.1, 0.2, 0.1, 0.01, 0.02, 0.01],
    })


class TestPlots:
    """Test suite for figure builders."""

    def test_roc_curve(self):
        roc = pd.DataFrame({"threshold": [1.0, 0.5, 0.0], "specificity": [1.0, 0.5, 0.0], "sensitivity": [0.0, 0.8, 1.0]})
        fig = plot_roc_curve(roc, auc=0.83)
        assert isinstance(fig, Figure)
        assert fig.axes[0].get_legend().get_texts()[0].get_text() == "AUC = 0.830"

    def test_r2_plot_title_has_rsq(self):
        preds = pd.DataFrame({"price": [1.0, 2.0, 3.0, 4.0], "pred": [1.1, 1.9, 3.2, 3.9]})
        fig = plot_r2(preds, "price", title="KNN")
        assert fig.axes[0].get_title().startswith("KNN (R² = 0.9")
        assert fig.axes[0].get_xlabel() == "Actual price"

    def test_tuning_plot_marks_best(self, tuning_metrics):
        fig = plot_tuning(tuning_metrics, "neighbors", "rmse")
        vline = fig.axes[0].lines[-1]
        assert list(vline.get_xdata()) == [10, 10]

    def test_tuning_plot_unknown_metric(self, tuning_metrics):
        with pytest.raises(KeyError):
            plot_tuning(tuning_metrics, "neighbors", "mae")

    def test_conf_mat_plot(self):
        table = pd.DataFrame([[5, 1], [2, 7]], index=pd.Index(["yes", "no"], name="Prediction"),
                             columns=pd.Index(["yes", "no"], name="Truth"))
        fig = plot_conf_mat(table)
        texts = [t.get_text() for t in fig.axes[0].texts]
        assert texts == ["5", "1", "2", "7"]

    def test_save_figure_creates_dirs(self, tmp_path):
        roc = pd.DataFrame({"threshold": [1.0, 0.0], "specificity": [1.0, 0.0], "sensitivity": [0.0, 1.0]})
        path = save_figure(plot_roc_curve(roc), str(tmp_path / "nested" / "roc.png"))
        assert (tmp_path / "nested" / "roc.png").exists()
        assert path.endswith("roc.png")
