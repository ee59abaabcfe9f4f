"""Integration tests: experiment runners, persistence and prediction on synthetic data."""

import json

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from discrim_knn.models import train
from discrim_knn.models.predict import load_workflow, predict_one
from discrim_knn.models.train import (
    main,
    run_discriminant_analysis,
    run_knn_classification,
    run_knn_regression,
    save_experiment,
)


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


class TestDiscriminantAnalysis:
    """LDA and QDA on churn data."""

    @pytest.mark.parametrize("kind", ["lda", "qda"])
    def test_run(self, churn_df, kind):
        result = run_discriminant_analysis(churn_df, kind=kind, seed=1)

        assert result.name == kind
        assert list(result.metrics["metric"]) == ["roc_auc", "accuracy", "f_meas", "sensitivity", "specificity"]
        assert result.metric("roc_auc") > 0.7
        assert set(result.figures) == {"roc_curve", "conf_mat"}
        assert len(result.predictions) == 60
        assert result.tuning is None

    def test_unknown_kind(self, churn_df):
        with pytest.raises(ValueError, match="kind must be"):
            run_discriminant_analysis(churn_df, kind="rda")


class TestKnn:
    """Tuned KNN classification and regression."""

    def test_classification(self, churn_df):
        result = run_knn_classification(churn_df, grid=[3, 9, 15], v=3, seed=2)

        assert result.best_params["neighbors"] in (3, 9, 15)
        assert result.workflow.extract_fit_engine().n_neighbors == result.best_params["neighbors"]
        assert set(result.figures) == {"roc_curve", "conf_mat", "tuning"}
        assert len(result.tuning.collect_metrics()) == 3 * 5

    def test_regression(self, home_sales_df):
        result = run_knn_regression(home_sales_df, grid=[3, 7, 15], v=3, seed=2)

        assert result.best_params["neighbors"] in (3, 7, 15)
        assert list(result.metrics["metric"]) == ["rmse", "rsq", "mae"]
        assert result.metric("rsq") > 0.3
        assert set(result.figures) == {"tuning", "r2"}


class TestPersistence:
    """save_experiment and predict_one round trip through the models directory."""

    def test_save_and_predict_classification(self, churn_df, tmp_path):
        result = run_discriminant_analysis(churn_df, kind="lda", seed=1)
        metadata = save_experiment(result, models_dir=str(tmp_path))

        assert (tmp_path / "lda.joblib").exists()
        assert (tmp_path / "figures" / "lda_roc_curve.png").exists()
        saved = json.loads((tmp_path / "lda.metadata.json").read_text())
        assert saved["mode"] == "classification"
        assert saved["event"] == "yes"
        assert saved["features"] == metadata["features"]
        assert "roc_auc" in saved["metrics"]

        record = churn_df.drop(columns="canceled_service").iloc[0].to_dict()
        pred = predict_one("lda", record, models_dir=str(tmp_path))
        assert pred["pred_class"] in ("yes", "no")
        assert 0.0 <= pred["probability"] <= 1.0

    def test_predict_uses_retrained_model(self, churn_df, tmp_path):
        """Overwriting a saved experiment changes what predict_one serves."""
        record = churn_df.drop(columns="canceled_service").iloc[0].to_dict()
        save_experiment(run_discriminant_analysis(churn_df, kind="lda", seed=1), models_dir=str(tmp_path))
        first = predict_one("lda", record, models_dir=str(tmp_path))

        flipped = churn_df.copy()
        flipped["canceled_service"] = pd.Categorical(
            np.where(churn_df["canceled_service"] == "yes", "no", "yes"), categories=["yes", "no"]
        )
        retrained = run_discriminant_analysis(flipped, kind="lda", seed=1)
        save_experiment(retrained, models_dir=str(tmp_path))
        second = predict_one("lda", record, models_dir=str(tmp_path))

        expected = retrained.workflow.predict(churn_df.iloc[[0]])["pred_yes"].iloc[0]
        assert second["probability"] == pytest.approx(expected)
        assert second["probability"] != pytest.approx(first["probability"])

    def test_predict_with_missing_features(self, home_sales_df, tmp_path):
        result = run_knn_regression(home_sales_df, grid=[5], v=3, seed=2)
        save_experiment(result, models_dir=str(tmp_path))

        pred = predict_one("knn_regression", {"sqft_living": 2100, "city": "Bellevue"}, models_dir=str(tmp_path))
        assert pred["pred"] > 0

    def test_missing_model(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="Run `python -m discrim_knn.models.train"):
            load_workflow("lda", str(tmp_path / "empty"))


class TestCli:
    """Command-line entry point."""

    def test_unknown_experiment(self):
        with pytest.raises(SystemExit):
            main(["svm"])

    def test_runs_selected_experiment(self, churn_df, monkeypatch, capsys):
        monkeypatch.setitem(train.EXPERIMENTS, "lda", (lambda use_cache=True: churn_df,
                                                       lambda df: run_discriminant_analysis(df, kind="lda")))
        results = main(["lda", "--no-save"])

        assert list(results) == ["lda"]
        assert "== lda ==" in capsys.readouterr().out
