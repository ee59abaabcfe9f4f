"""Unit tests for model specifications."""

import pytest
from sklearn.discriminant_analysis import LinearDiscriminantAnalysis, QuadraticDiscriminantAnalysis
from sklearn.neighbors import KNeighborsClassifier, KNeighborsRegressor

from discrim_knn.models.specs import (
    ModelSpec,
    discrim_linear,
    discrim_quad,
    is_tune,
    nearest_neighbor,
    tune,
)


class TestModelSpecs:
    """Test suite for spec constructors and build()."""

    def test_discrim_linear(self):
        spec = discrim_linear()
        assert spec.mode == "classification"
        assert isinstance(spec.build(), LinearDiscriminantAnalysis)

    def test_discrim_quad_reg_param(self):
        model = discrim_quad(reg_param=0.2).build()
        assert isinstance(model, QuadraticDiscriminantAnalysis)
        assert model.reg_param == 0.2

    def test_nearest_neighbor_modes(self):
        clf = nearest_neighbor("classification", neighbors=7, weight_func="distance").build()
        reg = nearest_neighbor("regression", neighbors=3).build()
        assert isinstance(clf, KNeighborsClassifier)
        assert clf.n_neighbors == 7 and clf.weights == "distance"
        assert isinstance(reg, KNeighborsRegressor)

    def test_build_new_estimator_each_time(self):
        spec = nearest_neighbor(neighbors=3)
        assert spec.build() is not spec.build()

    def test_tune_placeholder(self):
        spec = nearest_neighbor("regression", neighbors=tune())
        assert is_tune(spec.params["neighbors"])
        assert spec.tunable() == ["neighbors"]
        with pytest.raises(ValueError, match="marked for tuning"):
            spec.build()

    def test_update_returns_new_spec(self):
        spec = nearest_neighbor(neighbors=tune())
        final = spec.update(neighbors=25)
        assert final.build().n_neighbors == 25
        assert spec.tunable() == ["neighbors"]

    def test_update_unknown_param(self):
        with pytest.raises(ValueError, match="Unknown parameters"):
            discrim_linear().update(neighbors=3)

    def test_discriminant_analysis_is_classification_only(self):
        with pytest.raises(ValueError, match="does not support mode"):
            ModelSpec("discrim_linear", "regression", "sklearn")

    def test_invalid_mode(self):
        with pytest.raises(ValueError, match="mode must be"):
            nearest_neighbor("clustering")

    @pytest.mark.parametrize("neighbors", [0, -3, 2.5])
    def test_invalid_neighbors(self, neighbors):
        with pytest.raises(ValueError, match="positive integer"):
            nearest_neighbor(neighbors=neighbors)

    def test_invalid_weight_func(self):
        with pytest.raises(ValueError, match="weight_func"):
            nearest_neighbor(weight_func="optimal")

    def test_whole_float_neighbors_stored_as_int(self):
        spec = nearest_neighbor(neighbors=5.0)
        assert spec.params["neighbors"] == 5
        assert isinstance(spec.params["neighbors"], int)
        assert isinstance(spec.build().n_neighbors, int)
