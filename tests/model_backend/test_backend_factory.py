import numpy as np
import pytest
from sklearn.ensemble import RandomForestRegressor

from modules.model_backend import BackendFactory, ModelBackend, SklearnBackend, TrainedModel
from utils.exceptions import BackendNotAcquiredError, TrainingFailure

FEATURES = ["X1", "X2", "X3", "X4", "X5", "X6", "X7", "X8"]


def test_available_backends():
    assert BackendFactory.get_available_backends() == ['random_forest', 'extra_trees', 'linear_regression']


def test_unknown_backend_raises():
    with pytest.raises(ValueError, match="Unknown backend"):
        BackendFactory.create("gbm")


def test_create_returns_unacquired_backend():
    backend = BackendFactory.create("random_forest", seed=1)
    assert isinstance(backend, ModelBackend)
    assert backend.name == "random_forest"
    assert not backend.is_acquired


def test_session_acquires_and_releases():
    backend = BackendFactory.create("random_forest")
    with backend.session() as active:
        assert active is backend
        assert backend.is_acquired
    assert not backend.is_acquired


def test_session_releases_on_error():
    backend = BackendFactory.create("random_forest")
    with pytest.raises(RuntimeError):
        with backend.session():
            raise RuntimeError("boom")
    assert not backend.is_acquired


def test_fit_requires_acquired_backend(building_dataset):
    backend = BackendFactory.create("random_forest")
    with pytest.raises(BackendNotAcquiredError):
        backend.fit(building_dataset.features(FEATURES), building_dataset.target("Y1"), {"ntrees": 5})


def test_fit_on_zero_rows_is_training_failure(building_dataset):
    empty = building_dataset.take([])
    with BackendFactory.create("random_forest").session() as backend:
        with pytest.raises(TrainingFailure):
            backend.fit(empty.features(FEATURES), empty.target("Y1"), {"ntrees": 5})


def test_invalid_params_become_training_failure(building_dataset):
    with BackendFactory.create("random_forest").session() as backend:
        with pytest.raises(TrainingFailure, match="random_forest failed to fit"):
            backend.fit(building_dataset.features(FEATURES), building_dataset.target("Y1"), {"ntrees": 0})


def test_fit_returns_trained_model(building_dataset):
    with BackendFactory.create("random_forest", seed=3).session() as backend:
        model = backend.fit(building_dataset.features(FEATURES), building_dataset.target("Y1"),
                            {"ntrees": 10, "max_depth": 40, "min_rows": 1})

    assert isinstance(model, TrainedModel)
    predictions = model.predict(building_dataset.features(FEATURES))
    assert predictions.shape == (len(building_dataset),)
    assert predictions.dtype == float
    assert np.all(np.isfinite(predictions))


def test_trained_model_survives_release(building_dataset):
    backend = BackendFactory.create("extra_trees", seed=3)
    with backend.session():
        model = backend.fit(building_dataset.features(FEATURES), building_dataset.target("Y2"), {"ntrees": 5})
    assert len(model.predict(building_dataset.features(FEATURES))) == len(building_dataset)


def test_same_seed_gives_same_predictions(building_dataset):
    def fit_predict():
        with BackendFactory.create("random_forest", seed=11).session() as backend:
            model = backend.fit(building_dataset.features(FEATURES), building_dataset.target("Y1"), {"ntrees": 8})
        return model.predict(building_dataset.features(FEATURES))

    np.testing.assert_array_equal(fit_predict(), fit_predict())


def test_grid_names_are_translated():
    backend = SklearnBackend("random_forest", RandomForestRegressor, seed=5, n_jobs=2)
    params = backend._resolve_params({"ntrees": 50, "min_rows": 2, "max_depth": 40, "mtries": 3})

    assert params == {
        "random_state": 5,
        "n_jobs": 2,
        "n_estimators": 50,
        "min_samples_leaf": 2,
        "max_depth": 40,
        "max_features": 3,
    }


def test_unsupported_params_are_dropped():
    backend = BackendFactory.create("linear_regression", seed=5)
    params = backend._resolve_params({"ntrees": 50, "max_depth": 40, "fit_intercept": False})
    assert params == {"n_jobs": 1, "fit_intercept": False}


def test_categorical_columns_are_one_hot_encoded(building_dataset):
    with BackendFactory.create("random_forest").session() as backend:
        pipeline = backend._build(building_dataset.features(FEATURES), {"ntrees": 5})

    assert list(pipeline.named_steps) == ["preprocessor", "regressor"]
    encoder = pipeline.named_steps["preprocessor"].transformers[0][1]
    assert [list(c) for c in encoder.categories] == [[2, 3, 4, 5], [0, 1, 2, 3, 4, 5]]


def test_numeric_only_features_skip_encoding(linear_dataset):
    with BackendFactory.create("linear_regression").session() as backend:
        pipeline = backend._build(linear_dataset.features(["x"]), {})
    assert list(pipeline.named_steps) == ["regressor"]


def test_fold_missing_a_category_still_predicts_it(building_dataset):
    without_x6_5 = [i for i in range(len(building_dataset)) if building_dataset.frame["X6"].iloc[i] != 5]
    train = building_dataset.take(without_x6_5)

    with BackendFactory.create("random_forest", seed=0).session() as backend:
        model = backend.fit(train.features(FEATURES), train.target("Y1"), {"ntrees": 5})

    assert len(model.predict(building_dataset.features(FEATURES))) == len(building_dataset)
