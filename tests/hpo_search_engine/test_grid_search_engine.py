import json
import threading
import time

import numpy as np
import pytest
from sklearn.linear_model import LinearRegression

from modules.data_manager import Dataset
from modules.fold_generator import FoldGenerator
from modules.hpo_search_engine import GridSearchEngine, HyperparameterGrid
from modules.model_backend import BackendFactory, ModelBackend
from utils.exceptions import (
    BackendNotAcquiredError,
    ConfigurationError,
    DataValidationError,
    InvalidFoldCount,
    ModelSelectionError,
)
from utils import constants

FEATURES = ["X1", "X2", "X3", "X4", "X5", "X6", "X7", "X8"]
NUMERIC = ["X1", "X2", "X3", "X4", "X5", "X7"]


class BrokenPredictor:
    """Fits fine, then fails at prediction time."""

    def __init__(self, mode):
        self.mode = mode

    def fit(self, features, target):
        return self

    def predict(self, features):
        if self.mode == "raise":
            raise ValueError("predict exploded")
        return np.zeros(len(features) - 1)


class RecordingBackend(ModelBackend):
    """Linear model that ignores grid values, except `degenerate`, `sleep` and `broken`."""

    name = "recording"

    def __init__(self):
        super().__init__()
        self.fit_calls = 0

    def _build(self, features, params):
        self.fit_calls += 1
        if params.get("degenerate"):
            raise ValueError("singular design matrix")
        if params.get("sleep"):
            time.sleep(params["sleep"])
        if params.get("broken"):
            return BrokenPredictor(params["broken"])
        return LinearRegression()


@pytest.fixture
def search_config(tmp_path):
    return {
        'outputs': {'base_results_dir': str(tmp_path)},
        'execution': {'n_jobs': 1},  # Sequential for test stability
        'splitting': {'seed': 42},
        'hyperparameters': {'cv_folds': 3, 'shuffle_folds': True},
        '_internal_seeds': {'split': 42, 'cv': 1042, 'model': 2042},
    }


@pytest.fixture
def rf_backend():
    backend = BackendFactory.create("random_forest", seed=2042)
    with backend.session():
        yield backend


def test_linear_scenario_selects_first_enumerated_configuration(search_config, mock_logger, linear_dataset):
    search_config['hyperparameters']['shuffle_folds'] = False
    engine = GridSearchEngine(search_config, mock_logger)
    grid = {"ntrees": [50, 100], "max_depth": [40], "min_rows": [1]}

    # A linear model fits y = 3x + 2 exactly and ignores the forest parameters,
    # so both configurations score identically and the tie-break decides.
    with BackendFactory.create("linear_regression").session() as backend:
        result = engine.execute(backend, grid, linear_dataset, ["x"], "y", n_folds=2)

    assert len(result.ranked) == 2
    assert all(r.cv_rmse < 1e-8 for r in result.ranked)
    assert result.ranked[0].cv_rmse == result.ranked[1].cv_rmse
    assert result.best.configuration.index == 0
    assert result.best.configuration["ntrees"] == 50


def test_enumerates_every_configuration(search_config, mock_logger, building_dataset, rf_backend):
    engine = GridSearchEngine(search_config, mock_logger)
    grid = HyperparameterGrid({"ntrees": [5, 10], "max_depth": [2, 4], "min_rows": [1, 2]})

    result = engine.execute(rf_backend, grid, building_dataset, FEATURES, "Y1")

    assert len(result.records) == 2 * 2 * 2
    assert result.n_failed == 0
    assert [r.configuration.index for r in result.records] == list(range(8))
    assert all(len(r.fold_rmses) == 3 for r in result.records)


def test_ranked_sequence_is_non_decreasing(search_config, mock_logger, building_dataset, rf_backend):
    engine = GridSearchEngine(search_config, mock_logger)
    grid = {"ntrees": [5, 20], "max_depth": [1, 3, 8]}

    ranked = engine.execute(rf_backend, grid, building_dataset, FEATURES, "Y2").ranked
    scores = [r.cv_rmse for r in ranked]

    assert scores == sorted(scores)
    for earlier, later in zip(ranked, ranked[1:]):
        if earlier.cv_rmse == later.cv_rmse:
            assert earlier.configuration.index < later.configuration.index


def test_score_is_mean_of_fold_rmses(search_config, mock_logger, building_dataset, rf_backend):
    engine = GridSearchEngine(search_config, mock_logger)
    record = engine.execute(rf_backend, {"ntrees": [5]}, building_dataset, FEATURES, "Y1").best

    assert record.cv_rmse == pytest.approx(sum(record.fold_rmses) / len(record.fold_rmses))


def test_search_is_deterministic(search_config, mock_logger, building_dataset):
    grid = {"ntrees": [5, 10], "min_rows": [1, 3]}

    def run():
        with BackendFactory.create("random_forest", seed=7).session() as backend:
            engine = GridSearchEngine(search_config, mock_logger)
            return engine.execute(backend, grid, building_dataset, FEATURES, "Y1")

    first, second = run(), run()
    assert [r.cv_rmse for r in first.records] == [r.cv_rmse for r in second.records]
    assert first.best.configuration == second.best.configuration


def test_parallel_folds_match_sequential(search_config, mock_logger, building_dataset):
    grid = {"ntrees": [5, 10], "max_depth": [3, None]}

    def run(n_jobs):
        config = dict(search_config, execution={'n_jobs': n_jobs})
        with BackendFactory.create("random_forest", seed=7).session() as backend:
            return GridSearchEngine(config, mock_logger).execute(backend, grid, building_dataset, FEATURES, "Y2")

    sequential, parallel = run(1), run(2)
    assert [r.cv_rmse for r in sequential.ranked] == [r.cv_rmse for r in parallel.ranked]
    assert [r.configuration.index for r in sequential.ranked] == [r.configuration.index for r in parallel.ranked]


def test_failed_configuration_is_unscored_and_search_continues(search_config, mock_logger, building_dataset, rf_backend):
    engine = GridSearchEngine(search_config, mock_logger)
    # n_estimators=0 is rejected by scikit-learn at fit time
    result = engine.execute(rf_backend, {"ntrees": [0, 5]}, building_dataset, FEATURES, "Y1")

    failed = result.records[0]
    assert not failed.is_scored
    assert failed.cv_rmse is None
    assert failed.status == constants.STATUS_UNSCORED
    assert failed.message

    assert len(result.ranked) == 1
    assert result.best.configuration["ntrees"] == 5
    assert mock_logger.warning.called


def test_all_configurations_failing_leaves_nothing_to_select(search_config, mock_logger, building_dataset):
    engine = GridSearchEngine(search_config, mock_logger)
    with RecordingBackend().session() as backend:
        result = engine.execute(backend, {"degenerate": [True, 1]}, building_dataset, NUMERIC, "Y1")

    assert result.ranked == []
    assert result.n_failed == 2
    with pytest.raises(ModelSelectionError):
        _ = result.best


def test_fold_count_larger_than_training_set(search_config, mock_logger, building_dataset):
    engine = GridSearchEngine(search_config, mock_logger)
    small = building_dataset.take(range(5))
    backend = RecordingBackend()

    with backend.session():
        with pytest.raises(InvalidFoldCount):
            engine.execute(backend, {"ntrees": [50]}, small, NUMERIC, "Y1", n_folds=10)

    assert backend.fit_calls == 0


@pytest.mark.parametrize("grid", [{}, {"ntrees": []}])
def test_empty_grid_is_rejected_before_training(search_config, mock_logger, building_dataset, grid):
    engine = GridSearchEngine(search_config, mock_logger)
    backend = RecordingBackend()
    with backend.session():
        with pytest.raises(ConfigurationError):
            engine.execute(backend, grid, building_dataset, NUMERIC, "Y1")
    assert backend.fit_calls == 0


def test_zero_row_training_set_is_rejected(search_config, mock_logger, building_dataset):
    engine = GridSearchEngine(search_config, mock_logger)
    empty = building_dataset.take([])
    with RecordingBackend().session() as backend:
        with pytest.raises(DataValidationError):
            engine.execute(backend, {"ntrees": [50]}, empty, NUMERIC, "Y1")


def test_unknown_target_is_rejected(search_config, mock_logger, building_dataset):
    engine = GridSearchEngine(search_config, mock_logger)
    with RecordingBackend().session() as backend:
        with pytest.raises(DataValidationError):
            engine.execute(backend, {"ntrees": [50]}, building_dataset, NUMERIC, "Y9")


def test_backend_must_be_acquired(search_config, mock_logger, building_dataset):
    engine = GridSearchEngine(search_config, mock_logger)
    with pytest.raises(BackendNotAcquiredError):
        engine.execute(RecordingBackend(), {"ntrees": [50]}, building_dataset, NUMERIC, "Y1")


def test_cancelled_search_marks_configurations_unscored(search_config, mock_logger, building_dataset):
    engine = GridSearchEngine(search_config, mock_logger)
    cancel = threading.Event()
    cancel.set()
    backend = RecordingBackend()

    with backend.session():
        result = engine.execute(backend, {"ntrees": [50, 100]}, building_dataset, NUMERIC, "Y1",
                                cancel_event=cancel)

    assert result.n_failed == 2
    assert all("cancelled" in r.message for r in result.records)
    assert backend.fit_calls == 0


@pytest.mark.parametrize("n_jobs", [1, 2])
def test_slow_fold_is_cut_short_by_timeout(search_config, mock_logger, building_dataset, n_jobs):
    search_config['execution']['n_jobs'] = n_jobs
    search_config['hyperparameters']['fold_timeout_sec'] = 0.1
    engine = GridSearchEngine(search_config, mock_logger)

    with RecordingBackend().session() as backend:
        start = time.time()
        result = engine.execute(backend, {"sleep": [1.0, 0]}, building_dataset, NUMERIC, "Y1")
        elapsed = time.time() - start

    assert elapsed < 1.0
    assert not result.records[0].is_scored
    assert "timeout" in result.records[0].message
    assert result.best.configuration.index == 1


@pytest.mark.parametrize("n_jobs, workers", [(1, 2), (2, 2), (4, 4), (-1, -1)])
def test_fold_timeout_uses_threading_workers(search_config, mock_logger, n_jobs, workers):
    search_config['execution']['n_jobs'] = n_jobs
    search_config['hyperparameters']['fold_timeout_sec'] = 5
    kwargs = GridSearchEngine(search_config, mock_logger)._parallel_kwargs()
    assert kwargs == {'n_jobs': workers, 'backend': "threading", 'timeout': 5}


def test_no_timeout_keeps_configured_workers(search_config, mock_logger):
    kwargs = GridSearchEngine(search_config, mock_logger)._parallel_kwargs()
    assert kwargs == {'n_jobs': 1, 'prefer': "threads"}
    assert 'timeout' not in kwargs


@pytest.mark.parametrize("mode", ["raise", "short"])
def test_prediction_failure_marks_only_that_configuration_unscored(search_config, mock_logger,
                                                                   building_dataset, mode):
    engine = GridSearchEngine(search_config, mock_logger)

    with RecordingBackend().session() as backend:
        result = engine.execute(backend, {"broken": [mode, None]}, building_dataset, NUMERIC, "Y1")

    assert result.n_failed == 1
    assert not result.records[0].is_scored
    assert "failed for broken=" in result.records[0].message
    assert result.best.configuration.index == 1


def test_explicit_fold_generator_is_used(search_config, mock_logger, building_dataset):
    engine = GridSearchEngine(search_config, mock_logger)
    with RecordingBackend().session() as backend:
        result = engine.execute(backend, {"ntrees": [50]}, building_dataset, NUMERIC, "Y1",
                                fold_generator=FoldGenerator(4))
    assert len(result.best.fold_rmses) == 4


def test_artifacts_are_written_per_target(search_config, mock_logger, building_dataset, rf_backend, tmp_path):
    engine = GridSearchEngine(search_config, mock_logger)
    engine.execute(rf_backend, {"ntrees": [5, 10]}, building_dataset, FEATURES, "Y1")

    target_dir = tmp_path / constants.GRID_SEARCH_DIR / "Y1"
    assert (target_dir / constants.RANKED_CONFIGS_FILE).exists()

    with open(target_dir / constants.BEST_CONFIG_FILE) as f:
        best = json.load(f)
    assert best['target'] == "Y1"
    assert best['params']['ntrees'] in (5, 10)
    assert best['n_configurations'] == 2


def test_no_artifacts_when_disabled(search_config, mock_logger, linear_dataset, tmp_path):
    search_config['outputs']['save_artifacts'] = False
    engine = GridSearchEngine(search_config, mock_logger)
    with BackendFactory.create("linear_regression").session() as backend:
        engine.execute(backend, {"a": [1]}, linear_dataset, ["x"], "y", n_folds=2)
    assert not (tmp_path / constants.GRID_SEARCH_DIR).exists()
