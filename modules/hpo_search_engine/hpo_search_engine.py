import logging
import math
import multiprocessing
import threading
from typing import List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from joblib import Parallel, delayed

from modules.base.base_engine import BaseEngine
from modules.data_manager import Dataset
from modules.evaluation_engine import Evaluator
from modules.fold_generator import FoldGenerator
from modules.hpo_search_engine.grid import Configuration, HyperparameterGrid, ScoreRecord, SearchResult
from modules.model_backend import ModelBackend
from utils.error_handling import handle_engine_errors
from utils.exceptions import (
    BackendNotAcquiredError,
    BuildingEnergyMLException,
    DataValidationError,
    EvaluationError,
    TrainingFailure,
)
from utils.file_io import save_dataframe, save_json
from utils import constants

Fold = Tuple[Dataset, Dataset]


class GridSearchEngine(BaseEngine):
    """
    Exhaustive hyperparameter search scored by k-fold cross-validated RMSE.

    Every Configuration is trained on k-1 folds and scored on the held-out
    fold, k times; the mean fold RMSE ranks it. A configuration whose fold
    fails (fit error, non-finite score, timeout or cancellation) is recorded
    unscored and excluded from ranking while the search continues.

    Folds of one configuration run on a joblib thread pool. Ranking is a
    stable sort over enumeration order, so the result does not depend on
    which fold finishes first.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)
        hpo = self.config.get('hyperparameters', {})
        self.cv_folds = hpo.get('cv_folds', constants.DEFAULT_CV_FOLDS)
        self.shuffle_folds = hpo.get('shuffle_folds', True)
        self.fold_timeout = hpo.get('fold_timeout_sec')
        self.n_jobs = self.config.get('execution', {}).get('n_jobs', 1)
        self.cv_seed = self.config.get('_internal_seeds', {}).get(
            'cv', self.config.get('splitting', {}).get('seed', constants.DEFAULT_SEED)
        )

    def _get_engine_directory_name(self) -> str:
        return constants.GRID_SEARCH_DIR

    @handle_engine_errors("Grid Search")
    def execute(self, backend: ModelBackend,
                grid: Union[HyperparameterGrid, Mapping[str, Sequence]],
                train: Dataset,
                features: Sequence[str],
                target: str,
                n_folds: Optional[int] = None,
                fold_generator: Optional[FoldGenerator] = None,
                cancel_event: Optional[threading.Event] = None) -> SearchResult:
        """
        Score every configuration of `grid` for `target`.

        Inputs are validated before any training starts.

        Raises:
            ConfigurationError: empty grid or empty parameter list.
            InvalidFoldCount: k < 2 or k > len(train).
            DataValidationError: zero-row training set or unknown columns.
            BackendNotAcquiredError: backend outside its session.
        """
        if not isinstance(grid, HyperparameterGrid):
            grid = HyperparameterGrid(grid)
        features = list(features)

        if len(train) == 0:
            raise DataValidationError("Training set has zero rows.")
        if not features:
            raise DataValidationError("At least one feature column is required.")
        train.require_columns(features + [target])
        if not backend.is_acquired:
            raise BackendNotAcquiredError(f"Backend '{backend.name}' must be acquired before the search.")

        if fold_generator is None:
            fold_generator = FoldGenerator(
                n_folds or self.cv_folds,
                shuffle=self.shuffle_folds,
                seed=self.cv_seed if self.shuffle_folds else None,
            )
        folds = self._materialize_folds(train, fold_generator)

        self.logger.info(
            f"Grid search for '{target}': {grid.size} configurations x {len(folds)} folds "
            f"on {len(train)} rows (backend={backend.name}, n_jobs={self.n_jobs})"
        )

        records: List[ScoreRecord] = []
        for configuration in grid:
            record = self._score_configuration(backend, configuration, folds, features, target, cancel_event)
            records.append(record)

            if record.is_scored:
                self.logger.debug(f"[{target}] #{configuration.index} {configuration}: CV RMSE {record.cv_rmse:.4f}")
            else:
                self.logger.warning(f"[{target}] #{configuration.index} {configuration} unscored: {record.message}")

            if len(records) % 10 == 0:
                self.logger.info(f"Processed {len(records)}/{grid.size} configs...")

        result = SearchResult(target=target, grid=grid, records=records)

        if result.ranked:
            best = result.best
            self.logger.info(
                f"Best config for '{target}': {best.configuration} "
                f"(CV RMSE: {best.cv_rmse:.4f}, {result.n_failed} failed)"
            )
        else:
            self.logger.error(f"All {grid.size} configurations failed for '{target}'.")

        if self.save_artifacts:
            self._save_results(result)

        return result

    def _materialize_folds(self, train: Dataset, fold_generator: FoldGenerator) -> List[Fold]:
        """Build the read-only (train, holdout) subsets once for all configurations."""
        return [
            (train.take(train_idx), train.take(holdout_idx))
            for train_idx, holdout_idx in fold_generator.split(len(train))
        ]

    def _score_configuration(self, backend: ModelBackend, configuration: Configuration,
                             folds: List[Fold], features: List[str], target: str,
                             cancel_event: Optional[threading.Event]) -> ScoreRecord:
        """Run all folds of one configuration and average their RMSE."""
        try:
            fold_rmses = Parallel(**self._parallel_kwargs())(
                delayed(self._run_single_fold)(backend, configuration, fold, features, target, cancel_event)
                for fold in folds
            )
        except TrainingFailure as e:
            return ScoreRecord.unscored(configuration, str(e))
        except (TimeoutError, multiprocessing.TimeoutError):
            return ScoreRecord.unscored(configuration, f"Fold training exceeded {self.fold_timeout}s timeout.")

        return ScoreRecord(
            configuration=configuration,
            cv_rmse=float(np.mean(fold_rmses)),
            fold_rmses=tuple(fold_rmses),
        )

    def _parallel_kwargs(self) -> dict:
        """
        joblib arguments for one configuration's folds.

        The sequential backend ignores `timeout`, so a configured fold timeout
        always runs on the threading backend with at least two workers.
        """
        if not self.fold_timeout:
            return {'n_jobs': self.n_jobs, 'prefer': "threads"}
        n_workers = self.n_jobs if self.n_jobs == -1 else max(2, self.n_jobs)
        return {'n_jobs': n_workers, 'backend': "threading", 'timeout': self.fold_timeout}

    def _run_single_fold(self, backend: ModelBackend, configuration: Configuration, fold: Fold,
                         features: List[str], target: str,
                         cancel_event: Optional[threading.Event]) -> float:
        """Train on the fold's training part, score on its holdout. The model is discarded."""
        if cancel_event is not None and cancel_event.is_set():
            raise TrainingFailure("Grid search cancelled.")

        train_fold, holdout = fold
        model = backend.fit(train_fold.features(features), train_fold.target(target), configuration.as_dict())

        try:
            rmse = Evaluator.evaluate(model, holdout, features, target)
        except EvaluationError as e:
            raise TrainingFailure(f"Scoring failed for {configuration}: {e}") from e
        except BuildingEnergyMLException:
            raise
        except Exception as e:
            raise TrainingFailure(f"Prediction failed for {configuration}: {e}") from e

        if not math.isfinite(rmse):
            raise TrainingFailure(f"Non-finite fold RMSE ({rmse}).")
        return rmse

    def _save_results(self, result: SearchResult) -> None:
        output_dir = self.target_dir(result.target)
        try:
            save_dataframe(result.to_frame(), output_dir / constants.RANKED_CONFIGS_FILE, excel_copy=self.excel_copy)
        except Exception as e:
            self.logger.warning(f"Failed to save ranked configurations for '{result.target}': {e}")

        if result.ranked:
            best = result.best
            save_json({
                'target': result.target,
                'config_index': best.configuration.index,
                'params': best.configuration.as_dict(),
                'cv_rmse': best.cv_rmse,
                'cv_rmse_std': best.cv_rmse_std,
                'fold_rmses': list(best.fold_rmses),
                'grid': result.grid.to_dict(),
                'n_configurations': len(result.records),
                'n_failed': result.n_failed,
            }, output_dir / constants.BEST_CONFIG_FILE)
