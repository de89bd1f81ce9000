import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional

from joblib import Parallel, delayed

from modules.data_manager import Dataset
from modules.evaluation_engine import EvaluationEngine
from modules.hpo_search_engine import GridSearchEngine, HyperparameterGrid, ScoreRecord, SearchResult
from modules.model_backend import BackendFactory, ModelBackend
from modules.reporting_engine import ResultsTable
from modules.training_engine import TrainingEngine
from utils import constants


@dataclass(frozen=True)
class TargetOutcome:
    """Everything produced for one target: search, selection and test score."""
    target: str
    label: str
    search: SearchResult
    best: ScoreRecord
    test_rmse: float


class ModelSelectionPipeline:
    """
    Orchestrates grid search, final retraining and test evaluation per target.

    The backend is acquired once for the whole run and released afterwards,
    even on failure. Cross-validated scores only rank configurations; the
    reported metric is always the test-set RMSE of the retrained model.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger

        data_cfg = config.get('data', {})
        hpo_cfg = config.get('hyperparameters', {})
        self.features: List[str] = list(data_cfg.get('features', constants.FEATURE_COLUMNS))
        self.targets: List[Dict[str, str]] = list(data_cfg.get('targets', [
            {'column': constants.COOLING_LOAD, 'label': 'Cooling load model (Test Accuracy)'},
            {'column': constants.HEATING_LOAD, 'label': 'Heating load model (Test Accuracy)'},
        ]))
        self.grid = HyperparameterGrid(hpo_cfg.get('grid', constants.DEFAULT_GRID))
        self.backend_name = hpo_cfg.get('backend', constants.DEFAULT_BACKEND)
        self.parallel_targets = config.get('execution', {}).get('parallel_targets', False)
        self.model_seed = config.get('_internal_seeds', {}).get(
            'model', config.get('splitting', {}).get('seed', constants.DEFAULT_SEED)
        )

        self.search_engine = GridSearchEngine(config, logger)
        self.training_engine = TrainingEngine(config, logger)
        self.evaluation_engine = EvaluationEngine(config, logger)

        self.outcomes: List[TargetOutcome] = []

    def build_backend(self) -> ModelBackend:
        return BackendFactory.create(self.backend_name, seed=self.model_seed)

    def run(self, train: Dataset, test: Dataset,
            backend: Optional[ModelBackend] = None,
            cancel_event: Optional[threading.Event] = None) -> ResultsTable:
        """
        Select, retrain and score a model for every configured target.

        Returns:
            ResultsTable with one (label, test RMSE) row per target, in
            declared target order.
        """
        backend = backend or self.build_backend()
        results = ResultsTable()

        self.logger.info(
            f"Model selection over {len(self.targets)} targets, grid of {self.grid.size} configurations "
            f"({', '.join(self.grid.names)})"
        )

        with backend.session():
            if self.parallel_targets and len(self.targets) > 1:
                outcomes = Parallel(n_jobs=len(self.targets), prefer="threads")(
                    delayed(self._process_target)(backend, target_cfg, train, test, cancel_event)
                    for target_cfg in self.targets
                )
            else:
                outcomes = [
                    self._process_target(backend, target_cfg, train, test, cancel_event)
                    for target_cfg in self.targets
                ]

        for outcome in outcomes:
            results.add(outcome.label, outcome.test_rmse)
        self.outcomes = list(outcomes)

        return results

    def _process_target(self, backend: ModelBackend, target_cfg: Dict[str, str],
                        train: Dataset, test: Dataset,
                        cancel_event: Optional[threading.Event]) -> TargetOutcome:
        target, label = target_cfg['column'], target_cfg['label']
        self.logger.info(f"{'=' * 20} {label} [{target}] {'=' * 20}")

        search = self.search_engine.execute(
            backend, self.grid, train, self.features, target, cancel_event=cancel_event
        )
        best = search.best  # ModelSelectionError when every configuration failed

        model = self.training_engine.execute(backend, best.configuration, train, self.features, target)
        test_rmse = self.evaluation_engine.execute(model, test, self.features, target)

        return TargetOutcome(target=target, label=label, search=search, best=best, test_rmse=test_rmse)
