import abc
import contextlib
import logging
import numpy as np
import pandas as pd
from typing import Any, Iterator, List, Mapping, Optional

from utils.exceptions import BackendNotAcquiredError, TrainingFailure


class TrainedModel:
    """
    Opaque handle on a fitted estimator.

    Only prediction is exposed; the model lives as long as the evaluation
    that needs it.
    """

    def __init__(self, estimator: Any, feature_columns: List[str]):
        self._estimator = estimator
        self.feature_columns = list(feature_columns)

    def predict(self, features: pd.DataFrame) -> np.ndarray:
        return np.asarray(self._estimator.predict(features[self.feature_columns]), dtype=float)


class ModelBackend(abc.ABC):
    """
    Trainable model backend driven by the grid search engine.

    A backend holds whatever process-wide runtime it needs between
    `acquire()` and `release()`; fitting outside that window raises
    `BackendNotAcquiredError`. Use `session()` to scope the lifecycle.
    """

    name = "abstract"

    def __init__(self, seed: Optional[int] = None, n_jobs: int = 1):
        self.seed = seed
        self.n_jobs = n_jobs
        self._acquired = False
        self.logger = logging.getLogger(f"backend.{self.name}")

    @property
    def is_acquired(self) -> bool:
        return self._acquired

    def acquire(self) -> None:
        if self._acquired:
            return
        self._on_acquire()
        self._acquired = True
        self.logger.debug(f"Backend '{self.name}' acquired.")

    def release(self) -> None:
        if not self._acquired:
            return
        try:
            self._on_release()
        finally:
            self._acquired = False
            self.logger.debug(f"Backend '{self.name}' released.")

    @contextlib.contextmanager
    def session(self) -> Iterator["ModelBackend"]:
        self.acquire()
        try:
            yield self
        finally:
            self.release()

    def fit(self, features: pd.DataFrame, target: np.ndarray, params: Mapping[str, Any]) -> TrainedModel:
        """
        Fit a model on `features`/`target` with one hyperparameter configuration.

        Raises:
            BackendNotAcquiredError: backend used outside acquire/release.
            TrainingFailure: the estimator could not be fitted.
        """
        if not self._acquired:
            raise BackendNotAcquiredError(f"Backend '{self.name}' must be acquired before fitting.")
        if len(features) == 0:
            raise TrainingFailure("Cannot fit on zero rows.")

        try:
            estimator = self._build(features, dict(params))
            estimator.fit(features, target)
        except TrainingFailure:
            raise
        except Exception as e:
            raise TrainingFailure(f"{self.name} failed to fit with {dict(params)}: {e}") from e

        return TrainedModel(estimator, list(features.columns))

    def _on_acquire(self) -> None:
        """Hook for backends with an external runtime to start."""

    def _on_release(self) -> None:
        """Hook for backends with an external runtime to shut down."""

    @abc.abstractmethod
    def _build(self, features: pd.DataFrame, params: dict) -> Any:
        """Return an unfitted estimator exposing fit/predict."""
        raise NotImplementedError
