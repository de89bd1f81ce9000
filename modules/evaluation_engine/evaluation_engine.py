import logging
import pandas as pd
from typing import Sequence

from modules.base.base_engine import BaseEngine
from modules.data_manager import Dataset
from modules.evaluation_engine.metrics import compute_rmse
from modules.model_backend import TrainedModel
from utils.error_handling import handle_engine_errors
from utils.exceptions import EmptyEvaluationSet
from utils.file_io import save_dataframe
from utils import constants


class Evaluator:
    """Scores a trained model on a held-out set with known targets."""

    @staticmethod
    def evaluate(model: TrainedModel, dataset: Dataset, features: Sequence[str], target: str) -> float:
        if len(dataset) == 0:
            raise EmptyEvaluationSet("Evaluation set has zero rows.")
        predictions = model.predict(dataset.features(features))
        return compute_rmse(dataset.target(target), predictions)


class EvaluationEngine(BaseEngine):
    """
    Computes the authoritative test-set RMSE of a retrained model and
    stores the per-row predictions for the reporting layer.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)

    def _get_engine_directory_name(self) -> str:
        return constants.EVALUATION_DIR

    @handle_engine_errors("Evaluation")
    def execute(self, model: TrainedModel, test: Dataset, features: Sequence[str], target: str) -> float:
        """
        Score `model` on the untouched test set.

        Raises:
            EmptyEvaluationSet: the test split has zero rows.
        """
        self.logger.info(f"Starting test-set evaluation for '{target}' ({len(test)} rows)...")
        if len(test) == 0:
            raise EmptyEvaluationSet(f"Test set for '{target}' has zero rows; check the train/test split.")

        actual = test.target(target)
        predicted = model.predict(test.features(features))
        rmse = compute_rmse(actual, predicted)

        if self.save_artifacts:
            predictions = pd.DataFrame({
                'row_index': range(len(actual)),
                'actual': actual,
                'predicted': predicted,
                'error': predicted - actual,
            })
            save_dataframe(predictions, self.target_dir(target) / "test_predictions.parquet", excel_copy=self.excel_copy)

        self.logger.info(f"Evaluation complete. {target} test RMSE: {rmse:.4f}")
        return rmse
