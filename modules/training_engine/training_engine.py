import logging
import time
from typing import Sequence

from modules.base.base_engine import BaseEngine
from modules.data_manager import Dataset
from modules.hpo_search_engine import Configuration
from modules.model_backend import ModelBackend, TrainedModel
from utils.error_handling import handle_engine_errors
from utils.exceptions import ModelTrainingError, TrainingFailure
from utils.file_io import save_json
from utils import constants

class TrainingEngine(BaseEngine):
    """
    Retrains the backend on the full training set with the selected configuration.

    Fold models from the grid search are never reused: they were fitted on
    k-1 folds only. The retrained model is returned in memory; only the
    training metadata is written.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)

    def _get_engine_directory_name(self) -> str:
        return constants.FINAL_MODEL_DIR

    @handle_engine_errors("Training")
    def execute(self, backend: ModelBackend, configuration: Configuration,
                train: Dataset, features: Sequence[str], target: str) -> TrainedModel:
        """
        Train the final model for `target`.

        Returns:
            TrainedModel fitted on every training row.
        """
        features = list(features)
        self.logger.info(f"Retraining {backend.name} for '{target}' on {len(train)} rows with {configuration}")

        start_time = time.time()
        try:
            model = backend.fit(train.features(features), train.target(target), configuration.as_dict())
        except TrainingFailure as e:
            raise ModelTrainingError(f"Final retraining failed for '{target}': {e}") from e
        duration = time.time() - start_time

        self.logger.info(f"Training completed in {duration:.2f} seconds.")

        if self.save_artifacts:
            save_json({
                'target': target,
                'backend': backend.name,
                'config_index': configuration.index,
                'params': configuration.as_dict(),
                'features': features,
                'n_train_rows': len(train),
                'training_time_sec': duration,
                'timestamp': time.strftime("%Y-%m-%d %H:%M:%S")
            }, self.target_dir(target) / "training_metadata.json")

        return model
