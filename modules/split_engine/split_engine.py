"""
SplitEngine for the Building Energy ML Pipeline.

Partitions the validated dataset into a training set, used for grid search
and final retraining, and an untouched test set used only for the reported
RMSE.
"""
import logging
import numpy as np
from typing import Tuple
from sklearn.model_selection import train_test_split

from modules.base.base_engine import BaseEngine
from modules.data_manager import Dataset
from utils.error_handling import handle_engine_errors
from utils.exceptions import DataValidationError
from utils.file_io import save_dataframe
from utils import constants

class SplitEngine(BaseEngine):
    """
    Splits a Dataset into train/test subsets by a fixed ratio.

    The split is a seeded random permutation, so the same dataset and seed
    always produce the same partition. Both subsets are new Datasets; the
    source is never modified.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)
        split_cfg = self.config.get('splitting', {})
        self.train_ratio = split_cfg.get('train_ratio', constants.DEFAULT_TRAIN_RATIO)
        self.seed = self.config.get('_internal_seeds', {}).get('split', split_cfg.get('seed', constants.DEFAULT_SEED))

    def _get_engine_directory_name(self) -> str:
        return constants.MASTER_SPLITS_DIR

    @handle_engine_errors("Data Splitting")
    def execute(self, dataset: Dataset) -> Tuple[Dataset, Dataset]:
        """
        Execute the splitting workflow.

        Returns:
            train, test Datasets
        """
        self.logger.info("Starting Split Engine execution...")

        train_idx, test_idx = self.split_indices(len(dataset))
        train, test = dataset.take(train_idx), dataset.take(test_idx)

        if self.save_artifacts:
            save_dataframe(train.frame, self.output_dir / "train.parquet", excel_copy=self.excel_copy)
            save_dataframe(test.frame, self.output_dir / "test.parquet", excel_copy=self.excel_copy)

        self.logger.info(f"Splits created: Train={len(train)}, Test={len(test)} (ratio={self.train_ratio}, seed={self.seed})")
        return train, test

    def split_indices(self, n_rows: int) -> Tuple[np.ndarray, np.ndarray]:
        if n_rows == 0:
            raise DataValidationError("Cannot split a dataset with zero rows.")
        if not (0.0 < self.train_ratio < 1.0):
            raise DataValidationError(f"train_ratio must be between 0 and 1 (exclusive), got {self.train_ratio}")

        try:
            train_idx, test_idx = train_test_split(
                np.arange(n_rows),
                train_size=self.train_ratio,
                random_state=self.seed,
                shuffle=True
            )
        except ValueError as e:
            raise DataValidationError(f"Cannot split {n_rows} rows with train_ratio={self.train_ratio}: {e}")

        # Keep original row order inside each subset
        return np.sort(train_idx), np.sort(test_idx)
