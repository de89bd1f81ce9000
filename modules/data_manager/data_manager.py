import pandas as pd
import numpy as np
import logging
from pathlib import Path
from typing import Optional

from modules.data_manager.dataset import Dataset
from utils.exceptions import DataValidationError
from utils.file_io import save_dataframe
from utils.error_handling import handle_engine_errors
from utils import constants

class DataManager:
    """
    Manages loading and validation of the raw building envelope table.

    Produces an immutable `Dataset` with the configured categorical
    columns (orientation and glazing area distribution for ENB2012) and
    writes the column statistics and correlation matrix used for EDA.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        self.config = config
        self.logger = logger
        self.data: Optional[pd.DataFrame] = None
        outputs = self.config.get('outputs', {})
        self.base_dir = Path(outputs.get('base_results_dir', 'results'))
        self.save_artifacts = outputs.get('save_artifacts', True)
        self.excel_copy = outputs.get('save_excel_copy', False)

    @property
    def feature_columns(self):
        return self.config['data'].get('features', constants.FEATURE_COLUMNS)

    @property
    def target_columns(self):
        return [t['column'] for t in self.config['data']['targets']]

    @handle_engine_errors("Data Management")
    def execute(self, run_id: str) -> Dataset:
        """
        Execute complete data loading and validation workflow.

        Args:
            run_id: Unique identifier for the run.

        Returns:
            Dataset: The validated, typed dataset.
        """
        self.logger.info("Starting Data Manager execution...")

        self.load_data()
        self.validate_columns()
        stats_df = self.validate_nan_inf()

        # Correlation is computed on the raw numeric codes, before categorical typing
        corr_df = self.compute_correlations()

        dataset = self.build_dataset(self.data)

        if self.save_artifacts:
            output_dir = self.base_dir / constants.DATA_INTEGRITY_DIR
            save_dataframe(stats_df, output_dir / "column_stats.parquet", excel_copy=self.excel_copy, index=False)
            save_dataframe(corr_df, output_dir / "correlation_matrix.parquet", excel_copy=self.excel_copy, index=True)
            self.logger.info(f"Saved data quality reports to {output_dir}")

        self.logger.info(f"Dataset ready for run {run_id}: {len(dataset)} rows, {len(dataset.columns)} columns")
        return dataset

    def load_data(self) -> pd.DataFrame:
        """
        Load data from the file path specified in config.
        Relative paths are anchored to data/raw under the working directory.
        """
        file_path = Path(self.config['data']['file_path'])
        if not file_path.is_absolute():
            file_path = (Path.cwd() / "data" / "raw" / file_path).resolve()

        if not file_path.exists():
            raise DataValidationError(f"Data file not found: {file_path}")

        self.logger.info(f"Loading data from {file_path}")

        ext = file_path.suffix.lower()
        try:
            if ext == '.xlsx':
                self.data = pd.read_excel(file_path)
            elif ext == '.csv':
                self.data = pd.read_csv(file_path)
            elif ext == '.parquet':
                self.data = pd.read_parquet(file_path)
            else:
                raise DataValidationError(f"Unsupported file extension: {ext}")
        except DataValidationError:
            raise
        except Exception as e:
            raise DataValidationError(f"Failed to load data: {str(e)}")

        # ENB2012 ships trailing empty rows/columns in some distributions
        self.data = self.data.dropna(how='all').dropna(axis=1, how='all')

        if self.data.empty:
            raise DataValidationError("Loaded dataframe is empty.")

        self.logger.info(f"Data loaded successfully. Shape: {self.data.shape}")
        return self.data

    def validate_columns(self) -> None:
        """Ensure all feature and target columns from config exist and are numeric."""
        if self.data is None or self.data.empty:
            raise DataValidationError("Dataframe is empty or None.")

        required = self.feature_columns + self.target_columns
        missing = [col for col in required if col not in self.data.columns]
        if missing:
            raise DataValidationError(f"Missing required columns in dataset: {missing}")

        non_numeric = [col for col in required if not pd.api.types.is_numeric_dtype(self.data[col])]
        if non_numeric:
            raise DataValidationError(f"Columns must be numeric (categoricals are integer coded): {non_numeric}")

    def validate_nan_inf(self) -> pd.DataFrame:
        """Reject NaN and Inf values in used columns and return column statistics."""
        stats = []
        bad_columns = []
        for col in self.feature_columns + self.target_columns:
            series = self.data[col]
            nan_count = int(series.isna().sum())
            inf_count = int(np.isinf(series).sum())

            stats.append({
                'column': col,
                'nan_count': nan_count,
                'inf_count': inf_count,
                'min': series.min(),
                'max': series.max(),
                'mean': series.mean(),
                'std': series.std(),
            })

            if nan_count or inf_count:
                self.logger.error(f"Column '{col}' contains {nan_count} NaNs and {inf_count} infinite values.")
                bad_columns.append(col)

        if bad_columns:
            raise DataValidationError(f"Non-finite values found in columns: {bad_columns}")

        return pd.DataFrame(stats)

    def compute_correlations(self) -> pd.DataFrame:
        """Pearson correlation across features and targets."""
        columns = self.feature_columns + self.target_columns
        return self.data[columns].corr()

    def build_dataset(self, df: pd.DataFrame) -> Dataset:
        columns = self.feature_columns + self.target_columns
        categorical = self.config['data'].get('categorical_features', [])
        return Dataset(df[columns], categorical_columns=categorical)
