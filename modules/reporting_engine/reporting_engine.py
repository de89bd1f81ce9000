import logging
import pandas as pd

from modules.base.base_engine import BaseEngine
from modules.reporting_engine.results_table import ResultsTable
from utils.error_handling import handle_engine_errors
from utils.file_io import save_dataframe
from utils import constants

class ReportingEngine(BaseEngine):
    """
    Publishes the final results table for downstream consumers.
    The table is written as-is; nothing is sorted or filtered.
    """

    def __init__(self, config: dict, logger: logging.Logger):
        super().__init__(config, logger)

    def _get_engine_directory_name(self) -> str:
        return constants.REPORTING_DIR

    @handle_engine_errors("Reporting")
    def execute(self, results: ResultsTable) -> pd.DataFrame:
        df = results.to_frame()

        if self.save_artifacts:
            path = save_dataframe(df, self.output_dir / constants.RESULTS_TABLE_FILE, excel_copy=self.excel_copy)
            self.logger.info(f"Results table saved to {path}")

        for entry in results:
            self.logger.info(f"{entry.label}: RMSE = {entry.rmse:.4f}")

        return df
