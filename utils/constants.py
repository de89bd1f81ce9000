# utils/constants.py

# --- Top-Level Result Directories ---
# Sequentially numbered for proper sorting with clear, self-explanatory names

CONFIG_DIR = "01_RunConfiguration"          # Run config, metadata, seeds
DATA_INTEGRITY_DIR = "02_DataQualityChecks"  # Column stats, correlation matrix
MASTER_SPLITS_DIR = "03_MasterDataSplits"    # Single train/test split
GRID_SEARCH_DIR = "04_HyperparameterGridSearch"  # Ranked configurations per target
FINAL_MODEL_DIR = "05_FinalModelTraining"    # Retraining metadata per target
EVALUATION_DIR = "06_TestSetEvaluation"      # Test predictions per target
REPORTING_DIR = "07_ResultsSummary"          # Final results table

# Canonical list used when building the base results structure (in order).
TOP_LEVEL_RESULT_DIRS = [
    CONFIG_DIR,
    DATA_INTEGRITY_DIR,
    MASTER_SPLITS_DIR,
    GRID_SEARCH_DIR,
    FINAL_MODEL_DIR,
    EVALUATION_DIR,
    REPORTING_DIR,
]

# --- File Names ---
CONFIG_USED_FILE = "config_used.json"
CONFIG_HASH_FILE = "config_hash.txt"
RUN_METADATA_FILE = "run_metadata.json"
RANKED_CONFIGS_FILE = "ranked_configurations.parquet"
BEST_CONFIG_FILE = "best_configuration.json"
RESULTS_TABLE_FILE = "rmse_results.parquet"

# --- ENB2012 Dataset Columns ---
FEATURE_COLUMNS = ["X1", "X2", "X3", "X4", "X5", "X6", "X7", "X8"]
CATEGORICAL_COLUMNS = ["X6", "X8"]  # Orientation, glazing area distribution
HEATING_LOAD = "Y1"
COOLING_LOAD = "Y2"

# --- Reference Search Defaults ---
DEFAULT_BACKEND = "random_forest"
DEFAULT_GRID = {
    "ntrees": [50, 100, 120],
    "max_depth": [40, 60],
    "min_rows": [1, 2],
}
DEFAULT_CV_FOLDS = 10
DEFAULT_TRAIN_RATIO = 0.8
DEFAULT_SEED = 42

# --- Score Record Status ---
STATUS_SCORED = "scored"
STATUS_UNSCORED = "unscored"
