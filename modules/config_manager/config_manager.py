import json
import os
import hashlib
import sys
import logging
import jsonschema
import psutil  # Required for core-count awareness
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional

from modules.hpo_search_engine.grid import HyperparameterGrid
from modules.model_backend import BackendFactory
from utils.exceptions import ConfigurationError
from utils import constants

class ConfigurationManager:
    """
    Manages system configuration loading, validation, and access.
    Acts as the single source of truth and safety guard for the pipeline.

    Validation happens in four passes: JSON schema, logical rules,
    resource limits (grid size, worker count) and seed propagation.
    """

    # Default Resource Limits (Safety Guardrails)
    DEFAULT_MAX_HPO_CONFIGS = 1000  # Prevent accidental combinatoric explosions

    def __init__(self, config_path: str = "config/config.json",
                 schema_path: str = "config/schema.json"):
        """
        Initialize the ConfigurationManager.

        Args:
            config_path (str): Path to the user configuration JSON.
            schema_path (str): Path to the JSON schema definition.
        """
        self.config_path = config_path
        self.schema_path = schema_path
        self.config: Dict[str, Any] = {}
        self.schema: Dict[str, Any] = {}
        self.run_id: Optional[str] = None
        self.logger = logging.getLogger("config_manager")

    def load_and_validate(self) -> Dict[str, Any]:
        """
        Main entry point. Loads config, validates schema/logic/resources,
        and propagates seeds.

        Returns:
            Dict[str, Any]: The fully validated and hydrated configuration.

        Raises:
            ConfigurationError: If any validation step fails.
        """
        self.config = self._load_json(self.config_path)
        self.schema = self._load_json(self.schema_path)

        self._validate_schema()
        self._validate_logic()
        self._validate_resources()
        self._propagate_seeds()

        return self.config

    def generate_run_id(self) -> str:
        """
        Generate or retrieve a unique run identifier based on timestamp.
        Used for directory naming and metadata.
        """
        if not self.run_id:
            # Format: YYYYMMDD_HHMMSS
            self.run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        return self.run_id

    def save_artifacts(self, output_dir: str) -> None:
        """
        Save configuration artifacts to the run directory for full reproducibility.

        Saves:
        1. config_used.json: The exact config object in memory.
        2. config_hash.txt: SHA256 hash for versioning.
        3. run_metadata.json: Environment details (Python version, Platform, etc.).
        """
        config_dir = Path(output_dir) / constants.CONFIG_DIR
        config_dir.mkdir(parents=True, exist_ok=True)

        with open(config_dir / constants.CONFIG_USED_FILE, 'w') as f:
            json.dump(self.config, f, indent=2)

        config_str = json.dumps(self.config, sort_keys=True)
        config_hash = hashlib.sha256(config_str.encode()).hexdigest()

        with open(config_dir / constants.CONFIG_HASH_FILE, 'w') as f:
            f.write(config_hash)

        metadata = {
            'run_id': self.run_id,
            'start_time': datetime.now().isoformat(),
            'python_version': sys.version,
            'platform': sys.platform,
            'config_hash': config_hash,
            'working_directory': os.getcwd()
        }

        with open(config_dir / constants.RUN_METADATA_FILE, 'w') as f:
            json.dump(metadata, f, indent=2)

    def _load_json(self, path: str) -> Dict[str, Any]:
        """Safely load a JSON file."""
        if not os.path.exists(path):
            raise ConfigurationError(f"File not found: {path}")
        try:
            with open(path, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {path}: {str(e)}")

    def _validate_schema(self) -> None:
        """Validate config structure against JSON schema."""
        try:
            jsonschema.validate(instance=self.config, schema=self.schema)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"Schema validation failed: {e.message}")

    def _validate_logic(self) -> None:
        """Comprehensive logical validation."""
        # --- Data Section ---
        data = self.config.get('data', {})
        features = data.get('features', [])
        if len(set(features)) != len(features):
            raise ConfigurationError("Data 'features' must not contain duplicates.")

        unknown_cats = sorted(set(data.get('categorical_features', [])) - set(features))
        if unknown_cats:
            raise ConfigurationError(f"categorical_features must be a subset of features, unknown: {unknown_cats}")

        target_cols = [t['column'] for t in data.get('targets', [])]
        if len(set(target_cols)) != len(target_cols):
            raise ConfigurationError("Target columns must be unique.")
        overlap = sorted(set(target_cols) & set(features))
        if overlap:
            raise ConfigurationError(f"Target columns cannot also be features: {overlap}")

        # --- Splitting Section ---
        split = self.config.get('splitting', {})
        train_ratio = split.get('train_ratio', constants.DEFAULT_TRAIN_RATIO)
        if not (0.0 < train_ratio < 1.0):
            raise ConfigurationError(f"train_ratio must be between 0 and 1 (exclusive), got {train_ratio}")
        if split.get('seed', constants.DEFAULT_SEED) < 0:
            raise ConfigurationError("Splitting seed must be non-negative.")

        # --- HPO Section ---
        hpo = self.config.get('hyperparameters', {})
        backend = hpo.get('backend', constants.DEFAULT_BACKEND)
        if backend not in BackendFactory.get_available_backends():
            raise ConfigurationError(
                f"Unknown backend '{backend}'. Available: {BackendFactory.get_available_backends()}"
            )

        cv_folds = hpo.get('cv_folds', constants.DEFAULT_CV_FOLDS)
        if cv_folds < 2:
            raise ConfigurationError(f"cv_folds must be >= 2, got {cv_folds}.")

        timeout = hpo.get('fold_timeout_sec')
        if timeout is not None and timeout <= 0:
            raise ConfigurationError(f"fold_timeout_sec must be > 0 when provided, got {timeout}.")

        # --- Execution Section ---
        n_jobs = self.config.get('execution', {}).get('n_jobs', -1)
        if n_jobs == 0 or n_jobs < -1:
            raise ConfigurationError(f"execution.n_jobs must be -1 (all cores) or a positive integer, got {n_jobs}")

    def _validate_resources(self) -> None:
        """
        Calculates total grid size and ensures it fits within safe limits,
        then resolves the worker count against the host's cores.
        """
        resources = self.config.setdefault('resources', {})

        # 1. HPO Grid Explosion Check
        grid = HyperparameterGrid(self.config['hyperparameters']['grid'])
        max_configs = resources.get('max_hpo_configs', self.DEFAULT_MAX_HPO_CONFIGS)

        if grid.size > max_configs:
            raise ConfigurationError(
                f"HPO Grid Explosion Detected! Total configurations ({grid.size}) exceeds "
                f"safety limit ({max_configs}). Reduce grid search space or increase 'resources.max_hpo_configs'."
            )
        self.logger.info(f"HPO Grid Size validated: {grid.size} combinations (Limit: {max_configs})")

        # 2. Worker Count
        execution = self.config.setdefault('execution', {})
        n_cores = psutil.cpu_count(logical=True) or 1
        n_jobs = execution.get('n_jobs', -1)

        if n_jobs == -1:
            n_jobs = n_cores
        elif n_jobs > n_cores:
            self.logger.warning(
                f"Configured n_jobs ({n_jobs}) exceeds available cores ({n_cores}). Clamping to {n_cores}."
            )
            n_jobs = n_cores

        execution['n_jobs'] = n_jobs

    def _propagate_seeds(self) -> None:
        """
        Propagate master seed to internal components to ensure full pipeline reproducibility.
        Uses large, non-overlapping offsets to avoid correlation between components.
        """
        master_seed = self.config['splitting']['seed']

        self.config['_internal_seeds'] = {
            'split': master_seed,
            'cv': master_seed + 1000,
            'model': master_seed + 2000,
        }
        self.logger.debug(f"Seeds propagated from master ({master_seed}): {self.config['_internal_seeds']}")
