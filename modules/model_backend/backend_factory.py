import inspect
import pandas as pd
from typing import Dict, Any, List, Optional
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import ExtraTreesRegressor, RandomForestRegressor
from sklearn.linear_model import LinearRegression
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder

from modules.model_backend.base import ModelBackend


class SklearnBackend(ModelBackend):
    """
    Backend that fits a scikit-learn regressor behind a one-hot encoder.

    Categorical feature columns are expanded with their full, fixed category
    set so every fold sees identical encoded columns; numeric columns pass
    through untouched.
    """

    # Grid names used by the reference workflow -> scikit-learn names
    PARAM_ALIASES = {
        'ntrees': 'n_estimators',
        'min_rows': 'min_samples_leaf',
        'mtries': 'max_features',
        'sample_rate': 'max_samples',
    }

    def __init__(self, name: str, estimator_class: type,
                 seed: Optional[int] = None, n_jobs: int = 1):
        self.name = name
        self.estimator_class = estimator_class
        super().__init__(seed=seed, n_jobs=n_jobs)

    def _build(self, features: pd.DataFrame, params: dict) -> Pipeline:
        estimator = self.estimator_class(**self._resolve_params(params))

        categorical = [c for c in features.columns if isinstance(features[c].dtype, pd.CategoricalDtype)]
        if not categorical:
            return Pipeline(steps=[("regressor", estimator)])

        encoder_kwargs = {
            "categories": [list(features[c].cat.categories) for c in categorical],
            "handle_unknown": "ignore",
        }
        if "sparse_output" in inspect.signature(OneHotEncoder).parameters:
            encoder_kwargs["sparse_output"] = False
        else:
            encoder_kwargs["sparse"] = False

        preprocessor = ColumnTransformer(
            transformers=[("categorical", OneHotEncoder(**encoder_kwargs), categorical)],
            remainder="passthrough",
        )
        return Pipeline(steps=[("preprocessor", preprocessor), ("regressor", estimator)])

    def _resolve_params(self, params: Dict[str, Any]) -> Dict[str, Any]:
        translated = {self.PARAM_ALIASES.get(k, k): v for k, v in params.items()}
        accepted = self._filter_params(self.estimator_class, translated)

        dropped = sorted(set(translated) - set(accepted))
        if dropped:
            self.logger.debug(f"{self.name} ignores parameters: {dropped}")

        defaults = self._filter_params(self.estimator_class, {'random_state': self.seed, 'n_jobs': self.n_jobs})
        return {**defaults, **accepted}

    @staticmethod
    def _filter_params(model_class, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Remove parameters from `params` that are not accepted by `model_class` constructor.
        """
        sig = inspect.signature(model_class.__init__)

        valid_keys = [
            p.name for p in sig.parameters.values()
            if p.kind in (p.POSITIONAL_OR_KEYWORD, p.KEYWORD_ONLY)
        ]

        # Always allow **kwargs if the model supports it
        has_kwargs = any(p.kind == p.VAR_KEYWORD for p in sig.parameters.values())

        if has_kwargs:
            return params

        return {k: v for k, v in params.items() if k in valid_keys}


class BackendFactory:
    """
    Factory for creating model backends by name.
    Random forest is the reference backend; the others share its interface.
    """

    BACKENDS = {
        'random_forest': RandomForestRegressor,
        'extra_trees': ExtraTreesRegressor,
        'linear_regression': LinearRegression,
    }

    @classmethod
    def create(cls, backend_name: str, seed: Optional[int] = None, n_jobs: int = 1) -> ModelBackend:
        """
        Create and return an (unacquired) backend.
        """
        if backend_name not in cls.BACKENDS:
            raise ValueError(f"Unknown backend name: {backend_name}. Available: {cls.get_available_backends()}")
        return SklearnBackend(backend_name, cls.BACKENDS[backend_name], seed=seed, n_jobs=n_jobs)

    @classmethod
    def get_available_backends(cls) -> List[str]:
        """Return list of all supported backend names."""
        return list(cls.BACKENDS.keys())
