"""
Model Backend Module
====================

Responsibility:
- Backend-agnostic training interface with explicit acquire/release lifecycle.
- scikit-learn implementation with fixed-level one-hot encoding of categoricals.
- Translation of grid parameter names (ntrees, min_rows) to estimator arguments.
"""

from .base import ModelBackend, TrainedModel
from .backend_factory import BackendFactory, SklearnBackend

__all__ = ['ModelBackend', 'TrainedModel', 'BackendFactory', 'SklearnBackend']
