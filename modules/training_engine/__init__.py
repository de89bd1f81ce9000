"""
Training Engine Module
======================

Responsibility:
- Retraining of the selected configuration on the full training split.
- Training metadata (parameters, features, timing) per target.
"""

from .training_engine import TrainingEngine

__all__ = ['TrainingEngine']
