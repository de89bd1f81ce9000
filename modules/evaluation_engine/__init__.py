"""
Evaluation Engine Module
========================

Responsibility:
- RMSE between predictions and ground truth.
- Test-set scoring of the retrained best model.
"""

from .metrics import compute_rmse
from .evaluation_engine import Evaluator, EvaluationEngine

__all__ = ['compute_rmse', 'Evaluator', 'EvaluationEngine']
