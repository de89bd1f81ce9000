"""
Model Selection Module
======================

Responsibility:
- Backend lifecycle for the whole run (acquire before search, release after).
- Per-target grid search -> best configuration -> full retrain -> test RMSE.
- Results table in declared target order, optionally with targets in parallel.
"""

from .model_selection import ModelSelectionPipeline, TargetOutcome

__all__ = ['ModelSelectionPipeline', 'TargetOutcome']
