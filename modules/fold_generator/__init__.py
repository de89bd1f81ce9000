"""
Fold Generator Module
=====================

Responsibility:
- k-fold assignment of training rows (deterministic or seeded shuffle).
- Validation of the fold count against the training set size.
"""

from .fold_generator import FoldGenerator

__all__ = ['FoldGenerator']
