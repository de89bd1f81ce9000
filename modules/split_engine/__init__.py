"""
Split Engine Module
===================

Responsibility:
- Seeded train/test partitioning of the validated dataset.
- Persistence of the master splits for traceability.
"""

from .split_engine import SplitEngine

__all__ = ['SplitEngine']
