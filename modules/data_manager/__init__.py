"""
Data Manager Module
===================

Responsibility:
- Loading of the raw building envelope table (CSV, Excel, Parquet).
- Validation of required columns and finite values.
- Typed, immutable Dataset with fixed categorical levels.
- Column statistics and correlation matrix for exploratory analysis.
"""

from .dataset import Dataset
from .data_manager import DataManager

__all__ = ['Dataset', 'DataManager']
