"""
Reporting Engine Module
=======================

Responsibility:
- Append-only (label, RMSE) results table, one row per target.
- Persistence of the table for reporting and plotting layers.
"""

from .results_table import ResultsTable, ResultEntry
from .reporting_engine import ReportingEngine

__all__ = ['ResultsTable', 'ResultEntry', 'ReportingEngine']
