"""
HPO Search Engine
=================

Responsibility:
- Cartesian-product enumeration of the hyperparameter grid in declared order.
- k-fold cross-validated RMSE per configuration, folds on a thread pool.
- Stable ranking with enumeration-order tie-break; failed configurations
  recorded unscored and excluded.
- Ranked summary table and best configuration artifacts per target.
"""

from .grid import Configuration, HyperparameterGrid, ScoreRecord, SearchResult
from .hpo_search_engine import GridSearchEngine

__all__ = ['Configuration', 'HyperparameterGrid', 'ScoreRecord', 'SearchResult', 'GridSearchEngine']
