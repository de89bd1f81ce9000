import math
from dataclasses import dataclass, field
from itertools import product
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from utils.exceptions import ConfigurationError, ModelSelectionError
from utils import constants


@dataclass(frozen=True)
class Configuration:
    """One point of the search space: a value for every grid parameter."""
    index: int
    values: Tuple[Tuple[str, Any], ...]

    def as_dict(self) -> Dict[str, Any]:
        return dict(self.values)

    def __getitem__(self, name: str) -> Any:
        return self.as_dict()[name]

    def __str__(self) -> str:
        return ", ".join(f"{k}={v}" for k, v in self.values)


class HyperparameterGrid:
    """
    Ordered mapping of parameter name -> candidate values.

    Iteration yields the Cartesian product in declared order: the last
    parameter varies fastest. The enumeration index of each Configuration
    is the tie-break precedence used when ranking.
    """

    def __init__(self, params: Mapping[str, Sequence[Any]]):
        if not params:
            raise ConfigurationError("Hyperparameter grid cannot be empty.")

        self._params: Dict[str, Tuple[Any, ...]] = {}
        for name, values in params.items():
            if isinstance(values, (str, bytes)) or not isinstance(values, (Sequence, np.ndarray)):
                raise ConfigurationError(f"Grid values for '{name}' must be a list, got {type(values).__name__}.")
            if len(values) == 0:
                raise ConfigurationError(f"Grid values for '{name}' cannot be empty.")
            self._params[name] = tuple(values)

    @property
    def names(self) -> List[str]:
        return list(self._params)

    @property
    def size(self) -> int:
        return math.prod(len(v) for v in self._params.values())

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[Configuration]:
        names = self.names
        for index, values in enumerate(product(*self._params.values())):
            yield Configuration(index, tuple(zip(names, values)))

    def to_dict(self) -> Dict[str, List[Any]]:
        return {k: list(v) for k, v in self._params.items()}


@dataclass(frozen=True)
class ScoreRecord:
    """Cross-validated score of one Configuration, or the unscored sentinel."""
    configuration: Configuration
    cv_rmse: Optional[float]
    fold_rmses: Tuple[float, ...] = ()
    status: str = constants.STATUS_SCORED
    message: str = ""

    @property
    def is_scored(self) -> bool:
        return self.status == constants.STATUS_SCORED

    @property
    def cv_rmse_std(self) -> Optional[float]:
        return float(np.std(self.fold_rmses)) if self.is_scored else None

    @classmethod
    def unscored(cls, configuration: Configuration, message: str) -> "ScoreRecord":
        return cls(configuration, None, (), constants.STATUS_UNSCORED, message)


@dataclass
class SearchResult:
    """
    All score records of one grid search, in enumeration order.

    `ranked` holds only scored records ordered by ascending RMSE; equal
    scores keep their enumeration order.
    """
    target: str
    grid: HyperparameterGrid
    records: List[ScoreRecord] = field(default_factory=list)

    def __post_init__(self):
        self.records = sorted(self.records, key=lambda r: r.configuration.index)

    @property
    def ranked(self) -> List[ScoreRecord]:
        return sorted((r for r in self.records if r.is_scored), key=lambda r: r.cv_rmse)

    @property
    def failed(self) -> List[ScoreRecord]:
        return [r for r in self.records if not r.is_scored]

    @property
    def n_failed(self) -> int:
        return len(self.failed)

    @property
    def best(self) -> ScoreRecord:
        ranked = self.ranked
        if not ranked:
            raise ModelSelectionError(
                f"All {len(self.records)} configurations failed for '{self.target}'; no best configuration."
            )
        return ranked[0]

    def to_frame(self) -> pd.DataFrame:
        """Summary table: scored configurations by rank, then unscored ones."""
        rows = []
        ordered = self.ranked + self.failed
        for rank, record in enumerate(ordered, start=1):
            rows.append({
                'rank': rank if record.is_scored else None,
                'config_index': record.configuration.index,
                **record.configuration.as_dict(),
                'cv_rmse': record.cv_rmse,
                'cv_rmse_std': record.cv_rmse_std,
                'status': record.status,
                'message': record.message,
            })
        return pd.DataFrame(rows)
