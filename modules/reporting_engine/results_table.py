import math
from typing import List, NamedTuple, Tuple

import pandas as pd


class ResultEntry(NamedTuple):
    label: str
    rmse: float


class ResultsTable:
    """
    Append-only table of (label, RMSE) pairs, one per target.

    Entries keep the order in which targets were processed; there is no
    way to remove, replace or re-sort them.
    """

    def __init__(self):
        self._entries: List[ResultEntry] = []

    def add(self, label: str, rmse: float) -> ResultEntry:
        if not label:
            raise ValueError("Result label cannot be empty.")
        rmse = float(rmse)
        if not math.isfinite(rmse) or rmse < 0:
            raise ValueError(f"RMSE must be a finite non-negative number, got {rmse}.")
        entry = ResultEntry(label, rmse)
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> Tuple[ResultEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self.entries)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self._entries, columns=['label', 'rmse'])

    def __str__(self) -> str:
        if not self._entries:
            return "(no results)"
        return self.to_frame().to_string(index=False)
