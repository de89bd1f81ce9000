import numpy as np
import pandas as pd
from typing import Dict, Iterable, List, Optional, Sequence

from utils.exceptions import DataValidationError


class Dataset:
    """
    Immutable in-memory table with typed columns.

    Categorical columns are stored as pandas categoricals whose category set
    is fixed at construction, so every subset of the table one-hot encodes to
    the same columns. Subsets produced by `take` are new Datasets; the source
    table is never mutated and never handed out directly.
    """

    def __init__(self, frame: pd.DataFrame,
                 categorical_columns: Iterable[str] = (),
                 categories: Optional[Dict[str, Sequence]] = None):
        if frame.shape[1] == 0:
            raise DataValidationError("Dataset must have at least one column.")

        categorical_columns = list(categorical_columns)
        categories = dict(categories or {})
        data = frame.reset_index(drop=True)

        for col in categorical_columns:
            if col not in data.columns:
                raise DataValidationError(f"Categorical column '{col}' not found in dataset.")

            observed = data[col].dropna().unique()
            known = categories.get(col)
            if known is None:
                known = sorted(observed.tolist())
            unknown = set(observed.tolist()) - set(known)
            if unknown:
                raise DataValidationError(
                    f"Column '{col}' contains values outside its known category set: {sorted(unknown)}"
                )
            data[col] = pd.Categorical(data[col], categories=list(known))
            categories[col] = list(known)

        self._frame = data
        self._categorical = categorical_columns
        self._categories = {col: categories[col] for col in categorical_columns}

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return f"Dataset(rows={len(self)}, columns={self.columns})"

    @property
    def columns(self) -> List[str]:
        return self._frame.columns.tolist()

    @property
    def categorical_columns(self) -> List[str]:
        return list(self._categorical)

    @property
    def numeric_columns(self) -> List[str]:
        return [c for c in self.columns if c not in self._categorical]

    @property
    def categories(self) -> Dict[str, List]:
        return {col: list(values) for col, values in self._categories.items()}

    @property
    def frame(self) -> pd.DataFrame:
        """A copy of the underlying table (cheap under Copy-on-Write)."""
        return self._frame.copy()

    def take(self, indices) -> "Dataset":
        """Return a new Dataset holding only the given row positions."""
        subset = self._frame.iloc[np.asarray(indices, dtype=int)]
        return Dataset(subset, self._categorical, self._categories)

    def require_columns(self, columns: Iterable[str]) -> None:
        missing = [c for c in columns if c not in self._frame.columns]
        if missing:
            raise DataValidationError(f"Missing required columns in dataset: {missing}")

    def features(self, columns: Sequence[str]) -> pd.DataFrame:
        """Feature frame restricted to `columns`, in the given order."""
        columns = list(columns)
        self.require_columns(columns)
        return self._frame[columns].copy()

    def target(self, column: str) -> np.ndarray:
        """Numeric target column as a float array."""
        self.require_columns([column])
        if column in self._categorical:
            raise DataValidationError(f"Target column '{column}' is categorical; a numeric target is required.")
        return self._frame[column].to_numpy(dtype=float)
