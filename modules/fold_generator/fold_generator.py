import numpy as np
from typing import Iterator, Optional, Tuple
from sklearn.model_selection import KFold

from utils.exceptions import InvalidFoldCount


class FoldGenerator:
    """
    Partitions training row indices into k disjoint folds for cross-validation.

    Folds are contiguous blocks of the row order unless `shuffle` is set,
    in which case an explicit seed is required so the assignment is
    reproducible. Fold sizes are floor(N/k) or ceil(N/k).
    """

    def __init__(self, n_folds: int, shuffle: bool = False, seed: Optional[int] = None):
        if n_folds < 2:
            raise InvalidFoldCount(f"Fold count must be >= 2, got {n_folds}.")
        if shuffle and seed is None:
            raise ValueError("A seed is required for shuffled fold assignment.")
        self.n_folds = n_folds
        self.shuffle = shuffle
        self.seed = seed

    def _validate(self, n_rows: int) -> None:
        if self.n_folds > n_rows:
            raise InvalidFoldCount(
                f"Fold count ({self.n_folds}) exceeds the number of training rows ({n_rows})."
            )

    def _kfold(self) -> KFold:
        if self.shuffle:
            return KFold(n_splits=self.n_folds, shuffle=True, random_state=self.seed)
        return KFold(n_splits=self.n_folds)

    def assign(self, n_rows: int) -> np.ndarray:
        """Fold Assignment: array mapping row index -> fold id in [0, k)."""
        self._validate(n_rows)
        assignment = np.empty(n_rows, dtype=int)
        for fold_id, (_, holdout_idx) in enumerate(self._kfold().split(np.arange(n_rows))):
            assignment[holdout_idx] = fold_id
        return assignment

    def split(self, n_rows: int) -> Iterator[Tuple[np.ndarray, np.ndarray]]:
        """Yield (train_idx, holdout_idx) for each fold, in fold order."""
        assignment = self.assign(n_rows)
        for fold_id in range(self.n_folds):
            holdout = assignment == fold_id
            yield np.flatnonzero(~holdout), np.flatnonzero(holdout)
