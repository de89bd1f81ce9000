import numpy as np

from utils.exceptions import EmptyEvaluationSet, EvaluationError


def compute_rmse(actual, predicted) -> float:
    """
    Root-mean-squared error: sqrt(mean((predicted - actual)^2)).
    """
    actual = np.asarray(actual, dtype=float).ravel()
    predicted = np.asarray(predicted, dtype=float).ravel()

    if actual.size == 0:
        raise EmptyEvaluationSet("RMSE is undefined on zero rows.")
    if actual.shape != predicted.shape:
        raise EvaluationError(
            f"Prediction count ({predicted.size}) does not match actual count ({actual.size})."
        )

    return float(np.sqrt(np.mean((predicted - actual) ** 2)))
