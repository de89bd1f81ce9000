"""
Custom exception hierarchy for the Building Energy Load Prediction System.
"""

class BuildingEnergyMLException(Exception):
    """Base exception for all system errors."""
    pass

class ConfigurationError(BuildingEnergyMLException):
    """Configuration validation failed."""
    pass

class InvalidFoldCount(ConfigurationError):
    """Fold count is below 2 or exceeds the number of training rows."""
    pass

class DataValidationError(BuildingEnergyMLException):
    """Data validation failed."""
    pass

class ModelTrainingError(BuildingEnergyMLException):
    """Model training failed."""
    pass

class TrainingFailure(ModelTrainingError):
    """The backend could not fit a fold (degenerate data, timeout or cancellation)."""
    pass

class BackendNotAcquiredError(ModelTrainingError):
    """A model backend was used outside its acquire/release lifecycle."""
    pass

class EvaluationError(BuildingEnergyMLException):
    """Metric computation failed."""
    pass

class EmptyEvaluationSet(EvaluationError):
    """RMSE requested on zero rows."""
    pass

class ModelSelectionError(BuildingEnergyMLException):
    """No scored configuration is left to select from."""
    pass
