import functools
import logging
from utils.exceptions import BuildingEnergyMLException


def _engine_logger(args) -> logging.Logger:
    owner = args[0] if args else None
    return getattr(owner, 'logger', None) or logging.getLogger()


def handle_engine_errors(operation_name: str):
    """
    Decorator for engine entry points.

    Project exceptions pass through unchanged so callers can tell a bad fold
    count from a failed fit. Anything else is logged with its traceback and
    re-raised as `BuildingEnergyMLException` naming the operation.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except BuildingEnergyMLException as e:
                _engine_logger(args).debug(f"{operation_name} aborted: {type(e).__name__}: {e}")
                raise
            except Exception as e:
                _engine_logger(args).error(f"{operation_name} failed: {e}", exc_info=True)
                raise BuildingEnergyMLException(f"{operation_name} failed: {str(e)}") from e
        return wrapper
    return decorator
