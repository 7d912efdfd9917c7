"""Service-layer guard that turns unexpected failures into ``DatabaseError``."""

from functools import wraps
from typing import Any, Callable, Dict

import structlog
from sqlalchemy.exc import SQLAlchemyError

from app.exceptions import CentraTutorException, DatabaseError, extract_db_error_message

logger = structlog.get_logger()


def handle_database_errors(operation_name: str):
    """
    Decorate an async service function so that it only raises application errors.

    ``CentraTutorException`` subclasses pass through untouched so 4xx answers keep
    their status. Anything else is logged with the operation name and re-raised
    as a 500 ``DatabaseError`` whose message names the operation.

    Args:
        operation_name: Human readable operation, e.g. "generate practice session"
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except CentraTutorException:
                raise
            except SQLAlchemyError as e:
                user_message, technical_details = extract_db_error_message(e)
                logger.error(
                    "Database operation failed",
                    **_error_fields(e, operation_name, func),
                    technical_details=technical_details,
                )
                raise DatabaseError(
                    f"Failed to {operation_name}: {user_message}",
                    operation=operation_name,
                ) from e
            except Exception as e:
                logger.exception(
                    "Unexpected error in service", **_error_fields(e, operation_name, func)
                )
                raise DatabaseError(
                    f"Failed to {operation_name}", operation=operation_name
                ) from e

        return wrapper

    return decorator


def _error_fields(error: Exception, operation: str, func: Callable) -> Dict[str, Any]:
    return {
        "operation": operation,
        "function": func.__qualname__,
        "error_type": type(error).__name__,
        "error_message": str(error),
    }
