"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across catalog and recipe transfer
operations.

Usage:
    from src.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    # Log successful operation
    log_operation(
        logger,
        operation="confirm_import",
        outcome="success",
        cocktail_id=12,
        cocktail_name="Daiquiri",
    )

    # Log a skipped step
    log_operation(
        logger,
        operation="resolve_bottles",
        outcome="category_unresolved",
        level=logging.WARNING,
        bottle_key="havana club 3",
    )
"""

import logging
from typing import Any

LOGGER_PREFIX = "bar_catalog.services"


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger instance with the 'bar_catalog.services' prefix.

    Example:
        >>> logger = get_service_logger(__name__)
        >>> logger.name
        'bar_catalog.services.resolver'
    """
    # Extract just the module name if full path is provided
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"{LOGGER_PREFIX}.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The message is "<operation>: <outcome>"; the context is passed via the
    'extra' parameter for structured logging.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "export_recipe", "preview_import")
        outcome: Outcome description (e.g., "success", "not_found", "error")
        level: Log level (default: INFO). Use DEBUG for verbose/frequent logs.
        **context: Additional context fields (entity IDs, error details, etc.)

    Example:
        >>> log_operation(logger, "export_recipe", "success", cocktail_id=3)
        # Logs: "export_recipe: success" with extra context
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
