"""Logging setup for applications built on sparsebn."""

import logging
import sys

from shared.config import Environment, SparsebnConfig

logger = logging.getLogger(__name__)


def resolve_log_level(config: SparsebnConfig) -> int:
    """Pick the log level for a configuration."""
    if config.log_level is not None:
        return getattr(logging, config.log_level)

    if config.environment == Environment.DEVELOPMENT:
        return logging.DEBUG
    return logging.INFO


def setup_logging(config: SparsebnConfig | None = None) -> None:
    """Set up logging configuration."""
    if config is None:
        config = SparsebnConfig()

    log_level = resolve_log_level(config)
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Solver sweeps log at DEBUG; keep them quiet outside development
    if config.log_level is None:
        logging.getLogger("sparsebn.discovery").setLevel(
            logging.DEBUG
            if config.environment == Environment.DEVELOPMENT
            else logging.INFO
        )

    logger.debug("Logging configured with settings %s", config.to_dict())
    for issue in config.validate_configuration():
        logger.warning("Configuration issue: %s", issue)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
