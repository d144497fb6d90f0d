"""Configuration management for the sparsebn packages."""

from .base import BaseConfiguration, Environment
from .sparsebn_config import SparsebnConfig

__all__ = [
    "BaseConfiguration",
    "Environment",
    "SparsebnConfig",
]
