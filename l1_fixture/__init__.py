"""
L1 Fixture Builder

Starts a local development node in Docker, funds the well-known test
accounts, deploys contracts against it with an external deployer binary and
snapshots the result into a tagged image plus an environment file.
"""

from .builder import BuildResult, FixtureBuilder
from .utils.config_manager import FixtureConfig, load_config

__version__ = "0.1.0"

__all__ = [
    "BuildResult",
    "FixtureBuilder",
    "FixtureConfig",
    "load_config",
]
