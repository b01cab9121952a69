"""Configuration management for the deploy providers."""

from deploy.config.models import BintrayConfig, DeployConfig, NPMConfig

__all__ = [
    "DeployConfig",
    "BintrayConfig",
    "NPMConfig",
]
