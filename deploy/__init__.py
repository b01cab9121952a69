"""Deploy providers for artifact and package registries."""

__version__ = "0.1.0"

from deploy.exceptions import (
    ConfigurationError,
    DeployError,
    InvalidFileError,
    MissingFileError,
    NetworkError,
    PublishError,
    PublishFailedError,
    RegistryConfigError,
    RequestFailedError,
    UnexpectedStatusCodeError,
)

__all__ = [
    "__version__",
    "DeployError",
    "ConfigurationError",
    "MissingFileError",
    "InvalidFileError",
    "NetworkError",
    "UnexpectedStatusCodeError",
    "RequestFailedError",
    "PublishError",
    "RegistryConfigError",
    "PublishFailedError",
]
