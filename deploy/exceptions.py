"""Exception hierarchy for the deploy providers.

Exit codes follow Unix conventions:
- 1: General error
- 2: Configuration error (including descriptor files)
- 5: Publish error (registry client commands)
- 7: Network error (HTTP API calls)
"""


class DeployError(Exception):
    """Base exception for all deploy errors.

    Each subclass defines an exit_code for CLI error reporting.
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Brief error message
            details: Detailed explanation of what went wrong
            fix_hint: Suggested command or action to fix the issue
        """
        super().__init__(message)
        self.message = message
        self.details = details
        self.fix_hint = fix_hint

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"\nDetails: {self.details}")
        if self.fix_hint:
            parts.append(f"\nFix: {self.fix_hint}")
        return "".join(parts)


class ConfigurationError(DeployError):
    """Configuration errors.

    Raised when:
    - Config file not found or has invalid syntax (YAML/TOML)
    - Config values fail validation
    - Required provider options are missing
    """

    exit_code = 2


class MissingFileError(ConfigurationError):
    """A required input file (such as the upload descriptor) does not exist."""


class InvalidFileError(ConfigurationError):
    """An input file exists but cannot be parsed or validated."""


class NetworkError(DeployError):
    """Network/API failures.

    Raised when:
    - HTTP requests return an unexpected status
    - Connections fail or time out
    """

    exit_code = 7


class UnexpectedStatusCodeError(NetworkError):
    """An existence check got neither a success nor a 404 response."""

    def __init__(self, status: int, kind: str) -> None:
        super().__init__(
            f"Unexpected HTTP response code {status} while checking if the {kind} exists",
            fix_hint="Check the API URL and that the credentials can read the repository",
        )
        self.status = status
        self.kind = kind


class RequestFailedError(NetworkError):
    """A mutating HTTP request did not return a 2xx status.

    status is None when no response was received at all (connection
    failure or timeout).
    """

    def __init__(
        self,
        method: str,
        url: str,
        status: int | None,
        details: str | None = None,
    ) -> None:
        if status is None:
            message = f"{method} {url} failed without a response"
        else:
            message = f"{method} {url} returned unexpected HTTP response code {status}"
        super().__init__(message, details=details)
        self.method = method
        self.url = url
        self.status = status


class PublishError(DeployError):
    """Registry client failures.

    Raised when:
    - Registry configuration commands fail
    - The publish command fails
    """

    exit_code = 5


class RegistryConfigError(PublishError):
    """Setting the registry client's active registry failed."""


class PublishFailedError(PublishError):
    """The registry client's publish command failed."""
