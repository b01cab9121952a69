"""Abstract base class for deploy providers.

A provider runs a fixed pipeline:

    validate -> login -> deploy -> finish

Only deploy is required. finish runs whenever validate has passed, even
if login or deploy failed, so providers can clean up credentials.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar

from pydantic import BaseModel


class PublishStatus(Enum):
    """Status of a deploy run."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class PublishResult:
    """Result of a deploy run.

    Attributes:
        status: Overall status
        message: Brief description
        registry_url: Registry the provider published to
        package_url: Direct URL to the published package
        version: Version that was published
        details: Extended information
    """

    status: PublishStatus
    message: str
    registry_url: str | None = None
    package_url: str | None = None
    version: str | None = None
    details: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == PublishStatus.SUCCESS

    @classmethod
    def success(
        cls,
        message: str,
        registry_url: str | None = None,
        package_url: str | None = None,
        version: str | None = None,
    ) -> "PublishResult":
        return cls(
            status=PublishStatus.SUCCESS,
            message=message,
            registry_url=registry_url,
            package_url=package_url,
            version=version,
        )

    @classmethod
    def failed(
        cls,
        message: str,
        details: str | None = None,
    ) -> "PublishResult":
        return cls(
            status=PublishStatus.FAILED,
            message=message,
            details=details,
        )


@dataclass
class PublishContext:
    """Run-wide settings shared by every provider step."""

    project_root: Path
    dry_run: bool = False
    verbose: bool = False


class Publisher(ABC):
    """Abstract base class for all deploy providers.

    Subclasses declare their config model and are constructed with a
    validated instance of it.
    """

    name: ClassVar[str]
    display_name: ClassVar[str]
    registry_name: ClassVar[str]
    config_model: ClassVar[type[BaseModel]]

    def __init__(self, config: Any) -> None:
        self.config = config

    def validate(self, context: PublishContext) -> None:
        """Check inputs before any network or shell work.

        Raises:
            DeployError: If the provider cannot run
        """

    def login(self, context: PublishContext) -> None:
        """Authenticate with the registry. Optional."""

    @abstractmethod
    def deploy(self, context: PublishContext) -> PublishResult:
        """Publish to the registry.

        Args:
            context: Run context

        Returns:
            PublishResult describing what was published

        Raises:
            DeployError: On the first failing step
        """

    def finish(self, context: PublishContext) -> None:
        """Clean up after the run. Optional; must not raise for missing state."""


class PublisherRegistry:
    """Registry for provider implementations, keyed by name."""

    _publishers: dict[str, type[Publisher]] = {}

    @classmethod
    def register(cls, publisher_class: type[Publisher]) -> type[Publisher]:
        """Register a publisher class.

        Can be used as a decorator:
            @PublisherRegistry.register
            class NPMPublisher(Publisher):
                ...

        Raises:
            TypeError: If publisher_class is missing required attributes
            ValueError: If a publisher with the same name is already registered
        """
        required_attrs = ["name", "display_name", "registry_name", "config_model"]
        missing = [attr for attr in required_attrs if not hasattr(publisher_class, attr)]
        if missing:
            raise TypeError(
                f"Publisher class {publisher_class.__name__} missing required "
                f"class attributes: {', '.join(missing)}."
            )

        name = publisher_class.name
        if not isinstance(name, str) or not name:
            raise TypeError(
                f"Publisher {publisher_class.__name__}.name must be a non-empty string, "
                f"got {type(name).__name__}: {name!r}"
            )

        if name in cls._publishers:
            existing = cls._publishers[name]
            if existing is not publisher_class:
                raise ValueError(
                    f"Publisher name '{name}' already registered by {existing.__name__}. "
                    f"Cannot register {publisher_class.__name__}."
                )
            return publisher_class

        cls._publishers[name] = publisher_class
        return publisher_class

    @classmethod
    def get(cls, name: str) -> type[Publisher] | None:
        return cls._publishers.get(name)

    @classmethod
    def list_registered(cls) -> list[str]:
        return list(cls._publishers.keys())
