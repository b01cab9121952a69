"""Deploy provider modules."""

# Import publishers to trigger registration
from deploy.publishers import (
    bintray,  # noqa: F401
    npm,  # noqa: F401
)
from deploy.publishers.base import (
    PublishContext,
    Publisher,
    PublisherRegistry,
    PublishResult,
    PublishStatus,
)

__all__ = [
    "PublishContext",
    "Publisher",
    "PublisherRegistry",
    "PublishResult",
    "PublishStatus",
]
