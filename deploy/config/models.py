"""Pydantic v2 configuration models for deploy.yml.

These models provide:
- Type-safe provider options
- Automatic validation
- Default values
- Environment variable override support
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

DEFAULT_BINTRAY_URL = "https://api.bintray.com"


class BintrayConfig(BaseModel):
    """Options for the Bintray artifact publisher."""

    user: str = Field(description="Bintray user")
    key: str = Field(description="Bintray API key")
    file: str = Field(description="Path to a descriptor file for the Bintray upload")
    passphrase: str | None = Field(
        default=None,
        description="Passphrase as configured on Bintray (if GPG signing is used)",
    )
    url: str = Field(
        default=DEFAULT_BINTRAY_URL,
        description="Bintray API base URL",
    )
    timeout: int = Field(
        default=60,
        ge=1,
        description="HTTP request timeout in seconds",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("https://", "http://")):
            raise ValueError("url must start with http:// or https://")
        return v.rstrip("/")


class NPMConfig(BaseModel):
    """Options for the npm package publisher."""

    api_key: str = Field(
        description="npm api key (can be retrieved from your local ~/.npmrc file)",
    )
    email: str | None = Field(default=None, description="npm email address")
    access: Literal["public", "private"] | None = Field(
        default=None,
        description="Access level",
    )
    registry: str | None = Field(default=None, description="npm registry url")
    tag: str | None = Field(default=None, description="npm distribution tag to add")
    timeout: int = Field(
        default=300,
        ge=1,
        description="npm command timeout in seconds",
    )


class DeployConfig(BaseSettings):
    """Root configuration model for deploy.yml.

    Supports environment variable overrides with DEPLOY_ prefix.
    Example: DEPLOY_NPM__TAG=next
    """

    bintray: BintrayConfig | None = None
    npm: NPMConfig | None = None
    providers: list[str] = Field(
        default_factory=list,
        description="Providers to run, in order (defaults to every configured section)",
    )

    model_config = {
        "env_prefix": "DEPLOY_",
        "env_nested_delimiter": "__",
    }

    @model_validator(mode="after")
    def check_providers(self) -> "DeployConfig":
        configured = [name for name in ("bintray", "npm") if getattr(self, name)]
        if not self.providers:
            self.providers = configured
            return self
        missing = [name for name in self.providers if name not in configured]
        if missing:
            raise ValueError(
                f"providers lists {', '.join(missing)} without a matching config section"
            )
        return self
