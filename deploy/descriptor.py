"""Bintray upload descriptor parsing.

The descriptor is a JSON document naming the package and version to
create and the local files to upload:

    {
        "package": {"name": "app", "subject": "acme", "repo": "maven"},
        "version": {"name": "1.0.0", "gpgSign": false},
        "files": [
            {"includePattern": "build/libs/(.*\\.jar)", "uploadPattern": "lib/$1"}
        ],
        "publish": true
    }

Keys are normalized to snake_case on load, so `includePattern` and
`include_pattern` are equivalent.
"""

import json
import re
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from deploy.exceptions import InvalidFileError, MissingFileError

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


def snake_case(key: str) -> str:
    """Convert a camelCase key to snake_case."""
    return _CAMEL_BOUNDARY.sub(r"_\1", key).lower()


def normalize_keys(data: Any) -> Any:
    """Normalize the keys of a record (one level deep).

    Nested values such as attribute lists are left untouched.
    """
    if not isinstance(data, dict):
        return data
    return {snake_case(key) if isinstance(key, str) else key: value for key, value in data.items()}


class _Record(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        return normalize_keys(data)


class PackageRecord(_Record):
    """Package to create on Bintray. Identity is (subject, repo, name)."""

    name: str
    subject: str
    repo: str
    desc: str | None = Field(
        default=None, validation_alias=AliasChoices("desc", "description")
    )
    licenses: list[str] | None = None
    labels: list[str] | None = None
    vcs_url: str | None = None
    website_url: str | None = None
    issue_tracker_url: str | None = None
    public_download_numbers: bool | None = None
    public_stats: bool | None = None
    attributes: Any = None


class VersionRecord(_Record):
    """Version to create under the package."""

    name: str
    desc: str | None = Field(
        default=None, validation_alias=AliasChoices("desc", "description")
    )
    released: str | None = None
    vcs_tag: str | None = None
    github_release_notes_file: str | None = None
    github_use_tag_release_notes: bool | None = None
    attributes: Any = None
    gpg_sign: bool | None = None


class FileEntry(_Record):
    """One upload manifest entry mapping local files to remote paths."""

    include_pattern: str
    exclude_pattern: str = ""
    upload_pattern: str
    matrix_params: dict[str, Any] | None = None


class Descriptor(_Record):
    """Parsed descriptor file."""

    package: PackageRecord
    version: VersionRecord
    files: list[FileEntry] = Field(default_factory=list)
    publish: bool | None = None

    @property
    def package_name(self) -> str:
        return self.package.name

    @property
    def version_name(self) -> str:
        return self.version.name


def load_descriptor(path: Path) -> Descriptor:
    """Read and validate a descriptor file.

    Args:
        path: Path to the JSON descriptor

    Returns:
        Parsed Descriptor

    Raises:
        MissingFileError: If the file does not exist
        InvalidFileError: If the file is not valid JSON or not a valid descriptor
    """
    if not path.exists():
        raise MissingFileError(
            f"Missing descriptor file: {path}",
            fix_hint="Pass the path of an existing descriptor with --file",
        )

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
        raise InvalidFileError(
            f"Failed to parse descriptor file {path}",
            details=str(e),
        ) from e

    if not isinstance(data, dict):
        raise InvalidFileError(
            f"Failed to parse descriptor file {path}",
            details=f"Expected a JSON object, got {type(data).__name__}",
        )

    try:
        return Descriptor.model_validate(data)
    except PydanticValidationError as e:
        raise InvalidFileError(
            f"Failed to parse descriptor file {path}",
            details=str(e),
            fix_hint="The descriptor needs package.name, package.subject, package.repo and version.name",
        ) from e
