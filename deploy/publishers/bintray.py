"""Bintray artifact publisher.

Publishes files to Bintray through its REST API, driven by a JSON
descriptor (see deploy.descriptor).

Steps:
- Create the package unless it exists
- Create the version unless it exists
- Upload every file matched by the descriptor's upload manifest
- GPG sign the version (if version.gpgSign is set)
- Publish the version (if publish is set)

Any non-2xx response aborts the run. Nothing is retried or rolled back.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, Literal

from rich.console import Console
from rich.markup import escape

from deploy.config.models import BintrayConfig
from deploy.descriptor import Descriptor, load_descriptor
from deploy.exceptions import (
    InvalidFileError,
    MissingFileError,
    RequestFailedError,
    UnexpectedStatusCodeError,
)
from deploy.manifest import Upload, resolve_uploads
from deploy.publishers.base import (
    PublishContext,
    Publisher,
    PublisherRegistry,
    PublishResult,
)
from deploy.utils.http import HttpClient, HttpResponse

console = Console()

ResourceKind = Literal["package", "version"]

PATHS = {
    "packages": "/packages/{subject}/{repo}",
    "package": "/packages/{subject}/{repo}/{package}",
    "package_attrs": "/packages/{subject}/{repo}/{package}/attributes",
    "versions": "/packages/{subject}/{repo}/{package}/versions",
    "version": "/packages/{subject}/{repo}/{package}/versions/{version}",
    "version_attrs": "/packages/{subject}/{repo}/{package}/versions/{version}/attributes",
    "version_sign": "/gpg/{subject}/{repo}/{package}/versions/{version}",
    "version_publish": "/content/{subject}/{repo}/{package}/{version}/publish",
    "version_file": "/content/{subject}/{repo}/{package}/{version}/{target}",
}

# Fields sent when creating a resource; everything else in the record is ignored
PACKAGE_FIELDS = (
    "name",
    "desc",
    "licenses",
    "labels",
    "vcs_url",
    "website_url",
    "issue_tracker_url",
    "public_download_numbers",
    "public_stats",
)
VERSION_FIELDS = (
    "name",
    "desc",
    "released",
    "vcs_tag",
    "github_release_notes_file",
    "github_use_tag_release_notes",
    "attributes",
)

CREATE_PATHS: dict[str, tuple[str, str]] = {
    "package": ("packages", "package_attrs"),
    "version": ("versions", "version_attrs"),
}


def build_payload(record: Any, fields: tuple[str, ...]) -> dict[str, Any]:
    """Copy the allow-listed fields of a record, dropping null values."""
    payload = {}
    for field_name in fields:
        value = getattr(record, field_name, None)
        if value is not None:
            payload[field_name] = value
    return payload


def append_params(path: str, params: dict[str, Any] | None) -> str:
    """Append matrix params to a path as ;key=value segments."""
    segments = [path]
    for key, value in (params or {}).items():
        segments.append(f"{key}={value}")
    return ";".join(segments)


@dataclass
class BintrayRun:
    """Values resolved once at the start of a deploy."""

    client: HttpClient
    descriptor: Descriptor

    def path(self, key: str, **extra: str) -> str:
        return PATHS[key].format(
            subject=self.descriptor.package.subject,
            repo=self.descriptor.package.repo,
            package=self.descriptor.package_name,
            version=self.descriptor.version_name,
            **extra,
        )

    def record(self, kind: ResourceKind) -> Any:
        return self.descriptor.package if kind == "package" else self.descriptor.version


@PublisherRegistry.register
class ArtifactRegistryPublisher(Publisher):
    """Publisher for Bintray repositories.

    Configuration:
        bintray:
            user: bintray-user
            key: api-key
            file: bintray.json
            passphrase: gpg-passphrase  # optional
    """

    name: ClassVar[str] = "bintray"
    display_name: ClassVar[str] = "Bintray"
    registry_name: ClassVar[str] = "bintray.com"
    config_model: ClassVar[type[BintrayConfig]] = BintrayConfig

    config: BintrayConfig

    def __init__(self, config: BintrayConfig, client: HttpClient | None = None) -> None:
        super().__init__(config)
        self._client = client

    def descriptor_path(self, context: PublishContext) -> Path:
        path = Path(self.config.file)
        return path if path.is_absolute() else context.project_root / path

    def validate(self, context: PublishContext) -> None:
        path = self.descriptor_path(context)
        if not path.exists():
            raise MissingFileError(
                f"Missing descriptor file: {path}",
                fix_hint="Pass the path of an existing descriptor with --file",
            )

    def deploy(self, context: PublishContext) -> PublishResult:
        """Create, upload, sign and publish as described by the descriptor.

        Raises:
            InvalidFileError: If the descriptor cannot be parsed
            UnexpectedStatusCodeError: If an existence check fails
            RequestFailedError: If any mutating request fails
        """
        descriptor = load_descriptor(self.descriptor_path(context))

        if context.dry_run:
            return self._plan(descriptor, context)

        client = self._client or HttpClient(
            self.config.url,
            self.config.user,
            self.config.key,
            timeout=self.config.timeout,
        )
        run = BintrayRun(client=client, descriptor=descriptor)

        self.ensure_created(run, "package")
        self.ensure_created(run, "version")
        uploads = resolve_uploads(descriptor.files, context.project_root, warn=_warn)
        self.upload_files(run, uploads, context.project_root)
        if descriptor.version.gpg_sign:
            self.sign_version(run)
        if descriptor.publish:
            self.publish_version(run)

        return PublishResult.success(
            f"Deployed {descriptor.package_name} {descriptor.version_name} "
            f"({len(uploads)} file(s)) to Bintray",
            registry_url=self.config.url,
            package_url=self._package_url(descriptor),
            version=descriptor.version_name,
        )

    def resource_exists(self, run: BintrayRun, kind: ResourceKind) -> bool:
        """Check whether the package or version exists.

        Raises:
            UnexpectedStatusCodeError: For any status other than 200, 201 or 404
        """
        status = run.client.head(run.path(kind)).status
        if status in (200, 201):
            return True
        if status == 404:
            return False
        raise UnexpectedStatusCodeError(status, kind)

    def ensure_created(self, run: BintrayRun, kind: ResourceKind) -> bool:
        """Create the package or version unless it already exists.

        Returns:
            True if the resource was created
        """
        if self.resource_exists(run, kind):
            return False

        record = run.record(kind)
        fields = PACKAGE_FIELDS if kind == "package" else VERSION_FIELDS
        collection_key, attrs_key = CREATE_PATHS[kind]

        console.print(f"Creating {kind} {record.name}")
        self._post(run, run.path(collection_key), build_payload(record, fields))

        if record.attributes is not None:
            console.print(f"Adding attributes for {kind} {record.name}")
            self._post(run, run.path(attrs_key), record.attributes)
        return True

    def upload_files(self, run: BintrayRun, uploads: list[Upload], root: Path) -> None:
        for upload in uploads:
            console.print(f"Uploading file {escape(upload.source)} to {escape(upload.target)}")
            path = append_params(run.path("version_file", target=upload.target), upload.params)
            try:
                body = (root / upload.source).read_bytes()
            except OSError as e:
                raise InvalidFileError(
                    f"Failed to read upload source {upload.source}",
                    details=str(e),
                ) from e
            self._check(run, "PUT", path, run.client.put(path, body))

    def sign_version(self, run: BintrayRun) -> None:
        passphrase = self.config.passphrase
        body = {"passphrase": passphrase} if passphrase else {}
        console.print(f"Signing version {'with' if passphrase else 'without'} passphrase")
        self._post(run, run.path("version_sign"), body)

    def publish_version(self, run: BintrayRun) -> None:
        descriptor = run.descriptor
        console.print(
            f"Publishing version {descriptor.version_name} of package {descriptor.package_name}"
        )
        self._post(run, run.path("version_publish"))

    def _post(self, run: BintrayRun, path: str, payload: Any = None) -> HttpResponse:
        return self._check(run, "POST", path, run.client.post_json(path, payload))

    def _check(
        self, run: BintrayRun, method: str, path: str, response: HttpResponse
    ) -> HttpResponse:
        if not response.ok:
            raise RequestFailedError(
                method,
                run.client.url_for(path),
                response.status,
                details=response.json().get("message"),
            )
        message = response.json().get("message") or ""
        console.print(
            f"[dim]Bintray response: {response.status} {response.reason}. {message}[/dim]"
        )
        return response

    def _plan(self, descriptor: Descriptor, context: PublishContext) -> PublishResult:
        uploads = resolve_uploads(descriptor.files, context.project_root, warn=_warn)
        console.print(
            f"[yellow][DRY RUN][/yellow] Would ensure package {descriptor.package_name} "
            f"and version {descriptor.version_name} exist"
        )
        for upload in uploads:
            console.print(f"[yellow][DRY RUN][/yellow] Would upload {upload.source} to {upload.target}")
        if descriptor.version.gpg_sign:
            console.print("[yellow][DRY RUN][/yellow] Would sign version")
        if descriptor.publish:
            console.print("[yellow][DRY RUN][/yellow] Would publish version")
        return PublishResult.success(
            f"Would deploy {descriptor.package_name} {descriptor.version_name} "
            f"({len(uploads)} file(s)) to Bintray (dry run)",
            registry_url=self.config.url,
            package_url=self._package_url(descriptor),
            version=descriptor.version_name,
        )

    @staticmethod
    def _package_url(descriptor: Descriptor) -> str:
        package = descriptor.package
        return (
            f"https://bintray.com/{package.subject}/{package.repo}/"
            f"{package.name}/{descriptor.version_name}"
        )


def _warn(message: str) -> None:
    console.print(f"[yellow]Warning:[/yellow] {escape(message)}")
