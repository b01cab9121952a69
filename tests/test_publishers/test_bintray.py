"""Unit tests for deploy.publishers.bintray.

HTTP calls go through the FakeClient fixture, which records every
request and answers with configurable status codes.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from deploy.config.models import BintrayConfig
from deploy.descriptor import Descriptor
from deploy.exceptions import (
    InvalidFileError,
    MissingFileError,
    RequestFailedError,
    UnexpectedStatusCodeError,
)
from deploy.manifest import Upload
from deploy.publishers.base import PublishContext, PublishStatus
from deploy.publishers.bintray import (
    ArtifactRegistryPublisher,
    BintrayRun,
    append_params,
    build_payload,
)


def make_publisher(client: Any, **options: Any) -> ArtifactRegistryPublisher:
    config = BintrayConfig(user="user", key="secret", file="bintray.json", **options)
    return ArtifactRegistryPublisher(config, client=client)


class TestHelpers:
    def test_build_payload_keeps_allow_listed_non_null_fields(self) -> None:
        descriptor = Descriptor.model_validate(
            {
                "package": {
                    "name": "p",
                    "subject": "s",
                    "repo": "r",
                    "licenses": ["MIT"],
                    "vcs_url": None,
                    "custom": "ignored",
                },
                "version": {"name": "1.0"},
            }
        )

        payload = build_payload(descriptor.package, ("name", "licenses", "vcs_url"))

        assert payload == {"name": "p", "licenses": ["MIT"]}

    def test_append_params(self) -> None:
        assert append_params("/content/a", {"x": 1, "y": "z"}) == "/content/a;x=1;y=z"
        assert append_params("/content/a", None) == "/content/a"


class TestResourceExists:
    @pytest.mark.parametrize(("status", "expected"), [(200, True), (201, True), (404, False)])
    def test_status_mapping(
        self,
        fake_client: Any,
        minimal_descriptor: dict[str, Any],
        status: int,
        expected: bool,
    ) -> None:
        fake_client.head_status = status
        run = BintrayRun(fake_client, Descriptor.model_validate(minimal_descriptor))

        assert make_publisher(fake_client).resource_exists(run, "package") is expected
        assert fake_client.calls == [("HEAD", "/packages/s/r/p", None)]

    def test_unexpected_status_raises(
        self, fake_client: Any, minimal_descriptor: dict[str, Any]
    ) -> None:
        fake_client.head_status = 500
        run = BintrayRun(fake_client, Descriptor.model_validate(minimal_descriptor))

        with pytest.raises(UnexpectedStatusCodeError) as exc_info:
            make_publisher(fake_client).resource_exists(run, "version")

        assert exc_info.value.status == 500
        assert exc_info.value.kind == "version"
        assert fake_client.calls == [("HEAD", "/packages/s/r/p/versions/1.0", None)]


class TestEnsureCreated:
    def test_existing_resource_posts_nothing(
        self, fake_client: Any, minimal_descriptor: dict[str, Any]
    ) -> None:
        fake_client.head_status = 200
        run = BintrayRun(fake_client, Descriptor.model_validate(minimal_descriptor))

        created = make_publisher(fake_client).ensure_created(run, "package")

        assert created is False
        assert fake_client.requests("POST") == []

    def test_missing_resource_posts_once(
        self, fake_client: Any, minimal_descriptor: dict[str, Any]
    ) -> None:
        run = BintrayRun(fake_client, Descriptor.model_validate(minimal_descriptor))

        created = make_publisher(fake_client).ensure_created(run, "package")

        assert created is True
        assert fake_client.requests("POST") == [("POST", "/packages/s/r", {"name": "p"})]

    def test_attributes_posted_separately(self, fake_client: Any) -> None:
        attributes = [{"name": "att1", "values": ["val1"], "type": "string"}]
        descriptor = Descriptor.model_validate(
            {
                "package": {"name": "p", "subject": "s", "repo": "r"},
                "version": {"name": "1.0", "desc": "First", "attributes": attributes},
            }
        )
        run = BintrayRun(fake_client, descriptor)

        make_publisher(fake_client).ensure_created(run, "version")

        assert fake_client.requests("POST") == [
            (
                "POST",
                "/packages/s/r/p/versions",
                {"name": "1.0", "desc": "First", "attributes": attributes},
            ),
            ("POST", "/packages/s/r/p/versions/1.0/attributes", attributes),
        ]

    def test_empty_attributes_still_posted(self, fake_client: Any) -> None:
        """An explicit empty attribute list is sent, only null is skipped."""
        descriptor = Descriptor.model_validate(
            {
                "package": {"name": "p", "subject": "s", "repo": "r", "attributes": []},
                "version": {"name": "1.0"},
            }
        )
        run = BintrayRun(fake_client, descriptor)

        make_publisher(fake_client).ensure_created(run, "package")

        assert fake_client.requests("POST") == [
            ("POST", "/packages/s/r", {"name": "p"}),
            ("POST", "/packages/s/r/p/attributes", []),
        ]

    def test_failed_create_raises(
        self, fake_client: Any, minimal_descriptor: dict[str, Any]
    ) -> None:
        fake_client.write_status = 409
        run = BintrayRun(fake_client, Descriptor.model_validate(minimal_descriptor))

        with pytest.raises(RequestFailedError) as exc_info:
            make_publisher(fake_client).ensure_created(run, "package")

        assert exc_info.value.method == "POST"
        assert exc_info.value.status == 409
        assert exc_info.value.url == "https://api.bintray.com/packages/s/r"


class TestDeploy:
    def test_minimal_pipeline_creates_and_publishes(
        self,
        fake_client: Any,
        project_dir: Path,
        write_descriptor: Callable[..., Path],
        minimal_descriptor: dict[str, Any],
    ) -> None:
        write_descriptor(minimal_descriptor)
        publisher = make_publisher(fake_client)
        context = PublishContext(project_root=project_dir)

        publisher.validate(context)
        result = publisher.deploy(context)

        assert result.status == PublishStatus.SUCCESS
        assert result.version == "1.0"
        assert [(method, path) for method, path, _ in fake_client.calls] == [
            ("HEAD", "/packages/s/r/p"),
            ("POST", "/packages/s/r"),
            ("HEAD", "/packages/s/r/p/versions/1.0"),
            ("POST", "/packages/s/r/p/versions"),
            ("POST", "/content/s/r/p/1.0/publish"),
        ]
        assert fake_client.calls[-1][2] is None

    def test_uploads_signs_and_skips_publish(
        self,
        fake_client: Any,
        project_dir: Path,
        write_descriptor: Callable[..., Path],
    ) -> None:
        (project_dir / "dist").mkdir()
        (project_dir / "dist" / "app.jar").write_bytes(b"jar-bytes")
        write_descriptor(
            {
                "package": {"name": "p", "subject": "s", "repo": "r"},
                "version": {"name": "1.0", "gpgSign": True},
                "files": [
                    {
                        "includePattern": "dist/(.*)\\.jar",
                        "uploadPattern": "lib/$1.jar",
                        "matrixParams": {"override": 1},
                    }
                ],
            }
        )
        fake_client.head_status = 200
        publisher = make_publisher(fake_client, passphrase="gpg-pass")

        publisher.deploy(PublishContext(project_root=project_dir))

        assert fake_client.requests("PUT") == [
            ("PUT", "/content/s/r/p/1.0/lib/app.jar;override=1", b"jar-bytes")
        ]
        assert fake_client.requests("POST") == [
            ("POST", "/gpg/s/r/p/versions/1.0", {"passphrase": "gpg-pass"})
        ]

    def test_sign_without_passphrase_sends_empty_body(
        self,
        fake_client: Any,
        project_dir: Path,
        write_descriptor: Callable[..., Path],
    ) -> None:
        write_descriptor(
            {
                "package": {"name": "p", "subject": "s", "repo": "r"},
                "version": {"name": "1.0", "gpgSign": True},
            }
        )
        fake_client.head_status = 200

        make_publisher(fake_client).deploy(PublishContext(project_root=project_dir))

        assert fake_client.requests("POST") == [("POST", "/gpg/s/r/p/versions/1.0", {})]

    def test_null_gpg_sign_does_not_sign(
        self,
        fake_client: Any,
        project_dir: Path,
        write_descriptor: Callable[..., Path],
    ) -> None:
        write_descriptor(
            {
                "package": {"name": "p", "subject": "s", "repo": "r"},
                "version": {"name": "1.0", "gpgSign": None},
                "publish": None,
            }
        )
        fake_client.head_status = 200

        result = make_publisher(fake_client).deploy(PublishContext(project_root=project_dir))

        assert result.status == PublishStatus.SUCCESS
        assert fake_client.calls == [
            ("HEAD", "/packages/s/r/p", None),
            ("HEAD", "/packages/s/r/p/versions/1.0", None),
        ]

    def test_unreadable_upload_source_raises(
        self,
        fake_client: Any,
        project_dir: Path,
        minimal_descriptor: dict[str, Any],
    ) -> None:
        run = BintrayRun(fake_client, Descriptor.model_validate(minimal_descriptor))
        uploads = [Upload("dist/gone.jar", "gone.jar")]

        with pytest.raises(InvalidFileError, match="dist/gone.jar"):
            make_publisher(fake_client).upload_files(run, uploads, project_dir)

        assert fake_client.requests("PUT") == []

    def test_failed_upload_aborts(
        self,
        fake_client: Any,
        project_dir: Path,
        write_descriptor: Callable[..., Path],
    ) -> None:
        (project_dir / "dist").mkdir()
        (project_dir / "dist" / "a.jar").write_bytes(b"a")
        (project_dir / "dist" / "b.jar").write_bytes(b"b")
        write_descriptor(
            {
                "package": {"name": "p", "subject": "s", "repo": "r"},
                "version": {"name": "1.0"},
                "files": [{"includePattern": "dist/(.*)", "uploadPattern": "$1"}],
                "publish": True,
            }
        )
        fake_client.head_status = 200
        fake_client.statuses["/content/s/r/p/1.0/a.jar"] = 500

        with pytest.raises(RequestFailedError) as exc_info:
            make_publisher(fake_client).deploy(PublishContext(project_root=project_dir))

        assert exc_info.value.method == "PUT"
        assert len(fake_client.requests("PUT")) == 1
        assert fake_client.requests("POST") == []

    def test_dry_run_makes_no_requests(
        self,
        fake_client: Any,
        project_dir: Path,
        write_descriptor: Callable[..., Path],
        minimal_descriptor: dict[str, Any],
    ) -> None:
        write_descriptor(minimal_descriptor)

        result = make_publisher(fake_client).deploy(
            PublishContext(project_root=project_dir, dry_run=True)
        )

        assert result.status == PublishStatus.SUCCESS
        assert "dry run" in result.message
        assert fake_client.calls == []

    def test_validate_missing_descriptor(self, fake_client: Any, project_dir: Path) -> None:
        with pytest.raises(MissingFileError):
            make_publisher(fake_client).validate(PublishContext(project_root=project_dir))
