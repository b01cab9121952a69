"""Pytest fixtures for deploy provider tests.

Provides common fixtures for:
- Temporary project directories
- Descriptor files
- A recording stand-in for the HTTP client
- An isolated home directory for ~/.npmrc
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from deploy.utils.http import HttpResponse


class FakeClient:
    """Records requests and answers with canned status codes.

    HEAD requests answer from head_status (default 404); POST and PUT
    answer from write_status (default 201) unless a path-specific status
    is set in statuses.
    """

    def __init__(
        self,
        head_status: int = 404,
        write_status: int = 201,
        statuses: dict[str, int] | None = None,
    ) -> None:
        self.head_status = head_status
        self.write_status = write_status
        self.statuses = statuses or {}
        self.calls: list[tuple[str, str, Any]] = []
        self.base_url = "https://api.bintray.com"

    def url_for(self, path: str) -> str:
        return self.base_url + path

    def head(self, path: str) -> HttpResponse:
        self.calls.append(("HEAD", path, None))
        return HttpResponse(self.statuses.get(path, self.head_status), "")

    def post_json(self, path: str, payload: Any = None) -> HttpResponse:
        self.calls.append(("POST", path, payload))
        return HttpResponse(self.statuses.get(path, self.write_status), "Created")

    def put(self, path: str, body: bytes) -> HttpResponse:
        self.calls.append(("PUT", path, body))
        return HttpResponse(self.statuses.get(path, self.write_status), "Created")

    def requests(self, method: str) -> list[tuple[str, str, Any]]:
        return [call for call in self.calls if call[0] == method]


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Temporary directory for tests (cleanup handled by pytest)."""
    return tmp_path


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """Create a temporary project directory."""
    project = temp_dir / "test-project"
    project.mkdir()
    return project


@pytest.fixture
def write_descriptor(project_dir: Path) -> Callable[..., Path]:
    """Factory writing a descriptor file into the project directory.

    Returns:
        Function taking the descriptor dict (and optional file name)
        and returning the written path
    """

    def _write(data: dict[str, Any], name: str = "bintray.json") -> Path:
        path = project_dir / name
        path.write_text(json.dumps(data, indent=2))
        return path

    return _write


@pytest.fixture
def minimal_descriptor() -> dict[str, Any]:
    """Descriptor with only the required records and publishing enabled."""
    return {
        "package": {"name": "p", "subject": "s", "repo": "r"},
        "version": {"name": "1.0"},
        "publish": True,
    }


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def home_dir(temp_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at a temporary directory so ~/.npmrc is isolated."""
    home = temp_dir / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home
