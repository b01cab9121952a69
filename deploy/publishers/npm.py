"""npm Registry publisher.

Publishes the package in the project root with the npm CLI, authenticating
through a temporary ~/.npmrc.

Steps:
- login: write ~/.npmrc with the API key, point npm at the registry
- deploy: npm publish [--access ...] [--tag ...]
- finish: remove ~/.npmrc
"""

import json
import urllib.parse
from pathlib import Path
from typing import Any, ClassVar

from rich.console import Console

from deploy.config.models import NPMConfig
from deploy.exceptions import PublishFailedError, RegistryConfigError
from deploy.publishers.base import (
    PublishContext,
    Publisher,
    PublisherRegistry,
    PublishResult,
)
from deploy.utils.shell import ShellError, obfuscate, run

console = Console()

DEFAULT_REGISTRY = "registry.npmjs.org"
NPMRC = "~/.npmrc"


def get_package_json(project_root: Path) -> dict[str, Any] | None:
    """Parse package.json from project root.

    Returns:
        Parsed package.json dict, or None if not found or invalid
    """
    package_json_path = project_root / "package.json"
    if not package_json_path.exists():
        return None

    try:
        with open(package_json_path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return None
    return data if isinstance(data, dict) else None


def resolve_registry(explicit: str | None, project_root: Path) -> str:
    """Resolve the registry to publish to.

    Precedence: explicit config value, then the host of
    publishConfig.registry in package.json, then registry.npmjs.org.
    """
    if explicit:
        return explicit
    package_json = get_package_json(project_root) or {}
    publish_config = package_json.get("publishConfig")
    url = publish_config.get("registry") if isinstance(publish_config, dict) else None
    if isinstance(url, str) and url:
        host = urllib.parse.urlparse(url).hostname
        if host:
            return host
    return DEFAULT_REGISTRY


def registry_url(registry: str) -> str:
    """Registry as a URL, adding https:// to a bare host."""
    return registry if "://" in registry else f"https://{registry}"


def registry_host(registry: str) -> str:
    """Registry with the https:// prefix and trailing slash removed."""
    host = registry[len("https://"):] if registry.startswith("https://") else registry
    return host.rstrip("/")


def npmrc_path() -> Path:
    return Path(NPMRC).expanduser()


def is_legacy_npm(npm_version: str) -> bool:
    """npm 1.x only understands _auth/email credentials."""
    return npm_version.strip().split(".", 1)[0] == "1"


def render_npmrc(npm_version: str, api_key: str, email: str | None, registry: str) -> str:
    if is_legacy_npm(npm_version):
        return f"_auth = {api_key}\nemail = {email or ''}"
    return f"//{registry_host(registry)}/:_authToken={api_key}"


def read_npmrc(path: Path) -> dict[str, str]:
    """Parse an npmrc file into key/value pairs.

    Lines without "=" and comment lines are ignored.
    """
    values = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith((";", "#")) or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip()
    return values


@PublisherRegistry.register
class PackageRegistryPublisher(Publisher):
    """Publisher for npm registries.

    Configuration:
        npm:
            api_key: npm-token
            email: me@example.com  # used by npm 1.x only
            access: public         # or 'private'
            registry: registry.example.com
            tag: next
    """

    name: ClassVar[str] = "npm"
    display_name: ClassVar[str] = "npm Registry"
    registry_name: ClassVar[str] = "npmjs.com"
    config_model: ClassVar[type[NPMConfig]] = NPMConfig

    config: NPMConfig

    def registry(self, context: PublishContext) -> str:
        return resolve_registry(self.config.registry, context.project_root)

    def npm_version(self, context: PublishContext) -> str:
        try:
            result = run(
                ["npm", "--version"],
                cwd=context.project_root,
                timeout=self.config.timeout,
            )
        except ShellError as e:
            raise RegistryConfigError(
                "Failed to determine npm version",
                details=str(e),
                fix_hint="Install Node.js and npm",
            ) from e
        return result.stdout.strip()

    def publish_args(self) -> list[str]:
        args = []
        if self.config.access:
            args.extend(["--access", self.config.access])
        if self.config.tag:
            args.extend(["--tag", self.config.tag])
        return args

    def login(self, context: PublishContext) -> None:
        """Write ~/.npmrc and point npm at the registry.

        Raises:
            RegistryConfigError: If npm cannot be run or rejects the registry
        """
        registry = self.registry(context)
        cmd = ["npm", "config", "set", "registry", registry_url(registry)]

        if context.dry_run:
            console.print(f"[yellow][DRY RUN][/yellow] Would write {NPMRC} for {registry}")
            console.print(f"[yellow][DRY RUN][/yellow] Would run: {' '.join(cmd)}")
            return

        npm_version = self.npm_version(context)
        console.print(f"npm version: {npm_version}")
        console.print(f"Authenticated with API key {obfuscate(self.config.api_key)}")

        path = npmrc_path()
        try:
            path.write_text(
                render_npmrc(npm_version, self.config.api_key, self.config.email, registry),
                encoding="utf-8",
            )
        except OSError as e:
            raise RegistryConfigError(
                f"Failed to write {path}",
                details=str(e),
                fix_hint="Check that the home directory exists and is writable",
            ) from e
        console.print(f"{NPMRC} size: {path.stat().st_size}")

        try:
            run(cmd, cwd=context.project_root, timeout=self.config.timeout)
        except ShellError as e:
            raise RegistryConfigError(
                "Failed to set registry config",
                details=str(e),
            ) from e

    def deploy(self, context: PublishContext) -> PublishResult:
        """Run npm publish.

        Raises:
            PublishFailedError: If npm publish fails
        """
        registry = self.registry(context)
        cmd = ["npm", "publish", *self.publish_args()]
        package_json = get_package_json(context.project_root) or {}
        package_name = package_json.get("name")
        version = package_json.get("version")

        if context.dry_run:
            console.print(f"[yellow][DRY RUN][/yellow] Would run: {' '.join(cmd)}")
            return PublishResult.success(
                f"Would publish {package_name or 'package'} to {registry} (dry run)",
                registry_url=registry_url(registry),
                version=version,
            )

        try:
            result = run(
                cmd,
                cwd=context.project_root,
                timeout=self.config.timeout,
                secrets=[self.config.api_key],
            )
        except ShellError as e:
            raise PublishFailedError(
                "Failed pushing to npm",
                details=f"Exit code: {e.returncode}\n{e.stderr or e.stdout}",
            ) from e

        if context.verbose and result.stdout:
            console.print(f"[dim]{result.stdout}[/dim]")

        return PublishResult.success(
            f"Published {package_name or 'package'} to {registry}",
            registry_url=registry_url(registry),
            package_url=f"https://www.npmjs.com/package/{package_name}"
            if package_name and registry == DEFAULT_REGISTRY
            else None,
            version=version,
        )

    def finish(self, context: PublishContext) -> None:
        """Remove ~/.npmrc if it exists."""
        if context.dry_run:
            return
        npmrc_path().unlink(missing_ok=True)
