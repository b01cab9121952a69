"""Command-line interface for the deploy providers.

Provides commands for:
- bintray: Upload and publish artifacts to Bintray
- npm: Publish the current package to an npm registry
- run: Run every provider configured in deploy.yml
- providers: List available providers
"""

from pathlib import Path
from typing import Any

import typer
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.table import Table

from deploy import __version__
from deploy.config.loader import load_config
from deploy.exceptions import ConfigurationError, DeployError
from deploy.publishers import PublishContext, Publisher, PublisherRegistry, PublishResult
from deploy.workflow import DeployWorkflow

app = typer.Typer(
    name="deploy",
    help="Deploy artifacts and packages to registries",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"deploy version {__version__}")
        raise typer.Exit()


def build_config(model: type[BaseModel], **options: Any) -> Any:
    """Validate CLI options against a provider config model.

    Options left unset (None) fall back to the model defaults.

    Raises:
        ConfigurationError: If the options fail validation
    """
    values = {key: value for key, value in options.items() if value is not None}
    try:
        return model(**values)
    except PydanticValidationError as e:
        raise ConfigurationError(
            f"Invalid options for {model.__name__}",
            details=str(e),
            fix_hint="Run with --help to see the required options",
        ) from e


def make_publisher(name: str, **options: Any) -> Publisher:
    """Build a registered provider from CLI options, validated by its config model."""
    publisher_class = PublisherRegistry.get(name)
    if publisher_class is None:
        raise ConfigurationError(f"Unknown provider: {name}")
    return publisher_class(build_config(publisher_class.config_model, **options))


def run_publisher(publisher: Publisher, context: PublishContext) -> PublishResult:
    """Run one provider and print its outcome.

    Raises:
        typer.Exit: With the error's exit code if the run failed
    """
    workflow = DeployWorkflow(publisher=publisher, context=context)
    result = workflow.run()
    if not result.ok:
        console.print(f"\n[red]{publisher.display_name} deploy failed.[/red]")
        code = workflow.error.exit_code if workflow.error else 1
        raise typer.Exit(code=code)
    if result.package_url:
        console.print(f"[dim]{result.package_url}[/dim]")
    return result


@app.callback()
def main(
    version: bool = typer.Option(  # noqa: B008
        False,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Deploy artifacts and packages to registries."""


@app.command()
def bintray(
    user: str | None = typer.Option(  # noqa: B008
        None, "--user", envvar="BINTRAY_USER", help="Bintray user"
    ),
    key: str | None = typer.Option(  # noqa: B008
        None, "--key", envvar="BINTRAY_KEY", help="Bintray API key"
    ),
    file: str | None = typer.Option(  # noqa: B008
        None,
        "--file",
        envvar="BINTRAY_FILE",
        help="Path to a descriptor file for the Bintray upload",
    ),
    passphrase: str | None = typer.Option(  # noqa: B008
        None,
        "--passphrase",
        envvar="BINTRAY_PASSPHRASE",
        help="Passphrase as configured on Bintray (if GPG signing is used)",
    ),
    url: str | None = typer.Option(  # noqa: B008
        None, "--url", envvar="BINTRAY_URL", help="Bintray API base URL"
    ),
    dry_run: bool = typer.Option(  # noqa: B008
        False, "--dry-run", "-n", help="Show what would be done without making changes"
    ),
    verbose: bool = typer.Option(  # noqa: B008
        False, "--verbose", "-v", help="Show detailed output"
    ),
) -> None:
    """Upload files to Bintray as described by a descriptor file.

    Examples:
        deploy bintray --user me --key $KEY --file bintray.json
        deploy bintray --file bintray.json --dry-run
    """
    try:
        publisher = make_publisher(
            "bintray",
            user=user,
            key=key,
            file=file,
            passphrase=passphrase,
            url=url,
        )
        context = PublishContext(project_root=Path.cwd(), dry_run=dry_run, verbose=verbose)
        run_publisher(publisher, context)
    except DeployError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None


@app.command()
def npm(
    api_key: str | None = typer.Option(  # noqa: B008
        None,
        "--api-key",
        envvar="NPM_API_KEY",
        help="npm api key (can be retrieved from your local ~/.npmrc file)",
    ),
    email: str | None = typer.Option(  # noqa: B008
        None, "--email", envvar="NPM_EMAIL", help="npm email address"
    ),
    access: str | None = typer.Option(  # noqa: B008
        None, "--access", envvar="NPM_ACCESS", help="Access level (public or private)"
    ),
    registry: str | None = typer.Option(  # noqa: B008
        None, "--registry", envvar="NPM_REGISTRY", help="npm registry url"
    ),
    tag: str | None = typer.Option(  # noqa: B008
        None, "--tag", envvar="NPM_TAG", help="npm distribution tag to add"
    ),
    dry_run: bool = typer.Option(  # noqa: B008
        False, "--dry-run", "-n", help="Show what would be done without making changes"
    ),
    verbose: bool = typer.Option(  # noqa: B008
        False, "--verbose", "-v", help="Show detailed output"
    ),
) -> None:
    """Publish the package in the current directory to an npm registry.

    Examples:
        deploy npm --api-key $NPM_TOKEN
        deploy npm --api-key $NPM_TOKEN --access public --tag next
    """
    try:
        publisher = make_publisher(
            "npm",
            api_key=api_key,
            email=email,
            access=access,
            registry=registry,
            tag=tag,
        )
        context = PublishContext(project_root=Path.cwd(), dry_run=dry_run, verbose=verbose)
        run_publisher(publisher, context)
    except DeployError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None


@app.command(name="run")
def run_configured(
    config: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to configuration file (default: search deploy.yml, deploy.toml)",
    ),
    dry_run: bool = typer.Option(  # noqa: B008
        False, "--dry-run", "-n", help="Show what would be done without making changes"
    ),
    verbose: bool = typer.Option(  # noqa: B008
        False, "--verbose", "-v", help="Show detailed output"
    ),
) -> None:
    """Run every provider configured in the configuration file, in order.

    Stops at the first provider that fails.
    """
    try:
        cfg = load_config(config)
        if not cfg.providers:
            console.print("[yellow]No providers configured[/yellow]")
            return

        context = PublishContext(project_root=Path.cwd(), dry_run=dry_run, verbose=verbose)
        for name in cfg.providers:
            publisher_class = PublisherRegistry.get(name)
            if publisher_class is None:
                raise ConfigurationError(
                    f"Unknown provider: {name}",
                    fix_hint=f"Available: {', '.join(PublisherRegistry.list_registered())}",
                )
            run_publisher(publisher_class(getattr(cfg, name)), context)

        console.print("\n[green]All deploys completed.[/green]")
    except DeployError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=e.exit_code) from None


@app.command()
def providers() -> None:
    """List available providers."""
    table = Table(title="Providers")
    table.add_column("Name", style="cyan")
    table.add_column("Provider")
    table.add_column("Registry", style="green")

    for name in PublisherRegistry.list_registered():
        publisher_class = PublisherRegistry.get(name)
        if publisher_class is not None:
            table.add_row(name, publisher_class.display_name, publisher_class.registry_name)

    console.print(table)


if __name__ == "__main__":
    app()
