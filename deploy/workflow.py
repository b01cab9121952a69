"""Deploy workflow orchestration.

Runs one provider through its pipeline:
1. Validate
2. Log in
3. Deploy
4. Finish (always, once validation has passed)
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console

from deploy.exceptions import DeployError
from deploy.publishers.base import PublishContext, Publisher, PublishResult

console = Console()


@dataclass
class DeployWorkflow:
    """Drives a single provider from validation to cleanup."""

    publisher: Publisher
    context: PublishContext
    error: DeployError | None = field(default=None, init=False)

    def run(self) -> PublishResult:
        """Execute the pipeline.

        The first DeployError aborts the remaining steps and is kept on
        self.error; finish still runs if validation passed.

        Returns:
            The provider's result, or a failed result describing the error
        """
        display_name = self.publisher.display_name
        console.print(f"\n[bold]Deploying to {display_name}[/bold]")

        ok, _ = self._step("Validating", self.publisher.validate)
        if not ok:
            return self._failed()

        result = None
        try:
            ok, _ = self._step("Logging in", self.publisher.login)
            if ok:
                ok, result = self._step("Deploying", self.publisher.deploy)
        finally:
            self._finish()

        if not ok or result is None:
            return self._failed()

        console.print(f"[green]  {result.message}[/green]")
        return result

    def _step(
        self, step_name: str, step_func: Callable[[PublishContext], Any]
    ) -> tuple[bool, Any]:
        console.print(f"\n[bold cyan]>[/bold cyan] {step_name}...")
        try:
            return True, step_func(self.context)
        except DeployError as e:
            self.error = e
            console.print(f"[red]  Error: {e.message}[/red]")
            if e.details:
                console.print(f"[dim]  {e.details}[/dim]")
            if e.fix_hint:
                console.print(f"[yellow]  Fix: {e.fix_hint}[/yellow]")
            return False, None

    def _finish(self) -> None:
        console.print("\n[bold cyan]>[/bold cyan] Cleaning up...")
        try:
            self.publisher.finish(self.context)
        except OSError as e:
            console.print(f"[yellow]  Warning: cleanup failed: {e}[/yellow]")

    def _failed(self) -> PublishResult:
        if self.error is None:
            return PublishResult.failed(f"{self.publisher.display_name} deploy returned no result")
        return PublishResult.failed(self.error.message, details=self.error.details)
