"""Console reporter using Rich library for formatted CLI output.

Prints a header when each step starts, a pass/fail line when it ends, and
at the end either the generated MinIO configuration or the failing step.
"""

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

from minio_bootstrap.models import BootstrapResult, StepResult, StepStatus
from minio_bootstrap.reporters.base import Reporter


class ConsoleReporter(Reporter):
    """Rich-based console reporter for CLI output.

    Args:
        quiet: If True, suppress per-step output (only show the summary)
    """

    def __init__(self, quiet: bool = False):
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = Console(legacy_windows=True)
        self.quiet = quiet

    def on_step_start(self, step_name: str) -> None:
        if self.quiet:
            return
        self.console.print()
        self.console.print(
            Rule(f"[bold cyan]Running step: {step_name}[/bold cyan]", style="cyan", characters="-")
        )

    def on_step_complete(self, result: StepResult) -> None:
        if self.quiet:
            return

        if result.status == StepStatus.PASS:
            status_text = "[green][PASS][/green]"
        else:
            status_text = "[red][FAIL][/red]"

        self.console.print(f"  {status_text}: {result.name} ({result.duration_seconds:.1f}s)")

        if result.error_message and result.status != StepStatus.PASS:
            self.console.print(f"     [dim]{escape(result.error_message)}[/dim]")

    def on_run_complete(self, result: BootstrapResult) -> None:
        """Print the step table, then the MinIO configuration or the failure."""
        self.console.print()
        self.console.print(Rule("[bold]MinIO Bootstrap Summary[/bold]", style="magenta", characters="-"))

        table = Table(
            show_header=True,
            header_style="bold magenta",
            border_style="dim",
            box=box.ASCII,
        )
        table.add_column("Step", style="cyan", no_wrap=True)
        table.add_column("Status", justify="center", no_wrap=True)
        table.add_column("Duration", justify="right", no_wrap=True)

        for step in result.steps:
            if step.status == StepStatus.PASS:
                status_symbol = "[green]PASS[/green]"
            else:
                status_symbol = "[red]FAIL[/red]"
            table.add_row(step.name, status_symbol, f"{step.duration_seconds:.1f}s")

        self.console.print(table)

        failed = result.failed_step
        if failed is not None:
            self.console.print(
                f"[bold red]Step '{failed.name}' failed.[/bold red] Check logs above for details."
            )
            if failed.error_message:
                self.console.print(f"   [dim red]{escape(failed.error_message)}[/dim red]")
            return

        if not result.succeeded or result.credentials is None:
            self.console.print("[yellow]No steps were run.[/yellow]")
            return

        self.console.print()
        self.console.print("[bold][MINIO CONFIG][/bold]")
        self.console.print(f"Endpoint:   {result.endpoint}", highlight=False)
        self.console.print(f"Bucket:     {result.bucket}", highlight=False)
        self.console.print(f"Access Key: {result.credentials.access_key}", highlight=False)
        self.console.print(f"Secret Key: {result.credentials.secret_key}", highlight=False)
        self.console.print()
