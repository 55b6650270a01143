import os

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from kdebug.types import DebugPodSpec

# Status output goes to stderr; stdout belongs to the remote shell
_console = Console(stderr=True)

# Check if we should use simple UI (e.g., when running in Tilt or CI)
_use_simple_ui = os.getenv("KDEBUG_SIMPLE_UI") == "1"


def render_containers_table(spec: DebugPodSpec):
    table = Table()

    table.add_column("Container", style="cyan", no_wrap=True)
    table.add_column("Image", style="magenta")
    table.add_column("Command", style="white", no_wrap=False)

    for container in spec.pod.spec.containers:
        name = container.name
        if name == spec.target_container:
            name = f"⭐ {name}"

        cmd_display = " ".join(container.command or []) or "(image default)"
        if len(cmd_display) > 80:
            cmd_display = cmd_display[:77] + "..."

        table.add_row(name, container.image or "", cmd_display)

    _console.print(table)


def print_success(message: str, prefix: str = "✅"):
    """Print a success message."""
    _console.print(f"[green]{prefix}[/green] {message}")


def print_info(message: str, prefix: str = "ℹ️"):
    """Print an info message."""
    _console.print(f"[blue]{prefix}[/blue]  {message}")


def print_step(message: str, prefix: str = "🔧"):
    """Print a step/progress message."""
    _console.print(f"[cyan]{prefix}[/cyan] {message}")


def print_warning(message: str, prefix: str = "⚠️"):
    """Print a warning message."""
    _console.print(f"[yellow]{prefix}[/yellow]  {message}")


def print_error(message: str, prefix: str = "❌"):
    """Print an error message."""
    _console.print(f"[red]{prefix}[/red] {message}")


def print_session_info(pod_name: str, namespace: str, container: str, command: list[str]):
    """Print the banner shown right before the shell is attached."""
    _console.print()
    shell = " ".join(command)

    if _use_simple_ui:
        _console.print("[green]" + "=" * 42 + "[/green]")
        _console.print("[green bold]🐚 Debug shell ready[/green bold]")
        _console.print(f"Pod: [cyan]{namespace}/{pod_name}[/cyan]")
        _console.print(f"Container: [cyan]{container}[/cyan]")
        _console.print(f"Command: [cyan]{shell}[/cyan]")
        _console.print("[green]" + "=" * 42 + "[/green]")
    else:
        _console.print(
            Panel(
                f"[green bold]🐚 Debug shell ready[/green bold]\n\n"
                f"Pod: [cyan bold]{namespace}/{pod_name}[/cyan bold]\n"
                f"Container: [cyan]{container}[/cyan]\n"
                f"Command: [cyan]{shell}[/cyan]",
                border_style="green",
                expand=False,
            )
        )

    _console.print("\n[dim]Exit the shell to remove the debug pod.[/dim]\n")
