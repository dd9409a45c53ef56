"""
Command-line diagnostics for taskdock
"""

import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from taskdock import __version__

console = Console()


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Logging level (default: from settings)")
def main(log_level: str | None) -> None:
    """taskdock - Docker daemon diagnostics"""
    from taskdock.core.config import get_settings

    settings = get_settings()

    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@main.command()
def version() -> None:
    """Show Docker daemon version information"""
    from taskdock.docker.client import DockerClient

    result = DockerClient().get_docker_version_info()

    if not result.succeeded:
        console.print(f"[red]{result.message}[/red]")
        sys.exit(1)

    info = result.info
    table = Table(title="Docker daemon")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Version", info.version_string)
    table.add_row("API version", info.api_version)
    table.add_row("Minimum API version", info.min_api_version)
    table.add_row("Commit", info.git_commit)
    console.print(table)


@main.command()
def check() -> None:
    """Check that the docker command is available"""
    from taskdock.docker.client import DockerClient

    if DockerClient().check_if_docker_is_available():
        console.print("✅ Docker is available")
        return

    console.print("[red]❌ Docker is not installed, not on your PATH, or not working[/red]")
    sys.exit(1)


if __name__ == "__main__":
    main()
