"""Command line interface for Repo Search."""

import asyncio
import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape

from . import __version__
from .api_clients.devops_client import DevOpsClient
from .config import ConfigManager, ConfigurationError, SearchConfig
from .models import SearchResultRecord
from .reporting import aggregate_results, export_results, render_summary
from .search.orchestrator import SearchOrchestrator

logger = logging.getLogger(__name__)

console = Console()


def run_async(coro):
    """
    Run an async coroutine, handling both new event loops and existing ones.

    Args:
        coro: The coroutine to run

    Returns:
        The result of the coroutine
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No event loop running, we can use asyncio.run()
        return asyncio.run(coro)

    # A loop is already running (e.g. inside tests): use a fresh one in a thread
    result = None
    exception = None

    def run_in_new_loop():
        nonlocal result, exception
        try:
            result = asyncio.run(coro)
        except Exception as e:
            exception = e

    thread = threading.Thread(target=run_in_new_loop)
    thread.start()
    thread.join()

    if exception:
        raise exception
    return result


def default_output_path() -> Path:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return Path(f"search_results_{timestamp}.csv")


async def run_search(config: SearchConfig, console: Console) -> List[SearchResultRecord]:
    """Search every selected repository of the configured organization."""
    async with DevOpsClient.from_config(config) as client:
        orchestrator = SearchOrchestrator(client, config, console=console)
        return await orchestrator.run()


@click.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    help="Settings file (default: ./appsettings.json)",
)
@click.option("--search-text", "-s", help="Text to search for (overrides settings)")
@click.option("--organization", "-o", help="Organization name (overrides settings)")
@click.option(
    "--project",
    "-p",
    "projects",
    multiple=True,
    help="Only search this project (repeatable, case-insensitive)",
)
@click.option(
    "--repository",
    "-r",
    "repositories",
    multiple=True,
    help="Only search this repository (repeatable, case-insensitive)",
)
@click.option(
    "--output",
    type=click.Path(dir_okay=False),
    help="Export file (default: search_results_<timestamp>.csv)",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option(
    "--wait/--no-wait",
    default=True,
    help="Wait for a key press before exiting (only on interactive terminals)",
)
@click.version_option(version=__version__, prog_name="repo-search")
def cli(
    config_path: Optional[str],
    search_text: Optional[str],
    organization: Optional[str],
    projects: Tuple[str, ...],
    repositories: Tuple[str, ...],
    output: Optional[str],
    verbose: bool,
    wait: bool,
):
    """Search text across every repository of an Azure DevOps organization.

    \b
    Uses the server-side code search API and falls back to downloading and
    scanning each text file when the search API is unavailable.

    \b
    CONFIGURATION:
      appsettings.json, section "AzureDevOps":
      • Organization, PersonalAccessToken, SearchText (required)
      • Projects, Repositories: optional name filters
      • TextExtensions: file types scanned by the fallback
      Environment: REPO_SEARCH_ORGANIZATION, REPO_SEARCH_PAT, REPO_SEARCH_TEXT

    \b
    EXAMPLES:
      repo-search
      repo-search --search-text "ConnectionString" --project Backend
      repo-search -c settings.json --output results.csv --no-wait
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s:%(name)s:%(message)s",
    )
    # Configure logging to suppress noisy third-party messages
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    try:
        config_manager = ConfigManager(Path(config_path) if config_path else None)
        config = config_manager.load(
            overrides={
                "search_text": search_text,
                "organization": organization,
                "project_filter": projects,
                "repository_filter": repositories,
                "output_path": output,
            }
        )
    except ConfigurationError as e:
        console.print(f"❌ Configuration error: {escape(str(e))}", style="red")
        sys.exit(1)

    console.print("Azure DevOps Repository Search Tool", style="bold")
    console.print("===================================")
    console.print(f"Searching for: '{escape(config.search_text)}'")
    console.print(f"Organization: {escape(config.organization)}")
    console.print()

    try:
        records = run_async(run_search(config, console))
    except Exception as e:
        logger.exception("Search aborted")
        console.print(f"❌ Error: {escape(str(e))}", style="red")
        records = []

    render_summary(aggregate_results(records), console, search_text=config.search_text)

    output_path = config.output_path or default_output_path()
    try:
        written = export_results(records, output_path)
    except OSError as e:
        console.print(f"❌ Failed to export results: {escape(str(e))}", style="red")
        sys.exit(1)
    console.print(f"Results exported to: {escape(str(written))}", style="green")

    if wait:
        # click.pause is a no-op when stdin is not a terminal
        click.pause("Search completed. Press any key to exit...")


def main():
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
