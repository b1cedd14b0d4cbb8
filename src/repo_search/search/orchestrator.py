"""Organization-wide search orchestration.

Walks projects and their repositories one at a time and collects the records
produced by the search strategy into a single ordered list.
"""

import logging
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from ..api_clients.base_client import REQUEST_ERRORS
from ..api_clients.devops_client import DevOpsClient
from ..config import SearchConfig
from ..models import Project, Repository, SearchResultRecord
from .strategy import SearchStrategy

logger = logging.getLogger(__name__)


class SearchOrchestrator:
    """Runs the search strategy over every selected repository."""

    def __init__(
        self,
        client: DevOpsClient,
        config: SearchConfig,
        strategy: Optional[SearchStrategy] = None,
        console: Optional[Console] = None,
    ):
        self.client = client
        self.config = config
        self.console = console or Console()
        self.strategy = strategy or SearchStrategy(client, config, console=self.console)

    async def run(self) -> List[SearchResultRecord]:
        """Search all selected repositories.

        Returns:
            Records in the order they were produced
        """
        results: List[SearchResultRecord] = []

        projects = await self.get_projects()
        self.console.print(f"Found {len(projects)} projects")
        self.console.print()

        selected = [p for p in projects if self.config.matches_project(p.name)]
        if len(selected) != len(projects):
            logger.info(f"Project filter selected {len(selected)} of {len(projects)} projects")

        for project in selected:
            self.console.print(f"Searching in project: {escape(project.name)}", style="bold")
            results.extend(await self.search_project(project))
            self.console.print()

        return results

    async def get_projects(self) -> List[Project]:
        try:
            return await self.client.list_projects()
        except REQUEST_ERRORS as e:
            logger.error(f"Error getting projects: {e}")
            self.console.print(f"Error getting projects: {escape(str(e))}", style="red")
            return []

    async def get_repositories(self, project: Project) -> List[Repository]:
        try:
            return await self.client.list_repositories(project.id)
        except REQUEST_ERRORS as e:
            logger.error(f"Error getting repositories of {project.name}: {e}")
            self.console.print(
                f"    Error getting repositories: {escape(str(e))}", style="red"
            )
            return []

    async def search_project(self, project: Project) -> List[SearchResultRecord]:
        """Search every selected repository of one project."""
        repositories = await self.get_repositories(project)
        if not repositories:
            self.console.print("  No repositories found")
            return []

        self.console.print(f"  Found {len(repositories)} repositories")

        records: List[SearchResultRecord] = []
        for repository in repositories:
            if not self.config.matches_repository(repository.name):
                logger.debug(f"Skipping repository {repository.name}")
                continue
            self.console.print(f"  Repository: {escape(repository.name)}")
            records.extend(await self.strategy.search(project, repository))
        return records
