"""Per-repository search strategy.

Server-side code search is attempted on each configured endpoint in order.
The first endpoint whose response parses is authoritative, even when it
reports no results. Only when every endpoint fails is the repository scanned
file by file.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx
from rich.console import Console
from rich.markup import escape

from ..api_clients.base_client import REQUEST_ERRORS
from ..api_clients.devops_client import DevOpsClient
from ..config import SearchConfig
from ..models import Project, Repository, SearchResultRecord
from .file_scanner import FileScanner
from .normalizer import (
    PARSED_TOLERANT,
    NormalizedResponse,
    ResponseNormalizer,
    ResponseParseError,
    format_match_preview,
)

logger = logging.getLogger(__name__)

RAW_LOG_LIMIT = 500


def endpoint_host(url: str) -> str:
    """Host part of an endpoint URL, for progress messages."""
    try:
        return httpx.URL(url).host or url
    except httpx.InvalidURL:
        return url


class SearchStrategy:
    """Finds the search text in one repository, server search first."""

    def __init__(
        self,
        client: DevOpsClient,
        config: SearchConfig,
        normalizer: Optional[ResponseNormalizer] = None,
        scanner: Optional[FileScanner] = None,
        console: Optional[Console] = None,
    ):
        self.client = client
        self.config = config
        self.console = console or Console()
        self.normalizer = normalizer or ResponseNormalizer()
        self.scanner = scanner or FileScanner(
            client,
            config.search_text,
            text_extensions=config.text_extensions,
            console=self.console,
        )

    def build_payload(self, project: Project, repository: Repository) -> Dict[str, Any]:
        """Code search request body; keys must reach the server unchanged."""
        return {
            "searchText": self.config.search_text,
            "$skip": 0,
            "$top": self.config.page_size,
            "filters": {
                "Project": [project.name],
                "Repository": [repository.name],
            },
            "includeFacets": True,
        }

    async def search(
        self, project: Project, repository: Repository
    ) -> List[SearchResultRecord]:
        """Search one repository. Never raises; failures yield fewer records."""
        for search_url in self.config.search_endpoints:
            host = endpoint_host(search_url)
            self.console.print(f"    Trying search endpoint: {escape(host)}")
            try:
                response = await self._try_endpoint(search_url, project, repository)
            except Exception as e:
                logger.exception(f"Search failed with {host}")
                self.console.print(
                    f"    Search failed with {escape(host)}: {escape(str(e))}",
                    style="red",
                )
                continue

            if response is not None:
                self._display(response, repository)
                return response.records

        self.console.print(
            f"    All search APIs failed for {escape(repository.name)}, "
            "trying file-by-file search...",
            style="yellow",
        )
        try:
            return await self.scanner.scan(project, repository)
        except Exception as e:
            logger.exception(f"File-by-file search failed for {repository.name}")
            self.console.print(
                f"    Error searching repository files: {escape(str(e))}", style="red"
            )
            return []

    async def _try_endpoint(
        self, search_url: str, project: Project, repository: Repository
    ) -> Optional[NormalizedResponse]:
        """Query one endpoint; ``None`` means the endpoint failed."""
        payload = self.build_payload(project, repository)
        logger.debug(f"Executing URL: {search_url}")

        try:
            body = await self.client.search_code(search_url, payload)
        except REQUEST_ERRORS as e:
            status_code = getattr(e, "status_code", None)
            response_text = getattr(e, "response_text", "")
            logger.warning(
                f"Search API {endpoint_host(search_url)} failed for "
                f"{repository.name}: {e}"
            )
            if response_text:
                logger.debug(f"Error body: {response_text[:RAW_LOG_LIMIT]}")
            self.console.print("    Search API failed:", style="yellow")
            if status_code is not None:
                self.console.print(f"    Status: {status_code}")
            self.console.print(f"    Error: {escape(str(e))}")
            return None

        logger.debug(f"Raw JSON response: {body[:RAW_LOG_LIMIT]}")

        try:
            return self.normalizer.normalize(
                body, project.name, repository.name, self.config.search_text
            )
        except ResponseParseError as e:
            logger.warning(
                f"Unparsable search response for {repository.name}: {e}"
            )
            self.console.print(
                f"    Alternative parsing also failed: {escape(str(e))}", style="red"
            )
            return None

    def _display(self, response: NormalizedResponse, repository: Repository) -> None:
        if response.parsed_with == PARSED_TOLERANT:
            self.console.print(
                "    Response did not match the search schema, used alternative parsing",
                style="dim",
            )

        if not response.files:
            self.console.print(f"    No matches found in {escape(repository.name)}")
            return

        self.console.print(
            f"    ✓ Repository: {escape(repository.name)} "
            f"({len(response.files)} files with matches)",
            style="green",
        )
        for normalized in response.files:
            self.console.print(f"      - File: {escape(normalized.record.path)}")
            self.console.print(
                f"        Content Matches: {normalized.record.match_count}"
            )
            for line in format_match_preview(normalized.matches):
                self.console.print(f"        {escape(line)}")
            self.console.print()
