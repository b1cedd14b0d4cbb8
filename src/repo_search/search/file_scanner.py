"""File-by-file repository scan.

Used only when no code search endpoint answers for a repository: every
text-like file is downloaded and searched locally.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape

from ..api_clients.base_client import REQUEST_ERRORS
from ..api_clients.devops_client import DevOpsClient
from ..config import DEFAULT_TEXT_EXTENSIONS
from ..models import GitItem, Project, Repository, SearchResultRecord
from .normalizer import file_name_from_path

logger = logging.getLogger(__name__)


def count_occurrences(content: str, search_text: str) -> int:
    """Count case-insensitive, non-overlapping occurrences of ``search_text``.

    >>> count_occurrences("aaaa", "aa")
    2
    """
    if not search_text or not content:
        return 0
    return content.lower().count(search_text.lower())


def is_text_file(path: str, extensions: Iterable[str]) -> bool:
    lowered = path.lower()
    return any(lowered.endswith(ext) for ext in extensions)


def select_text_files(items: Iterable[GitItem], extensions: Sequence[str]) -> List[GitItem]:
    """Non-folder items whose path ends with one of ``extensions``."""
    return [
        item
        for item in items
        if not item.is_folder and item.path and is_text_file(item.path, extensions)
    ]


class FileScanner:
    """Searches a repository by downloading each text file."""

    def __init__(
        self,
        client: DevOpsClient,
        search_text: str,
        text_extensions: Optional[Sequence[str]] = None,
        console: Optional[Console] = None,
    ):
        self.client = client
        self.search_text = search_text
        self.text_extensions = [
            ext.lower() for ext in (text_extensions or DEFAULT_TEXT_EXTENSIONS)
        ]
        self.console = console or Console()

    async def scan(
        self, project: Project, repository: Repository
    ) -> List[SearchResultRecord]:
        """Scan every text file of ``repository`` for the search text.

        Never raises: a failed listing yields an empty list and a failed file
        download counts as a file without matches.
        """
        try:
            items = await self.client.list_items(project.id, repository.id)
        except REQUEST_ERRORS as e:
            logger.warning(f"Failed to list files of {repository.name}: {e}")
            self.console.print(
                f"    Error searching repository files: {escape(str(e))}", style="red"
            )
            return []

        files = select_text_files(items, self.text_extensions)
        logger.debug(
            f"Scanning {len(files)} of {len(items)} items in {repository.name}"
        )

        records: List[SearchResultRecord] = []
        for item in files:
            match_count = await self._count_in_file(project, repository, item.path)
            if match_count < 1:
                continue
            records.append(
                SearchResultRecord(
                    search_text=self.search_text,
                    project_name=project.name,
                    repository_name=repository.name,
                    file_name=file_name_from_path(item.path),
                    path=item.path,
                    match_count=match_count,
                )
            )

        if records:
            self.console.print(
                f"    ✓ Repository: {escape(repository.name)} ({len(records)} files "
                f"contain '{escape(self.search_text)}')",
                style="green",
            )
            for record in records:
                self.console.print(
                    f"      - {escape(record.path)} ({record.match_count} matches)"
                )
        else:
            self.console.print(f"    No matches found in {escape(repository.name)}")

        return records

    async def _count_in_file(
        self, project: Project, repository: Repository, path: str
    ) -> int:
        try:
            content = await self.client.get_item_content(
                project.id, repository.id, path
            )
            return count_occurrences(content, self.search_text)
        except Exception:
            # Unreadable files are treated as files without matches
            return 0
