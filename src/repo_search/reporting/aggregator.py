"""Result aggregation and console summary."""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from rich.console import Console
from rich.markup import escape

from ..models import SearchResultRecord


@dataclass
class RepositoryGroup:
    """All records of one (project, repository) pair, sorted by path."""

    project_name: str
    repository_name: str
    records: List[SearchResultRecord] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        return len(self.records)

    @property
    def match_count(self) -> int:
        return sum(record.match_count for record in self.records)


@dataclass
class SearchSummary:
    groups: List[RepositoryGroup]
    total_files: int
    total_matches: int


def aggregate_results(records: Iterable[SearchResultRecord]) -> SearchSummary:
    """Group records by project and repository.

    Groups are ordered by project name then repository name and the files of
    each group by path, so the summary does not depend on search order.
    """
    grouped: Dict[Tuple[str, str], List[SearchResultRecord]] = {}
    for record in records:
        key = (record.project_name, record.repository_name)
        grouped.setdefault(key, []).append(record)

    groups = [
        RepositoryGroup(
            project_name=project_name,
            repository_name=repository_name,
            records=sorted(group_records, key=lambda r: r.path),
        )
        for (project_name, repository_name), group_records in sorted(grouped.items())
    ]

    return SearchSummary(
        groups=groups,
        total_files=sum(group.file_count for group in groups),
        total_matches=sum(group.match_count for group in groups),
    )


def render_summary(
    summary: SearchSummary,
    console: Optional[Console] = None,
    search_text: Optional[str] = None,
) -> None:
    """Print the grouped summary."""
    console = console or Console()

    console.print()
    console.print("Search Results Summary", style="bold")
    console.print("======================")
    if search_text is not None:
        console.print(f"Search text: '{escape(search_text)}'")

    if not summary.groups:
        console.print("No matches found.", style="yellow")
        return

    for group in summary.groups:
        console.print()
        console.print(
            f"Project: {escape(group.project_name)} | "
            f"Repository: {escape(group.repository_name)}",
            style="bold cyan",
        )
        console.print(
            f"  Files: {group.file_count} | Matches: {group.match_count}"
        )
        for record in group.records:
            console.print(
                f"    - {escape(record.file_name)} ({record.match_count} matches) "
                f"{escape(record.path)}"
            )

    console.print()
    console.print(f"Total files with matches: {summary.total_files}", style="bold")
    console.print(f"Total matches: {summary.total_matches}", style="bold")
