"""Semicolon-delimited export of search results."""

import logging
from pathlib import Path
from typing import Iterable, Union

from ..models import SearchResultRecord

logger = logging.getLogger(__name__)

DELIMITER = ";"
HEADER = [
    "SearchText",
    "Project",
    "Repository",
    "FileName",
    "Path",
    "NumberOfMatches",
]

_QUOTE_TRIGGERS = (";", ",", "\n", "\r", '"')


def escape_csv_field(value: str) -> str:
    """Quote a field containing ``; , \\n \\r "``, doubling embedded quotes."""
    if value is None:
        return ""
    if any(trigger in value for trigger in _QUOTE_TRIGGERS):
        return '"' + value.replace('"', '""') + '"'
    return value


def format_csv_row(record: SearchResultRecord) -> str:
    fields = [
        escape_csv_field(record.search_text),
        escape_csv_field(record.project_name),
        escape_csv_field(record.repository_name),
        escape_csv_field(record.file_name),
        escape_csv_field(record.path),
        str(record.match_count),
    ]
    return DELIMITER.join(fields)


def export_results(
    records: Iterable[SearchResultRecord], output_path: Union[str, Path]
) -> Path:
    """Write records, in the given order, as UTF-8 delimited text.

    Returns:
        Path of the written file
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(DELIMITER.join(HEADER) + "\n")
        for record in records:
            f.write(format_csv_row(record) + "\n")
            count += 1

    logger.info(f"Exported {count} results to {path}")
    return path
