"""Code search response normalization.

The code search endpoint does not always honour its documented schema, so a
response body is parsed in two stages:

1. strict: validated against ``CodeSearchResponse``
2. tolerant: decoded into a plain JSON tree and walked defensively, every
   field treated as optional

Both stages yield the same ``SearchResultRecord`` values for the same logical
document, so callers never need to know which one ran.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..models import CodeSearchResponse, ContentMatch, SearchResultRecord

logger = logging.getLogger(__name__)

UNKNOWN_PATH = "Unknown"
MATCH_PREVIEW_LIMIT = 3

PARSED_STRICT = "strict"
PARSED_TOLERANT = "tolerant"


class ResponseParseError(Exception):
    """Raised when a response body cannot be parsed by either stage."""

    pass


@dataclass
class NormalizedFile:
    """One file of a search response: its record plus the matches for display."""

    record: SearchResultRecord
    matches: List[ContentMatch] = field(default_factory=list)


@dataclass
class NormalizedResponse:
    files: List[NormalizedFile]
    parsed_with: str

    @property
    def records(self) -> List[SearchResultRecord]:
        return [normalized.record for normalized in self.files]


def file_name_from_path(path: str) -> str:
    """Last ``/`` separated segment of a repository path."""
    return path.split("/")[-1] or path


def format_match_preview(
    matches: List[ContentMatch], limit: int = MATCH_PREVIEW_LIMIT
) -> List[str]:
    """Console lines describing the first ``limit`` matches of a file."""
    lines = [
        f"Char Offset {match.char_offset}: Length {match.length}, "
        f"Line {match.line}, Type: {match.type}"
        for match in matches[:limit]
    ]
    if len(matches) > limit:
        lines.append(f"... and {len(matches) - limit} more matches")
    return lines


class ResponseNormalizer:
    """Maps code search responses onto ``SearchResultRecord`` values."""

    def normalize(
        self,
        body: str,
        project_name: str,
        repository_name: str,
        search_text: str,
    ) -> NormalizedResponse:
        """Parse a code search response body, strict schema first.

        Raises:
            ResponseParseError: If neither the strict nor the tolerant parse
                can make sense of the body
        """
        try:
            return self.parse_strict(body, project_name, repository_name, search_text)
        except ValidationError as e:
            logger.info(
                f"Code search response for {repository_name} does not match the "
                f"expected schema ({e.error_count()} errors), trying tolerant parsing"
            )
            logger.debug(f"Schema errors: {e}")

        return self.parse_tolerant(body, project_name, repository_name, search_text)

    def parse_strict(
        self,
        body: str,
        project_name: str,
        repository_name: str,
        search_text: str,
    ) -> NormalizedResponse:
        """Parse with the strict schema.

        Raises:
            pydantic.ValidationError: If the body is not valid JSON or does not
                fit ``CodeSearchResponse``
        """
        response = CodeSearchResponse.model_validate_json(body)

        files = []
        for result in response.results or []:
            path = result.path or UNKNOWN_PATH
            matches = list(result.matches.content) if result.matches else []
            record = SearchResultRecord(
                search_text=search_text,
                project_name=project_name,
                repository_name=repository_name,
                file_name=result.file_name or file_name_from_path(path),
                path=path,
                match_count=len(matches),
            )
            files.append(NormalizedFile(record=record, matches=matches))

        return NormalizedResponse(files=files, parsed_with=PARSED_STRICT)

    def parse_tolerant(
        self,
        body: str,
        project_name: str,
        repository_name: str,
        search_text: str,
    ) -> NormalizedResponse:
        """Parse as an untyped JSON tree, defaulting every missing field.

        Raises:
            ResponseParseError: If the body is not JSON, the root is not an
                object, or ``results`` is present but not an array
        """
        try:
            root = json.loads(body)
        except (json.JSONDecodeError, TypeError) as e:
            raise ResponseParseError(f"Response is not valid JSON: {e}") from e

        if not isinstance(root, dict):
            raise ResponseParseError(
                f"Expected a JSON object, got {type(root).__name__}"
            )

        results = _get(root, "results")
        if results is None:
            return NormalizedResponse(files=[], parsed_with=PARSED_TOLERANT)
        if not isinstance(results, list):
            raise ResponseParseError(
                f"'results' is {type(results).__name__}, expected an array"
            )

        files = []
        for element in results:
            files.append(
                self._normalize_element(
                    element if isinstance(element, dict) else {},
                    project_name,
                    repository_name,
                    search_text,
                )
            )
        return NormalizedResponse(files=files, parsed_with=PARSED_TOLERANT)

    def _normalize_element(
        self,
        element: Dict[str, Any],
        project_name: str,
        repository_name: str,
        search_text: str,
    ) -> NormalizedFile:
        path = _get_str(element, "path") or UNKNOWN_PATH
        file_name = _get_str(element, "fileName") or file_name_from_path(path)

        match_count = 0
        matches: List[ContentMatch] = []
        container = _get(element, "matches")
        if isinstance(container, dict):
            content = _get(container, "content")
            if isinstance(content, list):
                match_count = len(content)
                matches = [
                    _content_match(item if isinstance(item, dict) else {})
                    for item in content
                ]
            else:
                logger.debug(
                    f"Unexpected matches structure for {path}: "
                    f"{json.dumps(container)[:200]}"
                )

        record = SearchResultRecord(
            search_text=search_text,
            project_name=project_name,
            repository_name=repository_name,
            file_name=file_name,
            path=path,
            match_count=match_count,
        )
        return NormalizedFile(record=record, matches=matches)


def _get(mapping: Dict[str, Any], key: str) -> Any:
    if key in mapping:
        return mapping[key]
    folded = key.casefold()
    for candidate, value in mapping.items():
        if isinstance(candidate, str) and candidate.casefold() == folded:
            return value
    return None


def _get_str(mapping: Dict[str, Any], key: str) -> Optional[str]:
    value = _get(mapping, key)
    return value if isinstance(value, str) else None


def _get_int(mapping: Dict[str, Any], key: str) -> int:
    value = _get(mapping, key)
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value


def _content_match(item: Dict[str, Any]) -> ContentMatch:
    return ContentMatch(
        char_offset=_get_int(item, "charOffset"),
        length=_get_int(item, "length"),
        line=_get_int(item, "line"),
        column=_get_int(item, "column"),
        code_snippet=_get_str(item, "codeSnippet"),
        type=_get_str(item, "type") or "",
    )
