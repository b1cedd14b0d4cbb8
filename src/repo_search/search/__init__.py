"""Search orchestration: server-side code search with a file scan fallback."""

from .normalizer import (
    NormalizedFile,
    NormalizedResponse,
    ResponseNormalizer,
    ResponseParseError,
    format_match_preview,
)
from .file_scanner import FileScanner, count_occurrences, is_text_file
from .strategy import SearchStrategy
from .orchestrator import SearchOrchestrator

__all__ = [
    "NormalizedFile",
    "NormalizedResponse",
    "ResponseNormalizer",
    "ResponseParseError",
    "format_match_preview",
    "FileScanner",
    "count_occurrences",
    "is_text_file",
    "SearchStrategy",
    "SearchOrchestrator",
]
