"""Configuration management for Repo Search.

Configuration is read from an ``appsettings.json`` file (``AzureDevOps``
section), then overridden by ``REPO_SEARCH_*`` environment variables and
finally by explicit command line overrides.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://dev.azure.com"
DEFAULT_SEARCH_BASE_URL = "https://almsearch.dev.azure.com"
DEFAULT_API_VERSION = "7.1"
DEFAULT_SEARCH_API_VERSION = "7.1-preview.1"
DEFAULT_PAGE_SIZE = 100
DEFAULT_TIMEOUT = 30.0
DEFAULT_TEXT_EXTENSIONS = [
    ".cs",
    ".js",
    ".ts",
    ".html",
    ".css",
    ".json",
    ".xml",
    ".txt",
    ".md",
    ".yml",
    ".yaml",
    ".sql",
    ".py",
    ".java",
    ".cpp",
    ".h",
    ".c",
]

ENV_ORGANIZATION = "REPO_SEARCH_ORGANIZATION"
ENV_PERSONAL_ACCESS_TOKEN = "REPO_SEARCH_PAT"
ENV_SEARCH_TEXT = "REPO_SEARCH_TEXT"


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or invalid."""

    pass


class SearchConfig(BaseModel):
    """Settings for one organization-wide search run."""

    organization: str = Field(..., description="Organization identifier")
    personal_access_token: str = Field(
        ..., description="Personal access token used for Basic auth", repr=False
    )
    search_text: str = Field(..., description="Text to search for")

    base_url: str = Field(
        default=DEFAULT_BASE_URL, description="Base URL of the REST API"
    )
    search_base_urls: List[str] = Field(
        default_factory=lambda: [DEFAULT_SEARCH_BASE_URL],
        description="Candidate code search hosts, tried in order",
    )
    api_version: str = Field(default=DEFAULT_API_VERSION)
    search_api_version: str = Field(default=DEFAULT_SEARCH_API_VERSION)
    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=1000,
        description="Number of results requested from the search endpoint ($top)",
    )
    text_extensions: List[str] = Field(
        default_factory=lambda: list(DEFAULT_TEXT_EXTENSIONS),
        description="File extensions scanned by the file-by-file fallback",
    )
    project_filter: List[str] = Field(
        default_factory=list,
        description="Project names to search (case-insensitive, empty means all)",
    )
    repository_filter: List[str] = Field(
        default_factory=list,
        description="Repository names to search (case-insensitive, empty means all)",
    )
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds"
    )
    output_path: Optional[Path] = Field(
        default=None, description="Destination of the delimited export"
    )

    @field_validator("organization", "personal_access_token", "search_text")
    @classmethod
    def must_not_be_blank(cls, v: str, info) -> str:
        if not v or not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v

    @field_validator("organization")
    @classmethod
    def strip_organization(cls, v: str) -> str:
        return v.strip().strip("/")

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("search_base_urls")
    @classmethod
    def normalize_search_base_urls(cls, v: List[str]) -> List[str]:
        urls = [url.strip().rstrip("/") for url in v if url and url.strip()]
        if not urls:
            raise ValueError("At least one search base URL is required")
        return urls

    @field_validator("text_extensions")
    @classmethod
    def normalize_extensions(cls, v: List[str]) -> List[str]:
        """Lower-case extensions and make sure each starts with a dot."""
        normalized = []
        for ext in v:
            ext = ext.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = f".{ext}"
            if ext not in normalized:
                normalized.append(ext)
        return normalized

    @field_validator("project_filter", "repository_filter")
    @classmethod
    def drop_blank_names(cls, v: List[str]) -> List[str]:
        return [name.strip() for name in v if name and name.strip()]

    @property
    def search_endpoints(self) -> List[str]:
        """Code search URLs in the order they should be attempted."""
        return [
            f"{base}/{self.organization}/_apis/search/codesearchresults"
            f"?api-version={self.search_api_version}"
            for base in self.search_base_urls
        ]

    def matches_project(self, name: str) -> bool:
        return _matches_filter(name, self.project_filter)

    def matches_repository(self, name: str) -> bool:
        return _matches_filter(name, self.repository_filter)


def _matches_filter(name: str, allowed: List[str]) -> bool:
    if not allowed:
        return True
    folded = name.casefold()
    return any(folded == candidate.casefold() for candidate in allowed)


class ConfigManager:
    """Loads ``SearchConfig`` from appsettings.json, environment and overrides."""

    DEFAULT_CONFIG_PATH = Path("appsettings.json")
    SECTION = "AzureDevOps"

    # appsettings.json key -> SearchConfig field
    FILE_KEYS = {
        "Organization": "organization",
        "PersonalAccessToken": "personal_access_token",
        "SearchText": "search_text",
        "BaseUrl": "base_url",
        "SearchBaseUrls": "search_base_urls",
        "ApiVersion": "api_version",
        "SearchApiVersion": "search_api_version",
        "PageSize": "page_size",
        "TextExtensions": "text_extensions",
        "Projects": "project_filter",
        "Repositories": "repository_filter",
        "Timeout": "timeout",
        "OutputPath": "output_path",
    }

    ENV_KEYS = {
        ENV_ORGANIZATION: "organization",
        ENV_PERSONAL_ACCESS_TOKEN: "personal_access_token",
        ENV_SEARCH_TEXT: "search_text",
    }

    REQUIRED = {
        "organization": "Organization",
        "personal_access_token": "PersonalAccessToken",
        "search_text": "SearchText",
    }

    def __init__(self, config_path: Optional[Path] = None):
        self._explicit_path = config_path is not None
        self.config_path = Path(config_path) if config_path else self.DEFAULT_CONFIG_PATH
        self._config: Optional[SearchConfig] = None

    def load(
        self,
        overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> SearchConfig:
        """Build the configuration for one run.

        Args:
            overrides: Field values that win over file and environment values.
                ``None`` values are ignored.
            use_env: Whether ``REPO_SEARCH_*`` environment variables are applied

        Returns:
            Validated SearchConfig

        Raises:
            ConfigurationError: If the file is unreadable or a required value
                is missing, blank or invalid
        """
        data = self._read_file()

        if use_env:
            for env_name, field_name in self.ENV_KEYS.items():
                if env_name in os.environ:
                    data[field_name] = os.environ[env_name]

        for field_name, value in (overrides or {}).items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)) and not value:
                continue
            data[field_name] = list(value) if isinstance(value, tuple) else value

        for field_name, label in self.REQUIRED.items():
            value = data.get(field_name)
            if value is None:
                raise ConfigurationError(f"{label} not found in configuration")
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(f"{label} cannot be empty")

        try:
            self._config = SearchConfig(**data)
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {details}") from e

        logger.debug(f"Configuration loaded for organization {self._config.organization}")
        return self._config

    def get_config(self) -> SearchConfig:
        """Get the loaded configuration, loading it if necessary."""
        if self._config is None:
            return self.load()
        return self._config

    def _read_file(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            if self._explicit_path:
                raise ConfigurationError(
                    f"Configuration file not found: {self.config_path}"
                )
            logger.debug(f"No configuration file at {self.config_path}")
            return {}

        try:
            with open(self.config_path, "r", encoding="utf-8-sig") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in configuration file {self.config_path}: {e}"
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read configuration file {self.config_path}: {e}"
            ) from e

        if not isinstance(raw, dict):
            raise ConfigurationError(
                f"Configuration file {self.config_path} must contain a JSON object"
            )

        # Keys are matched case-insensitively, like .NET configuration files
        section = _get_case_insensitive(raw, self.SECTION)
        if section is None:
            return {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"'{self.SECTION}' section must be a JSON object")

        data: Dict[str, Any] = {}
        for file_key, field_name in self.FILE_KEYS.items():
            value = _get_case_insensitive(section, file_key)
            if value is not None:
                data[field_name] = value
        return data


def _get_case_insensitive(mapping: Dict[str, Any], key: str) -> Any:
    if key in mapping:
        return mapping[key]
    folded = key.casefold()
    for candidate, value in mapping.items():
        if isinstance(candidate, str) and candidate.casefold() == folded:
            return value
    return None
