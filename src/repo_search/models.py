"""Data models for Repo Search.

REST payloads use camel-case field names; the models expose snake_case
attributes with camel-case aliases. Incoming keys are matched
case-insensitively, outgoing dumps omit ``None`` values.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model for REST documents with camel-case field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def match_keys_case_insensitively(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        lookup: Dict[str, str] = {}
        for name, field_info in cls.model_fields.items():
            alias = field_info.alias or name
            lookup[name.casefold()] = alias
            lookup[alias.casefold()] = alias

        normalized: Dict[Any, Any] = {}
        for key, value in data.items():
            if isinstance(key, str):
                key = lookup.get(key.casefold(), key)
            normalized[key] = value
        return normalized

    def to_payload(self) -> Dict[str, Any]:
        """Serialize with camel-case names, leaving out unset (None) values."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ProjectReference(CamelModel):
    """Back-reference to a project embedded in other documents."""

    id: Optional[str] = None
    name: Optional[str] = None


class Project(CamelModel):
    """A project of the organization."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: Optional[str] = ""


class ProjectsResponse(CamelModel):
    count: int = 0
    value: List[Project] = Field(default_factory=list)


class Repository(CamelModel):
    """A git repository; ``project`` only refers back to its owner."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    url: Optional[str] = ""
    project: Optional[ProjectReference] = None


class RepositoriesResponse(CamelModel):
    count: int = 0
    value: List[Repository] = Field(default_factory=list)


class GitItem(CamelModel):
    """Entry of a recursive repository file listing."""

    path: str = ""
    is_folder: bool = False
    url: Optional[str] = ""


class ItemsResponse(CamelModel):
    count: int = 0
    value: List[GitItem] = Field(default_factory=list)


class ContentMatch(CamelModel):
    """Location of one hit inside a file, as reported by code search."""

    char_offset: int = 0
    length: int = 0
    line: int = 0
    column: int = 0
    code_snippet: Optional[str] = None
    type: str = ""


class MatchesContainer(CamelModel):
    content: List[ContentMatch] = Field(default_factory=list)
    file_name: List[Any] = Field(default_factory=list)


class SearchCollection(CamelModel):
    name: Optional[str] = None


class SearchRepositoryReference(CamelModel):
    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None


class SearchVersion(CamelModel):
    branch_name: Optional[str] = None
    change_id: Optional[str] = None


class CodeSearchResult(CamelModel):
    """One file of a code search response."""

    file_name: Optional[str] = None
    path: Optional[str] = None
    matches: Optional[MatchesContainer] = None
    collection: Optional[SearchCollection] = None
    project: Optional[ProjectReference] = None
    repository: Optional[SearchRepositoryReference] = None
    versions: List[SearchVersion] = Field(default_factory=list)
    content_id: Optional[str] = None


class CodeSearchResponse(CamelModel):
    """Strict schema of the code search endpoint response."""

    count: int = 0
    results: Optional[List[CodeSearchResult]] = Field(default_factory=list)
    info_code: int = 0
    facets: Optional[Any] = None


class SearchResultRecord(BaseModel):
    """Canonical result unit: one file of one repository containing the text."""

    model_config = ConfigDict(frozen=True)

    search_text: str
    project_name: str
    repository_name: str
    file_name: str
    path: str
    match_count: int = Field(..., ge=0)
