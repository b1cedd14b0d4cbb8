"""Azure DevOps REST client.

Wraps the handful of endpoints the search needs: project and repository
listing, recursive item listing, raw file content and code search.
"""

import json
import logging
from typing import Any, Dict, List, Type, TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from ..config import DEFAULT_API_VERSION, DEFAULT_BASE_URL, SearchConfig
from ..models import (
    GitItem,
    ItemsResponse,
    Project,
    ProjectsResponse,
    RepositoriesResponse,
    Repository,
)
from .base_client import APIClientError, RemoteAPIClient

logger = logging.getLogger(__name__)

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


class DevOpsClient(RemoteAPIClient):
    """Client for the REST endpoints of one organization."""

    def __init__(
        self,
        organization: str,
        personal_access_token: str,
        base_url: str = DEFAULT_BASE_URL,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 30.0,
    ):
        super().__init__(personal_access_token=personal_access_token, timeout=timeout)
        self.organization = organization
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version

    @classmethod
    def from_config(cls, config: SearchConfig) -> "DevOpsClient":
        return cls(
            organization=config.organization,
            personal_access_token=config.personal_access_token,
            base_url=config.base_url,
            api_version=config.api_version,
            timeout=config.timeout,
        )

    @property
    def organization_url(self) -> str:
        return f"{self.base_url}/{self.organization}"

    def _repository_url(self, project_id: str, repository_id: str) -> str:
        return (
            f"{self.organization_url}/{project_id}"
            f"/_apis/git/repositories/{repository_id}"
        )

    async def list_projects(self) -> List[Project]:
        """List all projects of the organization.

        Raises:
            APIClientError: If the request fails or the response is malformed
        """
        url = f"{self.organization_url}/_apis/projects?api-version={self.api_version}"
        response = await self.get(url)
        return self._parse(response.text, ProjectsResponse, "projects").value

    async def list_repositories(self, project_id: str) -> List[Repository]:
        """List the git repositories of a project.

        Raises:
            APIClientError: If the request fails or the response is malformed
        """
        url = (
            f"{self.organization_url}/{project_id}"
            f"/_apis/git/repositories?api-version={self.api_version}"
        )
        response = await self.get(url)
        return self._parse(response.text, RepositoriesResponse, "repositories").value

    async def list_items(self, project_id: str, repository_id: str) -> List[GitItem]:
        """List every file and folder of a repository (full recursion).

        Raises:
            APIClientError: If the request fails or the response is malformed
        """
        url = (
            f"{self._repository_url(project_id, repository_id)}"
            f"/items?recursionLevel=Full&api-version={self.api_version}"
        )
        response = await self.get(url)
        return self._parse(response.text, ItemsResponse, "items").value

    async def get_item_content(
        self, project_id: str, repository_id: str, path: str
    ) -> str:
        """Download the raw content of one file.

        Raises:
            APIClientError: If the request fails
        """
        url = (
            f"{self._repository_url(project_id, repository_id)}"
            f"/items?path={quote(path, safe='')}&api-version={self.api_version}"
        )
        response = await self.get(url, headers={"Accept": "text/plain"})
        return response.text

    async def search_code(self, search_url: str, payload: Dict[str, Any]) -> str:
        """POST a code search request and return the raw response body.

        The payload is serialized as given; its keys are sent verbatim.

        Raises:
            APIClientError: If the request fails or returns a non-2xx status
        """
        body = json.dumps(payload, separators=(",", ":"))
        logger.debug(f"Code search payload for {search_url}: {body}")
        response = await self.post(
            search_url,
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        return response.text

    @staticmethod
    def _parse(text: str, model: Type[ResponseModel], what: str) -> ResponseModel:
        try:
            return model.model_validate_json(text)
        except ValidationError as e:
            raise APIClientError(f"Invalid {what} response: {e}") from e
