"""
Shared pytest fixtures for Repo Search tests.

Provides a ready-made configuration, sample projects and repositories and a
rich console that records its output.
"""

import io

import pytest
from rich.console import Console

from repo_search.config import SearchConfig
from repo_search.models import Project, ProjectReference, Repository

from .helpers import BASE_URL, ORGANIZATION, SEARCH_BASE_URL


@pytest.fixture
def search_config() -> SearchConfig:
    return SearchConfig(
        organization=ORGANIZATION,
        personal_access_token="test-pat",
        search_text="GetUser",
        base_url=BASE_URL,
        search_base_urls=[SEARCH_BASE_URL],
    )


@pytest.fixture
def console() -> Console:
    """Console writing plain text to an in-memory buffer."""
    return Console(
        file=io.StringIO(),
        width=200,
        color_system=None,
        force_terminal=False,
        highlight=False,
    )


@pytest.fixture
def project() -> Project:
    return Project(id="p1", name="Backend", description="Backend services")


@pytest.fixture
def repository(project) -> Repository:
    return Repository(
        id="r1",
        name="backend-api",
        url=f"{BASE_URL}/{ORGANIZATION}/p1/_git/backend-api",
        project=ProjectReference(id=project.id, name=project.name),
    )
