"""URLs and helpers shared by the Repo Search tests."""

from rich.console import Console

ORGANIZATION = "contoso"
BASE_URL = "https://dev.azure.com"
SEARCH_BASE_URL = "https://almsearch.dev.azure.com"
SEARCH_URL = (
    f"{SEARCH_BASE_URL}/{ORGANIZATION}/_apis/search/codesearchresults"
    "?api-version=7.1-preview.1"
)
PROJECTS_URL = f"{BASE_URL}/{ORGANIZATION}/_apis/projects?api-version=7.1"


def repositories_url(project_id: str) -> str:
    return (
        f"{BASE_URL}/{ORGANIZATION}/{project_id}"
        "/_apis/git/repositories?api-version=7.1"
    )


def items_url(project_id: str, repository_id: str) -> str:
    return (
        f"{BASE_URL}/{ORGANIZATION}/{project_id}/_apis/git/repositories/"
        f"{repository_id}/items?recursionLevel=Full&api-version=7.1"
    )


def content_url(project_id: str, repository_id: str, encoded_path: str) -> str:
    return (
        f"{BASE_URL}/{ORGANIZATION}/{project_id}/_apis/git/repositories/"
        f"{repository_id}/items?path={encoded_path}&api-version=7.1"
    )


def console_output(console: Console) -> str:
    return console.file.getvalue()


def search_hit(path, match_count, file_name=None):
    """A code search result entry with ``match_count`` content matches."""
    hit = {
        "path": path,
        "matches": {
            "content": [
                {
                    "charOffset": 100 * i,
                    "length": 7,
                    "line": i + 1,
                    "column": 4,
                    "codeSnippet": None,
                    "type": "content",
                }
                for i in range(match_count)
            ],
            "fileName": [],
        },
        "collection": {"name": ORGANIZATION},
        "project": {"name": "Backend", "id": "p1"},
        "repository": {"name": "backend-api", "id": "r1", "type": "git"},
        "versions": [{"branchName": "main", "changeId": "abc123"}],
        "contentId": "c0ffee",
    }
    if file_name is not None:
        hit["fileName"] = file_name
    return hit
