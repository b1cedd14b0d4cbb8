"""Unit tests for the per-repository search strategy.

HTTP traffic is served by pytest-httpx; the real DevOpsClient is used so the
endpoint order, payloads and fallback requests are observed on the wire.
"""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from repo_search.api_clients.devops_client import DevOpsClient
from repo_search.search.strategy import SearchStrategy, endpoint_host

from tests.helpers import (
    BASE_URL,
    SEARCH_URL,
    console_output,
    content_url,
    items_url,
    search_hit,
)

SECOND_SEARCH_URL = (
    f"{BASE_URL}/contoso/_apis/search/codesearchresults?api-version=7.1-preview.1"
)


@pytest.fixture
def two_endpoint_config(search_config):
    return search_config.model_copy(
        update={"search_base_urls": ["https://almsearch.dev.azure.com", BASE_URL]}
    )


def requested_urls(httpx_mock):
    return [str(request.url) for request in httpx_mock.get_requests()]


def add_fallback_responses(httpx_mock):
    httpx_mock.add_response(
        method="GET",
        url=items_url("p1", "r1"),
        json={
            "count": 5,
            "value": [
                {"path": "/", "isFolder": True},
                {"path": "/a.cs"},
                {"path": "/b.cs"},
                {"path": "/c.cs"},
                {"path": "/logo.png"},
            ],
        },
    )
    httpx_mock.add_response(
        method="GET", url=content_url("p1", "r1", "%2Fa.cs"), text="GetUser()"
    )
    httpx_mock.add_response(
        method="GET", url=content_url("p1", "r1", "%2Fb.cs"), status_code=500
    )
    httpx_mock.add_response(
        method="GET",
        url=content_url("p1", "r1", "%2Fc.cs"),
        text="getuser(); GetUser(); x",
    )


class TestPayload:
    def test_payload_uses_exact_field_names(self, search_config, project, repository, console):
        strategy = SearchStrategy(AsyncMock(), search_config, console=console)

        payload = strategy.build_payload(project, repository)

        assert payload == {
            "searchText": "GetUser",
            "$skip": 0,
            "$top": 100,
            "filters": {"Project": ["Backend"], "Repository": ["backend-api"]},
            "includeFacets": True,
        }

    def test_endpoint_host(self):
        assert endpoint_host(SEARCH_URL) == "almsearch.dev.azure.com"


@pytest.mark.asyncio
class TestServerSearch:
    async def test_single_file_with_three_matches(
        self, httpx_mock, search_config, project, repository, console
    ):
        httpx_mock.add_response(
            method="POST",
            url=SEARCH_URL,
            json={
                "count": 1,
                "results": [search_hit("/Controllers/UserController.cs", 3)],
            },
        )

        async with DevOpsClient.from_config(search_config) as client:
            strategy = SearchStrategy(client, search_config, console=console)
            records = await strategy.search(project, repository)

        assert len(records) == 1
        assert records[0].match_count == 3
        assert records[0].file_name == "UserController.cs"
        assert requested_urls(httpx_mock) == [SEARCH_URL]

        request_body = json.loads(httpx_mock.get_request().content)
        assert request_body["filters"] == {
            "Project": ["Backend"],
            "Repository": ["backend-api"],
        }

        output = console_output(console)
        assert "Trying search endpoint: almsearch.dev.azure.com" in output
        assert "- File: /Controllers/UserController.cs" in output
        assert "Content Matches: 3" in output
        assert "Char Offset 200: Length 7, Line 3, Type: content" in output

    async def test_empty_results_never_trigger_file_scan(
        self, httpx_mock, search_config, project, repository, console
    ):
        httpx_mock.add_response(
            method="POST", url=SEARCH_URL, json={"count": 0, "results": []}
        )

        async with DevOpsClient.from_config(search_config) as client:
            strategy = SearchStrategy(client, search_config, console=console)
            records = await strategy.search(project, repository)

        assert records == []
        assert requested_urls(httpx_mock) == [SEARCH_URL]
        assert "No matches found in backend-api" in console_output(console)

    async def test_first_parseable_endpoint_wins(
        self, httpx_mock, two_endpoint_config, project, repository, console
    ):
        httpx_mock.add_response(
            method="POST", url=SEARCH_URL, text="<html>maintenance</html>"
        )
        httpx_mock.add_response(
            method="POST",
            url=SECOND_SEARCH_URL,
            json={"results": [search_hit("/src/Users.cs", 1)]},
        )

        async with DevOpsClient.from_config(two_endpoint_config) as client:
            strategy = SearchStrategy(client, two_endpoint_config, console=console)
            records = await strategy.search(project, repository)

        assert [r.path for r in records] == ["/src/Users.cs"]
        assert requested_urls(httpx_mock) == [SEARCH_URL, SECOND_SEARCH_URL]
        assert "Alternative parsing also failed" in console_output(console)

    async def test_successful_endpoint_stops_the_search(
        self, httpx_mock, two_endpoint_config, project, repository, console
    ):
        httpx_mock.add_response(method="POST", url=SEARCH_URL, json={"results": []})

        async with DevOpsClient.from_config(two_endpoint_config) as client:
            strategy = SearchStrategy(client, two_endpoint_config, console=console)
            records = await strategy.search(project, repository)

        assert records == []
        assert requested_urls(httpx_mock) == [SEARCH_URL]

    async def test_tolerant_parse_result_is_authoritative(
        self, httpx_mock, search_config, project, repository, console
    ):
        hit = search_hit("/src/Users.cs", 4)
        hit["matches"]["content"][0]["type"] = 7
        httpx_mock.add_response(method="POST", url=SEARCH_URL, json={"results": [hit]})

        async with DevOpsClient.from_config(search_config) as client:
            strategy = SearchStrategy(client, search_config, console=console)
            records = await strategy.search(project, repository)

        assert [(r.path, r.match_count) for r in records] == [("/src/Users.cs", 4)]
        output = console_output(console)
        assert "used alternative parsing" in output
        assert "... and 1 more matches" in output

    async def test_repeated_search_is_idempotent(
        self, httpx_mock, search_config, project, repository, console
    ):
        body = {
            "results": [
                search_hit("/b/Two.cs", 2),
                search_hit("/a/One.cs", 1),
            ]
        }
        httpx_mock.add_response(method="POST", url=SEARCH_URL, json=body)
        httpx_mock.add_response(method="POST", url=SEARCH_URL, json=body)

        async with DevOpsClient.from_config(search_config) as client:
            strategy = SearchStrategy(client, search_config, console=console)
            first = await strategy.search(project, repository)
            second = await strategy.search(project, repository)

        assert first == second
        assert [r.path for r in first] == ["/b/Two.cs", "/a/One.cs"]


@pytest.mark.asyncio
class TestFileScanFallback:
    async def test_all_endpoints_unavailable_falls_back_once(
        self, httpx_mock, two_endpoint_config, project, repository, console
    ):
        httpx_mock.add_response(method="POST", url=SEARCH_URL, status_code=503)
        httpx_mock.add_response(method="POST", url=SECOND_SEARCH_URL, status_code=503)
        add_fallback_responses(httpx_mock)

        async with DevOpsClient.from_config(two_endpoint_config) as client:
            strategy = SearchStrategy(client, two_endpoint_config, console=console)
            records = await strategy.search(project, repository)

        assert [(r.path, r.match_count) for r in records] == [
            ("/a.cs", 1),
            ("/c.cs", 2),
        ]
        urls = requested_urls(httpx_mock)
        assert urls[:2] == [SEARCH_URL, SECOND_SEARCH_URL]
        assert urls.count(items_url("p1", "r1")) == 1
        assert len(urls) == 6

        output = console_output(console)
        assert "Status: 503" in output
        assert "All search APIs failed for backend-api" in output

    async def test_transport_error_counts_as_endpoint_failure(
        self, httpx_mock, search_config, project, repository, console
    ):
        httpx_mock.add_exception(httpx.ConnectError("Connection refused"), url=SEARCH_URL)
        add_fallback_responses(httpx_mock)

        async with DevOpsClient.from_config(search_config) as client:
            strategy = SearchStrategy(client, search_config, console=console)
            records = await strategy.search(project, repository)

        assert [r.path for r in records] == ["/a.cs", "/c.cs"]

    async def test_unparsable_responses_fall_back(
        self, httpx_mock, search_config, project, repository, console
    ):
        httpx_mock.add_response(method="POST", url=SEARCH_URL, json={"results": "none"})
        add_fallback_responses(httpx_mock)

        async with DevOpsClient.from_config(search_config) as client:
            strategy = SearchStrategy(client, search_config, console=console)
            records = await strategy.search(project, repository)

        assert len(records) == 2

    async def test_listing_failure_yields_nothing(
        self, httpx_mock, search_config, project, repository, console
    ):
        httpx_mock.add_response(method="POST", url=SEARCH_URL, status_code=503)
        httpx_mock.add_response(method="GET", url=items_url("p1", "r1"), status_code=404)

        async with DevOpsClient.from_config(search_config) as client:
            strategy = SearchStrategy(client, search_config, console=console)
            records = await strategy.search(project, repository)

        assert records == []

    async def test_unexpected_scanner_error_is_absorbed(
        self, search_config, project, repository, console
    ):
        client = AsyncMock()
        client.search_code.side_effect = RuntimeError("search exploded")
        scanner = AsyncMock()
        scanner.scan.side_effect = RuntimeError("scan exploded")
        strategy = SearchStrategy(client, search_config, scanner=scanner, console=console)

        records = await strategy.search(project, repository)

        assert records == []
        scanner.scan.assert_awaited_once_with(project, repository)
