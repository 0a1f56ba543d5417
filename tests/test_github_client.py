from datetime import datetime, timezone

import httpx
import pytest

from repolens.services.github import GitHubAPIError, GitHubClient


def _client(handler) -> GitHubClient:
    return GitHubClient(token="test", base_url="https://api.github.test", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_get_repository_sends_token_and_returns_payload() -> None:
    seen: list[httpx.Request] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"name": "demo", "full_name": "octo/demo"})

    async with _client(handler) as client:
        data = await client.get_repository("octo", "demo")

    assert data["full_name"] == "octo/demo"
    assert seen[0].url.path == "/repos/octo/demo"
    assert seen[0].headers["authorization"] == "Bearer test"


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [403, 404, 500])
async def test_error_status_raises_with_github_message(status_code: int) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json={"message": "Not Found"})

    async with _client(handler) as client:
        with pytest.raises(GitHubAPIError) as exc_info:
            await client.get_repository("octo", "missing")

    assert exc_info.value.status_code == status_code
    assert exc_info.value.message == "Not Found"


@pytest.mark.asyncio
async def test_transport_failure_raises_github_error() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    async with _client(handler) as client:
        with pytest.raises(GitHubAPIError) as exc_info:
            await client.list_languages("octo", "demo")

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_contributors_no_content_means_empty_list() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    async with _client(handler) as client:
        assert await client.list_contributors("octo", "empty") == []


@pytest.mark.asyncio
async def test_contributors_are_mapped_and_capped() -> None:
    payload = [
        {"login": f"user{i}", "contributions": 100 - i, "avatar_url": f"https://avatars.test/{i}"}
        for i in range(12)
    ] + [{"login": None, "contributions": None, "avatar_url": None}]

    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["per_page"] == "10"
        return httpx.Response(200, json=payload)

    async with _client(handler) as client:
        contributors = await client.list_contributors("octo", "demo")

    assert len(contributors) == 10
    assert contributors[0].login == "user0"
    assert contributors[0].contributions == 100


@pytest.mark.asyncio
async def test_list_commits_paginates_until_a_short_page() -> None:
    pages = {
        "1": [
            {"sha": "a", "commit": {"author": {"date": "2024-03-15T10:00:00Z"}}},
            {"sha": "b", "commit": {"author": {"date": "2024-03-14T10:00:00Z"}}},
        ],
        "2": [
            {"sha": "c", "commit": {"author": {"date": "2024-03-13T10:00:00Z"}}},
        ],
    }
    requested: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        page = request.url.params["page"]
        requested.append(page)
        return httpx.Response(200, json=pages.get(page, []))

    since = datetime(2023, 3, 15, tzinfo=timezone.utc)
    async with _client(handler) as client:
        commits = await client.list_commits("octo", "demo", since=since, per_page=2, max_pages=5)

    assert [commit.sha for commit in commits] == ["a", "b", "c"]
    assert commits[0].authored_at == datetime(2024, 3, 15, 10, tzinfo=timezone.utc)
    assert requested == ["1", "2"]


@pytest.mark.asyncio
async def test_get_tree_maps_git_types() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/octo/demo/git/trees/main"
        assert request.url.params["recursive"] == "1"
        return httpx.Response(200, json={
            "truncated": False,
            "tree": [
                {"path": "src", "type": "tree"},
                {"path": "src/app.py", "type": "blob"},
                {"path": "README.md", "type": "blob"},
            ],
        })

    async with _client(handler) as client:
        tree = await client.get_tree("octo", "demo", "main")

    assert [(entry.name, entry.path, entry.type) for entry in tree] == [
        ("src", "src", "dir"),
        ("app.py", "src/app.py", "file"),
        ("README.md", "README.md", "file"),
    ]


@pytest.mark.asyncio
async def test_get_contents_lists_top_level_entries() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[
            {"name": "tests", "path": "tests", "type": "dir"},
            {"name": "package.json", "path": "package.json", "type": "file"},
        ])

    async with _client(handler) as client:
        contents = await client.get_contents("octo", "demo")

    assert [(entry.name, entry.type) for entry in contents] == [("tests", "dir"), ("package.json", "file")]


@pytest.mark.asyncio
async def test_get_file_text_requests_raw_content() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["accept"] == "application/vnd.github.raw+json"
        return httpx.Response(200, text='{"dependencies": {}}')

    async with _client(handler) as client:
        assert await client.get_file_text("octo", "demo", "package.json") == '{"dependencies": {}}'


@pytest.mark.asyncio
async def test_path_exists_treats_404_as_absent_and_raises_otherwise() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/Dockerfile"):
            return httpx.Response(200, json={"name": "Dockerfile", "type": "file"})
        if request.url.path.endswith("/go.mod"):
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(403, json={"message": "API rate limit exceeded"})

    async with _client(handler) as client:
        assert await client.path_exists("octo", "demo", "Dockerfile") is True
        assert await client.path_exists("octo", "demo", "go.mod") is False
        with pytest.raises(GitHubAPIError):
            await client.path_exists("octo", "demo", "Cargo.toml")
