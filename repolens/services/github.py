import logging
from datetime import datetime, timedelta, timezone

import httpx

from .. import config
from ..schemas import CommitRecord, Contributor, DirectoryEntry

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Non-2xx response (or transport failure) from the GitHub REST API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"GitHub API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class GitHubClient:
    """
    Thin async wrapper over the GitHub REST endpoints the analyzer reads.

    No retries: a rate-limited or failed call raises GitHubAPIError and the
    caller decides whether that is fatal.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token if token is not None else config.GITHUB_TOKEN
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            self.headers["Authorization"] = f"Bearer {self.token}"
        self._client = httpx.AsyncClient(
            base_url=base_url or config.GITHUB_API_URL,
            headers=self.headers,
            timeout=timeout if timeout is not None else config.GITHUB_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, path: str, params: dict | None = None, headers: dict | None = None) -> httpx.Response:
        try:
            response = await self._client.get(path, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise GitHubAPIError(503, f"request to {path} failed: {e}") from e

        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise GitHubAPIError(response.status_code, message)
        return response

    async def _get_json(self, path: str, params: dict | None = None):
        response = await self._request(path, params=params)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # =========================================================================
    # REPOSITORY DATA
    # =========================================================================

    async def get_repository(self, owner: str, repo: str) -> dict:
        return await self._get_json(f"/repos/{owner}/{repo}")

    async def list_languages(self, owner: str, repo: str) -> dict[str, int]:
        return await self._get_json(f"/repos/{owner}/{repo}/languages") or {}

    async def list_contributors(self, owner: str, repo: str, per_page: int = 10) -> list[Contributor]:
        # 204 No Content for empty repositories
        data = await self._get_json(
            f"/repos/{owner}/{repo}/contributors", params={"per_page": per_page}
        ) or []
        return [
            Contributor(
                login=item.get("login") or "anonymous",
                contributions=item.get("contributions") or 0,
                avatar_url=item.get("avatar_url") or "",
            )
            for item in data[:per_page]
        ]

    async def list_commits(
        self,
        owner: str,
        repo: str,
        since: datetime | None = None,
        per_page: int = 100,
        max_pages: int | None = None,
    ) -> list[CommitRecord]:
        """List commits authored since `since` (default: one year ago)."""
        if since is None:
            since = datetime.now(timezone.utc) - timedelta(days=365)
        max_pages = max_pages or config.COMMIT_HISTORY_MAX_PAGES

        commits: list[CommitRecord] = []
        for page in range(1, max_pages + 1):
            data = await self._get_json(
                f"/repos/{owner}/{repo}/commits",
                params={"since": since.isoformat(), "per_page": per_page, "page": page},
            ) or []
            for item in data:
                author = (item.get("commit") or {}).get("author") or {}
                if not author.get("date"):
                    continue
                commits.append(CommitRecord(sha=item.get("sha", ""), authored_at=author["date"]))
            if len(data) < per_page:
                break
        return commits

    # =========================================================================
    # FILES
    # =========================================================================

    async def get_contents(self, owner: str, repo: str, path: str = "") -> list[DirectoryEntry]:
        """Directory listing for `path` (repository root by default)."""
        data = await self._get_json(f"/repos/{owner}/{repo}/contents/{path}")
        if isinstance(data, dict):
            # `path` is a file, not a directory
            data = [data]
        return [
            DirectoryEntry(name=item["name"], path=item.get("path", item["name"]), type=item.get("type", "file"))
            for item in data or []
        ]

    async def get_tree(self, owner: str, repo: str, ref: str, recursive: bool = True) -> list[DirectoryEntry]:
        """Full tree for `ref`, with git 'blob'/'tree' types mapped to 'file'/'dir'."""
        params = {"recursive": "1"} if recursive else None
        data = await self._get_json(f"/repos/{owner}/{repo}/git/trees/{ref}", params=params) or {}
        if data.get("truncated"):
            logger.warning(f"Tree listing for {owner}/{repo}@{ref} was truncated by GitHub")
        entries = []
        for item in data.get("tree", []):
            path = item["path"]
            entry_type = {"blob": "file", "tree": "dir"}.get(item.get("type"), item.get("type", "file"))
            entries.append(DirectoryEntry(name=path.rsplit("/", 1)[-1], path=path, type=entry_type))
        return entries

    async def get_file_text(self, owner: str, repo: str, path: str) -> str:
        """Raw text of a file. Raises GitHubAPIError(404) when it does not exist."""
        response = await self._request(
            f"/repos/{owner}/{repo}/contents/{path}",
            headers={"Accept": "application/vnd.github.raw+json"},
        )
        return response.text

    async def path_exists(self, owner: str, repo: str, path: str) -> bool:
        try:
            await self._request(f"/repos/{owner}/{repo}/contents/{path}")
        except GitHubAPIError as e:
            if e.status_code == 404:
                return False
            raise
        return True


async def get_github_client():
    """FastAPI dependency: one client per request, closed afterwards."""
    client = GitHubClient()
    try:
        yield client
    finally:
        await client.aclose()
