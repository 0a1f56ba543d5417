import os

# Must be set before repolens.config is imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("GITHUB_TOKEN", "test-token")

import json
from datetime import datetime, timedelta, timezone

import pytest

from repolens.schemas import CommitRecord, Contributor, DirectoryEntry
from repolens.services.github import GitHubAPIError


class FakeGitHub:
    """
    In-memory stand-in for GitHubClient.

    `files` maps path -> text, `dirs` holds directory paths, and `failures`
    maps a method name or file path to the status code it should fail with.
    """

    def __init__(
        self,
        repo: dict | None = None,
        languages: dict[str, int] | None = None,
        files: dict[str, str] | None = None,
        dirs: set[str] | None = None,
        contributors: list[Contributor] | None = None,
        commits: list[CommitRecord] | None = None,
        tree: list[DirectoryEntry] | None = None,
        failures: dict[str, int] | None = None,
    ):
        self.repo = repo if repo is not None else make_repo_payload()
        self.languages = languages if languages is not None else {"TypeScript": 500_000}
        self.files = files or {}
        self.dirs = dirs or set()
        self.contributors = contributors or []
        self.commits = commits or []
        self.tree = tree
        self.failures = failures or {}

    def _check(self, key: str) -> None:
        if key in self.failures:
            raise GitHubAPIError(self.failures[key], f"simulated failure for {key}")

    async def get_repository(self, owner, repo):
        self._check("get_repository")
        return self.repo

    async def list_languages(self, owner, repo):
        self._check("list_languages")
        return dict(self.languages)

    async def list_contributors(self, owner, repo, per_page=10):
        self._check("list_contributors")
        return self.contributors[:per_page]

    async def list_commits(self, owner, repo, since=None, per_page=100, max_pages=None):
        self._check("list_commits")
        return list(self.commits)

    async def get_contents(self, owner, repo, path=""):
        self._check("get_contents")
        entries = [DirectoryEntry(name=p, path=p, type="file") for p in self.files if "/" not in p]
        entries += [DirectoryEntry(name=d, path=d, type="dir") for d in sorted(self.dirs) if "/" not in d]
        return entries

    async def get_tree(self, owner, repo, ref, recursive=True):
        self._check("get_tree")
        if self.tree is None:
            raise GitHubAPIError(404, "tree not available")
        return self.tree

    async def get_file_text(self, owner, repo, path):
        self._check(path)
        if path not in self.files:
            raise GitHubAPIError(404, "Not Found")
        return self.files[path]

    async def path_exists(self, owner, repo, path):
        self._check(path)
        if path in self.files or path in self.dirs:
            return True
        # parent of a nested directory (".github" for ".github/workflows")
        return any(d.startswith(path + "/") for d in self.dirs)


def make_repo_payload(**overrides) -> dict:
    """A GitHub `GET /repos/{owner}/{repo}` payload with neutral facts."""
    payload = {
        "name": "demo",
        "full_name": "octo/demo",
        "owner": {"login": "octo"},
        "description": None,
        "language": "TypeScript",
        "stargazers_count": 12,
        "forks_count": 3,
        "watchers_count": 12,
        "open_issues_count": 1,
        "size": 2048,
        "private": False,
        "license": None,
        "has_issues": False,
        "has_wiki": False,
        "has_pages": False,
        "has_projects": False,
        "archived": False,
        "homepage": None,
        "topics": [],
        "created_at": "2020-01-01T00:00:00Z",
        "updated_at": datetime.now(timezone.utc).isoformat(),
        "default_branch": "main",
        "html_url": "https://github.com/octo/demo",
    }
    payload.update(overrides)
    return payload


def package_json(dependencies: dict | None = None, dev_dependencies: dict | None = None) -> str:
    manifest = {"name": "demo", "version": "1.0.0"}
    if dependencies is not None:
        manifest["dependencies"] = dependencies
    if dev_dependencies is not None:
        manifest["devDependencies"] = dev_dependencies
    return json.dumps(manifest)


def commits_on(*days_ago: int, now: datetime | None = None) -> list[CommitRecord]:
    now = now or datetime.now(timezone.utc)
    return [
        CommitRecord(sha=f"sha{i}", authored_at=now - timedelta(days=d))
        for i, d in enumerate(days_ago)
    ]


@pytest.fixture
def fake_github():
    return FakeGitHub(files={"package.json": package_json({"react": "^16.8.0"})})
