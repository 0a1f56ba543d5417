from fastapi import APIRouter, Depends, Path, Request

from ..limiter import limiter
from ..schemas import RepositorySnapshot
from ..services.analyzer import gather_settled, with_fallback
from ..services.github import GitHubAPIError, GitHubClient, get_github_client
from .analysis import NAME_PATTERN
from .errors import upstream_http_error

router = APIRouter(prefix="/repository", tags=["repository"])


@router.get("/{owner}/{repo}", response_model=RepositorySnapshot)
@limiter.limit("30/minute")
async def get_repository(
    request: Request,
    owner: str = Path(..., pattern=NAME_PATTERN),
    repo: str = Path(..., pattern=NAME_PATTERN),
    github: GitHubClient = Depends(get_github_client),
):
    """Repository metadata with its language histogram and top-level listing."""
    full_name = f"{owner}/{repo}"
    try:
        # Empty repositories have no contents endpoint (404); that is not fatal
        repo_data, languages, contents = await gather_settled(
            github.get_repository(owner, repo),
            github.list_languages(owner, repo),
            with_fallback("directory listing", github.get_contents(owner, repo), [], full_name),
        )
    except GitHubAPIError as e:
        raise upstream_http_error(e, full_name, action="fetch")

    return RepositorySnapshot.from_github(repo_data, languages=languages, contents=contents)
