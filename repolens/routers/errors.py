import logging

from fastapi import HTTPException

from ..services.github import GitHubAPIError

logger = logging.getLogger(__name__)


def upstream_http_error(e: GitHubAPIError, full_name: str, action: str = "analyze") -> HTTPException:
    """Map a GitHub failure to the HTTP error shown to the caller."""
    if e.status_code == 404:
        return HTTPException(status_code=404, detail="Repository not found")
    if e.status_code == 403:
        return HTTPException(status_code=403, detail="Access denied. Repository may be private.")

    logger.error(
        f"GitHub request failed while trying to {action} {full_name}: {e}",
        extra={"repository": full_name, "stage": action, "status_code": e.status_code},
    )
    return HTTPException(status_code=502, detail=f"Failed to {action} repository")
