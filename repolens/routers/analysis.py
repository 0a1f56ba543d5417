import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request
from sqlalchemy.orm import Session

from ..database import delete_analysis, get_analysis, get_db, list_recent_analyses, load_result, upsert_analysis
from ..limiter import limiter
from ..schemas import AnalysisList, AnalysisResult, AnalysisSummary, as_utc
from ..services.analyzer import analyze_repository
from ..services.github import GitHubAPIError, GitHubClient, get_github_client
from ..services.metrics import EmptyLanguageHistogramError
from .errors import upstream_http_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analyze", tags=["analysis"])

NAME_PATTERN = r"^[a-zA-Z0-9_.-]+$"


@router.post("/{owner}/{repo}", response_model=AnalysisResult)
@limiter.limit("10/minute")
async def analyze(
    request: Request,
    owner: str = Path(..., pattern=NAME_PATTERN),
    repo: str = Path(..., pattern=NAME_PATTERN),
    db: Session = Depends(get_db),
    github: GitHubClient = Depends(get_github_client),
):
    """
    Analyze a GitHub repository and store the result.

    Re-analysis replaces the stored result for the repository.
    """
    full_name = f"{owner}/{repo}"
    try:
        result = await analyze_repository(github, owner, repo)
    except GitHubAPIError as e:
        raise upstream_http_error(e, full_name)
    except EmptyLanguageHistogramError as e:
        logger.error(f"Analysis of {full_name} failed: {e}", extra={"repository": full_name, "stage": "metrics"})
        raise HTTPException(status_code=422, detail=str(e))

    upsert_analysis(db, owner, repo, result)
    return result


@router.get("/{owner}/{repo}", response_model=AnalysisResult)
@limiter.limit("30/minute")
async def get_stored_analysis(
    request: Request,
    owner: str = Path(..., pattern=NAME_PATTERN),
    repo: str = Path(..., pattern=NAME_PATTERN),
    db: Session = Depends(get_db),
):
    """Get the last stored analysis for a repository."""
    row = get_analysis(db, f"{owner}/{repo}")
    if row is None:
        raise HTTPException(status_code=404, detail="Repository has not been analyzed yet")
    return load_result(row)


@router.delete("/{owner}/{repo}")
@limiter.limit("5/minute")
async def delete_stored_analysis(
    request: Request,
    owner: str = Path(..., pattern=NAME_PATTERN),
    repo: str = Path(..., pattern=NAME_PATTERN),
    db: Session = Depends(get_db),
):
    """Delete the stored analysis (the next GET returns 404)."""
    full_name = f"{owner}/{repo}"
    if not delete_analysis(db, full_name):
        raise HTTPException(status_code=404, detail="Repository has not been analyzed yet")
    return {"status": "deleted", "repository": full_name}


@router.get("", response_model=AnalysisList)
@limiter.limit("30/minute")
async def list_analyses(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Most recently analyzed repositories."""
    rows = list_recent_analyses(db, limit=limit)
    repositories = [
        AnalysisSummary(
            full_name=row.full_name,
            owner=row.owner,
            name=row.name,
            security_score=row.security_score,
            maintainability_score=row.maintainability_score,
            documentation_score=row.documentation_score,
            view_count=row.view_count,
            analyzed_at=as_utc(row.analyzed_at),  # SQLite returns naive datetimes
        )
        for row in rows
    ]
    return AnalysisList(repositories=repositories, total=len(repositories))
