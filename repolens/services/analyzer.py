"""
Repository analysis pipeline for RepoLens.

fetch (GitHub) -> snapshot -> [tech stack, metrics, scores, findings, commit bins]
-> AnalysisResult

Fatal: repository record or language histogram unavailable, empty histogram.
Fallbacks: contributors / commits / listing -> empty, recursive tree -> estimate.
A fatal error propagates; no partial result is ever returned.
"""

import asyncio
import logging
import random
from datetime import datetime, timezone

from ..schemas import (
    AnalysisResult,
    CommitRecord,
    Contributor,
    DetectedTechnology,
    DirectoryEntry,
    RepositorySnapshot,
    as_utc,
)
from .github import GitHubAPIError, GitHubClient
from .metrics import MetricsCalculator
from .scoring import calculate_scores, find_vulnerabilities
from .tech_stack import TechStackDetector

logger = logging.getLogger(__name__)

MAX_CONTRIBUTORS = 10


def build_analysis(
    snapshot: RepositorySnapshot,
    contributors: list[Contributor],
    commits: list[CommitRecord],
    tech_stack: list[DetectedTechnology],
    tree: list[DirectoryEntry] | None = None,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> AnalysisResult:
    """
    Assemble an AnalysisResult from already-fetched data. No I/O.

    Raises:
        EmptyLanguageHistogramError: when the snapshot has no language bytes
    """
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)

    code_metrics, file_types = MetricsCalculator.estimate_code_metrics(
        snapshot.languages, snapshot.contents, tree=tree, rng=rng,
    )
    contributors = contributors[:MAX_CONTRIBUTORS]
    scores = calculate_scores(snapshot, recent_commits=len(commits), contributor_count=len(contributors))

    return AnalysisResult(
        code_metrics=code_metrics,
        security_score=scores.security_score,
        maintainability_score=scores.maintainability_score,
        documentation_score=scores.documentation_score,
        commits=MetricsCalculator.bin_commit_history(commits, today=now.date()),
        contributors=contributors,
        file_types=file_types,
        vulnerabilities=find_vulnerabilities(snapshot, tech_stack, now=now),
        tech_stack=tech_stack,
        analyzed_at=now,
    )


async def with_fallback(label: str, coro, fallback, repository: str | None = None):
    """Await an optional fetch; upstream failures yield `fallback`."""
    try:
        return await coro
    except GitHubAPIError as e:
        logger.warning(
            f"Could not fetch {label}, continuing without it: {e}",
            extra={"repository": repository, "stage": label, "status_code": e.status_code},
        )
        return fallback


async def gather_settled(*aws):
    """
    Run `aws` concurrently and wait for every one of them to finish.

    The first exception (in argument order) is raised only after all siblings
    have settled, so no fetch is left running against a closed client.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for outcome in results:
        if isinstance(outcome, BaseException):
            raise outcome
    return results


async def fetch_snapshot(client: GitHubClient, owner: str, repo: str) -> tuple[
    RepositorySnapshot, list[Contributor], list[CommitRecord]
]:
    """Fetch everything the pipeline reads. The independent calls run concurrently."""
    full_name = f"{owner}/{repo}"
    repo_data = await client.get_repository(owner, repo)

    languages, contributors, commits, contents = await gather_settled(
        client.list_languages(owner, repo),
        with_fallback(
            "contributors", client.list_contributors(owner, repo, per_page=MAX_CONTRIBUTORS), [], full_name,
        ),
        with_fallback("commit history", client.list_commits(owner, repo), [], full_name),
        with_fallback("directory listing", client.get_contents(owner, repo), [], full_name),
    )

    snapshot = RepositorySnapshot.from_github(repo_data, languages=languages, contents=contents)
    return snapshot, contributors, commits


async def analyze_repository(
    client: GitHubClient,
    owner: str,
    repo: str,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> AnalysisResult:
    """
    Run the full analysis for owner/repo.

    Raises:
        GitHubAPIError: repository record or language histogram unavailable
        EmptyLanguageHistogramError: repository has no language data
    """
    snapshot, contributors, commits = await fetch_snapshot(client, owner, repo)

    tech_stack, tree = await gather_settled(
        TechStackDetector(client).detect(snapshot.owner, snapshot.name),
        with_fallback(
            "recursive tree",
            client.get_tree(snapshot.owner, snapshot.name, snapshot.default_branch),
            None,
            snapshot.full_name,
        ),
    )

    result = build_analysis(snapshot, contributors, commits, tech_stack, tree=tree, rng=rng, now=now)
    logger.info(
        f"Analyzed {snapshot.full_name}: security={result.security_score} "
        f"maintainability={result.maintainability_score} documentation={result.documentation_score} "
        f"technologies={len(result.tech_stack)}",
        extra={"repository": snapshot.full_name, "stage": "analysis"},
    )
    return result
