"""
Quality scores and vulnerability heuristics for RepoLens.

Scores are explainable proxies, not static analysis: each starts at a fixed
base, adds fixed bonuses for satisfied conditions, then is clamped to 0-100.

| Score           | Base | Bonuses                                                        |
|-----------------|------|----------------------------------------------------------------|
| security        | 70   | private +10, issues +5, wiki +5, license +10, commits +10/+5   |
| maintainability | 65   | description +5, wiki +10, commits +15/+10/+5, contributors +10/+5 |
| documentation   | 40   | description +15, wiki +20, homepage +10, baseline +15          |
"""

from datetime import datetime, timedelta, timezone

from ..schemas import (
    DetectedTechnology,
    RepositorySnapshot,
    ScoreTriple,
    Severity,
    VulnerabilityFinding,
    as_utc,
)


# =============================================================================
# CONFIGURATION
# =============================================================================

SECURITY_BASE = 70
MAINTAINABILITY_BASE = 65
DOCUMENTATION_BASE = 40

# Flat documentation bonus applied to every repository
DOCUMENTATION_BASELINE_BONUS = 15

STALE_AFTER = timedelta(days=182.5)

# Frontend framework (lowercase substring of the tech name) -> minimum current major
OUTDATED_MAJOR_VERSIONS = {
    "react": 17,
    "vue": 3,
    "angular": 12,
}


def clamp_score(value: int) -> int:
    return max(0, min(100, value))


# =============================================================================
# SCORES
# =============================================================================

def security_score(repo: RepositorySnapshot, recent_commits: int) -> int:
    score = SECURITY_BASE
    if repo.private:
        score += 10
    if repo.has_issues:
        score += 5
    if repo.has_wiki:
        score += 5
    if repo.license:
        score += 10
    if recent_commits > 50:
        score += 10
    elif recent_commits > 20:
        score += 5
    return clamp_score(score)


def maintainability_score(repo: RepositorySnapshot, recent_commits: int, contributor_count: int) -> int:
    score = MAINTAINABILITY_BASE
    if repo.description:
        score += 5
    if repo.has_wiki:
        score += 10

    if recent_commits > 30:
        score += 15
    elif recent_commits > 10:
        score += 10
    elif recent_commits > 5:
        score += 5

    if contributor_count > 10:
        score += 10
    elif contributor_count > 5:
        score += 5
    return clamp_score(score)


def documentation_score(repo: RepositorySnapshot) -> int:
    score = DOCUMENTATION_BASE
    if repo.description:
        score += 15
    if repo.has_wiki:
        score += 20
    if repo.homepage:
        score += 10
    score += DOCUMENTATION_BASELINE_BONUS
    return clamp_score(score)


def calculate_scores(repo: RepositorySnapshot, recent_commits: int, contributor_count: int) -> ScoreTriple:
    """
    Compute the three quality scores.

    Args:
        repo: Repository facts
        recent_commits: Commits in the last year
        contributor_count: Number of contributors fetched
    """
    return ScoreTriple(
        security_score=security_score(repo, recent_commits),
        maintainability_score=maintainability_score(repo, recent_commits, contributor_count),
        documentation_score=documentation_score(repo),
    )


# =============================================================================
# VULNERABILITY HEURISTICS
# =============================================================================

def _caret_major(version: str | None) -> int | None:
    """Major version of a caret range like '^16.8.0', None for anything else."""
    if not version or not version.startswith("^"):
        return None
    major = version[1:].split(".", 1)[0]
    return int(major) if major.isdigit() else None


def find_vulnerabilities(
    repo: RepositorySnapshot,
    tech_stack: list[DetectedTechnology],
    now: datetime | None = None,
) -> list[VulnerabilityFinding]:
    """Evaluate each heuristic independently; any subset may fire."""
    now = now or datetime.now(timezone.utc)
    findings: list[VulnerabilityFinding] = []

    for tech in tech_stack:
        major = _caret_major(tech.version)
        if major is None:
            continue
        for framework, minimum in OUTDATED_MAJOR_VERSIONS.items():
            if framework in tech.name.lower() and major < minimum:
                findings.append(VulnerabilityFinding(
                    severity=Severity.MEDIUM,
                    title="Outdated Dependencies",
                    description=f"{tech.name} {tech.version} is older than major version {minimum}; consider upgrading.",
                ))
                break

    if repo.updated_at is not None:
        if as_utc(now) - as_utc(repo.updated_at) > STALE_AFTER:
            findings.append(VulnerabilityFinding(
                severity=Severity.LOW,
                title="Infrequent Updates",
                description="Repository hasn't been updated in over 6 months.",
            ))

    if not repo.license:
        findings.append(VulnerabilityFinding(
            severity=Severity.LOW,
            title="Missing License",
            description="No license file found. Consider adding one to clarify usage rights.",
        ))

    return findings
