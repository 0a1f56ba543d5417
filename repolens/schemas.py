"""
RepoLens Schema Definitions

Pydantic models for the repository snapshot consumed by the analysis
pipeline and the AnalysisResult it produces. The JSON field names are the
ones the dashboard reads (camelCase for the result envelope, snake_case for
GitHub-shaped records).
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS
# =============================================================================

class Confidence(str, Enum):
    """How a technology was detected"""
    HIGH = "high"      # declared dependency or marker file
    MEDIUM = "medium"  # substring match on a dependency name


class Severity(str, Enum):
    """Severity level for vulnerability findings"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def as_utc(value: datetime) -> datetime:
    """Treat a naive datetime as UTC; convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CamelModel(BaseModel):
    """Base for records serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# REPOSITORY SNAPSHOT (input)
# =============================================================================

class DirectoryEntry(BaseModel):
    """One entry of a repository directory listing"""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Entry name (last path segment)")
    path: str = Field(..., description="Path relative to the repository root")
    type: str = Field(..., description="'file' or 'dir'")


class CommitRecord(BaseModel):
    """A commit reduced to what the activity binner needs"""
    model_config = ConfigDict(frozen=True)

    sha: str = Field(..., description="Commit SHA")
    authored_at: datetime = Field(..., description="Author timestamp")


class RepositorySnapshot(BaseModel):
    """
    Repository facts fetched once per analysis request.

    Never mutated; only the derived AnalysisResult is persisted.
    """
    model_config = ConfigDict(frozen=True)

    owner: str
    name: str
    full_name: str
    description: str | None = None
    language: str | None = None
    languages: dict[str, int] = Field(default_factory=dict, description="Language -> bytes mapping")
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    open_issues: int = 0
    size: int = 0
    private: bool = False
    license: str | None = Field(None, description="License name, None when the repo has none")
    has_issues: bool = False
    has_wiki: bool = False
    has_pages: bool = False
    has_projects: bool = False
    archived: bool = False
    homepage: str | None = None
    topics: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    default_branch: str = "main"
    html_url: str | None = None
    contents: list[DirectoryEntry] = Field(default_factory=list, description="Top-level directory listing")

    @classmethod
    def from_github(
        cls,
        repo: dict,
        languages: dict[str, int] | None = None,
        contents: list[DirectoryEntry] | None = None,
    ) -> "RepositorySnapshot":
        """Build a snapshot from a GitHub `GET /repos/{owner}/{repo}` payload."""
        license_info = repo.get("license") or {}
        owner_info = repo.get("owner") or {}
        return cls(
            owner=owner_info.get("login") or repo.get("full_name", "/").split("/")[0],
            name=repo["name"],
            full_name=repo.get("full_name") or f"{owner_info.get('login')}/{repo['name']}",
            description=repo.get("description") or None,
            language=repo.get("language"),
            languages=languages or {},
            stars=repo.get("stargazers_count") or 0,
            forks=repo.get("forks_count") or 0,
            watchers=repo.get("watchers_count") or 0,
            open_issues=repo.get("open_issues_count") or 0,
            size=repo.get("size") or 0,
            private=bool(repo.get("private")),
            license=license_info.get("name") or None,
            has_issues=bool(repo.get("has_issues")),
            has_wiki=bool(repo.get("has_wiki")),
            has_pages=bool(repo.get("has_pages")),
            has_projects=bool(repo.get("has_projects")),
            archived=bool(repo.get("archived")),
            homepage=repo.get("homepage") or None,
            topics=repo.get("topics") or [],
            created_at=repo.get("created_at"),
            updated_at=repo.get("updated_at"),
            default_branch=repo.get("default_branch") or "main",
            html_url=repo.get("html_url"),
            contents=contents or [],
        )


# =============================================================================
# ANALYSIS PARTS (output)
# =============================================================================

class DetectedTechnology(BaseModel):
    """A technology found in the repository"""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Display name, unique within a tech stack")
    category: str = Field(..., alias="type", description="Language, Framework, Database/ORM, Testing, CI/CD, ...")
    confidence: Confidence = Field(..., description="high for declared/marker hits, medium for substring hits")
    version: str | None = Field(None, description="Version string as declared in the manifest")
    icon: str | None = Field(None, description="Display icon")


class CodeMetrics(CamelModel):
    """
    Size and quality estimates derived from the language byte histogram.

    total_lines is bytes / 50, not a real line count. avg_complexity is one
    of four fixed anchors and test_coverage is a randomized guess.
    """
    total_lines: int = Field(..., ge=0, description="Estimated lines of code")
    total_files: int = Field(..., ge=0, description="File count from the tree, or an estimate")
    avg_complexity: float = Field(..., ge=0, description="Complexity bucket anchor")
    test_coverage: int = Field(..., ge=0, le=100, description="Estimated test coverage percentage")


class FileTypeBreakdown(BaseModel):
    """Per-language share of the estimated totals"""
    name: str
    count: int = Field(..., ge=0, description="Estimated file count")
    lines: int = Field(..., ge=0, description="Estimated line count")


class ScoreTriple(BaseModel):
    """The three 0-100 quality scores"""
    security_score: int = Field(..., ge=0, le=100)
    maintainability_score: int = Field(..., ge=0, le=100)
    documentation_score: int = Field(..., ge=0, le=100)


class VulnerabilityFinding(BaseModel):
    """A heuristic finding, not a CVE match"""
    severity: Severity
    title: str
    description: str


class CommitDay(BaseModel):
    """Commit count for one calendar day"""
    date: str = Field(..., description="ISO date (YYYY-MM-DD)")
    count: int = Field(..., ge=0)


class Contributor(BaseModel):
    """A contributor as listed by GitHub"""
    login: str
    contributions: int = Field(0, ge=0)
    avatar_url: str = ""


# =============================================================================
# FULL ANALYSIS RESULT
# =============================================================================

class AnalysisResult(CamelModel):
    """
    Complete analysis for one repository.

    This is the unit stored per repository full name; re-analysis replaces it.
    """
    code_metrics: CodeMetrics
    security_score: int = Field(..., ge=0, le=100)
    maintainability_score: int = Field(..., ge=0, le=100)
    documentation_score: int = Field(..., ge=0, le=100)
    commits: list[CommitDay] = Field(..., min_length=30, max_length=30)
    contributors: list[Contributor] = Field(default_factory=list, max_length=10)
    file_types: list[FileTypeBreakdown] = Field(default_factory=list)
    vulnerabilities: list[VulnerabilityFinding] = Field(default_factory=list)
    tech_stack: list[DetectedTechnology] = Field(default_factory=list, max_length=20)
    analyzed_at: datetime


class AnalysisSummary(CamelModel):
    """Row of the recently analyzed repositories list"""
    full_name: str
    owner: str
    name: str
    security_score: int
    maintainability_score: int
    documentation_score: int
    view_count: int
    analyzed_at: datetime


class AnalysisList(BaseModel):
    """Response for GET /analyze"""
    repositories: list[AnalysisSummary] = Field(default_factory=list)
    total: int = 0
