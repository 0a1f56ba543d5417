"""
RepoLens services

- github: GitHub REST client
- tech_stack: Technology detection from manifest and marker files
- metrics: Size estimates and commit activity
- scoring: Quality scores and vulnerability heuristics
- analyzer: Pipeline assembling the AnalysisResult
"""

from .analyzer import analyze_repository, build_analysis
from .github import GitHubAPIError, GitHubClient
from .metrics import EmptyLanguageHistogramError, MetricsCalculator
from .tech_stack import TechStackDetector

__all__ = [
    "analyze_repository",
    "build_analysis",
    "GitHubAPIError",
    "GitHubClient",
    "EmptyLanguageHistogramError",
    "MetricsCalculator",
    "TechStackDetector",
]
