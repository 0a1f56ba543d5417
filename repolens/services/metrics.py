"""
Code metrics and commit activity for RepoLens.

Everything here is an estimate built from the GitHub language byte
histogram and directory listings; no file contents are downloaded.
"""

import math
import random
from datetime import date, datetime, timedelta, timezone

from ..schemas import CodeMetrics, CommitDay, CommitRecord, DirectoryEntry, FileTypeBreakdown


# =============================================================================
# CONFIGURATION
# =============================================================================

AVG_BYTES_PER_LINE = 50
AVG_LINES_PER_FILE = 100

# (minimum lines, complexity anchor), checked top to bottom
COMPLEXITY_BUCKETS = [
    (100_000, 8.5),
    (50_000, 6.2),
    (10_000, 4.8),
]
BASE_COMPLEXITY = 3.2

# Coverage draw ranges [low, high) by number of test signals present
COVERAGE_RANGES = {
    2: (70, 100),
    1: (40, 80),
    0: (20, 50),
}

COMMIT_HISTORY_DAYS = 30


class EmptyLanguageHistogramError(ValueError):
    """The repository reports no language bytes, so nothing can be estimated."""


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class MetricsCalculator:

    @staticmethod
    def complexity_bucket(estimated_lines: int) -> float:
        for threshold, anchor in COMPLEXITY_BUCKETS:
            if estimated_lines >= threshold:
                return anchor
        return BASE_COMPLEXITY

    @staticmethod
    def test_signals(contents: list[DirectoryEntry]) -> int:
        """Count of test signals in the top-level listing (0, 1 or 2)."""
        names = [entry.name.lower() for entry in contents]
        has_test_dir = any("test" in name or "spec" in name for name in names)
        has_test_files = any(".test." in name or ".spec." in name for name in names)
        return int(has_test_dir) + int(has_test_files)

    @staticmethod
    def estimate_test_coverage(contents: list[DirectoryEntry], rng: random.Random | None = None) -> int:
        """
        Guess a coverage percentage from test signals.

        Randomized on purpose: pass a seeded Random to make it repeatable.
        """
        rng = rng or random.Random()
        low, high = COVERAGE_RANGES[MetricsCalculator.test_signals(contents)]
        return low + int(rng.random() * (high - low))

    @staticmethod
    def estimate_code_metrics(
        languages: dict[str, int],
        contents: list[DirectoryEntry],
        tree: list[DirectoryEntry] | None = None,
        rng: random.Random | None = None,
    ) -> tuple[CodeMetrics, list[FileTypeBreakdown]]:
        """
        Estimate size metrics and the per-language breakdown.

        Args:
            languages: Language -> bytes histogram
            contents: Top-level directory listing (test signals)
            tree: Recursive listing for an exact file count, None if unavailable
            rng: Random source for the coverage guess

        Raises:
            EmptyLanguageHistogramError: when the histogram has no bytes
        """
        total_bytes = sum(languages.values())
        if total_bytes <= 0:
            raise EmptyLanguageHistogramError("Repository has no language data to analyze")

        estimated_lines = round_half_up(total_bytes / AVG_BYTES_PER_LINE)

        if tree is not None:
            total_files = sum(1 for entry in tree if entry.type == "file")
        else:
            total_files = round_half_up(estimated_lines / AVG_LINES_PER_FILE)

        metrics = CodeMetrics(
            total_lines=estimated_lines,
            total_files=total_files,
            avg_complexity=MetricsCalculator.complexity_bucket(estimated_lines),
            test_coverage=MetricsCalculator.estimate_test_coverage(contents, rng),
        )

        file_types = [
            FileTypeBreakdown(
                name=language,
                count=round_half_up(total_files * byte_count / total_bytes),
                lines=round_half_up(estimated_lines * byte_count / total_bytes),
            )
            for language, byte_count in languages.items()
        ]
        return metrics, file_types

    @staticmethod
    def bin_commit_history(
        commits: list[CommitRecord],
        today: date | None = None,
        days: int = COMMIT_HISTORY_DAYS,
    ) -> list[CommitDay]:
        """
        Daily commit counts for the last `days` calendar days, oldest first.

        Commits are bucketed by their UTC calendar date, so a commit is counted
        on exactly one day regardless of the time of day it was made.
        """
        if today is None:
            today = datetime.now(timezone.utc).date()

        counts: dict[date, int] = {}
        for commit in commits:
            authored = commit.authored_at
            if authored.tzinfo is not None:
                authored = authored.astimezone(timezone.utc)
            day = authored.date()
            counts[day] = counts.get(day, 0) + 1

        history = []
        for offset in range(days):
            day = today - timedelta(days=offset)
            history.append(CommitDay(date=day.isoformat(), count=counts.get(day, 0)))
        history.reverse()
        return history
