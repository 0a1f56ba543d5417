import random
from datetime import date, datetime, timedelta, timezone

import pytest

from repolens.schemas import CommitRecord, DirectoryEntry
from repolens.services.metrics import EmptyLanguageHistogramError, MetricsCalculator


def _entries(*names: str, entry_type: str = "file") -> list[DirectoryEntry]:
    return [DirectoryEntry(name=name, path=name, type=entry_type) for name in names]


# =============================================================================
# CODE METRICS
# =============================================================================

def test_typescript_only_histogram() -> None:
    metrics, file_types = MetricsCalculator.estimate_code_metrics(
        {"TypeScript": 500_000}, contents=[], rng=random.Random(1),
    )

    assert metrics.total_lines == 10_000
    assert metrics.total_files == 100
    assert metrics.avg_complexity == 4.8
    assert [(ft.name, ft.count, ft.lines) for ft in file_types] == [("TypeScript", 100, 10_000)]


def test_tree_listing_gives_exact_file_count() -> None:
    tree = _entries("a.py", "b.py", "src/c.py") + _entries("src", entry_type="dir")

    metrics, _ = MetricsCalculator.estimate_code_metrics({"Python": 1_000}, contents=[], tree=tree)

    assert metrics.total_files == 3


@pytest.mark.parametrize("histogram", [{}, {"Markdown": 0}])
def test_empty_histogram_raises(histogram: dict[str, int]) -> None:
    with pytest.raises(EmptyLanguageHistogramError):
        MetricsCalculator.estimate_code_metrics(histogram, contents=[])


@pytest.mark.parametrize(
    "lines,expected",
    [
        (250_000, 8.5),
        (100_000, 8.5),
        (60_000, 6.2),
        (50_000, 6.2),
        (10_000, 4.8),
        (9_999, 3.2),
        (0, 3.2),
    ],
)
def test_complexity_buckets(lines: int, expected: float) -> None:
    assert MetricsCalculator.complexity_bucket(lines) == expected


def test_file_type_lines_add_up_to_total_within_rounding() -> None:
    histogram = {"Python": 123_457, "JavaScript": 98_765, "HTML": 4_321, "Shell": 77}

    metrics, file_types = MetricsCalculator.estimate_code_metrics(histogram, contents=[])

    assert [ft.name for ft in file_types] == list(histogram)
    assert abs(sum(ft.lines for ft in file_types) - metrics.total_lines) <= len(histogram)


@pytest.mark.parametrize(
    "contents,low,high",
    [
        (_entries("tests", entry_type="dir") + _entries("app.test.js"), 70, 100),
        (_entries("spec", entry_type="dir"), 40, 80),
        (_entries("src", entry_type="dir") + _entries("README.md"), 20, 50),
    ],
)
def test_coverage_range_follows_test_signals(contents, low: int, high: int) -> None:
    for seed in range(50):
        coverage = MetricsCalculator.estimate_test_coverage(contents, random.Random(seed))
        assert low <= coverage < high


def test_coverage_is_repeatable_with_a_seeded_random() -> None:
    contents = _entries("__tests__", entry_type="dir")

    first = MetricsCalculator.estimate_test_coverage(contents, random.Random(42))
    second = MetricsCalculator.estimate_test_coverage(contents, random.Random(42))

    assert first == second


def test_test_signals_are_case_insensitive() -> None:
    assert MetricsCalculator.test_signals(_entries("Tests", entry_type="dir")) == 1
    assert MetricsCalculator.test_signals(_entries("Button.SPEC.tsx")) == 2
    assert MetricsCalculator.test_signals(_entries("src", "docs")) == 0


# =============================================================================
# COMMIT HISTORY
# =============================================================================

TODAY = date(2024, 3, 15)


def _commit(when: datetime) -> CommitRecord:
    return CommitRecord(sha=when.isoformat(), authored_at=when)


def test_empty_commit_list_gives_thirty_zero_days() -> None:
    history = MetricsCalculator.bin_commit_history([], today=TODAY)

    assert len(history) == 30
    assert all(day.count == 0 for day in history)
    assert history[0].date == "2024-02-15"
    assert history[-1].date == "2024-03-15"


def test_days_are_consecutive_oldest_first() -> None:
    history = MetricsCalculator.bin_commit_history([], today=TODAY)

    dates = [date.fromisoformat(day.date) for day in history]
    assert all(later - earlier == timedelta(days=1) for earlier, later in zip(dates, dates[1:]))


def test_commits_are_counted_per_calendar_day() -> None:
    commits = [
        _commit(datetime(2024, 3, 15, 0, 5, tzinfo=timezone.utc)),
        _commit(datetime(2024, 3, 15, 23, 55, tzinfo=timezone.utc)),
        _commit(datetime(2024, 3, 14, 12, 0, tzinfo=timezone.utc)),
        _commit(datetime(2024, 2, 1, 12, 0, tzinfo=timezone.utc)),  # outside the window
    ]

    history = MetricsCalculator.bin_commit_history(commits, today=TODAY)

    assert history[-1].count == 2
    assert history[-2].count == 1
    assert sum(day.count for day in history) == 3


def test_commit_timestamps_are_binned_by_utc_date() -> None:
    late_evening_new_york = datetime(2024, 3, 14, 22, 30, tzinfo=timezone(timedelta(hours=-5)))

    history = MetricsCalculator.bin_commit_history([_commit(late_evening_new_york)], today=TODAY)

    assert history[-1].count == 1
    assert history[-2].count == 0


def test_default_today_is_current_utc_date() -> None:
    history = MetricsCalculator.bin_commit_history([])

    assert len(history) == 30
    assert history[-1].date == datetime.now(timezone.utc).date().isoformat()
