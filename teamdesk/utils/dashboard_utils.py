"""Aggregations behind the dashboard numbers."""

from typing import Iterable, Sequence

from ..schemas.dashboard import StatusDistribution, TaskStats


def completion_percent(completed: int, total: int) -> int:
    """Whole-number percent, 0 when there is nothing to complete."""
    if total <= 0:
        return 0
    return round(completed / total * 100)


def calculate_task_stats(tasks: Iterable) -> TaskStats:
    """
    Count tasks by completion.

    Accepts anything with a boolean `completed` attribute (ORM tasks or
    TaskResponse objects).
    """
    total = 0
    completed = 0
    for task in tasks:
        total += 1
        if task.completed:
            completed += 1
    return TaskStats(
        total=total,
        completed=completed,
        in_progress=total - completed,
        completion_rate=completion_percent(completed, total),
    )


def calculate_team_members(memberships: Iterable) -> int:
    """Number of distinct users across membership rows."""
    return len({m.user_id for m in memberships})


def calculate_project_status_distribution(
    project_counts: Sequence[tuple],
) -> StatusDistribution:
    """
    Bucket projects by how many of their tasks are completed.

    Args:
        project_counts: (task_count, completed_task_count) per project

    Returns:
        completed when every task is done, in_progress when some are,
        not_started when none are (including projects without tasks)
    """
    distribution = StatusDistribution()
    for task_count, completed_count in project_counts:
        if task_count > 0 and completed_count >= task_count:
            distribution.completed += 1
        elif completed_count > 0:
            distribution.in_progress += 1
        else:
            distribution.not_started += 1
    return distribution


def calculate_growth(current: int, previous: int) -> float:
    """Percent change between two windows, rounded to one decimal."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)
