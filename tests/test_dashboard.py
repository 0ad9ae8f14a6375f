"""Tests for the dashboard endpoint and its aggregation helpers."""

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from httpx import AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import make_project, make_task
from teamdesk.models.team_member import TeamMember
from teamdesk.models.user import User
from teamdesk.utils.dashboard_utils import (
    calculate_growth,
    calculate_project_status_distribution,
    calculate_task_stats,
    calculate_team_members,
    completion_percent,
)


class TestDashboardUtils:
    """Tests for the pure aggregation helpers."""

    def test_completion_percent(self):
        assert completion_percent(0, 0) == 0
        assert completion_percent(1, 3) == 33
        assert completion_percent(2, 3) == 67
        assert completion_percent(4, 4) == 100

    def test_task_stats(self):
        tasks = [SimpleNamespace(completed=flag) for flag in (True, False, True, True)]

        stats = calculate_task_stats(tasks)

        assert stats.total == 4
        assert stats.completed == 3
        assert stats.in_progress == 1
        assert stats.completion_rate == 75

    def test_task_stats_empty(self):
        stats = calculate_task_stats([])
        assert stats.total == 0
        assert stats.completion_rate == 0

    def test_team_members_are_distinct(self):
        rows = [SimpleNamespace(user_id=uid) for uid in ("a", "b", "a", "c", "b")]
        assert calculate_team_members(rows) == 3

    def test_status_distribution(self):
        distribution = calculate_project_status_distribution([(0, 0), (3, 3), (4, 1), (2, 0)])

        assert distribution.completed == 1
        assert distribution.in_progress == 1
        assert distribution.not_started == 2

    def test_growth(self):
        assert calculate_growth(0, 0) == 0.0
        assert calculate_growth(3, 0) == 100.0
        assert calculate_growth(3, 2) == 50.0
        assert calculate_growth(1, 3) == -66.7


@pytest.mark.asyncio
class TestDashboardStats:
    """Tests for GET /api/dashboard/stats."""

    async def test_empty_dashboard(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/api/dashboard/stats", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total_projects"] == 0
        assert data["total_tasks"] == 0
        assert data["team_members"] == 0
        assert data["project_growth"] == 0
        assert data["recent_projects"] == []

    async def test_stats_for_member(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        manager_user: User,
        test_user: User,
        test_user_2: User,
    ):
        first = await make_project(db_session, manager_user, title="First", members=[test_user])
        second = await make_project(db_session, manager_user, title="Second", members=[test_user, test_user_2])
        await make_project(db_session, manager_user, title="Unrelated")
        await make_task(db_session, first, manager_user, title="Open", assignees=[test_user])
        await make_task(db_session, first, manager_user, title="Done", assignees=[test_user], completed=True)
        await make_task(db_session, second, manager_user, title="Someone else's", completed=True)

        response = await client.get("/api/dashboard/stats", headers=auth_headers)

        data = response.json()
        assert data["total_projects"] == 2
        assert data["total_tasks"] == 2
        assert data["completed_tasks"] == 1
        assert data["task_stats"]["completion_rate"] == 50
        assert data["team_members"] == 3
        assert {p["title"] for p in data["recent_projects"]} == {"First", "Second"}
        assert data["status_distribution"] == {"completed": 1, "in_progress": 1, "not_started": 0}
        # Both memberships are new and nothing came before
        assert data["project_growth"] == 100.0

    async def test_growth_compares_windows(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        manager_user: User,
        test_user: User,
    ):
        old_ids = []
        for title in ("Old A", "Old B", "New"):
            project = await make_project(db_session, manager_user, title=title, members=[test_user])
            if title.startswith("Old"):
                old_ids.append(project.id)
        await db_session.execute(
            update(TeamMember)
            .where(TeamMember.user_id == test_user.id, TeamMember.project_id.in_(old_ids))
            .values(joined_at=datetime.utcnow() - timedelta(days=45))
        )
        await db_session.commit()

        response = await client.get("/api/dashboard/stats", headers=auth_headers)

        # One new membership against two in the previous window
        assert response.json()["project_growth"] == -50.0

    async def test_recent_projects_are_capped(
        self,
        client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        manager_user: User,
        test_user: User,
    ):
        for index in range(7):
            await make_project(db_session, manager_user, title=f"Project {index}", members=[test_user])

        response = await client.get("/api/dashboard/stats", headers=auth_headers)

        assert response.json()["total_projects"] == 7
        assert len(response.json()["recent_projects"]) == 5

    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get("/api/dashboard/stats")
        assert response.status_code == 401
