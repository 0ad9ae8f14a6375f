"""Grouping, deduplication and sorting of team membership rows.

Functions here work on TeamMemberResponse objects that already carry the
nested user and project, so they never touch the database.
"""

from typing import Dict, List

from ..schemas.team import (
    ProjectSummary,
    ProjectTeamGroup,
    TeamMemberResponse,
    UserTeamGroup,
)


def dedupe_members(members: List[TeamMemberResponse]) -> List[TeamMemberResponse]:
    """Drop repeated (user, project) pairs, keeping the first occurrence."""
    seen = set()
    unique = []
    for member in members:
        key = (member.user_id, member.project_id)
        if key in seen:
            continue
        seen.add(key)
        unique.append(member)
    return unique


def _sort_key(member: TeamMemberResponse, field: str):
    if field == "name":
        user = member.user
        return ((user.name or user.email or "").lower()) if user else ""
    if field == "email":
        return (member.user.email.lower()) if member.user else ""
    if field == "task_count":
        return member.task_count
    return member.joined_at


def sort_members(
    members: List[TeamMemberResponse],
    field: str = "name",
    descending: bool = False,
) -> List[TeamMemberResponse]:
    """Sort by name, email, joined_at or task_count."""
    return sorted(members, key=lambda m: _sort_key(m, field), reverse=descending)


def group_members_by_user(members: List[TeamMemberResponse]) -> List[UserTeamGroup]:
    """
    Collapse memberships into one entry per user.

    Each entry lists the user's distinct projects and sums task counts.
    Groups are ordered by user name (email when unnamed).
    """
    groups: Dict = {}
    for member in dedupe_members(members):
        if member.user is None:
            continue
        group = groups.get(member.user_id)
        if group is None:
            group = UserTeamGroup(user=member.user, projects=[], membership_ids=[])
            groups[member.user_id] = group
        if member.project is not None:
            group.projects.append(ProjectSummary(id=member.project.id, title=member.project.title))
        group.membership_ids.append(member.id)
        group.task_count += member.task_count

    for group in groups.values():
        group.projects.sort(key=lambda p: p.title.lower())

    return sorted(
        groups.values(),
        key=lambda g: (g.user.name or g.user.email or "").lower(),
    )


def group_members_by_project(
    members: List[TeamMemberResponse],
    sort_field: str = "name",
    descending: bool = False,
) -> List[ProjectTeamGroup]:
    """One entry per project with its sorted, deduplicated members."""
    groups: Dict = {}
    for member in dedupe_members(members):
        if member.project is None:
            continue
        group = groups.get(member.project_id)
        if group is None:
            group = ProjectTeamGroup(
                project=ProjectSummary(id=member.project.id, title=member.project.title),
                members=[],
            )
            groups[member.project_id] = group
        group.members.append(member)

    for group in groups.values():
        group.members = sort_members(group.members, sort_field, descending)

    return sorted(groups.values(), key=lambda g: g.project.title.lower())
