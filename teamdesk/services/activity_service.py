"""Activity log writer and readers."""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.activity import Activity

logger = logging.getLogger(__name__)


def log_activity(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id,
    description: str,
    user_id: UUID,
    project_id: Optional[UUID] = None,
    task_id: Optional[UUID] = None,
) -> Activity:
    """
    Add an Activity row to the session.

    The caller owns the transaction; nothing is flushed or committed here.
    """
    activity = Activity(
        action=getattr(action, "value", action),
        entity_type=entity_type,
        entity_id=str(entity_id),
        description=description,
        user_id=user_id,
        project_id=project_id,
        task_id=task_id,
    )
    db.add(activity)
    logger.debug(f"Activity {activity.action} on {entity_type} {entity_id} by {user_id}")
    return activity


async def get_project_activities(
    db: AsyncSession,
    project_id: UUID,
    limit: int = 50,
) -> List[Activity]:
    """Most recent activities of a project, newest first."""
    result = await db.execute(
        select(Activity)
        .where(Activity.project_id == project_id)
        .order_by(Activity.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
