"""Tasks and comments API endpoints.

Tasks belong to a project, may nest under a parent task, and sit in one of
the project's statuses. A task counts as completed while its status is a
completed status.

Access Control:
- Any task operation: admin, project creator or project member
- Create: task_creation
- Change assignees: task_assignment or the task creator
- Delete: task_deletion, the task creator or the project creator
- Move status: project member or task_management
- Delete a comment: its author or an admin
"""

import logging
from typing import Annotated, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import case, delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..constants import ActivityAction, SystemRole
from ..database import get_db
from ..models.comment import Comment
from ..models.project import Project
from ..models.task import TASK_ORDER_STEP, Task, TaskAssignee
from ..models.team_member import TeamMember
from ..models.user import User
from ..schemas.comment import CommentCreate, CommentResponse
from ..schemas.common import MessageResponse
from ..schemas.task import (
    PRIORITY_RANK,
    ReorderPosition,
    TaskCompletionChange,
    TaskCreate,
    TaskDetail,
    TaskPriority,
    TaskReorder,
    TaskReorderResponse,
    TaskResponse,
    TaskStatusChange,
    TaskUpdate,
)
from ..services.activity_service import log_activity
from ..services.auth_service import get_current_active_user
from ..services.permission_service import (
    PermissionService,
    is_admin,
    is_admin_or_manager,
    require_permission,
)
from ..services.project_service import (
    get_default_completed_status,
    get_default_non_completed_status,
    get_project_or_404,
    get_status_in_project,
    verify_project_access,
)
from ..utils.task_utils import build_task_tree, collect_descendant_ids

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Tasks"])


# ============================================================================
# Helper Functions
# ============================================================================


async def get_task_or_404(db: AsyncSession, task_id: UUID, refresh: bool = False) -> Task:
    """
    Fetch a task with status and assignees.

    Args:
        refresh: Reload eager relationships of an instance already in the
            session (after a commit that changed them)
    """
    query = select(Task).where(Task.id == task_id)
    if refresh:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    task = result.unique().scalar_one_or_none()
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task with ID {task_id} not found",
        )
    return task


async def get_parent_map(db: AsyncSession, project_id: UUID) -> Dict[UUID, Optional[UUID]]:
    """child id -> parent id for every task of a project."""
    result = await db.execute(select(Task.id, Task.parent_id).where(Task.project_id == project_id))
    return {task_id: parent_id for task_id, parent_id in result.all()}


async def validate_parent(
    db: AsyncSession,
    task: Optional[Task],
    parent_id: UUID,
    project_id: UUID,
) -> Task:
    """
    Check a prospective parent.

    Raises:
        HTTPException: 404 if missing, 400 if in another project, the task
            itself, or one of its descendants
    """
    result = await db.execute(select(Task).where(Task.id == parent_id))
    parent = result.unique().scalar_one_or_none()
    if not parent:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Parent task with ID {parent_id} not found",
        )
    if parent.project_id != project_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Parent task must belong to the same project",
        )
    if task is not None:
        if parent.id == task.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A task cannot be its own parent",
            )
        descendants = collect_descendant_ids(task.id, await get_parent_map(db, project_id))
        if parent.id in descendants:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A task cannot be moved under one of its own subtasks",
            )
    return parent


async def validate_assignees(db: AsyncSession, project_id: UUID, assignee_ids: List[UUID]) -> List[UUID]:
    """
    Assignees must be project members or admins.

    Raises:
        HTTPException: 400 listing the offending IDs
    """
    wanted = list(dict.fromkeys(assignee_ids))
    if not wanted:
        return []
    members = (
        await db.execute(
            select(TeamMember.user_id).where(
                TeamMember.project_id == project_id,
                TeamMember.user_id.in_(wanted),
            )
        )
    ).scalars().all()
    admins = (
        await db.execute(
            select(User.id).where(User.id.in_(wanted), User.role == SystemRole.ADMIN.value)
        )
    ).scalars().all()
    invalid = [uid for uid in wanted if uid not in set(members) | set(admins)]
    if invalid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Assignees must be project members: {', '.join(str(i) for i in invalid)}",
        )
    return wanted


async def next_sibling_order(db: AsyncSession, project_id: UUID, parent_id: Optional[UUID]) -> int:
    """Max sibling order plus one step; one step when there are no siblings."""
    query = select(func.max(Task.order)).where(Task.project_id == project_id)
    if parent_id is None:
        query = query.where(Task.parent_id.is_(None))
    else:
        query = query.where(Task.parent_id == parent_id)
    max_order = (await db.execute(query)).scalar()
    return TASK_ORDER_STEP if max_order is None else max_order + TASK_ORDER_STEP


async def can_move_task(db: AsyncSession, user: User, project: Project) -> bool:
    """Project access or task_management."""
    service = PermissionService(db)
    if await service.can_access_project(user, project):
        return True
    return await service.user_has_permission(user, "task_management")


async def build_task_detail(db: AsyncSession, task: Task) -> TaskDetail:
    """Task with its nested subtasks, parent summary and comment count."""
    result = await db.execute(select(Task).where(Task.project_id == task.project_id))
    project_tasks = result.unique().scalars().all()
    subtasks = build_task_tree(project_tasks, root_id=task.id)

    parent = None
    if task.parent_id is not None:
        parent_task = next((t for t in project_tasks if t.id == task.parent_id), None)
        if parent_task is not None:
            parent = TaskResponse.model_validate(parent_task)

    comment_count = (
        await db.execute(select(func.count(Comment.id)).where(Comment.task_id == task.id))
    ).scalar() or 0

    return TaskDetail(
        **TaskResponse.model_validate(task).model_dump(),
        subtasks=subtasks,
        parent=parent,
        comment_count=comment_count,
    )


# ============================================================================
# Tasks
# ============================================================================


@router.get(
    "/api/tasks",
    response_model=List[TaskResponse],
    summary="List tasks",
    description="Filter tasks; ordered by priority, position, due date and recency.",
    responses={
        200: {"description": "Tasks retrieved successfully"},
        400: {"description": "Invalid parent_id"},
        401: {"description": "Not authenticated"},
        403: {"description": "No access to the requested project"},
    },
)
async def list_tasks(
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
    project_id: Optional[UUID] = Query(None),
    status_id: Optional[UUID] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    assignee_id: Optional[UUID] = Query(None),
    parent_id: Optional[str] = Query(None, description="Parent task ID, or 'root' for top-level tasks"),
    search: Optional[str] = Query(None, description="Match title or description"),
) -> List[TaskResponse]:
    """
    List tasks.

    - **project_id**, **status_id**, **priority**, **assignee_id**: Exact filters
    - **parent_id**: `root` for top-level tasks, or a task ID for its subtasks
    - **search**: Case-insensitive match on title or description
    """
    query = select(Task)

    if project_id is not None:
        await verify_project_access(db, project_id, current_user)
        query = query.where(Task.project_id == project_id)
    elif not is_admin_or_manager(current_user):
        member_projects = select(TeamMember.project_id).where(TeamMember.user_id == current_user.id)
        created_projects = select(Project.id).where(Project.created_by_id == current_user.id)
        query = query.where(
            or_(Task.project_id.in_(member_projects), Task.project_id.in_(created_projects))
        )

    if status_id is not None:
        query = query.where(Task.status_id == status_id)
    if priority is not None:
        query = query.where(Task.priority == priority.value)
    if assignee_id is not None:
        query = query.where(
            exists().where(TaskAssignee.task_id == Task.id, TaskAssignee.user_id == assignee_id)
        )
    if parent_id:
        if parent_id == "root":
            query = query.where(Task.parent_id.is_(None))
        else:
            try:
                query = query.where(Task.parent_id == UUID(parent_id))
            except ValueError:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="parent_id must be a task ID or 'root'",
                )
    if search:
        pattern = f"%{search.lower()}%"
        query = query.where(
            or_(func.lower(Task.title).like(pattern), func.lower(Task.description).like(pattern))
        )

    priority_rank = case(PRIORITY_RANK, value=Task.priority, else_=0)
    query = query.order_by(
        priority_rank.desc(),
        Task.order.asc(),
        Task.due_date.is_(None),
        Task.due_date.asc(),
        Task.updated_at.desc(),
    )
    result = await db.execute(query)
    return [TaskResponse.model_validate(t) for t in result.unique().scalars().all()]


@router.post(
    "/api/tasks",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
    responses={
        201: {"description": "Task created successfully"},
        400: {"description": "Status, parent or assignee invalid for the project"},
        403: {"description": "Missing task_creation or no project access"},
        404: {"description": "Project or parent task not found"},
    },
)
async def create_task(
    task_data: TaskCreate,
    current_user: Annotated[User, Depends(require_permission("task_creation"))],
    db: AsyncSession = Depends(get_db),
) -> TaskResponse:
    """
    Create a task.

    - **title**: Task title (required)
    - **project_id**: Owning project (required)
    - **status_id**: Defaults to the project's default open status
    - **parent_id**: Parent task in the same project
    - **assignee_ids**: Project members (or admins)

    The task is appended after its siblings.
    """
    project = await verify_project_access(db, task_data.project_id, current_user)

    if task_data.status_id is not None:
        task_status = await get_status_in_project(db, task_data.status_id, project.id)
        if task_status is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Status does not belong to this project",
            )
    else:
        task_status = await get_default_non_completed_status(db, project.id)

    if task_data.parent_id is not None:
        await validate_parent(db, None, task_data.parent_id, project.id)

    assignee_ids = await validate_assignees(db, project.id, task_data.assignee_ids)

    task = Task(
        title=task_data.title,
        description=task_data.description,
        priority=task_data.priority.value,
        due_date=task_data.due_date,
        start_date=task_data.start_date,
        end_date=task_data.end_date,
        estimated_time=task_data.estimated_time,
        time_spent=task_data.time_spent,
        project_id=project.id,
        status_id=task_status.id if task_status else None,
        parent_id=task_data.parent_id,
        created_by_id=current_user.id,
        order=await next_sibling_order(db, project.id, task_data.parent_id),
    )
    db.add(task)
    await db.flush()

    for user_id in assignee_ids:
        db.add(TaskAssignee(task_id=task.id, user_id=user_id))

    log_activity(
        db,
        action=ActivityAction.CREATED,
        entity_type="task",
        entity_id=task.id,
        description=f'Created task "{task.title}"',
        user_id=current_user.id,
        project_id=project.id,
        task_id=task.id,
    )
    await db.commit()

    task = await get_task_or_404(db, task.id, refresh=True)
    return TaskResponse.model_validate(task)


@router.post(
    "/api/tasks/reorder",
    response_model=TaskReorderResponse,
    summary="Reorder or re-parent a task",
    responses={
        200: {"description": "Task moved"},
        400: {"description": "Invalid target or parent (other project or a cycle)"},
        403: {"description": "No project access"},
        404: {"description": "Task, target or parent not found"},
    },
)
async def reorder_task(
    reorder: TaskReorder,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> TaskReorderResponse:
    """
    Move a task among its siblings.

    - **task_id**: Task to move
    - **target_task_id**: Sibling to drop next to; its parent becomes the new parent
    - **new_parent_id**: Explicit new parent (same project, not a descendant)
    - **move_to_root**: Detach from the current parent
    - **position**: `before` or `after` the target

    Sibling orders are renumbered in steps of 1000.
    """
    task = await get_task_or_404(db, reorder.task_id)
    await verify_project_access(db, task.project_id, current_user)

    target = None
    if reorder.target_task_id is not None:
        if reorder.target_task_id == task.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A task cannot be placed relative to itself",
            )
        target = await get_task_or_404(db, reorder.target_task_id)
        if target.project_id != task.project_id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Target task must belong to the same project",
            )

    if reorder.move_to_root:
        new_parent_id = None
    elif reorder.new_parent_id is not None:
        new_parent_id = reorder.new_parent_id
    elif target is not None:
        new_parent_id = target.parent_id
    else:
        new_parent_id = task.parent_id

    if new_parent_id is not None and new_parent_id != task.parent_id:
        await validate_parent(db, task, new_parent_id, task.project_id)

    if target is not None and target.parent_id != new_parent_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Target task is not a sibling under the chosen parent",
        )

    sibling_query = select(Task).where(Task.project_id == task.project_id, Task.id != task.id)
    if new_parent_id is None:
        sibling_query = sibling_query.where(Task.parent_id.is_(None))
    else:
        sibling_query = sibling_query.where(Task.parent_id == new_parent_id)
    result = await db.execute(sibling_query.order_by(Task.order, Task.created_at))
    siblings = list(result.unique().scalars().all())

    if target is None:
        index = len(siblings)
    else:
        index = next(i for i, s in enumerate(siblings) if s.id == target.id)
        if reorder.position == ReorderPosition.AFTER:
            index += 1
    siblings.insert(index, task)

    task.parent_id = new_parent_id
    for position, sibling in enumerate(siblings, start=1):
        sibling.order = position * TASK_ORDER_STEP

    await db.commit()

    task = await get_task_or_404(db, task.id, refresh=True)
    return TaskReorderResponse(
        task=TaskResponse.model_validate(task),
        sibling_ids=[s.id for s in siblings],
    )


@router.get(
    "/api/tasks/{task_id}",
    response_model=TaskDetail,
    summary="Get a task",
    responses={
        200: {"description": "Task retrieved"},
        403: {"description": "No project access"},
        404: {"description": "Task not found"},
    },
)
async def get_task(
    task_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> TaskDetail:
    """Task with status, assignees, parent summary, nested subtasks and comment count."""
    task = await get_task_or_404(db, task_id)
    await verify_project_access(db, task.project_id, current_user)
    return await build_task_detail(db, task)


@router.patch(
    "/api/tasks/{task_id}",
    response_model=TaskResponse,
    summary="Update a task",
    responses={
        200: {"description": "Task updated"},
        400: {"description": "Invalid status, parent or assignees"},
        403: {"description": "No project access or missing task_assignment"},
        404: {"description": "Task or parent not found"},
    },
)
async def update_task(
    task_id: UUID,
    task_data: TaskUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> TaskResponse:
    """
    Update a task. Only provided fields change.

    - **assignee_ids**: Replaces the full set (task_assignment or task creator)
    - **status_id**: Must belong to the task's project
    - **parent_id**: Same project, never the task itself or a descendant; null detaches
    """
    task = await get_task_or_404(db, task_id)
    await verify_project_access(db, task.project_id, current_user)
    update_data = task_data.model_dump(exclude_unset=True)

    assignee_ids = update_data.pop("assignee_ids", None)
    if assignee_ids is not None:
        if task.created_by_id != current_user.id:
            if not await PermissionService(db).user_has_permission(current_user, "task_assignment"):
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="You do not have permission to assign tasks",
                )
        assignee_ids = await validate_assignees(db, task.project_id, assignee_ids)

    if update_data.get("status_id") is not None:
        if await get_status_in_project(db, update_data["status_id"], task.project_id) is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Status does not belong to this project",
            )

    if "parent_id" in update_data:
        new_parent_id = update_data["parent_id"]
        if new_parent_id is not None:
            await validate_parent(db, task, new_parent_id, task.project_id)
        if new_parent_id != task.parent_id:
            task.order = await next_sibling_order(db, task.project_id, new_parent_id)

    for field, value in update_data.items():
        if field in ("title", "priority") and value is None:
            continue
        if field == "priority":
            value = value.value
        setattr(task, field, value)

    if assignee_ids is not None:
        await db.execute(delete(TaskAssignee).where(TaskAssignee.task_id == task.id))
        for user_id in assignee_ids:
            db.add(TaskAssignee(task_id=task.id, user_id=user_id))

    log_activity(
        db,
        action=ActivityAction.UPDATED,
        entity_type="task",
        entity_id=task.id,
        description=f'Updated task "{task.title}"',
        user_id=current_user.id,
        project_id=task.project_id,
        task_id=task.id,
    )
    await db.commit()

    task = await get_task_or_404(db, task.id, refresh=True)
    return TaskResponse.model_validate(task)


@router.delete(
    "/api/tasks/{task_id}",
    response_model=MessageResponse,
    summary="Delete a task",
    responses={
        200: {"description": "Task and subtasks deleted"},
        403: {"description": "Not allowed to delete this task"},
        404: {"description": "Task not found"},
    },
)
async def delete_task(
    task_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete a task. Subtasks, assignments and comments cascade."""
    task = await get_task_or_404(db, task_id)
    project = await verify_project_access(db, task.project_id, current_user)

    if task.created_by_id != current_user.id and project.created_by_id != current_user.id:
        if not await PermissionService(db).user_has_permission(current_user, "task_deletion"):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to delete this task",
            )

    log_activity(
        db,
        action=ActivityAction.DELETED,
        entity_type="task",
        entity_id=task.id,
        description=f'Deleted task "{task.title}"',
        user_id=current_user.id,
        project_id=project.id,
    )
    await db.delete(task)
    await db.commit()
    return MessageResponse(message="Task deleted successfully")


@router.patch(
    "/api/tasks/{task_id}/status",
    response_model=TaskResponse,
    summary="Move a task to another status",
    responses={
        200: {"description": "Status changed"},
        403: {"description": "Not a project member and missing task_management"},
        404: {"description": "Task or status not found in the project"},
    },
)
async def change_task_status(
    task_id: UUID,
    change: TaskStatusChange,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> TaskResponse:
    """Move the task to a status of its own project."""
    task = await get_task_or_404(db, task_id)
    project = await get_project_or_404(db, task.project_id)

    new_status = await get_status_in_project(db, change.status_id, project.id)
    if new_status is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Status not found in this project",
        )
    if not await can_move_task(db, current_user, project):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to change this task's status",
        )

    old_name = task.status.name if task.status else "No status"
    task.status_id = new_status.id
    log_activity(
        db,
        action=ActivityAction.STATUS_CHANGED,
        entity_type="task",
        entity_id=task.id,
        description=f'Task "{task.title}" moved from "{old_name}" to "{new_status.name}"',
        user_id=current_user.id,
        project_id=project.id,
        task_id=task.id,
    )
    await db.commit()

    task = await get_task_or_404(db, task.id, refresh=True)
    return TaskResponse.model_validate(task)


@router.patch(
    "/api/tasks/{task_id}/complete",
    response_model=TaskResponse,
    summary="Mark a task completed or reopen it",
    responses={
        200: {"description": "Completion changed"},
        400: {"description": "The project has no matching status"},
        403: {"description": "Not a project member and missing task_management"},
        404: {"description": "Task not found"},
    },
)
async def set_task_completion(
    task_id: UUID,
    change: TaskCompletionChange,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> TaskResponse:
    """Move the task to the project's default completed or open status."""
    task = await get_task_or_404(db, task_id)
    project = await get_project_or_404(db, task.project_id)
    if not await can_move_task(db, current_user, project):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have permission to change this task's status",
        )

    if change.completed:
        target = await get_default_completed_status(db, project.id)
    else:
        target = await get_default_non_completed_status(db, project.id)
    if target is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The project has no status to move this task to",
        )

    old_name = task.status.name if task.status else "No status"
    if task.status_id != target.id:
        task.status_id = target.id
        log_activity(
            db,
            action=ActivityAction.STATUS_CHANGED,
            entity_type="task",
            entity_id=task.id,
            description=f'Task "{task.title}" moved from "{old_name}" to "{target.name}"',
            user_id=current_user.id,
            project_id=project.id,
            task_id=task.id,
        )
        await db.commit()

    task = await get_task_or_404(db, task.id, refresh=True)
    return TaskResponse.model_validate(task)


# ============================================================================
# Comments
# ============================================================================


@router.get(
    "/api/tasks/{task_id}/comments",
    response_model=List[CommentResponse],
    summary="List task comments",
    responses={
        403: {"description": "No project access"},
        404: {"description": "Task not found"},
    },
)
async def list_comments(
    task_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> List[CommentResponse]:
    """Comments oldest first."""
    task = await get_task_or_404(db, task_id)
    await verify_project_access(db, task.project_id, current_user)
    result = await db.execute(
        select(Comment).where(Comment.task_id == task_id).order_by(Comment.created_at)
    )
    return [CommentResponse.model_validate(c) for c in result.scalars().all()]


@router.post(
    "/api/tasks/{task_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a task",
    responses={
        201: {"description": "Comment created"},
        403: {"description": "No project access"},
        404: {"description": "Task not found"},
    },
)
async def create_comment(
    task_id: UUID,
    comment_data: CommentCreate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    """
    Add a comment.

    - **content**: Comment text (1-10000 characters)
    """
    task = await get_task_or_404(db, task_id)
    await verify_project_access(db, task.project_id, current_user)

    comment = Comment(content=comment_data.content, task_id=task.id, user_id=current_user.id)
    db.add(comment)
    await db.flush()
    log_activity(
        db,
        action=ActivityAction.CREATED,
        entity_type="comment",
        entity_id=comment.id,
        description=f'Commented on task "{task.title}"',
        user_id=current_user.id,
        project_id=task.project_id,
        task_id=task.id,
    )
    await db.commit()

    result = await db.execute(
        select(Comment).where(Comment.id == comment.id).execution_options(populate_existing=True)
    )
    return CommentResponse.model_validate(result.scalar_one())


@router.delete(
    "/api/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete a comment",
    responses={
        403: {"description": "Only the author or an admin"},
        404: {"description": "Comment not found"},
    },
)
async def delete_comment(
    comment_id: UUID,
    current_user: Annotated[User, Depends(get_current_active_user)],
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    result = await db.execute(select(Comment).where(Comment.id == comment_id))
    comment = result.scalar_one_or_none()
    if not comment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Comment with ID {comment_id} not found",
        )
    if comment.user_id != current_user.id and not is_admin(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the author or an admin can delete this comment",
        )
    await db.delete(comment)
    await db.commit()
    return MessageResponse(message="Comment deleted successfully")
