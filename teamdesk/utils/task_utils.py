"""Task tree and ordering helpers."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from ..models.task import Task
from ..schemas.task import PRIORITY_RANK, TaskResponse, TaskTreeNode


def is_task_completed(task) -> bool:
    """True when the task sits in a status flagged as completed."""
    status = getattr(task, "status", None)
    return bool(status is not None and status.is_completed_status)


def get_user_initials(name: Optional[str]) -> str:
    """Two-letter avatar fallback: 'Jane Doe' -> 'JD', 'jane' -> 'JA', None -> 'U'."""
    if not name or not name.strip():
        return "U"
    parts = name.split()
    if len(parts) >= 2:
        return f"{parts[0][0]}{parts[1][0]}".upper()
    return parts[0][:2].upper()


def task_sort_key(task):
    """
    Priority high first, then order, then due date (missing last), then
    most recently updated.
    """
    due = task.due_date or datetime.max
    updated = task.updated_at or datetime.min
    return (
        -PRIORITY_RANK.get(task.priority, 0),
        task.order,
        due,
        -updated.timestamp() if updated != datetime.min else 0,
    )


def sort_tasks(tasks: Iterable) -> List:
    return sorted(tasks, key=task_sort_key)


def build_task_tree(tasks: Iterable[Task], root_id: Optional[UUID] = None) -> List[TaskTreeNode]:
    """
    Turn flat task rows into nested TaskTreeNodes.

    Args:
        tasks: Rows of one project (or one subtree)
        root_id: Return the children of this task; None returns top-level
            tasks, meaning those whose parent is absent from `tasks`

    Returns:
        Sorted nodes with their subtasks nested recursively
    """
    tasks = list(tasks)
    ids = {t.id for t in tasks}
    children: Dict[Optional[UUID], List[Task]] = {}
    for task in tasks:
        parent = task.parent_id if task.parent_id in ids else None
        children.setdefault(parent, []).append(task)

    def build(parent_id: Optional[UUID], seen: frozenset) -> List[TaskTreeNode]:
        nodes = []
        for task in sort_tasks(children.get(parent_id, [])):
            if task.id in seen:
                continue
            base = TaskResponse.model_validate(task).model_dump()
            nodes.append(TaskTreeNode(**base, subtasks=build(task.id, seen | {task.id})))
        return nodes

    return build(root_id, frozenset())


def find_subtask_by_id(task_id: UUID, nodes: List[TaskTreeNode]) -> Optional[TaskTreeNode]:
    """Depth-first search of a task tree."""
    for node in nodes:
        if node.id == task_id:
            return node
    for node in nodes:
        found = find_subtask_by_id(task_id, node.subtasks)
        if found is not None:
            return found
    return None


def collect_descendant_ids(task_id: UUID, parent_of: Dict[UUID, Optional[UUID]]) -> set:
    """IDs of every task below task_id, given a child -> parent map."""
    children: Dict[UUID, List[UUID]] = {}
    for child, parent in parent_of.items():
        if parent is not None:
            children.setdefault(parent, []).append(child)
    found = set()
    stack = [task_id]
    while stack:
        for child in children.get(stack.pop(), []):
            if child not in found:
                found.add(child)
                stack.append(child)
    return found
