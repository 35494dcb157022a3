from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends, Query, status
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_user
from ..models import User
from ..services import tasks as task_service

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    attrs: Dict[str, Any] = Body(...),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    task = task_service.create_task(db, current_user, attrs)
    return {"success": True, "data": task_service.task_to_read(db, task)}


@router.get("/team/{team_id}")
async def team_tasks(
    team_id: int,
    task_status: Optional[str] = Query(default=None, alias="status"),
    assigned_to: Optional[int] = None,
    priority: Optional[str] = None,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    tasks = task_service.list_team_tasks(
        db,
        current_user,
        team_id,
        status=task_status,
        assigned_to=assigned_to,
        priority=priority
    )
    return {
        "success": True,
        "count": len(tasks),
        "data": [task_service.task_to_read(db, task) for task in tasks]
    }


@router.get("/{task_id}")
async def get_task(
    task_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    task = task_service.get_task(db, current_user, task_id)
    return {"success": True, "data": task_service.task_to_read(db, task)}


@router.put("/{task_id}")
async def update_task(
    task_id: int,
    attrs: Dict[str, Any] = Body(...),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    task = task_service.update_task(db, current_user, task_id, attrs)
    return {"success": True, "data": task_service.task_to_read(db, task)}


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    task_service.delete_task(db, current_user, task_id)
    return {"success": True, "data": {}}


@router.post("/{task_id}/assign")
async def assign_task(
    task_id: int,
    attrs: Dict[str, Any] = Body(...),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    task = task_service.assign_task(db, current_user, task_id, attrs)
    return {"success": True, "data": task_service.task_to_read(db, task)}


@router.delete("/{task_id}/assign/{user_id}")
async def remove_assignee(
    task_id: int,
    user_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    task = task_service.remove_assignee(db, current_user, task_id, user_id)
    return {"success": True, "data": task_service.task_to_read(db, task)}


@router.post("/{task_id}/comments", status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: int,
    attrs: Dict[str, Any] = Body(...),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    comment = task_service.add_comment(db, current_user, task_id, attrs)
    return {"success": True, "data": comment}
