from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends, Request, status
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_user
from ..filters import parse_page, parse_select
from ..models import User
from ..services import teams as team_service

router = APIRouter(prefix="/api/teams", tags=["teams"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_team(
    attrs: Dict[str, Any] = Body(...),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = team_service.create_team(db, current_user, attrs)
    return {"success": True, "data": team_service.team_to_read(db, team, current_user)}


@router.get("")
async def list_teams(
    request: Request,
    select: Optional[str] = None,
    sort: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """
    List teams. Any other query parameter is a filter, either ``field=value``
    or ``field[op]=value`` with op one of eq, gt, gte, lt, lte, in.
    ``select`` is a comma list of the fields to return.
    """
    fields = parse_select(select, team_service.TEAM_SELECT_FIELDS)
    page_spec = parse_page(page, limit)
    teams, total = team_service.list_teams(
        db,
        request.query_params.multi_items(),
        page_spec,
        sort=sort
    )
    return {
        "success": True,
        "count": len(teams),
        "total": total,
        "pagination": page_spec.links(total),
        "data": [
            team_service.team_to_read(db, team, current_user).model_dump(include=fields)
            for team in teams
        ]
    }


@router.get("/invites")
async def my_invites(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Pending invites addressed to the current user."""
    invites = team_service.list_my_invites(db, current_user)
    return {
        "success": True,
        "count": len(invites),
        "data": [team_service.invite_to_read(db, invite) for invite in invites]
    }


@router.get("/{team_id}")
async def get_team(
    team_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = team_service.get_team(db, team_id)
    return {"success": True, "data": team_service.team_to_read(db, team, current_user)}


@router.put("/{team_id}")
async def update_team(
    team_id: int,
    attrs: Dict[str, Any] = Body(...),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team = team_service.update_team(db, current_user, team_id, attrs)
    return {"success": True, "data": team_service.team_to_read(db, team, current_user)}


@router.post("/{team_id}/invite/{user_id}")
async def invite_to_team(
    team_id: int,
    user_id: int,
    attrs: Optional[Dict[str, Any]] = Body(default=None),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team_invite = team_service.invite(db, current_user, team_id, user_id, attrs or {})
    return {"success": True, "data": team_service.invite_to_read(db, team_invite)}


@router.post("/{team_id}/respond")
async def respond_to_invite(
    team_id: int,
    attrs: Dict[str, Any] = Body(...),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team_invite = team_service.respond_to_invite(db, current_user, team_id, attrs)
    return {"success": True, "data": team_service.invite_to_read(db, team_invite)}


@router.delete("/{team_id}/members/{user_id}")
async def remove_member(
    team_id: int,
    user_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team_service.remove_member(db, current_user, team_id, user_id)
    return {"success": True, "data": {}}


@router.post("/{team_id}/leave")
async def leave_team(
    team_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    team_deleted = team_service.leave(db, current_user, team_id)
    return {"success": True, "data": {"team_deleted": team_deleted}}
