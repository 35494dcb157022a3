from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_user
from ..filters import parse_page
from ..models import User
from ..services.users import get_user, list_users, to_public, update_profile

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me")
async def get_me(current_user: User = Depends(require_user)):
    return {"success": True, "data": to_public(current_user)}


@router.put("/me")
async def update_me(
    attrs: Dict[str, Any] = Body(...),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    user = update_profile(db, current_user, attrs)
    return {"success": True, "data": to_public(user)}


@router.get("")
async def get_users(
    skill: Optional[str] = None,
    role: Optional[str] = None,
    experience_level: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """User directory, optionally filtered by skill, role or experience level."""
    page_spec = parse_page(page, limit)
    users, total = list_users(
        db,
        page_spec,
        skill=skill,
        role=role,
        experience_level=experience_level
    )
    return {
        "success": True,
        "count": len(users),
        "total": total,
        "pagination": page_spec.links(total),
        "data": [to_public(user) for user in users]
    }


@router.get("/{user_id}")
async def get_user_profile(
    user_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return {"success": True, "data": to_public(get_user(db, user_id))}
