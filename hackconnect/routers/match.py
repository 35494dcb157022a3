from typing import Any, Dict
from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from ..database import get_session
from ..dependencies import require_user
from ..models import User
from ..schemas import InteractionRead
from ..services.matching import get_matches, get_suggestions, record_interaction
from ..services.users import to_public

router = APIRouter(prefix="/api/match", tags=["match"])


@router.get("/suggestions")
async def suggestions(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """People the current user has not liked, skipped or matched with yet."""
    users = get_suggestions(db, current_user)
    return {
        "success": True,
        "count": len(users),
        "data": [to_public(user) for user in users]
    }


@router.get("/matches")
async def matches(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    results = get_matches(db, current_user)
    return {"success": True, "count": len(results), "data": results}


@router.post("/{target_id}")
async def interact(
    target_id: int,
    attrs: Dict[str, Any] = Body(...),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Like or skip another user."""
    interaction, matched = record_interaction(db, current_user, target_id, attrs)
    return {
        "success": True,
        "data": {
            "match": matched,
            "interaction": InteractionRead.model_validate(interaction)
        }
    }
