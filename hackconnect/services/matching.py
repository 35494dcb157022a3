"""
Interaction ledger and match formation.

An interaction is written once per (actor, target). A like that meets an
existing like in the opposite direction forms a match; the pair is stored
normalised under a unique constraint, so whichever request gets there second
finds the match already in place instead of creating a duplicate.
"""

import logging
from typing import List, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..config import SUGGESTION_LIMIT
from ..errors import BadRequest, Conflict
from ..models import Interaction, InteractionKind, Match, User, ordered_pair
from ..schemas import InteractionRequest, MatchRead
from ..validation import require_valid
from .users import get_user, load_users, to_summary

logger = logging.getLogger(__name__)


def _find_match(db: Session, user_a: int, user_b: int):
    low, high = ordered_pair(user_a, user_b)
    statement = select(Match).where(Match.user_low_id == low, Match.user_high_id == high)
    return db.exec(statement).first()


def ensure_match(db: Session, user_a: int, user_b: int) -> Match:
    """Return the match for the pair, creating it if it does not exist yet."""
    existing = _find_match(db, user_a, user_b)
    if existing:
        return existing

    low, high = ordered_pair(user_a, user_b)
    match = Match(user_low_id=low, user_high_id=high)
    db.add(match)
    try:
        db.commit()
    except IntegrityError:
        # Another request formed the same match in the meantime
        db.rollback()
        return _find_match(db, user_a, user_b)
    db.refresh(match)

    logger.info("Match formed between users %s and %s", low, high)
    return match


def record_interaction(db: Session, actor: User, target_id: int, attrs: dict) -> Tuple[Interaction, bool]:
    """
    Record a like or skip from ``actor`` towards ``target_id``.

    Returns the stored interaction and whether the pair is now matched.
    """
    data = require_valid(InteractionRequest, attrs)
    kind = data.interaction_type

    if target_id == actor.id:
        raise BadRequest("You cannot interact with yourself")

    # Check if target user exists
    get_user(db, target_id)

    existing = db.exec(
        select(Interaction).where(
            Interaction.actor_id == actor.id,
            Interaction.target_id == target_id
        )
    ).first()
    if existing:
        raise Conflict("Interaction already exists")

    interaction = Interaction(actor_id=actor.id, target_id=target_id, kind=kind.value)
    db.add(interaction)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Duplicate interaction %s -> %s", actor.id, target_id)
        raise Conflict("Interaction already exists")
    db.refresh(interaction)

    if kind != InteractionKind.LIKE:
        return interaction, False

    reverse = db.exec(
        select(Interaction).where(
            Interaction.actor_id == target_id,
            Interaction.target_id == actor.id,
            Interaction.kind == InteractionKind.LIKE.value
        )
    ).first()
    if not reverse:
        return interaction, False

    ensure_match(db, actor.id, target_id)
    return interaction, True


def _matches_for(db: Session, user_id: int) -> List[Match]:
    statement = (
        select(Match)
        .where(or_(Match.user_low_id == user_id, Match.user_high_id == user_id))
        .order_by(Match.updated_at.desc(), Match.id.desc())
    )
    return list(db.exec(statement).all())


def get_suggestions(db: Session, user: User) -> List[User]:
    """
    Users the given user has not seen yet: not themselves, not anyone they
    liked or skipped, and not anyone they are matched with.
    """
    interacted_ids = db.exec(
        select(Interaction.target_id).where(Interaction.actor_id == user.id)
    ).all()
    matched_ids = [match.counterpart_of(user.id) for match in _matches_for(db, user.id)]

    excluded = {user.id, *interacted_ids, *matched_ids}
    statement = (
        select(User)
        .where(User.id.not_in(excluded))
        .order_by(User.id)
        .limit(SUGGESTION_LIMIT)
    )
    return list(db.exec(statement).all())


def get_matches(db: Session, user: User) -> List[MatchRead]:
    """Matches of ``user``, newest first, each with the counterpart's profile."""
    matches = _matches_for(db, user.id)
    counterparts = load_users(db, (match.counterpart_of(user.id) for match in matches))

    results = []
    for match in matches:
        other = counterparts.get(match.counterpart_of(user.id))
        if other is None:
            # Counterpart account was deleted
            continue
        results.append(MatchRead(
            id=match.id,
            user=to_summary(other),
            matched_at=match.matched_at,
            last_message=match.last_message,
            created_at=match.created_at,
            updated_at=match.updated_at
        ))
    return results
