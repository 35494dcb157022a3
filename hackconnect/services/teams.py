"""
Team membership.

Two invariants hold after every mutation here:

* a user is a member of at most one team (``team_members.user_id`` is unique);
* a team with members always has at least one leader, and a team whose last
  member leaves is deleted.

Capacity is enforced by conditional updates on ``teams.member_count``.
Every membership change starts with that update, so concurrent mutations of
the same team are serialised on the team row before any checks are read.
"""

import logging
from datetime import datetime, UTC
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import BadRequest, Conflict, Forbidden, Full, NotFound
from ..filters import (
    COMPARISON_OPS,
    EQUALITY_OPS,
    MEMBERSHIP_OPS,
    RANGE_OPS,
    FieldSpec,
    Filter,
    Page,
    apply_filters,
    parse_filters,
    parse_sort,
    to_bool,
    to_datetime,
)
from ..models import InviteStatus, MemberRole, Team, TeamInvite, TeamMember, User
from ..policies import TeamAction, evaluate_team_policy
from ..schemas import (
    InviteDecision,
    InviteRequest,
    TeamCreate,
    TeamInviteRead,
    TeamMemberRead,
    TeamRead,
    TeamUpdate,
)
from ..validation import require_valid
from .users import get_user, load_users, to_summary

logger = logging.getLogger(__name__)

TEAM_FILTER_FIELDS = {
    "name": FieldSpec(str, EQUALITY_OPS),
    "is_open": FieldSpec(to_bool, EQUALITY_OPS),
    "max_members": FieldSpec(int, COMPARISON_OPS),
    "member_count": FieldSpec(int, COMPARISON_OPS),
    "created_at": FieldSpec(to_datetime, RANGE_OPS),
    "skills_needed": FieldSpec(str, MEMBERSHIP_OPS),
}
# JSON columns, matched in Python rather than SQL
TEAM_LIST_FIELDS = {"skills_needed"}
TEAM_SORT_FIELDS = ("name", "max_members", "member_count", "created_at", "updated_at")
TEAM_SELECT_FIELDS = tuple(TeamRead.model_fields)


# Lookups

def get_team(db: Session, team_id: int) -> Team:
    team = db.get(Team, team_id)
    if not team:
        raise NotFound(f"Team not found with id of {team_id}")
    return team


def get_membership(db: Session, user_id: int) -> Optional[TeamMember]:
    """The user's membership in any team."""
    statement = select(TeamMember).where(TeamMember.user_id == user_id)
    return db.exec(statement).first()


def get_membership_in(db: Session, team_id: int, user_id: int) -> Optional[TeamMember]:
    statement = select(TeamMember).where(
        TeamMember.team_id == team_id,
        TeamMember.user_id == user_id
    )
    return db.exec(statement).first()


def _current_members(db: Session, team_id: int) -> List[TeamMember]:
    statement = (
        select(TeamMember)
        .where(TeamMember.team_id == team_id)
        .order_by(TeamMember.id)
        .execution_options(populate_existing=True)
    )
    return list(db.exec(statement).all())


def _pending_invite(db: Session, team_id: int, user_id: int) -> Optional[TeamInvite]:
    statement = select(TeamInvite).where(
        TeamInvite.team_id == team_id,
        TeamInvite.user_id == user_id,
        TeamInvite.status == InviteStatus.PENDING.value
    )
    return db.exec(statement).first()


def pick_successor(members: Iterable[TeamMember]) -> Optional[TeamMember]:
    """Earliest joiner, ties broken by membership id."""
    return min(members, key=lambda m: (m.joined_at, m.id), default=None)


# Seat accounting

def _claim_seat(db: Session, team_id: int) -> bool:
    statement = (
        update(Team)
        .where(Team.id == team_id, Team.member_count < Team.max_members)
        .values(member_count=Team.member_count + 1)
        .execution_options(synchronize_session=False)
    )
    return db.exec(statement).rowcount == 1


def _release_seat(db: Session, team_id: int) -> None:
    statement = (
        update(Team)
        .where(Team.id == team_id, Team.member_count > 0)
        .values(member_count=Team.member_count - 1)
        .execution_options(synchronize_session=False)
    )
    db.exec(statement)


# Serialisation

def team_to_read(db: Session, team: Team, viewer: Optional[User] = None) -> TeamRead:
    """
    Team with member and invite details. Invites are only shown to members.
    """
    members = _current_members(db, team.id)
    actor = next((m for m in members if viewer and m.user_id == viewer.id), None)
    invites = []
    if evaluate_team_policy(actor, TeamAction.VIEW, team):
        invites = list(db.exec(
            select(TeamInvite).where(TeamInvite.team_id == team.id).order_by(TeamInvite.id)
        ).all())

    users = load_users(db, (m.user_id for m in members))

    return TeamRead(
        id=team.id,
        name=team.name,
        description=team.description,
        project_idea=team.project_idea,
        skills_needed=team.skills_needed or [],
        max_members=team.max_members,
        member_count=team.member_count,
        is_open=team.is_open,
        members=[
            TeamMemberRead(user=to_summary(users.get(m.user_id)), role=m.role, joined_at=m.joined_at)
            for m in members
        ],
        invites=[invite_to_read(db, invite) for invite in invites],
        created_at=team.created_at,
        updated_at=team.updated_at
    )


def invite_to_read(db: Session, team_invite: TeamInvite) -> TeamInviteRead:
    users = load_users(db, [team_invite.user_id, team_invite.invited_by])
    return TeamInviteRead(
        id=team_invite.id,
        user=to_summary(users.get(team_invite.user_id)),
        invited_by=to_summary(users.get(team_invite.invited_by)),
        status=team_invite.status,
        message=team_invite.message,
        created_at=team_invite.created_at
    )


# Operations

def create_team(db: Session, founder: User, attrs: dict) -> Team:
    """Create a team with ``founder`` as its sole leader."""
    data = require_valid(TeamCreate, attrs)

    if get_membership(db, founder.id):
        raise Conflict("You are already a member of a team")

    if db.exec(select(Team).where(Team.name == data.name)).first():
        raise Conflict("Team name already exists")

    team = Team(
        name=data.name,
        description=data.description,
        project_idea=data.project_idea,
        skills_needed=data.skills_needed,
        max_members=data.max_members,
        is_open=data.is_open,
        member_count=1
    )
    team.members.append(TeamMember(user_id=founder.id, role=MemberRole.LEADER.value))
    db.add(team)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Integrity conflict creating team %r for user %s", data.name, founder.id)
        if get_membership(db, founder.id):
            raise Conflict("You are already a member of a team")
        raise Conflict("Team name already exists")
    db.refresh(team)

    logger.info("Team %s (%s) created by user %s", team.id, team.name, founder.id)
    return team


def _contains(team: Team, item: Filter) -> bool:
    present = getattr(team, item.field) or []
    wanted = item.value if item.op == "in" else [item.value]
    return any(value in present for value in wanted)


def list_teams(
    db: Session,
    params: Iterable[Tuple[str, str]],
    page: Page,
    sort: Optional[str] = None
) -> Tuple[List[Team], int]:
    filters = parse_filters(params, TEAM_FILTER_FIELDS)
    order_by = parse_sort(sort, Team, TEAM_SORT_FIELDS, default="-created_at")

    column_filters = [f for f in filters if f.field not in TEAM_LIST_FIELDS]
    list_filters = [f for f in filters if f.field in TEAM_LIST_FIELDS]
    statement = apply_filters(select(Team), Team, column_filters)

    if list_filters:
        candidates = db.exec(statement.order_by(*order_by, Team.id)).all()
        teams = [t for t in candidates if all(_contains(t, f) for f in list_filters)]
        return teams[page.offset:page.offset + page.limit], len(teams)

    total = db.exec(select(func.count()).select_from(statement.subquery())).one()
    teams = db.exec(
        statement.order_by(*order_by, Team.id).offset(page.offset).limit(page.limit)
    ).all()
    return list(teams), total


def update_team(db: Session, requester: User, team_id: int, attrs: dict) -> Team:
    team = get_team(db, team_id)
    actor = get_membership_in(db, team.id, requester.id)
    if not evaluate_team_policy(actor, TeamAction.UPDATE, team):
        raise Forbidden("Not authorized to update this team")

    data = require_valid(TeamUpdate, attrs)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("max_members") is not None:
        # Never shrink below the number of members already on the team
        statement = (
            update(Team)
            .where(Team.id == team.id, Team.member_count <= changes["max_members"])
            .values(max_members=changes["max_members"])
            .execution_options(synchronize_session=False)
        )
        if db.exec(statement).rowcount != 1:
            db.rollback()
            raise BadRequest("max_members cannot be lower than the current member count")
    changes.pop("max_members", None)

    for field, value in changes.items():
        if value is None and field in ("name", "skills_needed", "is_open"):
            continue
        setattr(team, field, value)
    team.updated_at = datetime.now(UTC)

    db.add(team)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("Team name already exists")
    db.refresh(team)

    logger.info("Team %s updated by user %s", team.id, requester.id)
    return team


def invite(db: Session, inviter: User, team_id: int, target_id: int, attrs: dict) -> TeamInvite:
    data = require_valid(InviteRequest, attrs or {})

    team = get_team(db, team_id)
    actor = get_membership_in(db, team.id, inviter.id)
    if not evaluate_team_policy(actor, TeamAction.INVITE, team):
        raise Forbidden("Not authorized to invite members to this team")

    if team.member_count >= team.max_members:
        raise Full("Team is full")

    get_user(db, target_id)

    if get_membership_in(db, team.id, target_id):
        raise Conflict("User is already a team member")
    if _pending_invite(db, team.id, target_id):
        raise Conflict("User already has a pending invite")

    team_invite = TeamInvite(
        team_id=team.id,
        user_id=target_id,
        invited_by=inviter.id,
        message=data.message
    )
    db.add(team_invite)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("User already has a pending invite")
    db.refresh(team_invite)

    logger.info("User %s invited user %s to team %s", inviter.id, target_id, team_id)
    return team_invite


def list_my_invites(db: Session, user: User) -> List[TeamInvite]:
    statement = (
        select(TeamInvite)
        .where(
            TeamInvite.user_id == user.id,
            TeamInvite.status == InviteStatus.PENDING.value
        )
        .order_by(TeamInvite.created_at.desc(), TeamInvite.id.desc())
    )
    return list(db.exec(statement).all())


def respond_to_invite(db: Session, user: User, team_id: int, attrs: dict) -> TeamInvite:
    data = require_valid(InviteDecision, attrs)

    team_invite = _pending_invite(db, team_id, user.id)
    if not team_invite:
        raise NotFound("No pending invite found")

    if data.status == InviteStatus.REJECTED.value:
        team_invite.status = InviteStatus.REJECTED.value
        db.add(team_invite)
        db.commit()
        db.refresh(team_invite)
        logger.info("User %s rejected invite to team %s", user.id, team_id)
        return team_invite

    # Capacity and the single-team rule are checked again at acceptance time
    if not _claim_seat(db, team_id):
        db.rollback()
        raise Full("Team is now full")

    if get_membership(db, user.id):
        db.rollback()
        raise Conflict("You are already a member of another team")

    db.add(TeamMember(team_id=team_id, user_id=user.id, role=MemberRole.MEMBER.value))
    team_invite.status = InviteStatus.ACCEPTED.value
    db.add(team_invite)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("User %s joined another team while accepting invite to team %s", user.id, team_id)
        raise Conflict("You are already a member of another team")
    db.refresh(team_invite)

    logger.info("User %s joined team %s", user.id, team_id)
    return team_invite


def remove_member(db: Session, requester: User, team_id: int, target_id: int) -> None:
    team = get_team(db, team_id)
    actor = get_membership_in(db, team.id, requester.id)
    if not evaluate_team_policy(actor, TeamAction.REMOVE_MEMBER, team):
        raise Forbidden("Not authorized to remove members from this team")

    if not get_membership_in(db, team.id, target_id):
        raise NotFound("User is not a member of this team")

    _release_seat(db, team.id)
    members = _current_members(db, team.id)
    target = next((m for m in members if m.user_id == target_id), None)
    if target is None:
        db.rollback()
        raise NotFound("User is not a member of this team")

    remaining = [m for m in members if m.id != target.id]
    if target.is_leader and remaining and not any(m.is_leader for m in remaining):
        db.rollback()
        raise Conflict("Cannot remove the only team leader")

    if remaining:
        db.delete(target)
    else:
        db.delete(team)
    db.commit()

    logger.info("User %s removed user %s from team %s", requester.id, target_id, team_id)
    if not remaining:
        logger.info("Team %s deleted after its last member was removed", team_id)


def leave(db: Session, user: User, team_id: int) -> bool:
    """
    Remove ``user`` from the team. A sole leader hands leadership over first;
    the last member out deletes the team. Returns True if the team was deleted.
    """
    team = get_team(db, team_id)
    if not get_membership_in(db, team.id, user.id):
        raise NotFound("Not a member of this team")

    _release_seat(db, team.id)
    members = _current_members(db, team.id)
    me = next((m for m in members if m.user_id == user.id), None)
    if me is None:
        db.rollback()
        raise NotFound("Not a member of this team")

    remaining = [m for m in members if m.id != me.id]
    if not remaining:
        db.delete(team)
        db.commit()
        logger.info("Team %s deleted after its last member left", team_id)
        return True

    if me.is_leader and not any(m.is_leader for m in remaining):
        successor = pick_successor(remaining)
        successor.role = MemberRole.LEADER.value
        db.add(successor)
        logger.info("User %s promoted to leader of team %s", successor.user_id, team_id)

    db.delete(me)
    db.commit()

    logger.info("User %s left team %s", user.id, team_id)
    return False
