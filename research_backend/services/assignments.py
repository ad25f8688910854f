"""Reviewer-to-paper assignments within an event."""

import logging
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from research_backend.core.exceptions import DuplicateAssignmentError, NotFoundError, ValidationError
from research_backend.models.assignment import Assignment
from research_backend.models.event import Event
from research_backend.models.paper import Paper
from research_backend.models.user import Role, User

logger = logging.getLogger(__name__)


def serialize_assignment(assignment: Assignment) -> dict:
    return {
        'id': assignment.id,
        'eventId': assignment.event_id,
        'paper': {
            'id': assignment.paper.id,
            'title': assignment.paper.title,
            'track': assignment.paper.track,
        },
        'reviewer': {
            'id': assignment.reviewer.id,
            'name': assignment.reviewer.name,
            'email': assignment.reviewer.email,
        },
        'assignedAt': assignment.assigned_at.isoformat() if assignment.assigned_at else None,
    }


def _stage_assignment(
    db: Session,
    event_id: int,
    reviewer: User,
    paper_id: int,
    assigned_by: int | None,
) -> Assignment:
    paper = db.get(Paper, paper_id)
    if paper is None or paper.event_id != event_id:
        raise NotFoundError('Paper', paper_id)

    existing = (
        db.query(Assignment.id)
        .filter(Assignment.paper_id == paper_id, Assignment.reviewer_id == reviewer.id)
        .first()
    )
    if existing is not None:
        raise DuplicateAssignmentError(paper_id, reviewer.id)

    assignment = Assignment(
        event_id=event_id,
        paper_id=paper_id,
        reviewer_id=reviewer.id,
        assigned_by=assigned_by,
    )
    db.add(assignment)
    return assignment


def _load_targets(db: Session, event_id: int, reviewer_id: int) -> User:
    if db.get(Event, event_id) is None:
        raise NotFoundError('Event', event_id)
    reviewer = db.get(User, reviewer_id)
    if reviewer is None or not reviewer.has_role(Role.REVIEWER):
        raise NotFoundError('Reviewer', reviewer_id)
    return reviewer


def assign_many(
    db: Session,
    event_id: int,
    reviewer_id: int,
    paper_ids: Iterable[int],
    assigned_by: int | None = None,
) -> list[Assignment]:
    """Assign several papers to one reviewer; nothing is stored if any fails."""
    paper_ids = list(dict.fromkeys(paper_ids or []))
    if not paper_ids:
        raise ValidationError('Select at least one paper.', field='paperIds')

    reviewer = _load_targets(db, event_id, reviewer_id)
    try:
        created = [
            _stage_assignment(db, event_id, reviewer, paper_id, assigned_by)
            for paper_id in paper_ids
        ]
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent assign of the same pair.
        db.rollback()
        raise DuplicateAssignmentError(paper_ids[0], reviewer_id) from exc
    except Exception:
        db.rollback()
        raise

    for assignment in created:
        db.refresh(assignment)
    logger.info(
        'Assigned papers %s to reviewer %s in event %s', paper_ids, reviewer_id, event_id
    )
    return created


def assign(
    db: Session,
    event_id: int,
    reviewer_id: int,
    paper_id: int,
    assigned_by: int | None = None,
) -> Assignment:
    return assign_many(db, event_id, reviewer_id, [paper_id], assigned_by)[0]


def list_assignments(db: Session, event_id: int) -> list[Assignment]:
    if db.get(Event, event_id) is None:
        raise NotFoundError('Event', event_id)
    return (
        db.query(Assignment)
        .options(joinedload(Assignment.paper), joinedload(Assignment.reviewer))
        .filter(Assignment.event_id == event_id)
        .order_by(Assignment.assigned_at.asc(), Assignment.id.asc())
        .all()
    )


def is_assigned(db: Session, paper_id: int, reviewer_id: int) -> bool:
    return (
        db.query(Assignment.id)
        .filter(Assignment.paper_id == paper_id, Assignment.reviewer_id == reviewer_id)
        .first()
        is not None
    )


def assigned_paper_ids(db: Session, reviewer_id: int) -> set[int]:
    rows = db.query(Assignment.paper_id).filter(Assignment.reviewer_id == reviewer_id).all()
    return {paper_id for (paper_id,) in rows}
