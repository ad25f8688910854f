"""Paper submission and the status lifecycle.

Allowed moves::

    submitted -> under_review -> {revisions_requested, accepted, rejected}
    revisions_requested -> under_review

``accepted`` and ``rejected`` are terminal. Decisions are coordinator-only.
"""

import logging

from sqlalchemy.orm import Session, joinedload

from research_backend.auth.dependencies import CurrentUser
from research_backend.core import config
from research_backend.core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from research_backend.models.event import Event
from research_backend.models.paper import Paper, PaperStatus
from research_backend.models.user import Role
from research_backend.services import assignments

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[PaperStatus, frozenset[PaperStatus]] = {
    PaperStatus.SUBMITTED: frozenset({PaperStatus.UNDER_REVIEW}),
    PaperStatus.UNDER_REVIEW: frozenset({
        PaperStatus.REVISIONS_REQUESTED,
        PaperStatus.ACCEPTED,
        PaperStatus.REJECTED,
    }),
    PaperStatus.REVISIONS_REQUESTED: frozenset({PaperStatus.UNDER_REVIEW}),
    PaperStatus.ACCEPTED: frozenset(),
    PaperStatus.REJECTED: frozenset(),
}

DECISION_STATUSES = frozenset({
    PaperStatus.REVISIONS_REQUESTED,
    PaperStatus.ACCEPTED,
    PaperStatus.REJECTED,
})


def parse_status(value) -> PaperStatus:
    try:
        return PaperStatus(str(value).strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Unknown paper status '{value}'.", field='status') from exc


def serialize_paper(paper: Paper) -> dict:
    data = {
        'id': paper.id,
        'title': paper.title,
        'track': paper.track,
        'fileUrl': paper.file_url,
        'status': paper.status,
        'eventId': paper.event_id,
        'authorId': paper.author_id,
        'createdAt': paper.created_at.isoformat() if paper.created_at else None,
        'updatedAt': paper.updated_at.isoformat() if paper.updated_at else None,
    }
    if paper.author is not None:
        data['author'] = {'id': paper.author.id, 'name': paper.author.name, 'email': paper.author.email}
    if paper.event is not None:
        data['event'] = {'id': paper.event.id, 'title': paper.event.title}
    return data


def validate_submission_fields(title: str | None, track: str | None) -> tuple[str, str]:
    title = (title or '').strip()
    track = (track or '').strip()
    if not title:
        raise ValidationError('Paper title is required.', field='title')
    if not track:
        raise ValidationError('Track is required.', field='track')
    return title, track


def create_submission(
    db: Session,
    author_id: int,
    title: str,
    track: str,
    file_url: str | None,
    event_id: int | None = None,
) -> Paper:
    title, track = validate_submission_fields(title, track)
    if not file_url:
        raise ValidationError('No file uploaded', field='file')
    if event_id is not None and db.get(Event, event_id) is None:
        raise NotFoundError('Event', event_id)

    paper = Paper(
        title=title,
        track=track,
        event_id=event_id,
        file_url=file_url,
        author_id=author_id,
        status=PaperStatus.SUBMITTED.value,
    )
    db.add(paper)
    db.commit()
    db.refresh(paper)

    logger.info('Paper %s submitted by author %s (event %s)', paper.id, author_id, event_id)
    return paper


def get_paper(db: Session, paper_id: int) -> Paper:
    paper = (
        db.query(Paper)
        .options(joinedload(Paper.author), joinedload(Paper.event))
        .filter(Paper.id == paper_id)
        .first()
    )
    if paper is None:
        raise NotFoundError('Paper', paper_id)
    return paper


def list_author_papers(db: Session, author_id: int) -> list[Paper]:
    return (
        db.query(Paper)
        .options(joinedload(Paper.event))
        .filter(Paper.author_id == author_id)
        .order_by(Paper.created_at.desc(), Paper.id.desc())
        .all()
    )


def check_transition(paper: Paper, current: PaperStatus, target: PaperStatus, actor: CurrentUser) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)

    if target in DECISION_STATUSES:
        if not actor.has_role(Role.COORDINATOR):
            raise AuthorizationError('Only coordinators can record a decision.')
        return

    # Into under_review.
    if actor.has_role(Role.COORDINATOR):
        return
    if current is PaperStatus.SUBMITTED and actor.has_role(Role.REVIEWER):
        return
    if (
        current is PaperStatus.REVISIONS_REQUESTED
        and actor.has_role(Role.AUTHOR)
        and paper.author_id == actor.id
    ):
        return
    raise AuthorizationError('Not allowed to change the status of this paper.')


def transition_status(
    db: Session,
    paper_id: int,
    new_status,
    actor: CurrentUser,
    require_assignment: bool | None = None,
) -> Paper:
    if require_assignment is None:
        require_assignment = config.REQUIRE_ASSIGNMENT

    target = parse_status(new_status)
    paper = get_paper(db, paper_id)
    current = parse_status(paper.status)
    check_transition(paper, current, target, actor)
    if (
        require_assignment
        and current is PaperStatus.SUBMITTED
        and not actor.has_role(Role.COORDINATOR)
        and not assignments.is_assigned(db, paper_id, actor.id)
    ):
        raise AuthorizationError('You are not assigned to review this paper.')

    # Compare-and-set so two concurrent transitions cannot both succeed.
    updated = (
        db.query(Paper)
        .filter(Paper.id == paper_id, Paper.status == current.value)
        .update({Paper.status: target.value}, synchronize_session=False)
    )
    if updated != 1:
        db.rollback()
        db.refresh(paper)
        raise InvalidTransitionError(paper.status, target.value)
    db.commit()
    db.refresh(paper)

    logger.info('Paper %s moved %s -> %s by user %s', paper_id, current.value, target.value, actor.id)
    return paper


def check_resubmission(paper: Paper, actor: CurrentUser) -> None:
    if paper.author_id != actor.id:
        raise AuthorizationError('Only the author can resubmit this paper.')
    if paper.status != PaperStatus.REVISIONS_REQUESTED.value:
        raise InvalidTransitionError(paper.status, PaperStatus.UNDER_REVIEW.value)


def resubmit_paper(db: Session, paper_id: int, file_url: str, actor: CurrentUser) -> Paper:
    """Swap in a revised file and send the paper back to review."""
    paper = get_paper(db, paper_id)
    check_resubmission(paper, actor)

    updated = (
        db.query(Paper)
        .filter(Paper.id == paper_id, Paper.status == PaperStatus.REVISIONS_REQUESTED.value)
        .update(
            {Paper.status: PaperStatus.UNDER_REVIEW.value, Paper.file_url: file_url},
            synchronize_session=False,
        )
    )
    if updated != 1:
        db.rollback()
        db.refresh(paper)
        raise InvalidTransitionError(paper.status, PaperStatus.UNDER_REVIEW.value)
    db.commit()
    db.refresh(paper)

    logger.info('Paper %s resubmitted by author %s', paper_id, actor.id)
    return paper
