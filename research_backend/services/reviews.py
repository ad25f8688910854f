"""Review submission and reviewer work queues."""

import logging
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from research_backend.core import config
from research_backend.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from research_backend.models.paper import REVIEWABLE_STATUSES, Paper
from research_backend.models.review import Review
from research_backend.services import assignments
from research_backend.services.submissions import serialize_paper

logger = logging.getLogger(__name__)


def clean_insights(insights: Iterable[str] | None) -> list[str]:
    if insights is None:
        return []
    if isinstance(insights, str):
        insights = [insights]
    return [str(item).strip() for item in insights if item is not None and str(item).strip()]


def serialize_review(review: Review) -> dict:
    data = {
        'id': review.id,
        'paperId': review.paper_id,
        'reviewerId': review.reviewer_id,
        'comments': review.comments,
        'insights': list(review.insights or []),
        'createdAt': review.created_at.isoformat() if review.created_at else None,
        'updatedAt': review.updated_at.isoformat() if review.updated_at else None,
    }
    if review.reviewer is not None:
        data['reviewer'] = {
            'id': review.reviewer.id,
            'name': review.reviewer.name,
            'email': review.reviewer.email,
        }
    return data


def _find_review(db: Session, paper_id: int, reviewer_id: int) -> Review | None:
    return (
        db.query(Review)
        .filter(Review.paper_id == paper_id, Review.reviewer_id == reviewer_id)
        .first()
    )


def submit_review(
    db: Session,
    paper_id: int,
    reviewer_id: int,
    comments: str,
    insights: Iterable[str] | None = None,
    require_assignment: bool | None = None,
) -> Review:
    """Create or update the reviewer's single review of a paper."""
    if require_assignment is None:
        require_assignment = config.REQUIRE_ASSIGNMENT

    comments = (comments or '').strip()
    if not comments:
        raise ValidationError('Review comments are required.', field='comments')
    insights = clean_insights(insights)

    paper = db.get(Paper, paper_id)
    if paper is None:
        raise NotFoundError('Paper', paper_id)
    if paper.status not in REVIEWABLE_STATUSES:
        raise ConflictError(f"Paper is not open for review (status '{paper.status}').")
    if require_assignment and not assignments.is_assigned(db, paper_id, reviewer_id):
        raise AuthorizationError('You are not assigned to review this paper.')

    review = _find_review(db, paper_id, reviewer_id)
    if review is None:
        review = Review(paper_id=paper_id, reviewer_id=reviewer_id, comments=comments, insights=insights)
        db.add(review)
        try:
            db.commit()
        except IntegrityError:
            # A concurrent request inserted the same (paper, reviewer) row first.
            db.rollback()
            review = _find_review(db, paper_id, reviewer_id)
            if review is None:
                raise
            review.comments = comments
            review.insights = insights
            db.commit()
        action = 'stored'
    else:
        review.comments = comments
        review.insights = insights
        db.commit()
        action = 'updated'

    db.refresh(review)
    logger.info('Review %s %s for paper %s by reviewer %s', review.id, action, paper_id, reviewer_id)
    return review


def get_reviews_for_paper(db: Session, paper_id: int) -> list[Review]:
    if db.get(Paper, paper_id) is None:
        raise NotFoundError('Paper', paper_id)
    return (
        db.query(Review)
        .options(joinedload(Review.reviewer))
        .filter(Review.paper_id == paper_id)
        .order_by(Review.created_at.asc(), Review.id.asc())
        .all()
    )


def get_assigned_for_reviewer(
    db: Session,
    reviewer_id: int,
    require_assignment: bool | None = None,
) -> list[dict]:
    """Open papers for a reviewer, each flagged ``reviewed`` and ``assigned``."""
    if require_assignment is None:
        require_assignment = config.REQUIRE_ASSIGNMENT

    available = (
        db.query(Paper)
        .options(joinedload(Paper.author), joinedload(Paper.event))
        .filter(Paper.status.in_(REVIEWABLE_STATUSES))
        .order_by(Paper.created_at.desc(), Paper.id.desc())
        .all()
    )
    reviewed_ids = {
        paper_id
        for (paper_id,) in db.query(Review.paper_id).filter(Review.reviewer_id == reviewer_id).all()
    }
    assigned_ids = assignments.assigned_paper_ids(db, reviewer_id)

    queue = []
    for paper in available:
        is_assigned = paper.id in assigned_ids
        if require_assignment and not is_assigned:
            continue
        item = serialize_paper(paper)
        item['reviewed'] = paper.id in reviewed_ids
        item['assigned'] = is_assigned
        queue.append(item)
    return queue
