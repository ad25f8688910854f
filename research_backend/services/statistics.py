"""Read-only rollups for the coordinator dashboard."""

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from research_backend.models.assignment import Assignment
from research_backend.models.event import Event
from research_backend.models.paper import PENDING_STATUSES, Paper, PaperStatus
from research_backend.models.review import Review
from research_backend.models.user import Role, User
from research_backend.services.events import get_event, serialize_event
from research_backend.services.submissions import serialize_paper

RECENT_LIMIT = 5


def global_summary(db: Session) -> dict:
    summary = {
        'totalUsers': db.query(func.count(User.id)).scalar() or 0,
        'totalEvents': db.query(func.count(Event.id)).scalar() or 0,
        'totalPapers': db.query(func.count(Paper.id)).scalar() or 0,
        'totalReviews': db.query(func.count(Review.id)).scalar() or 0,
    }
    recent_events = (
        db.query(Event)
        .order_by(Event.created_at.desc(), Event.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    recent_papers = (
        db.query(Paper)
        .options(joinedload(Paper.author), joinedload(Paper.event))
        .order_by(Paper.created_at.desc(), Paper.id.desc())
        .limit(RECENT_LIMIT)
        .all()
    )
    return {
        'summary': summary,
        'recentEvents': [serialize_event(event) for event in recent_events],
        'recentPapers': [serialize_paper(paper) for paper in recent_papers],
    }


def event_statistics(db: Session, event_id: int) -> dict:
    event = get_event(db, event_id)

    status_counts = dict(
        db.query(Paper.status, func.count(Paper.id))
        .filter(Paper.event_id == event_id)
        .group_by(Paper.status)
        .all()
    )
    selected = status_counts.get(PaperStatus.ACCEPTED.value, 0)
    rejected = status_counts.get(PaperStatus.REJECTED.value, 0)
    pending = sum(status_counts.get(status, 0) for status in PENDING_STATUSES)

    track_rows = (
        db.query(Paper.track, func.count(Paper.id))
        .filter(Paper.event_id == event_id)
        .group_by(Paper.track)
        .all()
    )
    track_breakdown = [
        {'track': track, 'count': count}
        for track, count in sorted(track_rows, key=lambda row: (-row[1], row[0]))
    ]

    total_reviews = (
        db.query(func.count(Review.id))
        .join(Paper, Review.paper_id == Paper.id)
        .filter(Paper.event_id == event_id)
        .scalar()
        or 0
    )
    total_assignments = (
        db.query(func.count(Assignment.id)).filter(Assignment.event_id == event_id).scalar() or 0
    )
    reviewers_assigned = (
        db.query(func.count(func.distinct(Assignment.reviewer_id)))
        .filter(Assignment.event_id == event_id)
        .scalar()
        or 0
    )

    return {
        'event': event.title,
        'papers': {
            'total': sum(status_counts.values()),
            'selected': selected,
            'rejected': rejected,
            'pending': pending,
        },
        'reviews': {'total': total_reviews},
        'assignments': {'total': total_assignments, 'reviewersAssigned': reviewers_assigned},
        'trackBreakdown': track_breakdown,
    }


def reviewer_reminders(db: Session) -> list[dict]:
    review_counts = dict(
        db.query(Review.reviewer_id, func.count(Review.id)).group_by(Review.reviewer_id).all()
    )
    reviewers = db.query(User).order_by(User.name.asc(), User.id.asc()).all()
    return [
        {
            'id': reviewer.id,
            'name': reviewer.name,
            'email': reviewer.email,
            'totalReviews': review_counts.get(reviewer.id, 0),
        }
        for reviewer in reviewers
        if reviewer.has_role(Role.REVIEWER)
    ]
