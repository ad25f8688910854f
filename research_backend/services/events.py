"""Event store operations."""

import logging
from datetime import date, datetime

from sqlalchemy.orm import Session, joinedload

from research_backend.core.exceptions import NotFoundError, ValidationError
from research_backend.models.event import Event
from research_backend.models.paper import Paper
from research_backend.models.user import Role, User

logger = logging.getLogger(__name__)


def parse_event_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    raw = (value or '').strip() if isinstance(value, str) else ''
    if not raw:
        raise ValidationError('Event date is required.', field='date')
    try:
        return datetime.fromisoformat(raw.replace('Z', '+00:00')).date()
    except ValueError as exc:
        raise ValidationError('Event date must be an ISO date (YYYY-MM-DD).', field='date') from exc


def validate_event_fields(title: str | None, event_date) -> tuple[str, date]:
    title = (title or '').strip()
    if not title:
        raise ValidationError('Event title is required.', field='title')
    return title, parse_event_date(event_date)


def serialize_event(event: Event) -> dict:
    return {
        'id': event.id,
        'title': event.title,
        'description': event.description,
        'date': event.date.isoformat() if event.date else None,
        'bannerUrl': event.banner_url,
        'createdBy': event.created_by,
        'createdAt': event.created_at.isoformat() if event.created_at else None,
    }


def create_event(
    db: Session,
    creator_id: int,
    title: str,
    description: str | None,
    event_date,
    banner_url: str | None = None,
) -> Event:
    title, parsed_date = validate_event_fields(title, event_date)

    event = Event(
        title=title,
        description=(description or '').strip() or None,
        date=parsed_date,
        banner_url=banner_url,
        created_by=creator_id,
    )
    db.add(event)
    db.commit()
    db.refresh(event)

    logger.info('Event %s created by user %s', event.id, creator_id)
    return event


def list_events(db: Session) -> list[Event]:
    return db.query(Event).order_by(Event.date.desc(), Event.id.desc()).all()


def get_event(db: Session, event_id: int) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise NotFoundError('Event', event_id)
    return event


def list_event_submissions(db: Session, event_id: int) -> list[Paper]:
    get_event(db, event_id)
    return (
        db.query(Paper)
        .options(joinedload(Paper.author))
        .filter(Paper.event_id == event_id)
        .order_by(Paper.created_at.desc(), Paper.id.desc())
        .all()
    )


def list_reviewers(db: Session) -> list[User]:
    # Role sets live in a JSON column, so membership is checked in Python.
    users = db.query(User).order_by(User.name.asc(), User.id.asc()).all()
    return [user for user in users if user.has_role(Role.REVIEWER)]
