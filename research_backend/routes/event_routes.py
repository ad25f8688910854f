from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from research_backend import storage
from research_backend.auth.dependencies import CurrentUser, require_roles
from research_backend.database import get_db
from research_backend.models.user import Role
from research_backend.routes.common import CamelModel, ensure_database_ready
from research_backend.services import assignments, events
from research_backend.services.submissions import serialize_paper

router = APIRouter(tags=['events'])

coordinator_only = require_roles(Role.COORDINATOR)


class AssignRequest(CamelModel):
    reviewer_id: int
    paper_ids: list[int] = []


@router.get('')
def list_events(db: Session = Depends(get_db)):
    ensure_database_ready()
    return {
        'ok': True,
        'events': [
            {
                'id': event.id,
                'title': event.title,
                'date': event.date.isoformat() if event.date else None,
                'bannerUrl': event.banner_url,
            }
            for event in events.list_events(db)
        ],
    }


@router.post('/create', status_code=status.HTTP_201_CREATED)
def create_event(
    title: str = Form(''),
    description: str = Form(''),
    event_date: str = Form('', alias='date'),
    banner: UploadFile | None = File(None),
    current_user: CurrentUser = Depends(coordinator_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    # Reject bad fields before anything touches the disk.
    events.validate_event_fields(title, event_date)

    banner_url = storage.save_event_banner(banner)
    event = events.create_event(db, current_user.id, title, description, event_date, banner_url)
    return {'ok': True, 'event': events.serialize_event(event)}


@router.get('/reviewers/all')
def list_reviewers(
    _: CurrentUser = Depends(coordinator_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    return {
        'ok': True,
        'reviewers': [
            {'id': user.id, 'name': user.name, 'email': user.email}
            for user in events.list_reviewers(db)
        ],
    }


@router.get('/{event_id}/submissions')
def list_submissions(
    event_id: int,
    _: CurrentUser = Depends(coordinator_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    papers = events.list_event_submissions(db, event_id)
    return {'ok': True, 'papers': [serialize_paper(paper) for paper in papers]}


@router.get('/{event_id}/assignments')
def list_assignments(
    event_id: int,
    _: CurrentUser = Depends(coordinator_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    records = assignments.list_assignments(db, event_id)
    return {'ok': True, 'assignments': [assignments.serialize_assignment(record) for record in records]}


@router.post('/{event_id}/assign', status_code=status.HTTP_201_CREATED)
def assign_papers(
    event_id: int,
    data: AssignRequest,
    current_user: CurrentUser = Depends(coordinator_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    created = assignments.assign_many(
        db,
        event_id=event_id,
        reviewer_id=data.reviewer_id,
        paper_ids=data.paper_ids,
        assigned_by=current_user.id,
    )
    return {
        'ok': True,
        'message': f'Assigned {len(created)} paper(s) to reviewer.',
        'assignments': [assignments.serialize_assignment(record) for record in created],
    }
