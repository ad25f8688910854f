from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.orm import Session

from research_backend import storage
from research_backend.auth.dependencies import CurrentUser, get_current_user, require_roles
from research_backend.core.exceptions import ValidationError
from research_backend.database import get_db
from research_backend.models.user import Role
from research_backend.routes.common import CamelModel, ensure_database_ready
from research_backend.services import events, submissions

router = APIRouter(tags=['papers'])

author_only = require_roles(Role.AUTHOR)


class StatusChangeRequest(CamelModel):
    status: str


def parse_event_id(value: str | None) -> int | None:
    raw = (value or '').strip()
    if not raw or raw.lower() in {'null', 'none', 'undefined'}:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError('eventId must be an integer.', field='eventId') from exc


@router.post('/upload', status_code=status.HTTP_201_CREATED)
def upload_paper(
    title: str = Form(''),
    track: str = Form(''),
    event_id: str | None = Form(None, alias='eventId'),
    file: UploadFile | None = File(None),
    current_user: CurrentUser = Depends(author_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    # Reject bad fields before anything touches the disk.
    title, track = submissions.validate_submission_fields(title, track)
    parsed_event_id = parse_event_id(event_id)
    if parsed_event_id is not None:
        events.get_event(db, parsed_event_id)

    file_url = storage.save_paper_file(file)
    paper = submissions.create_submission(
        db,
        author_id=current_user.id,
        title=title,
        track=track,
        file_url=file_url,
        event_id=parsed_event_id,
    )
    return {'ok': True, 'paper': submissions.serialize_paper(paper)}


@router.get('/my')
def my_papers(
    current_user: CurrentUser = Depends(author_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    papers = submissions.list_author_papers(db, current_user.id)
    return {'ok': True, 'papers': [submissions.serialize_paper(paper) for paper in papers]}


@router.get('/{paper_id}')
def get_paper(
    paper_id: int,
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    paper = submissions.get_paper(db, paper_id)
    return {'ok': True, 'paper': submissions.serialize_paper(paper)}


@router.patch('/{paper_id}/status')
def change_status(
    paper_id: int,
    data: StatusChangeRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    paper = submissions.transition_status(db, paper_id, data.status, current_user)
    return {'ok': True, 'paper': submissions.serialize_paper(paper)}


@router.post('/{paper_id}/resubmit')
def resubmit_paper(
    paper_id: int,
    file: UploadFile | None = File(None),
    current_user: CurrentUser = Depends(author_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    submissions.check_resubmission(submissions.get_paper(db, paper_id), current_user)

    file_url = storage.save_paper_file(file)
    paper = submissions.resubmit_paper(db, paper_id, file_url, current_user)
    return {'ok': True, 'paper': submissions.serialize_paper(paper)}
