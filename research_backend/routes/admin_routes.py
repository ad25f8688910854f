from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from research_backend.auth.dependencies import CurrentUser, require_roles
from research_backend.database import get_db
from research_backend.models.user import Role
from research_backend.routes.common import ensure_database_ready
from research_backend.services import exports, statistics
from research_backend.services.submissions import serialize_paper

router = APIRouter(tags=['admin'])

coordinator_only = require_roles(Role.COORDINATOR)


@router.get('/admin/stats')
def dashboard_summary(
    _: CurrentUser = Depends(coordinator_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    return {'ok': True, **statistics.global_summary(db)}


@router.get('/admin/stats/event/{event_id}')
def event_stats(
    event_id: int,
    _: CurrentUser = Depends(coordinator_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    return {'ok': True, 'eventStats': statistics.event_statistics(db, event_id)}


@router.get('/admin/reviewers/reminders')
def reviewer_reminders(
    _: CurrentUser = Depends(coordinator_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    return {'ok': True, 'reminders': statistics.reviewer_reminders(db)}


@router.get('/events/{event_id}/accepted')
def accepted_papers(
    event_id: int,
    _: CurrentUser = Depends(coordinator_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    papers = exports.accepted_papers(db, event_id)
    payload = []
    for paper in papers:
        item = serialize_paper(paper)
        if paper.author is not None:
            item['author']['contactNumber'] = paper.author.contact_number or None
        payload.append(item)
    return {'ok': True, 'papers': payload}


@router.get('/events/{event_id}/accepted.xlsx')
def accepted_papers_workbook(
    event_id: int,
    _: CurrentUser = Depends(coordinator_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    content = exports.build_accepted_workbook(exports.accepted_export(db, event_id))
    return Response(
        content=content,
        media_type=exports.XLSX_MEDIA_TYPE,
        headers={'Content-Disposition': f'attachment; filename={exports.EXPORT_FILENAME}'},
    )
