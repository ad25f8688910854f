from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from research_backend.auth.dependencies import CurrentUser, get_current_user, require_roles
from research_backend.database import get_db
from research_backend.models.user import Role
from research_backend.routes.common import CamelModel, ensure_database_ready
from research_backend.services import reviews

router = APIRouter(tags=['reviews'])

reviewer_only = require_roles(Role.REVIEWER)


class SubmitReviewRequest(CamelModel):
    comments: str = ''
    insights: list[str] = []


@router.get('/assigned')
def assigned_papers(
    current_user: CurrentUser = Depends(reviewer_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    return {'ok': True, 'papers': reviews.get_assigned_for_reviewer(db, current_user.id)}


@router.post('/{paper_id}', status_code=status.HTTP_201_CREATED)
def submit_review(
    paper_id: int,
    data: SubmitReviewRequest,
    current_user: CurrentUser = Depends(reviewer_only),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    review = reviews.submit_review(db, paper_id, current_user.id, data.comments, data.insights)
    return {'ok': True, 'review': reviews.serialize_review(review)}


@router.get('/{paper_id}')
def list_reviews(
    paper_id: int,
    _: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()
    records = reviews.get_reviews_for_paper(db, paper_id)
    return {'ok': True, 'reviews': [reviews.serialize_review(record) for record in records]}
