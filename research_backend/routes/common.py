from fastapi import HTTPException, status
from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import SQLAlchemyError

from research_backend.database import ensure_paper_schema, ensure_review_schema

DATABASE_UNAVAILABLE = 'Database unavailable. Verify DATABASE_URL and database credentials.'


class CamelModel(BaseModel):
    """Request body accepting camelCase keys (snake_case also works)."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True


def ensure_database_ready() -> None:
    try:
        ensure_paper_schema()
        ensure_review_schema()
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE,
        ) from exc
