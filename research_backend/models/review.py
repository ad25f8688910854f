"""Review model definitions."""

from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from research_backend.database import Base
from research_backend.models.paper import Paper
from research_backend.models.user import User


class Review(Base):
    """One reviewer's verdict on one paper."""
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("paper_id", "reviewer_id", name="uq_reviews_paper_reviewer"),
    )

    id = Column(Integer, primary_key=True, index=True)
    paper_id = Column(Integer, ForeignKey("papers.id"), nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    comments = Column(Text, nullable=False)
    insights = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    paper = relationship(Paper)
    reviewer = relationship(User)
