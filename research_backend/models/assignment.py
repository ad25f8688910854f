"""Assignment model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from research_backend.database import Base
from research_backend.models.event import Event
from research_backend.models.paper import Paper
from research_backend.models.user import User


class Assignment(Base):
    """Marks a reviewer as responsible for a paper within an event."""
    __tablename__ = "assignments"
    __table_args__ = (
        UniqueConstraint("paper_id", "reviewer_id", name="uq_assignments_paper_reviewer"),
    )

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    paper_id = Column(Integer, ForeignKey("papers.id"), nullable=False)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    assigned_at = Column(DateTime, default=datetime.now, nullable=False)

    event = relationship(Event)
    paper = relationship(Paper)
    reviewer = relationship(User, foreign_keys=[reviewer_id])
