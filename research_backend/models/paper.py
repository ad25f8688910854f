"""Paper model definitions."""

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from research_backend.database import Base
from research_backend.models.event import Event
from research_backend.models.user import User


class PaperStatus(str, enum.Enum):
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    REVISIONS_REQUESTED = "revisions_requested"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# Papers a reviewer may pick up.
REVIEWABLE_STATUSES = (PaperStatus.SUBMITTED.value, PaperStatus.UNDER_REVIEW.value)
# Papers still waiting on a final decision. Includes revisions_requested, unlike
# the older two-status count, so total == selected + rejected + pending holds.
PENDING_STATUSES = REVIEWABLE_STATUSES + (PaperStatus.REVISIONS_REQUESTED.value,)


class Paper(Base):
    """A paper uploaded by an author, optionally against an event."""
    __tablename__ = "papers"
    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{status.value}'" for status in PaperStatus) + ")",
            name="ck_papers_status",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    track = Column(String, nullable=False)  # free text, not normalized
    event_id = Column(Integer, ForeignKey("events.id"), nullable=True, index=True)
    file_url = Column(String, nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status = Column(String, nullable=False, default=PaperStatus.SUBMITTED.value)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    author = relationship(User)
    event = relationship(Event)
