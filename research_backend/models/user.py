"""User model definitions."""

import enum
from datetime import datetime
from typing import Iterable

from sqlalchemy import JSON, Column, DateTime, Integer, String

from research_backend.core.exceptions import ValidationError
from research_backend.database import Base


class Role(str, enum.Enum):
    AUTHOR = "author"
    REVIEWER = "reviewer"
    COORDINATOR = "coordinator"


def normalize_roles(values: Iterable[str] | None) -> list[str]:
    """Lower-case, de-duplicate and validate a role list.

    Order of first appearance is kept. Raises ``ValidationError`` for an
    empty selection or any value outside :class:`Role`.
    """
    if values is None:
        values = []
    if isinstance(values, str):
        values = [values]

    normalized: list[str] = []
    for value in values:
        role = str(value).strip().lower()
        if role not in {member.value for member in Role}:
            raise ValidationError(f"Unknown role '{value}'.", field="roles")
        if role not in normalized:
            normalized.append(role)

    if not normalized:
        raise ValidationError("Select at least one role.", field="roles")
    return normalized


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    roles = Column(JSON, nullable=False, default=list)  # subset of Role values
    contact_number = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.now, nullable=False)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now, nullable=False)

    def has_role(self, role: Role) -> bool:
        return role.value in (self.roles or [])
