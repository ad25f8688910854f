"""Registration, login and token refresh."""

import logging
from functools import lru_cache

import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from research_backend.auth import jwt_handler
from research_backend.auth.dependencies import claims_to_user
from research_backend.auth.passwords import hash_password, verify_password
from research_backend.core.exceptions import AuthenticationError, ConflictError, ValidationError
from research_backend.models.user import User, normalize_roles

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password('placeholder-password')


def normalize_email(email: str | None) -> str:
    return (email or '').strip().lower()


def serialize_user(user: User) -> dict:
    return {
        'id': user.id,
        'name': user.name,
        'email': user.email,
        'roles': list(user.roles or []),
        'contactNumber': user.contact_number or None,
    }


def register_user(
    db: Session,
    name: str,
    email: str,
    password: str,
    roles,
    contact_number: str | None = None,
) -> User:
    name = (name or '').strip()
    email = normalize_email(email)
    if not name:
        raise ValidationError('Name is required.', field='name')
    if not email or '@' not in email:
        raise ValidationError('A valid email is required.', field='email')
    if not password:
        raise ValidationError('Password is required.', field='password')
    normalized_roles = normalize_roles(roles)

    if db.query(User.id).filter(User.email == email).first() is not None:
        raise ConflictError('Email already registered')

    user = User(
        name=name,
        email=email,
        hashed_password=hash_password(password),
        roles=normalized_roles,
        contact_number=(contact_number or '').strip() or None,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError('Email already registered') from exc
    db.refresh(user)

    logger.info('Registered user %s with roles %s', user.id, normalized_roles)
    return user


def login_user(db: Session, email: str, password: str) -> dict:
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    # Unknown emails run the same bcrypt check against a placeholder hash.
    hashed_password = user.hashed_password if user is not None else _dummy_hash()
    if not verify_password(password or '', hashed_password) or user is None:
        raise AuthenticationError('Invalid email or password')

    return {
        'accessToken': jwt_handler.create_access_token(user.id, user.roles),
        'refreshToken': jwt_handler.create_refresh_token(user.id, user.roles),
        'user': serialize_user(user),
    }


def refresh_access_token(refresh_token: str) -> str:
    try:
        payload = jwt_handler.decode_refresh_token(refresh_token or '')
    except jwt.PyJWTError as exc:
        raise AuthenticationError('Invalid or expired refresh token') from exc

    current_user = claims_to_user(payload)
    return jwt_handler.create_access_token(current_user.id, sorted(role.value for role in current_user.roles))
