from dataclasses import dataclass

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from research_backend.auth import jwt_handler
from research_backend.core.exceptions import AuthenticationError, AuthorizationError
from research_backend.models.user import Role

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity taken from verified access-token claims."""

    id: int
    roles: frozenset[Role]

    def has_role(self, *roles: Role) -> bool:
        return any(role in self.roles for role in roles)


def claims_to_user(payload: dict) -> CurrentUser:
    subject = payload.get("sub")
    try:
        user_id = int(subject)
    except (TypeError, ValueError) as exc:
        raise AuthenticationError("Invalid token subject") from exc

    raw_roles = payload.get("roles")
    if not isinstance(raw_roles, list):
        raise AuthenticationError("Invalid token roles")
    try:
        roles = frozenset(Role(str(role).lower()) for role in raw_roles)
    except ValueError as exc:
        raise AuthenticationError("Invalid token roles") from exc

    return CurrentUser(id=user_id, roles=roles)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("No token provided")

    try:
        payload = jwt_handler.decode_access_token(credentials.credentials)
    except jwt.PyJWTError as exc:
        raise AuthenticationError("Invalid or expired token") from exc

    return claims_to_user(payload)


def require_roles(*roles: Role):
    def dependency(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not current_user.has_role(*roles):
            raise AuthorizationError()
        return current_user

    return dependency
