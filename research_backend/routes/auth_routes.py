from fastapi import APIRouter, Depends, status
from pydantic import field_validator
from sqlalchemy.orm import Session

from research_backend.auth.dependencies import CurrentUser, get_current_user
from research_backend.database import get_db
from research_backend.routes.common import CamelModel, ensure_database_ready
from research_backend.services import auth_service

router = APIRouter(tags=['auth'])


class RegisterRequest(CamelModel):
    name: str = ''
    email: str = ''
    password: str = ''
    roles: list[str] = []
    contact_number: str | None = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginRequest(CamelModel):
    email: str = ''
    password: str = ''

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class RefreshRequest(CamelModel):
    refresh_token: str = ''


@router.post('/register', status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    ensure_database_ready()
    user = auth_service.register_user(
        db,
        name=data.name,
        email=data.email,
        password=data.password,
        roles=data.roles,
        contact_number=data.contact_number,
    )
    return {'ok': True, 'user': auth_service.serialize_user(user)}


@router.post('/login')
def login(data: LoginRequest, db: Session = Depends(get_db)):
    ensure_database_ready()
    result = auth_service.login_user(db, data.email, data.password)
    return {'ok': True, **result}


@router.post('/refresh')
def refresh(data: RefreshRequest):
    access_token = auth_service.refresh_access_token(data.refresh_token)
    return {'ok': True, 'accessToken': access_token}


@router.get('/me')
def me(current_user: CurrentUser = Depends(get_current_user)):
    return {
        'ok': True,
        'user': {'id': current_user.id, 'roles': sorted(role.value for role in current_user.roles)},
    }
