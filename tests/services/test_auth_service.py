import jwt
import pytest

from research_backend.auth import jwt_handler
from research_backend.auth.dependencies import claims_to_user
from research_backend.core.exceptions import AuthenticationError, ConflictError, ValidationError
from research_backend.models.user import Role, User, normalize_roles
from research_backend.services import auth_service


def test_normalize_roles_lowercases_and_deduplicates() -> None:
    assert normalize_roles([' Author', 'REVIEWER', 'author']) == ['author', 'reviewer']


@pytest.mark.parametrize('roles', [[], None, ['  '], ['chair']])
def test_normalize_roles_rejects_empty_or_unknown(roles) -> None:
    with pytest.raises(ValidationError):
        normalize_roles(roles)


def test_register_user_hashes_password_and_normalizes_fields(db) -> None:
    user = auth_service.register_user(
        db,
        name=' Ada Lovelace ',
        email=' ADA@Example.org ',
        password='analytical',
        roles=['Author', 'reviewer'],
        contact_number='  ',
    )

    assert user.id is not None
    assert user.name == 'Ada Lovelace'
    assert user.email == 'ada@example.org'
    assert user.roles == ['author', 'reviewer']
    assert user.contact_number is None
    assert user.hashed_password != 'analytical'


def test_register_user_with_empty_roles_creates_nothing(db) -> None:
    with pytest.raises(ValidationError):
        auth_service.register_user(db, 'Ada', 'ada@example.org', 'pw', roles=[])

    assert db.query(User).count() == 0


def test_register_user_rejects_duplicate_email(db) -> None:
    auth_service.register_user(db, 'Ada', 'ada@example.org', 'pw', roles=['author'])

    with pytest.raises(ConflictError) as exception_info:
        auth_service.register_user(db, 'Other', 'ADA@example.org', 'pw', roles=['reviewer'])

    assert exception_info.value.status_code == 409
    assert db.query(User).count() == 1


def test_login_returns_tokens_carrying_roles(db) -> None:
    auth_service.register_user(db, 'Ada', 'ada@example.org', 'pw', roles=['Reviewer', 'AUTHOR'])

    result = auth_service.login_user(db, 'ada@example.org', 'pw')
    payload = jwt_handler.decode_access_token(result['accessToken'])

    assert set(payload['roles']) == {'author', 'reviewer'}
    assert result['user']['email'] == 'ada@example.org'
    assert 'hashed_password' not in result['user']


@pytest.mark.parametrize(('email', 'password'), [('ada@example.org', 'wrong'), ('nobody@example.org', 'pw')])
def test_login_rejects_bad_credentials(db, email: str, password: str) -> None:
    auth_service.register_user(db, 'Ada', 'ada@example.org', 'pw', roles=['author'])

    with pytest.raises(AuthenticationError) as exception_info:
        auth_service.login_user(db, email, password)

    assert exception_info.value.message == 'Invalid email or password'


def test_login_with_unknown_email_still_checks_a_password_hash(db, monkeypatch) -> None:
    checked = []

    def recording_verify(password: str, hashed_password: str) -> bool:
        checked.append(hashed_password)
        return False

    monkeypatch.setattr(auth_service, 'verify_password', recording_verify)

    with pytest.raises(AuthenticationError):
        auth_service.login_user(db, 'nobody@example.org', 'pw')

    assert len(checked) == 1
    assert checked[0].startswith('$2')


def test_refresh_token_issues_new_access_token(db) -> None:
    auth_service.register_user(db, 'Ada', 'ada@example.org', 'pw', roles=['coordinator'])
    tokens = auth_service.login_user(db, 'ada@example.org', 'pw')

    access_token = auth_service.refresh_access_token(tokens['refreshToken'])
    current_user = claims_to_user(jwt_handler.decode_access_token(access_token))

    assert current_user.roles == frozenset({Role.COORDINATOR})


def test_refresh_token_is_not_an_access_token(db) -> None:
    auth_service.register_user(db, 'Ada', 'ada@example.org', 'pw', roles=['author'])
    tokens = auth_service.login_user(db, 'ada@example.org', 'pw')

    with pytest.raises(jwt.PyJWTError):
        jwt_handler.decode_access_token(tokens['refreshToken'])
    with pytest.raises(AuthenticationError):
        auth_service.refresh_access_token(tokens['accessToken'])


def test_claims_with_unknown_role_are_rejected() -> None:
    with pytest.raises(AuthenticationError):
        claims_to_user({'sub': '1', 'roles': ['admin']})
