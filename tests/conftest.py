import os
from datetime import date

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('BCRYPT_ROUNDS', '4')
os.environ.setdefault('JWT_SECRET_KEY', 'test-access-secret')
os.environ.setdefault('JWT_REFRESH_SECRET_KEY', 'test-refresh-secret')

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from research_backend.auth import jwt_handler  # noqa: E402
from research_backend.auth.dependencies import CurrentUser  # noqa: E402
from research_backend.auth.passwords import hash_password  # noqa: E402
from research_backend.core import config  # noqa: E402
from research_backend.database import Base, get_db  # noqa: E402
from research_backend.models.event import Event  # noqa: E402
from research_backend.models.paper import Paper  # noqa: E402
from research_backend.models.user import Role, User  # noqa: E402
from research_backend.main import app  # noqa: E402


@pytest.fixture
def engine():
    test_engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    directory = tmp_path / 'uploads'
    monkeypatch.setattr(config, 'UPLOADS_DIR', str(directory))
    monkeypatch.setattr(config, 'REQUIRE_ASSIGNMENT', False)
    return directory


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def make_user(db):
    counter = {'value': 0}

    def _make_user(*roles: Role, name: str | None = None, contact_number: str | None = None) -> User:
        counter['value'] += 1
        number = counter['value']
        user = User(
            name=name or f'User {number}',
            email=f'user{number}@example.org',
            hashed_password=hash_password('secret-password'),
            roles=[role.value for role in (roles or (Role.AUTHOR,))],
            contact_number=contact_number,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_event(db, make_user):
    def _make_event(title: str = 'ICSE 2026', creator: User | None = None) -> Event:
        creator = creator or make_user(Role.COORDINATOR)
        event = Event(title=title, description='Annual meeting', date=date(2026, 5, 10), created_by=creator.id)
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    return _make_event


@pytest.fixture
def make_paper(db, make_user):
    def _make_paper(
        event: Event | None = None,
        author: User | None = None,
        title: str = 'Edge Computing Survey',
        track: str = 'IoT',
        status: str = 'submitted',
    ) -> Paper:
        author = author or make_user(Role.AUTHOR)
        paper = Paper(
            title=title,
            track=track,
            event_id=event.id if event else None,
            file_url='/uploads/papers/sample.pdf',
            author_id=author.id,
            status=status,
        )
        db.add(paper)
        db.commit()
        db.refresh(paper)
        return paper

    return _make_paper


@pytest.fixture
def as_actor():
    def _as_actor(user: User) -> CurrentUser:
        return CurrentUser(id=user.id, roles=frozenset(Role(role) for role in user.roles))

    return _as_actor


@pytest.fixture
def auth_header():
    def _auth_header(user: User) -> dict:
        return {'Authorization': f'Bearer {jwt_handler.create_access_token(user.id, user.roles)}'}

    return _auth_header
