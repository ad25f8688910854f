from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from research_backend.core import config


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(config.DATABASE_URL, connect_args=_connect_args(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_paper_schema_checked = False
_review_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_paper_schema(bind=None) -> None:
    global _paper_schema_checked

    if _paper_schema_checked:
        return

    bind = bind or engine
    with _schema_lock:
        if _paper_schema_checked:
            return

        inspector = inspect(bind)

        if 'papers' not in inspector.get_table_names():
            _paper_schema_checked = True
            return

        with bind.begin() as connection:
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_papers_event_status ON papers(event_id, status)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_papers_author_created ON papers(author_id, created_at)')
            )

        _paper_schema_checked = True


def ensure_review_schema(bind=None) -> None:
    global _review_schema_checked

    if _review_schema_checked:
        return

    bind = bind or engine
    with _schema_lock:
        if _review_schema_checked:
            return

        inspector = inspect(bind)

        if 'reviews' not in inspector.get_table_names():
            _review_schema_checked = True
            return

        with bind.begin() as connection:
            # Fails while duplicate (paper, reviewer) rows exist.
            connection.execute(
                text('CREATE UNIQUE INDEX IF NOT EXISTS uq_reviews_paper_reviewer ON reviews(paper_id, reviewer_id)')
            )

        _review_schema_checked = True
