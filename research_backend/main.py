import logging
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from research_backend import storage
from research_backend.core import config
from research_backend.core.exceptions import ResearchBackendError
from research_backend.database import Base, engine, ensure_paper_schema, ensure_review_schema
from research_backend.models import assignment, event, paper, review, user  # noqa: F401 (register tables)
from research_backend.routes import admin_routes, auth_routes, event_routes, paper_routes, review_routes
from research_backend.routes.common import DATABASE_UNAVAILABLE

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='Research Paper Management API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.on_event('startup')
def initialize_database() -> None:
    os.makedirs(config.UPLOADS_DIR, exist_ok=True)
    try:
        Base.metadata.create_all(bind=engine)
        ensure_paper_schema()
        ensure_review_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.exception_handler(ResearchBackendError)
async def research_backend_error_handler(request: Request, exc: ResearchBackendError):
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = '.'.join(str(part) for part in first.get('loc', ()) if part != 'body')
        message = f"{location}: {first.get('msg')}" if location else str(first.get('msg'))
    else:
        message = 'Invalid request'
    return JSONResponse(status_code=400, content={'ok': False, 'message': message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else 'Request failed'
    return JSONResponse(
        status_code=exc.status_code,
        content={'ok': False, 'message': message},
        headers=getattr(exc, 'headers', None),
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception('Database error on %s %s', request.method, request.url.path)
    return JSONResponse(status_code=503, content={'ok': False, 'message': DATABASE_UNAVAILABLE})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    return JSONResponse(status_code=500, content={'ok': False, 'message': 'Internal server error'})


@app.get('/')
def root():
    return {'status': 'Research Paper Management API Running'}


@app.get('/health')
def health():
    return {'ok': True, 'status': 'healthy'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(event_routes.router, prefix='/events')
app.include_router(paper_routes.router, prefix='/paper')
app.include_router(review_routes.router, prefix='/review')
app.include_router(admin_routes.router)

app.mount(
    storage.PUBLIC_PREFIX,
    StaticFiles(directory=config.UPLOADS_DIR, check_dir=False),
    name='uploads',
)
