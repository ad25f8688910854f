"""Disk storage for uploaded paper PDFs and event banners.

Files land under ``config.UPLOADS_DIR/<folder>/`` and are referenced on the
owning record by their public URL (``/uploads/<folder>/<name>``). Writes are
not tied to the database transaction that follows them.
"""

import logging
import os
import secrets
import time

from fastapi import UploadFile

from research_backend.core import config
from research_backend.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = '/uploads'
PAPERS_FOLDER = 'papers'
EVENTS_FOLDER = 'events'

PDF_CONTENT_TYPES = {'application/pdf', 'application/x-pdf'}
IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.gif', '.webp'}
CHUNK_SIZE = 1024 * 1024


def _unique_name(extension: str) -> str:
    return f'{int(time.time() * 1000)}-{secrets.randbelow(10**9)}{extension}'


def _extension(filename: str | None) -> str:
    return os.path.splitext(filename or '')[1].lower()


def is_pdf_upload(upload: UploadFile) -> bool:
    return _extension(upload.filename) == '.pdf' or (upload.content_type or '').lower() in PDF_CONTENT_TYPES


def save_upload(upload: UploadFile, folder: str, extension: str) -> str:
    """Copy an upload to disk and return its public URL."""
    directory = os.path.join(config.UPLOADS_DIR, folder)
    os.makedirs(directory, exist_ok=True)

    filename = _unique_name(extension)
    destination = os.path.join(directory, filename)
    written = 0

    with open(destination, 'wb') as target:
        while True:
            chunk = upload.file.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > config.MAX_UPLOAD_BYTES:
                target.close()
                os.remove(destination)
                raise ValidationError('Uploaded file is too large.', field='file')
            target.write(chunk)

    if written == 0:
        os.remove(destination)
        raise ValidationError('Uploaded file is empty.', field='file')

    logger.info('Stored upload %s (%d bytes)', destination, written)
    return f'{PUBLIC_PREFIX}/{folder}/{filename}'


def save_paper_file(upload: UploadFile | None) -> str:
    if upload is None or not upload.filename:
        raise ValidationError('No file uploaded', field='file')
    if not is_pdf_upload(upload):
        raise ValidationError('Only PDF files are accepted.', field='file')
    return save_upload(upload, PAPERS_FOLDER, '.pdf')


def save_event_banner(upload: UploadFile | None) -> str | None:
    if upload is None or not upload.filename:
        return None
    extension = _extension(upload.filename)
    if extension not in IMAGE_EXTENSIONS:
        raise ValidationError('Banner must be an image file.', field='banner')
    return save_upload(upload, EVENTS_FOLDER, extension)
