"""Accepted-paper listings and the spreadsheet export."""

from dataclasses import dataclass
from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session, joinedload

from research_backend.models.paper import Paper, PaperStatus
from research_backend.services.events import get_event

SHEET_TITLE = 'Accepted Papers'
EXPORT_FILENAME = 'accepted-papers.xlsx'
XLSX_MEDIA_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
MISSING_CONTACT = 'N/A'

# (header, column width)
EXPORT_COLUMNS = (
    ('S.No', 6),
    ('Paper Title', 40),
    ('Track', 20),
    ('Author Name', 25),
    ('Author Email', 30),
    ('Contact Number', 18),
    ('Event', 25),
)


@dataclass(frozen=True)
class AcceptedPaperRow:
    title: str
    track: str
    author_name: str | None
    author_email: str | None
    contact_number: str | None
    event_title: str | None

    def to_dict(self) -> dict:
        return {
            'title': self.title,
            'track': self.track,
            'authorName': self.author_name,
            'authorEmail': self.author_email,
            'contactNumber': self.contact_number,
            'eventTitle': self.event_title,
        }


def accepted_papers(db: Session, event_id: int) -> list[Paper]:
    get_event(db, event_id)
    return (
        db.query(Paper)
        .options(joinedload(Paper.author), joinedload(Paper.event))
        .filter(Paper.event_id == event_id, Paper.status == PaperStatus.ACCEPTED.value)
        .order_by(Paper.created_at.asc(), Paper.id.asc())
        .all()
    )


def accepted_export(db: Session, event_id: int) -> list[AcceptedPaperRow]:
    rows = []
    for paper in accepted_papers(db, event_id):
        author = paper.author
        rows.append(
            AcceptedPaperRow(
                title=paper.title,
                track=paper.track,
                author_name=author.name if author else None,
                author_email=author.email if author else None,
                contact_number=author.contact_number if author else None,
                event_title=paper.event.title if paper.event else None,
            )
        )
    return rows


def build_accepted_workbook(rows: list[AcceptedPaperRow]) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_TITLE

    sheet.append([header for header, _ in EXPORT_COLUMNS])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for index, (_, width) in enumerate(EXPORT_COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    for number, row in enumerate(rows, start=1):
        sheet.append([
            number,
            row.title,
            row.track,
            row.author_name,
            row.author_email,
            row.contact_number or MISSING_CONTACT,
            row.event_title,
        ])

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
