from datetime import date, datetime
from typing import Iterable

from schemas import Complaint

CSV_HEADER = ['ID', 'Type', 'Location', 'Description', 'Status', 'User', 'Created At', 'Updated At', 'Urgent']


def quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def format_timestamp(value: datetime) -> str:
    return value.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def complaint_row(complaint: Complaint) -> str:
    return ','.join([
        complaint.id,
        quote(complaint.type),
        quote(complaint.location),
        quote(complaint.description),
        complaint.status,
        quote(complaint.user_name),
        format_timestamp(complaint.created_at),
        format_timestamp(complaint.updated_at),
        'Yes' if complaint.is_urgent else 'No',
    ])


def complaints_to_csv(complaints: Iterable[Complaint]) -> str:
    return '\n'.join([','.join(CSV_HEADER)] + [complaint_row(c) for c in complaints])


def export_filename(today: date) -> str:
    return f"complaints-{today.isoformat()}.csv"
