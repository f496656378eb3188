"""
Filtering, sorting and pagination of complaint lists.

Everything here is a pure function of its inputs; the admin dashboard and
the citizen dashboard run the same pipeline, the admin one additionally
searching owner names and paginating.
"""
import math
from collections import Counter
from typing import Iterable, List, Dict

from schemas import Complaint, ComplaintPage, COMPLAINT_STATUSES

ALL = 'all'
DEFAULT_PAGE_SIZE = 10


def matches_search(complaint: Complaint, search: str, include_user_name: bool = False) -> bool:
    if not search:
        return True
    needle = search.lower()
    fields = [complaint.description, complaint.location, complaint.type, complaint.id]
    if include_user_name:
        fields.append(complaint.user_name)
    return any(needle in field.lower() for field in fields)


def filter_complaints(
    complaints: Iterable[Complaint],
    search: str = "",
    status: str = ALL,
    type: str = ALL,
    include_user_name: bool = False,
) -> List[Complaint]:
    return [
        c for c in complaints
        if matches_search(c, search, include_user_name)
        and (status == ALL or c.status == status)
        and (type == ALL or c.type == type)
    ]


def sort_complaints(complaints: Iterable[Complaint], sort_by: str = 'newest') -> List[Complaint]:
    # sorted() is stable, so ties keep their input order
    if sort_by == 'newest':
        return sorted(complaints, key=lambda c: c.created_at, reverse=True)
    if sort_by == 'oldest':
        return sorted(complaints, key=lambda c: c.created_at)
    if sort_by == 'urgent':
        return sorted(complaints, key=lambda c: not c.is_urgent)
    return list(complaints)


def distinct_types(complaints: Iterable[Complaint]) -> List[str]:
    """Types in first-seen order, for the filter dropdown"""
    return list(dict.fromkeys(c.type for c in complaints))


def status_counts(complaints: Iterable[Complaint]) -> Dict[str, int]:
    counts = Counter(c.status for c in complaints)
    return {status: counts.get(status, 0) for status in COMPLAINT_STATUSES}


def paginate(complaints: List[Complaint], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> ComplaintPage:
    total = len(complaints)
    total_pages = math.ceil(total / page_size)
    page = max(1, min(page, total_pages))
    first = (page - 1) * page_size
    items = complaints[first:first + page_size]
    return ComplaintPage(
        items=items,
        total=total,
        page=page,
        total_pages=total_pages,
        page_size=page_size,
        start=min(total, first + 1),
        end=min(first + page_size, total),
    )


def query_complaints(
    complaints: List[Complaint],
    search: str = "",
    status: str = ALL,
    type: str = ALL,
    sort_by: str = 'newest',
    include_user_name: bool = False,
) -> List[Complaint]:
    filtered = filter_complaints(complaints, search, status, type, include_user_name)
    return sort_complaints(filtered, sort_by)


def admin_view(
    complaints: List[Complaint],
    search: str = "",
    status: str = ALL,
    type: str = ALL,
    sort_by: str = 'newest',
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> ComplaintPage:
    ordered = query_complaints(complaints, search, status, type, sort_by, include_user_name=True)
    result = paginate(ordered, page, page_size)
    result.status_counts = status_counts(ordered)
    result.types = distinct_types(complaints)
    return result
