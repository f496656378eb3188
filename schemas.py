from pydantic import BaseModel, ConfigDict, Field, EmailStr
from pydantic.alias_generators import to_camel
from typing import Optional, Literal, List, Dict, get_args
from datetime import datetime

Role = Literal['user', 'admin']
ComplaintStatus = Literal['pending', 'in-progress', 'resolved']
ComplaintType = Literal[
    'Road Issue',
    'Water Supply',
    'Electricity',
    'Garbage',
    'Public Safety',
    'Noise Complaint',
    'Property Dispute',
    'Other',
]
SortKey = Literal['newest', 'oldest', 'urgent']

COMPLAINT_TYPES: List[str] = list(get_args(ComplaintType))
COMPLAINT_STATUSES: List[str] = list(get_args(ComplaintStatus))
URGENT_TYPE = 'Public Safety'


class Record(BaseModel):
    """Stored records use camelCase keys, same shape as the browser snapshot"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_snapshot(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# Users collection
class User(Record):
    id: str = Field(..., description="Immutable user id; 'admin' for the built-in administrator")
    name: str
    email: str
    phone: Optional[str] = None
    role: Role = Field('user', description="Fixed at creation")
    created_at: datetime


# Attachments are embedded in their complaint
class Attachment(Record):
    id: str
    name: str
    type: str = Field(..., description="MIME type")
    url: str = Field(..., description="Blob reference, e.g. /uploads/<id>")


# Complaints collection
class Complaint(Record):
    id: str = Field(..., description="Public complaint ID e.g. CMP-1A2B3C4D")
    user_id: str
    user_name: str
    type: ComplaintType
    location: str
    description: str
    status: ComplaintStatus = 'pending'
    attachments: List[Attachment] = []
    is_urgent: bool = False
    created_at: datetime
    updated_at: datetime


class NewComplaint(BaseModel):
    """Fields a submitter supplies; id, owner, status, urgency and timestamps come from the store"""
    type: ComplaintType
    location: str
    description: str
    attachments: List[Attachment] = []


# Requests

class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class RegisterRequest(BaseModel):
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    password: str = ""
    confirm_password: str = Field("", alias="confirmPassword")

    model_config = ConfigDict(populate_by_name=True)


class EmailCheck(BaseModel):
    email: EmailStr


class StatusUpdateRequest(BaseModel):
    status: ComplaintStatus


# Responses

class ComplaintPage(Record):
    items: List[Complaint]
    total: int
    page: int
    total_pages: int
    page_size: int
    start: int = Field(..., description="1-based index of the first item shown")
    end: int
    status_counts: Dict[str, int] = {}
    types: List[str] = []


class SubmissionResult(Record):
    complaint: Complaint
    file_error: Optional[str] = None
    rejected_files: List[str] = []
