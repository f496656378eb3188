import secrets
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from blobs import BlobStore
from complaints import ComplaintStore
from errors import FileRejectedError, ValidationError, ComplaintDeskError
from logging_config import get_logger
from schemas import Attachment, Complaint, NewComplaint, COMPLAINT_TYPES

logger = get_logger(__name__)

MAX_FILE_SIZE = 5 * 1024 * 1024  # 5MB
ALLOWED_FILE_TYPES = ['image/jpeg', 'image/png', 'image/gif', 'video/mp4']
MIN_DESCRIPTION_LENGTH = 10
DEFAULT_TYPE = 'Road Issue'


@dataclass
class UploadedFile:
    name: str
    type: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


def check_file(
    file: UploadedFile,
    allowed_types: Sequence[str] = ALLOWED_FILE_TYPES,
    max_size: int = MAX_FILE_SIZE,
) -> None:
    if file.type not in allowed_types:
        raise FileRejectedError(
            file.name,
            f"File type not allowed: {file.type}. Allowed types: JPG, PNG, GIF, MP4",
        )
    if file.size > max_size:
        raise FileRejectedError(
            file.name,
            f"File too large: {file.size / 1024 / 1024:.2f}MB. Max size: {max_size // (1024 * 1024)}MB",
        )


def validate_fields(type: Optional[str], location: str, description: str) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if not type or type not in COMPLAINT_TYPES:
        errors["type"] = "Please select a complaint type"
    if not location.strip():
        errors["location"] = "Please enter a location"
    if not description.strip():
        errors["description"] = "Please enter a description"
    elif len(description) < MIN_DESCRIPTION_LENGTH:
        errors["description"] = f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters"
    return errors


class ComplaintForm:
    """Draft complaint: fields, pending attachments and visible errors.

    A successful submit shows the success flag, then after ``reset_delay``
    seconds clears the draft and calls ``on_submitted``. With ``reset_delay``
    set to None the draft is left as submitted and no timer is started.
    """

    def __init__(
        self,
        complaints: ComplaintStore,
        blobs: BlobStore,
        on_submitted: Optional[Callable[[], None]] = None,
        reset_delay: Optional[float] = 2.0,
        allowed_types: Sequence[str] = ALLOWED_FILE_TYPES,
        max_file_size: int = MAX_FILE_SIZE,
    ):
        self.complaints = complaints
        self.blobs = blobs
        self.on_submitted = on_submitted
        self.reset_delay = reset_delay
        self.allowed_types = list(allowed_types)
        self.max_file_size = max_file_size
        self._timer: Optional[threading.Timer] = None
        self._clear()

    def _clear(self) -> None:
        self.type: Optional[str] = DEFAULT_TYPE
        self.location = ""
        self.description = ""
        self.attachments: List[Attachment] = []
        self.errors: Dict[str, str] = {}
        self.success = False

    @property
    def file_error(self) -> Optional[str]:
        return self.errors.get("file")

    def add_files(self, files: Iterable[UploadedFile]) -> List[FileRejectedError]:
        """Attach accepted files; the last rejection is the one shown"""
        rejected: List[FileRejectedError] = []
        for file in files:
            try:
                check_file(file, self.allowed_types, self.max_file_size)
            except FileRejectedError as e:
                logger.warning(f"Attachment rejected - {file.name}: {e.message}")
                self.errors["file"] = e.message
                rejected.append(e)
                continue
            url = self.blobs.create(file.content, file.type)
            self.attachments.append(Attachment(id=secrets.token_hex(6), name=file.name, type=file.type, url=url))
        return rejected

    def remove_attachment(self, attachment_id: str) -> None:
        attachment = next((a for a in self.attachments if a.id == attachment_id), None)
        if attachment:
            self.blobs.revoke(attachment.url)
        self.attachments = [a for a in self.attachments if a.id != attachment_id]

    def discard(self) -> None:
        """Abandon the draft, releasing every pending attachment"""
        self.cancel_reset()
        if not self.success:
            for attachment in self.attachments:
                self.blobs.revoke(attachment.url)
        self._clear()

    def validate(self) -> bool:
        self.errors = validate_fields(self.type, self.location, self.description)
        return not self.errors

    def submit(self) -> Complaint:
        if not self.validate():
            raise ValidationError(self.errors)

        try:
            complaint = self.complaints.add_complaint(NewComplaint(
                type=self.type,
                location=self.location,
                description=self.description,
                attachments=self.attachments,
            ))
        except ComplaintDeskError:
            self.errors = {"submit": "Failed to submit complaint. Please try again."}
            raise

        self.success = True
        if self.reset_delay is not None:
            self._schedule_reset()
        return complaint

    def _schedule_reset(self) -> None:
        self.cancel_reset()
        self._timer = threading.Timer(self.reset_delay, self._finish)
        self._timer.daemon = True
        self._timer.start()

    @property
    def reset_pending(self) -> bool:
        return self._timer is not None

    def cancel_reset(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _finish(self) -> None:
        self._timer = None
        self._clear()
        if self.on_submitted:
            self.on_submitted()
