import secrets
import threading
from datetime import datetime
from typing import Callable, List, Optional

from database import SnapshotStore, COMPLAINTS_KEY
from errors import NotAuthenticatedError, ComplaintNotFoundError, InvalidTransitionError, ValidationError
from identity import IdentityStore, utcnow
from logging_config import get_logger
from schemas import Complaint, NewComplaint, COMPLAINT_STATUSES, URGENT_TYPE

logger = get_logger(__name__)


def generate_complaint_id() -> str:
    return f"CMP-{secrets.token_hex(4).upper()}"


def is_forward(current: str, requested: str) -> bool:
    return COMPLAINT_STATUSES.index(requested) >= COMPLAINT_STATUSES.index(current)


class ComplaintStore:
    """All complaint records, persisted as one snapshot on every mutation"""

    def __init__(
        self,
        store: SnapshotStore,
        identity: IdentityStore,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.identity = identity
        self.clock = clock
        self._lock = threading.RLock()

    @property
    def complaints(self) -> List[Complaint]:
        return [Complaint.model_validate(c) for c in self.store.read(COMPLAINTS_KEY, [])]

    @property
    def user_complaints(self) -> List[Complaint]:
        user = self.identity.current_user
        if user is None:
            return []
        return [c for c in self.complaints if c.user_id == user.id]

    def add_complaint(self, fields: NewComplaint) -> Complaint:
        user = self.identity.current_user
        if user is None:
            raise NotAuthenticatedError("User must be logged in to add a complaint")
        now = self.clock()
        complaint = Complaint(
            id=generate_complaint_id(),
            user_id=user.id,
            user_name=user.name,
            created_at=now,
            updated_at=now,
            status='pending',
            is_urgent=fields.type == URGENT_TYPE,
            **fields.model_dump(),
        )
        with self._lock:
            snapshot = self.store.read(COMPLAINTS_KEY, [])
            snapshot.append(complaint.to_snapshot())
            self.store.write(COMPLAINTS_KEY, snapshot)
        logger.info(f"Complaint {complaint.id} created by {user.id} ({complaint.type})")
        return complaint

    def update_complaint_status(self, complaint_id: str, status: str) -> Complaint:
        if status not in COMPLAINT_STATUSES:
            raise ValidationError({"status": f"Unknown status: {status}"})
        with self._lock:
            snapshot = self.store.read(COMPLAINTS_KEY, [])
            for index, raw in enumerate(snapshot):
                if raw.get("id") == complaint_id:
                    break
            else:
                raise ComplaintNotFoundError(complaint_id)

            current = Complaint.model_validate(raw)
            if not is_forward(current.status, status):
                raise InvalidTransitionError(current.status, status)
            updated = current.model_copy(update={"status": status, "updated_at": self.clock()})
            stamped = updated.to_snapshot()
            snapshot[index] = {**raw, "status": stamped["status"], "updatedAt": stamped["updatedAt"]}
            self.store.write(COMPLAINTS_KEY, snapshot)
        logger.info(f"Complaint {complaint_id} status {current.status} -> {status}")
        return updated

    def get_complaint_by_id(self, complaint_id: str) -> Optional[Complaint]:
        return next((c for c in self.complaints if c.id == complaint_id), None)
