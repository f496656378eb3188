import secrets
import re
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from database import SnapshotStore, USERS_KEY, CURRENT_USER_KEY
from errors import AuthenticationError, DuplicateEmailError, ValidationError
from logging_config import get_logger
from schemas import User, EmailCheck, LoginRequest, RegisterRequest

logger = get_logger(__name__)

ADMIN_ID = "admin"
ADMIN_NAME = "Administrator"
MIN_PASSWORD_LENGTH = 6


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_id() -> str:
    return secrets.token_hex(8)


class IdentityStore:
    """Registered users plus the currently authenticated identity.

    Passwords of registered users are not checked; only the built-in
    administrator credential must match exactly.
    """

    def __init__(
        self,
        store: SnapshotStore,
        admin_email: str = "admin@example.com",
        admin_password: str = "admin123",
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.admin_email = admin_email
        self.admin_password = admin_password
        self.clock = clock
        stored = store.read(CURRENT_USER_KEY)
        self._current: Optional[User] = User.model_validate(stored) if stored else None

    @property
    def current_user(self) -> Optional[User]:
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    @property
    def is_admin(self) -> bool:
        return self._current is not None and self._current.role == 'admin'

    def users(self) -> List[User]:
        return [User.model_validate(u) for u in self.store.read(USERS_KEY, [])]

    def login(self, email: str, password: str) -> User:
        if email == self.admin_email:
            if not secrets.compare_digest(password.encode(), self.admin_password.encode()):
                logger.warning(f"Login failed - {email}: wrong administrator password")
                raise AuthenticationError()
            user = User(id=ADMIN_ID, name=ADMIN_NAME, email=self.admin_email, role='admin', created_at=self.clock())
        else:
            user = next((u for u in self.users() if u.email == email), None)
            if user is None:
                logger.warning(f"Login failed - {email}: user not found")
                raise AuthenticationError()
        self._set_current(user)
        logger.info(f"Login success - {email} ({user.role})")
        return user

    def register(self, name: str, email: str, phone: Optional[str], password: str) -> User:
        users = self.store.read(USERS_KEY, [])
        if any(u.get("email") == email for u in users):
            logger.warning(f"Registration rejected - {email}: already registered")
            raise DuplicateEmailError(email)
        user = User(id=generate_id(), name=name, email=email, phone=phone or None, role='user', created_at=self.clock())
        users.append(user.to_snapshot())
        self.store.write(USERS_KEY, users)
        self._set_current(user)
        logger.info(f"Registered user {user.id} - {email}")
        return user

    def logout(self) -> None:
        if self._current is not None:
            logger.info(f"Logout - {self._current.email}")
        self._current = None
        self.store.remove(CURRENT_USER_KEY)

    def _set_current(self, user: User) -> None:
        self._current = user
        self.store.write(CURRENT_USER_KEY, user.to_snapshot())


def validate_login(payload: LoginRequest) -> None:
    if not payload.email or not payload.password:
        raise ValidationError({"form": "Please fill in all fields"})


def validate_registration(payload: RegisterRequest) -> None:
    errors: Dict[str, str] = {}
    if not payload.name or not payload.email or not payload.password or not payload.confirm_password:
        errors["form"] = "Please fill in all required fields"
    elif payload.password != payload.confirm_password:
        errors["confirmPassword"] = "Passwords do not match"
    elif len(payload.password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    elif not _looks_like_email(payload.email):
        errors["email"] = "Please enter a valid email address"
    if errors:
        raise ValidationError(errors)


def _looks_like_email(email: str) -> bool:
    if re.search(r"\s", email):
        return False
    try:
        EmailCheck(email=email)
    except PydanticValidationError:
        return False
    return True
