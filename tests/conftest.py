"""
Complaint Desk - Test Configuration and Fixtures
"""
from datetime import datetime, timedelta, timezone

import pytest
from faker import Faker
from fastapi.testclient import TestClient

from blobs import BlobStore
from complaints import ComplaintStore
from config import Settings
from database import MemorySnapshotStore
from identity import IdentityStore
from main import create_app

fake = Faker()

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin123"


class FakeClock:
    """Returns strictly increasing timestamps, one minute apart"""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemorySnapshotStore:
    return MemorySnapshotStore()


@pytest.fixture
def identity(store, clock) -> IdentityStore:
    return IdentityStore(store, ADMIN_EMAIL, ADMIN_PASSWORD, clock=clock)


@pytest.fixture
def complaints(store, identity, clock) -> ComplaintStore:
    return ComplaintStore(store, identity, clock=clock)


@pytest.fixture
def blobs() -> BlobStore:
    return BlobStore()


@pytest.fixture
def citizen(identity):
    """A freshly registered citizen, left logged in"""
    return identity.register(fake.name(), "a@x.com", fake.phone_number(), "secret1")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL=None,
        DATABASE_NAME=None,
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def client(settings):
    app = create_app(settings, MemorySnapshotStore())
    with TestClient(app) as c:
        yield c


@pytest.fixture
def test_user_data() -> dict:
    password = fake.password(length=10)
    return {
        "name": fake.name(),
        "email": fake.unique.email(),
        "phone": fake.phone_number(),
        "password": password,
        "confirmPassword": password,
    }
