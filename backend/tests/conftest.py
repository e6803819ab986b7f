"""
Pytest Configuration and Fixtures

Provides an in-memory object store, explicit settings, an in-memory state
database and a test client wired to all three.
"""
import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from vidstream.config import Settings
from vidstream.exceptions import StorageBackendError
from vidstream.services.catalog_service import StorageObject
from vidstream.services.storage_provider import ProviderConfig, ProviderId

# Use SQLite in-memory for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

test_engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeObjectStore:
    """Dict-backed stand-in for ObjectStore"""

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.bucket = config.bucket
        self.objects = {}
        self.signed = []
        self.deleted = []
        self.fail_with = None

    @property
    def provider(self) -> str:
        return self.config.provider.value

    def add(self, key: str, size: int = 100, body: bytes = b"", minutes: int = 0):
        self.objects[key] = {
            "body": body,
            "size": size,
            "last_modified": BASE_TIME + timedelta(minutes=minutes),
        }

    def _check(self):
        if self.fail_with:
            raise StorageBackendError("Object store request failed", details=self.fail_with)

    def list_objects(self, prefix: str):
        self._check()
        return [
            StorageObject(key=key, size=obj["size"], last_modified=obj["last_modified"])
            for key, obj in self.objects.items()
            if key.startswith(prefix)
        ]

    def generate_signed_url(self, key, verb="get", ttl_seconds=3600, content_type=None, metadata=None):
        self._check()
        self.signed.append({
            "key": key,
            "verb": verb,
            "ttl": ttl_seconds,
            "content_type": content_type,
            "metadata": metadata,
        })
        return f"https://signed.example/{self.bucket}/{key}?verb={verb}&ttl={ttl_seconds}"

    def delete(self, key: str):
        self._check()
        self.deleted.append(key)
        self.objects.pop(key, None)

    def put(self, key, body, content_type="application/octet-stream", metadata=None):
        self._check()
        self.objects[key] = {"body": body, "size": len(body), "last_modified": BASE_TIME}

    def get_bytes(self, key):
        self._check()
        obj = self.objects.get(key)
        return obj["body"] if obj else None


@pytest.fixture
def settings():
    """Settings with only R2 configured."""
    return Settings(
        _env_file=None,
        r2_account_id="acct123",
        r2_access_key_id="r2-key",
        r2_secret_access_key="r2-secret",
        r2_bucket_name="media",
        do_spaces_access_key_id="",
        do_spaces_secret_access_key="",
    )


@pytest.fixture
def r2_config():
    return ProviderConfig(
        provider=ProviderId.R2,
        endpoint_url="https://acct123.r2.cloudflarestorage.com",
        region="auto",
        bucket="media",
        access_key_id="r2-key",
        secret_access_key="r2-secret",
    )


@pytest.fixture
def fake_store(r2_config):
    return FakeObjectStore(r2_config)


@pytest.fixture
def client(settings, fake_store):
    """Test client with settings and object store overridden."""
    from vidstream.config import get_settings
    from vidstream.services.object_store import get_store_factory
    from vidstream.main import app

    def store_factory(config):
        fake_store.config = config
        fake_store.bucket = config.bucket
        return fake_store

    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_store_factory] = lambda: store_factory

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def unconfigured_client(fake_store):
    """Test client without any provider credentials."""
    from vidstream.config import get_settings
    from vidstream.services.object_store import get_store_factory
    from vidstream.main import app

    empty = Settings(
        _env_file=None,
        r2_account_id="",
        r2_access_key_id="",
        r2_secret_access_key="",
        r2_bucket_name="",
        do_spaces_access_key_id="",
        do_spaces_secret_access_key="",
    )
    app.dependency_overrides[get_settings] = lambda: empty
    app.dependency_overrides[get_store_factory] = lambda: (lambda config: fake_store)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db_session():
    """Fresh in-memory state database per test."""
    from vidstream.database import Base
    from vidstream.models import KeyValueEntry  # noqa

    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def state_engine():
    """Empty in-memory engine; tables are left for the code under test to create."""
    from vidstream.database import Base

    yield test_engine

    Base.metadata.drop_all(bind=test_engine)


class FakeClock:
    """Deterministic epoch-millis clock"""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000):
        self.now = start
        self.step = step

    def __call__(self) -> int:
        value = self.now
        self.now += self.step
        return value


@pytest.fixture
def clock():
    return FakeClock()
