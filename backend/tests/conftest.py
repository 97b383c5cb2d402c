"""Shared test fixtures for all test modules."""

import contextlib
import uuid

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import ledger.models  # noqa: F401
from ledger.core import database as db_module
from ledger.core.database import Base, enable_sqlite_foreign_keys, get_db
from ledger.models.bid import Bid
from ledger.models.job import Job
from ledger.models.organization import Organization

# Create an in-memory SQLite engine with StaticPool so all connections
# share the same database state and there are no file-locking issues.
_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(_test_engine)
_TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

# Well-known records seeded for every test
DEFAULT_ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")
DEFAULT_BID_ID = uuid.UUID("00000000-0000-0000-0000-0000000000b1")
DEFAULT_JOB_ID = uuid.UUID("00000000-0000-0000-0000-0000000000a1")
OTHER_ORG_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")
OTHER_BID_ID = uuid.UUID("00000000-0000-0000-0000-0000000000b2")
OTHER_JOB_ID = uuid.UUID("00000000-0000-0000-0000-0000000000a2")
UNLINKED_JOB_ID = uuid.UUID("00000000-0000-0000-0000-0000000000a3")

ACTOR_ID = "user-123"


def _seed_collaborators(session: Session) -> None:
    """Insert the organizations, bids and jobs every test can reference."""
    if session.get(Organization, DEFAULT_ORG_ID) is not None:
        return
    session.add_all(
        [
            Organization(id=DEFAULT_ORG_ID, name="Default Test Organization"),
            Organization(id=OTHER_ORG_ID, name="Other Organization"),
        ]
    )
    session.flush()
    session.add_all(
        [
            Bid(id=DEFAULT_BID_ID, bid_number="BID-2025-00001", organization_id=DEFAULT_ORG_ID),
            Bid(id=OTHER_BID_ID, bid_number="BID-2025-00002", organization_id=OTHER_ORG_ID),
        ]
    )
    session.flush()
    session.add_all(
        [
            Job(id=DEFAULT_JOB_ID, job_number="JOB-2025-00001", bid_id=DEFAULT_BID_ID),
            Job(id=OTHER_JOB_ID, job_number="JOB-2025-00002", bid_id=OTHER_BID_ID),
            Job(id=UNLINKED_JOB_ID, job_number="JOB-2025-00003", bid_id=None),
        ]
    )
    session.commit()


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and truncate all data after.

    Patches the module-level engine and SessionLocal so all application code
    uses the in-memory test database. Clears data after each test.
    """
    original_engine = db_module.engine
    original_session = db_module.SessionLocal
    db_module.engine = _test_engine
    db_module.SessionLocal = _TestSessionLocal

    Base.metadata.create_all(bind=_test_engine)

    session = _TestSessionLocal()
    try:
        _seed_collaborators(session)
    finally:
        session.close()

    yield
    with _test_engine.connect() as conn:
        conn.execute(text("PRAGMA foreign_keys = OFF"))
        for table in reversed(Base.metadata.sorted_tables):
            with contextlib.suppress(OperationalError):
                conn.execute(table.delete())
        conn.execute(text("PRAGMA foreign_keys = ON"))
        conn.commit()

    db_module.engine = original_engine
    db_module.SessionLocal = original_session


@pytest.fixture
def db_session():
    """Create a database session for direct service testing."""
    gen = get_db()
    db = next(gen)
    try:
        yield db
    finally:
        for _ in gen:
            pass


@pytest.fixture
def default_org_id():
    """Return the default organization ID for tests."""
    return DEFAULT_ORG_ID
