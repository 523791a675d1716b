"""
Test Configuration Module
"""

from datetime import timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from bson import ObjectId
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from crudgate.common.time import utc_now
from crudgate.config import CrudOptions
from crudgate.db.models import Base
from crudgate.repositories.memory import MemoryCacheRepository, MemoryDocumentStore
from crudgate.repositories.storage import DocumentAuditLogRepository
from crudgate.services import CrudService


# Use in-memory database for testing
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ADMIN_ID = ObjectId("64b000000000000000000001")
ALICE_ID = ObjectId("64b000000000000000000002")
BOB_ID = ObjectId("64b000000000000000000003")
INACTIVE_ID = ObjectId("64b000000000000000000004")
PROJECTS_SERVICE_ID = ObjectId("64b0000000000000000000a1")

ADMIN_TOKEN = "admin-token"
ALICE_TOKEN = "alice-token"
BOB_TOKEN = "bob-token"
EXPIRED_TOKEN = "expired-token"
INACTIVE_TOKEN = "inactive-token"


def _expire_in(days: int) -> int:
    """Access grant expiry in epoch milliseconds"""
    return int((utc_now() + timedelta(days=days)).timestamp() * 1000)


async def seed_access_control(store: MemoryDocumentStore) -> None:
    """
    Seed users, access grants, services and roles

    - admin: administrator
    - alice: "staff" group, may read and create (not update/delete) in projects
    - bob: no group, owner-only access
    """
    await store.collection("users").insert_many([
        {"_id": ADMIN_ID, "username": "admin", "isActive": True,
         "profile": {"isAdmin": True}, "defaultGroup": "admins"},
        {"_id": ALICE_ID, "username": "alice", "isActive": True,
         "profile": {"isAdmin": False}, "defaultGroup": "staff", "groups": ["staff"]},
        {"_id": BOB_ID, "username": "bob", "isActive": True, "profile": {"isAdmin": False}},
        {"_id": INACTIVE_ID, "username": "gone", "isActive": False, "profile": {"isAdmin": False}},
    ])
    await store.collection("accessKeys").insert_many([
        {"token": ADMIN_TOKEN, "userId": ADMIN_ID, "expire": _expire_in(1)},
        {"token": ALICE_TOKEN, "userId": ALICE_ID, "expire": _expire_in(1)},
        {"token": BOB_TOKEN, "userId": BOB_ID, "expire": _expire_in(1)},
        {"token": EXPIRED_TOKEN, "userId": ALICE_ID, "expire": _expire_in(-1)},
        {"token": INACTIVE_TOKEN, "userId": INACTIVE_ID, "expire": _expire_in(1)},
    ])
    await store.collection("services").insert_many([
        {"_id": PROJECTS_SERVICE_ID, "name": "projects", "type": "Collection"},
    ])
    await store.collection("roles").insert_many([
        {"group": "staff", "service": PROJECTS_SERVICE_ID, "category": "Collection",
         "canRead": True, "canCreate": True, "canUpdate": False, "canDelete": False,
         "isActive": True},
    ])


@pytest_asyncio.fixture
async def store() -> MemoryDocumentStore:
    """In-memory document store seeded with access-control data"""
    store = MemoryDocumentStore()
    await seed_access_control(store)
    return store


@pytest.fixture
def cache_repo() -> MemoryCacheRepository:
    return MemoryCacheRepository()


@pytest.fixture
def options() -> CrudOptions:
    return CrudOptions(log_create=True, log_update=True, log_read=True, log_delete=True)


@pytest.fixture
def audit_repo(store) -> DocumentAuditLogRepository:
    return DocumentAuditLogRepository(store)


@pytest.fixture
def crud_service(store, cache_repo, audit_repo, options) -> CrudService:
    """CrudService wired to in-memory backends"""
    return CrudService(store=store, cache_repo=cache_repo, audit_repo=audit_repo, options=options)


@pytest_asyncio.fixture
async def async_engine():
    """Create async database engine for testing"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Clean up
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(async_engine) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create session factory for testing"""
    yield async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
