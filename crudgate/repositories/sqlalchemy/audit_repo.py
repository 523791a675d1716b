"""
Audit Log Repository SQLAlchemy Implementation

Provides concrete database operation implementation for audit logs.
"""

import json
from typing import Any, Optional

from bson import json_util
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from crudgate.common.time import ensure_utc, to_utc_naive
from crudgate.db.models import AuditLog as AuditLogORM
from crudgate.domain.audit import AuditLogCreate, AuditLogModel
from crudgate.repositories.audit_repo import AuditLogRepository


def _to_json(value: Any) -> Any:
    """Convert records holding ObjectIds/datetimes to JSON-safe extended JSON"""
    if value is None:
        return None
    return json.loads(json_util.dumps(value))


def _from_json(value: Any) -> Any:
    if value is None:
        return None
    return json_util.loads(json.dumps(value))


class SQLAlchemyAuditLogRepository(AuditLogRepository):
    """
    Audit Log Repository SQLAlchemy Implementation

    Opens a short-lived session per call so a failed audit write never leaves
    a shared session in a broken state.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        """
        Initialize Repository

        Args:
            session_factory: Async session factory
        """
        self.session_factory = session_factory

    def _to_domain(self, entity: AuditLogORM) -> AuditLogModel:
        """Convert ORM entity to domain model"""
        return AuditLogModel(
            id=str(entity.id),
            collection=entity.collection,
            action=entity.action,
            actor_id=entity.actor_id,
            payload=_from_json(entity.payload),
            previous=_from_json(entity.previous),
            logged_at=ensure_utc(entity.logged_at),
        )

    async def create(self, data: AuditLogCreate) -> AuditLogModel:
        """Create Audit Log"""
        async with self.session_factory() as session:
            entity = AuditLogORM(
                collection=data.collection,
                action=data.action.value,
                actor_id=data.actor_id,
                payload=_to_json(data.payload),
                previous=_to_json(data.previous),
                logged_at=to_utc_naive(data.logged_at),
            )
            session.add(entity)
            await session.commit()
            await session.refresh(entity)
            return self._to_domain(entity)

    async def list_by_collection(self, collection: str, limit: int = 100) -> list[AuditLogModel]:
        """List the most recent logs of a collection, newest first"""
        async with self.session_factory() as session:
            result = await session.execute(
                select(AuditLogORM)
                .where(AuditLogORM.collection == collection)
                .order_by(AuditLogORM.logged_at.desc(), AuditLogORM.id.desc())
                .limit(limit)
            )
            return [self._to_domain(entity) for entity in result.scalars().all()]

    async def get_by_id(self, id: str) -> Optional[AuditLogModel]:
        """Get Audit Log by ID"""
        if not str(id).isdigit():
            return None
        async with self.session_factory() as session:
            entity = await session.get(AuditLogORM, int(id))
            return self._to_domain(entity) if entity else None
