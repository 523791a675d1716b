"""
Audit Logger Module

Writes create/update/delete/read audit entries, gated by per-operation toggles.
"""

import logging
from typing import Any, Optional, Sequence

from crudgate.config import CrudOptions
from crudgate.domain.audit import AuditAction, AuditLogCreate
from crudgate.domain.record import Record
from crudgate.repositories.audit_repo import AuditLogRepository

logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Audit Logger

    Audit failures are logged and swallowed so they never fail the operation.
    """

    def __init__(self, repo: Optional[AuditLogRepository], options: CrudOptions):
        """
        Initialize Logger

        Args:
            repo: Audit log repository (None disables auditing)
            options: CRUD options (audit toggles)
        """
        self.repo = repo
        self.options = options

    async def _write(self, data: AuditLogCreate) -> None:
        if self.repo is None:
            return
        try:
            await self.repo.create(data)
        except Exception:
            logger.exception(
                "Failed to write %s audit entry for collection %s",
                data.action.value,
                data.collection,
            )

    async def create_log(self, collection: str, records: Sequence[Record], actor_id: Optional[str]) -> None:
        if not self.options.log_create:
            return
        await self._write(
            AuditLogCreate(
                collection=collection,
                action=AuditAction.CREATE,
                actor_id=actor_id,
                payload=list(records),
            )
        )

    async def update_log(
        self,
        collection: str,
        previous: Sequence[Record],
        records: Sequence[Record],
        actor_id: Optional[str],
    ) -> None:
        if not self.options.log_update:
            return
        await self._write(
            AuditLogCreate(
                collection=collection,
                action=AuditAction.UPDATE,
                actor_id=actor_id,
                payload=list(records),
                previous=list(previous),
            )
        )

    async def delete_log(self, collection: str, records: Sequence[Record], actor_id: Optional[str]) -> None:
        if not self.options.log_delete:
            return
        await self._write(
            AuditLogCreate(
                collection=collection,
                action=AuditAction.DELETE,
                actor_id=actor_id,
                payload=list(records),
            )
        )

    async def read_log(self, collection: str, filter: dict[str, Any], actor_id: Optional[str]) -> None:
        """Record a filtered read (reads without a filter are not audited)"""
        if not self.options.log_read or not filter:
            return
        await self._write(
            AuditLogCreate(
                collection=collection,
                action=AuditAction.READ,
                actor_id=actor_id,
                payload=filter,
            )
        )
