"""
Audit Log Repository Interface

Defines the data access interface for audit logs.
"""

from abc import ABC, abstractmethod
from typing import Optional

from crudgate.domain.audit import AuditLogCreate, AuditLogModel


class AuditLogRepository(ABC):
    """Audit Log Repository Interface"""

    @abstractmethod
    async def create(self, data: AuditLogCreate) -> AuditLogModel:
        """
        Create Audit Log

        Args:
            data: Log data

        Returns:
            AuditLogModel: Stored log
        """
        pass

    @abstractmethod
    async def list_by_collection(self, collection: str, limit: int = 100) -> list[AuditLogModel]:
        """List the most recent logs of a collection, newest first"""
        pass

    @abstractmethod
    async def get_by_id(self, id: str) -> Optional[AuditLogModel]:
        """Get Audit Log by ID"""
        pass
