"""
Audit Log Domain Model

Defines audit log related Data Transfer Objects (DTOs).
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from crudgate.common.time import ensure_utc, utc_now


class AuditAction(str, Enum):
    """Audited operations"""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    READ = "read"


class AuditLogCreate(BaseModel):
    """Create Audit Log Model"""

    # Collection the operation targeted
    collection: str = Field(..., description="Collection")
    action: AuditAction = Field(..., description="Action")
    # User who performed the operation
    actor_id: Optional[str] = Field(None, description="Actor ID")
    # New records (create/update), removed records (delete) or query filter (read)
    payload: Any = Field(None, description="Payload")
    # Records before an update
    previous: Any = Field(None, description="Previous Records")
    logged_at: datetime = Field(default_factory=utc_now, description="Logged At")

    @field_validator("logged_at", mode="after")
    @classmethod
    def _logged_at_utc(cls, v: datetime) -> datetime:
        dt = ensure_utc(v)
        assert dt is not None
        return dt


class AuditLogModel(AuditLogCreate):
    """Stored Audit Log Model"""

    id: str = Field(..., description="Audit Log ID")

    model_config = ConfigDict(from_attributes=True)
