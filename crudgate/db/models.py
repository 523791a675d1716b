"""
SQLAlchemy ORM Model Definitions

Defines the table used by the SQL audit log backend:
- audit_logs: Audit Logs Table
"""

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.dialects.sqlite import JSON as SQLiteJSON
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy ORM Base Class"""
    pass


class AuditLog(Base):
    """
    Audit Logs Table

    Records create/update/delete/read operations performed through the CRUD pipelines.
    Record payloads are stored as MongoDB extended JSON.
    """
    __tablename__ = "audit_logs"

    # Primary Key ID
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Collection the operation targeted
    collection: Mapped[str] = mapped_column(String(200), nullable=False)
    # create / update / delete / read
    action: Mapped[str] = mapped_column(String(20), nullable=False)
    # Acting user id
    actor_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    # New/removed records or query filter
    payload: Mapped[Optional[Any]] = mapped_column(SQLiteJSON, nullable=True)
    # Records before an update
    previous: Mapped[Optional[Any]] = mapped_column(SQLiteJSON, nullable=True)
    # Log Time (naive UTC)
    logged_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_audit_logs_collection_logged_at", "collection", "logged_at"),
    )
